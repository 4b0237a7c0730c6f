# cbt_platform/exams/serializers.py
from rest_framework import serializers
from .models import Exam, Question

# --- Question Serializers ---

class QuestionSerializer(serializers.ModelSerializer):
    """Staff view of a bank question, answer key included."""
    exam_title = serializers.CharField(source='exam.title', read_only=True)
    options = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = Question
        fields = [
            'id', 'exam', 'exam_title', 'text', 'question_type',
            'options', 'correct_answer', 'marks', 'display_order', 'created_at'
        ]
        read_only_fields = ['created_at']

    def validate_exam(self, exam):
        user = self.context['request'].user
        if not user.is_staff and exam.school_id != user.school_id:
            raise serializers.ValidationError("Exam not found")
        return exam

    def validate(self, attrs):
        q_type = attrs.get('question_type', getattr(self.instance, 'question_type', Question.QuestionType.MULTIPLE_CHOICE))
        options = attrs.get('options', getattr(self.instance, 'options', []))
        correct = attrs.get('correct_answer', getattr(self.instance, 'correct_answer', ''))

        if q_type in (Question.QuestionType.FILL_BLANK, Question.QuestionType.THEORY):
            attrs['options'] = []
        elif q_type == Question.QuestionType.TRUE_FALSE and not options:
            attrs['options'] = ['True', 'False']
            options = attrs['options']

        if q_type in (Question.QuestionType.MULTIPLE_CHOICE, Question.QuestionType.TRUE_FALSE):
            if len(options) < 2:
                raise serializers.ValidationError({"options": "At least two options are required"})
            # Correctness is a value match, so the key must be one of the options
            if correct.strip().lower() not in [o.strip().lower() for o in options]:
                raise serializers.ValidationError({"correct_answer": "Correct answer must match one of the options"})
        elif q_type == Question.QuestionType.FILL_BLANK and not correct.strip():
            raise serializers.ValidationError({"correct_answer": "Fill-in-the-blank questions need an answer"})
        return attrs

# --- Exam Serializers ---

class ExamSerializer(serializers.ModelSerializer):
    question_count = serializers.SerializerMethodField()
    total_marks = serializers.IntegerField(read_only=True)

    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'description', 'category', 'duration_minutes',
            'total_questions', 'pass_mark_percentage', 'shuffle_questions',
            'shuffle_options', 'show_result_immediately', 'is_published',
            'question_count', 'total_marks', 'created_at'
        ]
        read_only_fields = ['created_at']

    def get_question_count(self, obj):
        return obj.questions.active().count()
