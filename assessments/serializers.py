from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework import serializers

from exams.models import Exam
from .access import sanitize_questions
from .models import Attempt, ExamSchedule
from .scoring import result_released, result_summary

User = get_user_model()

# --- Schedule Serializers ---

class ScheduleCreateSerializer(serializers.Serializer):
    """Schedule one student (``student_id``) or many (``student_ids``)."""
    exam = serializers.PrimaryKeyRelatedField(queryset=Exam.objects.all())
    student_id = serializers.IntegerField(required=False)
    student_ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=False)
    scheduled_date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    max_attempts = serializers.IntegerField(min_value=1, default=1)

    def validate_exam(self, exam):
        user = self.context['request'].user
        if not user.is_staff and exam.school_id != user.school_id:
            raise serializers.ValidationError("Exam not found")
        # Tutors may only schedule their own exams
        if user.role == User.Role.TUTOR and exam.tutor_id != user.id:
            raise serializers.ValidationError("You can only schedule your own exams")
        return exam

    def validate(self, attrs):
        if attrs['start_time'] >= attrs['end_time']:
            raise serializers.ValidationError({"end_time": "End time must be after start time"})
        ids = attrs.get('student_ids') or ([attrs['student_id']] if 'student_id' in attrs else [])
        if not ids:
            raise serializers.ValidationError({"student_ids": "Provide student_id or student_ids"})

        students = User.objects.filter(id__in=ids, role=User.Role.STUDENT, school_id=attrs['exam'].school_id)
        found = {s.id: s for s in students}
        missing = [i for i in ids if i not in found]
        if missing:
            raise serializers.ValidationError({"student_ids": f"Unknown students: {missing}"})
        attrs['students'] = [found[i] for i in dict.fromkeys(ids)]
        return attrs


class RescheduleSerializer(serializers.Serializer):
    scheduled_date = serializers.DateField(required=False)
    start_time = serializers.TimeField(required=False)
    end_time = serializers.TimeField(required=False)
    # Cancelling goes through DELETE
    status = serializers.ChoiceField(
        choices=[c for c in ExamSchedule.Status.choices if c[0] != ExamSchedule.Status.CANCELLED],
        required=False,
    )


class ExamScheduleSerializer(serializers.ModelSerializer):
    """Staff view of a schedule, credentials included."""
    exam_title = serializers.CharField(source='exam.title', read_only=True)
    student_name = serializers.CharField(source='student.get_full_name', read_only=True)
    registration_number = serializers.CharField(source='student.registration_number', read_only=True)
    result = serializers.SerializerMethodField()

    class Meta:
        model = ExamSchedule
        fields = [
            'id', 'exam', 'exam_title', 'student', 'student_name', 'registration_number',
            'scheduled_date', 'start_time', 'end_time', 'status', 'access_code',
            'exam_username', 'exam_password', 'max_attempts', 'attempt_count',
            'started_at', 'completed_at', 'auto_submitted', 'created_at', 'result'
        ]

    def get_result(self, obj):
        attempt = getattr(obj, 'attempt', None)
        if attempt is None:
            return None
        return {
            'attempt_id': attempt.id,
            'status': attempt.status,
            'score': attempt.score,
            'total_marks': attempt.total_marks,
            'percentage': attempt.percentage,
        }


class StudentScheduleSerializer(serializers.ModelSerializer):
    """What a student sees on their dashboard."""
    exam_id = serializers.IntegerField(source='exam.id', read_only=True)
    exam_title = serializers.CharField(source='exam.title', read_only=True)
    description = serializers.CharField(source='exam.description', read_only=True)
    duration_minutes = serializers.IntegerField(source='exam.duration_minutes', read_only=True)
    tutor_name = serializers.SerializerMethodField()
    attempt_id = serializers.SerializerMethodField()
    result = serializers.SerializerMethodField()

    class Meta:
        model = ExamSchedule
        fields = [
            'id', 'exam_id', 'exam_title', 'description', 'duration_minutes', 'tutor_name',
            'scheduled_date', 'start_time', 'end_time', 'status', 'access_code',
            'attempt_id', 'result'
        ]

    def get_tutor_name(self, obj):
        tutor = obj.exam.tutor
        return tutor.get_full_name() if tutor else None

    def get_attempt_id(self, obj):
        attempt = getattr(obj, 'attempt', None)
        return attempt.id if attempt else None

    def get_result(self, obj):
        attempt = getattr(obj, 'attempt', None)
        if attempt is None or not result_released(attempt):
            return None
        return {
            'score': attempt.score,
            'total_marks': attempt.total_marks,
            'percentage': attempt.percentage,
            'passed': attempt.status == Attempt.Status.COMPLETED,
        }


class AvailableStudentSerializer(serializers.ModelSerializer):
    """Student row offered to staff when picking who to schedule."""
    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'full_name', 'email', 'registration_number', 'category']

# --- Attempt Serializers ---

class StartAttemptSerializer(serializers.Serializer):
    access_code = serializers.CharField()
    timezone = serializers.CharField(required=False, allow_blank=True)


class AttemptStartSerializer(serializers.ModelSerializer):
    """Heavy serializer for taking the exam. Questions come without answer keys."""
    schedule_id = serializers.IntegerField(source='schedule.id', read_only=True)
    exam_title = serializers.CharField(source='exam.title', read_only=True)
    duration_minutes = serializers.IntegerField(source='exam.duration_minutes', read_only=True)
    total_questions = serializers.SerializerMethodField()
    time_remaining_seconds = serializers.SerializerMethodField()
    questions = serializers.SerializerMethodField()

    class Meta:
        model = Attempt
        fields = [
            'id', 'schedule_id', 'exam_id', 'exam_title', 'duration_minutes', 'total_questions',
            'total_marks', 'started_at', 'time_remaining_seconds', 'questions'
        ]

    def get_total_questions(self, obj):
        return len(obj.assigned_questions or [])

    def get_time_remaining_seconds(self, obj):
        if obj.end_time or not obj.started_at:
            return 0
        elapsed = (timezone.now() - obj.started_at).total_seconds()
        total = obj.exam.duration_minutes * 60
        return max(0, int(total - elapsed))

    def get_questions(self, obj):
        return sanitize_questions(obj.assigned_questions)


class SubmitAttemptSerializer(serializers.Serializer):
    answers = serializers.DictField(child=serializers.CharField(allow_blank=True, allow_null=True), allow_empty=True)
    time_spent_minutes = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    auto_submitted = serializers.BooleanField(default=False)


class TheoryGradeSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    marks = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0)
    feedback = serializers.CharField(required=False, allow_blank=True, default='')


class GradeTheorySerializer(serializers.Serializer):
    grades = TheoryGradeSerializer(many=True, allow_empty=False)


class AttemptResultSerializer(serializers.ModelSerializer):
    """Student's own result; the score stays hidden until it is released."""
    schedule_id = serializers.IntegerField(source='schedule.id', read_only=True)
    exam_title = serializers.CharField(source='exam.title', read_only=True)
    scheduled_date = serializers.DateField(source='schedule.scheduled_date', read_only=True)

    class Meta:
        model = Attempt
        fields = [
            'id', 'schedule_id', 'exam_id', 'exam_title', 'scheduled_date', 'status',
            'started_at', 'end_time', 'time_spent_minutes'
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if result_released(instance):
            data['result'] = result_summary(instance)
        return data
