# cbt_platform/exams/models.py
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Sum


class Exam(models.Model):
    school = models.ForeignKey('users.School', on_delete=models.CASCADE, related_name='exams')
    tutor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='exams')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True)

    duration_minutes = models.PositiveIntegerField(default=60)
    # 0 means "every active question"
    total_questions = models.PositiveIntegerField(default=0)
    pass_mark_percentage = models.PositiveIntegerField(default=50, validators=[MaxValueValidator(100)])

    shuffle_questions = models.BooleanField(default=True)
    shuffle_options = models.BooleanField(default=True)
    show_result_immediately = models.BooleanField(default=True)

    is_published = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.title

    @property
    def total_marks(self):
        """Marks across the live bank. Attempts carry their own total."""
        return self.questions.active().aggregate(total=Sum('marks'))['total'] or 0


class QuestionQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_deleted=False)


class Question(models.Model):
    class QuestionType(models.TextChoices):
        MULTIPLE_CHOICE = "multiple_choice", "Multiple Choice"
        TRUE_FALSE = "true_false", "True / False"
        FILL_BLANK = "fill_blank", "Fill in the Blank"
        THEORY = "theory", "Theory"

    exam = models.ForeignKey(Exam, related_name='questions', on_delete=models.CASCADE)
    text = models.TextField()
    question_type = models.CharField(max_length=20, choices=QuestionType.choices, default=QuestionType.MULTIPLE_CHOICE)

    # Plain strings; empty for fill_blank and theory
    options = models.JSONField(default=list, blank=True)
    # Matched by value, never by position, so options may be shuffled freely
    correct_answer = models.TextField(blank=True)
    marks = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    display_order = models.IntegerField(default=0)

    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = QuestionQuerySet.as_manager()

    class Meta:
        ordering = ['display_order', 'created_at']
        indexes = [
            models.Index(fields=['exam', 'is_deleted'], name='question_exam_active_idx'),
        ]

    def __str__(self):
        return f"{self.text[:50]}..."

    def to_snapshot(self):
        """Full, self-contained copy of the question as it is right now."""
        return {
            'id': self.id,
            'exam_id': self.exam_id,
            'text': self.text,
            'question_type': self.question_type,
            'options': list(self.options or []),
            'correct_answer': self.correct_answer,
            'marks': self.marks,
            'display_order': self.display_order,
            'created_at': self.created_at.isoformat() if self.created_at else '',
        }
