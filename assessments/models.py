# assessments/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q
from exams.models import Exam


class ExamSchedule(models.Model):
    """One student's eligibility window for one exam."""

    class Status(models.TextChoices):
        SCHEDULED = "scheduled", "Scheduled"
        IN_PROGRESS = "in_progress", "In Progress"
        COMPLETED = "completed", "Completed"
        EXPIRED = "expired", "Expired"
        CANCELLED = "cancelled", "Cancelled"

    ACTIVE_STATUSES = (Status.SCHEDULED, Status.IN_PROGRESS, Status.COMPLETED)
    OPEN_STATUSES = (Status.SCHEDULED, Status.IN_PROGRESS)

    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name='schedules')
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='exam_schedules')

    # Wall-clock values with no zone; read in the student's own timezone
    scheduled_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()

    access_code = models.CharField(max_length=20)
    exam_username = models.CharField(max_length=50, unique=True)
    exam_password = models.CharField(max_length=50)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SCHEDULED)
    max_attempts = models.PositiveIntegerField(default=1)
    attempt_count = models.PositiveIntegerField(default=0)

    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    auto_submitted = models.BooleanField(default=False)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-scheduled_date', 'start_time']
        constraints = [
            models.UniqueConstraint(
                fields=['exam', 'student'],
                condition=Q(status__in=['scheduled', 'in_progress', 'completed']),
                name='unique_active_schedule_per_student',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'scheduled_date'], name='schedule_status_date_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.exam.title} ({self.scheduled_date})"


class Attempt(models.Model):
    """A student's actual run through an exam, frozen question paper included."""

    class Status(models.TextChoices):
        IN_PROGRESS = "in_progress", "In Progress"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"
        EXPIRED = "expired", "Expired"

    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='attempts')
    exam = models.ForeignKey(Exam, on_delete=models.CASCADE, related_name='attempts')
    # Unique: at most one attempt per schedule, also the guard for concurrent starts
    schedule = models.OneToOneField(ExamSchedule, on_delete=models.CASCADE, related_name='attempt')

    start_time = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    end_time = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.IN_PROGRESS)

    # Written once at first access, never re-sampled
    assigned_questions = models.JSONField(default=list, blank=True)
    answers = models.JSONField(default=list, blank=True)

    score = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    total_marks = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    time_spent_minutes = models.PositiveIntegerField(null=True, blank=True)
    auto_submitted = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.student} - {self.exam.title} [{self.status}]"

    @property
    def is_submitted(self):
        return self.status in (self.Status.COMPLETED, self.Status.FAILED)

    @property
    def has_ungraded_theory(self):
        return any(
            a.get('question_type') == 'theory' and not a.get('graded_at')
            for a in self.answers or []
        )
