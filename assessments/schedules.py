"""
Schedule lifecycle.

    scheduled -> in_progress -> completed | expired
    scheduled | in_progress -> cancelled
    expired | completed -> scheduled   (reschedule, wipes the attempt for a retake)
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils.crypto import get_random_string

from .exceptions import AlreadyCompleted, ScheduleConflict, ScheduleNotFound
from .models import Attempt, ExamSchedule
from .sweeper import sweep_expired
from .windows import validate_window

logger = logging.getLogger(__name__)

# No 0/O or 1/I, codes get read aloud and copied by hand
CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'

Status = ExamSchedule.Status
User = get_user_model()


def generate_access_code():
    return get_random_string(settings.EXAM_ACCESS_CODE_LENGTH, CODE_ALPHABET)


def generate_credentials(exam):
    """Fresh per-slot login; usernames are unique across every schedule."""
    while True:
        username = f"EX{exam.id}-{get_random_string(6, CODE_ALPHABET)}"
        if not ExamSchedule.objects.filter(exam_username=username).exists():
            break
    return username, get_random_string(8)


def _has_active_schedule(exam_id, student_id, exclude_pk=None):
    qs = ExamSchedule.objects.filter(exam_id=exam_id, student_id=student_id, status__in=ExamSchedule.ACTIVE_STATUSES)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


def create_schedule(exam, student, scheduled_date, start_time, end_time, created_by=None, max_attempts=1):
    validate_window(start_time, end_time)
    if _has_active_schedule(exam.id, student.id):
        raise ScheduleConflict()

    username, password = generate_credentials(exam)
    try:
        with transaction.atomic():
            schedule = ExamSchedule.objects.create(
                exam=exam,
                student=student,
                scheduled_date=scheduled_date,
                start_time=start_time,
                end_time=end_time,
                access_code=generate_access_code(),
                exam_username=username,
                exam_password=password,
                max_attempts=max_attempts,
                created_by=created_by,
            )
    except IntegrityError:
        # Lost a race against another create for the same pair
        raise ScheduleConflict()

    logger.info(f"Scheduled student {student.id} for exam {exam.id} on {scheduled_date} {start_time}-{end_time}")
    return schedule


def schedule_students(exam, students, scheduled_date, start_time, end_time, created_by=None, max_attempts=1):
    """Schedule many students at once; duplicates are reported, not raised."""
    scheduled, failed = [], []
    for student in students:
        try:
            scheduled.append(create_schedule(
                exam, student, scheduled_date, start_time, end_time,
                created_by=created_by, max_attempts=max_attempts,
            ))
        except ScheduleConflict:
            failed.append({"student_id": student.id, "reason": "Already scheduled"})
    return scheduled, failed


def cancel_schedule(schedule):
    with transaction.atomic():
        schedule = ExamSchedule.objects.select_for_update().get(pk=schedule.pk)
        if schedule.status == Status.CANCELLED:
            return schedule
        if schedule.status == Status.COMPLETED:
            raise AlreadyCompleted("Completed exams cannot be cancelled")
        if schedule.status == Status.EXPIRED:
            raise ScheduleConflict("Expired schedules cannot be cancelled, reschedule them instead")

        schedule.status = Status.CANCELLED
        schedule.save(update_fields=['status', 'updated_at'])

    logger.info(f"Schedule {schedule.id} cancelled")
    return schedule


def reschedule(schedule, scheduled_date=None, start_time=None, end_time=None, status=None):
    """
    Move a schedule's window and/or status.

    A finished (expired or completed) schedule that gets a new date or time
    goes back to ``scheduled``. Whenever a schedule lands on ``scheduled`` its
    start/completion stamps are cleared, and coming from a finished state the
    old attempt is deleted so the student can sit the exam again.
    """
    with transaction.atomic():
        schedule = ExamSchedule.objects.select_for_update().get(pk=schedule.pk)
        if schedule.status == Status.CANCELLED:
            raise ScheduleNotFound("Schedule not found")

        previous = schedule.status
        finished = previous in (Status.EXPIRED, Status.COMPLETED)
        new_window = any(v is not None for v in (scheduled_date, start_time, end_time))

        if scheduled_date is not None:
            schedule.scheduled_date = scheduled_date
        if start_time is not None:
            schedule.start_time = start_time
        if end_time is not None:
            schedule.end_time = end_time
        validate_window(schedule.start_time, schedule.end_time)

        if finished and new_window:
            status = Status.SCHEDULED
        if status is not None:
            schedule.status = status

        retake = False
        if schedule.status == Status.SCHEDULED:
            schedule.started_at = None
            schedule.completed_at = None
            schedule.auto_submitted = False
            if finished:
                if _has_active_schedule(schedule.exam_id, schedule.student_id, exclude_pk=schedule.pk):
                    raise ScheduleConflict()
                Attempt.objects.filter(schedule=schedule).delete()
                schedule.attempt_count = 0
                retake = True

        schedule.save()

    if retake:
        logger.info(f"Schedule {schedule.id} reopened from {previous} for a retake")
    else:
        logger.info(f"Schedule {schedule.id} updated ({previous} -> {schedule.status})")
    return schedule


def list_schedules(exam_id=None, student_id=None, now=None):
    """Live (non-cancelled) schedules, after bringing expiry up to date."""
    sweep_expired(exam_id=exam_id, student_id=student_id, now=now)

    queryset = ExamSchedule.objects.exclude(status=Status.CANCELLED).select_related('exam', 'student', 'attempt')
    if exam_id is not None:
        queryset = queryset.filter(exam_id=exam_id)
    if student_id is not None:
        queryset = queryset.filter(student_id=student_id)
    return queryset.order_by('-scheduled_date', 'start_time')


def available_students(exam, category=None):
    """Active students of the exam's school with no live schedule for it."""
    busy = ExamSchedule.objects.filter(exam=exam, status__in=ExamSchedule.ACTIVE_STATUSES).values('student_id')
    students = User.objects.filter(
        school_id=exam.school_id, role=User.Role.STUDENT, is_active=True,
    ).exclude(id__in=busy)
    if category:
        students = students.filter(category=category)
    return students.order_by('last_name', 'first_name', 'id')
