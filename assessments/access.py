"""
Start / resume gate for exam attempts.

The whole check-and-assign sequence runs in one transaction holding the
schedule row lock, and ``Attempt.schedule`` is unique, so two simultaneous
starts for the same schedule always end up sharing a single snapshot.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from exams.bank import active_questions
from exams.sampling import sample_questions
from .exceptions import ExamExpired, InvalidAccessCode, MaxAttemptsReached, ScheduleNotFound, TooEarly
from .models import Attempt, ExamSchedule
from .sweeper import expire_schedule
from .windows import local_now, resolve_zone, window_bounds

logger = logging.getLogger(__name__)

# Keys the exam-taking client is allowed to see
PUBLIC_QUESTION_FIELDS = ('id', 'question_type', 'text', 'marks', 'display_order')


def normalize_options(options):
    """Options as a flat list of strings, whatever shape they were stored in."""
    normalized = []
    for option in options or []:
        if isinstance(option, dict):
            option = option.get('text', option.get('value', ''))
        normalized.append(str(option))
    return normalized


def sanitize_questions(snapshot):
    """Strip answer keys before a paper leaves the server."""
    questions = []
    for question in snapshot or []:
        public = {key: question.get(key) for key in PUBLIC_QUESTION_FIELDS}
        public['options'] = normalize_options(question.get('options'))
        questions.append(public)
    return questions


def snapshot_total(snapshot):
    return sum(Decimal(str(q.get('marks') or 0)) for q in snapshot or [])


def draw_paper(exam, rng=None):
    return sample_questions(
        active_questions(exam),
        exam.total_questions,
        shuffle_questions=exam.shuffle_questions,
        shuffle_options=exam.shuffle_options,
        rng=rng,
    )


def _assign_attempt(schedule, now, rng):
    attempt = Attempt.objects.select_for_update().filter(schedule=schedule).first()

    if attempt is not None:
        # Resume. The snapshot is reused verbatim; only a legacy empty one gets drawn
        if not attempt.assigned_questions:
            attempt.assigned_questions = draw_paper(schedule.exam, rng)
            attempt.total_marks = snapshot_total(attempt.assigned_questions)
            attempt.save(update_fields=['assigned_questions', 'total_marks'])
            logger.info(f"Drew missing paper for attempt {attempt.id}")
        return attempt

    if schedule.attempt_count >= schedule.max_attempts:
        raise MaxAttemptsReached()

    paper = draw_paper(schedule.exam, rng)
    attempt, created = Attempt.objects.get_or_create(
        schedule=schedule,
        defaults={
            'student_id': schedule.student_id,
            'exam_id': schedule.exam_id,
            'status': Attempt.Status.IN_PROGRESS,
            'start_time': now,
            'started_at': now,
            'assigned_questions': paper,
            'total_marks': snapshot_total(paper),
        },
    )
    if created:
        schedule.attempt_count += 1
        logger.info(f"Attempt {attempt.id} created for schedule {schedule.id} with {len(paper)} questions")
    return attempt


def start_or_resume(schedule_id, student, access_code, timezone_name=None, now=None, rng=None):
    """
    Let ``student`` into the exam behind ``schedule_id``.

    Returns the attempt (with its frozen question paper). Raises
    ScheduleNotFound, InvalidAccessCode, TooEarly, ExamExpired or
    MaxAttemptsReached. A late call still persists the expiry before raising.
    """
    now = now or timezone.now()
    zone = resolve_zone(timezone_name or student.timezone_name)
    grace = timedelta(minutes=settings.EXAM_ACCESS_GRACE_MINUTES)

    expired = False
    with transaction.atomic():
        schedule = ExamSchedule.objects.select_for_update().filter(
            pk=schedule_id,
            student=student,
            status__in=ExamSchedule.OPEN_STATUSES,
        ).first()
        if schedule is None:
            raise ScheduleNotFound()

        if (access_code or '').strip().upper() != schedule.access_code.upper():
            raise InvalidAccessCode()

        current = local_now(zone, now)
        start, end = window_bounds(schedule)

        if current < start - grace:
            raise TooEarly(
                f"Exam has not started yet. It starts at {start:%H:%M} on {start:%Y-%m-%d} "
                f"and opens {settings.EXAM_ACCESS_GRACE_MINUTES} minutes before."
            )

        if current > end:
            expire_schedule(schedule, now)
            expired = True
        else:
            attempt = _assign_attempt(schedule, now, rng)
            schedule.status = ExamSchedule.Status.IN_PROGRESS
            if schedule.started_at is None:
                schedule.started_at = now
            schedule.save(update_fields=['status', 'started_at', 'attempt_count', 'updated_at'])

    # Raised outside the block so the expiry is committed
    if expired:
        raise ExamExpired()

    logger.info(f"Student {student.id} entered schedule {schedule.id} (attempt {attempt.id})")
    return attempt
