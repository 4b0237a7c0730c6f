"""
Lazy expiry of schedules whose window has closed.

There is no timer: the sweep runs at the top of every schedule listing (and
from the ``expire_schedules`` management command if a deployment wants a
periodic pass). Every expired schedule ends up with exactly one terminal
attempt, so "never showed up" is a queryable outcome.
"""
import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from .models import Attempt, ExamSchedule
from .windows import local_now, window_bounds, zone_or_default

logger = logging.getLogger(__name__)


def expire_schedule(schedule, now=None):
    """Flip one schedule to expired. The caller must hold its row lock."""
    now = now or timezone.now()
    schedule.status = ExamSchedule.Status.EXPIRED
    schedule.save(update_fields=['status', 'updated_at'])

    attempt = Attempt.objects.filter(schedule=schedule).first()
    if attempt is None:
        Attempt.objects.create(
            student_id=schedule.student_id,
            exam_id=schedule.exam_id,
            schedule=schedule,
            status=Attempt.Status.EXPIRED,
            score=0,
            total_marks=schedule.exam.total_marks,
            percentage=0,
            answers=[],
            end_time=now,
        )
    elif attempt.status == Attempt.Status.IN_PROGRESS:
        # Started but never submitted
        attempt.status = Attempt.Status.EXPIRED
        attempt.end_time = now
        attempt.save(update_fields=['status', 'end_time'])

    logger.info(f"Schedule {schedule.id} expired (exam {schedule.exam_id}, student {schedule.student_id})")


def sweep_expired(exam_id=None, student_id=None, now=None):
    """Expire every overdue ``scheduled`` row. Returns how many were flipped."""
    now = now or timezone.now()

    # No zone is more than a day away from UTC, so later dates cannot be overdue
    candidates = ExamSchedule.objects.filter(
        status=ExamSchedule.Status.SCHEDULED,
        scheduled_date__lte=(now + timedelta(days=1)).date(),
    ).select_related('student__school')
    if exam_id is not None:
        candidates = candidates.filter(exam_id=exam_id)
    if student_id is not None:
        candidates = candidates.filter(student_id=student_id)

    expired = 0
    for schedule in candidates:
        _, end = window_bounds(schedule)
        if local_now(zone_or_default(schedule.student.timezone_name), now) <= end:
            continue

        with transaction.atomic():
            locked = ExamSchedule.objects.select_for_update().get(pk=schedule.pk)
            # Someone else got here first
            if locked.status != ExamSchedule.Status.SCHEDULED:
                continue
            expire_schedule(locked, now)
        expired += 1

    return expired
