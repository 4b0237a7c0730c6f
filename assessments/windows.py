"""Wall-clock helpers for schedule windows.

A schedule stores a date and two times with no zone attached. They are read
as local time for the student, so "now" is converted to the student's zone and
compared as naive values.
"""
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings
from django.utils import timezone
from rest_framework.exceptions import ValidationError


def resolve_zone(name):
    name = name or settings.EXAM_DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError({"timezone": f"Unknown timezone '{name}'"})


def zone_or_default(name):
    """Like resolve_zone, but a bad stored value falls back to the platform zone."""
    try:
        return resolve_zone(name)
    except ValidationError:
        return ZoneInfo(settings.EXAM_DEFAULT_TIMEZONE)


def local_now(zone, now=None):
    now = now or timezone.now()
    return now.astimezone(zone).replace(tzinfo=None)


def window_bounds(schedule):
    start = datetime.combine(schedule.scheduled_date, schedule.start_time)
    end = datetime.combine(schedule.scheduled_date, schedule.end_time)
    return start, end


def validate_window(start_time, end_time):
    if start_time >= end_time:
        raise ValidationError({"end_time": "End time must be after start time"})
