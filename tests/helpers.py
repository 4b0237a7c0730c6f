from datetime import date, datetime, time
from zoneinfo import ZoneInfo

LAGOS = ZoneInfo("Africa/Lagos")
EXAM_DAY = date(2030, 5, 14)


def lagos(hour, minute=0, day=EXAM_DAY):
    """Aware instant for a Lagos wall-clock time on the exam day."""
    return datetime.combine(day, time(hour, minute), tzinfo=LAGOS)
