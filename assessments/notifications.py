import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

CREDENTIALS_BODY = """Dear {name},

You have been scheduled for the exam "{title}".

Date: {date}
Time: {start} - {end}
Username: {username}
Password: {password}
Access code: {access_code}

Please keep these details private. The exam opens {grace} minutes before the start time.
"""


def send_exam_credentials(schedule):
    """
    Email a student the login details for one schedule.

    Fire-and-forget: a delivery problem is logged and reported as ``False``,
    it never fails the caller.
    """
    student = schedule.student
    if not student.email:
        logger.warning(f"Student {student.id} has no email, credentials for schedule {schedule.id} not sent")
        return False

    body = CREDENTIALS_BODY.format(
        name=student.get_full_name() or student.username,
        title=schedule.exam.title,
        date=schedule.scheduled_date.isoformat(),
        start=schedule.start_time.strftime('%H:%M'),
        end=schedule.end_time.strftime('%H:%M'),
        username=schedule.exam_username,
        password=schedule.exam_password,
        access_code=schedule.access_code,
        grace=settings.EXAM_ACCESS_GRACE_MINUTES,
    )
    try:
        send_mail(
            f"Exam Credentials: {schedule.exam.title}",
            body,
            settings.DEFAULT_FROM_EMAIL,
            [student.email],
        )
    except Exception as e:
        logger.error(f"Failed to send credentials for schedule {schedule.id}: {str(e)}")
        return False

    logger.info(f"Credentials for schedule {schedule.id} sent to {student.email}")
    return True
