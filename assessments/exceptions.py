"""User-facing errors of the exam attempt engine."""
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound


class ScheduleNotFound(NotFound):
    default_detail = "Exam not found or not scheduled"
    default_code = "not_found"


class AttemptNotFound(NotFound):
    default_detail = "Exam attempt not found"
    default_code = "not_found"


class ScheduleConflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Student is already scheduled for this exam"
    default_code = "conflict"


class InvalidAccessCode(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid access code"
    default_code = "invalid_access_code"


class TooEarly(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Exam has not started yet"
    default_code = "too_early"


class ExamExpired(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Exam time has expired. Please contact your tutor."
    default_code = "expired"


class MaxAttemptsReached(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Maximum number of attempts reached"
    default_code = "max_attempts_reached"


class AlreadyCompleted(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Exam already submitted"
    default_code = "already_completed"
