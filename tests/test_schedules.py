from datetime import date, time

import pytest
from rest_framework.exceptions import ValidationError

from assessments.access import start_or_resume
from assessments.exceptions import AlreadyCompleted, ScheduleConflict, ScheduleNotFound
from assessments.models import Attempt, ExamSchedule
from assessments.schedules import (
    CODE_ALPHABET,
    cancel_schedule,
    create_schedule,
    list_schedules,
    reschedule,
    schedule_students,
)
from assessments.scoring import submit_attempt
from exams.models import Question
from tests.helpers import EXAM_DAY, lagos

pytestmark = pytest.mark.django_db


def test_create_schedule_issues_credentials(schedule, exam):
    assert schedule.status == ExamSchedule.Status.SCHEDULED
    assert len(schedule.access_code) == 6
    assert set(schedule.access_code) <= set(CODE_ALPHABET)
    assert schedule.exam_username.startswith(f"EX{exam.id}-")
    assert len(schedule.exam_password) == 8
    assert schedule.attempt_count == 0


def test_second_active_schedule_conflicts(schedule, exam, student):
    with pytest.raises(ScheduleConflict):
        create_schedule(exam, student, EXAM_DAY, time(11, 0), time(12, 0))


def test_cancelled_schedule_frees_the_slot(schedule, exam, student):
    cancel_schedule(schedule)
    again = create_schedule(exam, student, EXAM_DAY, time(11, 0), time(12, 0))
    assert again.pk != schedule.pk


def test_window_must_be_positive(exam, student):
    with pytest.raises(ValidationError):
        create_schedule(exam, student, EXAM_DAY, time(10, 0), time(10, 0))


def test_bulk_scheduling_reports_duplicates(schedule, exam, student, other_student):
    scheduled, failed = schedule_students(exam, [student, other_student], EXAM_DAY, time(9, 0), time(10, 0))
    assert [s.student_id for s in scheduled] == [other_student.id]
    assert failed == [{"student_id": student.id, "reason": "Already scheduled"}]


def test_cancel_is_idempotent(schedule):
    cancel_schedule(schedule)
    cancelled = cancel_schedule(schedule)
    assert cancelled.status == ExamSchedule.Status.CANCELLED


def test_cancel_completed_schedule_is_refused(schedule):
    ExamSchedule.objects.filter(pk=schedule.pk).update(status=ExamSchedule.Status.COMPLETED)
    with pytest.raises(AlreadyCompleted):
        cancel_schedule(schedule)


def test_reschedule_moves_window(schedule):
    updated = reschedule(schedule, scheduled_date=date(2030, 5, 15), start_time=time(13, 0), end_time=time(14, 0))
    assert updated.scheduled_date == date(2030, 5, 15)
    assert updated.start_time == time(13, 0)
    assert updated.status == ExamSchedule.Status.SCHEDULED


def test_reschedule_rejects_inverted_window(schedule):
    with pytest.raises(ValidationError):
        reschedule(schedule, end_time=time(8, 0))


def test_reschedule_cancelled_is_not_found(schedule):
    cancel_schedule(schedule)
    with pytest.raises(ScheduleNotFound):
        reschedule(schedule, start_time=time(9, 30))


def test_reschedule_expired_reopens_for_retake(schedule):
    list_schedules(now=lagos(11, 0))
    schedule.refresh_from_db()
    assert schedule.status == ExamSchedule.Status.EXPIRED
    assert Attempt.objects.filter(schedule=schedule).exists()

    reopened = reschedule(schedule, scheduled_date=date(2030, 5, 20))

    assert reopened.status == ExamSchedule.Status.SCHEDULED
    assert reopened.attempt_count == 0
    assert reopened.started_at is None and reopened.completed_at is None
    assert not Attempt.objects.filter(schedule=schedule).exists()


def test_list_schedules_hides_cancelled_and_filters(schedule, exam, other_student):
    other = create_schedule(exam, other_student, EXAM_DAY, time(9, 0), time(10, 0))
    cancel_schedule(other)

    listed = list(list_schedules(exam_id=exam.id, now=lagos(8, 0)))

    assert [s.pk for s in listed] == [schedule.pk]
    assert list(list_schedules(student_id=other_student.id, now=lagos(8, 0))) == []


def test_list_schedules_sweeps_overdue_rows(schedule):
    listed = list(list_schedules(now=lagos(10, 30)))
    assert listed[0].status == ExamSchedule.Status.EXPIRED


def test_status_change_to_scheduled_clears_stamps(schedule, student, make_question):
    make_question()
    start_or_resume(schedule.pk, student, schedule.access_code, now=lagos(9, 0))
    ExamSchedule.objects.filter(pk=schedule.pk).update(auto_submitted=True)

    reset = reschedule(schedule, status=ExamSchedule.Status.SCHEDULED)

    assert reset.status == ExamSchedule.Status.SCHEDULED
    assert reset.started_at is None
    assert reset.completed_at is None
    assert reset.auto_submitted is False
    assert reset.start_time == time(9, 0)


def test_completed_schedule_reopens_for_a_fresh_attempt(schedule, student, make_question):
    question = make_question(Question.QuestionType.MULTIPLE_CHOICE)
    first = start_or_resume(schedule.pk, student, schedule.access_code, now=lagos(9, 0))
    submit_attempt(schedule.pk, student, {question.id: "Paris"}, now=lagos(9, 30))

    retake_day = date(2030, 5, 20)
    reopened = reschedule(schedule, scheduled_date=retake_day)

    assert reopened.status == ExamSchedule.Status.SCHEDULED
    assert reopened.completed_at is None
    assert reopened.attempt_count == 0
    assert not Attempt.objects.filter(pk=first.pk).exists()

    second = start_or_resume(schedule.pk, student, schedule.access_code, now=lagos(9, 0, day=retake_day))

    assert second.pk != first.pk
    assert second.status == Attempt.Status.IN_PROGRESS
    assert second.answers == []
    reopened.refresh_from_db()
    assert reopened.status == ExamSchedule.Status.IN_PROGRESS
    assert reopened.attempt_count == 1


def test_reopening_a_completed_schedule_by_status_alone_also_wipes_the_attempt(schedule, student, make_question):
    make_question()
    start_or_resume(schedule.pk, student, schedule.access_code, now=lagos(9, 0))
    submit_attempt(schedule.pk, student, {}, now=lagos(9, 30))

    reopened = reschedule(schedule, status=ExamSchedule.Status.SCHEDULED)

    assert reopened.scheduled_date == EXAM_DAY
    assert reopened.attempt_count == 0
    assert not Attempt.objects.filter(schedule=schedule).exists()
