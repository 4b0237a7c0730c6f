import random
from datetime import time

import pytest
from rest_framework.exceptions import ValidationError

from assessments.access import sanitize_questions, start_or_resume
from assessments.exceptions import (
    ExamExpired,
    InvalidAccessCode,
    MaxAttemptsReached,
    ScheduleNotFound,
    TooEarly,
)
from assessments.models import Attempt, ExamSchedule
from assessments.schedules import cancel_schedule, create_schedule
from exams.models import Question
from tests.helpers import EXAM_DAY, lagos

pytestmark = pytest.mark.django_db


@pytest.fixture
def bank(make_question):
    return [
        make_question(Question.QuestionType.MULTIPLE_CHOICE, marks=2),
        make_question(Question.QuestionType.TRUE_FALSE),
        make_question(Question.QuestionType.FILL_BLANK, marks=3),
    ]


def start(schedule, student, at, code=None, **kwargs):
    return start_or_resume(schedule.pk, student, code or schedule.access_code, now=at, **kwargs)


def test_start_inside_grace_period(schedule, student, bank):
    attempt = start(schedule, student, lagos(8, 56))

    schedule.refresh_from_db()
    assert schedule.status == ExamSchedule.Status.IN_PROGRESS
    assert schedule.started_at == lagos(8, 56)
    assert schedule.attempt_count == 1
    assert attempt.status == Attempt.Status.IN_PROGRESS
    assert [q['id'] for q in attempt.assigned_questions] == [q.id for q in bank]
    assert attempt.total_marks == 6


def test_too_early_mentions_start_time(schedule, student, bank):
    with pytest.raises(TooEarly) as excinfo:
        start(schedule, student, lagos(8, 54))

    assert "09:00" in str(excinfo.value.detail)
    assert "2030-05-14" in str(excinfo.value.detail)
    schedule.refresh_from_db()
    assert schedule.status == ExamSchedule.Status.SCHEDULED
    assert not Attempt.objects.filter(schedule=schedule).exists()


def test_late_start_expires_the_schedule(schedule, student, bank):
    with pytest.raises(ExamExpired):
        start(schedule, student, lagos(10, 1))

    schedule.refresh_from_db()
    assert schedule.status == ExamSchedule.Status.EXPIRED
    attempt = Attempt.objects.get(schedule=schedule)
    assert attempt.status == Attempt.Status.EXPIRED
    assert attempt.score == 0


def test_late_resume_expires_the_running_attempt(schedule, student, bank):
    start(schedule, student, lagos(9, 0))

    with pytest.raises(ExamExpired):
        start(schedule, student, lagos(10, 5))

    attempt = Attempt.objects.get(schedule=schedule)
    assert attempt.status == Attempt.Status.EXPIRED
    assert attempt.assigned_questions


def test_access_code_is_case_insensitive(schedule, student, bank):
    attempt = start(schedule, student, lagos(9, 10), code=f"  {schedule.access_code.lower()} ")
    assert attempt.pk


def test_wrong_access_code(schedule, student, bank):
    with pytest.raises(InvalidAccessCode):
        start(schedule, student, lagos(9, 10), code="ZZZZZZZZ")


def test_someone_elses_schedule_is_not_found(schedule, other_student, bank):
    with pytest.raises(ScheduleNotFound):
        start(schedule, other_student, lagos(9, 10))


def test_cancelled_schedule_is_not_found(schedule, student, bank):
    cancel_schedule(schedule)
    with pytest.raises(ScheduleNotFound):
        start(schedule, student, lagos(9, 10))


def test_resume_returns_the_same_paper(schedule, student, bank):
    schedule.exam.shuffle_questions = True
    schedule.exam.shuffle_options = True
    schedule.exam.save()

    first = start(schedule, student, lagos(9, 0), rng=random.Random(1))
    second = start(schedule, student, lagos(9, 20), rng=random.Random(99))

    assert first.pk == second.pk
    assert first.assigned_questions == second.assigned_questions
    schedule.refresh_from_db()
    assert schedule.attempt_count == 1
    assert schedule.started_at == lagos(9, 0)


def test_snapshot_survives_bank_edits(schedule, student, bank):
    attempt = start(schedule, student, lagos(9, 0))

    bank[0].text = "Rewritten"
    bank[0].correct_answer = "Lagos"
    bank[0].save()
    bank[1].is_deleted = True
    bank[1].save()

    resumed = start(schedule, student, lagos(9, 30))
    assert resumed.assigned_questions == attempt.assigned_questions
    assert resumed.assigned_questions[0]['correct_answer'] == "Paris"
    assert len(resumed.assigned_questions) == 3


def test_empty_snapshot_is_drawn_on_resume(schedule, student, bank):
    attempt = start(schedule, student, lagos(9, 0))
    Attempt.objects.filter(pk=attempt.pk).update(assigned_questions=[], total_marks=0)

    resumed = start(schedule, student, lagos(9, 5))

    assert len(resumed.assigned_questions) == 3
    assert resumed.total_marks == 6


def test_sampling_respects_question_limit(schedule, student, make_question):
    for _ in range(4):
        make_question(Question.QuestionType.FILL_BLANK)
        make_question(Question.QuestionType.MULTIPLE_CHOICE)
        make_question(Question.QuestionType.TRUE_FALSE)
    schedule.exam.total_questions = 6
    schedule.exam.save()

    attempt = start(schedule, student, lagos(9, 0))

    kinds = [q['question_type'] for q in attempt.assigned_questions]
    assert len(kinds) == 6
    assert kinds.count('fill_blank') == kinds.count('multiple_choice') == kinds.count('true_false') == 2


def test_explicit_timezone_overrides_the_students(exam, student, bank):
    schedule = create_schedule(exam, student, EXAM_DAY, time(9, 0), time(10, 0))

    # 09:30 in Lagos is 17:30 in Tokyo
    with pytest.raises(ExamExpired):
        start(schedule, student, lagos(9, 30), timezone_name="Asia/Tokyo")


def test_unknown_timezone_is_rejected(schedule, student, bank):
    with pytest.raises(ValidationError):
        start(schedule, student, lagos(9, 30), timezone_name="Mars/Olympus")


def test_max_attempts_guard(schedule, student, bank):
    ExamSchedule.objects.filter(pk=schedule.pk).update(attempt_count=1)
    with pytest.raises(MaxAttemptsReached):
        start(schedule, student, lagos(9, 0))


def test_sanitized_questions_hide_answers(schedule, student, bank):
    attempt = start(schedule, student, lagos(9, 0))

    public = sanitize_questions(attempt.assigned_questions)

    assert all('correct_answer' not in q for q in public)
    assert public[0]['options'] == ["Paris", "Lagos", "Accra", "Nairobi"]
    assert public[2]['options'] == []
