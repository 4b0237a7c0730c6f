from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from assessments.access import start_or_resume
from assessments.exceptions import AlreadyCompleted, AttemptNotFound, ExamExpired, ScheduleNotFound
from assessments.models import Attempt, ExamSchedule
from assessments.scoring import compute_percentage, grade_answer, grade_theory, submit_attempt
from assessments.sweeper import sweep_expired
from exams.models import Question
from tests.helpers import lagos

pytestmark = pytest.mark.django_db

QT = Question.QuestionType


@pytest.fixture
def mixed_bank(make_question):
    return {
        'mc': make_question(QT.MULTIPLE_CHOICE, marks=2),
        'tf': make_question(QT.TRUE_FALSE, marks=1),
        'blank': make_question(QT.FILL_BLANK, correct_answer="Paris", marks=2),
    }


def begin(schedule, student):
    return start_or_resume(schedule.pk, student, schedule.access_code, now=lagos(9, 0))


def submit(schedule, student, answers, **kwargs):
    return submit_attempt(schedule.pk, student, answers, now=lagos(9, 40), **kwargs)


def test_all_correct_scores_full_marks(schedule, student, mixed_bank):
    begin(schedule, student)

    payload = submit(schedule, student, {
        mixed_bank['mc'].id: "Paris",
        mixed_bank['tf'].id: "true",
        mixed_bank['blank'].id: "  paris ",
    }, time_spent_minutes=30)

    result = payload['result']
    assert payload['status'] == 'submitted'
    assert result['score'] == Decimal('5')
    assert result['percentage'] == Decimal('100.00')
    assert result['passed'] is True
    assert result['correct_answers'] == 3
    assert result['time_spent_minutes'] == 30

    schedule.refresh_from_db()
    assert schedule.status == ExamSchedule.Status.COMPLETED
    assert schedule.completed_at == lagos(9, 40)


def test_choice_answers_are_not_trimmed():
    question = {'id': 1, 'question_type': QT.MULTIPLE_CHOICE, 'correct_answer': "Paris", 'marks': 1}
    assert grade_answer(question, "paris")['is_correct'] is True
    assert grade_answer(question, "Paris ")['is_correct'] is False
    assert grade_answer(question, None)['marks_obtained'] == 0


def test_fill_blank_ignores_case_and_padding():
    question = {'id': 1, 'question_type': QT.FILL_BLANK, 'correct_answer': "Paris", 'marks': 2}
    assert grade_answer(question, "Paris ")['marks_obtained'] == 2
    assert grade_answer(question, "   ")['is_correct'] is False


def test_theory_never_scores_automatically():
    question = {'id': 1, 'question_type': QT.THEORY, 'correct_answer': "", 'marks': 5}
    record = grade_answer(question, "A long essay")
    assert record['is_correct'] is False
    assert record['marks_obtained'] == 0


def test_percentage_has_two_places():
    assert compute_percentage(Decimal('1'), Decimal('3')) == Decimal('33.33')
    assert compute_percentage(0, 0) == Decimal('0.00')


def test_below_pass_mark_fails(schedule, student, mixed_bank):
    begin(schedule, student)

    payload = submit(schedule, student, {mixed_bank['tf'].id: "True"})

    assert payload['result']['percentage'] == Decimal('20.00')
    assert payload['result']['passed'] is False
    assert Attempt.objects.get(schedule=schedule).status == Attempt.Status.FAILED


def test_grading_uses_the_snapshot_not_the_live_bank(schedule, student, mixed_bank):
    begin(schedule, student)
    mc = mixed_bank['mc']
    mc.correct_answer = "Lagos"
    mc.marks = 10
    mc.save()

    payload = submit(schedule, student, {mc.id: "Paris"})

    assert payload['result']['score'] == Decimal('2')
    assert payload['result']['total_marks'] == Decimal('5')


def test_hidden_result_is_left_out(schedule, student, mixed_bank):
    schedule.exam.show_result_immediately = False
    schedule.exam.save()
    begin(schedule, student)

    payload = submit(schedule, student, {}, auto_submitted=True)

    assert 'result' not in payload
    assert payload['auto_submitted'] is True
    schedule.refresh_from_db()
    assert schedule.auto_submitted is True


def test_double_submit_is_refused(schedule, student, mixed_bank):
    begin(schedule, student)
    submit(schedule, student, {})
    with pytest.raises(AlreadyCompleted):
        submit(schedule, student, {})


def test_submit_before_start_is_refused(schedule, student, mixed_bank):
    with pytest.raises(ScheduleNotFound):
        submit(schedule, student, {})


def test_submit_after_expiry_is_refused(schedule, student, mixed_bank):
    sweep_expired(now=lagos(11, 0))
    with pytest.raises(ExamExpired):
        submit(schedule, student, {})


def test_empty_paper_falls_back_to_bank(schedule, student, mixed_bank):
    attempt = begin(schedule, student)
    Attempt.objects.filter(pk=attempt.pk).update(assigned_questions=[])

    payload = submit(schedule, student, {mixed_bank['mc'].id: "Paris"})

    assert payload['result']['total_questions'] == 3
    attempt.refresh_from_db()
    assert len(attempt.assigned_questions) == 3


@pytest.fixture
def theory_attempt(schedule, student, make_question):
    mc = make_question(QT.MULTIPLE_CHOICE, marks=2)
    essay = make_question(QT.THEORY, marks=8)
    begin(schedule, student)
    submit(schedule, student, {mc.id: "Paris", essay.id: "Rivers shape valleys"})
    return Attempt.objects.get(schedule=schedule), mc, essay


def test_theory_grading_recomputes_outcome(theory_attempt, tutor):
    attempt, _, essay = theory_attempt
    assert attempt.status == Attempt.Status.FAILED
    assert attempt.has_ungraded_theory

    result = grade_theory(attempt.pk, tutor, [{'question_id': essay.id, 'marks': 6, 'feedback': "Good"}])

    assert result['score'] == Decimal('8')
    assert result['percentage'] == Decimal('80.00')
    assert result['passed'] is True
    assert result['pending_theory'] is False
    record = next(a for a in result['answers'] if a['question_id'] == essay.id)
    assert record['marks_obtained'] == 6
    assert record['feedback'] == "Good"
    assert record['graded_by'] == tutor.id


def test_theory_marks_are_bounded(theory_attempt, tutor):
    attempt, _, essay = theory_attempt
    with pytest.raises(ValidationError):
        grade_theory(attempt.pk, tutor, [{'question_id': essay.id, 'marks': 9}])


def test_auto_graded_questions_cannot_be_regraded(theory_attempt, tutor):
    attempt, mc, _ = theory_attempt
    with pytest.raises(ValidationError):
        grade_theory(attempt.pk, tutor, [{'question_id': mc.id, 'marks': 0}])


def test_grading_is_scoped_to_the_graders_school(theory_attempt, other_school):
    attempt, _, essay = theory_attempt
    outsider = type(attempt.student).objects.create_user(
        username="outsider", password="secret123", role="tutor", school=other_school,
    )
    with pytest.raises(AttemptNotFound):
        grade_theory(attempt.pk, outsider, [{'question_id': essay.id, 'marks': 1}])


def test_failed_save_rolls_back_the_whole_submission(schedule, student, mixed_bank, monkeypatch):
    begin(schedule, student)

    def broken_save(self, *args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(ExamSchedule, "save", broken_save)

    with pytest.raises(RuntimeError):
        submit(schedule, student, {mixed_bank['mc'].id: "Paris"})

    monkeypatch.undo()
    attempt = Attempt.objects.get(schedule=schedule)
    schedule.refresh_from_db()
    assert attempt.status == Attempt.Status.IN_PROGRESS
    assert attempt.answers == []
    assert attempt.end_time is None
    assert schedule.status == ExamSchedule.Status.IN_PROGRESS
