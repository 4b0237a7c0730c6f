"""
Submission and grading.

Answers are always graded against the attempt's own snapshot, never the live
bank, and the percentage is taken over the snapshot's marks. Theory answers
score nothing here and wait for ``grade_theory``.
"""
import copy
import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from exams.bank import active_questions
from exams.models import Question
from .access import snapshot_total
from .exceptions import AlreadyCompleted, AttemptNotFound, ExamExpired, ScheduleNotFound
from .models import Attempt, ExamSchedule

logger = logging.getLogger(__name__)

QuestionType = Question.QuestionType
TWO_PLACES = Decimal('0.01')


def _as_number(value):
    value = Decimal(str(value))
    return int(value) if value == value.to_integral_value() else float(value)


def grade_answer(question, raw_answer):
    """Per-question breakdown for one snapshot question."""
    q_type = question.get('question_type')
    answer = '' if raw_answer is None else str(raw_answer)
    correct = str(question.get('correct_answer') or '')
    max_marks = question.get('marks') or 0

    if q_type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
        is_correct = bool(answer) and answer.lower() == correct.lower()
    elif q_type == QuestionType.FILL_BLANK:
        is_correct = bool(answer.strip()) and answer.strip().lower() == correct.strip().lower()
    else:
        # Theory: marked by a human later
        is_correct = False

    return {
        'question_id': question.get('id'),
        'question_type': q_type,
        'student_answer': answer,
        'correct_answer': correct,
        'is_correct': is_correct,
        'marks_obtained': max_marks if is_correct else 0,
        'max_marks': max_marks,
    }


def compute_percentage(score, total):
    if not total:
        return Decimal('0.00')
    return (Decimal(score) * 100 / Decimal(total)).quantize(TWO_PLACES)


def _outcome(attempt, records):
    score = sum(Decimal(str(r.get('marks_obtained') or 0)) for r in records)
    percentage = compute_percentage(score, attempt.total_marks)
    passed = percentage >= attempt.exam.pass_mark_percentage
    return score, percentage, passed


def result_released(attempt):
    """Students see their score once the exam allows it and every theory answer is marked."""
    return (
        attempt.exam.show_result_immediately
        and attempt.is_submitted
        and not attempt.has_ungraded_theory
    )


def result_summary(attempt):
    answers = attempt.answers or []
    return {
        'attempt_id': attempt.id,
        'score': attempt.score,
        'total_marks': attempt.total_marks,
        'percentage': attempt.percentage,
        'passed': attempt.status == Attempt.Status.COMPLETED,
        'status': attempt.status,
        'correct_answers': sum(1 for a in answers if a.get('is_correct')),
        'total_questions': len(answers),
        'time_spent_minutes': attempt.time_spent_minutes,
        'pending_theory': attempt.has_ungraded_theory,
        'answers': answers,
    }


def submit_attempt(schedule_id, student, answers, time_spent_minutes=None, auto_submitted=False, now=None):
    """
    Grade and close the attempt behind ``schedule_id``.

    ``answers`` maps question id to the raw answer. The returned payload only
    carries the result when the exam shows results immediately.
    """
    now = now or timezone.now()
    answers = {str(key): value for key, value in (answers or {}).items()}

    with transaction.atomic():
        schedule = ExamSchedule.objects.select_for_update().filter(
            pk=schedule_id, student=student,
        ).exclude(status=ExamSchedule.Status.CANCELLED).first()
        if schedule is None:
            raise ScheduleNotFound("Exam schedule not found")
        if schedule.status == ExamSchedule.Status.COMPLETED:
            raise AlreadyCompleted()
        if schedule.status == ExamSchedule.Status.EXPIRED:
            raise ExamExpired()
        if schedule.status != ExamSchedule.Status.IN_PROGRESS:
            raise ScheduleNotFound("Exam has not been started")

        attempt = Attempt.objects.select_for_update().filter(schedule=schedule).first()
        if attempt is None:
            raise AttemptNotFound()
        if attempt.is_submitted:
            raise AlreadyCompleted()

        questions = attempt.assigned_questions
        if not questions:
            # Legacy attempt without a paper: grade the live bank and keep it as the paper
            questions = active_questions(schedule.exam)
            attempt.assigned_questions = questions
        attempt.total_marks = snapshot_total(questions)

        records = [grade_answer(q, answers.get(str(q.get('id')))) for q in questions]
        score, percentage, passed = _outcome(attempt, records)

        attempt.answers = records
        attempt.score = score
        attempt.percentage = percentage
        attempt.status = Attempt.Status.COMPLETED if passed else Attempt.Status.FAILED
        attempt.end_time = now
        attempt.time_spent_minutes = time_spent_minutes
        attempt.auto_submitted = auto_submitted
        attempt.save()

        schedule.status = ExamSchedule.Status.COMPLETED
        schedule.completed_at = now
        schedule.auto_submitted = auto_submitted
        schedule.save(update_fields=['status', 'completed_at', 'auto_submitted', 'updated_at'])

    logger.info(
        f"Attempt {attempt.id} submitted{' automatically' if auto_submitted else ''}: "
        f"{score}/{attempt.total_marks} ({percentage}%)"
    )

    payload = {
        'attempt_id': attempt.id,
        'schedule_id': schedule.id,
        'status': 'submitted',
        'auto_submitted': auto_submitted,
    }
    if schedule.exam.show_result_immediately:
        payload['result'] = result_summary(attempt)
    return payload


def grade_theory(attempt_id, grader, grades, now=None):
    """
    Apply manual marks to theory answers and recompute the outcome.

    ``grades`` is a list of ``{question_id, marks, feedback}``.
    """
    now = now or timezone.now()

    with transaction.atomic():
        queryset = Attempt.objects.select_for_update().filter(pk=attempt_id)
        if not grader.is_staff:
            queryset = queryset.filter(exam__school_id=grader.school_id)
        attempt = queryset.first()
        if attempt is None:
            raise AttemptNotFound()
        if not attempt.is_submitted:
            raise ValidationError({"attempt": "Attempt has not been submitted yet"})

        records = copy.deepcopy(attempt.answers or [])
        by_question = {str(r.get('question_id')): r for r in records}

        for grade in grades:
            question_id = str(grade['question_id'])
            record = by_question.get(question_id)
            if record is None:
                raise ValidationError({"grades": f"Question {question_id} is not part of this attempt"})
            if record.get('question_type') != QuestionType.THEORY:
                raise ValidationError({"grades": f"Question {question_id} is auto-graded"})

            marks = Decimal(str(grade['marks']))
            if marks < 0 or marks > Decimal(str(record.get('max_marks') or 0)):
                raise ValidationError({"grades": f"Marks for question {question_id} must be between 0 and {record.get('max_marks')}"})

            record['marks_obtained'] = _as_number(marks)
            record['is_correct'] = marks > 0
            record['feedback'] = grade.get('feedback', '')
            record['graded_by'] = grader.id
            record['graded_at'] = now.isoformat()

        score, percentage, passed = _outcome(attempt, records)
        attempt.answers = records
        attempt.score = score
        attempt.percentage = percentage
        attempt.status = Attempt.Status.COMPLETED if passed else Attempt.Status.FAILED
        attempt.save(update_fields=['answers', 'score', 'percentage', 'status'])

    logger.info(f"Theory graded on attempt {attempt.id} by {grader.id}: {score}/{attempt.total_marks}")
    return result_summary(attempt)
