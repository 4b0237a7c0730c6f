import random
from datetime import time

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from assessments.schedules import create_schedule
from exams.models import Exam, Question
from users.models import School, User
from tests.helpers import EXAM_DAY


@pytest.fixture
def school(db):
    return School.objects.create(name="Green Hills College", timezone="Africa/Lagos")


@pytest.fixture
def other_school(db):
    return School.objects.create(name="Blue Lake Academy")


@pytest.fixture
def tutor(school):
    return User.objects.create_user(
        username="tutor1", password="secret123", email="tutor@example.com",
        first_name="Ada", last_name="Obi", role=User.Role.TUTOR, school=school,
    )


@pytest.fixture
def student(school):
    return User.objects.create_user(
        username="student1", password="secret123", email="student@example.com",
        first_name="Tunde", last_name="Bello", role=User.Role.STUDENT, school=school,
        timezone="Africa/Lagos",
    )


@pytest.fixture
def other_student(school):
    return User.objects.create_user(
        username="student2", password="secret123", role=User.Role.STUDENT, school=school,
    )


@pytest.fixture
def exam(school, tutor):
    return Exam.objects.create(
        school=school, tutor=tutor, title="Geography Mid-Term",
        duration_minutes=45, total_questions=0, pass_mark_percentage=50,
        shuffle_questions=False, shuffle_options=False, show_result_immediately=True,
    )


@pytest.fixture
def make_question(exam):
    counter = {"order": 0}

    def _make(question_type=Question.QuestionType.MULTIPLE_CHOICE, correct_answer=None, marks=1,
              options=None, text=None, target_exam=None):
        counter["order"] += 1
        if options is None:
            if question_type == Question.QuestionType.MULTIPLE_CHOICE:
                options = ["Paris", "Lagos", "Accra", "Nairobi"]
            elif question_type == Question.QuestionType.TRUE_FALSE:
                options = ["True", "False"]
            else:
                options = []
        if correct_answer is None:
            correct_answer = {
                Question.QuestionType.MULTIPLE_CHOICE: "Paris",
                Question.QuestionType.TRUE_FALSE: "True",
                Question.QuestionType.FILL_BLANK: "paris",
                Question.QuestionType.THEORY: "",
            }[question_type]
        return Question.objects.create(
            exam=target_exam or exam,
            text=text or f"Question {counter['order']}",
            question_type=question_type,
            options=options,
            correct_answer=correct_answer,
            marks=marks,
            display_order=counter["order"],
        )

    return _make


@pytest.fixture
def schedule(exam, student, tutor):
    return create_schedule(exam, student, EXAM_DAY, time(9, 0), time(10, 0), created_by=tutor)


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def freeze(monkeypatch):
    """Pin django.utils.timezone.now() for code paths that read the clock themselves."""
    def _freeze(moment):
        monkeypatch.setattr(timezone, "now", lambda: moment)
        return moment
    return _freeze


@pytest.fixture
def tutor_client(tutor):
    client = APIClient()
    client.force_authenticate(user=tutor)
    return client


@pytest.fixture
def student_client(student):
    client = APIClient()
    client.force_authenticate(user=student)
    return client
