"""Fixtures for F3 tests - persistence and service orchestration."""

import pytest

from assessment.config.app_config import clear_config_cache
from assessment.core.notifications import LoggingNotifier
from assessment.core.questions import Question, QuestionType
from assessment.core.quiz import Quiz, QuizSettings
from assessment.core.service import AssessmentService
from assessment.core.submissions import StudentIdentity
from assessment.db import SqliteQuizStore, init_db


@pytest.fixture(autouse=True)
def fresh_config():
    """Reload configuration for every test."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "db" / "test.db"
    init_db(path)
    return path


@pytest.fixture
def store(db_path) -> SqliteQuizStore:
    return SqliteQuizStore(db_path)


@pytest.fixture
def notifier() -> LoggingNotifier:
    return LoggingNotifier()


@pytest.fixture
def service(store, notifier) -> AssessmentService:
    return AssessmentService(store, notifier)


@pytest.fixture
def sample_quiz() -> Quiz:
    return Quiz(
        id="quiz-geo",
        title="Capitales",
        teacher_id="teacher-1",
        settings=QuizSettings(max_attempts=3, shuffle_questions=False),
        questions=[
            Question(id="q1", type=QuestionType.SHORT_ANSWER, correct_answer="Madrid", points=2),
            Question(
                id="q2",
                type=QuestionType.MATCHING,
                options=["France", "Paris", "Italy", "Rome"],
                correct_answer='{"France": "Paris", "Italy": "Rome"}',
                points=3,
            ),
            Question(id="q3", type=QuestionType.ORDERING, options=["A", "B", "C"], correct_answer="A, B, C", points=1),
        ],
    )


@pytest.fixture
def essay_quiz() -> Quiz:
    return Quiz(
        id="quiz-essay",
        title="Redacción",
        teacher_id="teacher-1",
        settings=QuizSettings(shuffle_questions=False),
        questions=[
            Question(id="e1", type=QuestionType.SHORT_ANSWER, correct_answer="sí", points=1),
            Question(id="e2", type=QuestionType.ESSAY, text="Desarrolla", points=4),
        ],
    )


@pytest.fixture
def saved_quiz(store, sample_quiz) -> Quiz:
    store.save_quiz(sample_quiz)
    return sample_quiz


@pytest.fixture
def ana() -> StudentIdentity:
    return StudentIdentity(student_id="stu-ana", email="ana@example.com", name="Ana")
