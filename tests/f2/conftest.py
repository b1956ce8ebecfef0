"""Fixtures for F2 tests - attempts, state machines and grading."""

import pytest

from assessment.core.questions import Question, QuestionType
from assessment.core.quiz import GradingMode, Quiz, QuizSettings
from assessment.core.submissions import StudentIdentity


@pytest.fixture
def auto_questions() -> list[Question]:
    return [
        Question(id="q1", type=QuestionType.SHORT_ANSWER, correct_answer="Madrid", points=2),
        Question(id="q2", type=QuestionType.NUMERICAL, correct_answer="42", points=3),
    ]


@pytest.fixture
def make_quiz(auto_questions):
    """Factory for quizzes with overridable settings."""

    def _make(questions=None, **settings):
        return Quiz(
            id="quiz-1",
            title="Geografía",
            questions=list(auto_questions if questions is None else questions),
            settings=QuizSettings(**settings),
            teacher_id="teacher-1",
        )

    return _make


@pytest.fixture
def essay_quiz(auto_questions) -> Quiz:
    essay = Question(id="q3", type=QuestionType.ESSAY, text="Explica...", points=5)
    return Quiz(
        id="quiz-essay",
        title="Con ensayo",
        questions=auto_questions + [essay],
        settings=QuizSettings(),
    )


@pytest.fixture
def student() -> StudentIdentity:
    return StudentIdentity(student_id="stu-1", email="Ana@Example.com", name="Ana")


@pytest.fixture
def manual_mode() -> GradingMode:
    return GradingMode.MANUAL
