"""Fixtures for F1 tests - question model and scoring."""

import json

import pytest

from assessment.core.questions import Question, QuestionType
from assessment.core.quiz import Quiz, QuizSettings


@pytest.fixture
def make_question():
    """Factory for questions with sensible defaults."""

    def _make(q_type: QuestionType, correct_answer=None, points: int = 1, options=None, qid: str = "q1"):
        return Question(
            id=qid,
            type=q_type,
            text=f"Pregunta {qid}",
            options=list(options or []),
            correct_answer=correct_answer,
            points=points,
        )

    return _make


@pytest.fixture
def capitals_matching() -> Question:
    """MATCHING question worth 10 points."""
    return Question(
        id="match-1",
        type=QuestionType.MATCHING,
        text="Relaciona cada país con su capital",
        options=["France", "Paris", "Italy", "Rome"],
        correct_answer=json.dumps({"France": "Paris", "Italy": "Rome"}),
        points=10,
    )


@pytest.fixture
def mixed_quiz() -> Quiz:
    """Quiz with one question of each auto-scoreable shape."""
    return Quiz(
        id="quiz-mixed",
        title="Cuestionario mixto",
        settings=QuizSettings(),
        questions=[
            Question(id="tf", type=QuestionType.TRUE_FALSE, options=["True", "False"], correct_answer="True", points=1),
            Question(id="sc", type=QuestionType.SINGLE_CHOICE, options=["A", "B", "C"], correct_answer="B", points=2),
            Question(id="mc", type=QuestionType.MULTIPLE_CHOICE, options=["A", "B", "C"], correct_answer="A, C", points=3),
            Question(id="num", type=QuestionType.NUMERICAL, correct_answer="3", points=4),
        ],
    )
