"""Scoring engine.

Responsibilities:
- Score one submitted answer against one question
- All-or-nothing per question; ESSAY always scores 0 (manual review)
- Never raise on malformed stored data: degrade to 0 and log

Dispatch is a table keyed by answer shape (see questions.answer_shape),
one pure function per shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import structlog

from assessment.core.questions import (
    ORDERING_SEPARATOR,
    AnswerShape,
    Question,
    answer_shape,
    decode_matching_answer,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class QuestionVerdict:
    """Outcome of scoring a single question."""

    question_id: str
    points_awarded: int
    max_points: int
    is_correct: bool
    needs_review: bool = False
    answered: bool = True
    diagnostic: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "question_id": self.question_id,
            "points_awarded": self.points_awarded,
            "max_points": self.max_points,
            "is_correct": self.is_correct,
            "needs_review": self.needs_review,
            "answered": self.answered,
        }
        if self.diagnostic is not None:
            result["diagnostic"] = self.diagnostic
        return result


# =============================================================================
# NORMALIZATION
# =============================================================================


def is_missing(answer: Any) -> bool:
    """None, blank strings and empty collections count as no answer."""
    if answer is None:
        return True
    if isinstance(answer, str):
        return answer.strip() == ""
    if isinstance(answer, (list, tuple, dict)):
        return len(answer) == 0
    return False


def _fold(value: Any) -> str:
    return str(value).strip().casefold()


def _fold_joined(value: Any) -> str:
    """Fold a selection as one string.

    List answers are joined with ", " first. The joined text is compared
    whole, so element order and separators both matter.
    """
    if isinstance(value, (list, tuple)):
        value = ORDERING_SEPARATOR.join(str(v) for v in value)
    return _fold(value)


def _parse_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(str(value).strip())
    except ValueError:
        return None


# =============================================================================
# RULES (one per answer shape; each returns (is_correct, diagnostic))
# =============================================================================

Rule = Callable[[Question, Any], tuple[bool, str | None]]


def _score_text(question: Question, answer: Any) -> tuple[bool, str | None]:
    if question.correct_answer is None:
        return False, "missing_correct_answer"
    return _fold(answer) == _fold(question.correct_answer), None


def _score_choice_set(question: Question, answer: Any) -> tuple[bool, str | None]:
    if question.correct_answer is None:
        return False, "missing_correct_answer"
    return _fold_joined(answer) == _fold_joined(question.correct_answer), None


def _score_numeric(question: Question, answer: Any) -> tuple[bool, str | None]:
    expected = _parse_float(question.correct_answer)
    if expected is None:
        return False, "unparsable_correct_answer"
    given = _parse_float(answer)
    if given is None:
        return False, "unparsable_answer"
    return given == expected, None


def _score_ordering(question: Question, answer: Any) -> tuple[bool, str | None]:
    if isinstance(answer, (list, tuple)):
        submitted = ORDERING_SEPARATOR.join(str(a) for a in answer)
    else:
        submitted = str(answer)
    return submitted == question.correct_answer, None


def _score_matching(question: Question, answer: Any) -> tuple[bool, str | None]:
    expected = decode_matching_answer(question.correct_answer)
    if expected is None:
        logger.error(
            "matching_answer_undecodable",
            question_id=question.id,
            preview=str(question.correct_answer)[:100],
        )
        return False, "malformed_correct_answer"
    if not isinstance(answer, dict):
        return False, "answer_not_mapping"
    if len(answer) != len(expected):
        return False, None
    for item, match in expected.items():
        if answer.get(item) != match:
            return False, None
    return True, None


def _score_manual(question: Question, answer: Any) -> tuple[bool, str | None]:
    return False, "manual_review"


SCORING_RULES: dict[AnswerShape, Rule] = {
    "choice": _score_text,
    "text": _score_text,
    "choice_set": _score_choice_set,
    "numeric": _score_numeric,
    "ordering": _score_ordering,
    "matching": _score_matching,
    "manual": _score_manual,
}


# =============================================================================
# PUBLIC API
# =============================================================================


def grade_question(question: Question, answer: Any) -> QuestionVerdict:
    """Score one answer and explain the outcome.

    Args:
        question: Question being answered
        answer: Raw submitted answer (shape mirrors the question's answer shape)

    Returns:
        QuestionVerdict with points in [0, question.points]
    """
    shape = answer_shape(question)
    max_points = max(0, question.points)

    if shape == "manual":
        return QuestionVerdict(
            question_id=question.id,
            points_awarded=0,
            max_points=max_points,
            is_correct=False,
            needs_review=True,
            answered=not is_missing(answer),
            diagnostic="manual_review",
        )

    if is_missing(answer):
        return QuestionVerdict(
            question_id=question.id,
            points_awarded=0,
            max_points=max_points,
            is_correct=False,
            answered=False,
        )

    try:
        is_correct, diagnostic = SCORING_RULES[shape](question, answer)
    except (TypeError, ValueError, AttributeError) as e:
        logger.error(
            "scoring_failed",
            question_id=question.id,
            question_type=question.type.value,
            error=str(e),
        )
        is_correct, diagnostic = False, "scoring_error"

    if diagnostic in ("missing_correct_answer", "unparsable_correct_answer"):
        logger.warning(
            "question_data_invalid",
            question_id=question.id,
            question_type=question.type.value,
            diagnostic=diagnostic,
        )

    return QuestionVerdict(
        question_id=question.id,
        points_awarded=max_points if is_correct else 0,
        max_points=max_points,
        is_correct=is_correct,
        diagnostic=diagnostic,
    )


def score_question(question: Question, answer: Any) -> int:
    """Points awarded for one answer (0 or the question's points)."""
    return grade_question(question, answer).points_awarded
