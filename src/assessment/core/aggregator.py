"""Score aggregation and point redistribution.

Responsibilities:
- Sum per-question points into a submission total
- Redistribute a quiz's points to match an instructor's target total
- Expose per-question results of a submission from the lines stored
  with it, replaying the answers only for records that have none
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

import structlog

from assessment.core.questions import Question
from assessment.core.quiz import Quiz
from assessment.core.scoring import QuestionVerdict, grade_question

if TYPE_CHECKING:
    from assessment.core.submissions import Submission

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GradingDetail:
    """Per-question line of a graded submission."""

    question_id: str
    points_awarded: int
    max_points: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "question_id": self.question_id,
            "points_awarded": self.points_awarded,
            "max_points": self.max_points,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GradingDetail:
        return cls(
            question_id=str(data["question_id"]),
            points_awarded=int(data.get("points_awarded", 0)),
            max_points=int(data.get("max_points", 0)),
        )


# =============================================================================
# TOTALS
# =============================================================================


def grade_answers(quiz: Quiz, answers: dict[str, Any]) -> list[QuestionVerdict]:
    """Score every question of the quiz, in quiz order."""
    return [grade_question(q, answers.get(q.id)) for q in quiz.questions]


def total_score(quiz: Quiz, answers: dict[str, Any]) -> int:
    """Sum of awarded points over all quiz questions."""
    return sum(v.points_awarded for v in grade_answers(quiz, answers))


def max_score(quiz: Quiz) -> int:
    return quiz.total_points


def percentage(score: int, maximum: int) -> float:
    """Score as a fraction in [0, 1]; 0 when nothing is awardable."""
    return score / maximum if maximum > 0 else 0.0


# =============================================================================
# REDISTRIBUTION
# =============================================================================


def redistribute_points(questions: list[Question], target_total: int) -> list[Question]:
    """Spread a target total across questions.

    base = T // N and the first T % N questions (in quiz order) receive
    one extra point. Deterministic; an empty list is returned unchanged.

    Raises:
        ValueError: If target_total is negative
    """
    if target_total < 0:
        raise ValueError(f"El total de puntos no puede ser negativo: {target_total}")
    count = len(questions)
    if count == 0:
        return []

    base, remainder = divmod(target_total, count)
    return [
        replace(q, points=base + (1 if i < remainder else 0))
        for i, q in enumerate(questions)
    ]


def apply_total_points(quiz: Quiz, target_total: int) -> Quiz:
    """Return a copy of the quiz with points redistributed to target_total.

    The revision is bumped only when some question's points change, so
    applying the same target twice leaves the quiz identical. Stored
    submissions are never rescaled.
    """
    if not quiz.questions:
        logger.info("redistribution_skipped_empty_quiz", quiz_id=quiz.id)
        return quiz

    new_questions = redistribute_points(quiz.questions, target_total)
    changed = [q.points for q in new_questions] != [q.points for q in quiz.questions]
    if not changed:
        return quiz

    logger.info(
        "points_redistributed",
        quiz_id=quiz.id,
        target_total=target_total,
        questions=len(new_questions),
        revision=quiz.revision + 1,
    )
    return replace(quiz, questions=new_questions, revision=quiz.revision + 1)


# =============================================================================
# SUBMISSION RESULTS
# =============================================================================


def score_details(quiz: Quiz, answers: dict[str, Any]) -> list[GradingDetail]:
    """Per-question lines for a set of answers against the quiz's current points.

    Stored on every new submission so later point changes never alter
    how it reads.
    """
    return [
        GradingDetail(
            question_id=v.question_id,
            points_awarded=v.points_awarded,
            max_points=v.max_points,
        )
        for v in grade_answers(quiz, answers)
    ]


def question_results(submission: Submission, quiz: Quiz) -> list[GradingDetail]:
    """Per-question results of a submission.

    Uses the lines stored with the submission (at submit time or by
    manual grading). Records without them are replayed against the
    quiz's current points.
    """
    if submission.grading_details:
        return list(submission.grading_details)
    return score_details(quiz, submission.answers)


def submission_max_score(submission: Submission, quiz: Quiz | None) -> int | None:
    """Maximum score a submission was measured against.

    Prefers the stored lines (they carry the points at scoring time),
    then the quiz's current points.
    """
    if submission.grading_details:
        return sum(d.max_points for d in submission.grading_details)
    if quiz is not None:
        return quiz.total_points
    return None
