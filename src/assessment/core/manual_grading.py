"""Manual grading reconciliation.

Teacher-supplied per-question points replace the automatic verdicts.
The result always covers every question the submission was scored
against, in quiz order, fully replaces any previous grading details and
forces the submission to GRADED, so applying the same overrides twice
yields the same record.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from assessment.core.aggregator import GradingDetail, question_results
from assessment.core.quiz import Quiz
from assessment.core.submissions import Submission, mark_graded

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Reconciliation:
    """Grading details and total produced from a set of overrides."""

    grading_details: list[GradingDetail]
    score: int
    ignored_question_ids: list[str]


def build_grading_details(
    quiz: Quiz,
    overrides: dict[str, int],
    scored_against: list[GradingDetail] | None = None,
) -> Reconciliation:
    """Clamp overrides to each question's range and total them.

    Questions without an override are awarded 0. Override ids that do
    not belong to the quiz are ignored.

    Args:
        quiz: Quiz being graded
        overrides: Points per question id
        scored_against: Lines stored with the submission; their question
            set and max points win over the quiz's current points
    """
    if scored_against:
        ranges = [(d.question_id, d.max_points) for d in scored_against]
    else:
        ranges = [(q.id, q.points) for q in quiz.questions]

    known_ids = {qid for qid, _ in ranges}
    ignored = sorted(qid for qid in overrides if qid not in known_ids)
    if ignored:
        logger.debug("grading_overrides_ignored", quiz_id=quiz.id, question_ids=ignored)

    details: list[GradingDetail] = []
    for question_id, max_points in ranges:
        raw = overrides.get(question_id, 0)
        try:
            awarded = int(raw)
        except (TypeError, ValueError):
            awarded = 0
        details.append(
            GradingDetail(
                question_id=question_id,
                points_awarded=max(0, min(max_points, awarded)),
                max_points=max_points,
            )
        )

    return Reconciliation(
        grading_details=details,
        score=sum(d.points_awarded for d in details),
        ignored_question_ids=ignored,
    )


def reconcile(submission: Submission, quiz: Quiz, overrides: dict[str, int]) -> Submission:
    """Apply teacher overrides to a submission and mark it GRADED."""
    result = build_grading_details(quiz, overrides, submission.grading_details)
    mark_graded(submission, result.score, result.grading_details)
    logger.info(
        "submission_reconciled",
        submission_id=submission.id,
        quiz_id=quiz.id,
        score=result.score,
    )
    return submission


def seed_overrides(submission: Submission, quiz: Quiz) -> dict[str, int]:
    """Initial values for the grading form: the submission's current lines."""
    return {d.question_id: d.points_awarded for d in question_results(submission, quiz)}
