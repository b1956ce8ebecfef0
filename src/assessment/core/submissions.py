"""Submission lifecycle.

Responsibilities:
- Create a submission at submit time with its provisional score
- Decide GRADED vs PENDING_REVIEW from the quiz policy
- Allow only PENDING_REVIEW -> GRADED afterwards (manual grading)
- Decide what a student may see of a submission

States:
    CREATING (ephemeral) -> GRADED | PENDING_REVIEW -> GRADED
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog

from assessment.core.aggregator import (
    GradingDetail,
    percentage,
    score_details,
    submission_max_score,
)
from assessment.core.errors import InvalidTransitionError
from assessment.core.questions import requires_manual_review
from assessment.core.quiz import GradingMode, Quiz

logger = structlog.get_logger(__name__)


class SubmissionStatus(str, Enum):
    GRADED = "GRADED"
    PENDING_REVIEW = "PENDING_REVIEW"


@dataclass
class Submission:
    """One attempt by one student against one quiz."""

    id: str
    quiz_id: str
    student_id: str
    answers: dict[str, Any]
    score: int
    status: SubmissionStatus
    submitted_at: str = ""
    student_email: str = ""
    student_name: str = ""
    grading_details: list[GradingDetail] | None = None
    quiz_revision: int = 1
    timed_out: bool = False

    def __post_init__(self):
        if not self.submitted_at:
            self.submitted_at = datetime.now(timezone.utc).isoformat()

    @property
    def is_graded(self) -> bool:
        return self.status == SubmissionStatus.GRADED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "student_id": self.student_id,
            "student_email": self.student_email,
            "student_name": self.student_name,
            "submitted_at": self.submitted_at,
            "answers": self.answers,
            "score": self.score,
            "status": self.status.value,
            "quiz_revision": self.quiz_revision,
            "timed_out": self.timed_out,
        }
        if self.grading_details is not None:
            result["grading_details"] = [d.to_dict() for d in self.grading_details]
        return result


@dataclass(frozen=True)
class StudentView:
    """What a student is shown for one of their submissions."""

    submission_id: str
    status: SubmissionStatus
    score: int | None
    max_score: int | None
    submitted_at: str

    @property
    def is_pending(self) -> bool:
        return self.status == SubmissionStatus.PENDING_REVIEW

    def to_dict(self) -> dict[str, Any]:
        return {
            "submission_id": self.submission_id,
            "status": "PENDING" if self.is_pending else self.status.value,
            "score": self.score,
            "max_score": self.max_score,
            "submitted_at": self.submitted_at,
        }


@dataclass(frozen=True)
class StudentIdentity:
    """Resolved identity of the current student."""

    student_id: str
    email: str = ""
    name: str = ""


# =============================================================================
# TRANSITIONS
# =============================================================================


def decide_status(quiz: Quiz) -> SubmissionStatus:
    """Status a new submission lands in.

    Any essay, manual grading mode, or results withheld from the student
    all force review.
    """
    if requires_manual_review(quiz.questions):
        return SubmissionStatus.PENDING_REVIEW
    if quiz.settings.grading_mode == GradingMode.MANUAL:
        return SubmissionStatus.PENDING_REVIEW
    if not quiz.settings.show_results_immediately:
        return SubmissionStatus.PENDING_REVIEW
    return SubmissionStatus.GRADED


def generate_submission_id() -> str:
    return f"sub-{uuid.uuid4().hex[:12]}"


def create_submission(
    quiz: Quiz,
    student: StudentIdentity,
    answers: dict[str, Any],
    submission_id: str | None = None,
    timed_out: bool = False,
) -> Submission:
    """Score answers and build the submission record (not persisted).

    The per-question lines are stored with the submission, so it keeps
    the points it was scored against after a redistribution. Answers to
    unknown question ids are kept as submitted but never scored.
    """
    status = decide_status(quiz)
    details = score_details(quiz, answers)
    score = sum(d.points_awarded for d in details)

    submission = Submission(
        id=submission_id or generate_submission_id(),
        quiz_id=quiz.id,
        student_id=student.student_id,
        student_email=student.email,
        student_name=student.name,
        answers=dict(answers),
        score=score,
        status=status,
        grading_details=details,
        quiz_revision=quiz.revision,
        timed_out=timed_out,
    )

    logger.debug(
        "submission_created",
        submission_id=submission.id,
        quiz_id=quiz.id,
        status=status.value,
        score=score,
        timed_out=timed_out,
    )
    return submission


_ALLOWED_TRANSITIONS: dict[SubmissionStatus, set[SubmissionStatus]] = {
    SubmissionStatus.PENDING_REVIEW: {SubmissionStatus.GRADED},
    # Regrading keeps a submission GRADED
    SubmissionStatus.GRADED: {SubmissionStatus.GRADED},
}


def ensure_transition(current: SubmissionStatus, requested: SubmissionStatus) -> None:
    """Raise InvalidTransitionError unless current -> requested is allowed."""
    if requested not in _ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError("submission", current.value, requested.value)


def mark_graded(
    submission: Submission,
    score: int,
    grading_details: list[GradingDetail],
) -> Submission:
    """Apply a manual grade and force the submission to GRADED."""
    ensure_transition(submission.status, SubmissionStatus.GRADED)
    submission.score = score
    submission.grading_details = list(grading_details)
    submission.status = SubmissionStatus.GRADED
    return submission


# =============================================================================
# VISIBILITY
# =============================================================================


def student_view(submission: Submission, max_score: int | None = None) -> StudentView:
    """Hide the stored score while the submission awaits review."""
    if submission.status == SubmissionStatus.GRADED:
        return StudentView(
            submission_id=submission.id,
            status=submission.status,
            score=submission.score,
            max_score=max_score,
            submitted_at=submission.submitted_at,
        )
    return StudentView(
        submission_id=submission.id,
        status=submission.status,
        score=None,
        max_score=None,
        submitted_at=submission.submitted_at,
    )


def passed(submission: Submission, quiz: Quiz) -> bool | None:
    """Whether a graded submission reaches the quiz's passing score.

    None while the submission is pending review.
    """
    if not submission.is_graded:
        return None
    maximum = submission_max_score(submission, quiz) or 0
    return percentage(submission.score, maximum) * 100 >= quiz.settings.passing_score
