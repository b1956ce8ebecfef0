"""Teacher-facing reports over stored records.

- summarize_by_student: attempts, best score and latest activity per student
- student_history: one line per invitation with the latest score if completed
- student_stats: totals, average percentage and completion rate
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from assessment.core.aggregator import submission_max_score
from assessment.core.invitations import Invitation, InvitationStatus
from assessment.core.quiz import Quiz
from assessment.core.submissions import Submission


@dataclass
class StudentSubmissionSummary:
    """All attempts of one student on one quiz."""

    student_id: str
    student_name: str
    student_email: str
    attempts: int
    best_score: int
    latest_submitted_at: str
    submissions: list[Submission] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "student_name": self.student_name,
            "student_email": self.student_email,
            "attempts": self.attempts,
            "best_score": self.best_score,
            "latest_submitted_at": self.latest_submitted_at,
        }


@dataclass
class QuizHistoryItem:
    """One quiz a student was invited to."""

    quiz_id: str
    quiz_title: str
    status: InvitationStatus
    invited_at: str
    score: int | None = None
    max_score: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "quiz_id": self.quiz_id,
            "quiz_title": self.quiz_title,
            "status": self.status.value,
            "invited_at": self.invited_at,
            "score": self.score,
            "max_score": self.max_score,
        }


@dataclass
class StudentStats:
    total_invited: int
    total_completed: int
    average_score: int
    completion_rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_invited": self.total_invited,
            "total_completed": self.total_completed,
            "average_score": self.average_score,
            "completion_rate": self.completion_rate,
        }


def summarize_by_student(submissions: list[Submission]) -> list[StudentSubmissionSummary]:
    """Group submissions by student, most recent activity first."""
    groups: dict[str, list[Submission]] = {}
    for sub in submissions:
        groups.setdefault(sub.student_id, []).append(sub)

    summaries = []
    for student_id, subs in groups.items():
        ordered = sorted(subs, key=lambda s: s.submitted_at, reverse=True)
        latest = ordered[0]
        summaries.append(
            StudentSubmissionSummary(
                student_id=student_id,
                student_name=latest.student_name,
                student_email=latest.student_email,
                attempts=len(ordered),
                best_score=max(s.score for s in ordered),
                latest_submitted_at=latest.submitted_at,
                submissions=ordered,
            )
        )

    summaries.sort(key=lambda s: s.latest_submitted_at, reverse=True)
    return summaries


def student_history(
    invitations: list[Invitation],
    submissions: list[Submission],
    quizzes: dict[str, Quiz],
) -> list[QuizHistoryItem]:
    """History of a student's invitations, newest first.

    Args:
        invitations: Invitations addressed to the student
        submissions: All submissions by the student
        quizzes: Quizzes by id (missing quizzes show as unknown)
    """
    latest_by_quiz: dict[str, Submission] = {}
    for sub in submissions:
        current = latest_by_quiz.get(sub.quiz_id)
        if current is None or sub.submitted_at > current.submitted_at:
            latest_by_quiz[sub.quiz_id] = sub

    items = []
    for inv in sorted(invitations, key=lambda i: i.invited_at, reverse=True):
        quiz = quizzes.get(inv.quiz_id)
        item = QuizHistoryItem(
            quiz_id=inv.quiz_id,
            quiz_title=quiz.title if quiz else "Cuestionario desconocido",
            status=inv.status,
            invited_at=inv.invited_at,
        )
        if inv.status == InvitationStatus.COMPLETED:
            submission = latest_by_quiz.get(inv.quiz_id)
            if submission is not None:
                item.score = submission.score
                item.max_score = submission_max_score(submission, quiz)
        items.append(item)
    return items


def student_stats(history: list[QuizHistoryItem]) -> StudentStats:
    """Aggregate a student's history into rounded percentages."""
    total_invited = len(history)
    completed = [h for h in history if h.status == InvitationStatus.COMPLETED]
    scored = [h for h in completed if h.max_score]

    average = 0
    if scored:
        average = round(
            sum((h.score or 0) / h.max_score * 100 for h in scored) / len(scored)
        )

    completion_rate = round(len(completed) / total_invited * 100) if total_invited else 0

    return StudentStats(
        total_invited=total_invited,
        total_completed=len(completed),
        average_score=average,
        completion_rate=completion_rate,
    )
