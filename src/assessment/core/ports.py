"""Interfaces of the engine's external collaborators."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from assessment.core.invitations import Invitation
from assessment.core.notifications import Notification
from assessment.core.quiz import Quiz
from assessment.core.submissions import Submission


class QuizStore(Protocol):
    """Durable, strongly consistent storage for quizzes and their records.

    The engine does not retry: errors raised here fail the whole operation.
    """

    def transaction(self) -> AbstractContextManager[None]:
        """Group the calls made inside the block into one atomic unit."""
        ...

    def load_quiz(self, quiz_id: str) -> Quiz | None: ...

    def save_quiz(self, quiz: Quiz) -> None: ...

    def list_quizzes(self) -> list[Quiz]: ...

    def load_submissions(self, quiz_id: str) -> list[Submission]: ...

    def load_submission(self, submission_id: str) -> Submission | None: ...

    def load_student_submissions(self, student_id: str) -> list[Submission]: ...

    def save_submission(self, submission: Submission) -> None: ...

    def count_attempts(self, quiz_id: str, student_id: str) -> int: ...

    def load_invitations(self, quiz_id: str) -> list[Invitation]: ...

    def load_invitations_for_email(self, email: str) -> list[Invitation]: ...

    def find_invitation(self, quiz_id: str, email: str) -> Invitation | None: ...

    def save_invitation(self, invitation: Invitation) -> None: ...

    def delete_invitation(self, invitation_id: str) -> bool: ...

    def load_invitation(self, invitation_id: str) -> Invitation | None: ...


class Notifier(Protocol):
    """Fire-and-forget message dispatch."""

    def notify(self, notification: Notification) -> None: ...
