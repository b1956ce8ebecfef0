"""Notification messages emitted by the engine.

Dispatch is fire-and-forget: the service logs and swallows notifier
failures so they never roll back a submission or an invitation.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class NotificationType(str, Enum):
    QUIZ_INVITE = "QUIZ_INVITE"
    QUIZ_SUBMISSION = "QUIZ_SUBMISSION"


@dataclass
class Notification:
    """A message addressed to a teacher or a student."""

    id: str
    recipient: str
    type: NotificationType
    title: str
    message: str
    quiz_id: str | None = None
    related_user_name: str = ""
    is_read: bool = False
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "recipient": self.recipient,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "quiz_id": self.quiz_id,
            "related_user_name": self.related_user_name,
            "is_read": self.is_read,
            "created_at": self.created_at,
        }


def invite_notification(recipient: str, quiz_id: str, quiz_title: str, teacher_name: str = "") -> Notification:
    inviter = teacher_name or "Tu profesor"
    return Notification(
        id=f"ntf-{uuid.uuid4().hex[:12]}",
        recipient=recipient,
        type=NotificationType.QUIZ_INVITE,
        title="Nueva invitación",
        message=f'{inviter} te ha invitado a realizar "{quiz_title}"',
        quiz_id=quiz_id,
        related_user_name=teacher_name,
    )


def submission_notification(recipient: str, quiz_id: str, quiz_title: str, student_name: str = "") -> Notification:
    who = student_name or "Un estudiante"
    return Notification(
        id=f"ntf-{uuid.uuid4().hex[:12]}",
        recipient=recipient,
        type=NotificationType.QUIZ_SUBMISSION,
        title="Nueva entrega",
        message=f'{who} ha enviado "{quiz_title}"',
        quiz_id=quiz_id,
        related_user_name=student_name,
    )


class LoggingNotifier:
    """Notifier that only writes a log event (dry runs and tests)."""

    def __init__(self):
        self.sent: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.sent.append(notification)
        logger.info(
            "notification_sent",
            notification_type=notification.type.value,
            recipient=notification.recipient,
            quiz_id=notification.quiz_id,
        )
