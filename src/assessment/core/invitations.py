"""Invitation lifecycle.

States (monotonic, never backwards):
    PENDING -> ACCEPTED -> COMPLETED

- accept: PENDING -> ACCEPTED, no-op otherwise
- complete: any state -> COMPLETED (public links skip acceptance)
- removal: only while PENDING
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog

from assessment.core.errors import InvitationLockedError

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class InvitationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    COMPLETED = "COMPLETED"


_RANK = {
    InvitationStatus.PENDING: 0,
    InvitationStatus.ACCEPTED: 1,
    InvitationStatus.COMPLETED: 2,
}


@dataclass
class Invitation:
    """Access grant for one email on one quiz."""

    id: str
    quiz_id: str
    email: str
    status: InvitationStatus = InvitationStatus.PENDING
    name: str = ""
    invited_at: str = ""

    def __post_init__(self):
        self.email = normalize_email(self.email)
        if not self.invited_at:
            self.invited_at = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "email": self.email,
            "name": self.name,
            "status": self.status.value,
            "invited_at": self.invited_at,
        }


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> bool:
    """Basic email shape check."""
    return bool(EMAIL_PATTERN.match(normalize_email(email)))


def new_invitation(quiz_id: str, email: str, name: str = "") -> Invitation:
    return Invitation(
        id=f"inv-{uuid.uuid4().hex[:12]}",
        quiz_id=quiz_id,
        email=email,
        name=name,
    )


# =============================================================================
# TRANSITIONS
# =============================================================================


def accept(invitation: Invitation) -> bool:
    """Mark a PENDING invitation as ACCEPTED.

    Returns:
        True if the status changed, False if it was already past PENDING
    """
    if invitation.status != InvitationStatus.PENDING:
        return False
    invitation.status = InvitationStatus.ACCEPTED
    logger.debug("invitation_accepted", invitation_id=invitation.id)
    return True


def complete(invitation: Invitation) -> bool:
    """Mark an invitation COMPLETED regardless of its current state.

    Returns:
        True if the status changed
    """
    if invitation.status == InvitationStatus.COMPLETED:
        return False
    previous = invitation.status
    invitation.status = InvitationStatus.COMPLETED
    logger.debug(
        "invitation_completed",
        invitation_id=invitation.id,
        previous=previous.value,
    )
    return True


def is_forward(current: InvitationStatus, requested: InvitationStatus) -> bool:
    """True if requested is the same state or further along."""
    return _RANK[requested] >= _RANK[current]


def can_remove(invitation: Invitation) -> bool:
    return invitation.status == InvitationStatus.PENDING


def ensure_removable(invitation: Invitation) -> None:
    """Raise InvitationLockedError unless the invitation is still PENDING."""
    if not can_remove(invitation):
        raise InvitationLockedError(invitation.id, invitation.status.value)
