"""Attempt gating.

A student may start a new attempt only while the number of recorded
submissions for the (student, quiz) pair is below the quiz's
max_attempts. Attempts are never deleted, so the count only grows.
"""

from __future__ import annotations

from dataclasses import dataclass

MAX_ATTEMPTS_REACHED = "max_attempts_reached"


@dataclass(frozen=True)
class AttemptDecision:
    """Outcome of the attempt gate."""

    allowed: bool
    attempts_used: int
    max_attempts: int
    reason: str | None = None

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.max_attempts - self.attempts_used)


def can_attempt(attempts_used: int, max_attempts: int) -> bool:
    return attempts_used < max_attempts


def check_attempt(attempts_used: int, max_attempts: int) -> AttemptDecision:
    """Decide whether a new attempt may start.

    A blocked decision is terminal: only raising max_attempts reopens it.
    """
    allowed = can_attempt(attempts_used, max_attempts)
    return AttemptDecision(
        allowed=allowed,
        attempts_used=attempts_used,
        max_attempts=max_attempts,
        reason=None if allowed else MAX_ATTEMPTS_REACHED,
    )
