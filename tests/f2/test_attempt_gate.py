"""Tests for attempt gating (F2)."""

from assessment.core.attempt_gate import MAX_ATTEMPTS_REACHED, can_attempt, check_attempt


class TestCheckAttempt:
    """Tests for check_attempt."""

    def test_allowed_below_limit(self):
        decision = check_attempt(2, 3)
        assert decision.allowed
        assert decision.reason is None
        assert decision.attempts_remaining == 1

    def test_fourth_attempt_blocked_with_three_max(self):
        decision = check_attempt(3, 3)
        assert not decision.allowed
        assert decision.reason == MAX_ATTEMPTS_REACHED
        assert decision.attempts_remaining == 0

    def test_blocked_stays_blocked(self):
        assert not can_attempt(5, 3)

    def test_raising_the_limit_reopens(self):
        assert not can_attempt(3, 3)
        assert can_attempt(3, 4)

    def test_first_attempt(self):
        assert check_attempt(0, 1).allowed
