"""Shared service instance for the Web API.

One AssessmentService per process so its per-quiz locks serialize
concurrent requests against the same quiz.
"""

from __future__ import annotations

from assessment.core.service import AssessmentService, build_service

_service: AssessmentService | None = None


def get_service() -> AssessmentService:
    """Get the global service instance."""
    global _service
    if _service is None:
        _service = build_service()
    return _service


def reset_service() -> None:
    """Reset the service (for testing)."""
    global _service
    _service = None
