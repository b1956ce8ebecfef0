"""Route handlers for the Web API."""

from assessment.web.routes.health import router as health_router
from assessment.web.routes.invitations import router as invitations_router
from assessment.web.routes.quizzes import router as quizzes_router
from assessment.web.routes.submissions import router as submissions_router

__all__ = [
    "health_router",
    "quizzes_router",
    "submissions_router",
    "invitations_router",
]
