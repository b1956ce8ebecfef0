"""FastAPI application factory.

Main entry point for the Assessment Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assessment.core.errors import (
    AssessmentError,
    InvalidTransitionError,
    InvitationLockedError,
    InvitationNotFoundError,
    QuizNotFoundError,
    SubmissionNotFoundError,
)
from assessment.web.routes import (
    health_router,
    invitations_router,
    quizzes_router,
    submissions_router,
)
from assessment.web.services import get_service

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    service = get_service()
    logger.info("api_startup", quizzes_found=len(service.store.list_quizzes()))
    yield


async def assessment_error_handler(request: Request, exc: AssessmentError) -> JSONResponse:
    """Map domain errors to HTTP status codes."""
    if isinstance(exc, (QuizNotFoundError, SubmissionNotFoundError, InvitationNotFoundError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (InvitationLockedError, InvalidTransitionError)):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST

    logger.info("api_domain_error", path=request.url.path, error=str(exc), status_code=code)
    return JSONResponse(status_code=code, content={"detail": str(exc)})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Assessment API",
        description="Web API for quiz scoring, submissions and invitations",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AssessmentError, assessment_error_handler)

    app.include_router(health_router)
    app.include_router(quizzes_router)
    app.include_router(submissions_router)
    app.include_router(invitations_router)

    return app


# Default app instance for uvicorn
app = create_app()
