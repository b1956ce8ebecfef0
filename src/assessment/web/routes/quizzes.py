"""Quiz endpoints."""

from fastapi import APIRouter, HTTPException, status

from assessment.core.attempt_gate import AttemptDecision
from assessment.core.questions import Question
from assessment.core.quiz import Quiz, QuizSettings
from assessment.core.submissions import StudentIdentity
from assessment.web.schemas import (
    AttemptDecisionResponse,
    ImportQuestionsRequest,
    ImportQuestionsResponse,
    PresentedQuestion,
    QuizCreate,
    QuizListResponse,
    QuizResponse,
    QuizResultsResponse,
    SetTotalRequest,
    StartAttemptRequest,
    StartAttemptResponse,
    StudentSummaryResponse,
)
from assessment.web.services import get_service

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


def _quiz_response(quiz: Quiz) -> QuizResponse:
    return QuizResponse(**quiz.to_dict())


def decision_response(decision: AttemptDecision) -> AttemptDecisionResponse:
    return AttemptDecisionResponse(
        allowed=decision.allowed,
        attempts_used=decision.attempts_used,
        max_attempts=decision.max_attempts,
        attempts_remaining=decision.attempts_remaining,
        reason=decision.reason,
    )


@router.get("", response_model=QuizListResponse)
def list_quizzes() -> QuizListResponse:
    """List all quizzes."""
    quizzes = [_quiz_response(q) for q in get_service().store.list_quizzes()]
    return QuizListResponse(quizzes=quizzes, count=len(quizzes))


@router.post("", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
def create_quiz(request: QuizCreate) -> QuizResponse:
    """Create a quiz with its questions."""
    service = get_service()
    if service.store.load_quiz(request.id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Quiz '{request.id}' already exists",
        )

    try:
        questions = [Question.from_dict(q.model_dump(mode="json")) for q in request.questions]
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    overrides = request.settings.model_dump(mode="json", exclude_none=True)
    quiz = service.create_quiz(
        request.id,
        request.title,
        questions=questions,
        settings=QuizSettings.from_dict(overrides),
        teacher_id=request.teacher_id,
        description=request.description,
    )
    return _quiz_response(quiz)


@router.get("/{quiz_id}", response_model=QuizResponse)
def get_quiz(quiz_id: str) -> QuizResponse:
    """Get a quiz with answers (teacher view)."""
    quiz = get_service().store.load_quiz(quiz_id)
    if quiz is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Quiz '{quiz_id}' not found",
        )
    return _quiz_response(quiz)


@router.put("/{quiz_id}/total-points", response_model=QuizResponse)
def set_total_points(quiz_id: str, request: SetTotalRequest) -> QuizResponse:
    """Redistribute the quiz's points to a target total."""
    quiz = get_service().set_total_points(quiz_id, request.total_points)
    return _quiz_response(quiz)


@router.post("/{quiz_id}/questions/import", response_model=ImportQuestionsResponse)
def import_questions(quiz_id: str, request: ImportQuestionsRequest) -> ImportQuestionsResponse:
    """Append generated questions to the quiz."""
    result = get_service().import_questions(quiz_id, request.payload)
    return ImportQuestionsResponse(
        imported=len(result.questions),
        question_ids=[q.id for q in result.questions],
        skipped=result.skipped,
        warnings=result.warnings,
    )


@router.post("/{quiz_id}/attempts", response_model=StartAttemptResponse)
def start_attempt(quiz_id: str, request: StartAttemptRequest) -> StartAttemptResponse:
    """Open an attempt: check the attempt limit and return the questions to show."""
    result = get_service().start_attempt(
        quiz_id,
        StudentIdentity(student_id=request.student_id, email=request.email, name=request.name),
        seed=request.seed,
    )
    return StartAttemptResponse(
        decision=decision_response(result.decision),
        questions=[
            PresentedQuestion(
                id=q.id,
                type=q.type.value,
                text=q.text,
                options=q.options,
                points=q.points,
            )
            for q in result.questions
        ],
        time_limit_minutes=result.time_limit_minutes,
        deadline=result.deadline,
    )


@router.get("/{quiz_id}/results", response_model=QuizResultsResponse)
def quiz_results(quiz_id: str) -> QuizResultsResponse:
    """Per-student summary of the quiz's submissions."""
    summaries = get_service().quiz_results(quiz_id)
    students = [StudentSummaryResponse(**s.to_dict()) for s in summaries]
    return QuizResultsResponse(quiz_id=quiz_id, students=students, count=len(students))
