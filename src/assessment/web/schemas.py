"""Pydantic schemas for the Web API.

Serialization models for quizzes, attempts, submissions and invitations.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from assessment.core.questions import QuestionType
from assessment.core.quiz import GradingMode


# =============================================================================
# QUIZ SCHEMAS
# =============================================================================


class QuizSettingsSchema(BaseModel):
    """Per-quiz policy. Omitted fields take the configured defaults."""

    time_limit_minutes: int | None = Field(default=None, ge=0)
    passing_score: int | None = Field(default=None, ge=0, le=100)
    max_attempts: int | None = Field(default=None, ge=1)
    grading_mode: GradingMode | None = None
    show_results_immediately: bool | None = None
    shuffle_questions: bool | None = None


class QuestionSchema(BaseModel):
    """A question as authored by the teacher."""

    id: str = Field(..., min_length=1)
    type: QuestionType
    text: str = ""
    options: list[str] = Field(default_factory=list)
    correct_answer: Any = None
    points: int = Field(default=1, ge=0)
    explanation: str = ""


class QuizCreate(BaseModel):
    """Request body for creating a quiz."""

    id: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    teacher_id: str = ""
    questions: list[QuestionSchema] = Field(default_factory=list)
    settings: QuizSettingsSchema = Field(default_factory=QuizSettingsSchema)


class QuizResponse(BaseModel):
    """Response for a quiz (teacher view, includes answers)."""

    id: str
    title: str
    description: str
    teacher_id: str
    status: str
    revision: int
    created_at: str
    settings: dict[str, Any]
    questions: list[dict[str, Any]]
    total_points: int


class QuizListResponse(BaseModel):
    quizzes: list[QuizResponse]
    count: int


class SetTotalRequest(BaseModel):
    """Request to redistribute a quiz's points."""

    total_points: int = Field(..., ge=0)


class ImportQuestionsRequest(BaseModel):
    """Raw text returned by content generation."""

    payload: str = Field(..., min_length=1)


class ImportQuestionsResponse(BaseModel):
    imported: int
    question_ids: list[str]
    skipped: int = 0
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# ATTEMPT SCHEMAS
# =============================================================================


class StudentIdentitySchema(BaseModel):
    student_id: str = Field(..., min_length=1)
    email: str = ""
    name: str = ""


class StartAttemptRequest(StudentIdentitySchema):
    seed: int | None = None


class PresentedQuestion(BaseModel):
    """A question as shown to a student (no correct answer)."""

    id: str
    type: str
    text: str
    options: list[str]
    points: int


class AttemptDecisionResponse(BaseModel):
    allowed: bool
    attempts_used: int
    max_attempts: int
    attempts_remaining: int
    reason: str | None = None


class StartAttemptResponse(BaseModel):
    decision: AttemptDecisionResponse
    questions: list[PresentedQuestion] = Field(default_factory=list)
    time_limit_minutes: int = 0
    deadline: str | None = None


# =============================================================================
# SUBMISSION SCHEMAS
# =============================================================================


class SubmitRequest(StudentIdentitySchema):
    """Answers keyed by question id."""

    quiz_id: str = Field(..., min_length=1)
    answers: dict[str, Any] = Field(default_factory=dict)
    timed_out: bool = False


class StudentViewResponse(BaseModel):
    """What a student sees; score is null while pending review."""

    submission_id: str
    status: str
    score: int | None = None
    max_score: int | None = None
    submitted_at: str


class SubmitResponse(BaseModel):
    success: bool
    blocked: bool = False
    message: str
    decision: AttemptDecisionResponse
    submission: StudentViewResponse | None = None


class GradingDetailSchema(BaseModel):
    question_id: str
    points_awarded: int
    max_points: int

    model_config = {"from_attributes": True}


class GradeRequest(BaseModel):
    """Per-question points; missing questions are awarded 0."""

    points: dict[str, int] = Field(default_factory=dict)


class SubmissionResponse(BaseModel):
    """Teacher view of a submission."""

    id: str
    quiz_id: str
    student_id: str
    student_email: str
    student_name: str
    submitted_at: str
    answers: dict[str, Any]
    score: int
    status: str
    quiz_revision: int
    timed_out: bool
    grading_details: list[GradingDetailSchema] | None = None


class SubmissionReviewResponse(BaseModel):
    submission: SubmissionResponse
    results: list[GradingDetailSchema]
    max_score: int
    passed: bool | None = None


class GradingFormResponse(BaseModel):
    submission_id: str
    points: dict[str, int]


class StudentResultsResponse(BaseModel):
    student_id: str
    submissions: list[StudentViewResponse]
    count: int


class StudentSummaryResponse(BaseModel):
    student_id: str
    student_name: str
    student_email: str
    attempts: int
    best_score: int
    latest_submitted_at: str


class QuizResultsResponse(BaseModel):
    quiz_id: str
    students: list[StudentSummaryResponse]
    count: int


# =============================================================================
# INVITATION SCHEMAS
# =============================================================================


class InvitationResponse(BaseModel):
    id: str
    quiz_id: str
    email: str
    name: str
    status: str
    invited_at: str


class InviteRequest(BaseModel):
    quiz_id: str = Field(..., min_length=1)
    emails: list[str] = Field(..., min_length=1)


class InviteResponse(BaseModel):
    created: list[InvitationResponse]
    skipped: list[str] = Field(default_factory=list)
    invalid: list[str] = Field(default_factory=list)


class AcceptRequest(BaseModel):
    quiz_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)


class InvitationListResponse(BaseModel):
    invitations: list[InvitationResponse]
    count: int


class HistoryItemResponse(BaseModel):
    quiz_id: str
    quiz_title: str
    status: str
    invited_at: str
    score: int | None = None
    max_score: int | None = None


class StudentStatsResponse(BaseModel):
    total_invited: int
    total_completed: int
    average_score: int
    completion_rate: int


class StudentProfileResponse(BaseModel):
    history: list[HistoryItemResponse]
    stats: StudentStatsResponse


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str
