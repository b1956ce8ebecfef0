"""Submission endpoints."""

from fastapi import APIRouter, status

from assessment.core.submissions import StudentIdentity, Submission, student_view
from assessment.web.routes.quizzes import decision_response
from assessment.web.schemas import (
    GradeRequest,
    GradingFormResponse,
    StudentProfileResponse,
    StudentResultsResponse,
    StudentViewResponse,
    SubmissionResponse,
    SubmissionReviewResponse,
    SubmitRequest,
    SubmitResponse,
)
from assessment.web.services import get_service

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


def _submission_response(submission: Submission) -> SubmissionResponse:
    return SubmissionResponse(**submission.to_dict())


@router.post("", response_model=SubmitResponse, status_code=status.HTTP_201_CREATED)
def submit(request: SubmitRequest) -> SubmitResponse:
    """Submit a student's answers.

    A blocked attempt is not an error: success is false and no
    submission is created.
    """
    service = get_service()
    result = service.submit(
        request.quiz_id,
        StudentIdentity(student_id=request.student_id, email=request.email, name=request.name),
        request.answers,
        timed_out=request.timed_out,
    )

    view = None
    if result.submission is not None:
        view = StudentViewResponse(**student_view(result.submission, result.max_score).to_dict())

    return SubmitResponse(
        success=result.success,
        blocked=result.blocked,
        message=result.message,
        decision=decision_response(result.decision),
        submission=view,
    )


@router.get("/{submission_id}", response_model=SubmissionReviewResponse)
def review_submission(submission_id: str) -> SubmissionReviewResponse:
    """Teacher view of a submission with per-question results."""
    review = get_service().review(submission_id)
    return SubmissionReviewResponse(
        submission=_submission_response(review.submission),
        results=[d.to_dict() for d in review.results],
        max_score=review.max_score,
        passed=review.passed,
    )


@router.get("/{submission_id}/grading-form", response_model=GradingFormResponse)
def grading_form(submission_id: str) -> GradingFormResponse:
    """Initial per-question points for manual grading."""
    points = get_service().grading_form(submission_id)
    return GradingFormResponse(submission_id=submission_id, points=points)


@router.post("/{submission_id}/grade", response_model=SubmissionResponse)
def grade_submission(submission_id: str, request: GradeRequest) -> SubmissionResponse:
    """Apply manual grading and publish the result."""
    submission = get_service().grade_submission(submission_id, request.points)
    return _submission_response(submission)


@router.get("/students/{student_id}", response_model=StudentResultsResponse)
def student_results(student_id: str) -> StudentResultsResponse:
    """A student's own submissions; scores stay hidden until graded."""
    views = [StudentViewResponse(**v.to_dict()) for v in get_service().student_results(student_id)]
    return StudentResultsResponse(student_id=student_id, submissions=views, count=len(views))


@router.get("/students/{student_id}/profile", response_model=StudentProfileResponse)
def student_profile(student_id: str, email: str) -> StudentProfileResponse:
    """History of invitations and aggregate statistics."""
    report = get_service().student_profile(student_id, email)
    return StudentProfileResponse(
        history=[h.to_dict() for h in report.history],
        stats=report.stats.to_dict(),
    )
