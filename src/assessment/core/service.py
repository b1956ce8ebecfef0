"""Assessment service.

Orchestrates the engine against its collaborators:

    submit -> attempt gate -> scoring -> status decision
           -> invitation COMPLETED -> teacher notification
    grade  -> manual reconciliation -> GRADED

Each operation runs in one store transaction. Operations that read or
change a quiz's point configuration (submit, grade, redistribute) are
serialized per quiz.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Generator

import structlog

from assessment.config.app_config import load_app_config
from assessment.core.aggregator import (
    GradingDetail,
    apply_total_points,
    question_results,
    submission_max_score,
)
from assessment.core.attempt_gate import AttemptDecision, check_attempt
from assessment.core.errors import (
    InvitationNotFoundError,
    QuizNotFoundError,
    SubmissionNotFoundError,
)
from assessment.core.invitations import (
    Invitation,
    accept,
    complete,
    ensure_removable,
    new_invitation,
    normalize_email,
    validate_email,
)
from assessment.core.manual_grading import reconcile, seed_overrides
from assessment.core.notifications import (
    LoggingNotifier,
    Notification,
    invite_notification,
    submission_notification,
)
from assessment.core.ports import Notifier, QuizStore
from assessment.core.question_import import ImportResult, import_questions
from assessment.core.questions import Question
from assessment.core.quiz import Quiz, QuizSettings, presented_questions
from assessment.core.reports import (
    QuizHistoryItem,
    StudentStats,
    StudentSubmissionSummary,
    student_history,
    student_stats,
    summarize_by_student,
)
from assessment.core.submissions import (
    StudentIdentity,
    StudentView,
    Submission,
    create_submission,
    passed,
    student_view,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class StartResult:
    """Outcome of opening a new attempt."""

    decision: AttemptDecision
    questions: list[Question] = field(default_factory=list)
    time_limit_minutes: int = 0
    deadline: str | None = None

    @property
    def allowed(self) -> bool:
        return self.decision.allowed


@dataclass
class SubmitResult:
    """Outcome of a submission.

    A blocked attempt is an expected outcome, not an error: no
    submission is created and ``blocked`` is True.
    """

    success: bool
    submission: Submission | None
    decision: AttemptDecision
    message: str
    blocked: bool = False
    max_score: int | None = None


@dataclass
class InviteResult:
    created: list[Invitation] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)


@dataclass
class StudentProfileReport:
    history: list[QuizHistoryItem]
    stats: StudentStats


@dataclass
class SubmissionReview:
    """Teacher-side view of one submission."""

    submission: Submission
    quiz: Quiz
    results: list[GradingDetail]
    max_score: int
    passed: bool | None


# =============================================================================
# SERVICE
# =============================================================================


class AssessmentService:
    """Entry point for every engine operation."""

    def __init__(self, store: QuizStore, notifier: Notifier | None = None):
        self.store = store
        self.notifier = notifier
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _quiz_lock(self, quiz_id: str) -> Generator[None, None, None]:
        with self._locks_guard:
            lock = self._locks.setdefault(quiz_id, threading.Lock())
        with lock:
            yield

    def _require_quiz(self, quiz_id: str) -> Quiz:
        quiz = self.store.load_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(quiz_id)
        return quiz

    def _require_submission(self, submission_id: str) -> Submission:
        submission = self.store.load_submission(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        return submission

    def _dispatch(self, notification: Notification) -> None:
        """Send a notification; failures are logged and never propagate."""
        if self.notifier is None:
            return
        try:
            self.notifier.notify(notification)
        except Exception as e:
            logger.warning(
                "notification_failed",
                notification_type=notification.type.value,
                recipient=notification.recipient,
                error=str(e),
            )

    # -------------------------------------------------------------------------
    # Quizzes
    # -------------------------------------------------------------------------

    def create_quiz(
        self,
        quiz_id: str,
        title: str,
        questions: list[Question] | None = None,
        settings: QuizSettings | None = None,
        teacher_id: str = "",
        description: str = "",
    ) -> Quiz:
        quiz = Quiz(
            id=quiz_id,
            title=title,
            questions=list(questions or []),
            settings=settings or QuizSettings.from_defaults(),
            teacher_id=teacher_id,
            description=description,
        )
        with self.store.transaction():
            self.store.save_quiz(quiz)
        logger.info("quiz_created", quiz_id=quiz_id, questions=len(quiz.questions))
        return quiz

    def import_questions(self, quiz_id: str, payload: str) -> ImportResult:
        """Append generated questions to a quiz.

        Raises:
            QuizNotFoundError: If the quiz does not exist
            QuestionImportError: If the payload holds no JSON object
        """
        with self._quiz_lock(quiz_id), self.store.transaction():
            quiz = self._require_quiz(quiz_id)
            result = import_questions(payload, id_prefix=f"{quiz_id}-r{quiz.revision:02d}")
            # Question ids must stay unique within the quiz
            taken = {q.id for q in quiz.questions}
            fresh = []
            for q in result.questions:
                if q.id in taken:
                    q = replace(q, id=f"{q.id}-r{quiz.revision:02d}")
                taken.add(q.id)
                fresh.append(q)
            result.questions = fresh
            if fresh:
                quiz = replace(
                    quiz,
                    questions=quiz.questions + fresh,
                    revision=quiz.revision + 1,
                )
                self.store.save_quiz(quiz)
        return result

    def set_total_points(self, quiz_id: str, target_total: int) -> Quiz:
        """Redistribute a quiz's points. Forward-only: submissions keep their scores."""
        with self._quiz_lock(quiz_id), self.store.transaction():
            quiz = self._require_quiz(quiz_id)
            updated = apply_total_points(quiz, target_total)
            if updated is not quiz:
                self.store.save_quiz(updated)
        return updated

    # -------------------------------------------------------------------------
    # Attempts and submissions
    # -------------------------------------------------------------------------

    def start_attempt(
        self,
        quiz_id: str,
        student: StudentIdentity,
        seed: int | str | None = None,
    ) -> StartResult:
        """Check the attempt gate and hand out the questions to present.

        Resolving an invited identity here accepts its invitation.
        """
        with self.store.transaction():
            quiz = self._require_quiz(quiz_id)
            used = self.store.count_attempts(quiz_id, student.student_id)
            decision = check_attempt(used, quiz.settings.max_attempts)
            if student.email:
                self._accept(quiz_id, student.email)

        if not decision.allowed:
            logger.info(
                "attempt_blocked",
                quiz_id=quiz_id,
                student_id=student.student_id,
                attempts_used=used,
            )
            return StartResult(decision=decision)

        now = datetime.now(timezone.utc)
        limit = quiz.settings.time_limit_minutes
        return StartResult(
            decision=decision,
            questions=presented_questions(quiz, seed),
            time_limit_minutes=limit,
            deadline=(now + timedelta(minutes=limit)).isoformat() if limit > 0 else None,
        )

    def submit(
        self,
        quiz_id: str,
        student: StudentIdentity,
        answers: dict[str, Any],
        timed_out: bool = False,
    ) -> SubmitResult:
        """Record an attempt.

        A timed-out attempt is submitted with whatever answers exist.

        Raises:
            QuizNotFoundError: If the quiz does not exist
            sqlite3.Error (or the store's error): The submission is not recorded
        """
        with self._quiz_lock(quiz_id), self.store.transaction():
            quiz = self._require_quiz(quiz_id)
            used = self.store.count_attempts(quiz_id, student.student_id)
            decision = check_attempt(used, quiz.settings.max_attempts)
            if not decision.allowed:
                logger.info(
                    "submission_blocked",
                    quiz_id=quiz_id,
                    student_id=student.student_id,
                    attempts_used=used,
                )
                return SubmitResult(
                    success=False,
                    submission=None,
                    decision=decision,
                    message=f"Has alcanzado el número máximo de intentos ({decision.max_attempts})",
                    blocked=True,
                )

            submission = create_submission(quiz, student, answers, timed_out=timed_out)
            self.store.save_submission(submission)

            if student.email:
                invitation = self.store.find_invitation(quiz_id, student.email)
                if invitation is not None and complete(invitation):
                    self.store.save_invitation(invitation)

        logger.info(
            "submission_recorded",
            submission_id=submission.id,
            quiz_id=quiz_id,
            student_id=student.student_id,
            status=submission.status.value,
            timed_out=timed_out,
        )

        if quiz.teacher_id:
            self._dispatch(
                submission_notification(
                    quiz.teacher_id, quiz.id, quiz.title, student.name or student.email
                )
            )

        return SubmitResult(
            success=True,
            submission=submission,
            decision=check_attempt(used + 1, quiz.settings.max_attempts),
            message="Entrega registrada",
            max_score=submission_max_score(submission, quiz),
        )

    def review(self, submission_id: str) -> SubmissionReview:
        submission = self._require_submission(submission_id)
        quiz = self._require_quiz(submission.quiz_id)
        return SubmissionReview(
            submission=submission,
            quiz=quiz,
            results=question_results(submission, quiz),
            max_score=submission_max_score(submission, quiz) or 0,
            passed=passed(submission, quiz),
        )

    def grading_form(self, submission_id: str) -> dict[str, int]:
        """Initial per-question points for the manual grading form."""
        submission = self._require_submission(submission_id)
        quiz = self._require_quiz(submission.quiz_id)
        return seed_overrides(submission, quiz)

    def grade_submission(self, submission_id: str, overrides: dict[str, int]) -> Submission:
        """Apply manual grading and publish the result."""
        submission = self._require_submission(submission_id)
        with self._quiz_lock(submission.quiz_id), self.store.transaction():
            submission = self._require_submission(submission_id)
            quiz = self._require_quiz(submission.quiz_id)
            reconcile(submission, quiz, overrides)
            self.store.save_submission(submission)
        return submission

    def student_results(self, student_id: str) -> list[StudentView]:
        """What a student sees of each of their submissions."""
        views = []
        quizzes: dict[str, Quiz | None] = {}
        for submission in self.store.load_student_submissions(student_id):
            if submission.quiz_id not in quizzes:
                quizzes[submission.quiz_id] = self.store.load_quiz(submission.quiz_id)
            maximum = submission_max_score(submission, quizzes[submission.quiz_id])
            views.append(student_view(submission, maximum))
        return views

    def quiz_results(self, quiz_id: str) -> list[StudentSubmissionSummary]:
        self._require_quiz(quiz_id)
        return summarize_by_student(self.store.load_submissions(quiz_id))

    # -------------------------------------------------------------------------
    # Invitations
    # -------------------------------------------------------------------------

    def invite(self, quiz_id: str, emails: list[str], names: dict[str, str] | None = None) -> InviteResult:
        """Invite students by email. Existing invitations are left untouched."""
        names = {normalize_email(k): v for k, v in (names or {}).items()}
        result = InviteResult()

        with self.store.transaction():
            quiz = self._require_quiz(quiz_id)
            for raw in emails:
                email = normalize_email(raw)
                if not validate_email(email):
                    result.invalid.append(raw)
                    continue
                if email in result.skipped or any(i.email == email for i in result.created):
                    continue
                if self.store.find_invitation(quiz_id, email) is not None:
                    result.skipped.append(email)
                    continue
                invitation = new_invitation(quiz_id, email, names.get(email, ""))
                self.store.save_invitation(invitation)
                result.created.append(invitation)

        logger.info(
            "students_invited",
            quiz_id=quiz_id,
            created=len(result.created),
            skipped=len(result.skipped),
            invalid=len(result.invalid),
        )

        for invitation in result.created:
            self._dispatch(invite_notification(invitation.email, quiz.id, quiz.title))

        return result

    def _accept(self, quiz_id: str, email: str) -> Invitation | None:
        invitation = self.store.find_invitation(quiz_id, email)
        if invitation is not None and accept(invitation):
            self.store.save_invitation(invitation)
        return invitation

    def accept_invitation(self, quiz_id: str, email: str) -> Invitation | None:
        """Accept the invitation for this identity; no-op past PENDING."""
        with self.store.transaction():
            return self._accept(quiz_id, email)

    def remove_invitation(self, invitation_id: str) -> None:
        """Delete a PENDING invitation.

        Raises:
            InvitationNotFoundError: If it does not exist
            InvitationLockedError: If it was already accepted or completed
        """
        with self.store.transaction():
            invitation = self.store.load_invitation(invitation_id)
            if invitation is None:
                raise InvitationNotFoundError(invitation_id)
            ensure_removable(invitation)
            self.store.delete_invitation(invitation_id)
        logger.info("invitation_removed", invitation_id=invitation_id)

    def student_profile(self, student_id: str, email: str) -> StudentProfileReport:
        """History and statistics for one student."""
        invitations = self.store.load_invitations_for_email(email)
        submissions = self.store.load_student_submissions(student_id)
        quizzes = {}
        for inv in invitations:
            quiz = self.store.load_quiz(inv.quiz_id)
            if quiz is not None:
                quizzes[quiz.id] = quiz
        history = student_history(invitations, submissions, quizzes)
        return StudentProfileReport(history=history, stats=student_stats(history))


# =============================================================================
# FACTORY
# =============================================================================


def build_service(db_path: Path | None = None) -> AssessmentService:
    """Service wired from application config.

    Args:
        db_path: Database file. Defaults to the configured path
    """
    from assessment.db import DatabaseNotifier, SqliteQuizStore, init_db

    config = load_app_config()
    path = init_db(db_path)

    notifier: Notifier | None = None
    if config.notifications.enabled:
        if config.notifications.backend == "database":
            notifier = DatabaseNotifier(path)
        else:
            notifier = LoggingNotifier()

    return AssessmentService(SqliteQuizStore(path), notifier)
