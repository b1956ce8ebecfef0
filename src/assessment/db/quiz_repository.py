"""SQLite implementation of the QuizStore collaborator.

Every public method runs in its own transaction unless it is called
inside ``store.transaction()``, in which case all calls share one
connection and commit (or roll back) together.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from assessment.core.aggregator import GradingDetail
from assessment.core.errors import InvalidTransitionError
from assessment.core.invitations import Invitation, InvitationStatus, is_forward, normalize_email
from assessment.core.questions import Question, QuestionType
from assessment.core.quiz import Quiz, QuizSettings, QuizStatus
from assessment.core.submissions import Submission, SubmissionStatus
from assessment.db.database import get_db

logger = structlog.get_logger(__name__)


class SqliteQuizStore:
    """Quizzes, submissions and invitations stored in SQLite."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path
        self._local = threading.local()

    # =========================================================================
    # CONNECTIONS
    # =========================================================================

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        """Run the enclosed calls as one atomic unit."""
        if getattr(self._local, "conn", None) is not None:
            # Nested: join the outer transaction
            yield
            return

        with get_db(self.db_path) as conn:
            self._local.conn = conn
            try:
                yield
            finally:
                self._local.conn = None

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            yield conn
            return
        with get_db(self.db_path) as conn:
            yield conn

    # =========================================================================
    # QUIZZES
    # =========================================================================

    def save_quiz(self, quiz: Quiz) -> None:
        """Insert or replace a quiz with its questions in order."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO quizzes (
                    quiz_id, teacher_id, title, description, status,
                    settings, revision, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(quiz_id) DO UPDATE SET
                    teacher_id = excluded.teacher_id,
                    title = excluded.title,
                    description = excluded.description,
                    status = excluded.status,
                    settings = excluded.settings,
                    revision = excluded.revision
                """,
                (
                    quiz.id,
                    quiz.teacher_id,
                    quiz.title,
                    quiz.description,
                    quiz.status.value,
                    json.dumps(quiz.settings.to_dict()),
                    quiz.revision,
                    quiz.created_at,
                ),
            )
            conn.execute("DELETE FROM questions WHERE quiz_id = ?", (quiz.id,))
            conn.executemany(
                """
                INSERT INTO questions (
                    quiz_id, question_id, position, type, text,
                    options, correct_answer, points, explanation
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        quiz.id,
                        q.id,
                        position,
                        q.type.value,
                        q.text,
                        json.dumps(q.options, ensure_ascii=False),
                        q.correct_answer,
                        q.points,
                        q.explanation,
                    )
                    for position, q in enumerate(quiz.questions)
                ],
            )

        logger.debug("quizzes.saved", quiz_id=quiz.id, revision=quiz.revision)

    def load_quiz(self, quiz_id: str) -> Quiz | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM quizzes WHERE quiz_id = ?", (quiz_id,)
            ).fetchone()
            if row is None:
                return None
            question_rows = conn.execute(
                "SELECT * FROM questions WHERE quiz_id = ? ORDER BY position",
                (quiz_id,),
            ).fetchall()

        return _row_to_quiz(row, question_rows)

    def list_quizzes(self) -> list[Quiz]:
        with self._connect() as conn:
            ids = [
                r["quiz_id"]
                for r in conn.execute("SELECT quiz_id FROM quizzes ORDER BY created_at DESC").fetchall()
            ]
        return [q for q in (self.load_quiz(quiz_id) for quiz_id in ids) if q is not None]

    # =========================================================================
    # SUBMISSIONS
    # =========================================================================

    def save_submission(self, submission: Submission) -> None:
        """Insert a submission or update its grade fields."""
        grading_details = (
            json.dumps([d.to_dict() for d in submission.grading_details])
            if submission.grading_details is not None
            else None
        )
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO submissions (
                    submission_id, quiz_id, student_id, student_email, student_name,
                    answers, score, status, grading_details, quiz_revision,
                    timed_out, submitted_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(submission_id) DO UPDATE SET
                    score = excluded.score,
                    status = excluded.status,
                    grading_details = excluded.grading_details
                """,
                (
                    submission.id,
                    submission.quiz_id,
                    submission.student_id,
                    submission.student_email,
                    submission.student_name,
                    json.dumps(submission.answers, ensure_ascii=False),
                    submission.score,
                    submission.status.value,
                    grading_details,
                    submission.quiz_revision,
                    int(submission.timed_out),
                    submission.submitted_at,
                ),
            )

        logger.debug("submissions.saved", submission_id=submission.id, status=submission.status.value)

    def load_submission(self, submission_id: str) -> Submission | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM submissions WHERE submission_id = ?", (submission_id,)
            ).fetchone()
        return _row_to_submission(row) if row else None

    def load_submissions(self, quiz_id: str) -> list[Submission]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM submissions WHERE quiz_id = ? ORDER BY submitted_at",
                (quiz_id,),
            ).fetchall()
        return [_row_to_submission(r) for r in rows]

    def load_student_submissions(self, student_id: str) -> list[Submission]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM submissions WHERE student_id = ? ORDER BY submitted_at",
                (student_id,),
            ).fetchall()
        return [_row_to_submission(r) for r in rows]

    def count_attempts(self, quiz_id: str, student_id: str) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM submissions WHERE quiz_id = ? AND student_id = ?",
                (quiz_id, student_id),
            ).fetchone()
        return int(row["n"])

    # =========================================================================
    # INVITATIONS
    # =========================================================================

    def save_invitation(self, invitation: Invitation) -> None:
        """Insert or update an invitation.

        Raises:
            InvalidTransitionError: If the stored status is further along
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT status FROM invitations WHERE invitation_id = ?",
                (invitation.id,),
            ).fetchone()
            if row is not None:
                current = InvitationStatus(row["status"])
                if not is_forward(current, invitation.status):
                    raise InvalidTransitionError(
                        "invitation", current.value, invitation.status.value
                    )

            conn.execute(
                """
                INSERT INTO invitations (
                    invitation_id, quiz_id, email, name, status, invited_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(invitation_id) DO UPDATE SET
                    name = excluded.name,
                    status = excluded.status
                """,
                (
                    invitation.id,
                    invitation.quiz_id,
                    invitation.email,
                    invitation.name,
                    invitation.status.value,
                    invitation.invited_at,
                ),
            )

        logger.debug("invitations.saved", invitation_id=invitation.id, status=invitation.status.value)

    def load_invitation(self, invitation_id: str) -> Invitation | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM invitations WHERE invitation_id = ?", (invitation_id,)
            ).fetchone()
        return _row_to_invitation(row) if row else None

    def load_invitations(self, quiz_id: str) -> list[Invitation]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM invitations WHERE quiz_id = ? ORDER BY invited_at",
                (quiz_id,),
            ).fetchall()
        return [_row_to_invitation(r) for r in rows]

    def load_invitations_for_email(self, email: str) -> list[Invitation]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM invitations WHERE email = ? ORDER BY invited_at DESC",
                (normalize_email(email),),
            ).fetchall()
        return [_row_to_invitation(r) for r in rows]

    def find_invitation(self, quiz_id: str, email: str) -> Invitation | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM invitations WHERE quiz_id = ? AND email = ?",
                (quiz_id, normalize_email(email)),
            ).fetchone()
        return _row_to_invitation(row) if row else None

    def delete_invitation(self, invitation_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM invitations WHERE invitation_id = ?", (invitation_id,)
            )
            deleted = cursor.rowcount > 0

        if deleted:
            logger.debug("invitations.deleted", invitation_id=invitation_id)
        return deleted


# =============================================================================
# ROW MAPPING
# =============================================================================


def _row_to_question(row: sqlite3.Row) -> Question:
    return Question(
        id=row["question_id"],
        type=QuestionType(row["type"]),
        text=row["text"],
        options=json.loads(row["options"]) if row["options"] else [],
        correct_answer=row["correct_answer"],
        points=row["points"],
        explanation=row["explanation"],
    )


def _row_to_quiz(row: sqlite3.Row, question_rows: list[sqlite3.Row]) -> Quiz:
    return Quiz(
        id=row["quiz_id"],
        title=row["title"],
        questions=[_row_to_question(r) for r in question_rows],
        settings=QuizSettings.from_dict(json.loads(row["settings"]) if row["settings"] else {}),
        teacher_id=row["teacher_id"],
        description=row["description"],
        status=QuizStatus(row["status"]),
        revision=row["revision"],
        created_at=row["created_at"],
    )


def _row_to_submission(row: sqlite3.Row) -> Submission:
    details = None
    if row["grading_details"]:
        details = [GradingDetail.from_dict(d) for d in json.loads(row["grading_details"])]

    return Submission(
        id=row["submission_id"],
        quiz_id=row["quiz_id"],
        student_id=row["student_id"],
        student_email=row["student_email"],
        student_name=row["student_name"],
        answers=json.loads(row["answers"]) if row["answers"] else {},
        score=row["score"],
        status=SubmissionStatus(row["status"]),
        grading_details=details,
        quiz_revision=row["quiz_revision"],
        timed_out=bool(row["timed_out"]),
        submitted_at=row["submitted_at"],
    )


def _row_to_invitation(row: sqlite3.Row) -> Invitation:
    return Invitation(
        id=row["invitation_id"],
        quiz_id=row["quiz_id"],
        email=row["email"],
        name=row["name"],
        status=InvitationStatus(row["status"]),
        invited_at=row["invited_at"],
    )
