"""SQLite database connection and schema management.

Provides connection management and schema initialization for the
assessment engine.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from assessment.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

# Current database (module-level for simplicity in CLI context)
_db_path: Path | None = None


def default_db_path() -> Path:
    """Configured database path (honors ASSESSMENT_DB_PATH)."""
    return load_app_config().database.resolve_path()


def init_db(db_path: Path | None = None) -> Path:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to the configured path

    Returns:
        Path of the initialized database
    """
    global _db_path
    _db_path = db_path or default_db_path()

    with get_db(_db_path) as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))
    return _db_path


@contextmanager
def get_db(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Commits when the block exits normally and rolls back on any error,
    so everything done through one connection is a single transaction.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM quizzes").fetchall()
    """
    path = db_path or _db_path or default_db_path()

    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS quizzes (
            quiz_id TEXT PRIMARY KEY,
            teacher_id TEXT NOT NULL DEFAULT '',
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'DRAFT' CHECK(status IN ('DRAFT', 'PUBLISHED', 'ARCHIVED')),
            settings TEXT NOT NULL DEFAULT '{}',
            revision INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- question_id is stable across edits: submissions reference it
        CREATE TABLE IF NOT EXISTS questions (
            quiz_id TEXT NOT NULL REFERENCES quizzes(quiz_id) ON DELETE CASCADE,
            question_id TEXT NOT NULL,
            position INTEGER NOT NULL,
            type TEXT NOT NULL CHECK(type IN (
                'TRUE_FALSE', 'SINGLE_CHOICE', 'MULTIPLE_CHOICE', 'SHORT_ANSWER',
                'FILL_BLANK', 'MATCHING', 'ORDERING', 'ESSAY', 'NUMERICAL', 'GRAPHICAL'
            )),
            text TEXT NOT NULL DEFAULT '',
            options TEXT NOT NULL DEFAULT '[]',
            correct_answer TEXT,
            points INTEGER NOT NULL DEFAULT 1,
            explanation TEXT NOT NULL DEFAULT '',
            PRIMARY KEY (quiz_id, question_id)
        );

        -- Submissions are never deleted by the engine
        CREATE TABLE IF NOT EXISTS submissions (
            submission_id TEXT PRIMARY KEY,
            quiz_id TEXT NOT NULL REFERENCES quizzes(quiz_id),
            student_id TEXT NOT NULL,
            student_email TEXT NOT NULL DEFAULT '',
            student_name TEXT NOT NULL DEFAULT '',
            answers TEXT NOT NULL DEFAULT '{}',
            score INTEGER NOT NULL DEFAULT 0,
            status TEXT NOT NULL CHECK(status IN ('GRADED', 'PENDING_REVIEW')),
            grading_details TEXT,
            quiz_revision INTEGER NOT NULL DEFAULT 1,
            timed_out INTEGER NOT NULL DEFAULT 0,
            submitted_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS invitations (
            invitation_id TEXT PRIMARY KEY,
            quiz_id TEXT NOT NULL REFERENCES quizzes(quiz_id) ON DELETE CASCADE,
            email TEXT NOT NULL,
            name TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'PENDING' CHECK(status IN ('PENDING', 'ACCEPTED', 'COMPLETED')),
            invited_at TEXT NOT NULL,
            UNIQUE (quiz_id, email)
        );

        CREATE TABLE IF NOT EXISTS notifications (
            notification_id TEXT PRIMARY KEY,
            recipient TEXT NOT NULL,
            type TEXT NOT NULL CHECK(type IN ('QUIZ_INVITE', 'QUIZ_SUBMISSION')),
            title TEXT NOT NULL,
            message TEXT NOT NULL,
            quiz_id TEXT,
            related_user_name TEXT NOT NULL DEFAULT '',
            is_read INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        -- Índices
        CREATE INDEX IF NOT EXISTS idx_submissions_quiz_student ON submissions(quiz_id, student_id);
        CREATE INDEX IF NOT EXISTS idx_submissions_student ON submissions(student_id);
        CREATE INDEX IF NOT EXISTS idx_invitations_email ON invitations(email);
        CREATE INDEX IF NOT EXISTS idx_notifications_recipient ON notifications(recipient);
        """
    )
