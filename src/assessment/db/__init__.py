"""Database module for SQLite persistence.

Provides:
- Database connection management and schema initialization
- SqliteQuizStore: quizzes, questions, submissions, invitations
- DatabaseNotifier: stored notifications
"""

from assessment.db.database import get_db, init_db
from assessment.db.notifications_repository import DatabaseNotifier
from assessment.db.quiz_repository import SqliteQuizStore

__all__ = ["get_db", "init_db", "DatabaseNotifier", "SqliteQuizStore"]
