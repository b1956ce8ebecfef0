"""Repository functions for the notifications table.

DatabaseNotifier stores notifications so recipients can read them later.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import structlog

from assessment.core.notifications import Notification, NotificationType
from assessment.db.database import get_db

logger = structlog.get_logger(__name__)


class DatabaseNotifier:
    """Notifier that inserts one row per notification."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    def notify(self, notification: Notification) -> None:
        """Store a notification.

        Raises:
            sqlite3.Error: On database failure (the service swallows it)
        """
        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO notifications (
                    notification_id, recipient, type, title, message,
                    quiz_id, related_user_name, is_read, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    notification.id,
                    notification.recipient,
                    notification.type.value,
                    notification.title,
                    notification.message,
                    notification.quiz_id,
                    notification.related_user_name,
                    int(notification.is_read),
                    notification.created_at,
                ),
            )

        logger.debug(
            "notifications.inserted",
            notification_id=notification.id,
            recipient=notification.recipient,
        )


def list_notifications(recipient: str, db_path: Path | None = None) -> list[Notification]:
    """Notifications for a recipient, newest first."""
    with get_db(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM notifications WHERE recipient = ? ORDER BY created_at DESC",
            (recipient,),
        ).fetchall()
    return [_row_to_notification(r) for r in rows]


def mark_as_read(notification_id: str, db_path: Path | None = None) -> bool:
    with get_db(db_path) as conn:
        cursor = conn.execute(
            "UPDATE notifications SET is_read = 1 WHERE notification_id = ?",
            (notification_id,),
        )
        return cursor.rowcount > 0


def _row_to_notification(row: sqlite3.Row) -> Notification:
    return Notification(
        id=row["notification_id"],
        recipient=row["recipient"],
        type=NotificationType(row["type"]),
        title=row["title"],
        message=row["message"],
        quiz_id=row["quiz_id"],
        related_user_name=row["related_user_name"],
        is_read=bool(row["is_read"]),
        created_at=row["created_at"],
    )
