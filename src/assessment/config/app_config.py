"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
and falls back to built-in defaults when the file is missing.

Usage:
    from assessment.config.app_config import load_app_config

    config = load_app_config()
    defaults = config.quiz_defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

# Environment override for the database location
DB_PATH_ENV = "ASSESSMENT_DB_PATH"


@dataclass
class QuizDefaults:
    """Settings applied to quizzes that do not define their own."""

    time_limit_minutes: int = 10
    passing_score: int = 60
    max_attempts: int = 3
    shuffle_questions: bool = True
    show_results_immediately: bool = True
    grading_mode: str = "AUTO"


@dataclass
class DatabaseConfig:
    """SQLite database location."""

    path: str = "db/assessment.db"

    def resolve_path(self) -> Path:
        """Database path, honoring the ASSESSMENT_DB_PATH override."""
        return Path(os.environ.get(DB_PATH_ENV) or self.path)


@dataclass
class NotificationConfig:
    """Notification dispatch settings."""

    enabled: bool = True
    backend: str = "database"  # database | log


@dataclass
class AppConfig:
    """Application-wide configuration."""

    quiz_defaults: QuizDefaults = field(default_factory=QuizDefaults)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "quiz_defaults": {
            "time_limit_minutes": 10,
            "passing_score": 60,
            "max_attempts": 3,
            "shuffle_questions": True,
            "show_results_immediately": True,
            "grading_mode": "AUTO",
        },
        "database": {
            "path": "db/assessment.db",
        },
        "notifications": {
            "enabled": True,
            "backend": "database",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = QuizDefaults()
    quiz_data = data.get("quiz_defaults") or {}
    grading_mode = str(quiz_data.get("grading_mode", defaults.grading_mode)).upper()
    if grading_mode not in ("AUTO", "MANUAL"):
        logger.warning("invalid_grading_mode_in_config", value=grading_mode)
        grading_mode = defaults.grading_mode

    quiz_defaults = QuizDefaults(
        time_limit_minutes=int(quiz_data.get("time_limit_minutes", defaults.time_limit_minutes)),
        passing_score=int(quiz_data.get("passing_score", defaults.passing_score)),
        max_attempts=int(quiz_data.get("max_attempts", defaults.max_attempts)),
        shuffle_questions=bool(quiz_data.get("shuffle_questions", defaults.shuffle_questions)),
        show_results_immediately=bool(
            quiz_data.get("show_results_immediately", defaults.show_results_immediately)
        ),
        grading_mode=grading_mode,
    )

    db_data = data.get("database") or {}
    database = DatabaseConfig(path=db_data.get("path", DatabaseConfig.path))

    notif_data = data.get("notifications") or {}
    notifications = NotificationConfig(
        enabled=bool(notif_data.get("enabled", True)),
        backend=notif_data.get("backend", "database"),
    )

    return AppConfig(
        quiz_defaults=quiz_defaults,
        database=database,
        notifications=notifications,
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
