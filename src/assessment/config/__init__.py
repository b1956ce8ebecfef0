"""Configuration package for the assessment engine."""

from assessment.config.app_config import (
    AppConfig,
    DatabaseConfig,
    NotificationConfig,
    QuizDefaults,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "NotificationConfig",
    "QuizDefaults",
    "clear_config_cache",
    "load_app_config",
]
