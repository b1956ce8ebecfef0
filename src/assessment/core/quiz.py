"""Quiz model and settings.

A quiz is an ordered list of questions plus the settings that drive
attempt gating, submission status and result visibility. Every change
to point values bumps ``revision`` so stored submissions keep a record
of the point configuration they were scored against.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from assessment.config.app_config import QuizDefaults, load_app_config
from assessment.core.questions import Question


class GradingMode(str, Enum):
    AUTO = "AUTO"
    MANUAL = "MANUAL"


class QuizStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


def _coerce_mode(value: Any) -> GradingMode:
    if isinstance(value, GradingMode):
        return value
    return GradingMode(str(value).strip().upper())


@dataclass
class QuizSettings:
    """Per-quiz policy."""

    time_limit_minutes: int = 10
    passing_score: int = 60
    max_attempts: int = 3
    grading_mode: GradingMode = GradingMode.AUTO
    show_results_immediately: bool = True
    shuffle_questions: bool = True

    @classmethod
    def from_defaults(cls, defaults: QuizDefaults | None = None) -> QuizSettings:
        """Build settings from configured quiz defaults."""
        if defaults is None:
            defaults = load_app_config().quiz_defaults
        return cls(
            time_limit_minutes=defaults.time_limit_minutes,
            passing_score=defaults.passing_score,
            max_attempts=defaults.max_attempts,
            grading_mode=GradingMode(defaults.grading_mode),
            show_results_immediately=defaults.show_results_immediately,
            shuffle_questions=defaults.shuffle_questions,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "time_limit_minutes": self.time_limit_minutes,
            "passing_score": self.passing_score,
            "max_attempts": self.max_attempts,
            "grading_mode": self.grading_mode.value,
            "show_results_immediately": self.show_results_immediately,
            "shuffle_questions": self.shuffle_questions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> QuizSettings:
        """Merge stored settings over configured defaults."""
        settings = cls.from_defaults()
        if not data:
            return settings
        return replace(
            settings,
            time_limit_minutes=int(data.get("time_limit_minutes", settings.time_limit_minutes)),
            passing_score=int(data.get("passing_score", settings.passing_score)),
            max_attempts=int(data.get("max_attempts", settings.max_attempts)),
            grading_mode=_coerce_mode(data.get("grading_mode", settings.grading_mode)),
            show_results_immediately=bool(
                data.get("show_results_immediately", settings.show_results_immediately)
            ),
            shuffle_questions=bool(data.get("shuffle_questions", settings.shuffle_questions)),
        )


@dataclass
class Quiz:
    """An ordered set of questions with its settings."""

    id: str
    title: str
    questions: list[Question] = field(default_factory=list)
    settings: QuizSettings = field(default_factory=QuizSettings)
    teacher_id: str = ""
    description: str = ""
    status: QuizStatus = QuizStatus.DRAFT
    revision: int = 1
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    @property
    def total_points(self) -> int:
        """Sum of question points. Derived, never stored."""
        return sum(q.points for q in self.questions)

    def get_question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "teacher_id": self.teacher_id,
            "status": self.status.value,
            "revision": self.revision,
            "created_at": self.created_at,
            "settings": self.settings.to_dict(),
            "questions": [q.to_dict() for q in self.questions],
            "total_points": self.total_points,
        }


def presented_questions(quiz: Quiz, seed: int | str | None = None) -> list[Question]:
    """Questions in the order a student sees them.

    Shuffles a copy when the quiz asks for it. Scoring is keyed by
    question id, so presentation order never affects results.
    """
    questions = list(quiz.questions)
    if quiz.settings.shuffle_questions:
        random.Random(seed).shuffle(questions)
    return questions
