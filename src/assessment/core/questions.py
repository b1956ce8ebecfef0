"""Question model.

Responsibilities:
- Define the ten question kinds and the canonical shape of their answers
- Decide whether a question can be scored automatically
- Normalize and validate stored correct answers (never raises on bad data)

Answer shapes:
- choice:     correct_answer is the text of one option
- choice_set: correct_answer is a comma-joined list of options
- text:       correct_answer is free text
- numeric:    correct_answer is a number encoded as text
- ordering:   correct_answer is the ordered sequence joined by ", "
- matching:   correct_answer is a JSON object item -> match
- manual:     no automatic comparison (ESSAY)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

import structlog

logger = structlog.get_logger(__name__)

AnswerShape = Literal["choice", "choice_set", "text", "numeric", "ordering", "matching", "manual"]

ORDERING_SEPARATOR = ", "


class QuestionType(str, Enum):
    """Supported question kinds."""

    TRUE_FALSE = "TRUE_FALSE"
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SHORT_ANSWER = "SHORT_ANSWER"
    FILL_BLANK = "FILL_BLANK"
    MATCHING = "MATCHING"
    ORDERING = "ORDERING"
    ESSAY = "ESSAY"
    NUMERICAL = "NUMERICAL"
    GRAPHICAL = "GRAPHICAL"


_SHAPES: dict[QuestionType, AnswerShape] = {
    QuestionType.TRUE_FALSE: "choice",
    QuestionType.SINGLE_CHOICE: "choice",
    QuestionType.MULTIPLE_CHOICE: "choice_set",
    QuestionType.SHORT_ANSWER: "text",
    QuestionType.FILL_BLANK: "text",
    QuestionType.MATCHING: "matching",
    QuestionType.ORDERING: "ordering",
    QuestionType.ESSAY: "manual",
    QuestionType.NUMERICAL: "numeric",
}


@dataclass
class Question:
    """A single assessable item.

    The id must survive edits: submissions reference questions by id.
    """

    id: str
    type: QuestionType
    text: str = ""
    options: list[str] = field(default_factory=list)
    correct_answer: str | None = None
    points: int = 1
    explanation: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "text": self.text,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "points": self.points,
        }
        if self.explanation:
            result["explanation"] = self.explanation
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        """Build a question from a stored or generated dictionary.

        Raises:
            ValueError: If the type is not a known QuestionType
            KeyError: If id or type are missing
        """
        raw_type = data["type"]
        if isinstance(raw_type, QuestionType):
            q_type = raw_type
        else:
            q_type = QuestionType(str(raw_type).strip().upper())
        options = data.get("options") or []
        return cls(
            id=str(data["id"]),
            type=q_type,
            text=data.get("text", ""),
            options=[str(o) for o in options],
            correct_answer=normalize_correct_answer(q_type, data.get("correct_answer")),
            points=int(data.get("points", 1)),
            explanation=data.get("explanation") or "",
        )


# =============================================================================
# SHAPE RULES
# =============================================================================


def answer_shape(question: Question) -> AnswerShape:
    """Return the answer shape that drives scoring for this question.

    GRAPHICAL questions score as a choice when they carry options and
    as free text otherwise.
    """
    if question.type == QuestionType.GRAPHICAL:
        return "choice" if question.options else "text"
    return _SHAPES[question.type]


def is_auto_scoreable(question: Question) -> bool:
    """ESSAY questions always require manual review."""
    return answer_shape(question) != "manual"


def requires_manual_review(questions: list[Question]) -> bool:
    """True if any question in the list cannot be auto-scored."""
    return any(not is_auto_scoreable(q) for q in questions)


def normalize_correct_answer(q_type: QuestionType, value: Any) -> str | None:
    """Coerce a correct answer into its canonical string encoding.

    Generated content sometimes ships mappings or lists instead of the
    string encodings; those are converted. Anything else is stringified.
    """
    if value is None:
        return None
    if q_type == QuestionType.MATCHING and isinstance(value, dict):
        return json.dumps({str(k): str(v) for k, v in value.items()}, ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        return ORDERING_SEPARATOR.join(str(v) for v in value)
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


def decode_matching_answer(correct_answer: str | None) -> dict[str, str] | None:
    """Decode a MATCHING correct answer.

    Returns:
        Mapping item -> match, or None if the stored value is not a JSON object
    """
    if not correct_answer:
        return None
    try:
        decoded = json.loads(correct_answer)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(decoded, dict):
        return None
    return {str(k): str(v) for k, v in decoded.items()}


def matching_pairs(question: Question) -> list[tuple[str, str]]:
    """Split flattened MATCHING options into (item, match) pairs.

    Even indices are items and odd indices are matches. A trailing item
    without a match is dropped.
    """
    items = question.options[0::2]
    matches = question.options[1::2]
    return list(zip(items, matches))


def split_ordering(correct_answer: str | None) -> list[str]:
    """Split an ORDERING correct answer into its sequence."""
    if not correct_answer:
        return []
    return [part.strip() for part in correct_answer.split(",")]


# =============================================================================
# VALIDATION
# =============================================================================


def validate_question(question: Question) -> list[str]:
    """Check that a question's options and correct answer match its shape.

    Never raises. An empty list means the question is well formed.
    """
    warnings: list[str] = []

    if question.points < 1:
        warnings.append(f"{question.id}: puntos deben ser positivos ({question.points})")

    shape = answer_shape(question)
    if shape == "manual":
        return warnings

    correct = question.correct_answer
    if correct is None or not str(correct).strip():
        warnings.append(f"{question.id}: falta correct_answer")
        return warnings

    normalized_options = [o.strip().lower() for o in question.options]

    if shape == "choice":
        if not question.options:
            warnings.append(f"{question.id}: pregunta de opción sin opciones")
        elif correct.strip().lower() not in normalized_options:
            warnings.append(f"{question.id}: correct_answer no coincide con ninguna opción")

    elif shape == "choice_set":
        if not question.options:
            warnings.append(f"{question.id}: pregunta de opción múltiple sin opciones")
        else:
            for part in split_ordering(correct):
                if part.lower() not in normalized_options:
                    warnings.append(f"{question.id}: '{part}' no es una opción válida")

    elif shape == "numeric":
        try:
            float(correct)
        except ValueError:
            warnings.append(f"{question.id}: correct_answer no es numérico ({correct!r})")

    elif shape == "ordering":
        sequence = split_ordering(correct)
        if question.options and sorted(sequence) != sorted(o.strip() for o in question.options):
            warnings.append(f"{question.id}: el orden correcto no usa las mismas opciones")

    elif shape == "matching":
        mapping = decode_matching_answer(correct)
        if mapping is None:
            warnings.append(f"{question.id}: correct_answer de emparejamiento no es JSON válido")
        else:
            if len(question.options) % 2 != 0:
                warnings.append(f"{question.id}: opciones de emparejamiento incompletas")
            items = {item for item, _ in matching_pairs(question)}
            if items and set(mapping) != items:
                warnings.append(f"{question.id}: los elementos no coinciden con las opciones")

    return warnings
