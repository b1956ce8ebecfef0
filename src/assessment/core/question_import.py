"""Import of generated questions.

Responsibilities:
- Parse the content-generation payload ({"questions": [...]}) from raw text
- Normalize each entry into a Question with a stable id
- Collect shape warnings instead of failing on individual bad entries

The payload may arrive as plain JSON, inside a ```json fenced block, or
surrounded by other text.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterator

import structlog

from assessment.core.errors import QuestionImportError
from assessment.core.questions import (
    Question,
    QuestionType,
    normalize_correct_answer,
    validate_question,
)

logger = structlog.get_logger(__name__)

SANITIZE_PATTERNS = [
    re.compile(r"<think>[\s\S]*?</think>", re.IGNORECASE),
    re.compile(r"<analysis>[\s\S]*?</analysis>", re.IGNORECASE),
    re.compile(r"<reasoning>[\s\S]*?</reasoning>", re.IGNORECASE),
]

FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


@dataclass
class ImportResult:
    """Questions parsed from a payload plus non-fatal warnings."""

    questions: list[Question]
    warnings: list[str] = field(default_factory=list)
    skipped: int = 0


def sanitize_output(text: str) -> str:
    """Remove reasoning blocks some models emit before the JSON."""
    result = text
    for pattern in SANITIZE_PATTERNS:
        result = pattern.sub("", result)
    return result.strip()


def _payload_candidates(text: str) -> Iterator[str]:
    """Places a payload may sit in: the whole text, fenced blocks, the outer braces."""
    yield text
    for match in FENCED_BLOCK.finditer(text):
        yield match.group(1)
    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        yield text[start:end]


def extract_payload(text: str) -> dict[str, Any] | None:
    """Find the question payload in generated text.

    The first candidate that decodes to an object with a "questions" key
    wins. Other JSON (a bare list, an unrelated object) is not a payload.
    """
    cleaned = sanitize_output(text)
    for candidate in _payload_candidates(cleaned):
        try:
            decoded = json.loads(candidate.strip())
        except json.JSONDecodeError:
            continue
        if isinstance(decoded, dict) and "questions" in decoded:
            return decoded

    logger.warning("question_payload_not_found", preview=cleaned[:100])
    return None


def _parse_type(raw_type: Any) -> QuestionType | None:
    try:
        return QuestionType(str(raw_type).strip().upper())
    except ValueError:
        return None


def _parse_points(raw_points: Any) -> int:
    try:
        points = int(float(raw_points))
    except (TypeError, ValueError):
        return 1
    return max(1, points)


def parse_questions(raw_data: dict[str, Any], id_prefix: str) -> ImportResult:
    """Build questions from a decoded payload.

    Args:
        raw_data: Decoded payload with a "questions" list
        id_prefix: Prefix for generated ids ({id_prefix}-q{NN})

    Returns:
        ImportResult with the valid questions and warnings
    """
    warnings: list[str] = []
    questions: list[Question] = []
    skipped = 0

    raw_questions = raw_data.get("questions", [])
    if not isinstance(raw_questions, list):
        logger.warning("raw_questions_not_list", received_type=type(raw_questions).__name__)
        raw_questions = []

    for i, q_data in enumerate(raw_questions, 1):
        # Guard: skip non-dict entries (e.g. ["Q1", "Q2"])
        if not isinstance(q_data, dict):
            logger.warning(
                "question_entry_not_dict",
                index=i,
                received_type=type(q_data).__name__,
            )
            warnings.append(f"Entrada #{i} ignorada: no es un objeto")
            skipped += 1
            continue

        q_type = _parse_type(q_data.get("type"))
        if q_type is None:
            warnings.append(
                f"Entrada #{i}: tipo desconocido {q_data.get('type')!r}, se usa SHORT_ANSWER"
            )
            q_type = QuestionType.SHORT_ANSWER

        options = q_data.get("options") or []
        if not isinstance(options, list):
            options = []

        question = Question(
            id=str(q_data.get("id") or f"{id_prefix}-q{i:02d}"),
            type=q_type,
            text=str(q_data.get("text", "")),
            options=[str(o) for o in options],
            correct_answer=normalize_correct_answer(q_type, q_data.get("correct_answer")),
            points=_parse_points(q_data.get("points", 1)),
            explanation=str(q_data.get("explanation") or ""),
        )
        warnings.extend(validate_question(question))
        questions.append(question)

    return ImportResult(questions=questions, warnings=warnings, skipped=skipped)


def import_questions(text: str, id_prefix: str) -> ImportResult:
    """Parse a raw generation payload into questions.

    Raises:
        QuestionImportError: If the text holds no {"questions": ...} object
    """
    raw_data = extract_payload(text)
    if raw_data is None:
        raise QuestionImportError("No se encontró un objeto con 'questions' en la respuesta generada")

    result = parse_questions(raw_data, id_prefix)
    logger.info(
        "questions_imported",
        id_prefix=id_prefix,
        count=len(result.questions),
        skipped=result.skipped,
        warnings=len(result.warnings),
    )
    return result
