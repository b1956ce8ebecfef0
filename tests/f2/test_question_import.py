"""Tests for generated question import (F2)."""

import json

import pytest

from assessment.core.errors import QuestionImportError
from assessment.core.question_import import (
    extract_payload,
    import_questions,
    parse_questions,
    sanitize_output,
)
from assessment.core.questions import QuestionType, decode_matching_answer


@pytest.fixture
def payload() -> dict:
    return {
        "questions": [
            {
                "type": "SINGLE_CHOICE",
                "text": "¿Capital de Francia?",
                "options": ["Madrid", "París"],
                "correct_answer": "París",
                "points": 2,
            },
            {
                "type": "MATCHING",
                "text": "Relaciona",
                "options": ["France", "Paris", "Italy", "Rome"],
                "correct_answer": {"France": "Paris", "Italy": "Rome"},
            },
            {
                "type": "ORDERING",
                "text": "Ordena",
                "options": ["A", "B", "C"],
                "correct_answer": ["A", "B", "C"],
                "points": 0,
            },
        ]
    }


class TestExtractPayload:
    """Locating the {"questions": [...]} object in generated text."""

    def test_plain_json(self):
        assert extract_payload('{"questions": []}') == {"questions": []}

    def test_fenced_block(self):
        text = 'Aquí tienes:\n```json\n{"questions": [1]}\n```\nFin'
        assert extract_payload(text) == {"questions": [1]}

    def test_skips_fenced_blocks_without_questions(self):
        text = '```json\n{"nota": "borrador"}\n```\n```json\n{"questions": [2]}\n```'
        assert extract_payload(text) == {"questions": [2]}

    def test_embedded_object(self):
        assert extract_payload('Resultado: {"questions": [3]} gracias') == {"questions": [3]}

    def test_unrelated_object_is_not_a_payload(self):
        assert extract_payload('Resultado: {"a": 1} gracias') is None

    def test_think_block_removed(self):
        assert sanitize_output("<think>hmm {no}</think>{}") == "{}"
        assert extract_payload('<think>{"questions": "no"}</think>{"questions": []}') == {"questions": []}

    def test_no_json(self):
        assert extract_payload("sin json") is None

    def test_top_level_list_is_rejected(self):
        assert extract_payload("[1, 2]") is None


class TestParseQuestions:
    """Normalization of generated entries."""

    def test_normalizes_answers_and_points(self, payload):
        result = parse_questions(payload, "quiz-1")
        assert [q.id for q in result.questions] == ["quiz-1-q01", "quiz-1-q02", "quiz-1-q03"]

        single, matching, ordering = result.questions
        assert single.points == 2
        assert decode_matching_answer(matching.correct_answer) == {"France": "Paris", "Italy": "Rome"}
        assert matching.points == 1
        assert ordering.correct_answer == "A, B, C"
        assert ordering.points == 1

    def test_skips_non_dict_entries(self):
        result = parse_questions({"questions": ["Q1", {"type": "ESSAY", "text": "x"}]}, "p")
        assert result.skipped == 1
        assert len(result.questions) == 1
        assert result.questions[0].id == "p-q02"
        assert any("#1" in w for w in result.warnings)

    def test_unknown_type_becomes_short_answer(self):
        result = parse_questions({"questions": [{"type": "drawing", "correct_answer": "x"}]}, "p")
        assert result.questions[0].type == QuestionType.SHORT_ANSWER
        assert any("tipo desconocido" in w for w in result.warnings)

    def test_keeps_given_ids(self):
        result = parse_questions({"questions": [{"id": "mine", "type": "ESSAY"}]}, "p")
        assert result.questions[0].id == "mine"

    def test_questions_not_a_list(self):
        assert parse_questions({"questions": "nope"}, "p").questions == []


class TestImportQuestions:
    def test_fenced_payload(self, payload):
        text = "```json\n" + json.dumps(payload, ensure_ascii=False) + "\n```"
        result = import_questions(text, "quiz-1")
        assert len(result.questions) == 3

    def test_no_json_raises(self):
        with pytest.raises(QuestionImportError):
            import_questions("No puedo generar preguntas", "quiz-1")
