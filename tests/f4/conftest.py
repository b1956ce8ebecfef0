"""Fixtures for F4 tests - CLI and Web API."""

import json

import pytest

from assessment.config.app_config import DB_PATH_ENV, clear_config_cache
from assessment.web.services import reset_service


@pytest.fixture(autouse=True)
def isolated_state():
    """Fresh config and service for every test."""
    clear_config_cache()
    reset_service()
    yield
    reset_service()
    clear_config_cache()


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "db" / "assessment.db"
    monkeypatch.setenv(DB_PATH_ENV, str(path))
    return path


@pytest.fixture
def cli_env(db_path) -> dict[str, str]:
    return {DB_PATH_ENV: str(db_path)}


@pytest.fixture
def questions_payload() -> dict:
    return {
        "questions": [
            {
                "id": "q1",
                "type": "SHORT_ANSWER",
                "text": "Capital de España",
                "correct_answer": "Madrid",
                "points": 2,
            },
            {
                "id": "q2",
                "type": "NUMERICAL",
                "text": "6 x 7",
                "correct_answer": 42,
                "points": 3,
            },
        ]
    }


@pytest.fixture
def payload_file(tmp_path, questions_payload):
    path = tmp_path / "payload.txt"
    path.write_text(
        "Aquí están las preguntas:\n```json\n" + json.dumps(questions_payload) + "\n```\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def answers_file(tmp_path):
    path = tmp_path / "answers.json"
    path.write_text(json.dumps({"answers": {"q1": "madrid", "q2": "41"}}), encoding="utf-8")
    return path
