"""Tests for the assess CLI (F4)."""

import json

from typer.testing import CliRunner

from assessment.cli.commands import app
from assessment.core.invitations import InvitationStatus
from assessment.core.submissions import SubmissionStatus
from assessment.db import SqliteQuizStore

runner = CliRunner()


def _import(cli_env, payload_file, *extra):
    return runner.invoke(
        app,
        ["import-questions", "quiz-cli", "--file", str(payload_file), "--title", "Repaso", "--teacher", "prof-1", *extra],
        env=cli_env,
    )


class TestInitDb:
    def test_creates_database(self, cli_env, db_path):
        result = runner.invoke(app, ["init-db"], env=cli_env)
        assert result.exit_code == 0
        assert db_path.exists()


class TestQuizCommands:
    """import-questions, show-quiz, set-total."""

    def test_import_creates_quiz(self, cli_env, db_path, payload_file):
        result = _import(cli_env, payload_file)
        assert result.exit_code == 0
        assert "2 preguntas importadas" in result.output

        quiz = SqliteQuizStore(db_path).load_quiz("quiz-cli")
        assert quiz.title == "Repaso"
        assert [q.id for q in quiz.questions] == ["q1", "q2"]
        assert quiz.questions[1].correct_answer == "42"

    def test_import_requires_title_for_new_quiz(self, cli_env, payload_file):
        result = runner.invoke(app, ["import-questions", "nuevo", "--file", str(payload_file)], env=cli_env)
        assert result.exit_code == 1
        assert "--title" in result.output

    def test_import_missing_file(self, cli_env, tmp_path):
        result = runner.invoke(
            app, ["import-questions", "quiz-cli", "--file", str(tmp_path / "nope.txt")], env=cli_env
        )
        assert result.exit_code == 1

    def test_show_quiz(self, cli_env, payload_file):
        _import(cli_env, payload_file)
        result = runner.invoke(app, ["show-quiz", "quiz-cli"], env=cli_env)
        assert result.exit_code == 0
        assert "Repaso" in result.output

    def test_show_unknown_quiz(self, cli_env):
        result = runner.invoke(app, ["show-quiz", "nope"], env=cli_env)
        assert result.exit_code == 1

    def test_set_total(self, cli_env, db_path, payload_file):
        _import(cli_env, payload_file)
        result = runner.invoke(app, ["set-total", "quiz-cli", "11"], env=cli_env)
        assert result.exit_code == 0
        assert "11" in result.output
        quiz = SqliteQuizStore(db_path).load_quiz("quiz-cli")
        assert [q.points for q in quiz.questions] == [6, 5]


class TestSubmissionCommands:
    """submit, grade, review, results."""

    def test_submit_scores_answers(self, cli_env, db_path, payload_file, answers_file):
        _import(cli_env, payload_file)
        result = runner.invoke(
            app,
            ["submit", "quiz-cli", "--answers", str(answers_file), "--student", "stu-1"],
            env=cli_env,
        )
        assert result.exit_code == 0
        assert "Entrega registrada" in result.output

        subs = SqliteQuizStore(db_path).load_submissions("quiz-cli")
        assert len(subs) == 1
        assert subs[0].score == 2
        assert subs[0].status == SubmissionStatus.GRADED

    def test_submit_blocked_after_max_attempts(self, cli_env, payload_file, answers_file):
        _import(cli_env, payload_file)
        args = ["submit", "quiz-cli", "--answers", str(answers_file), "--student", "stu-1"]
        for _ in range(3):
            assert runner.invoke(app, args, env=cli_env).exit_code == 0

        result = runner.invoke(app, args, env=cli_env)
        assert result.exit_code == 1
        assert "intentos" in result.output

    def test_submit_invalid_json(self, cli_env, payload_file, tmp_path):
        _import(cli_env, payload_file)
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        result = runner.invoke(
            app, ["submit", "quiz-cli", "--answers", str(bad), "--student", "stu-1"], env=cli_env
        )
        assert result.exit_code == 1

    def test_manual_grading_flow(self, cli_env, db_path, payload_file, answers_file):
        _import(cli_env, payload_file, "--manual")
        runner.invoke(
            app,
            ["submit", "quiz-cli", "--answers", str(answers_file), "--student", "stu-1"],
            env=cli_env,
        )
        store = SqliteQuizStore(db_path)
        sub = store.load_submissions("quiz-cli")[0]
        assert sub.status == SubmissionStatus.PENDING_REVIEW

        result = runner.invoke(app, ["grade", sub.id, "--set", "q2=2"], env=cli_env)
        assert result.exit_code == 0

        graded = store.load_submission(sub.id)
        assert graded.status == SubmissionStatus.GRADED
        assert graded.score == 4

        review = runner.invoke(app, ["review", sub.id], env=cli_env)
        assert review.exit_code == 0
        assert "q2" in review.output

    def test_grade_from_points_file(self, cli_env, db_path, payload_file, answers_file, tmp_path):
        _import(cli_env, payload_file, "--manual")
        runner.invoke(
            app,
            ["submit", "quiz-cli", "--answers", str(answers_file), "--student", "stu-1"],
            env=cli_env,
        )
        store = SqliteQuizStore(db_path)
        sub = store.load_submissions("quiz-cli")[0]
        points = tmp_path / "points.json"
        points.write_text(json.dumps({"q1": 0, "q2": 3}), encoding="utf-8")

        result = runner.invoke(app, ["grade", sub.id, "--points", str(points)], env=cli_env)
        assert result.exit_code == 0
        assert store.load_submission(sub.id).score == 3

    def test_grade_bad_override_format(self, cli_env, payload_file, answers_file, db_path):
        _import(cli_env, payload_file)
        runner.invoke(
            app,
            ["submit", "quiz-cli", "--answers", str(answers_file), "--student", "stu-1"],
            env=cli_env,
        )
        sub = SqliteQuizStore(db_path).load_submissions("quiz-cli")[0]
        result = runner.invoke(app, ["grade", sub.id, "--set", "q2"], env=cli_env)
        assert result.exit_code == 1

    def test_review_unknown_submission(self, cli_env):
        result = runner.invoke(app, ["review", "sub-missing"], env=cli_env)
        assert result.exit_code == 1

    def test_results(self, cli_env, payload_file, answers_file):
        _import(cli_env, payload_file)
        runner.invoke(
            app,
            ["submit", "quiz-cli", "--answers", str(answers_file), "--student", "stu-1", "--name", "Ana"],
            env=cli_env,
        )
        result = runner.invoke(app, ["results", "quiz-cli"], env=cli_env)
        assert result.exit_code == 0
        assert "Ana" in result.output


class TestInvitationCommands:
    """invite, accept, uninvite, profile."""

    def test_invite_and_accept(self, cli_env, db_path, payload_file):
        _import(cli_env, payload_file)
        result = runner.invoke(app, ["invite", "quiz-cli", "ana@example.com", "mal-email"], env=cli_env)
        assert result.exit_code == 0
        assert "ana@example.com" in result.output

        result = runner.invoke(app, ["accept", "quiz-cli", "ana@example.com"], env=cli_env)
        assert result.exit_code == 0
        assert "ACCEPTED" in result.output

    def test_uninvite_pending_and_locked(self, cli_env, db_path, payload_file):
        _import(cli_env, payload_file)
        runner.invoke(app, ["invite", "quiz-cli", "ana@example.com", "luis@example.com"], env=cli_env)
        store = SqliteQuizStore(db_path)
        ana = store.find_invitation("quiz-cli", "ana@example.com")
        luis = store.find_invitation("quiz-cli", "luis@example.com")

        assert runner.invoke(app, ["uninvite", luis.id], env=cli_env).exit_code == 0
        assert store.load_invitation(luis.id) is None

        runner.invoke(app, ["accept", "quiz-cli", "ana@example.com"], env=cli_env)
        result = runner.invoke(app, ["uninvite", ana.id], env=cli_env)
        assert result.exit_code == 1
        assert store.load_invitation(ana.id).status == InvitationStatus.ACCEPTED

    def test_profile(self, cli_env, payload_file, answers_file):
        _import(cli_env, payload_file)
        runner.invoke(app, ["invite", "quiz-cli", "ana@example.com"], env=cli_env)
        runner.invoke(
            app,
            ["submit", "quiz-cli", "-a", str(answers_file), "-s", "stu-1", "-e", "ana@example.com"],
            env=cli_env,
        )
        result = runner.invoke(app, ["profile", "stu-1", "--email", "ana@example.com"], env=cli_env)
        assert result.exit_code == 0
        assert "Completadas: 1" in result.output
