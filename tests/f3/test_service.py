"""Tests for the assessment service (F3)."""

import threading

import pytest

from assessment.core.errors import (
    InvitationLockedError,
    InvitationNotFoundError,
    QuestionImportError,
    QuizNotFoundError,
    SubmissionNotFoundError,
)
from assessment.core.invitations import InvitationStatus
from assessment.core.notifications import NotificationType
from assessment.core.quiz import GradingMode
from assessment.core.service import AssessmentService
from assessment.core.submissions import StudentIdentity, SubmissionStatus


class TestSubmit:
    """Submission flow."""

    def test_auto_graded_submission(self, service, saved_quiz, ana):
        answers = {"q1": "madrid", "q2": {"France": "Paris", "Italy": "Rome"}, "q3": ["A", "B", "C"]}
        result = service.submit("quiz-geo", ana, answers)

        assert result.success
        assert not result.blocked
        assert result.submission.status == SubmissionStatus.GRADED
        assert result.submission.score == 6
        assert result.decision.attempts_used == 1
        assert service.store.load_submission(result.submission.id) is not None

    def test_fourth_attempt_is_blocked(self, service, saved_quiz, ana):
        for _ in range(3):
            assert service.submit("quiz-geo", ana, {}).success

        result = service.submit("quiz-geo", ana, {"q1": "Madrid"})
        assert result.blocked
        assert not result.success
        assert result.submission is None
        assert service.store.count_attempts("quiz-geo", "stu-ana") == 3

    def test_manual_mode_goes_to_review(self, service, store, saved_quiz, ana):
        saved_quiz.settings.grading_mode = GradingMode.MANUAL
        store.save_quiz(saved_quiz)
        result = service.submit("quiz-geo", ana, {"q1": "Madrid"})
        assert result.submission.status == SubmissionStatus.PENDING_REVIEW
        assert result.submission.score == 2

    def test_timed_out_submission(self, service, saved_quiz, ana):
        result = service.submit("quiz-geo", ana, {"q1": "Madrid"}, timed_out=True)
        assert result.success
        assert service.store.load_submission(result.submission.id).timed_out

    def test_unknown_quiz(self, service, ana):
        with pytest.raises(QuizNotFoundError):
            service.submit("nope", ana, {})

    def test_submission_completes_invitation(self, service, saved_quiz, ana):
        service.invite("quiz-geo", ["ana@example.com"])
        service.submit("quiz-geo", ana, {})
        inv = service.store.find_invitation("quiz-geo", "ana@example.com")
        assert inv.status == InvitationStatus.COMPLETED

    def test_teacher_is_notified(self, service, notifier, saved_quiz, ana):
        service.submit("quiz-geo", ana, {})
        sent = [n for n in notifier.sent if n.type == NotificationType.QUIZ_SUBMISSION]
        assert len(sent) == 1
        assert sent[0].recipient == "teacher-1"
        assert "Ana" in sent[0].message

    def test_notifier_failure_does_not_lose_submission(self, store, saved_quiz, ana):
        class BrokenNotifier:
            def notify(self, notification):
                raise RuntimeError("smtp down")

        service = AssessmentService(store, BrokenNotifier())
        result = service.submit("quiz-geo", ana, {})
        assert result.success
        assert store.load_submission(result.submission.id) is not None

    def test_concurrent_submissions_respect_limit(self, service, saved_quiz, ana):
        results = []

        def worker():
            results.append(service.submit("quiz-geo", ana, {}))

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r.success) == 3
        assert service.store.count_attempts("quiz-geo", "stu-ana") == 3


class TestStartAttempt:
    def test_start_returns_questions_and_deadline(self, service, saved_quiz, ana):
        result = service.start_attempt("quiz-geo", ana)
        assert result.allowed
        assert [q.id for q in result.questions] == ["q1", "q2", "q3"]
        assert result.time_limit_minutes == 10
        assert result.deadline is not None

    def test_start_accepts_pending_invitation(self, service, saved_quiz, ana):
        service.invite("quiz-geo", ["ana@example.com"])
        service.start_attempt("quiz-geo", ana)
        inv = service.store.find_invitation("quiz-geo", "ana@example.com")
        assert inv.status == InvitationStatus.ACCEPTED

    def test_start_blocked_after_limit(self, service, saved_quiz, ana):
        for _ in range(3):
            service.submit("quiz-geo", ana, {})
        result = service.start_attempt("quiz-geo", ana)
        assert not result.allowed
        assert result.questions == []


class TestGrading:
    """Manual grading flow."""

    def test_grade_pending_submission(self, service, store, essay_quiz, ana):
        store.save_quiz(essay_quiz)
        result = service.submit("quiz-essay", ana, {"e1": "sí", "e2": "Mi ensayo"})
        assert result.submission.status == SubmissionStatus.PENDING_REVIEW

        form = service.grading_form(result.submission.id)
        assert form == {"e1": 1, "e2": 0}

        form["e2"] = 3
        graded = service.grade_submission(result.submission.id, form)
        assert graded.status == SubmissionStatus.GRADED
        assert graded.score == 4

        stored = store.load_submission(result.submission.id)
        assert stored.status == SubmissionStatus.GRADED
        assert [d.points_awarded for d in stored.grading_details] == [1, 3]

    def test_grading_is_idempotent(self, service, store, essay_quiz, ana):
        store.save_quiz(essay_quiz)
        sub_id = service.submit("quiz-essay", ana, {}).submission.id
        first = service.grade_submission(sub_id, {"e2": 2})
        second = service.grade_submission(sub_id, {"e2": 2})
        assert first.score == second.score == 2
        assert first.grading_details == second.grading_details

    def test_unknown_submission(self, service):
        with pytest.raises(SubmissionNotFoundError):
            service.grade_submission("sub-missing", {})

    def test_student_sees_score_only_after_grading(self, service, store, essay_quiz, ana):
        store.save_quiz(essay_quiz)
        sub_id = service.submit("quiz-essay", ana, {"e1": "sí"}).submission.id

        views = service.student_results("stu-ana")
        assert views[0].score is None

        service.grade_submission(sub_id, {"e1": 1, "e2": 4})
        views = service.student_results("stu-ana")
        assert views[0].score == 5
        assert views[0].max_score == 5

    def test_review(self, service, saved_quiz, ana):
        sub_id = service.submit("quiz-geo", ana, {"q1": "Madrid"}).submission.id
        review = service.review(sub_id)
        assert review.max_score == 6
        assert review.passed is False
        assert [d.points_awarded for d in review.results] == [2, 0, 0]


class TestRedistribution:
    """Point redistribution is forward-only."""

    def test_set_total_points(self, service, saved_quiz):
        quiz = service.set_total_points("quiz-geo", 10)
        assert [q.points for q in quiz.questions] == [4, 3, 3]
        assert service.store.load_quiz("quiz-geo").revision == 2

    def test_existing_scores_are_not_rescaled(self, service, saved_quiz, ana):
        sub = service.submit("quiz-geo", ana, {"q1": "Madrid"}).submission
        service.set_total_points("quiz-geo", 30)
        stored = service.store.load_submission(sub.id)
        assert stored.score == 2
        assert stored.quiz_revision == 1

        new_sub = service.submit("quiz-geo", ana, {"q1": "Madrid"}).submission
        assert new_sub.score == 10
        assert new_sub.quiz_revision == 2

    def test_older_submission_reads_the_same_after_redistribution(self, service, saved_quiz, ana):
        """Review and student view keep the points the submission was scored against."""
        answers = {"q1": "Madrid", "q2": {"France": "Paris", "Italy": "Rome"}, "q3": ["A", "B", "C"]}
        result = service.submit("quiz-geo", ana, answers)
        assert result.submission.score == 6
        assert result.max_score == 6

        service.set_total_points("quiz-geo", 3)

        views = service.student_results("stu-ana")
        assert views[0].score == 6
        assert views[0].max_score == 6

        review = service.review(result.submission.id)
        assert review.max_score == 6
        assert [d.max_points for d in review.results] == [2, 3, 1]
        assert sum(d.points_awarded for d in review.results) == review.submission.score
        assert review.passed is True

    def test_failed_submission_stays_failed_after_shrinking(self, service, saved_quiz, ana):
        sub_id = service.submit("quiz-geo", ana, {"q1": "Madrid"}).submission.id
        service.set_total_points("quiz-geo", 3)

        review = service.review(sub_id)
        assert review.max_score == 6
        assert review.passed is False

        graded = service.grade_submission(sub_id, service.grading_form(sub_id))
        assert graded.score == 2
        assert [d.max_points for d in graded.grading_details] == [2, 3, 1]

    def test_same_target_twice(self, service, saved_quiz):
        service.set_total_points("quiz-geo", 10)
        quiz = service.set_total_points("quiz-geo", 10)
        assert quiz.revision == 2


class TestInvitations:
    """Invitation flow."""

    def test_invite_skips_duplicates_and_invalid(self, service, notifier, saved_quiz):
        result = service.invite("quiz-geo", ["a@b.com", "A@B.com", "nope", "c@d.com"])
        assert [i.email for i in result.created] == ["a@b.com", "c@d.com"]
        assert result.invalid == ["nope"]

        again = service.invite("quiz-geo", ["a@b.com"])
        assert again.created == []
        assert again.skipped == ["a@b.com"]

        invites = [n for n in notifier.sent if n.type == NotificationType.QUIZ_INVITE]
        assert {n.recipient for n in invites} == {"a@b.com", "c@d.com"}

    def test_accept_keeps_completed(self, service, saved_quiz, ana):
        service.invite("quiz-geo", ["ana@example.com"])
        service.submit("quiz-geo", ana, {})
        inv = service.accept_invitation("quiz-geo", "ana@example.com")
        assert inv.status == InvitationStatus.COMPLETED

    def test_accept_without_invitation(self, service, saved_quiz):
        assert service.accept_invitation("quiz-geo", "x@y.com") is None

    def test_remove_pending(self, service, saved_quiz):
        inv = service.invite("quiz-geo", ["a@b.com"]).created[0]
        service.remove_invitation(inv.id)
        assert service.store.load_invitation(inv.id) is None

    def test_remove_accepted_is_locked(self, service, saved_quiz):
        inv = service.invite("quiz-geo", ["a@b.com"]).created[0]
        service.accept_invitation("quiz-geo", "a@b.com")
        with pytest.raises(InvitationLockedError):
            service.remove_invitation(inv.id)
        assert service.store.load_invitation(inv.id) is not None

    def test_remove_unknown(self, service):
        with pytest.raises(InvitationNotFoundError):
            service.remove_invitation("inv-missing")


class TestReports:
    def test_quiz_results(self, service, saved_quiz, ana):
        service.submit("quiz-geo", ana, {"q1": "Madrid"})
        service.submit("quiz-geo", ana, {"q1": "Madrid", "q3": ["A", "B", "C"]})
        summaries = service.quiz_results("quiz-geo")
        assert len(summaries) == 1
        assert summaries[0].attempts == 2
        assert summaries[0].best_score == 3

    def test_student_profile(self, service, saved_quiz, ana):
        service.invite("quiz-geo", ["ana@example.com"])
        service.submit("quiz-geo", ana, {"q1": "Madrid", "q2": {"France": "Paris", "Italy": "Rome"}})
        report = service.student_profile("stu-ana", "ana@example.com")
        assert report.history[0].score == 5
        assert report.history[0].max_score == 6
        assert report.stats.average_score == 83
        assert report.stats.completion_rate == 100


class TestImportQuestions:
    def test_import_appends_and_bumps_revision(self, service, saved_quiz):
        payload = '```json\n{"questions": [{"type": "TRUE_FALSE", "options": ["True", "False"], "correct_answer": true}]}\n```'
        result = service.import_questions("quiz-geo", payload)
        assert len(result.questions) == 1

        quiz = service.store.load_quiz("quiz-geo")
        assert len(quiz.questions) == 4
        assert quiz.revision == 2
        assert quiz.questions[-1].correct_answer == "True"

    def test_import_renames_colliding_ids(self, service, saved_quiz):
        result = service.import_questions("quiz-geo", '{"questions": [{"id": "q1", "type": "ESSAY"}]}')
        assert result.questions[0].id != "q1"
        ids = [q.id for q in service.store.load_quiz("quiz-geo").questions]
        assert len(ids) == len(set(ids))

    def test_import_without_json(self, service, saved_quiz):
        with pytest.raises(QuestionImportError):
            service.import_questions("quiz-geo", "nada")
