"""
Tests for the grader.

Covers MCQ and descriptive scoring, re-grading policies, batch grading,
report cards and per-exam statistics.
"""

import pytest
from unittest.mock import patch

from examcore.errors import NotFoundError, PersistenceError, ValidationError
from examcore.grader import Grader
from examcore.results import DescriptiveResult, MCQResult
from examcore.session import ExamSession
from examcore.services import ExamServices


def finished_session(services, student_id, exam_id, answers):
    services.registry.start(student_id, exam_id)
    session = services.registry.get(student_id, exam_id)
    for question_id, answer in answers.items():
        session.submit_answer(question_id, answer)
    services.registry.end(student_id, exam_id)
    return session


class TestGradeMCQ:
    """Test multiple-choice grading."""

    def test_half_correct(self, services):
        session = finished_session(services, 7, 1000, {1: "A", 2: "C"})

        result = services.grader.grade(session)

        assert isinstance(result, MCQResult)
        assert (result.score, result.correct_count, result.total_questions) == (50, 1, 2)
        assert services.results.results_for(7) == [result]

    def test_missing_answer_counts_wrong(self, services):
        session = finished_session(services, 7, 1000, {2: "B"})

        assert services.grader.grade(session).score == 50

    def test_case_sensitive_match(self, services):
        session = finished_session(services, 7, 1000, {1: "a", 2: "b"})

        assert services.grader.grade(session).score == 0

    def test_stray_answers_ignored(self, services):
        session = finished_session(services, 7, 1000, {1: "A", 2: "B", 99: "A"})

        result = services.grader.grade(session)
        assert (result.score, result.total_questions) == (100, 2)

    def test_result_persisted(self, services):
        session = finished_session(services, 7, 1000, {1: "A"})
        services.grader.grade(session)

        assert services.store.load_result(7, 1000) == {
            "studentID": 7, "examID": 1000, "score": 50, "examType": "MCQ",
            "correctAnswers": 1, "totalQuestions": 2,
        }

    def test_mixed_exam_graded_as_mcq(self, services, catalog):
        catalog.add_descriptive_question(1000, "Explain addition", "sum")
        session = finished_session(services, 7, 1000, {1: "A", 2: "B"})

        result = services.grader.grade(session)

        assert isinstance(result, MCQResult)
        assert (result.correct_count, result.total_questions) == (2, 3)
        assert result.score == 66


class TestGradeDescriptive:
    """Test descriptive grading and per-question feedback."""

    def test_feedback(self, services):
        session = finished_session(services, 7, 1001, {3: "Paris", 4: "1990"})

        result = services.grader.grade(session)

        assert isinstance(result, DescriptiveResult)
        assert result.score == 50
        assert result.comments == "1/2 questions answered correctly."
        assert result.feedback == {
            3: "Correct answer. Full points awarded.",
            4: "Incorrect answer. Expected: 1989",
        }

    def test_missing_answer_feedback(self, services):
        session = finished_session(services, 7, 1001, {3: "Paris"})

        result = services.grader.grade(session)

        assert result.feedback[4] == "No answer provided."

    def test_exam_without_questions(self, services, catalog):
        exam_id = catalog.create_exam("Empty", 10)
        session = finished_session(services, 7, exam_id, {})

        result = services.grader.grade(session)

        assert isinstance(result, DescriptiveResult)
        assert result.score == 0
        assert result.comments == "0/0 questions answered correctly."
        assert result.feedback == {}


class TestGradeEdgeCases:
    """Test invalid input and authority of the catalog."""

    def test_none_session(self, services):
        with pytest.raises(ValidationError):
            services.grader.grade(None)

    def test_unstarted_session(self, services, catalog, clock):
        with pytest.raises(ValidationError):
            services.grader.grade(ExamSession(catalog, clock))

    def test_deleted_exam(self, services, catalog):
        session = finished_session(services, 7, 1000, {1: "A"})
        catalog.delete_exam(1000)

        with pytest.raises(NotFoundError):
            services.grader.grade(session)
        with pytest.raises(NotFoundError):
            services.results.results_for(7)

    def test_grades_against_current_definition(self, services, catalog):
        session = finished_session(services, 7, 1000, {1: "A", 2: "B"})
        catalog.remove_question(1000, 2)

        result = services.grader.grade(session)

        assert (result.correct_count, result.total_questions) == (1, 1)

    def test_unfinished_session_can_be_graded(self, services):
        services.registry.start(7, 1000)
        session = services.registry.get(7, 1000)
        session.submit_answer(1, "A")

        assert services.grader.grade(session).score == 50

    def test_persistence_failure_keeps_result_in_memory(self, services):
        session = finished_session(services, 7, 1000, {1: "A"})

        with patch.object(services.store, "save_result", side_effect=PersistenceError("disk full")):
            with pytest.raises(PersistenceError):
                services.grader.grade(session)

        assert len(services.results.results_for(7)) == 1


class TestRegradePolicy:
    """Test append versus replace."""

    def test_append_keeps_every_grading(self, services):
        session = finished_session(services, 7, 1000, {1: "A"})
        services.grader.grade(session)
        services.grader.grade(session)

        assert len(services.results.results_for(7)) == 2
        assert services.grader.report_for(7).average_score == 50

    def test_replace_keeps_latest(self, tmp_path, catalog, config, clock):
        config.regrade_policy = "replace"
        services = ExamServices.build(config, catalog=catalog, base_dir=tmp_path, clock=clock)
        session = finished_session(services, 7, 1000, {1: "A"})
        services.grader.grade(session)
        services.grader.grade(session)

        assert len(services.results.results_for(7)) == 1


class TestGradeAll:
    """Test batch grading."""

    def test_only_finished_sessions(self, services):
        finished_session(services, 7, 1000, {1: "A", 2: "B"})
        services.registry.start(8, 1000)

        assert services.grader.grade_all() == 1
        assert [r.student_id for r in services.results.results_for_exam(1000)] == [7]

    def test_failure_isolated(self, services, catalog):
        finished_session(services, 7, 1000, {1: "A"})
        finished_session(services, 8, 1001, {3: "Paris"})
        catalog.delete_exam(1000)

        assert services.grader.grade_all() == 1
        assert services.results.results_for(8)[0].score == 50


class TestReports:
    """Test report cards."""

    def test_report_for_persists(self, services):
        services.grader.grade(finished_session(services, 7, 1000, {1: "A", 2: "B"}))
        services.grader.grade(finished_session(services, 7, 1001, {}))

        card = services.grader.report_for(7)

        assert card.average_score == 50
        assert services.store.load_report(7)["averageScore"] == 50
        assert services.grader.report_card(7) is card

    def test_report_for_unknown_student(self, services):
        with pytest.raises(NotFoundError):
            services.grader.report_for(7)

    def test_generate_all_reports_skips_students_without_results(self, services):
        services.grader.grade(finished_session(services, 7, 1000, {1: "A"}))
        services.registry.start(8, 1000)

        assert services.grader.generate_all_reports() == 1
        assert services.store.load_report(7) is not None
        assert services.store.load_report(8) is None


class TestStatistics:
    """Test per-exam statistics."""

    def test_statistics(self, services):
        services.grader.grade(finished_session(services, 7, 1000, {1: "A", 2: "B"}))
        services.grader.grade(finished_session(services, 8, 1000, {1: "A"}))
        services.grader.grade(finished_session(services, 9, 1000, {}))

        stats = services.grader.exam_statistics(1000)

        assert (stats.subject, stats.count, stats.highest, stats.lowest) == ("Mathematics", 3, 100, 0)
        assert stats.average == 50
        assert "Average Score: 50.00%" in stats.format()

    def test_no_results(self, services):
        with pytest.raises(NotFoundError):
            services.grader.exam_statistics(1000)

    def test_deleted_exam_has_no_subject(self, services, catalog):
        services.grader.grade(finished_session(services, 7, 1000, {1: "A"}))
        catalog.delete_exam(1000)

        stats = services.grader.exam_statistics(1000)

        assert stats.subject is None
        assert "Subject: unknown" in stats.format()

    def test_grader_constructed_directly(self, catalog, config, services):
        grader = Grader(catalog, services.registry, services.results, services.store, config)

        assert grader.catalog is catalog
