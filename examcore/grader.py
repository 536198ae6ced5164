"""
Grader module for turning finished exam sessions into results.

Provides the Grader class which scores a session against the authoritative
exam definition, records the Result, and builds report cards and per-exam
statistics.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .catalog import ExamCatalog
from .errors import ExamCoreError, NotFoundError, ValidationError
from .models import ExamConfig
from .registry import SessionRegistry
from .results import DescriptiveResult, MCQResult, ReportCard, Result, ResultStore, percentage
from .session import ExamSession
from .store import JsonStore

logger = logging.getLogger(__name__)

FEEDBACK_CORRECT = "Correct answer. Full points awarded."
FEEDBACK_INCORRECT = "Incorrect answer. Expected: {expected}"
FEEDBACK_MISSING = "No answer provided."


@dataclass
class ExamStatistics:
    """Score distribution over every result recorded for one exam."""
    exam_id: int
    subject: Optional[str]
    count: int
    average: float
    highest: int
    lowest: int

    def format(self) -> str:
        return "\n".join([
            f"--- Exam Statistics for Exam ID {self.exam_id} ---",
            f"Subject: {self.subject if self.subject is not None else 'unknown'}",
            f"Number of Results: {self.count}",
            f"Average Score: {self.average:.2f}%",
            f"Highest Score: {self.highest}%",
            f"Lowest Score: {self.lowest}%",
        ])


class Grader:
    """Scores sessions and maintains results and report cards."""

    def __init__(
        self,
        catalog: ExamCatalog,
        registry: SessionRegistry,
        results: ResultStore,
        store: JsonStore,
        config: ExamConfig
    ):
        self.catalog = catalog
        self.registry = registry
        self.results = results
        self.store = store
        self.config = config

    # ===== GRADING =====

    def grade(self, session: ExamSession) -> Result:
        """
        Grade one session against the catalog's current exam definition.

        Any multiple-choice question in the exam makes the whole attempt an
        MCQResult; otherwise a DescriptiveResult with per-question feedback.

        Raises:
            ValidationError: If the session is missing or was never started
            NotFoundError: If the exam is no longer in the catalog
            PersistenceError: If the result cannot be saved (it stays recorded in memory)
        """
        if session is None:
            raise ValidationError("Invalid exam session provided for grading")

        with session.lock:
            if session.answer_sheet is None:
                raise ValidationError("No answer sheet found in session")
            student_id, exam_id = session.key
            answers = session.answers()

        exam = self.catalog.get_exam(exam_id)
        checks = exam.check_answers(answers)
        correct_count = sum(1 for ok in checks.values() if ok)
        total_questions = len(checks)

        if exam.has_multiple_choice():
            result = MCQResult.from_counts(student_id, exam_id, correct_count, total_questions)
        else:
            result = DescriptiveResult(
                student_id=student_id,
                exam_id=exam_id,
                score=percentage(correct_count, total_questions),
                comments=f"{correct_count}/{total_questions} questions answered correctly.",
            )
            for q in exam.questions:
                answer = answers.get(q.question_id)
                if answer is None:
                    feedback = FEEDBACK_MISSING
                elif q.check_answer(answer):
                    feedback = FEEDBACK_CORRECT
                else:
                    feedback = FEEDBACK_INCORRECT.format(expected=q.correct_answer)
                result.add_question_feedback(q.question_id, feedback)

        with self.results.lock_for(student_id):
            self.results.add(result, replace=self.config.regrade_policy == "replace")
            self.store.save_result(result.to_dict())

        logger.info("Exam %s graded for student %s. Score: %s%%", exam_id, student_id, result.score)
        return result

    def grade_all(self) -> int:
        """Grade every finished session; failures are logged and skipped."""
        graded = 0
        for session in self.registry.sessions():
            if not session.finished:
                continue
            try:
                self.grade(session)
                graded += 1
            except ExamCoreError as e:
                logger.error("Error grading session for student %s, exam %s: %s",
                             session.student_id, session.exam_id, e)

        logger.info("Graded %d completed exam sessions.", graded)
        return graded

    # ===== REPORT CARDS =====

    def report_for(self, student_id: int) -> ReportCard:
        """
        Rebuild and persist the report card for one student.

        Raises:
            NotFoundError: If the student has no results
        """
        with self.results.lock_for(student_id):
            card = self.results.generate_report_card(student_id)
            self.store.save_report(card.to_dict())
        return card

    def generate_all_reports(self) -> int:
        """Rebuild report cards for every known student; returns how many succeeded."""
        student_ids = set(self.results.student_ids())
        student_ids.update(s.student_id for s in self.registry.sessions() if s.is_bound)

        generated = 0
        for student_id in sorted(student_ids):
            try:
                self.report_for(student_id)
                generated += 1
            except ExamCoreError as e:
                logger.error("Error generating report for student %s: %s", student_id, e)

        logger.info("Generated report cards for %d of %d students.", generated, len(student_ids))
        return generated

    def report_card(self, student_id: int) -> ReportCard:
        return self.results.report_card(student_id)

    # ===== STATISTICS =====

    def exam_statistics(self, exam_id: int) -> ExamStatistics:
        """
        Aggregate scores across all results for an exam.

        Raises:
            NotFoundError: If no results exist for the exam
        """
        scores = [r.score for r in self.results.results_for_exam(exam_id)]
        if not scores:
            raise NotFoundError(f"No results found for exam ID {exam_id}")

        try:
            subject = self.catalog.exam_subject(exam_id)
        except NotFoundError:
            subject = None

        return ExamStatistics(
            exam_id=exam_id,
            subject=subject,
            count=len(scores),
            average=sum(scores) / len(scores),
            highest=max(scores),
            lowest=min(scores),
        )
