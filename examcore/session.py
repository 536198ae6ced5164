"""
Exam session: one student's attempt at one exam.

Bundles the timer, the answer sheet and an immutable snapshot of the exam's
questions, and enforces the attempt state machine. Sessions never touch
storage themselves; the registry persists them after state transitions.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Dict, List, Optional, Tuple

from .answer_sheet import AnswerSheet
from .catalog import ExamCatalog
from .errors import NotFoundError, ValidationError
from .models import Question
from .timer import Timer

logger = logging.getLogger(__name__)

SessionKey = Tuple[int, int]


@dataclass
class QuestionOutcome:
    """How one snapshot question was answered."""
    question_id: int
    question_text: str
    student_answer: Optional[str]  # None when the question was not answered
    correct_answer: str
    is_correct: bool


@dataclass
class ResultsView:
    """Read-only cross-reference of an answer sheet against the snapshot."""
    student_id: int
    exam_id: int
    outcomes: List[QuestionOutcome] = field(default_factory=list)
    unmatched: Dict[int, str] = field(default_factory=dict)

    @property
    def correct_count(self) -> int:
        return sum(1 for o in self.outcomes if o.is_correct)

    def format(self) -> str:
        """Format the view for display."""
        lines = [f"--- Exam Results for Student {self.student_id} ---"]
        for o in self.outcomes:
            lines.append(f"Question {o.question_id}: {o.question_text}")
            if o.student_answer is None:
                lines.append("No answer provided")
            else:
                lines.append(f"Your answer: {o.student_answer}")
                lines.append(f"Correct answer: {o.correct_answer}")
                lines.append(f"Result: {'Correct' if o.is_correct else 'Incorrect'}")
            lines.append("-" * 24)
        for question_id, answer in sorted(self.unmatched.items()):
            lines.append(f"Question {question_id}: no matching question (answer: {answer})")
        return "\n".join(lines)


class ExamSession:
    """Manages the state of a student's exam attempt."""

    def __init__(self, catalog: ExamCatalog, clock: Callable[[], float] = time.monotonic):
        self.catalog = catalog
        self.student_id: Optional[int] = None
        self.exam_id: Optional[int] = None
        self.answer_sheet: Optional[AnswerSheet] = None
        self.timer = Timer(clock)
        self.questions: Tuple[Question, ...] = ()
        self.finished = False
        self.lock = threading.RLock()

    @property
    def key(self) -> SessionKey:
        return (self.student_id, self.exam_id)

    @property
    def is_bound(self) -> bool:
        return self.student_id is not None and self.exam_id is not None

    def start_exam(self, student_id: int, exam_id: int) -> bool:
        """
        Bind the session to a student and exam, load the snapshot, start the timer.

        Returns:
            False (and logs) if the session is already bound

        Raises:
            ValidationError: If an identity argument is missing
            NotFoundError: If the exam is not in the catalog
        """
        if student_id is None or exam_id is None:
            raise ValidationError("Both student ID and exam ID are required")

        with self.lock:
            if self.is_bound:
                logger.warning(
                    "Session already assigned to student %s and exam %s; ignoring start for %s/%s",
                    self.student_id, self.exam_id, student_id, exam_id,
                )
                return False

            exam = self.catalog.get_exam(exam_id)
            self.questions = exam.snapshot()
            self.student_id = student_id
            self.exam_id = exam_id
            self.answer_sheet = AnswerSheet(student_id, exam_id)
            self.timer.start(exam.duration_minutes)

        logger.info(
            "Exam started for student %s with exam ID %s (duration: %s minutes)",
            student_id, exam_id, exam.duration_minutes,
        )
        return True

    def submit_answer(self, question_id: int, answer: str) -> bool:
        """Record an answer; returns False if the session is finished or unbound."""
        with self.lock:
            if self.finished:
                logger.warning(
                    "Cannot submit answer for question %s: exam %s already finished for student %s",
                    question_id, self.exam_id, self.student_id,
                )
                return False
            if self.answer_sheet is None:
                logger.warning("Cannot submit answer for question %s: session not started", question_id)
                return False
            self.answer_sheet.add(question_id, answer)

        logger.debug("Answer submitted for question %s", question_id)
        return True

    def finish_exam(self) -> bool:
        """
        Finish the attempt.

        Returns:
            True if this call moved the session to finished, False if it was
            already finished (in which case nothing changes)
        """
        with self.lock:
            if self.finished:
                logger.info("Exam %s is already finished for student %s", self.exam_id, self.student_id)
                return False
            self.timer.pause()
            self.finished = True

        logger.info("Exam %s finished for student %s", self.exam_id, self.student_id)
        return True

    def remaining_time(self) -> timedelta:
        with self.lock:
            if self.timer is None:
                return timedelta(0)
            return self.timer.remaining()

    def is_time_expired(self) -> bool:
        with self.lock:
            return self.timer.is_expired()

    def answers(self) -> Dict[int, str]:
        with self.lock:
            if self.answer_sheet is None:
                return {}
            return self.answer_sheet.all_answers()

    def results_view(self) -> ResultsView:
        """Cross-reference the answers against the snapshot questions."""
        with self.lock:
            answers = self.answers()
            questions = self.questions

        view = ResultsView(self.student_id, self.exam_id)
        for q in questions:
            answer = answers.pop(q.question_id, None)
            view.outcomes.append(QuestionOutcome(
                question_id=q.question_id,
                question_text=q.text,
                student_answer=answer,
                correct_answer=q.correct_answer,
                is_correct=answer is not None and q.check_answer(answer),
            ))
        view.unmatched = answers
        return view

    def summary(self) -> str:
        status = "Finished" if self.finished else "In Progress"
        lines = [f"Student ID: {self.student_id}, Exam ID: {self.exam_id} ({status})"]
        if self.answer_sheet is not None:
            lines.append(f"Questions answered: {len(self.answer_sheet)}")
        return "\n".join(lines)

    # ===== PERSISTENCE RECORDS =====

    def to_record(self) -> dict:
        """Build the persisted session document."""
        with self.lock:
            return {
                "studentID": self.student_id,
                "examID": self.exam_id,
                "finished": self.finished,
                "answers": {str(qid): text for qid, text in self.answers().items()},
                "durationMinutes": self.timer.duration_minutes,
                "remainingSeconds": int(self.timer.remaining().total_seconds()),
            }

    @staticmethod
    def from_record(
        record: dict,
        catalog: ExamCatalog,
        clock: Callable[[], float] = time.monotonic
    ) -> 'ExamSession':
        """
        Rebuild a session from its persisted document.

        The snapshot is taken from the current catalog. An unfinished session
        resumes its timer from the saved remaining time.
        """
        try:
            student_id = int(record["studentID"])
            exam_id = int(record["examID"])
            finished = bool(record.get("finished", False))
            answers = {int(qid): str(text) for qid, text in (record.get("answers") or {}).items()}
            duration = int(record.get("durationMinutes", 0))
            remaining = timedelta(seconds=int(record.get("remainingSeconds", 0)))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ValidationError(f"Malformed session record: {e}") from e

        session = ExamSession(catalog, clock)
        session.student_id = student_id
        session.exam_id = exam_id
        session.finished = finished
        session.answer_sheet = AnswerSheet(student_id, exam_id)
        for qid, text in answers.items():
            session.answer_sheet.add(qid, text)

        try:
            session.questions = catalog.get_question_snapshot(exam_id)
        except NotFoundError:
            logger.warning("Exam %s no longer in catalog; restored session has no questions", exam_id)

        if duration > 0:
            session.timer.restore(duration, remaining)
            if not finished:
                session.timer.resume()

        return session
