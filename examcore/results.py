"""
Graded results, report cards and the per-student result store.

Result variants form a closed set (MCQResult, DescriptiveResult); the
"examType" tag is only used when converting to and from persisted records.
"""

import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import ClassVar, Dict, Iterable, Iterator, List

from .errors import NotFoundError, ValidationError

MIN_SCORE = 0
MAX_SCORE = 100


def percentage(correct: int, total: int) -> int:
    """Integer percentage, 0 when there is nothing to score."""
    if total <= 0:
        return 0
    return (correct * 100) // total


def _check_score(score) -> int:
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValidationError(f"Score must be an integer, got {score!r}")
    if score < MIN_SCORE or score > MAX_SCORE:
        raise ValidationError(f"Invalid score value {score}: must be between {MIN_SCORE} and {MAX_SCORE}")
    return score


@dataclass
class Result:
    """Graded outcome of one exam attempt."""
    student_id: int
    exam_id: int
    score: int

    exam_type: ClassVar[str] = "Standard"

    def __post_init__(self):
        _check_score(self.score)

    @property
    def key(self):
        return (self.student_id, self.exam_id)

    def update_score(self, new_score: int):
        self.score = _check_score(new_score)

    def to_dict(self) -> dict:
        return {
            "studentID": self.student_id,
            "examID": self.exam_id,
            "score": self.score,
            "examType": self.exam_type,
        }

    def summary(self) -> dict:
        """Entry used in a report card document."""
        data = self.to_dict()
        del data["studentID"]
        return data

    def describe(self) -> str:
        return f"Result - Student ID: {self.student_id}, Exam ID: {self.exam_id}, Score: {self.score}%"


@dataclass
class MCQResult(Result):
    """Result of an exam containing multiple-choice questions."""
    correct_count: int = 0
    total_questions: int = 0

    exam_type: ClassVar[str] = "MCQ"

    @staticmethod
    def from_counts(student_id: int, exam_id: int, correct_count: int, total_questions: int) -> 'MCQResult':
        return MCQResult(
            student_id=student_id,
            exam_id=exam_id,
            score=percentage(correct_count, total_questions),
            correct_count=correct_count,
            total_questions=total_questions,
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["correctAnswers"] = self.correct_count
        data["totalQuestions"] = self.total_questions
        return data

    def describe(self) -> str:
        return (
            f"MCQ Exam Result - Student ID: {self.student_id}, Exam ID: {self.exam_id}, "
            f"Score: {self.score}% ({self.correct_count}/{self.total_questions})"
        )


@dataclass
class DescriptiveResult(Result):
    """Result of an all-descriptive exam, with feedback per question."""
    comments: str = ""
    feedback: Dict[int, str] = field(default_factory=dict)

    exam_type: ClassVar[str] = "Descriptive"

    def add_question_feedback(self, question_id: int, text: str):
        self.feedback[question_id] = text

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["comments"] = self.comments
        data["perQuestionFeedback"] = {str(qid): text for qid, text in self.feedback.items()}
        return data

    def summary(self) -> dict:
        data = super().summary()
        del data["perQuestionFeedback"]
        return data

    def describe(self) -> str:
        lines = [
            f"Descriptive Exam Result - Student ID: {self.student_id}, Exam ID: {self.exam_id}, Score: {self.score}%",
            f"Comments: {self.comments}",
        ]
        if self.feedback:
            lines.append("Question-wise Feedback:")
            for qid, text in self.feedback.items():
                lines.append(f"Question {qid}: {text}")
        return "\n".join(lines)


RESULT_TYPES = {
    MCQResult.exam_type: MCQResult,
    DescriptiveResult.exam_type: DescriptiveResult,
}


def result_from_dict(data: dict) -> Result:
    """Restore a Result of the right variant from its persisted document."""
    if not isinstance(data, dict):
        raise ValidationError("Result record must be a JSON object")
    exam_type = data.get("examType")
    try:
        if exam_type == MCQResult.exam_type:
            return MCQResult(
                student_id=int(data["studentID"]),
                exam_id=int(data["examID"]),
                score=int(data["score"]),
                correct_count=int(data.get("correctAnswers", 0)),
                total_questions=int(data.get("totalQuestions", 0)),
            )
        if exam_type == DescriptiveResult.exam_type:
            return DescriptiveResult(
                student_id=int(data["studentID"]),
                exam_id=int(data["examID"]),
                score=int(data["score"]),
                comments=data.get("comments", ""),
                feedback={int(qid): text for qid, text in (data.get("perQuestionFeedback") or {}).items()},
            )
    except ValidationError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Malformed result record: {e}") from e
    raise ValidationError(f"Unknown result type: {exam_type}")


class ReportCard:
    """Itemized results and mean score for one student."""

    def __init__(self, student_id: int, results: Iterable[Result] = ()):
        self.student_id = student_id
        self.results: List[Result] = []
        self.average_score = 0.0
        self.rebuild(results)

    def add(self, result: Result):
        self.results.append(result)
        self._recompute()

    def rebuild(self, results: Iterable[Result]):
        """Replace the contents with `results`, discarding earlier edits."""
        self.results = list(results)
        self._recompute()

    def _recompute(self):
        # Full mean on every change, never a running average.
        if not self.results:
            self.average_score = 0.0
        else:
            self.average_score = sum(r.score for r in self.results) / len(self.results)

    def to_dict(self) -> dict:
        return {
            "studentID": self.student_id,
            "averageScore": self.average_score,
            "results": [r.summary() for r in self.results],
        }

    def format(self) -> str:
        lines = [
            "--- Report Card ---",
            f"Student ID: {self.student_id}",
            f"Average Score: {self.average_score:.2f}%",
            "Exam Results:",
        ]
        lines.extend(r.describe() for r in self.results)
        return "\n".join(lines)


class ResultStore:
    """Per-student ordered results; the source of truth for report cards."""

    def __init__(self):
        self._results: Dict[int, List[Result]] = {}
        self._report_cards: Dict[int, ReportCard] = {}
        self._guard = threading.Lock()
        self._student_locks: Dict[int, threading.RLock] = defaultdict(threading.RLock)

    @contextmanager
    def lock_for(self, student_id: int) -> Iterator[None]:
        """Serialize writers for one student."""
        with self._guard:
            lock = self._student_locks[student_id]
        with lock:
            yield

    def add(self, result: Result, replace: bool = False):
        """
        Append a result, or replace the prior one with the same key.

        An existing report card for the student is kept in step.
        """
        if result is None:
            raise ValidationError("Cannot add an empty result")

        with self.lock_for(result.student_id):
            results = self._results.setdefault(result.student_id, [])
            replaced = False
            if replace:
                positions = [i for i, r in enumerate(results) if r.exam_id == result.exam_id]
                if positions:
                    # Older duplicates left by earlier appends go too.
                    results[:] = [r for r in results if r.exam_id != result.exam_id]
                    results.insert(positions[0], result)
                    replaced = True
            if not replaced:
                results.append(result)

            card = self._report_cards.get(result.student_id)
            if card is not None:
                if replaced:
                    card.rebuild(results)
                else:
                    card.add(result)

    def results_for(self, student_id: int) -> List[Result]:
        results = self._results.get(student_id)
        if results is None:
            raise NotFoundError(f"Student {student_id} has no results")
        return list(results)

    def results_for_exam(self, exam_id: int) -> List[Result]:
        return [r for results in list(self._results.values()) for r in results if r.exam_id == exam_id]

    def student_ids(self) -> List[int]:
        return list(self._results.keys())

    def generate_report_card(self, student_id: int) -> ReportCard:
        """Build a fresh report card from the student's current results."""
        with self.lock_for(student_id):
            card = ReportCard(student_id, self.results_for(student_id))
            self._report_cards[student_id] = card
            return card

    def report_card(self, student_id: int) -> ReportCard:
        card = self._report_cards.get(student_id)
        if card is None:
            raise NotFoundError(f"Report card for student {student_id} not found")
        return card

    def restore(self, results: Iterable[Result]) -> int:
        count = 0
        for result in results:
            self.add(result)
            count += 1
        return count

    def clear(self):
        with self._guard:
            self._results.clear()
            self._report_cards.clear()
