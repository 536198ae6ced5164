"""
Data models for exams, questions and the core configuration.

Provides type-safe structures for Question variants, Exam and ExamConfig objects.
Questions are frozen so that a snapshot bound into a session cannot change.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Tuple

from .errors import NotFoundError, ValidationError


@dataclass(frozen=True)
class Question:
    """Base type for a single exam question."""
    question_id: int
    text: str
    correct_answer: str

    question_type: ClassVar[str] = ""

    def check_answer(self, answer: str) -> bool:
        """Exact match against the correct answer."""
        return answer == self.correct_answer

    def to_dict(self) -> dict:
        return {
            "type": self.question_type,
            "questionID": self.question_id,
            "questionText": self.text,
            "answer": self.correct_answer,
        }

    def describe(self) -> str:
        return f"Q{self.question_id}: {self.text}"


@dataclass(frozen=True)
class MultipleChoiceQuestion(Question):
    """A question answered by picking one of a fixed set of options."""
    options: Tuple[str, ...] = ()

    question_type: ClassVar[str] = "MCQ"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["options"] = list(self.options)
        return data

    def describe(self) -> str:
        lines = [super().describe()]
        for i, option in enumerate(self.options):
            lines.append(f"{chr(ord('A') + i)}) {option}")
        return "\n".join(lines)


@dataclass(frozen=True)
class DescriptiveQuestion(Question):
    """A free-text question."""

    question_type: ClassVar[str] = "Descriptive"

    def describe(self) -> str:
        return f"{super().describe()} [Descriptive]"


QUESTION_TYPES = {
    MultipleChoiceQuestion.question_type: MultipleChoiceQuestion,
    DescriptiveQuestion.question_type: DescriptiveQuestion,
}


def question_from_dict(data: dict) -> Question:
    """Create a Question of the right variant from a catalog entry."""
    question_type = data.get("type", DescriptiveQuestion.question_type)
    try:
        if question_type == MultipleChoiceQuestion.question_type:
            return MultipleChoiceQuestion(
                question_id=int(data["questionID"]),
                text=data["questionText"],
                correct_answer=data["answer"],
                options=tuple(data.get("options") or ()),
            )
        if question_type == DescriptiveQuestion.question_type:
            return DescriptiveQuestion(
                question_id=int(data["questionID"]),
                text=data["questionText"],
                correct_answer=data["answer"],
            )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Malformed question entry: {e}") from e
    raise ValidationError(f"Unknown question type: {question_type}")


@dataclass
class Exam:
    """Represents an exam definition owned by the catalog."""
    exam_id: int
    subject: str
    duration_minutes: int
    questions: List[Question] = field(default_factory=list)

    def add_question(self, question: Question):
        if question is None:
            raise ValidationError("Cannot add an empty question")
        self.questions.append(question)

    def remove_question(self, question_id: int) -> bool:
        """Remove a question; returns False if no question had that ID."""
        before = len(self.questions)
        self.questions = [q for q in self.questions if q.question_id != question_id]
        return len(self.questions) != before

    def modify_question(self, question_id: int, new_text: str):
        """Replace the text of a question, keeping its position."""
        for i, q in enumerate(self.questions):
            if q.question_id == question_id:
                self.questions[i] = _replace_text(q, new_text)
                return
        raise NotFoundError(f"Question ID {question_id} not found in exam {self.exam_id}")

    def get_question(self, question_id: int) -> Optional[Question]:
        for q in self.questions:
            if q.question_id == question_id:
                return q
        return None

    def snapshot(self) -> Tuple[Question, ...]:
        """Return an immutable copy of the questions."""
        return tuple(self.questions)

    def has_multiple_choice(self) -> bool:
        return any(isinstance(q, MultipleChoiceQuestion) for q in self.questions)

    def check_answers(self, answers: Dict[int, str]) -> Dict[int, bool]:
        """Map every question ID to whether the given answers get it right."""
        results = {}
        for q in self.questions:
            answer = answers.get(q.question_id)
            results[q.question_id] = answer is not None and q.check_answer(answer)
        return results

    def to_dict(self) -> dict:
        return {
            "examID": self.exam_id,
            "subject": self.subject,
            "duration": self.duration_minutes,
            "questions": [q.to_dict() for q in self.questions],
        }

    @staticmethod
    def from_dict(data: dict) -> 'Exam':
        """Create an Exam object from a catalog dictionary."""
        try:
            return Exam(
                exam_id=int(data["examID"]),
                subject=data["subject"],
                duration_minutes=int(data["duration"]),
                questions=[question_from_dict(q) for q in data.get("questions", [])],
            )
        except ValidationError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed exam entry: {e}") from e


def _replace_text(question: Question, new_text: str) -> Question:
    if isinstance(question, MultipleChoiceQuestion):
        return MultipleChoiceQuestion(question.question_id, new_text, question.correct_answer, question.options)
    return DescriptiveQuestion(question.question_id, new_text, question.correct_answer)


REGRADE_POLICIES = ("append", "replace")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ExamConfig:
    """
    Configuration for the exam core.

    Attributes:
        data_dir: Directory holding persisted sessions, results and report cards
        catalog_file: Exam catalog file (plain .json or encrypted .enc)
        regrade_policy: "append" keeps every grading of a session, "replace"
                        keeps only the latest Result per (student, exam)
        log_level: Logging level name for the CLI
        event_log: File name of the session event log inside data_dir
    """
    data_dir: str
    catalog_file: str
    regrade_policy: str
    log_level: str
    event_log: str

    @staticmethod
    def from_dict(data: dict) -> 'ExamConfig':
        """Create ExamConfig from dictionary."""
        return ExamConfig(
            data_dir=str(data.get('data_dir', 'data')),
            catalog_file=str(data.get('catalog_file', 'exams.json')),
            regrade_policy=str(data.get('regrade_policy', 'append')).lower(),
            log_level=str(data.get('log_level', 'INFO')).upper(),
            event_log=str(data.get('event_log', 'session.log')),
        )

    def validate(self) -> Tuple[bool, str]:
        """
        Validate configuration consistency.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if self.regrade_policy not in REGRADE_POLICIES:
            return False, f"regrade_policy must be one of {', '.join(REGRADE_POLICIES)}, got '{self.regrade_policy}'"

        if self.log_level not in LOG_LEVELS:
            return False, f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{self.log_level}'"

        if not self.data_dir.strip():
            return False, "data_dir must not be empty"

        if not self.catalog_file.strip():
            return False, "catalog_file must not be empty"

        if not self.event_log.strip() or "/" in self.event_log or "\\" in self.event_log:
            return False, "event_log must be a plain file name"

        return True, ""

    @staticmethod
    def default() -> 'ExamConfig':
        """Return default configuration."""
        return ExamConfig(
            data_dir='data',
            catalog_file='exams.json',
            regrade_policy='append',
            log_level='INFO',
            event_log='session.log',
        )
