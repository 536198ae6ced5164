"""
Exam catalog: the authoring side consumed by sessions and the grader.

Holds exam definitions keyed by exam ID, hands out immutable question
snapshots, and loads/saves the catalog as plain or encrypted JSON.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .crypto import decrypt_payload, encrypt_payload
from .errors import NotFoundError, PersistenceError, ValidationError
from .models import DescriptiveQuestion, Exam, MultipleChoiceQuestion, Question

logger = logging.getLogger(__name__)

FIRST_EXAM_ID = 1000
FIRST_QUESTION_ID = 1


class ExamCatalog:
    """Keyed collection of exam definitions."""

    def __init__(self, exams: Optional[Sequence[Exam]] = None):
        self._exams: Dict[int, Exam] = {}
        self._lock = threading.RLock()
        self._next_exam_id = FIRST_EXAM_ID
        self._next_question_id = FIRST_QUESTION_ID
        for exam in exams or []:
            self._add_loaded(exam)

    # ===== COLLABORATOR INTERFACE =====

    def get_exam(self, exam_id: int) -> Exam:
        """Return the authoritative exam definition."""
        with self._lock:
            exam = self._exams.get(exam_id)
        if exam is None:
            raise NotFoundError(f"Exam ID {exam_id} not found")
        return exam

    def get_question_snapshot(self, exam_id: int) -> Tuple[Question, ...]:
        """Return an immutable copy of the exam's questions."""
        with self._lock:
            return self.get_exam(exam_id).snapshot()

    def has_exam(self, exam_id: int) -> bool:
        with self._lock:
            return exam_id in self._exams

    def exam_duration(self, exam_id: int) -> int:
        return self.get_exam(exam_id).duration_minutes

    def exam_subject(self, exam_id: int) -> str:
        return self.get_exam(exam_id).subject

    def exams(self) -> List[Exam]:
        with self._lock:
            return list(self._exams.values())

    # ===== AUTHORING =====

    def create_exam(self, subject: str, duration_minutes: int) -> int:
        """Create an empty exam and return its ID."""
        if not subject or not subject.strip():
            raise ValidationError("Exam subject is required")
        if duration_minutes is None or duration_minutes <= 0:
            raise ValidationError(f"Exam duration must be positive, got {duration_minutes}")

        with self._lock:
            exam_id = self._next_exam_id
            self._next_exam_id += 1
            self._exams[exam_id] = Exam(exam_id, subject.strip(), int(duration_minutes))
        logger.info("Created exam %s (%s, %s minutes)", exam_id, subject, duration_minutes)
        return exam_id

    def add_mcq_question(self, exam_id: int, text: str, answer: str, options: Sequence[str]) -> int:
        """Add a multiple-choice question; options are passed in fully formed."""
        if not options:
            raise ValidationError("A multiple-choice question needs at least one option")
        with self._lock:
            exam = self.get_exam(exam_id)
            question_id = self._take_question_id()
            exam.add_question(MultipleChoiceQuestion(question_id, text, answer, tuple(options)))
        return question_id

    def add_descriptive_question(self, exam_id: int, text: str, answer: str) -> int:
        with self._lock:
            exam = self.get_exam(exam_id)
            question_id = self._take_question_id()
            exam.add_question(DescriptiveQuestion(question_id, text, answer))
        return question_id

    def remove_question(self, exam_id: int, question_id: int) -> bool:
        with self._lock:
            return self.get_exam(exam_id).remove_question(question_id)

    def modify_question(self, exam_id: int, question_id: int, new_text: str):
        with self._lock:
            self.get_exam(exam_id).modify_question(question_id, new_text)

    def delete_exam(self, exam_id: int) -> bool:
        with self._lock:
            return self._exams.pop(exam_id, None) is not None

    # ===== SERIALIZATION =====

    def to_list(self) -> List[dict]:
        with self._lock:
            return [exam.to_dict() for exam in self._exams.values()]

    @staticmethod
    def from_list(data: list) -> 'ExamCatalog':
        if not isinstance(data, list):
            raise ValidationError("Exam catalog must be a JSON list of exams")
        return ExamCatalog([Exam.from_dict(entry) for entry in data])

    @staticmethod
    def load(path: Path, secret=None) -> 'ExamCatalog':
        """
        Load a catalog from disk.

        Args:
            path: Catalog file. Files ending in .enc are decrypted with `secret`.
            secret: Fernet key or password for encrypted catalogs

        Raises:
            PersistenceError: If the file cannot be read or decrypted
            ValidationError: If the content is not a valid catalog
        """
        path = Path(path)
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise PersistenceError(f"Unable to read exam catalog '{path}': {e}") from e

        if path.suffix.lower() == '.enc':
            raw = decrypt_payload(raw, secret)

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Invalid JSON in exam catalog '{path}': {e}") from e

        catalog = ExamCatalog.from_list(data)
        logger.info("Loaded %d exams from %s", len(catalog.exams()), path)
        return catalog

    def save(self, path: Path, secret=None, use_password: bool = False):
        """Write the catalog as JSON, encrypted when the path ends in .enc."""
        path = Path(path)
        payload = json.dumps(self.to_list(), indent=4).encode('utf-8')
        if path.suffix.lower() == '.enc':
            payload = encrypt_payload(payload, secret, use_password=use_password)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".tmp")
            tmp.write_bytes(payload)
            tmp.replace(path)
        except OSError as e:
            raise PersistenceError(f"Unable to write exam catalog '{path}': {e}") from e

    # ===== HELPERS =====

    def _take_question_id(self) -> int:
        question_id = self._next_question_id
        self._next_question_id += 1
        return question_id

    def _add_loaded(self, exam: Exam):
        if exam.exam_id in self._exams:
            raise ValidationError(f"Duplicate exam ID {exam.exam_id} in catalog")
        self._exams[exam.exam_id] = exam
        self._next_exam_id = max(self._next_exam_id, exam.exam_id + 1)
        for q in exam.questions:
            self._next_question_id = max(self._next_question_id, q.question_id + 1)
