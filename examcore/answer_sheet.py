"""Answers captured for one student's attempt at one exam."""

from typing import Dict


class AnswerSheet:
    """Mapping of question ID to answer text. Unanswered questions are absent."""

    def __init__(self, student_id: int, exam_id: int):
        self.student_id = student_id
        self.exam_id = exam_id
        self._answers: Dict[int, str] = {}

    def add(self, question_id: int, answer: str):
        self._answers[question_id] = answer

    def update(self, question_id: int, answer: str) -> bool:
        """Overwrite an existing answer; does nothing if the question is unanswered."""
        if question_id not in self._answers:
            return False
        self._answers[question_id] = answer
        return True

    def remove(self, question_id: int) -> bool:
        return self._answers.pop(question_id, None) is not None

    def get(self, question_id: int) -> str:
        return self._answers.get(question_id, "")

    def all_answers(self) -> Dict[int, str]:
        return dict(self._answers)

    def __contains__(self, question_id: int) -> bool:
        return question_id in self._answers

    def __len__(self) -> int:
        return len(self._answers)
