"""Service for storing generated questions under sequential ids."""

from __future__ import annotations

from dataclasses import replace

from exam_app.core.models import QuestionData


class QuestionRepository:
    """Holds frozen question records; ids are assigned on insertion."""

    def __init__(self) -> None:
        self._questions: dict[int, QuestionData] = {}
        self._question_counter: int = 0

    def add_question(self, question: QuestionData) -> QuestionData:
        """Store ``question`` under a fresh id and return the stored record."""
        stored = replace(question, id=self._next_question_id())
        self._questions[stored.id] = stored
        return stored

    def load_questions(self, questions: list[QuestionData]) -> list[QuestionData]:
        """Replace the current set with ``questions``, renumbering them."""
        if not questions:
            raise ValueError("Question set must contain at least one question.")
        self.clear()
        return [self.add_question(question) for question in questions]

    def get_question(self, question_id: int) -> QuestionData:
        try:
            return self._questions[question_id]
        except KeyError as exc:
            raise KeyError(f"Question id {question_id} not found") from exc

    def get_questions(self) -> list[QuestionData]:
        """Return all questions in insertion order."""
        return list(self._questions.values())

    def has_questions(self) -> bool:
        return bool(self._questions)

    def get_question_count(self) -> int:
        return len(self._questions)

    def clear(self) -> None:
        self._questions = {}
        self._question_counter = 0

    def _next_question_id(self) -> int:
        self._question_counter += 1
        return self._question_counter
