"""Business logic shared between the API and any other front end."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock

from exam_app.core.grader import grade
from exam_app.core.models import Level, QuestionData, StudentAnswer, Submission
from exam_app.core.question_exporter import save_questions_to_file
from exam_app.core.question_generator import derive_seed, generate_question
from exam_app.core.question_importer import load_questions_from_file
from exam_app.core.services.exam_session import ExamSession
from exam_app.core.services.question_repository import QuestionRepository
from exam_app.core.services.scoreboard import Scoreboard, ScoreboardRow

logger = logging.getLogger(__name__)


class ExamManager:
    """Facade for exam services: Repository, Session and Scoreboard."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._repository = QuestionRepository()
        self._session = ExamSession()
        self._scoreboard = Scoreboard()

    # --- Question Repository Delegation ---

    def create_question(
        self,
        level: Level | str,
        *,
        seed: str | None = None,
        b_variant: str | None = None,
    ) -> QuestionData:
        question = generate_question(level, seed=seed, b_variant=b_variant)
        with self._lock:
            stored = self._repository.add_question(question)
        logger.info(
            "Generated level %s question %d (quality=%s)",
            stored.level.value,
            stored.id,
            stored.quality.value,
        )
        return stored

    def create_question_for_learner(
        self,
        exam_key: str,
        learner: str,
        slot: int,
        level: Level | str,
        *,
        b_variant: str | None = None,
    ) -> QuestionData:
        """Reproducible question for one learner's exam slot."""
        seed = derive_seed(exam_key, learner, slot, level)
        return self.create_question(level, seed=seed, b_variant=b_variant)

    def get_question(self, question_id: int) -> QuestionData:
        with self._lock:
            return self._repository.get_question(question_id)

    def get_questions(self) -> list[QuestionData]:
        with self._lock:
            return self._repository.get_questions()

    def get_question_count(self) -> int:
        with self._lock:
            return self._repository.get_question_count()

    def export_questions(self, file_path: Path) -> None:
        with self._lock:
            questions = self._repository.get_questions()
        save_questions_to_file(file_path, questions)
        logger.info("Exported %d questions to %s", len(questions), file_path)

    def import_questions(self, file_path: Path) -> list[QuestionData]:
        imported = load_questions_from_file(file_path)
        with self._lock:
            stored = self._repository.load_questions(imported.questions)
            self._session.clear()
            self._scoreboard.clear()
        logger.info("Imported %d questions from %s", len(stored), file_path)
        return stored

    def reset(self) -> None:
        with self._lock:
            self._repository.clear()
            self._session.clear()
            self._scoreboard.clear()

    # --- Grading / Session Delegation ---

    def submit_answer(self, question_id: int, learner: str, answer: StudentAnswer) -> Submission:
        learner = learner.strip()
        if not learner:
            raise ValueError("Learner name must not be empty.")
        with self._lock:
            question = self._repository.get_question(question_id)
            grading = grade(question, answer)
            submission = Submission(
                question_id=question_id,
                learner=learner,
                answer=answer,
                grading=grading,
                submitted_at=datetime.now(timezone.utc),
            )
            previous = self._session.record_submission(submission)
            self._scoreboard.record_score(
                learner,
                grading.score,
                previous_score=previous.grading.score if previous is not None else None,
            )
        logger.debug(
            "Graded question %d for %s: %s (%.2f)",
            question_id,
            learner,
            grading.result.value,
            grading.score,
        )
        return submission

    def get_submissions(self, question_id: int) -> list[Submission]:
        with self._lock:
            self._repository.get_question(question_id)
            return self._session.get_submissions(question_id)

    # --- Scoreboard Delegation ---

    def get_top_scorers(self, limit: int) -> list[ScoreboardRow]:
        with self._lock:
            return self._scoreboard.get_top_scorers(limit)
