"""Service for recording graded submissions per question and learner."""

from __future__ import annotations

from exam_app.core.models import Submission


class ExamSession:
    """Keeps each learner's latest submission for every question."""

    def __init__(self) -> None:
        self._submissions: dict[int, dict[str, Submission]] = {}

    def record_submission(self, submission: Submission) -> Submission | None:
        """Store ``submission``; return the one it replaced, if any."""
        per_question = self._submissions.setdefault(submission.question_id, {})
        previous = per_question.get(submission.learner)
        per_question[submission.learner] = submission
        return previous

    def get_submissions(self, question_id: int) -> list[Submission]:
        return sorted(self._submissions.get(question_id, {}).values(), key=lambda s: s.submitted_at)

    def get_submission(self, question_id: int, learner: str) -> Submission | None:
        return self._submissions.get(question_id, {}).get(learner)

    def has_learner_answered(self, question_id: int, learner: str) -> bool:
        return learner in self._submissions.get(question_id, {})

    def clear(self) -> None:
        self._submissions.clear()
