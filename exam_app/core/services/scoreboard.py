"""Service for accumulating learner scores across graded submissions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ScoreEntry:
    """Mutable scoreboard entry used internally."""

    learner: str
    total_score: float = 0.0
    attempts: int = 0
    full_marks: int = 0
    last_updated: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True, slots=True)
class ScoreboardRow:
    """Immutable snapshot returned to consumers."""

    learner: str
    total_score: float
    attempts: int
    full_marks: int


class Scoreboard:
    """Tracks partial-credit totals per learner."""

    def __init__(self) -> None:
        self._scores: dict[str, ScoreEntry] = {}

    def record_score(self, learner: str, score: float, *, previous_score: float | None = None) -> None:
        """Add ``score`` for ``learner``.

        ``previous_score`` is the learner's earlier score on the same question;
        a resubmission replaces it instead of counting as a new attempt.
        """
        entry = self._scores.get(learner)
        if entry is None:
            entry = ScoreEntry(learner=learner)
            self._scores[learner] = entry

        if previous_score is None:
            entry.attempts += 1
        else:
            entry.total_score -= previous_score
            if previous_score == 1.0:
                entry.full_marks -= 1
        entry.total_score += score
        if score == 1.0:
            entry.full_marks += 1
        entry.last_updated = _utcnow()

    def get_top_scorers(self, limit: int = 3) -> list[ScoreboardRow]:
        """Return the top N learners by total score, fewer attempts first on ties."""
        if limit < 0:
            raise ValueError("Scoreboard limit must not be negative.")
        sorted_entries = sorted(
            self._scores.values(),
            key=lambda e: (-e.total_score, e.attempts, e.learner),
        )
        return [
            ScoreboardRow(
                learner=entry.learner,
                total_score=round(entry.total_score, 6),
                attempts=entry.attempts,
                full_marks=entry.full_marks,
            )
            for entry in sorted_entries[:limit]
        ]

    def clear(self) -> None:
        """Reset all scores."""
        self._scores.clear()
