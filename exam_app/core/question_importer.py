"""Load questions previously written by ``question_exporter``.

File format: a JSON list of question records as produced by
``question_to_dict``. The ``meta`` block is optional; when it is missing the
display text is rebuilt from the geometry.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from exam_app.core.models import (
    HitPolicy,
    Level,
    QuestionData,
    QuestionMeta,
    QuestionQuality,
    Ray,
    Sphere,
)
from exam_app.core.question_generator import build_meta


class QuestionImportError(Exception):
    """Raised when an exported question file cannot be parsed."""


@dataclass(slots=True)
class ImportedQuestionSet:
    """Container for imported questions and where they came from."""

    source_path: Path
    questions: list[QuestionData]


def load_questions_from_file(file_path: Path) -> ImportedQuestionSet:
    try:
        text = file_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise QuestionImportError(f"Question file is not valid UTF-8: {exc.reason}") from exc
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuestionImportError(f"Question file is not valid JSON: {exc.msg}") from exc
    if not isinstance(raw, list):
        raise QuestionImportError("Question file must contain a JSON list.")
    questions = [question_from_dict(record) for record in raw]
    if not questions:
        raise QuestionImportError("Question file did not contain any questions.")
    return ImportedQuestionSet(source_path=file_path, questions=questions)


def question_from_dict(record: object) -> QuestionData:
    if not isinstance(record, dict):
        raise QuestionImportError("Each question record must be a JSON object.")
    try:
        level = Level.parse(record["level"])
        ray = Ray(origin=record["ray"]["origin"], direction=record["ray"]["direction"])
        sphere = _sphere_from_dict(record["sphere"])
        spheres = tuple(_sphere_from_dict(item) for item in record.get("spheres") or ())
        tolerance = float(record["tolerance"])
        t_window = _window(record.get("t_window"))
        # Grading falls back to a policy built from these two fields.
        HitPolicy(t_window=t_window, epsilon=tolerance)
        policy = _policy_from_dict(record.get("policy"))
        quality = QuestionQuality(record.get("quality", QuestionQuality.GUARANTEED.value))
        meta = _meta_from_dict(record.get("meta"))
        question_id = int(record.get("id") or 0)
    except KeyError as exc:
        raise QuestionImportError(f"Question record is missing {exc.args[0]!r}.") from exc
    except (AttributeError, TypeError, ValueError) as exc:
        raise QuestionImportError(f"Invalid question record: {exc}") from exc

    return QuestionData(
        level=level,
        ray=ray,
        sphere=sphere,
        tolerance=tolerance,
        meta=meta or build_meta(level, ray, sphere, tolerance, t_window),
        t_window=t_window,
        spheres=spheres,
        policy=policy,
        b_variant=record.get("b_variant"),
        c_variant=record.get("c_variant"),
        quality=quality,
        seed=record.get("seed"),
        id=question_id,
    )


def _sphere_from_dict(raw: dict) -> Sphere:
    return Sphere(center=raw["center"], radius=raw["radius"])


def _window(raw: object) -> tuple[float, float] | None:
    if raw is None:
        return None
    start, end = raw  # type: ignore[misc]
    return float(start), float(end)


def _meta_from_dict(raw: object) -> QuestionMeta | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise TypeError("meta must be a JSON object.")
    if not {"name", "params", "prompt"} <= set(raw):
        return None
    values = (raw["name"], raw["params"], raw["prompt"])
    if not all(isinstance(value, str) for value in values):
        raise TypeError("meta name, params and prompt must be strings.")
    return QuestionMeta(*values)


def _policy_from_dict(raw: object) -> HitPolicy | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise TypeError("policy must be a JSON object.")
    return HitPolicy(
        t_window=_window(raw.get("t_window")),
        epsilon=float(raw["epsilon"]),
        tangent_counts_as_hit=bool(raw.get("tangent_counts_as_hit", True)),
        first_hit_wins=bool(raw.get("first_hit_wins", True)),
    )
