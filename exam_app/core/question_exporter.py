"""Utilities for exporting generated questions and grading results as JSON."""

from __future__ import annotations

import json
from dataclasses import fields
from enum import Enum
from pathlib import Path

from exam_app.core.models import GradingResult, HitPolicy, QuestionData, Ray, Sphere, StudentAnswer


def _plain(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return [_plain(item) for item in value]
    return value


def ray_to_dict(ray: Ray) -> dict[str, object]:
    return {"origin": list(ray.origin), "direction": list(ray.direction)}


def sphere_to_dict(sphere: Sphere) -> dict[str, object]:
    return {"center": list(sphere.center), "radius": sphere.radius}


def policy_to_dict(policy: HitPolicy) -> dict[str, object]:
    return {
        "t_window": list(policy.t_window) if policy.t_window is not None else None,
        "epsilon": policy.epsilon,
        "tangent_counts_as_hit": policy.tangent_counts_as_hit,
        "first_hit_wins": policy.first_hit_wins,
    }


def question_to_dict(question: QuestionData) -> dict[str, object]:
    """Full ground-truth record, suitable for staff export and re-import."""
    return {
        "id": question.id,
        "level": question.level.value,
        "ray": ray_to_dict(question.ray),
        "sphere": sphere_to_dict(question.sphere),
        "spheres": [sphere_to_dict(sphere) for sphere in question.spheres],
        "tolerance": question.tolerance,
        "t_window": list(question.t_window) if question.t_window is not None else None,
        "policy": policy_to_dict(question.policy) if question.policy is not None else None,
        "b_variant": question.b_variant,
        "c_variant": question.c_variant,
        "quality": question.quality.value,
        "seed": question.seed,
        "meta": {
            "name": question.meta.name,
            "params": question.meta.params,
            "prompt": question.meta.prompt,
        },
    }


def answer_to_dict(answer: StudentAnswer) -> dict[str, object]:
    payload: dict[str, object] = {"level": answer.LEVEL.value}
    for item in fields(answer):
        payload[item.name] = _plain(getattr(answer, item.name))
    return payload


def grading_result_to_dict(result: GradingResult) -> dict[str, object]:
    checks = {
        name: {item.name: _plain(getattr(check, item.name)) for item in fields(check)}
        for name, check in result.checks.items()
    }
    return {
        "result": result.result.value,
        "score": result.score,
        "reason_code": result.reason_code.value,
        "checks": checks,
        "expected": answer_to_dict(result.expected) if result.expected is not None else None,
    }


def save_questions_to_file(file_path: Path, questions: list[QuestionData]) -> None:
    """Persist the provided questions to disk as a JSON list."""

    if not questions:
        raise ValueError("Cannot export an empty question set.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    document = json.dumps([question_to_dict(question) for question in questions], indent=2, ensure_ascii=False)
    file_path.write_text(document + "\n", encoding="utf-8")
