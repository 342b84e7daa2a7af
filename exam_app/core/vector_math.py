"""Minimal 3D vector helpers operating on plain float triples."""

from __future__ import annotations

import math

Vec3 = tuple[float, float, float]


def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def scale(a: Vec3, s: float) -> Vec3:
    return (a[0] * s, a[1] * s, a[2] * s)


def cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def length(a: Vec3) -> float:
    return math.sqrt(dot(a, a))


def normalize(a: Vec3) -> Vec3:
    """Return the unit vector along ``a``; the zero vector maps to itself."""
    norm = length(a)
    if norm == 0:
        return (0.0, 0.0, 0.0)
    return (a[0] / norm, a[1] / norm, a[2] / norm)


def as_vec3(values) -> Vec3:
    """Coerce any three-item sequence of numbers into a float triple."""
    items = tuple(float(value) for value in values)
    if len(items) != 3:
        raise ValueError(f"Expected three components, got {len(items)}.")
    return items  # type: ignore[return-value]


def format_vec(v: Vec3, digits: int = 2) -> str:
    return "[" + ", ".join(f"{component:.{digits}f}" for component in v) + "]"
