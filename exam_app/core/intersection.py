"""Ray-sphere intersection solver and the geometry helpers built on it.

Substituting p(t) = o + t d into |p - c|^2 = r^2 gives a t^2 + b t + c' = 0 with

    a  = d . d
    b  = 2 (o - c) . d
    c' = (o - c) . (o - c) - r^2

The discriminant is classified through a band of width EPS_D around zero so
that floating-point noise near tangency yields a single root rather than a
flickering pair or an empty set.
"""

from __future__ import annotations

import math

from exam_app.constants.exam_constants import EPS, EPS_D
from exam_app.core.models import DeltaCase, Ray, Sphere
from exam_app.core.vector_math import Vec3, cross, dot, length, normalize, scale, sub


def quadratic_coefficients(ray: Ray, sphere: Sphere) -> tuple[float, float, float]:
    oc = sub(ray.origin, sphere.center)
    a = dot(ray.direction, ray.direction)
    b = 2.0 * dot(oc, ray.direction)
    c = dot(oc, oc) - sphere.radius * sphere.radius
    return a, b, c


def discriminant(ray: Ray, sphere: Sphere) -> float:
    a, b, c = quadratic_coefficients(ray, sphere)
    return b * b - 4.0 * a * c


def classify_discriminant(delta: float) -> DeltaCase:
    if delta < -EPS_D:
        return DeltaCase.NEG
    if delta <= EPS_D:
        return DeltaCase.ZERO
    return DeltaCase.POS


def delta_case_for_roots(roots: tuple[float, ...]) -> DeltaCase:
    if not roots:
        return DeltaCase.NEG
    if len(roots) == 1:
        return DeltaCase.ZERO
    return DeltaCase.POS


def intersect(ray: Ray, sphere: Sphere) -> tuple[float, ...]:
    """Return the real roots of the ray-sphere quadratic in ascending order.

    No forward or window filtering happens here. A zero-length direction has
    no parametric intersection and yields an empty tuple.
    """
    a, b, c = quadratic_coefficients(ray, sphere)
    if a == 0:
        return ()
    delta = b * b - 4.0 * a * c
    case = classify_discriminant(delta)
    if case is DeltaCase.NEG:
        return ()
    if case is DeltaCase.ZERO:
        return (-b / (2.0 * a),)
    sqrt_delta = math.sqrt(delta)
    t1 = (-b - sqrt_delta) / (2.0 * a)
    t2 = (-b + sqrt_delta) / (2.0 * a)
    return (t1, t2) if t1 <= t2 else (t2, t1)


def first_positive_hit_t(ray: Ray, sphere: Sphere, eps: float = EPS) -> float | None:
    """Smallest root at or past the forward threshold, ignoring any window."""
    for t in intersect(ray, sphere):
        if t >= eps:
            return t
    return None


def segment_hits_sphere(ray: Ray, sphere: Sphere, x: float, eps: float = EPS) -> bool:
    """True when the ray reaches the sphere no later than parameter ``x``."""
    t = first_positive_hit_t(ray, sphere, eps)
    return t is not None and t <= x + eps


def rho_for(ray: Ray, sphere: Sphere) -> tuple[float, float]:
    """Return ``(m, rho)``: projection of c - o on d and the perpendicular distance.

    For a unit direction the ray line is tangent to the sphere exactly when
    ``rho == radius``.
    """
    u = sub(sphere.center, ray.origin)
    m = dot(u, ray.direction)
    perpendicular = sub(u, scale(ray.direction, m))
    return m, length(perpendicular)


def make_tangent_direction(origin: Vec3, center: Vec3, radius: float, sign: int = 1) -> Vec3 | None:
    """Build a unit direction from ``origin`` that grazes the sphere.

    Returns None when the origin is inside or on the sphere, where no external
    tangent exists.
    """
    u = sub(center, origin)
    distance = length(u)
    if distance <= radius + 1e-9:
        return None
    axis = normalize(u)
    sin_t = radius / distance
    cos_t = math.sqrt(max(0.0, 1.0 - sin_t * sin_t))

    helper: Vec3 = (0.0, 0.0, 1.0) if abs(axis[2]) < 0.9 else (0.0, 1.0, 0.0)
    side = normalize(cross(helper, axis))
    s = 1.0 if sign >= 0 else -1.0
    return normalize(
        (
            cos_t * axis[0] + s * sin_t * side[0],
            cos_t * axis[1] + s * sin_t * side[1],
            cos_t * axis[2] + s * sin_t * side[2],
        )
    )


def perturb_direction_euler(direction: Vec3, yaw_deg: float, pitch_deg: float) -> Vec3:
    """Rotate about world Y by ``yaw_deg`` then about world X by ``pitch_deg``."""
    yaw = math.radians(yaw_deg)
    pitch = math.radians(pitch_deg)
    cy, sy = math.cos(yaw), math.sin(yaw)
    cx, sx = math.cos(pitch), math.sin(pitch)

    x, y, z = direction
    ry_x = cy * x - sy * z
    ry_y = y
    ry_z = sy * x + cy * z

    return normalize((ry_x, cx * ry_y - sx * ry_z, sx * ry_y + cx * ry_z))
