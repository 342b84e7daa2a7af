"""Randomised question builder for the three ray-sphere difficulty levels.

Levels A and B place one sphere and, most of the time, aim the ray roughly at
it so that hits, misses and tangents all show up. Level C places four spheres
behind a time window and rejection-samples the spheres until at least two are
forward-hittable and at least one is hit inside the window. When the
attempts run out the last configuration is kept and flagged as a fallback.
"""

from __future__ import annotations

import hashlib
import logging
import random

from exam_app.constants.exam_constants import (
    BIASED_DIRECTION_NOISE,
    BIASED_ORIGIN_SPREAD,
    BIASED_RAY_PROBABILITY,
    DEFAULT_TOLERANCE,
    MAX_GENERATION_ATTEMPTS,
    MIN_FORWARD_HITTABLE,
    MULTI_CENTER_RANGE,
    MULTI_RADIUS_RANGE,
    MULTI_RAY_DIRECTION_RANGE,
    MULTI_RAY_ORIGIN_RANGE,
    MULTI_SPHERE_COUNT,
    SINGLE_CENTER_RANGE,
    SINGLE_RADIUS_RANGE,
    WINDOW_START_CANDIDATES,
    WINDOW_WIDTH_CANDIDATES,
)
from exam_app.core.hit_selection import select_hit_for_policy
from exam_app.core.intersection import first_positive_hit_t
from exam_app.core.models import (
    MULTI_SPHERE_VARIANT,
    SEGMENT_VARIANT,
    HitPolicy,
    Level,
    QuestionData,
    QuestionMeta,
    QuestionQuality,
    Ray,
    Sphere,
)
from exam_app.core.vector_math import Vec3, format_vec, normalize

logger = logging.getLogger(__name__)

_LEVEL_A_PROMPT = (
    "Using the picture, explain why substituting the ray into the sphere equation gives a "
    "quadratic in $t$. Pick the sign of $\\Delta$ and state what it implies."
)
_LEVEL_B_PROMPT = """Analyze (tangency). Required formulas:

- Ray: $p(t) = o + t\\,d$
- Projection: $m = (c - o) \\cdot d$
- Perpendicular distance: $\\rho = \\lVert (c - o) - m\\,d \\rVert$
- Tangency iff $\\rho = r$

Explain how the formulas indicate exact tangency and which relationships must hold at tangency."""
_LEVEL_C_PROMPT = """Evaluate with a $t$-window and four spheres (a-d).

1. Filter out spheres whose hits all fall outside $[a, b]$.
2. From the remaining spheres, decide which can be hit within $[a, b]$.
3. Determine the first valid hit (sphere index and $t$); a tangent counts as a hit.
4. If two hits are within $\\varepsilon$, explain your tie-break according to the policy."""

_LEVEL_NAMES = {
    Level.A: "Ray-Sphere (Level A: Apply)",
    Level.B: "Ray-Sphere (Level B: Tangency Hunter)",
    Level.C: "Ray-Sphere (Level C: Evaluate)",
}
_LEVEL_PROMPTS = {Level.A: _LEVEL_A_PROMPT, Level.B: _LEVEL_B_PROMPT, Level.C: _LEVEL_C_PROMPT}


def derive_seed(exam_key: str, student_id: str, slot: int, level: Level | str) -> str:
    """Stable 16-hex-digit seed for one learner's question slot."""
    seed_string = f"{exam_key}|{student_id}|slot{slot}|ray_sphere|level{Level.parse(level).value}"
    return hashlib.sha256(seed_string.encode("utf-8")).hexdigest()[:16]


def build_meta(
    level: Level,
    ray: Ray,
    sphere: Sphere,
    tolerance: float,
    t_window: tuple[float, float] | None = None,
) -> QuestionMeta:
    param_text = [
        f"o = {format_vec(ray.origin)}",
        f"d = {format_vec(ray.direction)} (unit)",
        f"c = {format_vec(sphere.center)}, r = {sphere.radius:.2f}",
    ]
    if level is Level.C and t_window is not None:
        param_text.append(f"t-window [a,b] = [{t_window[0]:.3f}, {t_window[1]:.3f}], ε = {tolerance:g}")
    return QuestionMeta(
        name=_LEVEL_NAMES[level],
        params="  |  ".join(param_text),
        prompt=_LEVEL_PROMPTS[level],
    )


def generate_question(
    level: Level | str = Level.A,
    *,
    rng: random.Random | None = None,
    seed: str | None = None,
    b_variant: str | None = None,
) -> QuestionData:
    """Generate one question. ``seed`` (or an explicit ``rng``) makes it reproducible."""
    parsed = Level.parse(level)
    if b_variant is not None and (parsed is not Level.B or b_variant != SEGMENT_VARIANT):
        raise ValueError(f"Variant {b_variant!r} is not available for level {parsed.value}.")
    source = rng if rng is not None else (random.Random(seed) if seed is not None else random)

    if parsed is Level.C:
        return _generate_multi_sphere(source, seed)
    return _generate_single_sphere(parsed, source, seed, b_variant)


def _uniform_vec(source, bounds: tuple[float, float]) -> Vec3:
    low, high = bounds
    return (source.uniform(low, high), source.uniform(low, high), source.uniform(low, high))


def _random_sphere(source, center_range: tuple[float, float], radius_range: tuple[float, float]) -> Sphere:
    return Sphere(center=_uniform_vec(source, center_range), radius=source.uniform(*radius_range))


def _generate_single_sphere(level: Level, source, seed: str | None, b_variant: str | None) -> QuestionData:
    sphere = _random_sphere(source, SINGLE_CENTER_RANGE, SINGLE_RADIUS_RANGE)
    center, radius = sphere.center, sphere.radius

    if source.random() < BIASED_RAY_PROBABILITY:
        offset = _uniform_vec(source, (-1.0, 1.0))
        spread = radius * BIASED_ORIGIN_SPREAD
        origin = tuple(c + o * spread for c, o in zip(center, offset))
        noise = _uniform_vec(source, (-BIASED_DIRECTION_NOISE, BIASED_DIRECTION_NOISE))
        direction = normalize(tuple(c - o + n for c, o, n in zip(center, origin, noise)))
    else:
        origin = _uniform_vec(source, SINGLE_CENTER_RANGE)
        direction = normalize(_uniform_vec(source, (-1.0, 1.0)))

    ray = Ray(origin=origin, direction=direction)
    return QuestionData(
        level=level,
        ray=ray,
        sphere=sphere,
        tolerance=DEFAULT_TOLERANCE,
        meta=build_meta(level, ray, sphere, DEFAULT_TOLERANCE),
        b_variant=b_variant,
        seed=seed,
    )


def _forward_hittable_count(ray: Ray, spheres: list[Sphere], eps: float) -> int:
    return sum(1 for sphere in spheres if first_positive_hit_t(ray, sphere, eps) is not None)


def _has_hit_in_window(ray: Ray, spheres: list[Sphere], policy: HitPolicy) -> bool:
    return any(select_hit_for_policy(ray, sphere, policy).is_hit for sphere in spheres)


def _is_acceptable(ray: Ray, spheres: list[Sphere], policy: HitPolicy) -> bool:
    return (
        _forward_hittable_count(ray, spheres, policy.epsilon) >= MIN_FORWARD_HITTABLE
        and _has_hit_in_window(ray, spheres, policy)
    )


def _generate_multi_sphere(source, seed: str | None) -> QuestionData:
    ray = Ray(
        origin=_uniform_vec(source, MULTI_RAY_ORIGIN_RANGE),
        direction=normalize(_uniform_vec(source, MULTI_RAY_DIRECTION_RANGE)),
    )
    spheres = [
        _random_sphere(source, MULTI_CENTER_RANGE, MULTI_RADIUS_RANGE) for _ in range(MULTI_SPHERE_COUNT)
    ]
    start = source.choice(WINDOW_START_CANDIDATES)
    t_window = (start, start + source.choice(WINDOW_WIDTH_CANDIDATES))
    policy = HitPolicy(
        t_window=t_window,
        epsilon=DEFAULT_TOLERANCE,
        tangent_counts_as_hit=True,
        first_hit_wins=True,
    )

    attempts = 0
    acceptable = _is_acceptable(ray, spheres, policy)
    while not acceptable and attempts < MAX_GENERATION_ATTEMPTS:
        spheres = [
            _random_sphere(source, MULTI_CENTER_RANGE, MULTI_RADIUS_RANGE) for _ in range(MULTI_SPHERE_COUNT)
        ]
        attempts += 1
        acceptable = _is_acceptable(ray, spheres, policy)

    quality = QuestionQuality.GUARANTEED
    if not acceptable:
        quality = QuestionQuality.FALLBACK
        logger.warning(
            "Level C constraints unmet after %d attempts; keeping last sphere set", attempts
        )

    return QuestionData(
        level=Level.C,
        ray=ray,
        sphere=spheres[0],
        tolerance=DEFAULT_TOLERANCE,
        meta=build_meta(Level.C, ray, spheres[0], DEFAULT_TOLERANCE, t_window),
        t_window=t_window,
        spheres=tuple(spheres),
        policy=policy,
        c_variant=MULTI_SPHERE_VARIANT,
        quality=quality,
        seed=seed,
    )
