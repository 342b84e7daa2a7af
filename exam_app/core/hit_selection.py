"""Canonical hit selection for one sphere or an indexed sphere collection."""

from __future__ import annotations

from collections.abc import Sequence

from exam_app.constants.exam_constants import EPS
from exam_app.core.intersection import first_positive_hit_t, intersect
from exam_app.core.models import DeltaCase, HitPolicy, HitResult, MultiHit, Ray, ReasonCode, Sphere


def _outside(t: float, t_window: tuple[float, float] | None, slack: float = 0.0) -> bool:
    if t_window is None:
        return False
    return t < t_window[0] - slack or t > t_window[1] + slack


def select_hit(
    roots: Sequence[float],
    *,
    t_window: tuple[float, float] | None = None,
    epsilon: float = EPS,
    treat_tangent_as_hit: bool = True,
) -> HitResult:
    """Pick the nearest forward root of a single sphere, or explain why there is none.

    Only the smallest root at or past ``epsilon`` can be the hit. When that root
    falls outside ``t_window`` the result is OUT_OF_RANGE; a later root is never
    substituted. Window bounds here are exact (no epsilon slack).
    """
    ordered = tuple(sorted(float(t) for t in roots))

    if not ordered:
        return HitResult(reason=ReasonCode.NO_INTERSECTION, delta_case=DeltaCase.NEG, roots=ordered)

    if len(ordered) == 1:
        t0 = ordered[0]
        if t0 < epsilon:
            return HitResult(reason=ReasonCode.NEGATIVE_T, delta_case=DeltaCase.ZERO, roots=ordered)
        if _outside(t0, t_window):
            return HitResult(reason=ReasonCode.OUT_OF_RANGE, delta_case=DeltaCase.ZERO, roots=ordered)
        if not treat_tangent_as_hit:
            return HitResult(reason=ReasonCode.TANGENT, delta_case=DeltaCase.ZERO, roots=ordered)
        return HitResult(reason=ReasonCode.TANGENT, delta_case=DeltaCase.ZERO, roots=ordered, hit_t=t0)

    forward = [t for t in ordered if t >= epsilon]
    if not forward:
        return HitResult(reason=ReasonCode.NEGATIVE_T, delta_case=DeltaCase.POS, roots=ordered)
    t_hit = forward[0]
    if _outside(t_hit, t_window):
        return HitResult(reason=ReasonCode.OUT_OF_RANGE, delta_case=DeltaCase.POS, roots=ordered)
    return HitResult(reason=ReasonCode.OK, delta_case=DeltaCase.POS, roots=ordered, hit_t=t_hit)


def select_hit_for_policy(ray: Ray, sphere: Sphere, policy: HitPolicy) -> HitResult:
    return select_hit(
        intersect(ray, sphere),
        t_window=policy.t_window,
        epsilon=policy.epsilon,
        treat_tangent_as_hit=policy.tangent_counts_as_hit,
    )


def select_multi_hit(ray: Ray, spheres: Sequence[Sphere], policy: HitPolicy) -> MultiHit | None:
    """Pick the first valid hit across ``spheres``; list indices for near ties.

    Spheres are visited in index order. A candidate replaces the running best
    only when it is earlier by more than ``epsilon``; a candidate within
    ``epsilon`` of the best is recorded in ``tie_with`` and the lower index
    keeps the win. The window is padded by ``epsilon`` on both sides.
    """
    eps = policy.epsilon
    best: MultiHit | None = None
    ties: list[int] = []

    for index, sphere in enumerate(spheres):
        t = first_positive_hit_t(ray, sphere, eps)
        if t is None:
            continue
        if _outside(t, policy.t_window, eps):
            continue
        reason = ReasonCode.TANGENT if len(intersect(ray, sphere)) == 1 else ReasonCode.OK
        if reason is ReasonCode.TANGENT and not policy.tangent_counts_as_hit:
            continue

        if best is None or t < best.t - eps:
            best = MultiHit(sphere_index=index, t=t, reason=reason)
            ties = []
        elif abs(t - best.t) <= eps:
            ties.append(index)

    if best is None:
        return None
    if ties:
        return MultiHit(sphere_index=best.sphere_index, t=best.t, reason=best.reason, tie_with=tuple(ties))
    return best
