"""Partial-credit grading of learner answers against generated ground truth.

Level B checks the branch code, the "does the ray reach x" judgement and the
numeric threshold (0.3 / 0.3 / 0.4). The default B variant adds a keyword
bonus for the free-text explanation. Level C checks the winning sphere index
and its hit time (0.5 / 0.3) and, only when a tie exists, a tie-break
justification (0.2); without a tie the score is capped at 0.8 before an
optional evaluation-explanation bonus. Every score is clamped to [0, 1] and
``correct`` means exactly full marks.

Unimplemented level/variant combinations, and answers whose level does not
match the question, come back as UNSUPPORTED_LEVEL with a zero score.
"""

from __future__ import annotations

from collections.abc import Iterable

from exam_app.constants.exam_constants import (
    BRANCH_WEIGHT,
    EVALUATION_KEYWORDS,
    EXPLANATION_KEYWORDS,
    INDEX_WEIGHT,
    KEYWORD_BONUS,
    NO_TIE_SCORE_CAP,
    REACH_WEIGHT,
    T_WEIGHT,
    THRESHOLD_WEIGHT,
    TIE_BREAK_KEYWORDS,
    TIE_BREAK_WEIGHT,
)
from exam_app.core.hit_selection import select_multi_hit
from exam_app.core.intersection import delta_case_for_roots, first_positive_hit_t, intersect
from exam_app.core.models import (
    MULTI_SPHERE_VARIANT,
    SEGMENT_VARIANT,
    BranchCode,
    DeltaCase,
    GradeReason,
    GradingResult,
    HitPolicy,
    KeywordCheck,
    Level,
    LevelBAnswer,
    LevelCAnswer,
    MultiSphereCheck,
    QuestionData,
    SegmentCheck,
    StudentAnswer,
    Verdict,
)


def nearly_equal(a: float, b: float, tol: float) -> bool:
    return abs(a - b) <= tol


def expected_branch(delta_case: DeltaCase, hit_t: float | None) -> BranchCode:
    if delta_case is DeltaCase.NEG:
        return BranchCode.DELTA_LT_0
    if delta_case is DeltaCase.ZERO:
        return BranchCode.TANGENT
    if hit_t is None:
        return BranchCode.NEGATIVE_T
    return BranchCode.OK


def matched_keywords(text: str | None, keywords: Iterable[str]) -> tuple[str, ...]:
    """Case-insensitive substring matches of ``keywords`` in ``text``."""
    if not text:
        return ()
    lowered = text.lower()
    return tuple(keyword for keyword in keywords if keyword in lowered)


def verdict_for(score: float) -> Verdict:
    if score == 1.0:
        return Verdict.CORRECT
    if score > 0:
        return Verdict.PARTIAL
    return Verdict.INCORRECT


def feedback_message(result: GradingResult) -> str:
    """Short learner-facing message for a verdict."""
    if result.result is Verdict.CORRECT:
        return "Correct! Well done!"
    if result.result is Verdict.PARTIAL:
        return f"Partially correct. Score: {result.score * 100:.0f}%"
    return "Incorrect. Please review your answer."


def _clamp(score: float) -> float:
    # Rounding keeps sums like 0.3 + 0.3 + 0.4 at exactly 1.0.
    return round(min(1.0, max(0.0, score)), 9)


def _result(score: float, checks: dict, expected: StudentAnswer | None) -> GradingResult:
    final = _clamp(score)
    verdict = verdict_for(final)
    return GradingResult(
        result=verdict,
        score=final,
        reason_code=GradeReason.OK if verdict is Verdict.CORRECT else GradeReason.MISMATCH_SELECTION,
        checks=checks,
        expected=expected,
    )


def unsupported() -> GradingResult:
    return GradingResult(result=Verdict.INCORRECT, score=0.0, reason_code=GradeReason.UNSUPPORTED_LEVEL)


def grade(question: QuestionData, answer: StudentAnswer) -> GradingResult:
    """Grade ``answer`` against ``question``; never raises for domain mismatches."""
    if question.level is Level.B and isinstance(answer, LevelBAnswer):
        if question.b_variant == SEGMENT_VARIANT:
            return _grade_segment(question, answer, with_explanation=False)
        if question.b_variant is None:
            return _grade_segment(question, answer, with_explanation=True)
    if question.level is Level.C and isinstance(answer, LevelCAnswer):
        if question.c_variant in (None, MULTI_SPHERE_VARIANT):
            return _grade_multi_sphere(question, answer)
    return unsupported()


def _grade_segment(question: QuestionData, answer: LevelBAnswer, *, with_explanation: bool) -> GradingResult:
    tol = question.tolerance
    roots = intersect(question.ray, question.sphere)
    t_hit = first_positive_hit_t(question.ray, question.sphere, tol)

    x_to_check = answer.x_to_check
    reach_expected = x_to_check is not None and t_hit is not None and t_hit <= x_to_check + tol
    # An absent judgement reads as "does not reach".
    reach_pass = (answer.hit is True) == reach_expected

    branch = expected_branch(delta_case_for_roots(roots), t_hit)
    branch_pass = answer.branch == branch

    if t_hit is None:
        threshold_pass = answer.x_threshold is None
    else:
        threshold_pass = answer.x_threshold is not None and nearly_equal(answer.x_threshold, t_hit, tol)

    score = 0.0
    if branch_pass:
        score += BRANCH_WEIGHT
    if reach_pass:
        score += REACH_WEIGHT
    if threshold_pass:
        score += THRESHOLD_WEIGHT

    checks: dict = {
        "b_segment": SegmentCheck(
            x_to_check_hit_expected=reach_expected,
            x_to_check_hit_student=answer.hit,
            branch_expected=branch,
            branch_student=answer.branch,
            branch_pass=branch_pass,
            threshold_expected=t_hit,
            threshold_student=answer.x_threshold,
            threshold_pass=threshold_pass,
            passed=branch_pass and reach_pass and threshold_pass,
        )
    }
    if with_explanation:
        matched = matched_keywords(answer.explanation, EXPLANATION_KEYWORDS)
        checks["explanation_ok"] = KeywordCheck(passed=bool(matched), matched=matched)
        if matched:
            score += KEYWORD_BONUS

    expected = LevelBAnswer(branch=branch, hit=reach_expected, x_to_check=x_to_check, x_threshold=t_hit)
    return _result(score, checks, expected)


def _grade_multi_sphere(question: QuestionData, answer: LevelCAnswer) -> GradingResult:
    policy = question.policy or HitPolicy(t_window=question.t_window, epsilon=question.tolerance)
    spheres = question.spheres or (question.sphere,)
    best = select_multi_hit(question.ray, spheres, policy)

    index_expected = best.sphere_index if best is not None else None
    t_expected = best.t if best is not None else None
    tie_exists = best is not None and best.has_tie

    t_within_tol = (
        t_expected is not None and answer.t is not None and nearly_equal(answer.t, t_expected, policy.epsilon)
    )
    justification_ok = True
    if tie_exists:
        justification_ok = bool(matched_keywords(answer.tie_break_justification, TIE_BREAK_KEYWORDS))

    score = 0.0
    if answer.first_sphere_index == index_expected:
        score += INDEX_WEIGHT
    if t_within_tol:
        score += T_WEIGHT
    if tie_exists and justification_ok:
        score += TIE_BREAK_WEIGHT
    if not tie_exists:
        score = min(score, NO_TIE_SCORE_CAP)

    checks: dict = {
        "c_multi": MultiSphereCheck(
            first_index_expected=index_expected,
            first_index_student=answer.first_sphere_index,
            t_expected=t_expected,
            t_student_within_tol=t_within_tol,
            tie_exists=tie_exists,
            justification_ok=justification_ok,
        )
    }
    if answer.evaluation_explanation is not None:
        matched = matched_keywords(answer.evaluation_explanation, EVALUATION_KEYWORDS)
        checks["evaluation_explanation_ok"] = KeywordCheck(passed=bool(matched), matched=matched)
        if matched:
            score += KEYWORD_BONUS

    expected = LevelCAnswer(
        first_sphere_index=index_expected,
        t=t_expected,
        reason_code=best.reason if best is not None else None,
    )
    return _result(score, checks, expected)
