"""Tests for partial-credit grading."""

import random

import pytest

from exam_app.core.grader import feedback_message, grade, matched_keywords, verdict_for
from exam_app.core.models import (
    SEGMENT_VARIANT,
    BranchCode,
    DeltaCase,
    GradeReason,
    LevelAAnswer,
    LevelBAnswer,
    LevelCAnswer,
    ReasonCode,
    Sphere,
    Verdict,
)
from exam_app.core.question_generator import generate_question


@pytest.fixture
def segment_question(make_question, z_ray, unit_sphere):
    """Level B segment question whose first hit is at t=4."""
    return make_question("B", z_ray, unit_sphere, b_variant=SEGMENT_VARIANT)


class TestSegmentGrading:
    """Level B, segment variant."""

    def test_perfect_answer(self, segment_question):
        answer = LevelBAnswer(branch=BranchCode.OK, hit=True, x_to_check=5.0, x_threshold=4.0)
        result = grade(segment_question, answer)
        assert result.score == 1.0
        assert result.result is Verdict.CORRECT
        assert result.reason_code is GradeReason.OK
        check = result.checks["b_segment"]
        assert check.passed
        assert check.threshold_expected == 4.0
        assert "explanation_ok" not in result.checks

    def test_wrong_branch_costs_its_weight(self, segment_question):
        answer = LevelBAnswer(branch=BranchCode.TWO_ROOTS, hit=True, x_to_check=5.0, x_threshold=4.0)
        result = grade(segment_question, answer)
        assert result.score == pytest.approx(0.7)
        assert result.result is Verdict.PARTIAL
        assert result.reason_code is GradeReason.MISMATCH_SELECTION
        assert not result.checks["b_segment"].branch_pass

    def test_x_short_of_hit_means_no_reach(self, segment_question):
        answer = LevelBAnswer(branch=BranchCode.OK, hit=False, x_to_check=3.5, x_threshold=4.0)
        result = grade(segment_question, answer)
        assert result.score == 1.0
        assert result.expected.hit is False

    def test_reach_judgement_is_checked(self, segment_question):
        answer = LevelBAnswer(branch=BranchCode.OK, hit=True, x_to_check=3.5, x_threshold=4.0)
        assert grade(segment_question, answer).score == pytest.approx(0.7)

    def test_threshold_within_tolerance(self, segment_question):
        close = LevelBAnswer(branch=BranchCode.OK, hit=True, x_to_check=5.0, x_threshold=4.0 + 5e-7)
        far = LevelBAnswer(branch=BranchCode.OK, hit=True, x_to_check=5.0, x_threshold=4.01)
        assert grade(segment_question, close).score == 1.0
        assert grade(segment_question, far).score == pytest.approx(0.6)

    def test_empty_answer_only_earns_reach(self, segment_question):
        result = grade(segment_question, LevelBAnswer())
        assert result.score == pytest.approx(0.3)
        assert result.result is Verdict.PARTIAL

    def test_miss_expects_no_threshold(self, make_question, z_ray):
        question = make_question("B", z_ray, Sphere(center=(5.0, 0.0, 0.0), radius=1.0), b_variant=SEGMENT_VARIANT)
        answer = LevelBAnswer(branch=BranchCode.DELTA_LT_0, hit=False, x_to_check=10.0)
        result = grade(question, answer)
        assert result.score == 1.0
        assert result.expected.branch is BranchCode.DELTA_LT_0
        assert result.expected.x_threshold is None

    def test_threshold_given_for_a_miss_is_wrong(self, make_question, z_ray):
        question = make_question("B", z_ray, Sphere(center=(5.0, 0.0, 0.0), radius=1.0), b_variant=SEGMENT_VARIANT)
        answer = LevelBAnswer(branch=BranchCode.DELTA_LT_0, hit=False, x_to_check=10.0, x_threshold=1.0)
        assert grade(question, answer).score == pytest.approx(0.6)

    def test_sphere_behind_is_negative_t(self, make_question, z_ray):
        question = make_question("B", z_ray, Sphere(center=(0.0, 0.0, -10.0), radius=1.0), b_variant=SEGMENT_VARIANT)
        result = grade(question, LevelBAnswer(branch=BranchCode.NEGATIVE_T, hit=False, x_to_check=10.0))
        assert result.expected.branch is BranchCode.NEGATIVE_T
        assert result.score == 1.0

    def test_tangent_branch(self, make_question, z_ray):
        question = make_question("B", z_ray, Sphere(center=(1.0, 0.0, 0.0), radius=1.0), b_variant=SEGMENT_VARIANT)
        answer = LevelBAnswer(branch=BranchCode.TANGENT, hit=True, x_to_check=5.0, x_threshold=5.0)
        result = grade(question, answer)
        assert result.expected.branch is BranchCode.TANGENT
        assert result.score == 1.0


class TestDefaultLevelBGrading:
    """Level B without a variant adds an explanation keyword bonus."""

    def test_bonus_is_clamped(self, make_question, z_ray, unit_sphere):
        question = make_question("B", z_ray, unit_sphere)
        answer = LevelBAnswer(
            branch=BranchCode.OK,
            hit=True,
            x_to_check=5.0,
            x_threshold=4.0,
            explanation="The ray enters the Sphere at the smaller positive root.",
        )
        result = grade(question, answer)
        assert result.score == 1.0
        assert result.result is Verdict.CORRECT
        check = result.checks["explanation_ok"]
        assert check.passed
        assert check.matched == ("ray", "sphere", "root", "positive")

    def test_bonus_lifts_partial_answer(self, make_question, z_ray, unit_sphere):
        question = make_question("B", z_ray, unit_sphere)
        answer = LevelBAnswer(branch=BranchCode.TWO_ROOTS, hit=True, x_to_check=5.0, x_threshold=4.0, explanation="tangent?")
        result = grade(question, answer)
        assert result.score == pytest.approx(0.9)
        assert result.result is Verdict.PARTIAL

    def test_unrelated_explanation_earns_nothing(self, make_question, z_ray, unit_sphere):
        question = make_question("B", z_ray, unit_sphere)
        answer = LevelBAnswer(branch=BranchCode.TWO_ROOTS, hit=True, x_to_check=5.0, x_threshold=4.0, explanation="no idea")
        result = grade(question, answer)
        assert result.score == pytest.approx(0.7)
        assert not result.checks["explanation_ok"].passed


class TestMultiSphereGrading:
    """Level C first-hit grading."""

    @pytest.fixture
    def no_tie_question(self, make_question, axis_ray, sphere_at):
        spheres = [sphere_at(6.0), sphere_at(3.0)]
        return make_question("C", axis_ray, spheres[0], spheres=spheres, t_window=(0.0, 10.0))

    @pytest.fixture
    def tie_question(self, make_question, axis_ray, sphere_at):
        spheres = [sphere_at(3.0000001), sphere_at(3.0000003)]
        return make_question("C", axis_ray, spheres[0], spheres=spheres, t_window=(0.0, 10.0))

    def test_correct_answer_without_tie_is_capped(self, no_tie_question):
        result = grade(no_tie_question, LevelCAnswer(first_sphere_index=1, t=3.0))
        assert result.score == pytest.approx(0.8)
        assert result.result is Verdict.PARTIAL
        check = result.checks["c_multi"]
        assert check.first_index_expected == 1
        assert not check.tie_exists
        assert result.expected.reason_code is ReasonCode.OK

    def test_evaluation_explanation_breaks_the_cap(self, no_tie_question):
        answer = LevelCAnswer(first_sphere_index=1, t=3.0, evaluation_explanation="First hit inside the window.")
        result = grade(no_tie_question, answer)
        assert result.score == 1.0
        assert result.result is Verdict.CORRECT
        assert result.checks["evaluation_explanation_ok"].matched == ("first", "window")

    def test_justification_is_ignored_without_tie(self, no_tie_question):
        answer = LevelCAnswer(first_sphere_index=1, t=3.0, tie_break_justification="lowest index first")
        assert grade(no_tie_question, answer).score == pytest.approx(0.8)

    def test_wrong_index(self, no_tie_question):
        result = grade(no_tie_question, LevelCAnswer(first_sphere_index=0, t=3.0))
        assert result.score == pytest.approx(0.3)

    def test_tie_with_justification_is_full_marks(self, tie_question):
        answer = LevelCAnswer(first_sphere_index=0, t=3.0000001, tie_break_justification="Lowest INDEX wins")
        result = grade(tie_question, answer)
        assert result.score == 1.0
        assert result.checks["c_multi"].tie_exists
        assert result.checks["c_multi"].justification_ok

    def test_tie_without_justification(self, tie_question):
        result = grade(tie_question, LevelCAnswer(first_sphere_index=0, t=3.0000001))
        assert result.score == pytest.approx(0.8)
        assert not result.checks["c_multi"].justification_ok

    def test_t_tolerance(self, no_tie_question):
        assert grade(no_tie_question, LevelCAnswer(first_sphere_index=1, t=3.0 + 5e-7)).score == pytest.approx(0.8)
        assert grade(no_tie_question, LevelCAnswer(first_sphere_index=1, t=3.00001)).score == pytest.approx(0.5)

    def test_single_sphere_fallback(self, make_question, axis_ray, sphere_at):
        question = make_question("C", axis_ray, sphere_at(2.0), t_window=(0.0, 5.0))
        result = grade(question, LevelCAnswer(first_sphere_index=0, t=2.0))
        assert result.checks["c_multi"].first_index_expected == 0
        assert result.score == pytest.approx(0.8)


class TestUnsupported:
    """Combinations without a grader."""

    def test_level_a(self, make_question, z_ray, unit_sphere):
        question = make_question("A", z_ray, unit_sphere)
        result = grade(question, LevelAAnswer(delta_sign=DeltaCase.POS, hit=True))
        assert result.reason_code is GradeReason.UNSUPPORTED_LEVEL
        assert result.score == 0.0
        assert result.result is Verdict.INCORRECT

    def test_answer_for_other_level(self, segment_question):
        result = grade(segment_question, LevelCAnswer(first_sphere_index=0, t=4.0))
        assert result.reason_code is GradeReason.UNSUPPORTED_LEVEL

    def test_unknown_variants(self, make_question, z_ray, unit_sphere, axis_ray, sphere_at):
        b_question = make_question("B", z_ray, unit_sphere, b_variant="other")
        c_question = make_question("C", axis_ray, sphere_at(2.0), c_variant="other")
        assert grade(b_question, LevelBAnswer()).reason_code is GradeReason.UNSUPPORTED_LEVEL
        assert grade(c_question, LevelCAnswer()).reason_code is GradeReason.UNSUPPORTED_LEVEL


class TestScoreInvariants:
    """Properties that hold for any generated question."""

    @pytest.mark.parametrize("seed", range(15))
    def test_score_bounds_and_verdict(self, seed):
        rng = random.Random(seed)
        answers = [
            (
                generate_question("B", rng=rng),
                LevelBAnswer(branch=BranchCode.OK, hit=rng.random() < 0.5, x_to_check=2.0, explanation="ray"),
            ),
            (
                generate_question("B", rng=rng, b_variant=SEGMENT_VARIANT),
                LevelBAnswer(x_threshold=rng.uniform(0, 5)),
            ),
            (
                generate_question("C", rng=rng),
                LevelCAnswer(first_sphere_index=rng.randrange(4), t=rng.uniform(0, 5), evaluation_explanation="tie"),
            ),
        ]
        for question, answer in answers:
            result = grade(question, answer)
            assert 0.0 <= result.score <= 1.0
            assert (result.result is Verdict.CORRECT) == (result.score == 1.0)

    def test_expected_answer_scores_full_marks_on_segment_questions(self):
        rng = random.Random(99)
        for _ in range(20):
            question = generate_question("B", rng=rng, b_variant=SEGMENT_VARIANT)
            first_try = LevelBAnswer(x_to_check=1.5)
            expected = grade(question, first_try).expected
            assert grade(question, expected).score == 1.0


class TestHelpers:
    def test_matched_keywords_is_case_insensitive(self):
        assert matched_keywords("FIRST by Index", ("first", "index")) == ("first", "index")
        assert matched_keywords(None, ("first",)) == ()

    @pytest.mark.parametrize(
        ("score", "verdict"),
        [(1.0, Verdict.CORRECT), (0.5, Verdict.PARTIAL), (0.0, Verdict.INCORRECT)],
    )
    def test_verdict_for(self, score, verdict):
        assert verdict_for(score) is verdict

    def test_feedback_messages(self, segment_question):
        perfect = grade(segment_question, LevelBAnswer(branch=BranchCode.OK, hit=True, x_to_check=5.0, x_threshold=4.0))
        partial = grade(segment_question, LevelBAnswer())
        assert feedback_message(perfect) == "Correct! Well done!"
        assert feedback_message(partial) == "Partially correct. Score: 30%"
        assert feedback_message(grade(segment_question, LevelAAnswer())) == "Incorrect. Please review your answer."
