"""Numeric and grading constants shared by the generator, selector and grader."""

# Forward-ray threshold and tie/window slack. One tolerance does both jobs.
EPS: float = 1e-6
# Discriminant band: |Δ| <= EPS_D counts as tangent.
EPS_D: float = 1e-8
DEFAULT_TOLERANCE: float = 1e-6

# Level A/B sampling ranges.
SINGLE_CENTER_RANGE: tuple[float, float] = (-2.0, 2.0)
SINGLE_RADIUS_RANGE: tuple[float, float] = (0.6, 1.6)
BIASED_RAY_PROBABILITY: float = 0.75
BIASED_ORIGIN_SPREAD: float = 1.6
BIASED_DIRECTION_NOISE: float = 0.2

# Level C sampling ranges.
MULTI_SPHERE_COUNT: int = 4
MULTI_CENTER_RANGE: tuple[float, float] = (-3.0, 3.0)
MULTI_RADIUS_RANGE: tuple[float, float] = (0.4, 1.8)
MULTI_RAY_ORIGIN_RANGE: tuple[float, float] = (-2.0, 2.0)
MULTI_RAY_DIRECTION_RANGE: tuple[float, float] = (-2.0, 2.0)
WINDOW_START_CANDIDATES: tuple[float, ...] = (0.0, 0.1, 0.2, 0.4, 0.6)
WINDOW_WIDTH_CANDIDATES: tuple[float, ...] = (2.0, 3.0, 4.0)
MIN_FORWARD_HITTABLE: int = 2
MAX_GENERATION_ATTEMPTS: int = 100

# Level B weights.
BRANCH_WEIGHT: float = 0.3
REACH_WEIGHT: float = 0.3
THRESHOLD_WEIGHT: float = 0.4
# Level C weights.
INDEX_WEIGHT: float = 0.5
T_WEIGHT: float = 0.3
TIE_BREAK_WEIGHT: float = 0.2
NO_TIE_SCORE_CAP: float = 0.8
# Free-text bonus (both levels).
KEYWORD_BONUS: float = 0.2

EXPLANATION_KEYWORDS: tuple[str, ...] = (
    "ray",
    "sphere",
    "intersection",
    "root",
    "positive",
    "negative",
    "tangent",
    "geometry",
)
EVALUATION_KEYWORDS: tuple[str, ...] = ("first", "index", "policy", "tie", "tangent", "window")
TIE_BREAK_KEYWORDS: tuple[str, ...] = ("first", "index")
