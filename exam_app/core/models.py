"""Domain models for the ray-sphere exam engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Union

from exam_app.constants.exam_constants import EPS
from exam_app.core.vector_math import Vec3, as_vec3


class Level(str, Enum):
    A = "A"
    B = "B"
    C = "C"

    @classmethod
    def parse(cls, value: "Level | str") -> "Level":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise ValueError(f"Unknown question level: {value!r} (expected A, B or C).") from exc


class ReasonCode(str, Enum):
    NO_INTERSECTION = "NO_INTERSECTION"
    NEGATIVE_T = "NEGATIVE_T"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    TANGENT = "TANGENT"
    OK = "OK"


class DeltaCase(str, Enum):
    """Sign of the discriminant, as seen through the EPS_D band."""

    NEG = "NEG"
    ZERO = "ZERO"
    POS = "POS"


class BranchCode(str, Enum):
    DELTA_LT_0 = "DELTA_LT_0"
    TANGENT = "TANGENT"
    TWO_ROOTS = "TWO_ROOTS"
    NEGATIVE_T = "NEGATIVE_T"
    OK = "OK"


class Verdict(str, Enum):
    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"


class GradeReason(str, Enum):
    OK = "OK"
    MISMATCH_SELECTION = "MISMATCH_SELECTION"
    UNSUPPORTED_LEVEL = "UNSUPPORTED_LEVEL"


class QuestionQuality(str, Enum):
    """Whether a generated question satisfied its quality constraints."""

    GUARANTEED = "guaranteed"
    FALLBACK = "fallback"


SEGMENT_VARIANT = "segment-x"
MULTI_SPHERE_VARIANT = "multi-sphere"


@dataclass(frozen=True, slots=True)
class Ray:
    """Half-line p(t) = origin + t * direction."""

    origin: Vec3
    direction: Vec3

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", as_vec3(self.origin))
        object.__setattr__(self, "direction", as_vec3(self.direction))


@dataclass(frozen=True, slots=True)
class Sphere:
    center: Vec3
    radius: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", as_vec3(self.center))
        object.__setattr__(self, "radius", float(self.radius))
        if self.radius <= 0:
            raise ValueError("Sphere radius must be positive.")


@dataclass(frozen=True, slots=True)
class HitPolicy:
    """Rules for picking the canonical hit among one or many spheres.

    ``epsilon`` does double duty: it is the forward-ray threshold (roots below
    it are behind the origin) and the slack for window bounds and ties.
    """

    t_window: tuple[float, float] | None = None
    epsilon: float = EPS
    tangent_counts_as_hit: bool = True
    first_hit_wins: bool = True

    def __post_init__(self) -> None:
        if self.t_window is not None:
            start, end = (float(bound) for bound in self.t_window)
            if start > end:
                raise ValueError("Time window start must not exceed its end.")
            object.__setattr__(self, "t_window", (start, end))
        if self.epsilon < 0:
            raise ValueError("Epsilon must be non-negative.")


@dataclass(frozen=True, slots=True)
class HitResult:
    """Canonical outcome for a single sphere."""

    reason: ReasonCode
    delta_case: DeltaCase
    roots: tuple[float, ...]
    hit_t: float | None = None

    @property
    def is_hit(self) -> bool:
        return self.hit_t is not None


@dataclass(frozen=True, slots=True)
class MultiHit:
    """Canonical outcome across an indexed sphere collection."""

    sphere_index: int
    t: float
    reason: ReasonCode
    tie_with: tuple[int, ...] = ()

    @property
    def has_tie(self) -> bool:
        return bool(self.tie_with)


@dataclass(frozen=True, slots=True)
class QuestionMeta:
    """Display-only text for a question; never graded."""

    name: str
    params: str
    prompt: str


@dataclass(frozen=True, slots=True)
class QuestionData:
    """Ground truth for one generated question instance."""

    level: Level
    ray: Ray
    sphere: Sphere
    tolerance: float
    meta: QuestionMeta
    t_window: tuple[float, float] | None = None
    spheres: tuple[Sphere, ...] = ()
    policy: HitPolicy | None = None
    b_variant: str | None = None
    c_variant: str | None = None
    quality: QuestionQuality = QuestionQuality.GUARANTEED
    seed: str | None = None
    id: int = 0  # assigned by the question repository


@dataclass(frozen=True, slots=True)
class LevelAAnswer:
    LEVEL: ClassVar[Level] = Level.A

    delta_sign: DeltaCase | None = None
    hit: bool | None = None


@dataclass(frozen=True, slots=True)
class LevelBAnswer:
    LEVEL: ClassVar[Level] = Level.B

    branch: BranchCode | None = None
    hit: bool | None = None  # learner's "does the ray reach x_to_check" judgement
    x_to_check: float | None = None
    x_threshold: float | None = None
    explanation: str | None = None


@dataclass(frozen=True, slots=True)
class LevelCAnswer:
    LEVEL: ClassVar[Level] = Level.C

    first_sphere_index: int | None = None
    t: float | None = None
    reason_code: ReasonCode | None = None
    tie_break_justification: str | None = None
    evaluation_explanation: str | None = None


StudentAnswer = Union[LevelAAnswer, LevelBAnswer, LevelCAnswer]


@dataclass(frozen=True, slots=True)
class SegmentCheck:
    x_to_check_hit_expected: bool
    x_to_check_hit_student: bool | None
    branch_expected: BranchCode
    branch_student: BranchCode | None
    branch_pass: bool
    threshold_expected: float | None
    threshold_student: float | None
    threshold_pass: bool
    passed: bool


@dataclass(frozen=True, slots=True)
class MultiSphereCheck:
    first_index_expected: int | None
    first_index_student: int | None
    t_expected: float | None
    t_student_within_tol: bool
    tie_exists: bool
    justification_ok: bool


@dataclass(frozen=True, slots=True)
class KeywordCheck:
    passed: bool
    matched: tuple[str, ...] = ()


GradeCheck = Union[SegmentCheck, MultiSphereCheck, KeywordCheck]


@dataclass(frozen=True, slots=True)
class GradingResult:
    result: Verdict
    score: float
    reason_code: GradeReason
    checks: dict[str, GradeCheck] = field(default_factory=dict)
    expected: StudentAnswer | None = None


@dataclass(frozen=True, slots=True)
class Submission:
    """A graded answer submitted by one learner for one question."""

    question_id: int
    learner: str
    answer: StudentAnswer
    grading: GradingResult
    submitted_at: datetime
