import random

import pytest
from fastapi.testclient import TestClient

from exam_app.core.exam_manager import ExamManager
from exam_app.core.models import HitPolicy, Level, QuestionData, Ray, Sphere
from exam_app.core.question_generator import build_meta
from exam_app.server.api_server import create_api_app


@pytest.fixture
def z_ray():
    """Ray from z=-5 travelling along +z."""
    return Ray(origin=(0.0, 0.0, -5.0), direction=(0.0, 0.0, 1.0))


@pytest.fixture
def unit_sphere():
    return Sphere(center=(0.0, 0.0, 0.0), radius=1.0)


@pytest.fixture
def axis_ray():
    """Ray from the origin along +z; a unit sphere centred at z=k is first hit at t=k-1."""
    return Ray(origin=(0.0, 0.0, 0.0), direction=(0.0, 0.0, 1.0))


@pytest.fixture
def sphere_at():
    """Unit sphere on the +z axis whose first hit from the origin is at ``t``."""

    def factory(t: float) -> Sphere:
        return Sphere(center=(0.0, 0.0, t + 1.0), radius=1.0)

    return factory


@pytest.fixture
def make_question():
    def factory(level, ray, sphere, *, spheres=(), t_window=None, b_variant=None, c_variant=None, tolerance=1e-6):
        level = Level.parse(level)
        policy = None
        if level is Level.C:
            policy = HitPolicy(t_window=t_window, epsilon=tolerance)
        return QuestionData(
            level=level,
            ray=ray,
            sphere=sphere,
            tolerance=tolerance,
            meta=build_meta(level, ray, sphere, tolerance, t_window),
            t_window=t_window,
            spheres=tuple(spheres),
            policy=policy,
            b_variant=b_variant,
            c_variant=c_variant,
        )

    return factory


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def manager():
    return ExamManager()


@pytest.fixture
def client(manager):
    return TestClient(create_api_app(manager))
