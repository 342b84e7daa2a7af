"""Ray-sphere intersection, hit selection, question generation and grading."""

from .grader import grade
from .hit_selection import select_hit, select_multi_hit
from .intersection import intersect
from .question_generator import generate_question

__all__ = [
    "generate_question",
    "grade",
    "intersect",
    "select_hit",
    "select_multi_hit",
]
