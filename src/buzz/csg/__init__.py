"""Constructive Solid Geometry engine.

Components:
    intervals: Scratch storage of per-ray interval lists and primitive spans
    combine: Union, intersection and difference of two interval lists
    evaluate: Compiled CSG programs, stack evaluation and nearest-hit query

Solids are described by the ordered spans along a ray where the ray is
inside them. Boolean operations combine span lists with a sweep over their
boundary events, so arbitrarily nested trees are evaluated without recursion.
"""

from .combine import CsgOp, combine_levels, membership
from .evaluate import (
    MAX_PROGRAM,
    OP_PUSH,
    clear_programs,
    csg_hit,
    evaluate_program,
    load_programs,
    probe_program,
    probe_shape,
)
from .intervals import CSG_EPSILON, CSG_STACK_DEPTH, MAX_INTERVALS, MAX_TILE_PIXELS, write_shape_intervals

__all__ = [
    "CsgOp",
    "membership",
    "combine_levels",
    "OP_PUSH",
    "MAX_PROGRAM",
    "clear_programs",
    "load_programs",
    "evaluate_program",
    "csg_hit",
    "probe_program",
    "probe_shape",
    "CSG_EPSILON",
    "CSG_STACK_DEPTH",
    "MAX_INTERVALS",
    "MAX_TILE_PIXELS",
    "write_shape_intervals",
]
