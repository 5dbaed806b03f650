"""Slab tests shared by the box-like primitives.

A slab is the region between two parallel planes ``lo <= x <= hi`` along one
axis. Intersecting a ray's full line with a slab gives a (possibly unbounded)
parameter span; cubes intersect three slabs and cylinders intersect one slab
with a circular cross-section.

Spans use ``INTERVAL_INF`` in place of infinity so that ordinary float
comparisons keep working in the CSG sweep.
"""

import taichi as ti

# Stand-in for an unbounded interval end (well beyond any T_MAX)
INTERVAL_INF = 1e30

# Direction components smaller than this are treated as parallel to a slab
PARALLEL_EPSILON = 1e-12


@ti.func
def slab_span(origin: ti.f32, direction: ti.f32, lo: ti.f32, hi: ti.f32):
    """Intersect the full line ``origin + t * direction`` with ``[lo, hi]``.

    Args:
        origin: Ray origin component along the slab axis.
        direction: Ray direction component along the slab axis.
        lo: Lower slab bound.
        hi: Upper slab bound.

    Returns:
        A tuple (valid, t_enter, t_exit). For a ray parallel to the slab the
        span is unbounded if the origin lies inside, otherwise invalid.
    """
    valid = 1
    t_enter = -INTERVAL_INF
    t_exit = INTERVAL_INF
    if ti.abs(direction) < PARALLEL_EPSILON:
        if origin < lo or origin > hi:
            valid = 0
    else:
        inv = 1.0 / direction
        t0 = (lo - origin) * inv
        t1 = (hi - origin) * inv
        t_enter = ti.min(t0, t1)
        t_exit = ti.max(t0, t1)
    return valid, t_enter, t_exit


@ti.func
def nearest_in_range(t_enter: ti.f32, t_exit: ti.f32, t_min: ti.f32, t_max: ti.f32):
    """Pick the first of two span boundaries inside the open range (t_min, t_max).

    Returns:
        A tuple (found, t).
    """
    found = 0
    t = 0.0
    if t_enter > t_min and t_enter < t_max:
        found = 1
        t = t_enter
    elif t_exit > t_min and t_exit < t_max:
        found = 1
        t = t_exit
    return found, t
