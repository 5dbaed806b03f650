"""Infinite plane primitive.

As a surface the plane is two-sided. As a CSG operand it is the closed
half-space behind its normal, ``dot(p - point, normal) <= 0``, so an
interval query returns a span that is unbounded on one side.
"""

import taichi as ti
import taichi.math as tm

from buzz.geometry.hit_record import HitRecord, make_hit_record, make_miss_record
from buzz.geometry.slab import INTERVAL_INF, PARALLEL_EPSILON

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class Plane:
    """An infinite plane through a point.

    Attributes:
        point: Any point on the plane.
        normal: Unit normal; the solid half-space lies behind it.
    """

    point: vec3
    normal: vec3


@ti.func
def plane_interval(ray_origin: vec3, ray_direction: vec3, point: vec3, normal: vec3):
    """Intersect the full line of a ray with the half-space behind a plane.

    Returns:
        A tuple (valid, t_enter, t_exit). One end is +/-INTERVAL_INF.
    """
    denom = tm.dot(ray_direction, normal)
    side = tm.dot(ray_origin - point, normal)

    valid = 1
    t_enter = -INTERVAL_INF
    t_exit = INTERVAL_INF
    if ti.abs(denom) < PARALLEL_EPSILON:
        # Parallel: the whole line is inside or outside
        if side > 0.0:
            valid = 0
    else:
        t = -side / denom
        if denom > 0.0:
            # Moving out along the normal: inside before the crossing
            t_exit = t
        else:
            t_enter = t
    return valid, t_enter, t_exit


@ti.func
def hit_plane(
    ray_origin: vec3,
    ray_direction: vec3,
    plane: Plane,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-plane intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        plane: The plane to test against.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A HitRecord; front_face is 1 when the ray arrives from the side the
        normal points to.
    """
    result = make_miss_record()
    denom = tm.dot(ray_direction, plane.normal)
    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = tm.dot(plane.point - ray_origin, plane.normal) / denom
        if t > t_min and t < t_max:
            result = make_hit_record(ray_origin, ray_direction, t, plane.normal)
    return result
