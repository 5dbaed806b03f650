"""Closed cylinder primitive aligned with the z axis.

The solid is the set of points within ``radius`` of the z axis line through
``center`` and within ``height / 2`` of the centre along z. Being closed
(capped at both ends) it is a valid CSG operand.

The interval along a ray is the overlap of an infinite circular tube
(a quadratic in x and y) and the z slab.
"""

import taichi as ti
import taichi.math as tm

from buzz.geometry.hit_record import HitRecord, make_hit_record, make_miss_record
from buzz.geometry.slab import INTERVAL_INF, PARALLEL_EPSILON, nearest_in_range, slab_span
from buzz.geometry.sphere import solve_quadratic_robust

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class Cylinder:
    """A capped cylinder along the z axis.

    Attributes:
        center: Centre of the cylinder (midpoint of its axis segment).
        radius: Radius of the circular cross-section.
        height: Length along z.
    """

    center: vec3
    radius: ti.f32
    height: ti.f32


@ti.func
def _tube_span(ray_origin: vec3, ray_direction: vec3, center: vec3, radius: ti.f32):
    """Intersect the full line with the infinite tube around the z axis."""
    ox = ray_origin.x - center.x
    oy = ray_origin.y - center.y
    a = ray_direction.x * ray_direction.x + ray_direction.y * ray_direction.y
    h = ray_direction.x * ox + ray_direction.y * oy
    c = ox * ox + oy * oy - radius * radius

    valid = 1
    t_enter = -INTERVAL_INF
    t_exit = INTERVAL_INF
    if a < PARALLEL_EPSILON:
        # Ray runs along z: inside the tube for all t or never
        if c > 0.0:
            valid = 0
    else:
        discriminant = h * h - a * c
        if discriminant < 0.0:
            valid = 0
        else:
            t_enter, t_exit = solve_quadratic_robust(h, a, c, ti.sqrt(discriminant))
    return valid, t_enter, t_exit


@ti.func
def cylinder_interval(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    radius: ti.f32,
    height: ti.f32,
):
    """Intersect the full line of a ray with a solid capped cylinder.

    Returns:
        A tuple (valid, t_enter, t_exit).
    """
    half = 0.5 * height
    valid_r, enter_r, exit_r = _tube_span(ray_origin, ray_direction, center, radius)
    valid_z, enter_z, exit_z = slab_span(ray_origin.z, ray_direction.z, center.z - half, center.z + half)

    t_enter = ti.max(enter_r, enter_z)
    t_exit = ti.min(exit_r, exit_z)
    valid = 0
    if valid_r == 1 and valid_z == 1 and t_enter <= t_exit:
        valid = 1
    return valid, t_enter, t_exit


@ti.func
def cylinder_normal(point: vec3, center: vec3, radius: ti.f32, height: ti.f32) -> vec3:
    """Outward unit normal of a capped cylinder at a surface point.

    Points on the rim are assigned to whichever surface (cap or side) they
    lie closer to.
    """
    dx = point.x - center.x
    dy = point.y - center.y
    dz = point.z - center.z
    radial = ti.sqrt(dx * dx + dy * dy)
    cap_distance = ti.abs(ti.abs(dz) - 0.5 * height)
    side_distance = ti.abs(radial - radius)

    normal = vec3(0.0, 0.0, 1.0)
    if cap_distance < side_distance or radial < 1e-12:
        normal = vec3(0.0, 0.0, ti.select(dz > 0.0, 1.0, -1.0))
    else:
        normal = vec3(dx / radial, dy / radial, 0.0)
    return normal


@ti.func
def hit_cylinder(
    ray_origin: vec3,
    ray_direction: vec3,
    cylinder: Cylinder,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-cylinder intersection (side and caps).

    Returns:
        A HitRecord for the nearest surface crossing in (t_min, t_max).
    """
    result = make_miss_record()
    valid, t_enter, t_exit = cylinder_interval(
        ray_origin, ray_direction, cylinder.center, cylinder.radius, cylinder.height
    )
    if valid == 1:
        found, t = nearest_in_range(t_enter, t_exit, t_min, t_max)
        if found == 1:
            hit_point = ray_origin + t * ray_direction
            outward_normal = cylinder_normal(
                hit_point, cylinder.center, cylinder.radius, cylinder.height
            )
            result = make_hit_record(ray_origin, ray_direction, t, outward_normal)
    return result
