"""Axis-aligned box primitive.

Boxes are intersected with the slab method: the ray's full line is clipped
against the x, y and z slabs and the overlap of the three spans is the
segment inside the box. Rays parallel to a slab are handled without
dividing by zero.

Example:
    >>> from buzz.geometry.cube import Cube, hit_cube
    >>> cube = Cube(min_corner=vec3(-1, -1, -3), max_corner=vec3(1, 1, -1))
    >>> # Use hit_cube within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from buzz.geometry.hit_record import HitRecord, make_hit_record, make_miss_record
from buzz.geometry.slab import nearest_in_range, slab_span

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class Cube:
    """An axis-aligned box.

    Attributes:
        min_corner: The corner with the smallest coordinates.
        max_corner: The corner with the largest coordinates.
    """

    min_corner: vec3
    max_corner: vec3


@ti.func
def cube_interval(ray_origin: vec3, ray_direction: vec3, min_corner: vec3, max_corner: vec3):
    """Intersect the full line of a ray with a solid box.

    Returns:
        A tuple (valid, t_enter, t_exit).
    """
    valid_x, enter_x, exit_x = slab_span(ray_origin.x, ray_direction.x, min_corner.x, max_corner.x)
    valid_y, enter_y, exit_y = slab_span(ray_origin.y, ray_direction.y, min_corner.y, max_corner.y)
    valid_z, enter_z, exit_z = slab_span(ray_origin.z, ray_direction.z, min_corner.z, max_corner.z)

    t_enter = ti.max(enter_x, ti.max(enter_y, enter_z))
    t_exit = ti.min(exit_x, ti.min(exit_y, exit_z))

    valid = 0
    if valid_x == 1 and valid_y == 1 and valid_z == 1 and t_enter <= t_exit:
        valid = 1
    return valid, t_enter, t_exit


@ti.func
def cube_normal(point: vec3, min_corner: vec3, max_corner: vec3) -> vec3:
    """Outward unit normal of the box face closest to a surface point.

    The face is chosen by the largest coordinate of the point relative to
    the box centre, scaled by the half extent along each axis.
    """
    center = 0.5 * (min_corner + max_corner)
    half = 0.5 * (max_corner - min_corner)
    local = (point - center) / half

    normal = vec3(0.0, 0.0, 0.0)
    ax = ti.abs(local.x)
    ay = ti.abs(local.y)
    az = ti.abs(local.z)
    if ax >= ay and ax >= az:
        normal = vec3(ti.select(local.x > 0.0, 1.0, -1.0), 0.0, 0.0)
    elif ay >= az:
        normal = vec3(0.0, ti.select(local.y > 0.0, 1.0, -1.0), 0.0)
    else:
        normal = vec3(0.0, 0.0, ti.select(local.z > 0.0, 1.0, -1.0))
    return normal


@ti.func
def hit_cube(
    ray_origin: vec3,
    ray_direction: vec3,
    cube: Cube,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-box intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        cube: The box to test against.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A HitRecord for the nearest face crossing in (t_min, t_max).
    """
    result = make_miss_record()
    valid, t_enter, t_exit = cube_interval(ray_origin, ray_direction, cube.min_corner, cube.max_corner)
    if valid == 1:
        found, t = nearest_in_range(t_enter, t_exit, t_min, t_max)
        if found == 1:
            hit_point = ray_origin + t * ray_direction
            outward_normal = cube_normal(hit_point, cube.min_corner, cube.max_corner)
            result = make_hit_record(ray_origin, ray_direction, t, outward_normal)
    return result
