"""Global shape table and per-kind dispatch.

Every primitive of a scene (including the leaves of CSG trees) is stored in a
structure-of-arrays table. The meaning of the generic columns depends on the
shape kind:

    kind       vec_a        vec_b        scalar_a   scalar_b
    SPHERE     center       -            radius     -
    CUBE       min_corner   max_corner   -          -
    PLANE      point        unit normal  -          -
    CYLINDER   center       -            radius     height
    MESH       -            -            -          -

Meshes reference the contiguous triangle range
``[tri_start, tri_start + tri_count)`` of the triangle table.

Example:
    >>> @ti.kernel
    ... def probe() -> ti.i32:
    ...     rec = shape_hit(0, vec3(0, 0, 5), vec3(0, 0, -1), 1e-4, 1e10)
    ...     return rec.hit
"""

from enum import IntEnum

import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from buzz.core.fields import fill_field
from buzz.geometry.cube import Cube, cube_interval, cube_normal, hit_cube
from buzz.geometry.cylinder import Cylinder, cylinder_interval, cylinder_normal, hit_cylinder
from buzz.geometry.hit_record import HitRecord, make_miss_record
from buzz.geometry.plane import Plane, hit_plane, plane_interval
from buzz.geometry.sphere import Sphere, hit_sphere, sphere_interval, sphere_normal
from buzz.geometry.triangle import (
    Triangle,
    hit_triangle,
    triangle_barycentric,
    triangle_shading_normal,
)

# Type alias for 3D vectors
vec3 = tm.vec3


class ShapeKind(IntEnum):
    """Shape kinds stored in the shape table."""

    SPHERE = 0
    CUBE = 1
    PLANE = 2
    CYLINDER = 3
    MESH = 4


# Maximum number of shapes and triangles supported in a scene
MAX_SHAPES = 1024
MAX_TRIANGLES = 65536

# Shape storage: Structure of Arrays layout
shape_kinds = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_vec_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_vec_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_scalar_a = ti.field(dtype=ti.f32, shape=MAX_SHAPES)
shape_scalar_b = ti.field(dtype=ti.f32, shape=MAX_SHAPES)
shape_tri_start = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_tri_count = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_material_ids = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
num_shapes = ti.field(dtype=ti.i32, shape=())

# Triangle storage
tri_v0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
tri_v1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
tri_v2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
tri_n0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
tri_n1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
tri_n2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
tri_smooth = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())


def clear_shapes() -> None:
    """Reset the shape and triangle counts to zero."""
    num_shapes[None] = 0
    num_triangles[None] = 0


def load_shapes(
    kinds: npt.ArrayLike,
    vec_a: npt.ArrayLike,
    vec_b: npt.ArrayLike,
    scalar_a: npt.ArrayLike,
    scalar_b: npt.ArrayLike,
    tri_start: npt.ArrayLike,
    tri_count: npt.ArrayLike,
    material_ids: npt.ArrayLike,
) -> int:
    """Replace the shape table with the given columns.

    Returns:
        The number of shapes loaded.

    Raises:
        ValueError: If the table exceeds MAX_SHAPES rows.
    """
    count = fill_field(shape_kinds, kinds)
    fill_field(shape_vec_a, vec_a)
    fill_field(shape_vec_b, vec_b)
    fill_field(shape_scalar_a, scalar_a)
    fill_field(shape_scalar_b, scalar_b)
    fill_field(shape_tri_start, tri_start)
    fill_field(shape_tri_count, tri_count)
    fill_field(shape_material_ids, material_ids)
    num_shapes[None] = count
    return count


def load_triangles(
    v0: npt.ArrayLike,
    v1: npt.ArrayLike,
    v2: npt.ArrayLike,
    n0: npt.ArrayLike,
    n1: npt.ArrayLike,
    n2: npt.ArrayLike,
    smooth: npt.ArrayLike,
) -> int:
    """Replace the triangle table with the given columns.

    Returns:
        The number of triangles loaded.

    Raises:
        ValueError: If the table exceeds MAX_TRIANGLES rows.
    """
    count = fill_field(tri_v0, v0)
    fill_field(tri_v1, v1)
    fill_field(tri_v2, v2)
    fill_field(tri_n0, n0)
    fill_field(tri_n1, n1)
    fill_field(tri_n2, n2)
    fill_field(tri_smooth, smooth)
    num_triangles[None] = count
    return count


def get_shape_count() -> int:
    """Get the number of shapes currently loaded."""
    return int(num_shapes[None])


@ti.func
def get_triangle(index: ti.i32) -> Triangle:
    """Read a triangle from the triangle table."""
    return Triangle(
        v0=tri_v0[index],
        v1=tri_v1[index],
        v2=tri_v2[index],
        n0=tri_n0[index],
        n1=tri_n1[index],
        n2=tri_n2[index],
        smooth=tri_smooth[index],
    )


@ti.func
def mesh_hit(shape: ti.i32, ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Closest hit among the triangles of a mesh."""
    closest_t = t_max
    result = make_miss_record()
    start = shape_tri_start[shape]
    for k in range(shape_tri_count[shape]):
        rec = hit_triangle(ray_origin, ray_direction, get_triangle(start + k), t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec
    return result


@ti.func
def shape_hit(shape: ti.i32, ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Nearest hit of one shape within (t_min, t_max).

    Args:
        shape: Index into the shape table.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A HitRecord carrying the shape's material ID.
    """
    kind = shape_kinds[shape]
    rec = make_miss_record()
    if kind == int(ShapeKind.SPHERE):
        sphere = Sphere(center=shape_vec_a[shape], radius=shape_scalar_a[shape])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
    elif kind == int(ShapeKind.CUBE):
        cube = Cube(min_corner=shape_vec_a[shape], max_corner=shape_vec_b[shape])
        rec = hit_cube(ray_origin, ray_direction, cube, t_min, t_max)
    elif kind == int(ShapeKind.PLANE):
        plane = Plane(point=shape_vec_a[shape], normal=shape_vec_b[shape])
        rec = hit_plane(ray_origin, ray_direction, plane, t_min, t_max)
    elif kind == int(ShapeKind.CYLINDER):
        cylinder = Cylinder(
            center=shape_vec_a[shape],
            radius=shape_scalar_a[shape],
            height=shape_scalar_b[shape],
        )
        rec = hit_cylinder(ray_origin, ray_direction, cylinder, t_min, t_max)
    elif kind == int(ShapeKind.MESH):
        rec = mesh_hit(shape, ray_origin, ray_direction, t_min, t_max)

    if rec.hit == 1:
        rec.material_id = shape_material_ids[shape]
    return rec


@ti.func
def convex_shape_interval(shape: ti.i32, ray_origin: vec3, ray_direction: vec3):
    """Full-line interval of a convex shape (anything but a mesh).

    Returns:
        A tuple (valid, t_enter, t_exit).
    """
    kind = shape_kinds[shape]
    valid = 0
    t_enter = 0.0
    t_exit = 0.0
    if kind == int(ShapeKind.SPHERE):
        valid, t_enter, t_exit = sphere_interval(
            ray_origin, ray_direction, shape_vec_a[shape], shape_scalar_a[shape]
        )
    elif kind == int(ShapeKind.CUBE):
        valid, t_enter, t_exit = cube_interval(
            ray_origin, ray_direction, shape_vec_a[shape], shape_vec_b[shape]
        )
    elif kind == int(ShapeKind.PLANE):
        valid, t_enter, t_exit = plane_interval(
            ray_origin, ray_direction, shape_vec_a[shape], shape_vec_b[shape]
        )
    elif kind == int(ShapeKind.CYLINDER):
        valid, t_enter, t_exit = cylinder_interval(
            ray_origin,
            ray_direction,
            shape_vec_a[shape],
            shape_scalar_a[shape],
            shape_scalar_b[shape],
        )
    return valid, t_enter, t_exit


@ti.func
def shape_outward_normal(shape: ti.i32, triangle: ti.i32, point: vec3) -> vec3:
    """Outward unit normal of a shape at a point on its surface.

    Args:
        shape: Index into the shape table.
        triangle: Triangle index for meshes (ignored for other kinds).
        point: A point on the shape's surface.
    """
    kind = shape_kinds[shape]
    normal = vec3(0.0, 0.0, 1.0)
    if kind == int(ShapeKind.SPHERE):
        normal = sphere_normal(point, shape_vec_a[shape], shape_scalar_a[shape])
    elif kind == int(ShapeKind.CUBE):
        normal = cube_normal(point, shape_vec_a[shape], shape_vec_b[shape])
    elif kind == int(ShapeKind.PLANE):
        normal = shape_vec_b[shape]
    elif kind == int(ShapeKind.CYLINDER):
        normal = cylinder_normal(point, shape_vec_a[shape], shape_scalar_a[shape], shape_scalar_b[shape])
    elif kind == int(ShapeKind.MESH):
        tri = get_triangle(triangle)
        u, v = triangle_barycentric(point, tri.v0, tri.v1, tri.v2)
        normal = triangle_shading_normal(tri, u, v)
    return normal
