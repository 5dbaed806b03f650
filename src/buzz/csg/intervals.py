"""Per-task interval list storage for CSG evaluation.

An interval list is an ordered, non-overlapping sequence of spans
``[t_in, t_out]`` along the full line of a ray where the ray is inside a
solid. Each span end remembers which surface produced it as a boundary code
``+/-(shape + 1)``; a negative code means the surface normal must be flipped
(the boundary came from a subtracted operand). Mesh boundaries also remember
the triangle index so the shading normal can be recovered.

Taichi kernels cannot allocate, so lists live in global scratch fields
indexed by ``(slot, level, k)``:

    slot   one per concurrently traced pixel (see MAX_TILE_PIXELS)
    level  position on the CSG evaluation stack; the extra last level is
           scratch space for the output of a combination
    k      interval index within the list, at most MAX_INTERVALS
"""

import taichi as ti
import taichi.math as tm

from buzz.geometry.shapes import (
    ShapeKind,
    convex_shape_interval,
    shape_kinds,
    shape_tri_count,
    shape_tri_start,
    tri_v0,
    tri_v1,
    tri_v2,
)
from buzz.geometry.triangle import intersect_triangle, triangle_geometric_normal

# Type alias for 3D vectors
vec3 = tm.vec3

# Maximum intervals per list; further intervals (the farthest) are dropped
MAX_INTERVALS = 8

# Maximum depth of the CSG evaluation stack
CSG_STACK_DEPTH = 6

# Stack level used as the output buffer of a combination
SCRATCH_LEVEL = CSG_STACK_DEPTH

# Maximum number of pixels traced concurrently (one scratch slot each)
MAX_TILE_PIXELS = 8192

# Maximum triangle crossings kept per mesh along one ray
MAX_CROSSINGS = 2 * MAX_INTERVALS

# Interval ends closer than this are treated as coincident
CSG_EPSILON = 1e-5

# Interval list storage
iv_t_in = ti.field(dtype=ti.f32, shape=(MAX_TILE_PIXELS, CSG_STACK_DEPTH + 1, MAX_INTERVALS))
iv_t_out = ti.field(dtype=ti.f32, shape=(MAX_TILE_PIXELS, CSG_STACK_DEPTH + 1, MAX_INTERVALS))
iv_code_in = ti.field(dtype=ti.i32, shape=(MAX_TILE_PIXELS, CSG_STACK_DEPTH + 1, MAX_INTERVALS))
iv_code_out = ti.field(dtype=ti.i32, shape=(MAX_TILE_PIXELS, CSG_STACK_DEPTH + 1, MAX_INTERVALS))
iv_tri_in = ti.field(dtype=ti.i32, shape=(MAX_TILE_PIXELS, CSG_STACK_DEPTH + 1, MAX_INTERVALS))
iv_tri_out = ti.field(dtype=ti.i32, shape=(MAX_TILE_PIXELS, CSG_STACK_DEPTH + 1, MAX_INTERVALS))
iv_count = ti.field(dtype=ti.i32, shape=(MAX_TILE_PIXELS, CSG_STACK_DEPTH + 1))

# Sorted triangle crossings of the mesh currently being converted
cx_t = ti.field(dtype=ti.f32, shape=(MAX_TILE_PIXELS, MAX_CROSSINGS))
cx_tri = ti.field(dtype=ti.i32, shape=(MAX_TILE_PIXELS, MAX_CROSSINGS))
cx_enter = ti.field(dtype=ti.i32, shape=(MAX_TILE_PIXELS, MAX_CROSSINGS))


@ti.func
def boundary_code(shape: ti.i32) -> ti.i32:
    """Unflipped boundary code of a shape."""
    return shape + 1


@ti.func
def boundary_shape(code: ti.i32) -> ti.i32:
    """Shape index encoded in a boundary code."""
    return ti.abs(code) - 1


@ti.func
def append_interval(
    slot: ti.i32,
    level: ti.i32,
    t_in: ti.f32,
    t_out: ti.f32,
    code_in: ti.i32,
    code_out: ti.i32,
    tri_in: ti.i32,
    tri_out: ti.i32,
) -> ti.i32:
    """Append a span to a list if there is room.

    Returns:
        1 if the span was stored, 0 if the list was full.
    """
    n = iv_count[slot, level]
    stored = 0
    if n < MAX_INTERVALS:
        iv_t_in[slot, level, n] = t_in
        iv_t_out[slot, level, n] = t_out
        iv_code_in[slot, level, n] = code_in
        iv_code_out[slot, level, n] = code_out
        iv_tri_in[slot, level, n] = tri_in
        iv_tri_out[slot, level, n] = tri_out
        iv_count[slot, level] = n + 1
        stored = 1
    return stored


@ti.func
def copy_level(slot: ti.i32, src: ti.i32, dst: ti.i32):
    """Copy the list at level ``src`` over the list at level ``dst``."""
    n = iv_count[slot, src]
    for k in range(n):
        iv_t_in[slot, dst, k] = iv_t_in[slot, src, k]
        iv_t_out[slot, dst, k] = iv_t_out[slot, src, k]
        iv_code_in[slot, dst, k] = iv_code_in[slot, src, k]
        iv_code_out[slot, dst, k] = iv_code_out[slot, src, k]
        iv_tri_in[slot, dst, k] = iv_tri_in[slot, src, k]
        iv_tri_out[slot, dst, k] = iv_tri_out[slot, src, k]
    iv_count[slot, dst] = n


@ti.func
def _insert_crossing(slot: ti.i32, n: ti.i32, t: ti.f32, tri: ti.i32, enter: ti.i32) -> ti.i32:
    """Insert a crossing into the sorted buffer, dropping the farthest when full.

    Returns:
        The new number of stored crossings.
    """
    count = n
    if n < MAX_CROSSINGS or t < cx_t[slot, MAX_CROSSINGS - 1]:
        j = ti.min(n, MAX_CROSSINGS - 1)
        moving = 1
        for _ in range(MAX_CROSSINGS):
            if moving == 1:
                if j > 0:
                    if cx_t[slot, j - 1] > t:
                        cx_t[slot, j] = cx_t[slot, j - 1]
                        cx_tri[slot, j] = cx_tri[slot, j - 1]
                        cx_enter[slot, j] = cx_enter[slot, j - 1]
                        j -= 1
                    else:
                        moving = 0
                else:
                    moving = 0
        cx_t[slot, j] = t
        cx_tri[slot, j] = tri
        cx_enter[slot, j] = enter
        count = ti.min(n + 1, MAX_CROSSINGS)
    return count


@ti.func
def _write_mesh_intervals(slot: ti.i32, level: ti.i32, shape: ti.i32, ray_origin: vec3, ray_direction: vec3):
    """Convert the triangle crossings of a closed mesh into spans.

    Crossings are sorted along the line and classified as entering or
    leaving by the facing of the geometric normal. A running depth counter
    opens a span when it rises from zero and closes it when it returns to
    zero, which tolerates rays crossing a shared edge twice.
    """
    n = 0
    start = shape_tri_start[shape]
    for k in range(shape_tri_count[shape]):
        tri = start + k
        hit, t, _, _ = intersect_triangle(ray_origin, ray_direction, tri_v0[tri], tri_v1[tri], tri_v2[tri])
        if hit == 1:
            normal = triangle_geometric_normal(tri_v0[tri], tri_v1[tri], tri_v2[tri])
            enter = 0
            if tm.dot(ray_direction, normal) < 0.0:
                enter = 1
            n = _insert_crossing(slot, n, t, tri, enter)

    code = boundary_code(shape)
    depth = 0
    open_t = 0.0
    open_tri = -1
    for c in range(n):
        t = cx_t[slot, c]
        if cx_enter[slot, c] == 1:
            if depth == 0:
                open_t = t
                open_tri = cx_tri[slot, c]
            depth += 1
        elif depth > 0:
            if depth == 1 and t - open_t > CSG_EPSILON:
                append_interval(slot, level, open_t, t, code, code, open_tri, cx_tri[slot, c])
            depth -= 1


@ti.func
def write_shape_intervals(slot: ti.i32, level: ti.i32, shape: ti.i32, ray_origin: vec3, ray_direction: vec3):
    """Replace the list at ``level`` with the spans of a single shape.

    Args:
        slot: Scratch slot of the calling task.
        level: Stack level to write.
        shape: Index into the shape table.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
    """
    iv_count[slot, level] = 0
    if shape_kinds[shape] == int(ShapeKind.MESH):
        _write_mesh_intervals(slot, level, shape, ray_origin, ray_direction)
    else:
        valid, t_enter, t_exit = convex_shape_interval(shape, ray_origin, ray_direction)
        if valid == 1:
            code = boundary_code(shape)
            append_interval(slot, level, t_enter, t_exit, code, code, -1, -1)
