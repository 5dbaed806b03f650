"""Evaluation of compiled CSG programs.

A CSG tree is compiled by the scene builder into a post-order program stored
in the global program table. Each instruction is either

    PUSH shape     push the spans of a primitive onto the stack
    UNION          pop B, pop A, push A | B
    INTERSECTION   pop B, pop A, push A & B
    DIFFERENCE     pop B, pop A, push A - B

so a well-formed program leaves exactly one list on the stack. The builder
guarantees that no program needs more than CSG_STACK_DEPTH levels.

Example:
    >>> # (sphere0 - sphere1) compiles to
    >>> ops  = [OP_PUSH, OP_PUSH, int(CsgOp.DIFFERENCE)]
    >>> args = [0,       1,       0]
"""

import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from buzz.core.fields import fill_field
from buzz.csg.combine import combine_levels
from buzz.csg.intervals import (
    CSG_STACK_DEPTH,
    SCRATCH_LEVEL,
    boundary_shape,
    copy_level,
    iv_code_in,
    iv_code_out,
    iv_count,
    iv_t_in,
    iv_t_out,
    iv_tri_in,
    iv_tri_out,
    write_shape_intervals,
)
from buzz.geometry.hit_record import HitRecord, make_hit_record, make_miss_record
from buzz.geometry.shapes import shape_material_ids, shape_outward_normal

# Type alias for 3D vectors
vec3 = tm.vec3

# Opcode of the PUSH instruction; the boolean opcodes are CsgOp values
OP_PUSH = 0

# Maximum total instructions across all CSG programs of a scene
MAX_PROGRAM = 4096

# Program storage
program_ops = ti.field(dtype=ti.i32, shape=MAX_PROGRAM)
program_args = ti.field(dtype=ti.i32, shape=MAX_PROGRAM)
program_length = ti.field(dtype=ti.i32, shape=())


def clear_programs() -> None:
    """Reset the program table."""
    program_length[None] = 0


def load_programs(ops: npt.ArrayLike, args: npt.ArrayLike) -> int:
    """Replace the program table.

    Args:
        ops: Opcode per instruction.
        args: Shape index for PUSH instructions, 0 otherwise.

    Returns:
        The number of instructions loaded.

    Raises:
        ValueError: If the table exceeds MAX_PROGRAM instructions.
    """
    count = fill_field(program_ops, ops)
    fill_field(program_args, args)
    program_length[None] = count
    return count


@ti.func
def evaluate_program(slot: ti.i32, start: ti.i32, length: ti.i32, ray_origin: vec3, ray_direction: vec3):
    """Run a program, leaving the combined spans at stack level 0."""
    sp = 0
    for k in range(length):
        op = program_ops[start + k]
        if op == OP_PUSH:
            if sp < CSG_STACK_DEPTH:
                write_shape_intervals(slot, sp, program_args[start + k], ray_origin, ray_direction)
                sp += 1
        elif sp >= 2:
            combine_levels(slot, sp - 2, sp - 1, SCRATCH_LEVEL, op)
            copy_level(slot, SCRATCH_LEVEL, sp - 2)
            sp -= 1
    if sp == 0:
        iv_count[slot, 0] = 0


@ti.func
def boundary_normal(code: ti.i32, triangle: ti.i32, point: vec3) -> vec3:
    """Outward normal of the combined solid at a boundary."""
    normal = shape_outward_normal(boundary_shape(code), triangle, point)
    if code < 0:
        normal = -normal
    return normal


@ti.func
def boundary_material(code: ti.i32, material_override: ti.i32) -> ti.i32:
    """Material of a boundary: the node override, else the source shape's."""
    material_id = material_override
    if material_override < 0:
        material_id = shape_material_ids[boundary_shape(code)]
    return material_id


@ti.func
def csg_hit(
    slot: ti.i32,
    start: ti.i32,
    length: ti.i32,
    material_override: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Nearest boundary of a CSG solid within (t_min, t_max).

    Spans are scanned in ascending order. A span whose entry lies in range
    yields its entry; a span that already contains t_min (the ray starts
    inside the solid) yields its exit instead.

    Args:
        slot: Scratch slot of the calling task.
        start: First instruction of the program.
        length: Number of instructions.
        material_override: Material for every boundary, or -1 to use the
            material of the shape that produced the boundary.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A HitRecord with the normal facing against the ray.
    """
    evaluate_program(slot, start, length, ray_origin, ray_direction)

    result = make_miss_record()
    found = 0
    for k in range(iv_count[slot, 0]):
        if found == 0:
            t_in = iv_t_in[slot, 0, k]
            t_out = iv_t_out[slot, 0, k]
            t = 0.0
            code = 0
            tri = -1
            if t_in > t_min and t_in < t_max:
                found = 1
                t = t_in
                code = iv_code_in[slot, 0, k]
                tri = iv_tri_in[slot, 0, k]
            elif t_in <= t_min and t_out > t_min and t_out < t_max:
                found = 1
                t = t_out
                code = iv_code_out[slot, 0, k]
                tri = iv_tri_out[slot, 0, k]

            if found == 1:
                point = ray_origin + t * ray_direction
                result = make_hit_record(ray_origin, ray_direction, t, boundary_normal(code, tri, point))
                result.material_id = boundary_material(code, material_override)
    return result


@ti.kernel
def _probe_program(start: ti.i32, length: ti.i32, ray_origin: vec3, ray_direction: vec3):
    # Single task: keeps the program loop serial
    for _ in range(1):
        evaluate_program(0, start, length, ray_origin, ray_direction)


@ti.kernel
def _probe_shape(shape: ti.i32, ray_origin: vec3, ray_direction: vec3):
    for _ in range(1):
        write_shape_intervals(0, 0, shape, ray_origin, ray_direction)


def _read_probe(material_override: int) -> list[tuple[float, float, int]]:
    spans = []
    for k in range(int(iv_count[0, 0])):
        code = int(iv_code_in[0, 0, k])
        if material_override >= 0:
            material_id = material_override
        else:
            material_id = int(shape_material_ids[abs(code) - 1])
        spans.append((float(iv_t_in[0, 0, k]), float(iv_t_out[0, 0, k]), material_id))
    return spans


def probe_program(
    start: int,
    length: int,
    material_override: int,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> list[tuple[float, float, int]]:
    """Evaluate a loaded program for one ray from Python.

    Uses scratch slot 0, so it must not run concurrently with a render.

    Returns:
        A list of (t_enter, t_exit, material_id) tuples in ascending order,
        the material being that of the entering boundary.
    """
    _probe_program(start, length, vec3(*origin), vec3(*direction))
    return _read_probe(material_override)


def probe_shape(
    shape: int,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> list[tuple[float, float, int]]:
    """Spans of a single loaded shape along one ray (see probe_program)."""
    _probe_shape(shape, vec3(*origin), vec3(*direction))
    return _read_probe(-1)
