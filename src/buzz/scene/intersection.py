"""Scene-level ray intersection and background lookup.

A scene is a list of objects. Each object is either a plain primitive
(a row of the shape table) or the root of a CSG tree (a range of the
program table). Queries test every object and keep the closest hit.

Example:
    >>> @ti.kernel
    ... def probe() -> ti.i32:
    ...     rec = intersect_scene(0, vec3(0, 0, 5), vec3(0, 0, -1), 1e-4, 1e10)
    ...     return rec.material_id
"""

from enum import IntEnum

import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from buzz.core.fields import fill_field
from buzz.csg.evaluate import csg_hit
from buzz.geometry.hit_record import HitRecord, make_miss_record
from buzz.geometry.shapes import shape_hit

# Type alias for 3D vectors
vec3 = tm.vec3


class ObjectKind(IntEnum):
    """Object kinds stored in the object table."""

    PRIMITIVE = 0
    CSG = 1


# Maximum number of top-level objects in a scene
MAX_OBJECTS = 1024

# Object storage: ref is a shape index (PRIMITIVE) or program start (CSG)
object_kinds = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_refs = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_lengths = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_material_overrides = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Background gradient endpoints
env_bottom = ti.Vector.field(3, dtype=ti.f32, shape=())
env_top = ti.Vector.field(3, dtype=ti.f32, shape=())


def clear_objects() -> None:
    """Remove all objects from the scene."""
    num_objects[None] = 0


def load_objects(
    kinds: npt.ArrayLike,
    refs: npt.ArrayLike,
    lengths: npt.ArrayLike,
    material_overrides: npt.ArrayLike,
) -> int:
    """Replace the object table.

    Returns:
        The number of objects loaded.

    Raises:
        ValueError: If the table exceeds MAX_OBJECTS rows.
    """
    count = fill_field(object_kinds, kinds)
    fill_field(object_refs, refs)
    fill_field(object_lengths, lengths)
    fill_field(object_material_overrides, material_overrides)
    num_objects[None] = count
    return count


def get_object_count() -> int:
    """Get the number of objects currently loaded."""
    return int(num_objects[None])


def set_environment(bottom: tuple[float, float, float], top: tuple[float, float, float]) -> None:
    """Set the background gradient (equal ends give a flat colour)."""
    env_bottom[None] = vec3(*bottom)
    env_top[None] = vec3(*top)


@ti.func
def environment_color(ray_direction: vec3) -> vec3:
    """Background radiance for an escaping ray.

    Blends linearly from bottom to top on the y component of the normalised
    direction.
    """
    unit_direction = tm.normalize(ray_direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * env_bottom[None] + t * env_top[None]


@ti.func
def object_hit(
    obj: ti.i32,
    slot: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Nearest hit of one object within (t_min, t_max)."""
    rec = make_miss_record()
    if object_kinds[obj] == int(ObjectKind.CSG):
        rec = csg_hit(
            slot,
            object_refs[obj],
            object_lengths[obj],
            object_material_overrides[obj],
            ray_origin,
            ray_direction,
            t_min,
            t_max,
        )
    else:
        rec = shape_hit(object_refs[obj], ray_origin, ray_direction, t_min, t_max)
    return rec


@ti.func
def intersect_scene(
    slot: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test a ray against every object and return the closest hit.

    Args:
        slot: CSG scratch slot owned by the calling task.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        The closest HitRecord (smallest t in range), or a miss record.
    """
    closest_t = t_max
    result = make_miss_record()
    for obj in range(num_objects[None]):
        rec = object_hit(obj, slot, ray_origin, ray_direction, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec
    return result


@ti.func
def intersect_scene_any(
    slot: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Test if a ray hits anything in range (shadow ray query).

    Returns:
        1 if any object was hit, 0 otherwise.
    """
    hit_any = 0
    for obj in range(num_objects[None]):
        if hit_any == 0:
            rec = object_hit(obj, slot, ray_origin, ray_direction, t_min, t_max)
            if rec.hit == 1:
                hit_any = 1
    return hit_any
