"""Hit record shared by every primitive and by scene-level queries.

Example:
    >>> rec = hit_sphere(origin, direction, sphere, 1e-4, 1e10)
    >>> if rec.hit == 1:
    ...     # rec.normal faces against the incoming ray
    ...     pass
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The shading normal at the intersection point (unit length,
            always facing against the incoming ray).
            Only valid if hit == 1.
        front_face: Whether the geometric (outward) normal agreed with the
            returned normal, i.e. the ray arrived from outside (1) or from
            inside (0). Only valid if hit == 1.
        material_id: The unified material ID of the hit surface.
            -1 until a scene-level query assigns it.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def make_hit_record(
    ray_origin: vec3,
    ray_direction: vec3,
    t: ti.f32,
    outward_normal: vec3,
) -> HitRecord:
    """Build a hit record, orienting the normal against the ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t: The ray parameter of the hit.
        outward_normal: The unit normal pointing out of the surface.

    Returns:
        A HitRecord with front_face set and material_id = -1.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) > 0.0:
        # Ray is leaving the solid, hitting the back face
        front_face = 0
        normal = -outward_normal

    return HitRecord(
        hit=1,
        t=t,
        point=ray_origin + t * ray_direction,
        normal=normal,
        front_face=front_face,
        material_id=-1,
    )
