"""Light table and light sampling for direct illumination.

Lights are not scene geometry: rays never hit them. They are only sampled
explicitly at diffuse hits, which is why emissive primitives and lights can
coexist without counting the same energy twice.

For each sample the light returns a target point and the irradiance
arriving at the shaded point from that sample, before the cosine at the
receiving surface:

    point light   E = I / d^2
    quad light    E = L * cos_l * A / d^2    (uniform area sampling)
"""

from enum import IntEnum

import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from buzz.core.fields import fill_field
from buzz.core.ray import build_onb_from_normal, length_squared, random_in_unit_disk
from buzz.core.rng import rand_f32

# Type alias for 3D vectors
vec3 = tm.vec3


class LightKind(IntEnum):
    """Light kinds stored in the light table."""

    POINT = 0
    QUAD = 1


# Maximum number of lights in a scene
MAX_LIGHTS = 256

# Squared distances below this are clamped to avoid the 1/d^2 singularity
MIN_LIGHT_DISTANCE_SQUARED = 1e-8

# Light storage: position is the center (point) or corner (quad)
light_kinds = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_edge_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_edge_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_radiance = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_radii = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights."""
    num_lights[None] = 0


def load_lights(
    kinds: npt.ArrayLike,
    positions: npt.ArrayLike,
    edge_u: npt.ArrayLike,
    edge_v: npt.ArrayLike,
    radiance: npt.ArrayLike,
    radii: npt.ArrayLike,
) -> int:
    """Replace the light table.

    Returns:
        The number of lights loaded.

    Raises:
        ValueError: If the table exceeds MAX_LIGHTS rows.
    """
    count = fill_field(light_kinds, kinds)
    fill_field(light_positions, positions)
    fill_field(light_edge_u, edge_u)
    fill_field(light_edge_v, edge_v)
    fill_field(light_radiance, radiance)
    fill_field(light_radii, radii)
    num_lights[None] = count
    return count


def get_light_count() -> int:
    """Get the number of lights currently loaded."""
    return int(num_lights[None])


@ti.func
def _sample_point_light(light: ti.i32, point: vec3, soft: ti.i32, seed: ti.u32):
    center = light_positions[light]
    target = center
    radius = light_radii[light]
    if soft == 1 and radius > 0.0:
        # Disk of the light's radius facing the shaded point
        axis = point - center
        if length_squared(axis) > MIN_LIGHT_DISTANCE_SQUARED:
            tangent, bitangent, _ = build_onb_from_normal(tm.normalize(axis))
            offset, seed = random_in_unit_disk(seed)
            target = center + radius * (offset.x * tangent + offset.y * bitangent)
    dist_sq = ti.max(length_squared(target - point), MIN_LIGHT_DISTANCE_SQUARED)
    return target, light_radiance[light] / dist_sq, seed


@ti.func
def _sample_quad_light(light: ti.i32, point: vec3, soft: ti.i32, seed: ti.u32):
    corner = light_positions[light]
    edge_u = light_edge_u[light]
    edge_v = light_edge_v[light]
    su = 0.5
    sv = 0.5
    if soft == 1:
        su, seed = rand_f32(seed)
        sv, seed = rand_f32(seed)
    target = corner + su * edge_u + sv * edge_v

    cross = tm.cross(edge_u, edge_v)
    area = tm.length(cross)
    light_normal = cross / area
    to_light = target - point
    dist_sq = ti.max(length_squared(to_light), MIN_LIGHT_DISTANCE_SQUARED)
    cos_light = ti.abs(tm.dot(light_normal, to_light)) / ti.sqrt(dist_sq)
    return target, light_radiance[light] * cos_light * area / dist_sq, seed


@ti.func
def sample_light(light: ti.i32, point: vec3, soft: ti.i32, seed: ti.u32):
    """Sample a point on a light as seen from ``point``.

    Args:
        light: Index into the light table.
        point: The point being shaded.
        soft: 1 to sample across the light's extent, 0 to use its center.
        seed: Current RNG state.

    Returns:
        A tuple of (target, irradiance, next_seed). The irradiance excludes
        the cosine at the receiving surface and any occlusion.
    """
    target = vec3(0.0, 0.0, 0.0)
    irradiance = vec3(0.0, 0.0, 0.0)
    if light_kinds[light] == int(LightKind.POINT):
        target, irradiance, seed = _sample_point_light(light, point, soft, seed)
    else:
        target, irradiance, seed = _sample_quad_light(light, point, soft, seed)
    return target, irradiance, seed
