"""Lambertian (ideal diffuse) material implementation.

This module implements the Lambertian BRDF, which models ideal diffuse reflection
where incident light is scattered uniformly in all directions weighted by the
cosine of the angle from the surface normal.

The Lambertian BRDF is:
    f_r(wi, wo) = albedo / pi

The probability density function for cosine-weighted hemisphere sampling is:
    pdf(wi) = cos(theta) / pi

where theta is the angle between the sampled direction and the surface normal.
The BRDF is also evaluated directly by the integrator when it samples lights.

Example:
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, seed = scatter_lambertian(albedo, normal, seed)
"""

import taichi as ti
import taichi.math as tm

from buzz.core.ray import near_zero, sample_cosine_hemisphere
from buzz.errors import ConfigurationError
from buzz.validation import validate_albedo

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def eval_lambertian(albedo: vec3) -> vec3:
    """Evaluate the Lambertian BRDF, albedo / pi (without the cosine term)."""
    return albedo / tm.pi


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, seed: ti.u32):
    """Sample a scattered ray direction for Lambertian material.

    Uses cosine-weighted hemisphere sampling, so the attenuation is:
        attenuation = (BRDF * cos_theta) / pdf
                    = (albedo / pi) * cos_theta / (cos_theta / pi)
                    = albedo

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The surface normal at the hit point, facing the incoming ray.
        seed: Current RNG state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, seed).
        Lambertian surfaces always scatter.
    """
    scattered_direction, _, seed = sample_cosine_hemisphere(normal, seed)

    # Handle degenerate case where sampled direction is near zero
    if near_zero(scattered_direction):
        scattered_direction = normal

    return tm.normalize(scattered_direction), albedo, 1, seed


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component should be in [0, 1] for energy conservation.

    Returns:
        The index of the added material.

    Raises:
        ConfigurationError: If any albedo component is outside [0, 1] or the
            maximum number of materials is exceeded.
    """
    albedo = validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise ConfigurationError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]
