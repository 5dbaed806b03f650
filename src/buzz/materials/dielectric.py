"""Dielectric (glass/water) material implementation.

This module implements the dielectric BSDF, which models transparent materials
like glass and water with refraction and Fresnel reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when sin(theta_t) > 1

The material randomly chooses between reflection and refraction based on
the Fresnel reflectance probability, which increases at grazing angles.
Whenever refraction is impossible or numerically unreliable, the ray is
reflected instead.

Example:
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, seed = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, seed
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from buzz.core.ray import near_zero, reflect, refract, schlick_fresnel
from buzz.core.rng import rand_f32
from buzz.errors import ConfigurationError
from buzz.validation import validate_refractive_index

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    seed: ti.u32,
):
    """Compute scattered ray direction for dielectric material.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (should be normalized).
        normal: The surface normal, facing the incoming ray.
        front_face: 1 if ray is hitting the outside of the surface,
            0 if ray is inside the material hitting from within.
        seed: Current RNG state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, seed).
        Dielectrics always scatter and never absorb (white attenuation).
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    # Entering: eta = 1/ior (air to glass); leaving: eta = ior (glass to air)
    refraction_ratio = 1.0 / ior
    if front_face == 0:
        refraction_ratio = ior

    unit_direction = tm.normalize(incident_direction)
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = tm.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))

    cannot_refract = refraction_ratio * sin_theta > 1.0
    reflectance = schlick_fresnel(cos_theta, refraction_ratio)
    choice, seed = rand_f32(seed)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or choice < reflectance:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, refraction_ratio)
        # Near-grazing refraction can collapse to zero
        if near_zero(scattered_direction):
            scattered_direction = reflect(unit_direction, normal)

    return tm.normalize(scattered_direction), attenuation, 1, seed


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be >= 1.0. Common values:
            - Air: 1.0
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4

    Returns:
        The index of the added material.

    Raises:
        ConfigurationError: If IOR is less than 1.0 or the maximum number
            of materials is exceeded.
    """
    ior = validate_refractive_index(ior)

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise ConfigurationError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]
