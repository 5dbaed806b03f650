"""Metal (specular reflective) material implementation.

This module implements the metal BSDF, which models specular reflection with
optional fuzziness. Perfect metals (fuzziness=0) produce mirror-like
reflections, while fuzzier metals scatter reflected rays within a cone.

The reflection formula is:
    R = I - 2(I . N)N

where I is the incident direction and N is the surface normal.

Example:
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, seed = scatter_metal(
    >>> #     albedo, fuzziness, incident_dir, normal, seed
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from buzz.core.ray import random_unit_vector, reflect
from buzz.errors import ConfigurationError
from buzz.validation import validate_albedo, validate_fuzziness

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzziness: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    seed: ti.u32,
):
    """Compute scattered ray direction for metal material.

    Reflects the incident ray about the surface normal, then perturbs the
    reflected direction by ``fuzziness * random_unit_vector``. The ray is
    absorbed if the scattered direction ends up below the surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzziness: The surface fuzziness in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (should be normalized).
        normal: The surface normal, facing the incoming ray.
        seed: Current RNG state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, seed) where
        did_scatter is 0 if the ray was absorbed.
    """
    reflected = tm.normalize(reflect(incident_direction, normal))
    offset, seed = random_unit_vector(seed)
    perturbed = reflected + fuzziness * offset

    scattered_direction = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    if tm.dot(perturbed, normal) > 0.0:
        did_scatter = 1
        scattered_direction = tm.normalize(perturbed)

    return scattered_direction, albedo, did_scatter, seed


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzziness = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(albedo: tuple[float, float, float], fuzziness: float = 0.0) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple, each in [0, 1].
        fuzziness: The reflection blur in [0, 1]. Default is 0 (perfect mirror).

    Returns:
        The index of the added material.

    Raises:
        ConfigurationError: If a parameter is out of range or the maximum
            number of materials is exceeded.
    """
    albedo = validate_albedo(albedo)
    fuzziness = validate_fuzziness(fuzziness)

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise ConfigurationError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzziness[idx] = fuzziness
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzziness(material_idx: ti.i32) -> ti.f32:
    """Get the fuzziness for a metal material by index."""
    return metal_fuzziness[material_idx]
