"""Emissive (light-emitting) material implementation.

Emissive surfaces radiate a constant colour and never scatter: a path that
reaches one collects its emission and ends. They are ordinary scene geometry,
so they light the scene only through indirect paths. Explicit direct-light
sampling uses the separate light list instead, which keeps the two
estimators from counting the same energy twice.

Example:
    >>> mat_idx = add_emissive_material(color=(4.0, 4.0, 4.0))
"""

import taichi as ti
import taichi.math as tm

from buzz.errors import ConfigurationError
from buzz.validation import validate_emission

# Type alias for 3D vectors
vec3 = tm.vec3


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of emissive materials in the scene
MAX_EMISSIVE_MATERIALS = 256

# Storage for emissive material properties
emissive_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_EMISSIVE_MATERIALS)
num_emissive_materials = ti.field(dtype=ti.i32, shape=())


def clear_emissive_materials() -> None:
    """Clear all emissive materials."""
    num_emissive_materials[None] = 0


def add_emissive_material(color: tuple[float, float, float]) -> int:
    """Add an emissive material to the material registry.

    Args:
        color: The emitted radiance as (R, G, B). Values can exceed 1.0.

    Returns:
        The index of the added material.

    Raises:
        ConfigurationError: If any component is negative or the maximum
            number of materials is exceeded.
    """
    color = validate_emission(color)

    idx = num_emissive_materials[None]
    if idx >= MAX_EMISSIVE_MATERIALS:
        raise ConfigurationError(
            f"Maximum number of emissive materials ({MAX_EMISSIVE_MATERIALS}) exceeded"
        )

    emissive_colors[idx] = vec3(color[0], color[1], color[2])
    num_emissive_materials[None] = idx + 1
    return idx


def get_emissive_material_count() -> int:
    """Get the number of emissive materials in the registry."""
    return int(num_emissive_materials[None])


@ti.func
def emitted_color(material_idx: ti.i32) -> vec3:
    """Radiance emitted by an emissive material.

    Both faces emit, so an emissive panel lights either side.
    """
    return emissive_colors[material_idx]
