"""Unified material ID space across all material types.

Each material type keeps its own parameter registry (e.g.
``lambertian_albedos``). The unified registry maps a scene-wide material_id
to (material_type, type_local_index) so that the integrator can dispatch to
the right scattering function.
"""

from enum import IntEnum

import taichi as ti

from buzz.errors import ConfigurationError
from buzz.materials.dielectric import clear_dielectric_materials
from buzz.materials.emissive import clear_emissive_materials
from buzz.materials.lambertian import clear_lambertian_materials
from buzz.materials.metal import clear_metal_materials


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    EMISSIVE = 3


# Maximum number of materials across all types
MAX_MATERIALS = 1024  # 256 per type * 4 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear the unified registry and every per-type registry."""
    clear_lambertian_materials()
    clear_metal_materials()
    clear_dielectric_materials()
    clear_emissive_materials()
    num_materials[None] = 0


def register_material(material_type: MaterialType, type_index: int) -> int:
    """Assign the next unified material ID to a per-type registry entry.

    Args:
        material_type: The type of the material.
        type_index: Index of the material in its type-specific registry.

    Returns:
        The unified material ID.

    Raises:
        ConfigurationError: If the maximum number of materials is exceeded.
    """
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise ConfigurationError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def get_material_count() -> int:
    """Get the total number of registered materials."""
    return int(num_materials[None])


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    Returns:
        The index into the type-specific material array, or -1 for invalid
        material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result
