"""Materials module for scattering models.

Components:
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzziness
    dielectric: Glass-like materials with refraction (Schlick Fresnel)
    emissive: Light-emitting surfaces that do not scatter
    registry: Unified material IDs mapped to per-type registries

Each scattering function takes the RNG state and returns
``(direction, attenuation, did_scatter, seed)``. All scattering math is
implemented as Taichi functions; registration and validation run in Python.
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
)
from .emissive import (
    add_emissive_material,
    clear_emissive_materials,
    emitted_color,
    get_emissive_material_count,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    eval_lambertian,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzziness,
    get_metal_material_count,
    scatter_metal,
)
from .registry import (
    MAX_MATERIALS,
    MaterialType,
    clear_materials,
    get_material_count,
    get_material_type,
    get_material_type_index,
    register_material,
)

__all__ = [
    "scatter_lambertian",
    "eval_lambertian",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_albedo",
    "get_lambertian_material_count",
    "scatter_metal",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_albedo",
    "get_metal_fuzziness",
    "get_metal_material_count",
    "scatter_dielectric",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_ior",
    "get_dielectric_material_count",
    "emitted_color",
    "add_emissive_material",
    "clear_emissive_materials",
    "get_emissive_material_count",
    "MaterialType",
    "MAX_MATERIALS",
    "clear_materials",
    "register_material",
    "get_material_count",
    "get_material_type",
    "get_material_type_index",
]
