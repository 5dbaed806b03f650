"""Copying a built Scene into the global Taichi fields.

Only one scene is resident in the fields at a time. Renders upload their
scene before the first kernel launch; uploading is cheap compared to a
render, so no attempt is made to detect an already resident scene.
"""

import logging
from typing import NamedTuple

from buzz.csg.evaluate import clear_programs, load_programs, probe_program, probe_shape
from buzz.errors import ConfigurationError
from buzz.geometry.shapes import clear_shapes, load_shapes, load_triangles
from buzz.materials.dielectric import add_dielectric_material
from buzz.materials.emissive import add_emissive_material
from buzz.materials.lambertian import add_lambertian_material
from buzz.materials.metal import add_metal_material
from buzz.materials.registry import MaterialType, clear_materials, register_material
from buzz.scene.builder import Scene
from buzz.scene.intersection import ObjectKind, clear_objects, load_objects, set_environment
from buzz.scene.lights import clear_lights, load_lights
from buzz.scene.spec import Dielectric, Emissive, Lambertian, Material, Metal
from buzz.validation import as_vec3

logger = logging.getLogger(__name__)


class Interval(NamedTuple):
    """A span along a ray where the ray is inside a solid."""

    t_enter: float
    t_exit: float
    material: Material


def _register(material: Material) -> int:
    if isinstance(material, Lambertian):
        return register_material(MaterialType.LAMBERTIAN, add_lambertian_material(material.albedo))
    if isinstance(material, Metal):
        return register_material(MaterialType.METAL, add_metal_material(material.albedo, material.fuzziness))
    if isinstance(material, Dielectric):
        return register_material(MaterialType.DIELECTRIC, add_dielectric_material(material.refractive_index))
    if isinstance(material, Emissive):
        return register_material(MaterialType.EMISSIVE, add_emissive_material(material.color))
    raise ConfigurationError(f"Unknown material type {type(material).__name__}")


def upload_scene(scene: Scene) -> None:
    """Replace the resident scene with ``scene``.

    Raises:
        ConfigurationError: If a table does not fit its field.
    """
    clear_materials()
    for expected_id, material in enumerate(scene.materials):
        material_id = _register(material)
        assert material_id == expected_id

    clear_shapes()
    clear_programs()
    clear_objects()
    clear_lights()
    try:
        load_shapes(**scene.shapes)
        load_triangles(**scene.triangles)
        load_programs(**scene.programs)
        load_objects(**scene.objects)
        load_lights(**scene.light_table)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    set_environment(scene.environment.bottom, scene.environment.top)
    logger.debug("Uploaded %r", scene)


def ray_intervals(scene: Scene, object_index: int, origin, direction) -> list[Interval]:
    """Spans of one top-level object along the full line of a ray.

    For a CSG root this is the combined interval list of the whole tree.
    The scene is uploaded first, replacing whatever scene was resident.

    Args:
        scene: A built scene.
        object_index: Index of the object, in the order the primitives
            were given (skipped degenerate primitives are not counted).
        origin: Ray origin.
        direction: Ray direction.

    Returns:
        Intervals in ascending order of t.

    Raises:
        IndexError: If ``object_index`` is out of range.
    """
    if not 0 <= object_index < scene.object_count:
        raise IndexError(f"object_index {object_index} out of range for {scene.object_count} objects")
    origin = as_vec3(origin, "origin")
    direction = as_vec3(direction, "direction")

    upload_scene(scene)
    objects = scene.objects
    ref = int(objects["refs"][object_index])
    if objects["kinds"][object_index] == int(ObjectKind.CSG):
        spans = probe_program(
            ref,
            int(objects["lengths"][object_index]),
            int(objects["material_overrides"][object_index]),
            origin,
            direction,
        )
    else:
        spans = probe_shape(ref, origin, direction)
    return [Interval(t_enter, t_exit, scene.materials[material_id]) for t_enter, t_exit, material_id in spans]
