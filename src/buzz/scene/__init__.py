"""Scene module for scene description, construction and ray-scene queries.

Components:
    spec: Frozen dataclass specs for primitives, materials and lights
    builder: build_scene validation and flattening into NumPy tables
    intersection: Object table, nearest-hit and shadow queries, background
    lights: Light table and light sampling for direct illumination
    upload: Copying a Scene into Taichi fields, ray_intervals probing

Scenes are described in plain Python, validated once by ``build_scene`` and
uploaded to preallocated Taichi fields when a render starts.
"""

from .builder import Scene, build_scene, is_closed_mesh
from .intersection import (
    MAX_OBJECTS,
    ObjectKind,
    environment_color,
    intersect_scene,
    intersect_scene_any,
)
from .lights import MAX_LIGHTS, LightKind, sample_light
from .spec import (
    CsgOp,
    CsgSpec,
    CubeSpec,
    CylinderSpec,
    Dielectric,
    Emissive,
    Lambertian,
    Metal,
    PlaneSpec,
    PointLight,
    QuadLight,
    SphereSpec,
    TriangleMeshSpec,
)
from .upload import Interval, ray_intervals, upload_scene

__all__ = [
    # Specs
    "SphereSpec",
    "CubeSpec",
    "PlaneSpec",
    "CylinderSpec",
    "TriangleMeshSpec",
    "CsgSpec",
    "CsgOp",
    "Lambertian",
    "Metal",
    "Dielectric",
    "Emissive",
    "PointLight",
    "QuadLight",
    # Builder
    "Scene",
    "build_scene",
    "is_closed_mesh",
    # Queries
    "ObjectKind",
    "MAX_OBJECTS",
    "intersect_scene",
    "intersect_scene_any",
    "environment_color",
    "LightKind",
    "MAX_LIGHTS",
    "sample_light",
    # Upload
    "Interval",
    "upload_scene",
    "ray_intervals",
]
