"""High-level entry points.

Importing this module declares every Taichi field of the renderer, so
``ti.init`` must have been called first.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from buzz.api import (
    ...     Camera, Lambertian, PointLight, SphereSpec, build_scene, render, to_srgb8
    ... )
    >>> matte = Lambertian((0.7, 0.7, 0.7))
    >>> scene = build_scene(
    ...     [SphereSpec((0, 0, -1), 1.0, matte)],
    ...     lights=[PointLight((0, 4, 0), (20.0, 20.0, 20.0), radius=0.5)],
    ... )
    >>> image = render(scene, Camera((0, 0, 3), (0, 0, -1)), 160, 120, samples_per_pixel=16)
    >>> pixels = to_srgb8(image)
"""

from buzz.camera.camera import Camera
from buzz.config import Environment, RenderConfig
from buzz.core.integrator import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, render, to_srgb8
from buzz.core.progressive import ProgressiveRenderer
from buzz.errors import BuzzError, ConfigurationError, InvalidCsgTreeError
from buzz.scene.builder import Scene, build_scene
from buzz.scene.spec import (
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
from buzz.scene.upload import Interval, ray_intervals

__all__ = [
    "build_scene",
    "render",
    "to_srgb8",
    "ray_intervals",
    "Interval",
    "ProgressiveRenderer",
    "Scene",
    "Camera",
    "Environment",
    "RenderConfig",
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
    "BuzzError",
    "ConfigurationError",
    "InvalidCsgTreeError",
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
]
