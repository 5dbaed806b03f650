"""Declarative scene description: primitives, materials and lights.

Specs are frozen dataclasses that validate their parameters on creation and
raise ConfigurationError for anything that can never be rendered (wrong
shapes, non-finite numbers, out-of-range material parameters). Geometry that
is well-formed but degenerate, such as a zero-radius sphere, is accepted here
and skipped by ``build_scene`` with a warning.

Example:
    >>> red = Lambertian(albedo=(0.8, 0.1, 0.1))
    >>> ball = SphereSpec(center=(0, 0, -1), radius=0.5, material=red)
    >>> hollow = CsgSpec(CsgOp.DIFFERENCE, CubeSpec.centered((0, 0, 0), 2.0, red), ball)
"""

from dataclasses import dataclass
from typing import Union

import numpy as np

from buzz.csg.combine import CsgOp
from buzz.errors import ConfigurationError
from buzz.validation import (
    Vec3,
    as_finite,
    as_vec3,
    validate_albedo,
    validate_emission,
    validate_fuzziness,
    validate_refractive_index,
)

# =============================================================================
# Materials
# =============================================================================


@dataclass(frozen=True)
class Lambertian:
    """Ideal diffuse material.

    Attributes:
        albedo: Diffuse reflectance, each component in [0, 1].
    """

    albedo: Vec3

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))


@dataclass(frozen=True)
class Metal:
    """Specular reflector.

    Attributes:
        albedo: Reflectance, each component in [0, 1].
        fuzziness: Blur of the reflection, 0 for a perfect mirror up to 1.
    """

    albedo: Vec3
    fuzziness: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))
        object.__setattr__(self, "fuzziness", validate_fuzziness(self.fuzziness))


@dataclass(frozen=True)
class Dielectric:
    """Transparent refracting material such as glass (1.5) or water (1.33)."""

    refractive_index: float = 1.5

    def __post_init__(self) -> None:
        object.__setattr__(self, "refractive_index", validate_refractive_index(self.refractive_index))


@dataclass(frozen=True)
class Emissive:
    """Light-emitting surface. Components may exceed 1."""

    color: Vec3

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", validate_emission(self.color))


Material = Union[Lambertian, Metal, Dielectric, Emissive]
MATERIAL_TYPES = (Lambertian, Metal, Dielectric, Emissive)


def _check_material(material, owner: str, optional: bool = False) -> None:
    if material is None and optional:
        return
    if not isinstance(material, MATERIAL_TYPES):
        raise ConfigurationError(f"{owner} has an unknown material {material!r}")


# =============================================================================
# Primitives
# =============================================================================


@dataclass(frozen=True)
class SphereSpec:
    """Sphere given by its center and radius."""

    center: Vec3
    radius: float
    material: Material

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", as_vec3(self.center, "Sphere center"))
        object.__setattr__(self, "radius", as_finite(self.radius, "Sphere radius"))
        _check_material(self.material, "SphereSpec")


@dataclass(frozen=True)
class CubeSpec:
    """Axis-aligned box given by two opposite corners."""

    min_corner: Vec3
    max_corner: Vec3
    material: Material

    def __post_init__(self) -> None:
        object.__setattr__(self, "min_corner", as_vec3(self.min_corner, "Cube min_corner"))
        object.__setattr__(self, "max_corner", as_vec3(self.max_corner, "Cube max_corner"))
        _check_material(self.material, "CubeSpec")

    @classmethod
    def centered(cls, center: Vec3, side: float, material: Material) -> "CubeSpec":
        """Create a cube from its center and side length."""
        cx, cy, cz = as_vec3(center, "Cube center")
        half = 0.5 * as_finite(side, "Cube side")
        return cls((cx - half, cy - half, cz - half), (cx + half, cy + half, cz + half), material)


@dataclass(frozen=True)
class PlaneSpec:
    """Infinite plane through ``point`` with the given normal.

    Inside a CSG tree the plane stands for the half-space behind its normal.
    """

    point: Vec3
    normal: Vec3
    material: Material

    def __post_init__(self) -> None:
        object.__setattr__(self, "point", as_vec3(self.point, "Plane point"))
        object.__setattr__(self, "normal", as_vec3(self.normal, "Plane normal"))
        _check_material(self.material, "PlaneSpec")


@dataclass(frozen=True)
class CylinderSpec:
    """Closed cylinder along the z axis, centred at ``center``."""

    center: Vec3
    radius: float
    height: float
    material: Material

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", as_vec3(self.center, "Cylinder center"))
        object.__setattr__(self, "radius", as_finite(self.radius, "Cylinder radius"))
        object.__setattr__(self, "height", as_finite(self.height, "Cylinder height"))
        _check_material(self.material, "CylinderSpec")


@dataclass(frozen=True, eq=False)
class TriangleMeshSpec:
    """Ordered sequence of triangles sharing one material.

    Closed meshes used in CSG must be wound counter-clockwise when seen from
    outside.

    Attributes:
        triangles: Array-like of shape (N, 3, 3): N triangles of three
            vertices each.
        material: Material of every triangle.
        normals: Optional per-vertex normals, shape (N, 3, 3).
        smooth: Interpolate vertex normals across each triangle. When no
            normals are given they are averaged from the adjacent faces.
    """

    triangles: np.ndarray
    material: Material
    normals: np.ndarray | None = None
    smooth: bool = False

    def __post_init__(self) -> None:
        triangles = _as_triangle_array(self.triangles, "Mesh triangles")
        object.__setattr__(self, "triangles", triangles)
        if self.normals is not None:
            normals = _as_triangle_array(self.normals, "Mesh normals")
            if normals.shape != triangles.shape:
                raise ConfigurationError(
                    f"Mesh normals shape {normals.shape} does not match triangles {triangles.shape}"
                )
            object.__setattr__(self, "normals", normals)
        object.__setattr__(self, "smooth", bool(self.smooth))
        _check_material(self.material, "TriangleMeshSpec")

    def __len__(self) -> int:
        return len(self.triangles)


def _as_triangle_array(data, name: str) -> np.ndarray:
    try:
        array = np.array(data, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be numeric") from exc
    if array.ndim != 3 or array.shape[1:] != (3, 3):
        raise ConfigurationError(f"{name} must have shape (N, 3, 3), got {array.shape}")
    if not np.all(np.isfinite(array)):
        raise ConfigurationError(f"{name} contain non-finite values")
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class CsgSpec:
    """Boolean combination of two solids.

    Attributes:
        op: The operation applied to ``left`` and ``right``.
        left: First operand (a solid primitive or another CsgSpec).
        right: Second operand.
        material: Optional material for every surface of the result,
            overriding the materials of the operands.
    """

    op: CsgOp
    left: "Primitive"
    right: "Primitive"
    material: Material | None = None

    def __post_init__(self) -> None:
        _check_material(self.material, "CsgSpec", optional=True)

    def depth(self) -> int:
        """Height of the tree (a leaf has height 0)."""
        left = self.left.depth() if isinstance(self.left, CsgSpec) else 0
        right = self.right.depth() if isinstance(self.right, CsgSpec) else 0
        return 1 + max(left, right)


Primitive = Union[SphereSpec, CubeSpec, PlaneSpec, CylinderSpec, TriangleMeshSpec, CsgSpec]
PRIMITIVE_TYPES = (SphereSpec, CubeSpec, PlaneSpec, CylinderSpec, TriangleMeshSpec, CsgSpec)


# =============================================================================
# Lights
# =============================================================================


@dataclass(frozen=True)
class PointLight:
    """Spherical light source.

    Attributes:
        position: Center of the light.
        intensity: Radiant intensity per channel; irradiance falls off with
            the squared distance.
        radius: Radius of the emitting sphere. Zero gives hard shadows;
            a positive radius is sampled as a disk facing the shaded point.
    """

    position: Vec3
    intensity: Vec3
    radius: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", as_vec3(self.position, "Light position"))
        object.__setattr__(self, "intensity", validate_emission(self.intensity, "Light intensity"))
        radius = as_finite(self.radius, "Light radius")
        if radius < 0.0:
            raise ConfigurationError(f"Light radius = {radius} is negative")
        object.__setattr__(self, "radius", radius)


@dataclass(frozen=True)
class QuadLight:
    """Parallelogram area light with corners Q, Q+u, Q+v and Q+u+v.

    Both faces emit ``radiance``.
    """

    corner: Vec3
    edge_u: Vec3
    edge_v: Vec3
    radiance: Vec3

    def __post_init__(self) -> None:
        object.__setattr__(self, "corner", as_vec3(self.corner, "Light corner"))
        object.__setattr__(self, "edge_u", as_vec3(self.edge_u, "Light edge_u"))
        object.__setattr__(self, "edge_v", as_vec3(self.edge_v, "Light edge_v"))
        object.__setattr__(self, "radiance", validate_emission(self.radiance, "Light radiance"))
        area = np.linalg.norm(np.cross(self.edge_u, self.edge_v))
        if area <= 0.0:
            raise ConfigurationError("QuadLight edges are parallel; the light has no area")

    @property
    def area(self) -> float:
        return float(np.linalg.norm(np.cross(self.edge_u, self.edge_v)))


Light = Union[PointLight, QuadLight]
