"""Scene construction: validation and flattening of specs into tables.

``build_scene`` turns primitive, light and environment specs into an
immutable Scene holding plain NumPy tables. Nothing touches Taichi fields
here; the tables are copied into fields by ``upload_scene`` when a render
starts, so several scenes can be built and kept side by side.

Example:
    >>> from buzz.scene import Lambertian, PointLight, SphereSpec, build_scene
    >>> matte = Lambertian(albedo=(0.7, 0.7, 0.7))
    >>> scene = build_scene(
    ...     [SphereSpec((0, 0, -1), 1.0, matte)],
    ...     lights=[PointLight((0, 5, 0), (30.0, 30.0, 30.0))],
    ... )
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np

from buzz.config import Environment
from buzz.csg.combine import CsgOp
from buzz.csg.evaluate import MAX_PROGRAM, OP_PUSH
from buzz.csg.intervals import CSG_STACK_DEPTH
from buzz.errors import ConfigurationError, InvalidCsgTreeError
from buzz.geometry.shapes import MAX_SHAPES, MAX_TRIANGLES, ShapeKind
from buzz.geometry.triangle import DEGENERATE_AREA_EPSILON
from buzz.materials.dielectric import MAX_DIELECTRIC_MATERIALS
from buzz.materials.emissive import MAX_EMISSIVE_MATERIALS
from buzz.materials.lambertian import MAX_LAMBERTIAN_MATERIALS
from buzz.materials.metal import MAX_METAL_MATERIALS
from buzz.materials.registry import MAX_MATERIALS
from buzz.scene.intersection import MAX_OBJECTS, ObjectKind
from buzz.scene.lights import MAX_LIGHTS, LightKind
from buzz.scene.spec import (
    PRIMITIVE_TYPES,
    CsgSpec,
    CubeSpec,
    CylinderSpec,
    Dielectric,
    Emissive,
    Lambertian,
    Light,
    Material,
    Metal,
    PlaneSpec,
    PointLight,
    Primitive,
    QuadLight,
    SphereSpec,
    TriangleMeshSpec,
)

logger = logging.getLogger(__name__)

# Decimal places used to weld mesh vertices when comparing edges
_WELD_DECIMALS = 6

_MATERIAL_CAPACITY = {
    Lambertian: MAX_LAMBERTIAN_MATERIALS,
    Metal: MAX_METAL_MATERIALS,
    Dielectric: MAX_DIELECTRIC_MATERIALS,
    Emissive: MAX_EMISSIVE_MATERIALS,
}


@dataclass(frozen=True, eq=False)
class Scene:
    """An immutable, validated scene ready to be uploaded for rendering.

    Attributes:
        primitives: The primitive specs the scene was built from.
        lights: The light specs.
        environment: Background radiance for escaping rays.
        materials: Distinct materials; a material's position is its ID.
        shapes: Shape table columns (see buzz.geometry.shapes).
        triangles: Triangle table columns.
        objects: Object table columns (see buzz.scene.intersection).
        programs: CSG program table columns (see buzz.csg.evaluate).
        light_table: Light table columns (see buzz.scene.lights).
    """

    primitives: tuple
    lights: tuple
    environment: Environment
    materials: tuple
    shapes: dict = field(repr=False)
    triangles: dict = field(repr=False)
    objects: dict = field(repr=False)
    programs: dict = field(repr=False)
    light_table: dict = field(repr=False)

    @property
    def shape_count(self) -> int:
        return len(self.shapes["kinds"])

    @property
    def triangle_count(self) -> int:
        return len(self.triangles["smooth"])

    @property
    def object_count(self) -> int:
        return len(self.objects["kinds"])

    @property
    def light_count(self) -> int:
        return len(self.light_table["kinds"])

    def __repr__(self) -> str:
        return (
            f"Scene(objects={self.object_count}, shapes={self.shape_count}, "
            f"triangles={self.triangle_count}, materials={len(self.materials)}, "
            f"lights={self.light_count})"
        )


# =============================================================================
# Mesh helpers
# =============================================================================


def _face_normals(triangles: np.ndarray) -> np.ndarray:
    """Unnormalised face normals (length = twice the triangle area)."""
    return np.cross(triangles[:, 1] - triangles[:, 0], triangles[:, 2] - triangles[:, 0])


def _weld_keys(triangles: np.ndarray) -> list[list[tuple]]:
    rounded = np.round(triangles, _WELD_DECIMALS)
    return [[tuple(vertex) for vertex in tri] for tri in rounded.tolist()]


def _averaged_vertex_normals(triangles: np.ndarray) -> np.ndarray:
    """Per-vertex normals averaged (area-weighted) over welded vertices."""
    face = _face_normals(triangles)
    keys = _weld_keys(triangles)
    sums: dict[tuple, np.ndarray] = {}
    for tri_keys, normal in zip(keys, face):
        for key in tri_keys:
            sums[key] = sums.get(key, np.zeros(3)) + normal
    normals = np.array([[sums[key] for key in tri_keys] for tri_keys in keys], dtype=np.float64)
    lengths = np.linalg.norm(normals, axis=2, keepdims=True)
    return np.divide(normals, lengths, out=np.zeros_like(normals), where=lengths > 0.0)


def is_closed_mesh(triangles: np.ndarray) -> bool:
    """Whether a triangle soup is a closed, consistently wound surface.

    Every directed edge must be matched by exactly one edge running the
    opposite way, after welding vertices that coincide.
    """
    if len(triangles) < 4:
        return False
    directed: dict[tuple, int] = {}
    for a, b, c in _weld_keys(triangles):
        for edge in ((a, b), (b, c), (c, a)):
            directed[edge] = directed.get(edge, 0) + 1
    for (start, end), count in directed.items():
        if count != 1 or directed.get((end, start), 0) != 1:
            return False
    return True


def _csg_stack_need(node: Primitive) -> int:
    """Stack levels needed to evaluate a subtree in post-order."""
    if not isinstance(node, CsgSpec):
        return 1
    return max(_csg_stack_need(node.left), _csg_stack_need(node.right) + 1)


# =============================================================================
# Builder
# =============================================================================


class _SceneBuilder:
    """Accumulates table rows while walking the primitive specs."""

    def __init__(self) -> None:
        self.materials: list[Material] = []
        self._material_ids: dict[Material, int] = {}
        self.shape_rows: list[tuple] = []
        self.tri_v: list[np.ndarray] = []
        self.tri_n: list[np.ndarray] = []
        self.tri_smooth: list[np.ndarray] = []
        self.triangle_total = 0
        self.object_rows: list[tuple] = []
        self.program_ops: list[int] = []
        self.program_args: list[int] = []
        self.skipped = 0

    def material_id(self, material: Material) -> int:
        material_id = self._material_ids.get(material)
        if material_id is None:
            material_id = len(self.materials)
            self.materials.append(material)
            self._material_ids[material] = material_id
        return material_id

    def _skip(self, spec, reason: str) -> None:
        logger.warning("Skipping degenerate %s: %s", type(spec).__name__, reason)
        self.skipped += 1

    def _append_shape(
        self,
        kind: ShapeKind,
        material: Material,
        vec_a=(0.0, 0.0, 0.0),
        vec_b=(0.0, 0.0, 0.0),
        scalar_a=0.0,
        scalar_b=0.0,
        tri_start=0,
        tri_count=0,
    ) -> int:
        self.shape_rows.append(
            (int(kind), vec_a, vec_b, scalar_a, scalar_b, tri_start, tri_count, self.material_id(material))
        )
        return len(self.shape_rows) - 1

    def add_shape(self, spec: Primitive) -> int | None:
        """Append a primitive to the shape table.

        Returns:
            The shape index, or None if the primitive is degenerate.
        """
        if isinstance(spec, SphereSpec):
            if spec.radius <= 0.0:
                self._skip(spec, f"radius {spec.radius}")
                return None
            return self._append_shape(ShapeKind.SPHERE, spec.material, vec_a=spec.center, scalar_a=spec.radius)

        if isinstance(spec, CubeSpec):
            if any(hi <= lo for lo, hi in zip(spec.min_corner, spec.max_corner)):
                self._skip(spec, f"empty box {spec.min_corner} .. {spec.max_corner}")
                return None
            return self._append_shape(ShapeKind.CUBE, spec.material, vec_a=spec.min_corner, vec_b=spec.max_corner)

        if isinstance(spec, PlaneSpec):
            length = float(np.linalg.norm(spec.normal))
            if length <= 0.0:
                self._skip(spec, "zero normal")
                return None
            normal = tuple(component / length for component in spec.normal)
            return self._append_shape(ShapeKind.PLANE, spec.material, vec_a=spec.point, vec_b=normal)

        if isinstance(spec, CylinderSpec):
            if spec.radius <= 0.0 or spec.height <= 0.0:
                self._skip(spec, f"radius {spec.radius}, height {spec.height}")
                return None
            return self._append_shape(
                ShapeKind.CYLINDER,
                spec.material,
                vec_a=spec.center,
                scalar_a=spec.radius,
                scalar_b=spec.height,
            )

        return self._add_mesh(spec)

    def _add_mesh(self, spec: TriangleMeshSpec) -> int | None:
        triangles = spec.triangles
        normals = spec.normals
        if spec.smooth and normals is None:
            normals = _averaged_vertex_normals(triangles)

        double_area_sq = np.sum(_face_normals(triangles) ** 2, axis=1)
        keep = double_area_sq > DEGENERATE_AREA_EPSILON
        dropped = int(len(triangles) - np.count_nonzero(keep))
        if dropped:
            logger.warning("Dropping %d zero-area triangle(s) from mesh", dropped)
        if not np.any(keep):
            self._skip(spec, "no triangle with a non-zero area")
            return None

        triangles = triangles[keep]
        if normals is None:
            normals = np.zeros_like(triangles)
        else:
            normals = normals[keep]
        start = self.triangle_total
        self.tri_v.append(triangles)
        self.tri_n.append(normals)
        self.tri_smooth.append(np.full(len(triangles), 1 if spec.smooth else 0, dtype=np.int32))
        self.triangle_total += len(triangles)
        return self._append_shape(ShapeKind.MESH, spec.material, tri_start=start, tri_count=len(triangles))

    def add_primitive(self, spec: Primitive) -> None:
        if not isinstance(spec, PRIMITIVE_TYPES):
            raise ConfigurationError(f"Unknown primitive type {type(spec).__name__}")

        if isinstance(spec, CsgSpec):
            start = len(self.program_ops)
            self._check_stack(spec)
            self._emit(spec)
            override = -1 if spec.material is None else self.material_id(spec.material)
            self.object_rows.append((int(ObjectKind.CSG), start, len(self.program_ops) - start, override))
            return

        shape = self.add_shape(spec)
        if shape is not None:
            self.object_rows.append((int(ObjectKind.PRIMITIVE), shape, 0, -1))

    @staticmethod
    def _check_stack(tree: CsgSpec) -> None:
        need = _csg_stack_need(tree)
        if need > CSG_STACK_DEPTH:
            raise InvalidCsgTreeError(
                f"CSG tree needs {need} stack levels, more than the supported {CSG_STACK_DEPTH}"
            )

    def _emit(self, node: Primitive) -> None:
        """Append the post-order program of a CSG subtree."""
        if isinstance(node, CsgSpec):
            try:
                op = CsgOp(node.op)
            except ValueError:
                raise InvalidCsgTreeError(f"Unknown CSG operator {node.op!r}") from None
            self._emit(node.left)
            self._emit(node.right)
            self.program_ops.append(int(op))
            self.program_args.append(0)
            return

        if not isinstance(node, PRIMITIVE_TYPES):
            raise InvalidCsgTreeError(f"CSG operand {node!r} is not a primitive")
        if isinstance(node, TriangleMeshSpec) and not is_closed_mesh(node.triangles):
            raise InvalidCsgTreeError("CSG operand mesh is not closed")

        shape = self.add_shape(node)
        if shape is None:
            raise InvalidCsgTreeError(f"CSG operand {type(node).__name__} is degenerate and encloses no volume")
        self.program_ops.append(OP_PUSH)
        self.program_args.append(shape)

    def check_capacity(self) -> None:
        limits = (
            ("shapes", len(self.shape_rows), MAX_SHAPES),
            ("triangles", self.triangle_total, MAX_TRIANGLES),
            ("objects", len(self.object_rows), MAX_OBJECTS),
            ("CSG instructions", len(self.program_ops), MAX_PROGRAM),
            ("materials", len(self.materials), MAX_MATERIALS),
        )
        for name, count, limit in limits:
            if count > limit:
                raise ConfigurationError(f"Scene has {count} {name}, more than the supported {limit}")
        for material_type, limit in _MATERIAL_CAPACITY.items():
            count = sum(1 for material in self.materials if type(material) is material_type)
            if count > limit:
                raise ConfigurationError(
                    f"Scene has {count} {material_type.__name__} materials, more than the supported {limit}"
                )

    def shape_table(self) -> dict:
        rows = self.shape_rows
        return {
            "kinds": np.array([row[0] for row in rows], dtype=np.int32),
            "vec_a": np.array([row[1] for row in rows], dtype=np.float32).reshape(-1, 3),
            "vec_b": np.array([row[2] for row in rows], dtype=np.float32).reshape(-1, 3),
            "scalar_a": np.array([row[3] for row in rows], dtype=np.float32),
            "scalar_b": np.array([row[4] for row in rows], dtype=np.float32),
            "tri_start": np.array([row[5] for row in rows], dtype=np.int32),
            "tri_count": np.array([row[6] for row in rows], dtype=np.int32),
            "material_ids": np.array([row[7] for row in rows], dtype=np.int32),
        }

    def triangle_table(self) -> dict:
        if self.tri_v:
            vertices = np.concatenate(self.tri_v).astype(np.float32)
            normals = np.concatenate(self.tri_n).astype(np.float32)
            smooth = np.concatenate(self.tri_smooth)
        else:
            vertices = np.zeros((0, 3, 3), dtype=np.float32)
            normals = np.zeros((0, 3, 3), dtype=np.float32)
            smooth = np.zeros(0, dtype=np.int32)
        return {
            "v0": vertices[:, 0],
            "v1": vertices[:, 1],
            "v2": vertices[:, 2],
            "n0": normals[:, 0],
            "n1": normals[:, 1],
            "n2": normals[:, 2],
            "smooth": smooth,
        }

    def object_table(self) -> dict:
        rows = self.object_rows
        return {
            "kinds": np.array([row[0] for row in rows], dtype=np.int32),
            "refs": np.array([row[1] for row in rows], dtype=np.int32),
            "lengths": np.array([row[2] for row in rows], dtype=np.int32),
            "material_overrides": np.array([row[3] for row in rows], dtype=np.int32),
        }

    def program_table(self) -> dict:
        return {
            "ops": np.array(self.program_ops, dtype=np.int32),
            "args": np.array(self.program_args, dtype=np.int32),
        }


def _light_table(lights: tuple) -> dict:
    kinds, positions, edge_u, edge_v, radiance, radii = [], [], [], [], [], []
    for light in lights:
        if isinstance(light, PointLight):
            kinds.append(int(LightKind.POINT))
            positions.append(light.position)
            edge_u.append((0.0, 0.0, 0.0))
            edge_v.append((0.0, 0.0, 0.0))
            radiance.append(light.intensity)
            radii.append(light.radius)
        elif isinstance(light, QuadLight):
            kinds.append(int(LightKind.QUAD))
            positions.append(light.corner)
            edge_u.append(light.edge_u)
            edge_v.append(light.edge_v)
            radiance.append(light.radiance)
            radii.append(0.0)
        else:
            raise ConfigurationError(f"Unknown light type {type(light).__name__}")
    return {
        "kinds": np.array(kinds, dtype=np.int32),
        "positions": np.array(positions, dtype=np.float32).reshape(-1, 3),
        "edge_u": np.array(edge_u, dtype=np.float32).reshape(-1, 3),
        "edge_v": np.array(edge_v, dtype=np.float32).reshape(-1, 3),
        "radiance": np.array(radiance, dtype=np.float32).reshape(-1, 3),
        "radii": np.array(radii, dtype=np.float32),
    }


def build_scene(
    primitives: Iterable[Primitive],
    lights: Iterable[Light] = (),
    environment: Environment | None = None,
) -> Scene:
    """Validate and flatten a scene description.

    Args:
        primitives: Top-level primitives and CSG trees.
        lights: Lights sampled for direct illumination.
        environment: Background radiance; defaults to the sky gradient.

    Returns:
        An immutable Scene.

    Raises:
        ConfigurationError: If the scene is empty, contains an unknown spec
            type, or exceeds a capacity.
        InvalidCsgTreeError: If a CSG tree has a non-solid or degenerate
            operand, an unknown operator, or is too deep to evaluate.
    """
    primitives = tuple(primitives)
    lights = tuple(lights)
    if environment is None:
        environment = Environment.sky()
    elif not isinstance(environment, Environment):
        raise ConfigurationError(f"environment must be an Environment, got {type(environment).__name__}")

    builder = _SceneBuilder()
    for spec in primitives:
        builder.add_primitive(spec)

    if not builder.object_rows:
        raise ConfigurationError("Scene contains no renderable primitives")
    if len(lights) > MAX_LIGHTS:
        raise ConfigurationError(f"Scene has {len(lights)} lights, more than the supported {MAX_LIGHTS}")
    builder.check_capacity()

    scene = Scene(
        primitives=primitives,
        lights=lights,
        environment=environment,
        materials=tuple(builder.materials),
        shapes=builder.shape_table(),
        triangles=builder.triangle_table(),
        objects=builder.object_table(),
        programs=builder.program_table(),
        light_table=_light_table(lights),
    )
    logger.info(
        "Built scene: %d objects, %d shapes, %d triangles, %d materials, %d lights (%d skipped)",
        scene.object_count,
        scene.shape_count,
        scene.triangle_count,
        len(scene.materials),
        scene.light_count,
        builder.skipped,
    )
    return scene
