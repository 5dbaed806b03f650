"""Geometry module for shape primitives and intersection algorithms.

Components:
    hit_record: HitRecord structure shared by all primitives
    slab: Slab spans and the INTERVAL_INF sentinel
    sphere: Sphere with robust ray-sphere intersection
    cube: Axis-aligned box via the slab method
    plane: Infinite plane (a half-space when used in CSG)
    cylinder: Capped cylinder along the z axis
    triangle: Moller-Trumbore triangles with optional smooth normals
    shapes: Global shape and triangle tables with per-kind dispatch

Each primitive exposes a closest-hit query ``hit_<shape>(origin, direction,
shape, t_min, t_max)`` and a full-line interval query ``<shape>_interval``
used by the CSG engine. All routines are Taichi functions (@ti.func).
"""

from .cube import Cube, cube_interval, cube_normal, hit_cube
from .cylinder import Cylinder, cylinder_interval, cylinder_normal, hit_cylinder
from .hit_record import HitRecord, make_hit_record, make_miss_record
from .plane import Plane, hit_plane, plane_interval
from .shapes import (
    MAX_SHAPES,
    MAX_TRIANGLES,
    ShapeKind,
    clear_shapes,
    convex_shape_interval,
    load_shapes,
    load_triangles,
    shape_hit,
    shape_outward_normal,
)
from .slab import INTERVAL_INF
from .sphere import Sphere, hit_sphere, sphere_interval, sphere_normal
from .triangle import Triangle, hit_triangle, intersect_triangle

__all__ = [
    "HitRecord",
    "make_hit_record",
    "make_miss_record",
    "INTERVAL_INF",
    "Sphere",
    "hit_sphere",
    "sphere_interval",
    "sphere_normal",
    "Cube",
    "hit_cube",
    "cube_interval",
    "cube_normal",
    "Plane",
    "hit_plane",
    "plane_interval",
    "Cylinder",
    "hit_cylinder",
    "cylinder_interval",
    "cylinder_normal",
    "Triangle",
    "hit_triangle",
    "intersect_triangle",
    "ShapeKind",
    "MAX_SHAPES",
    "MAX_TRIANGLES",
    "clear_shapes",
    "load_shapes",
    "load_triangles",
    "shape_hit",
    "convex_shape_interval",
    "shape_outward_normal",
]
