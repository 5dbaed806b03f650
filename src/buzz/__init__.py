"""Taichi-based path tracer with constructive solid geometry.

This package provides a Monte Carlo ray tracer built on Taichi, with support for:
- Spheres, cubes, planes, cylinders and triangle meshes
- Lambertian, metal, dielectric and emissive materials
- Boolean (CSG) combination of solids through interval sweeps
- Direct lighting with soft shadows plus indirect path-traced bounces
- Thin-lens camera with jittered anti-aliasing and depth of field

Subpackages:
    core: Vector utilities, hash RNG, path tracing integrator, progressive renderer
    geometry: Shape primitives, hit records and interval computation
    materials: Scattering models and their material registries
    csg: Interval lists, the boolean sweep and CSG program evaluation
    scene: Scene description, validation, upload and scene-level queries
    camera: Thin-lens camera with ray generation

Taichi must be initialised with ``ti.init`` before importing any subpackage,
since those declare Taichi fields at import time. The high-level entry points
live in ``buzz.api``.
"""

__version__ = "0.1.0"
