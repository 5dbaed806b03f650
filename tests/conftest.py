"""Pytest configuration for buzz tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear the resident scene before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before fields are declared
    from buzz.csg.evaluate import clear_programs
    from buzz.geometry.shapes import clear_shapes
    from buzz.materials.registry import clear_materials
    from buzz.scene.intersection import clear_objects
    from buzz.scene.lights import clear_lights

    def _clear_all():
        clear_shapes()
        clear_programs()
        clear_objects()
        clear_lights()
        clear_materials()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def matte():
    """A mid-grey Lambertian material."""
    from buzz.scene.spec import Lambertian

    return Lambertian(albedo=(0.5, 0.5, 0.5))


@pytest.fixture
def tetrahedron():
    """Closed, outward-wound tetrahedron with vertices at the origin and unit axes."""
    a = (0.0, 0.0, 0.0)
    b = (1.0, 0.0, 0.0)
    c = (0.0, 1.0, 0.0)
    d = (0.0, 0.0, 1.0)
    return [
        [a, c, b],
        [a, b, d],
        [a, d, c],
        [b, c, d],
    ]
