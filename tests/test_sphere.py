"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face)
- Analytic hit distances for off-axis rays
- Full-line intervals used by CSG
"""

import math

import pytest
import taichi as ti


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_hit_sphere_direct_hit(self):
        """Test ray hitting sphere head-on from outside."""
        from buzz.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f32, shape=())
        point = ti.field(dtype=ti.math.vec3, shape=())
        normal = ti.field(dtype=ti.math.vec3, shape=())
        front_face = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            record = hit_sphere(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0), sphere, 0.001, 1000.0)
            hit[None] = record.hit
            t_val[None] = record.t
            point[None] = record.point
            normal[None] = record.normal
            front_face[None] = record.front_face

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 4.0) < 1e-5
        p = point[None]
        assert abs(p[0]) < 1e-5
        assert abs(p[1]) < 1e-5
        assert abs(p[2] - 1.0) < 1e-5
        n = normal[None]
        assert abs(n[2] - 1.0) < 1e-5
        assert front_face[None] == 1

    def test_hit_sphere_miss(self):
        """Test ray missing sphere entirely."""
        from buzz.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            record = hit_sphere(vec3(5.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), sphere, 0.001, 1000.0)
            hit[None] = record.hit

        test_kernel()
        assert hit[None] == 0

    def test_hit_sphere_inside(self):
        """Test ray starting inside sphere (back face hit)."""
        from buzz.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f32, shape=())
        normal = ti.field(dtype=ti.math.vec3, shape=())
        front_face = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            record = hit_sphere(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), sphere, 0.001, 1000.0)
            hit[None] = record.hit
            t_val[None] = record.t
            normal[None] = record.normal
            front_face[None] = record.front_face

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 1.0) < 1e-5
        # Normal faces against the ray: (0, 0, -1)
        assert abs(normal[None][2] + 1.0) < 1e-5
        assert front_face[None] == 0

    def test_hit_sphere_behind_ray(self):
        """Test that a sphere entirely behind the origin is not hit."""
        from buzz.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 10.0), radius=1.0)
            record = hit_sphere(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), sphere, 0.001, 1000.0)
            hit[None] = record.hit

        test_kernel()
        assert hit[None] == 0

    def test_hit_sphere_respects_t_max(self):
        """Test that hits beyond t_max are rejected."""
        from buzz.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            record = hit_sphere(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0), sphere, 0.001, 3.5)
            hit[None] = record.hit

        test_kernel()
        assert hit[None] == 0

    @pytest.mark.parametrize(
        "center,radius,offset",
        [
            ((0.0, 0.0, 0.0), 1.0, 0.5),
            ((2.0, -1.0, 3.0), 0.25, 0.1),
            ((0.0, 0.0, -100.0), 40.0, 30.0),
        ],
    )
    def test_hit_distance_matches_analytic(self, center, radius, offset):
        """Test off-axis hits against the closed-form distance with unit normals."""
        from buzz.geometry.sphere import Sphere, hit_sphere, vec3

        t_val = ti.field(dtype=ti.f32, shape=())
        normal_len = ti.field(dtype=ti.f32, shape=())
        hit = ti.field(dtype=ti.i32, shape=())
        distance = 10.0 * radius + 5.0
        cx, cy, cz = center

        @ti.kernel
        def test_kernel():
            c = vec3(cx, cy, cz)
            origin = c + vec3(offset, 0.0, distance)
            record = hit_sphere(origin, vec3(0.0, 0.0, -1.0), Sphere(center=c, radius=radius), 1e-4, 1e10)
            hit[None] = record.hit
            t_val[None] = record.t
            normal_len[None] = ti.math.length(record.normal)

        test_kernel()
        expected = distance - math.sqrt(radius**2 - offset**2)
        assert hit[None] == 1
        assert abs(t_val[None] - expected) < 1e-4 * max(1.0, distance)
        assert abs(normal_len[None] - 1.0) < 1e-5


class TestSphereInterval:
    """Tests for the full-line interval used by CSG."""

    def test_interval_spans_both_crossings(self):
        """Test that the interval covers entry and exit, including negative t."""
        from buzz.geometry.sphere import sphere_interval, vec3

        valid = ti.field(dtype=ti.i32, shape=())
        t_enter = ti.field(dtype=ti.f32, shape=())
        t_exit = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            v, a, b = sphere_interval(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 0.0), 2.0)
            valid[None] = v
            t_enter[None] = a
            t_exit[None] = b

        test_kernel()
        assert valid[None] == 1
        assert abs(t_enter[None] + 2.0) < 1e-5
        assert abs(t_exit[None] - 2.0) < 1e-5

    def test_interval_miss(self):
        """Test that a missing line yields no interval."""
        from buzz.geometry.sphere import sphere_interval, vec3

        valid = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            v, _, _ = sphere_interval(vec3(3.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 0.0), 1.0)
            valid[None] = v

        test_kernel()
        assert valid[None] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
