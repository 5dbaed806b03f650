"""Unit tests for the dielectric material module.

Tests cover:
- Refraction at normal incidence passes straight through
- Fresnel reflection probability matches Schlick's approximation
- Total internal reflection from inside the material
- White attenuation and IOR validation
"""

import math

import pytest
import taichi as ti


class TestDielectricScatter:
    """Tests for the dielectric scatter function."""

    def test_normal_incidence_mostly_transmits(self):
        """Test that about R0 = 4% of rays reflect at normal incidence into glass."""
        from buzz.core.rng import init_seed
        from buzz.materials.dielectric import scatter_dielectric, vec3

        reflected = ti.field(dtype=ti.i32, shape=())
        transmitted = ti.field(dtype=ti.i32, shape=())
        reflected[None] = 0
        transmitted[None] = 0
        n = 4000

        @ti.kernel
        def test_kernel():
            for i in range(n):
                d, _, _, _ = scatter_dielectric(
                    1.5, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1, init_seed(7, i, 0)
                )
                if d.y > 0.99:
                    reflected[None] += 1
                elif d.y < -0.99:
                    transmitted[None] += 1

        test_kernel()
        assert reflected[None] + transmitted[None] == n
        fraction = reflected[None] / n
        assert 0.02 < fraction < 0.07

    def test_refraction_obeys_snell(self):
        """Test the transmitted direction satisfies n1 sin(t1) = n2 sin(t2)."""
        from buzz.core.rng import init_seed
        from buzz.materials.dielectric import scatter_dielectric, vec3

        max_err = ti.field(dtype=ti.f32, shape=())
        count = ti.field(dtype=ti.i32, shape=())
        max_err[None] = 0.0
        count[None] = 0
        theta = math.radians(30.0)
        sin_i = math.sin(theta)
        cos_i = math.cos(theta)

        @ti.kernel
        def test_kernel():
            for i in range(500):
                d, _, _, _ = scatter_dielectric(
                    1.5, vec3(sin_i, -cos_i, 0.0), vec3(0.0, 1.0, 0.0), 1, init_seed(8, i, 0)
                )
                if d.y < 0.0:
                    count[None] += 1
                    ti.atomic_max(max_err[None], ti.abs(1.5 * d.x - sin_i))

        test_kernel()
        assert count[None] > 0
        assert max_err[None] < 1e-4

    def test_total_internal_reflection(self):
        """Test that steep rays leaving glass always reflect."""
        from buzz.core.rng import init_seed
        from buzz.materials.dielectric import scatter_dielectric, vec3

        min_y = ti.field(dtype=ti.f32, shape=())
        min_y[None] = 10.0
        theta = math.radians(60.0)
        sin_i = math.sin(theta)
        cos_i = math.cos(theta)

        @ti.kernel
        def test_kernel():
            for i in range(500):
                # front_face = 0: travelling inside the glass towards air
                d, _, _, _ = scatter_dielectric(
                    1.5, vec3(sin_i, -cos_i, 0.0), vec3(0.0, 1.0, 0.0), 0, init_seed(9, i, 0)
                )
                ti.atomic_min(min_y[None], d.y)

        test_kernel()
        assert abs(min_y[None] - cos_i) < 1e-5

    def test_attenuation_is_white_and_always_scatters(self):
        """Test that glass never absorbs."""
        from buzz.core.rng import init_seed
        from buzz.materials.dielectric import scatter_dielectric, vec3

        attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(0.3, -1.0, 0.2))
            _, a, s, _ = scatter_dielectric(1.33, incident, vec3(0.0, 1.0, 0.0), 1, init_seed(1, 1, 1))
            attenuation[None] = a
            scattered[None] = s

        test_kernel()
        a = attenuation[None]
        assert a[0] == 1.0 and a[1] == 1.0 and a[2] == 1.0
        assert scattered[None] == 1


class TestMaterialRegistry:
    """Tests for the dielectric material registry."""

    def test_add_and_get_material(self):
        """Test storing a refractive index."""
        from buzz.materials.dielectric import (
            add_dielectric_material,
            get_dielectric_ior,
            get_dielectric_material_count,
        )

        add_dielectric_material()
        idx = add_dielectric_material(2.4)
        assert idx == 1
        assert get_dielectric_material_count() == 2

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = get_dielectric_ior(mat_idx)

        test_kernel(idx)
        assert abs(result[None] - 2.4) < 1e-6

    @pytest.mark.parametrize("ior", [0.5, 0.0, -1.5, float("inf")])
    def test_invalid_ior_rejected(self, ior):
        """Test that refractive indices below 1 or non-finite are rejected."""
        from buzz.errors import ConfigurationError
        from buzz.materials.dielectric import add_dielectric_material

        with pytest.raises(ConfigurationError):
            add_dielectric_material(ior)

    def test_spec_default_is_glass(self):
        """Test the Dielectric spec default and validation."""
        from buzz.errors import ConfigurationError
        from buzz.scene.spec import Dielectric

        assert Dielectric().refractive_index == 1.5
        with pytest.raises(ConfigurationError):
            Dielectric(0.9)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
