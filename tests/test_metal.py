"""Unit tests for the metal material module.

Tests cover:
- Perfect mirror reflection at various angles
- Fuzzy reflection bounded by the fuzziness radius
- Absorption of rays scattered below the surface
- Material registry and parameter validation
"""

import math

import pytest
import taichi as ti


class TestPerfectReflection:
    """Tests for fuzziness = 0."""

    def test_perfect_reflection_normal_incidence(self):
        """Test a ray hitting straight on bounces straight back."""
        from buzz.core.rng import init_seed
        from buzz.materials.metal import scatter_metal, vec3

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, _, s, _ = scatter_metal(
                vec3(0.9, 0.9, 0.9), 0.0, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), init_seed(0, 0, 0)
            )
            direction[None] = d
            scattered[None] = s

        test_kernel()
        d = direction[None]
        assert scattered[None] == 1
        assert abs(d[0]) < 1e-6
        assert abs(d[1] - 1.0) < 1e-6
        assert abs(d[2]) < 1e-6

    def test_perfect_reflection_45_degrees(self):
        """Test reflection mirrors the tangential component."""
        from buzz.core.rng import init_seed
        from buzz.materials.metal import scatter_metal, vec3

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(1.0, -1.0, 0.0))
            d, _, _, _ = scatter_metal(vec3(1.0, 1.0, 1.0), 0.0, incident, vec3(0.0, 1.0, 0.0), init_seed(0, 0, 0))
            direction[None] = d

        test_kernel()
        d = direction[None]
        expected = 1.0 / math.sqrt(2.0)
        assert abs(d[0] - expected) < 1e-5
        assert abs(d[1] - expected) < 1e-5


class TestFuzzyReflection:
    """Tests for fuzziness > 0."""

    def test_fuzzy_reflection_bounded_by_fuzziness(self):
        """Test perturbed directions stay within the fuzz sphere around the mirror direction."""
        from buzz.core.rng import init_seed
        from buzz.materials.metal import scatter_metal, vec3

        min_cos = ti.field(dtype=ti.f32, shape=())
        min_cos[None] = 10.0
        fuzz = 0.3

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for i in range(1000):
                d, _, s, _ = scatter_metal(
                    vec3(1.0, 1.0, 1.0), fuzz, vec3(0.0, -1.0, 0.0), normal, init_seed(1, i, 0)
                )
                if s == 1:
                    ti.atomic_min(min_cos[None], ti.math.dot(d, normal))

        test_kernel()
        # Angle from the mirror direction is at most asin(fuzz)
        assert min_cos[None] >= math.cos(math.asin(fuzz)) - 1e-4

    def test_fuzzy_directions_vary(self):
        """Test that fuzziness spreads the reflected directions."""
        from buzz.core.rng import init_seed
        from buzz.materials.metal import scatter_metal, vec3

        min_x = ti.field(dtype=ti.f32, shape=())
        max_x = ti.field(dtype=ti.f32, shape=())
        min_x[None] = 10.0
        max_x[None] = -10.0

        @ti.kernel
        def test_kernel():
            for i in range(200):
                d, _, _, _ = scatter_metal(
                    vec3(1.0, 1.0, 1.0), 0.5, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), init_seed(2, i, 0)
                )
                ti.atomic_min(min_x[None], d.x)
                ti.atomic_max(max_x[None], d.x)

        test_kernel()
        assert max_x[None] - min_x[None] > 0.1

    def test_grazing_fuzzy_reflection_may_absorb(self):
        """Test that fuzz pushing the ray below the surface absorbs it."""
        from buzz.core.rng import init_seed
        from buzz.materials.metal import scatter_metal, vec3

        absorbed = ti.field(dtype=ti.i32, shape=())
        absorbed[None] = 0

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(1.0, -0.02, 0.0))
            for i in range(500):
                _, _, s, _ = scatter_metal(vec3(1.0, 1.0, 1.0), 1.0, incident, vec3(0.0, 1.0, 0.0), init_seed(3, i, 0))
                if s == 0:
                    absorbed[None] += 1

        test_kernel()
        assert absorbed[None] > 0


class TestMaterialRegistry:
    """Tests for the metal material registry."""

    def test_add_and_get_material(self):
        """Test storing albedo and fuzziness."""
        from buzz.materials.metal import (
            add_metal_material,
            get_metal_albedo,
            get_metal_fuzziness,
            get_metal_material_count,
        )

        idx = add_metal_material((0.7, 0.6, 0.5), 0.25)
        assert get_metal_material_count() == 1

        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        fuzz = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            albedo[None] = get_metal_albedo(mat_idx)
            fuzz[None] = get_metal_fuzziness(mat_idx)

        test_kernel(idx)
        assert abs(albedo[None][0] - 0.7) < 1e-6
        assert abs(fuzz[None] - 0.25) < 1e-6

    @pytest.mark.parametrize("fuzziness", [-0.1, 1.5])
    def test_fuzziness_validation(self, fuzziness):
        """Test that fuzziness outside [0, 1] is rejected."""
        from buzz.errors import ConfigurationError
        from buzz.materials.metal import add_metal_material

        with pytest.raises(ConfigurationError):
            add_metal_material((0.5, 0.5, 0.5), fuzziness)

    def test_spec_validation(self):
        """Test that the Metal spec validates like the registry."""
        from buzz.errors import ConfigurationError
        from buzz.scene.spec import Metal

        assert Metal((0.5, 0.5, 0.5)).fuzziness == 0.0
        with pytest.raises(ConfigurationError):
            Metal((1.2, 0.5, 0.5))
        with pytest.raises(ConfigurationError):
            Metal((0.5, 0.5, 0.5), fuzziness=2.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
