"""Tests for the path tracing integrator.

This module tests the core path tracing functionality including:
- Render target setup and management
- Argument validation before anything is rendered
- End-to-end shading of a lit sphere against the sky
- Emission, energy bounds and monotonicity in the path depth
- Direct lighting switches and soft shadow noise
- Determinism of seeded renders and independence from tiling
- Gamma encoding of the output

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import numpy as np
import pytest


def _lit_sphere_scene():
    from buzz.api import Lambertian, PointLight, SphereSpec, build_scene

    return build_scene(
        [SphereSpec((0, 0, -1), 1.0, Lambertian((0.8, 0.8, 0.8)))],
        lights=[PointLight((0, 5, -1), (50.0, 50.0, 50.0))],
    )


def _front_camera():
    from buzz.api import Camera

    return Camera(lookfrom=(0, 0, 3), lookat=(0, 0, -1))


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_render_target_clears_samples(self):
        """Test that setup_render_target sets the size and clears previous data."""
        from buzz.core.integrator import get_image_dimensions, get_total_samples, render, setup_render_target

        render(_lit_sphere_scene(), _front_camera(), 8, 8, samples_per_pixel=2, max_depth=1)
        assert get_total_samples() == 2

        setup_render_target(32, 16)
        assert get_image_dimensions() == (32, 16)
        assert get_total_samples() == 0

    @pytest.mark.parametrize("size", [(0, 8), (8, -1), (4096, 8), (8, 2049), (8.0, 8), (True, 8)])
    def test_invalid_image_size(self, size):
        """Test that bad dimensions raise ConfigurationError."""
        from buzz.core.integrator import setup_render_target
        from buzz.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            setup_render_target(*size)

    def test_rows_per_tile(self):
        """Test that tiles never exceed the CSG scratch slots."""
        from buzz.core.integrator import rows_per_tile
        from buzz.csg.intervals import MAX_TILE_PIXELS

        assert rows_per_tile(64) == MAX_TILE_PIXELS // 64
        assert rows_per_tile(2048) * 2048 <= MAX_TILE_PIXELS
        assert rows_per_tile(MAX_TILE_PIXELS * 2) == 1


class TestRenderArguments:
    """Tests for argument validation in render()."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"samples_per_pixel": 0},
            {"samples_per_pixel": 1.5},
            {"samples_per_pixel": True},
            {"max_depth": 0},
            {"width": 0},
            {"height": 5000},
            {"config": {"seed": 1}},
        ],
    )
    def test_invalid_arguments(self, kwargs):
        """Test that invalid arguments raise ConfigurationError."""
        from buzz.api import ConfigurationError, render

        args = {"width": 8, "height": 8, "samples_per_pixel": 1, "max_depth": 2, "config": None}
        args.update(kwargs)
        with pytest.raises(ConfigurationError):
            render(_lit_sphere_scene(), _front_camera(), **args)

    def test_scene_and_camera_types_checked(self):
        """Test that raw specs are not accepted in place of a built scene."""
        from buzz.api import ConfigurationError, render

        with pytest.raises(ConfigurationError):
            render([], _front_camera(), 8, 8)
        with pytest.raises(ConfigurationError):
            render(_lit_sphere_scene(), (0, 0, 3), 8, 8)


class TestEndToEnd:
    """Whole renders of small scenes."""

    def test_lit_sphere_against_sky(self):
        """Test image layout, light direction and the sky gradient."""
        from buzz.api import render

        image = render(_lit_sphere_scene(), _front_camera(), 32, 32, samples_per_pixel=2, max_depth=1)
        assert image.shape == (32, 32, 3)
        assert image.dtype == np.float32
        assert image.min() >= 0.0 and image.max() <= 1.0

        # Row 0 is the top: the upper half of the sphere faces the light
        top_of_sphere = image[11, 16]
        bottom_of_sphere = image[21, 16]
        assert top_of_sphere.mean() > 0.1
        assert bottom_of_sphere.mean() < 0.02

        # Sky: whiter towards the horizon below, bluer above
        assert image[0, 0, 0] < image[31, 0, 0]
        assert image[0, 0, 2] == pytest.approx(1.0, abs=1e-5)

    def test_emission_seen_directly(self):
        """Test that an emissive surface filling the view is reproduced exactly."""
        from buzz.api import Camera, Emissive, Environment, SphereSpec, build_scene, render

        scene = build_scene(
            [SphereSpec((0, 0, 0), 2.0, Emissive((0.3, 0.6, 0.9)))],
            environment=Environment.color((0.0, 0.0, 0.0)),
        )
        camera = Camera(lookfrom=(0, 0, 3), lookat=(0, 0, 0), vfov=30.0)
        image = render(scene, camera, 8, 8, samples_per_pixel=2, max_depth=1)
        np.testing.assert_allclose(image.reshape(-1, 3), np.tile([0.3, 0.6, 0.9], (64, 1)), atol=1e-6)

    def test_direct_lighting_switch(self):
        """Test that a scene lit only by a light goes dark without direct lighting."""
        from buzz.api import Camera, Environment, Lambertian, PlaneSpec, PointLight, RenderConfig, build_scene, render

        scene = build_scene(
            [PlaneSpec((0, 0, 0), (0, 1, 0), Lambertian((0.5, 0.5, 0.5)))],
            lights=[PointLight((0, 3, 0), (9.0, 9.0, 9.0))],
            environment=Environment.color((0.0, 0.0, 0.0)),
        )
        camera = Camera(lookfrom=(0, 6, 0), lookat=(0, 0, 0), vup=(0, 0, -1))
        lit = render(scene, camera, 8, 8, max_depth=1, config=RenderConfig(direct_lighting=True))
        dark = render(scene, camera, 8, 8, max_depth=1, config=RenderConfig(direct_lighting=False))
        assert lit.mean() > 0.03
        assert np.all(dark == 0.0)


class TestEnergy:
    """Tests for bounded, monotone light transport in a closed room."""

    def _closed_room(self):
        from buzz.api import Camera, CubeSpec, Emissive, Environment, Lambertian, SphereSpec, build_scene

        scene = build_scene(
            [
                CubeSpec.centered((0, 0, 0), 4.0, Lambertian((0.5, 0.5, 0.5))),
                SphereSpec((0, 0, -1), 0.5, Emissive((0.5, 0.5, 0.5))),
            ],
            environment=Environment.color((0.0, 0.0, 0.0)),
        )
        camera = Camera(lookfrom=(0, 0, 1.5), lookat=(0, 0, -1), vfov=90.0)
        return scene, camera

    def test_radiance_bounded_by_emission(self):
        """Test that albedo < 1 walls never exceed the brightest emitter."""
        from buzz.api import RenderConfig, render

        scene, camera = self._closed_room()
        config = RenderConfig(russian_roulette_depth=0, seed=3)
        image = render(scene, camera, 12, 12, samples_per_pixel=4, max_depth=6, config=config)
        assert image.min() >= 0.0
        assert image.max() <= 0.5 + 1e-5
        assert np.all(np.isfinite(image))

    def test_deeper_paths_only_add_light(self):
        """Test that raising max_depth never darkens a pixel for the same seed."""
        from buzz.api import RenderConfig, render

        scene, camera = self._closed_room()
        config = RenderConfig(russian_roulette_depth=0, seed=5)
        images = [
            render(scene, camera, 12, 12, samples_per_pixel=2, max_depth=depth, config=config) for depth in (1, 2, 4)
        ]
        for shallow, deep in zip(images, images[1:]):
            assert np.all(deep >= shallow - 1e-6)
        assert images[-1].sum() > images[0].sum()

    def test_russian_roulette_keeps_image_valid(self):
        """Test that early termination produces finite, non-negative pixels."""
        from buzz.api import RenderConfig, render

        scene, camera = self._closed_room()
        image = render(
            scene, camera, 12, 12, samples_per_pixel=4, max_depth=8, config=RenderConfig(russian_roulette_depth=1)
        )
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0


class TestSoftShadows:
    """Tests for shadow sampling of area-like lights."""

    def test_more_shadow_samples_reduce_noise(self):
        """Test that per-pixel variance across seeds drops with more shadow rays."""
        from buzz.api import (
            Camera,
            Environment,
            Lambertian,
            PlaneSpec,
            PointLight,
            RenderConfig,
            SphereSpec,
            build_scene,
            render,
        )

        matte = Lambertian((0.5, 0.5, 0.5))
        scene = build_scene(
            [PlaneSpec((0, 0, 0), (0, 1, 0), matte), SphereSpec((0, 1, 0), 0.5, matte)],
            lights=[PointLight((0, 3, 0), (9.0, 9.0, 9.0), radius=1.0)],
            environment=Environment.color((0.0, 0.0, 0.0)),
        )
        camera = Camera(lookfrom=(0, 6, 0), lookat=(0, 0, 0), vup=(0, 0, -1))

        def variance(shadow_samples):
            images = [
                render(
                    scene,
                    camera,
                    16,
                    16,
                    samples_per_pixel=1,
                    max_depth=1,
                    config=RenderConfig(shadow_samples=shadow_samples, seed=seed),
                )
                for seed in range(8)
            ]
            return np.var(np.stack(images), axis=0).mean()

        assert variance(16) < variance(1)


class TestDeterminism:
    """Tests for seeded, reproducible renders."""

    def test_same_seed_same_image(self):
        """Test that two renders with one seed are bit-identical."""
        from buzz.api import RenderConfig, render

        config = RenderConfig(seed=11)
        first = render(_lit_sphere_scene(), _front_camera(), 8, 8, samples_per_pixel=2, max_depth=3, config=config)
        second = render(_lit_sphere_scene(), _front_camera(), 8, 8, samples_per_pixel=2, max_depth=3, config=config)
        assert np.array_equal(first, second)

    def test_different_seed_different_image(self):
        """Test that the seed changes the sample streams."""
        from buzz.api import RenderConfig, render

        first = render(_lit_sphere_scene(), _front_camera(), 8, 8, max_depth=3, config=RenderConfig(seed=1))
        second = render(_lit_sphere_scene(), _front_camera(), 8, 8, max_depth=3, config=RenderConfig(seed=2))
        assert not np.array_equal(first, second)

    def test_tiling_does_not_change_the_image(self, monkeypatch):
        """Test that rendering one row per launch gives the same pixels."""
        from buzz.api import render
        from buzz.core import integrator

        whole = render(_lit_sphere_scene(), _front_camera(), 16, 12, samples_per_pixel=2, max_depth=2)
        monkeypatch.setattr(integrator, "rows_per_tile", lambda width: 1)
        banded = render(_lit_sphere_scene(), _front_camera(), 16, 12, samples_per_pixel=2, max_depth=2)
        assert np.array_equal(whole, banded)


class TestGammaEncoding:
    """Tests for to_srgb8."""

    def test_known_values(self):
        """Test black, white and mid-grey with the default gamma."""
        from buzz.api import to_srgb8

        encoded = to_srgb8(np.array([0.0, 1.0, 0.5, 2.0, -1.0]))
        assert encoded.dtype == np.uint8
        assert encoded.tolist() == [0, 255, 186, 255, 0]

    def test_linear_gamma(self):
        """Test that gamma 1 is a plain rescale."""
        from buzz.api import to_srgb8

        assert to_srgb8(np.array([0.2]), gamma=1.0).tolist() == [51]

    @pytest.mark.parametrize("gamma", [0.0, -2.2])
    def test_invalid_gamma(self, gamma):
        """Test that non-positive gamma is rejected."""
        from buzz.api import ConfigurationError, to_srgb8

        with pytest.raises(ConfigurationError):
            to_srgb8(np.zeros(3), gamma=gamma)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
