"""Unit tests for the thin-lens camera module.

Tests cover:
- Camera setup and orthonormal basis computation
- Ray generation for center and corner coordinates
- Aspect ratio taken from the image when the camera has none
- Jittered sampling stays inside the pixel
- Depth of field: lens-offset rays meet on the focus plane
- Parameter validation
"""

import math

import numpy as np
import pytest
import taichi as ti


def _trace_uv(s, t, seed_index=0):
    """Origin and direction of the camera ray through (s, t)."""
    from buzz.camera import get_ray
    from buzz.core.rng import init_seed

    origin = ti.Vector.field(3, dtype=ti.f32, shape=())
    direction = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        ray, _ = get_ray(s, t, init_seed(0, seed_index, 0))
        origin[None] = ray.origin
        direction[None] = ray.direction

    test_kernel()
    return origin[None].to_numpy(), direction[None].to_numpy()


class TestCameraSetup:
    """Tests for camera setup and basis computation."""

    def test_orthonormal_basis_default_orientation(self):
        """Test that u, v, w form a right-handed orthonormal basis."""
        from buzz.camera import Camera, get_camera_info, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 3.0), lookat=(0.0, 0.0, 0.0), vfov=90.0), aspect_ratio=1.0)
        info = get_camera_info()
        u, v, w = (np.array(info[name]) for name in ("u", "v", "w"))

        assert abs(np.dot(u, v)) < 1e-6
        assert abs(np.dot(u, w)) < 1e-6
        assert abs(np.dot(v, w)) < 1e-6
        np.testing.assert_allclose(u, [1.0, 0.0, 0.0], atol=1e-6)
        np.testing.assert_allclose(v, [0.0, 1.0, 0.0], atol=1e-6)
        np.testing.assert_allclose(w, [0.0, 0.0, 1.0], atol=1e-6)
        np.testing.assert_allclose(np.cross(u, v), w, atol=1e-6)

    def test_basis_matches_python_side(self):
        """Test that the uploaded basis equals Camera.basis for an oblique view."""
        from buzz.camera import Camera, get_camera_info, setup_camera

        camera = Camera(lookfrom=(3.0, 2.0, 1.0), lookat=(-1.0, 0.5, -2.0), vup=(0.0, 1.0, 0.0), vfov=40.0)
        setup_camera(camera, aspect_ratio=1.5)
        info = get_camera_info()
        for name, expected in zip(("u", "v", "w"), camera.basis()):
            np.testing.assert_allclose(info[name], expected, atol=1e-6)

    def test_viewport_size_from_fov(self):
        """Test the viewport spans 2 tan(fov / 2) * focus_dist vertically."""
        from buzz.camera import Camera, get_camera_info, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 3.0), lookat=(0.0, 0.0, 0.0), vfov=60.0), aspect_ratio=2.0)
        info = get_camera_info()
        height = 2.0 * math.tan(math.radians(30.0)) * 3.0
        assert abs(np.linalg.norm(info["vertical"]) - height) < 1e-5
        assert abs(np.linalg.norm(info["horizontal"]) - 2.0 * height) < 1e-5

    def test_camera_aspect_ratio_overrides_image(self):
        """Test that an explicit camera aspect ratio wins over the image's."""
        from buzz.camera import Camera, get_camera_info, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 1.0), lookat=(0.0, 0.0, 0.0), aspect_ratio=1.0), aspect_ratio=3.0)
        info = get_camera_info()
        assert abs(np.linalg.norm(info["horizontal"]) - np.linalg.norm(info["vertical"])) < 1e-5

    def test_missing_aspect_ratio_rejected(self):
        """Test that some aspect ratio is required."""
        from buzz.camera import Camera, setup_camera
        from buzz.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            setup_camera(Camera(lookfrom=(0.0, 0.0, 1.0), lookat=(0.0, 0.0, 0.0)))


class TestRayGeneration:
    """Tests for primary rays."""

    def test_center_ray_points_at_lookat(self):
        """Test that (0.5, 0.5) looks straight at lookat."""
        from buzz.camera import Camera, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 3.0), lookat=(0.0, 0.0, 0.0), vfov=90.0), aspect_ratio=1.0)
        origin, direction = _trace_uv(0.5, 0.5)
        np.testing.assert_allclose(origin, [0.0, 0.0, 3.0], atol=1e-6)
        np.testing.assert_allclose(direction, [0.0, 0.0, -1.0], atol=1e-6)

    def test_corner_ray(self):
        """Test that (0, 0) goes through the lower-left corner of the viewport."""
        from buzz.camera import Camera, setup_camera

        setup_camera(Camera(lookfrom=(0.0, 0.0, 3.0), lookat=(0.0, 0.0, 0.0), vfov=90.0), aspect_ratio=1.0)
        _, direction = _trace_uv(0.0, 0.0)
        expected = np.array([-1.0, -1.0, -1.0]) / math.sqrt(3.0)
        np.testing.assert_allclose(direction, expected, atol=1e-5)

    def test_jittered_ray_stays_in_pixel(self):
        """Test jittered rays for pixel (0, 0) of a 4x4 image land in its footprint."""
        from buzz.camera import Camera, get_ray_jittered, setup_camera
        from buzz.core.rng import init_seed

        # Viewport 6 x 6 on the plane z = 0; pixel (0, 0) covers [-3, -1.5]^2
        setup_camera(Camera(lookfrom=(0.0, 0.0, 3.0), lookat=(0.0, 0.0, 0.0), vfov=90.0), aspect_ratio=1.0)
        # Bounds as (min x, min y, max x, max y)
        bounds = ti.field(dtype=ti.f32, shape=4)
        bounds.from_numpy(np.array([10.0, 10.0, -10.0, -10.0], dtype=np.float32))

        @ti.kernel
        def test_kernel():
            for k in range(256):
                ray, _ = get_ray_jittered(0, 0, 4, 4, init_seed(0, 0, k))
                hit = ray.origin + ray.direction * (-ray.origin.z / ray.direction.z)
                ti.atomic_min(bounds[0], hit.x)
                ti.atomic_min(bounds[1], hit.y)
                ti.atomic_max(bounds[2], hit.x)
                ti.atomic_max(bounds[3], hit.y)

        test_kernel()
        min_x, min_y, max_x, max_y = bounds.to_numpy()
        assert min_x >= -3.0 - 1e-4 and max_x <= -1.5 + 1e-4
        assert min_y >= -3.0 - 1e-4 and max_y <= -1.5 + 1e-4
        # Samples actually spread over the pixel
        assert max_x - min_x > 1.0


class TestDepthOfField:
    """Tests for the thin-lens aperture."""

    def test_lens_rays_converge_on_focus_plane(self):
        """Test that rays through the image centre all pass through the focus point."""
        from buzz.camera import Camera, setup_camera

        camera = Camera(lookfrom=(0.0, 0.0, 4.0), lookat=(0.0, 0.0, 0.0), aperture=0.5)
        assert camera.lens_radius == 0.25
        assert camera.effective_focus_dist == pytest.approx(4.0)
        setup_camera(camera, aspect_ratio=1.0)

        spread = 0.0
        for k in range(16):
            origin, direction = _trace_uv(0.5, 0.5, seed_index=k)
            assert np.linalg.norm(origin - np.array([0.0, 0.0, 4.0])) <= 0.25 + 1e-5
            spread = max(spread, np.linalg.norm(origin[:2]))
            focus_point = origin + direction * ((0.0 - origin[2]) / direction[2])
            np.testing.assert_allclose(focus_point, [0.0, 0.0, 0.0], atol=1e-4)
        assert spread > 0.0

    def test_explicit_focus_distance(self):
        """Test that focus_dist moves the plane of convergence."""
        from buzz.camera import Camera, setup_camera

        setup_camera(
            Camera(lookfrom=(0.0, 0.0, 4.0), lookat=(0.0, 0.0, 0.0), aperture=1.0, focus_dist=2.0),
            aspect_ratio=1.0,
        )
        for k in range(8):
            origin, direction = _trace_uv(0.5, 0.5, seed_index=k)
            focus_point = origin + direction * ((2.0 - origin[2]) / direction[2])
            np.testing.assert_allclose(focus_point, [0.0, 0.0, 2.0], atol=1e-4)


class TestCameraValidation:
    """Tests for rejected camera parameters."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"aperture": -0.1},
            {"focus_dist": 0.0},
            {"aspect_ratio": -1.0},
            {"lookat": (0.0, 0.0, 3.0)},
            {"vup": (0.0, 0.0, 2.0)},
            {"lookfrom": (0.0, float("inf"), 3.0)},
        ],
    )
    def test_invalid_parameters(self, kwargs):
        """Test that invalid camera parameters raise ConfigurationError."""
        from buzz.camera import Camera
        from buzz.errors import ConfigurationError

        params = {"lookfrom": (0.0, 0.0, 3.0), "lookat": (0.0, 0.0, 0.0)}
        params.update(kwargs)
        with pytest.raises(ConfigurationError):
            Camera(**params)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
