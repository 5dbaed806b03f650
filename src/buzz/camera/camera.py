"""Thin-lens camera model for primary ray generation.

The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios (defaulting to the image's)
- Jittered sampling for anti-aliasing
- Depth of field through a circular aperture and a focus distance

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

With ``aperture = 0`` the camera is a pinhole and every ray starts at
``lookfrom``. Otherwise ray origins are spread over a lens disk of radius
``aperture / 2`` and all rays through a pixel meet on the focus plane.

Example:
    >>> camera = Camera(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ... )
    >>> setup_camera(camera, aspect_ratio=16.0 / 9.0)
    >>> @ti.kernel
    ... def render():
    ...     ray, seed = get_ray(0.5, 0.5, init_seed(0, 0, 0))
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from buzz.core.ray import make_ray, random_in_unit_disk, vec3
from buzz.core.rng import rand_f32
from buzz.errors import ConfigurationError
from buzz.validation import as_finite, as_vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a thin-lens (perspective) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the viewport. None uses the
            aspect ratio of the rendered image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_dist: Distance to the plane of perfect focus. None focuses on
            ``lookat``.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 60.0
    aspect_ratio: float | None = None
    aperture: float = 0.0
    focus_dist: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "lookfrom", as_vec3(self.lookfrom, "Camera lookfrom"))
        object.__setattr__(self, "lookat", as_vec3(self.lookat, "Camera lookat"))
        object.__setattr__(self, "vup", as_vec3(self.vup, "Camera vup"))
        vfov = as_finite(self.vfov, "Camera vfov")
        if not 0.0 < vfov < 180.0:
            raise ConfigurationError(f"Camera vfov = {vfov} must be in (0, 180) degrees")
        object.__setattr__(self, "vfov", vfov)
        if self.aspect_ratio is not None:
            aspect_ratio = as_finite(self.aspect_ratio, "Camera aspect_ratio")
            if aspect_ratio <= 0.0:
                raise ConfigurationError(f"Camera aspect_ratio = {aspect_ratio} must be positive")
            object.__setattr__(self, "aspect_ratio", aspect_ratio)
        aperture = as_finite(self.aperture, "Camera aperture")
        if aperture < 0.0:
            raise ConfigurationError(f"Camera aperture = {aperture} is negative")
        object.__setattr__(self, "aperture", aperture)
        if self.focus_dist is not None:
            focus_dist = as_finite(self.focus_dist, "Camera focus_dist")
            if focus_dist <= 0.0:
                raise ConfigurationError(f"Camera focus_dist = {focus_dist} must be positive")
            object.__setattr__(self, "focus_dist", focus_dist)

        view = np.subtract(self.lookfrom, self.lookat)
        if np.linalg.norm(view) == 0.0:
            raise ConfigurationError("Camera lookfrom and lookat coincide")
        if np.linalg.norm(np.cross(self.vup, view)) == 0.0:
            raise ConfigurationError("Camera vup is parallel to the view direction")

    @property
    def lens_radius(self) -> float:
        return self.aperture / 2.0

    @property
    def effective_focus_dist(self) -> float:
        """Focus distance, defaulting to |lookat - lookfrom|."""
        if self.focus_dist is not None:
            return self.focus_dist
        return float(np.linalg.norm(np.subtract(self.lookat, self.lookfrom)))

    def basis(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Orthonormal camera basis (u, v, w): right, up and backward."""
        w = np.subtract(self.lookfrom, self.lookat).astype(np.float64)
        w /= np.linalg.norm(w)
        u = np.cross(self.vup, w)
        u /= np.linalg.norm(u)
        v = np.cross(w, u)
        return u, v, w


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport on the focus plane
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport
_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per render)
# =============================================================================


def setup_camera(camera: Camera, aspect_ratio: float | None = None) -> None:
    """Initialize camera state from configuration.

    The viewport is placed on the focus plane so that lens-offset rays
    converge there.

    Args:
        camera: Camera configuration.
        aspect_ratio: Aspect ratio used when the camera does not set one,
            normally width / height of the image being rendered.

    Raises:
        ConfigurationError: If no aspect ratio is available.
    """
    ratio = camera.aspect_ratio if camera.aspect_ratio is not None else aspect_ratio
    if ratio is None or ratio <= 0.0:
        raise ConfigurationError("Camera has no aspect ratio; pass the image aspect ratio")

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    focus = camera.effective_focus_dist
    viewport_height = 2.0 * h * focus
    viewport_width = ratio * viewport_height

    u, v, w = camera.basis()
    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    horizontal = viewport_width * u
    vertical = viewport_height * v
    lower_left = lookfrom - focus * w - horizontal / 2.0 - vertical / 2.0

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.lens_radius


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, seed: ti.u32):
    """Generate a ray through normalized image coordinates (s, t).

    Coordinates run from 0 to 1: s from the left edge to the right edge,
    t from the bottom edge to the top edge.

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].
        seed: Current RNG state (used only when the lens has a radius).

    Returns:
        A tuple of (ray, next_seed). The ray direction is normalized.
    """
    origin = _camera_origin[None]
    lens_radius = _lens_radius[None]
    if lens_radius > 0.0:
        disk, seed = random_in_unit_disk(seed)
        origin += lens_radius * (disk.x * _camera_u[None] + disk.y * _camera_v[None])

    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    return make_ray(origin, tm.normalize(target - origin)), seed


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, seed: ti.u32):
    """Generate a ray through a random point of a pixel.

    When accumulated over multiple samples, the jitter anti-aliases edges.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        seed: Current RNG state.

    Returns:
        A tuple of (ray, next_seed).
    """
    jitter_u, seed = rand_f32(seed)
    jitter_v, seed = rand_f32(seed)
    s = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + jitter_v) / ti.cast(height, ti.f32)
    return get_ray(s, t, seed)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera position (the lens center) in world space."""
    return _camera_origin[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, field in fields.items():
        value = field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
