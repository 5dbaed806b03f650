"""Camera module for primary ray generation.

Components:
    camera: Thin-lens camera with look-at setup, jitter and depth of field

Cameras are described by a frozen dataclass and copied into Taichi fields by
``setup_camera`` before a render. Ray generation takes and returns the RNG
state like every other stochastic Taichi function.
"""

from .camera import (
    Camera,
    get_camera_info,
    get_camera_origin,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_origin",
    "get_camera_info",
]
