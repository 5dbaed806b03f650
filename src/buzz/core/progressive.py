"""Progressive renderer for iterative sample accumulation.

This module provides a wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one call)
- Progress callbacks for UI updates
- Easy reset and re-render functionality

Every sample draws from its own random stream (selected by its index), so
rendering 4 + 4 samples progressively gives the same image as rendering 8
at once.

Example:
    >>> renderer = ProgressiveRenderer(scene, camera, 256, 256, max_depth=8)
    >>> for current, target in renderer.render_progressive(64, batch_size=16):
    ...     preview = renderer.get_image()
"""

from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from buzz.camera.camera import Camera, setup_camera
from buzz.config import RenderConfig
from buzz.core.integrator import (
    clear_render_target,
    get_normalized_image_numpy,
    get_total_samples,
    render_samples,
    setup_render_target,
    to_srgb8,
    validate_image_size,
    validate_render_args,
)
from buzz.errors import ConfigurationError
from buzz.scene.builder import Scene
from buzz.scene.upload import upload_scene

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer uploads its scene and camera on creation and accumulates
    into the global integrator buffers, so only one renderer (or render()
    call) can be active at a time; a plain render() in between resets the
    accumulation.

    Attributes:
        scene: The scene being rendered.
        camera: The camera.
        max_depth: Maximum number of surface interactions per path.
        config: Integrator settings.
    """

    def __init__(
        self,
        scene: Scene,
        camera: Camera,
        width: int,
        height: int,
        max_depth: int = 8,
        config: RenderConfig | None = None,
    ) -> None:
        """Initialize the progressive renderer.

        Raises:
            ConfigurationError: If any argument is invalid.
        """
        validate_image_size(width, height)
        self.config = validate_render_args(scene, camera, 1, max_depth, config)
        self.scene = scene
        self.camera = camera
        self.max_depth = max_depth
        self._width = width
        self._height = height

        upload_scene(scene)
        setup_camera(camera, aspect_ratio=width / height)
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulated samples without changing the setup."""
        clear_render_target()

    def _render_batch(self, batch: int) -> None:
        render_samples(self.sample_count, batch, self.max_depth, self.config)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ConfigurationError: If batch_size is not positive.
        """
        if batch_size < 1:
            raise ConfigurationError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples
        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self._render_batch(batch)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_image(self) -> npt.NDArray[np.float32]:
        """Get the linear image, shape (height, width, 3), clamped to [0, 1]."""
        return get_normalized_image_numpy()

    def get_image_uint8(self, gamma: float = 2.2) -> npt.NDArray[np.uint8]:
        """Get the image gamma-encoded to 8 bits per channel."""
        return to_srgb8(self.get_image(), gamma=gamma)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
