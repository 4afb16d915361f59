"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one call)
- Progress callbacks and a generator interface for progress reporting
- Easy reset and re-render functionality

Callers that want to stop a render early do so between batches; a batch
itself always runs to completion.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.core.progressive import ProgressiveRenderer
    >>> from weekend_tracer.scene.presets import build_scene
    >>> from weekend_tracer.scene.manager import SceneManager
    >>> from weekend_tracer.camera.thin_lens import setup_camera
    >>>
    >>> camera = build_scene("test", SceneManager(), aspect_ratio=16 / 9)
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100, batch_size=10)
    >>> renderer.save_image("image.ppm")
"""

import logging
import os
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from weekend_tracer.core.integrator import (
    clear_render_target,
    get_average_image_numpy,
    get_sample_counts_numpy,
    get_sum_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from weekend_tracer.preview.export import encode_colors, save_image

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer maintains its own width, height and depth and delegates
    to the global integrator buffers (which are Taichi fields).

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum bounces per path.
    """

    def __init__(self, width: int, height: int, max_depth: int = 50) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (2 to 2048).
            height: Image height in pixels (2 to 2048).
            max_depth: Maximum bounces per path.

        Raises:
            ValueError: If dimensions are out of range or max_depth is negative.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self._width = width
        self._height = height
        self._max_depth = max_depth
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
    def max_depth(self) -> int:
        """Get the maximum bounces per path."""
        return self._max_depth

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulated samples without changing the dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Raises:
            ValueError: If dimensions are out of range.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Stopping iteration early leaves the samples rendered so far in the
        buffer, so the partial image can still be read or saved.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size < 1.

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"Progress: {current}/{target} samples")
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self._max_depth)
            remaining -= batch
            yield (self.sample_count, target_samples)

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
        logger.debug("Render finished at %d samples per pixel", self.sample_count)

    def get_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the linear per-pixel average as a (height, width, 3) array."""
        return get_average_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma-2 encoded image as a (height, width, 3) uint8 array.

        Raises:
            RuntimeError: If no samples have been rendered.
        """
        if self.sample_count == 0:
            raise RuntimeError("No samples rendered yet. Call render() first.")
        counts = get_sample_counts_numpy()[..., np.newaxis]
        return encode_colors(get_sum_image_numpy(), counts)

    def save_image(self, filepath: str | os.PathLike[str]) -> None:
        """Encode the image and save it; ".ppm" writes ASCII P3, other extensions use Pillow."""
        save_image(self.get_image_uint8(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
