"""Image encoding and export utilities for rendered images.

This module turns accumulated sample sums into 8-bit pixels and writes
them to disk.

Encoding applies gamma 2 correction to the per-pixel average and maps
[0, 1) onto the 256 byte values:

    byte = floor(256 * clamp(sqrt(sum / samples), 0, 0.999))

Supported formats:
    - PPM (ASCII P3, written directly)
    - PNG and every other raster format Pillow can write

Example:
    >>> from weekend_tracer.core.integrator import get_sum_image_numpy, get_total_samples
    >>> from weekend_tracer.preview.export import encode_colors, save_image
    >>>
    >>> pixels = encode_colors(get_sum_image_numpy(), get_total_samples())
    >>> save_image(pixels, "image.ppm")
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Upper clamp before scaling, so a fully saturated channel encodes to 255
MAX_INTENSITY = 0.999


def encode_colors(
    color_sum: npt.ArrayLike,
    samples: int | npt.ArrayLike,
) -> npt.NDArray[np.uint8]:
    """Encode summed sample colors into 8-bit pixel values.

    Divides each sum by the sample count, applies gamma 2 (square root),
    clamps to [0, 0.999] and scales by 256. Channels that are NaN, or
    negative enough to have no square root, encode to 0.

    Args:
        color_sum: Array of per-pixel color sums with a trailing RGB axis.
        samples: Samples per pixel, either a scalar or an array broadcastable
            against color_sum.

    Returns:
        uint8 array with the same shape as color_sum.

    Raises:
        ValueError: If any sample count is not positive.
    """
    sums = np.asarray(color_sum, dtype=np.float64)
    counts = np.asarray(samples, dtype=np.float64)
    if np.any(counts <= 0):
        raise ValueError("Sample counts must be positive")

    with np.errstate(invalid="ignore", divide="ignore"):
        corrected = np.sqrt(sums / counts)
    corrected = np.where(np.isnan(corrected), 0.0, corrected)
    clamped = np.clip(corrected, 0.0, MAX_INTENSITY)
    return np.floor(256.0 * clamped).astype(np.uint8)


def _check_rgb(image: npt.NDArray[np.uint8]) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")


def write_ppm(image: npt.NDArray[np.uint8], filepath: str | os.PathLike[str]) -> None:
    """Write an 8-bit RGB image as an ASCII PPM (P3) file.

    The header is "P3", the width and height, and the maximum value 255,
    followed by one "r g b" triple per line, top row first.

    Args:
        image: uint8 array of shape (height, width, 3), top row first.
        filepath: Output file path.

    Raises:
        ValueError: If the image is not (H, W, 3).
    """
    image = np.asarray(image)
    _check_rgb(image)
    height, width, _ = image.shape

    lines = [f"{int(r)} {int(g)} {int(b)}" for r, g, b in image.reshape(-1, 3)]
    with open(filepath, "w", encoding="ascii") as f:
        f.write(f"P3\n{width} {height}\n255\n")
        if lines:
            f.write("\n".join(lines))
            f.write("\n")

    logger.info("Wrote %dx%d PPM to %s", width, height, filepath)


def save_png(image: npt.NDArray[np.uint8], filepath: str | os.PathLike[str]) -> None:
    """Save an 8-bit RGB image through Pillow.

    Pillow picks the encoder from the file extension, so this also writes
    JPEG, BMP and the other formats it supports.

    Args:
        image: uint8 array of shape (height, width, 3), top row first.
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If the image is not (H, W, 3).
    """
    image = np.asarray(image, dtype=np.uint8)
    _check_rgb(image)

    pil_image = PILImage.fromarray(image, mode="RGB")
    pil_image.save(filepath)
    logger.info("Wrote %dx%d image to %s", image.shape[1], image.shape[0], filepath)


def save_image(image: npt.NDArray[np.uint8], filepath: str | os.PathLike[str]) -> None:
    """Save an 8-bit RGB image, choosing the format from the extension.

    ".ppm" files are written as ASCII P3; anything else goes through Pillow.
    """
    if Path(filepath).suffix.lower() == ".ppm":
        write_ppm(image, filepath)
    else:
        save_png(image, filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
