"""Path tracing integrator for Monte Carlo light transport.

This module implements the bounded-depth path tracer and the render target
it accumulates into.

Each camera ray is followed through the scene: at every hit the material
either absorbs the path or scatters it with an attenuation, and the path
continues until it is absorbed, escapes to the sky, or runs out of depth.
The radiance carried back to the camera is the product of the attenuations
along the path times the sky color where it escaped:

    color = a_1 * a_2 * ... * a_k * sky(direction_k)

Paths that are absorbed or exhaust their depth contribute black.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.camera.thin_lens import default_camera, setup_camera
    >>> from weekend_tracer.core.integrator import (
    ...     get_average_image_numpy, render_image, setup_render_target
    ... )
    >>> from weekend_tracer.scene.manager import SceneManager
    >>> from weekend_tracer.scene.presets import create_test_scene
    >>>
    >>> scene = SceneManager()
    >>> create_test_scene(scene)
    >>> setup_camera(default_camera())
    >>> setup_render_target(400, 225)
    >>> render_image(samples_per_pixel=100, max_depth=50)
    >>> image = get_average_image_numpy()
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from weekend_tracer.camera.thin_lens import get_ray_jittered
from weekend_tracer.core.ray import Ray, make_ray
from weekend_tracer.core.vector import unit_vector, vec3
from weekend_tracer.materials.dielectric import scatter_dielectric_by_id
from weekend_tracer.materials.lambertian import scatter_lambertian_by_id
from weekend_tracer.materials.metal import scatter_metal_by_id
from weekend_tracer.scene.intersection import intersect_scene
from weekend_tracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min and t_max for scene queries. T_MIN keeps a scattered ray from
# re-hitting the surface it left (shadow acne).
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints, blended by the ray's vertical direction
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Per-pixel sum of sample colors (preallocated to max size)
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels, in [2, MAX_IMAGE_WIDTH].
        height: Image height in pixels, in [2, MAX_IMAGE_HEIGHT].

    Raises:
        ValueError: If dimensions are below 2 or exceed the maximum
            supported size.
    """
    if width < 2 or height < 2:
        raise ValueError(f"Image dimensions ({width}x{height}) must be at least 2x2")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug("Render target set up at %dx%d", width, height)


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Background and Material Dispatch
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background radiance for a ray that escapes the scene.

    Linearly blends white at the horizon to light blue overhead, based on
    the y component of the unit direction.
    """
    unit_direction = unit_vector(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def scatter_material(material_id: ti.i32, ray_in: Ray, rec):
    """Dispatch to the appropriate material scattering function.

    Looks up the material type and type-local index for the unified
    material ID and calls the corresponding scatter function.

    Args:
        material_id: The unified material ID from the hit record.
        ray_in: The incoming ray.
        rec: The SceneHitRecord of the intersection.

    Returns:
        A tuple of (scattered, attenuation, did_scatter). Unknown material
        IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered = make_ray(rec.point, rec.normal)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered, attenuation, did_scatter = scatter_lambertian_by_id(type_index, ray_in, rec)
    elif mat_type == int(MaterialType.METAL):
        scattered, attenuation, did_scatter = scatter_metal_by_id(type_index, ray_in, rec)
    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered, attenuation, did_scatter = scatter_dielectric_by_id(type_index, ray_in, rec)

    return scattered, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(ray: Ray, depth: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Follows the path for at most depth bounces, multiplying the throughput
    by each material's attenuation. The loop is the iterative form of

        ray_color(r, d) = black                            if d <= 0
                        = a * ray_color(scattered, d - 1)  if hit and scattered
                        = black                            if hit and absorbed
                        = sky(r.direction)                 if missed

    Args:
        ray: The ray to trace.
        depth: Maximum number of bounces.

    Returns:
        The estimated radiance (RGB) for this ray.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray
    remaining = depth

    # Active flag for path continuation
    active = 1
    while active == 1:
        if remaining <= 0:
            active = 0
        else:
            rec = intersect_scene(current.origin, current.direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(current.direction)
                active = 0
            else:
                scattered, attenuation, did_scatter = scatter_material(rec.material_id, current, rec)

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = scattered
                    remaining -= 1

    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_kernel(width: ti.i32, height: ti.i32, samples: ti.i32, max_depth: ti.i32):
    """Trace samples for every pixel and add them to the buffers.

    Each pixel thread sums its own samples locally and writes only its own
    buffer cell, so pixels never share state.
    """
    for i, j in ti.ndrange(width, height):
        pixel_sum = vec3(0.0, 0.0, 0.0)
        for _ in range(samples):
            ray = get_ray_jittered(i, j, width, height)
            pixel_sum += ray_color(ray, max_depth)

        _color_sum[i, j] += pixel_sum
        _sample_count[i, j] += samples


@ti.kernel
def _render_single_pixel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32) -> vec3:
    """Render a single sample for a specific pixel."""
    ray = get_ray_jittered(pixel_i, pixel_j, width, height)
    return ray_color(ray, max_depth)


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Trace one ray with the given origin and direction."""
    return ray_color(make_ray(origin, direction), max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def _validate_depth(max_depth: int) -> None:
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")


def render_image(samples_per_pixel: int = 1, max_depth: int = 50) -> None:
    """Render samples for every pixel into the render target.

    Adds samples_per_pixel samples to each pixel in one kernel launch. Can
    be called repeatedly to add more samples; the average is always the
    accumulated sum divided by the accumulated count.

    Args:
        samples_per_pixel: Number of samples to add per pixel (at least 1).
        max_depth: Maximum number of bounces per path.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If samples_per_pixel < 1 or max_depth < 0.
    """
    _check_render_target_initialized()
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel must be at least 1, got {samples_per_pixel}")
    _validate_depth(max_depth)

    width, height = get_image_dimensions()
    _render_kernel(width, height, samples_per_pixel, max_depth)


def render_sample(pixel_i: int, pixel_j: int, max_depth: int = 50) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel. The sample is
    not added to the render target.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum number of bounces.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    _validate_depth(max_depth)

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = 50,
) -> tuple[float, float, float]:
    """Trace a single ray through the current scene.

    Args:
        origin: Ray origin as (x, y, z).
        direction: Ray direction as (x, y, z). Need not be normalized.
        max_depth: Maximum number of bounces.

    Returns:
        Tuple of (R, G, B) radiance values.
    """
    _validate_depth(max_depth)
    color = _trace_ray_kernel(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_depth,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Returns the sample count from pixel (0, 0), which is the same for all
    pixels after calling render_image().

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def _to_image_layout(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """Crop a (MAX_W, MAX_H, ...) buffer and reorder it to top-row-first (height, width, ...)."""
    active = buffer[:width, :height]
    # Transpose from (width, height) to (height, width) for standard image format
    active = np.swapaxes(active, 0, 1)
    # Flip vertically (row j = 0 is the bottom of the image)
    return np.flipud(active)


def get_sum_image_numpy() -> np.ndarray:
    """Get the raw per-pixel color sums.

    Returns:
        float64 array of shape (height, width, 3), top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return _to_image_layout(_color_sum.to_numpy(), width, height).astype(np.float64)


def get_sample_counts_numpy() -> np.ndarray:
    """Get the per-pixel sample counts.

    Returns:
        int64 array of shape (height, width), top row first.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return _to_image_layout(_sample_count.to_numpy(), width, height).astype(np.int64)


def get_average_image_numpy() -> np.ndarray:
    """Get the linear average color of every pixel.

    Pixels with no samples are black. No clamping or gamma is applied.

    Returns:
        float64 array of shape (height, width, 3), top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    sums = get_sum_image_numpy()
    counts = get_sample_counts_numpy()[..., np.newaxis].astype(np.float64)
    return np.divide(sums, counts, out=np.zeros_like(sums), where=counts > 0)
