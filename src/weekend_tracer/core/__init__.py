"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    vector: vec3 algebra, reflection/refraction and random sampling
    ray: Ray data structure
    integrator: Bounded-depth path tracing and the render target
    progressive: Batched rendering with progress reporting

The integrator resolves the radiance along each camera ray by repeatedly
intersecting the scene and scattering off materials until the path is
absorbed, escapes to the sky, or runs out of depth.

All compute-intensive operations use Taichi kernels for parallel execution.
"""

from .ray import Ray, make_ray, ray_at
from .vector import (
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    random_in_hemisphere,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    reflect,
    refract,
    schlick_reflectance,
    to_vec3,
    unit_vector,
    vec3,
)

# Note: integrator and progressive are NOT imported here. They allocate Taichi
# fields at import time, which must happen after ti.init(). Import them directly
# from weekend_tracer.core.integrator or weekend_tracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "to_vec3",
    "dot",
    "cross",
    "length",
    "length_squared",
    "unit_vector",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_hemisphere",
    "random_in_unit_disk",
]
