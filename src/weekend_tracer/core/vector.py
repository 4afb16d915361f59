"""Vector utilities and random sampling helpers for Monte Carlo ray tracing.

A single vector type, ``vec3``, stands in for points, directions and colors.
Color tensoring is plain component-wise multiplication of two vec3 values.

All geometric helpers are Taichi functions (@ti.func) so they can be called
from inside render kernels. They are pure: no helper writes through any of
its arguments.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.core.vector import reflect, unit_vector, vec3
    >>> @ti.kernel
    ... def mirror() -> vec3:
    ...     return reflect(unit_vector(vec3(1.0, -1.0, 0.0)), vec3(0.0, 1.0, 0.0))
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude count as zero in near_zero()
NEAR_ZERO_EPSILON = 1e-8

# Upper bound on rejection-sampling draws. Each draw of a point in the unit
# cube lands in the unit ball with probability ~0.52, so 100 draws all
# missing has probability below 1e-30.
MAX_REJECTION_DRAWS = 100


def to_vec3(values: Sequence[float]) -> vec3:
    """Convert a Python sequence of three numbers into a vec3.

    Args:
        values: An (x, y, z) sequence.

    Returns:
        The equivalent vec3.

    Raises:
        ValueError: If the sequence does not have exactly three components.
    """
    if len(values) != 3:
        raise ValueError(f"Expected 3 components, got {len(values)}: {values!r}")
    return vec3(float(values[0]), float(values[1]), float(values[2]))


# =============================================================================
# Vector Algebra
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Computed as v / |v| with no guard: a zero-length input produces
    non-finite components. Callers must not pass degenerate vectors.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v.
    """
    return v / length(v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check whether every component of a vector is close to zero.

    Used to catch degenerate scatter directions before they are normalized.

    Args:
        v: The vector to check.

    Returns:
        1 if all components are below NEAR_ZERO_EPSILON in magnitude, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect a vector about a surface normal.

    Computes v - 2(v . n)n. The normal should be unit length; the
    component of v along n keeps its magnitude and flips its sign.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The surface normal.

    Returns:
        The reflected direction.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The result is split into the part perpendicular to the normal, which
    scales with the index ratio, and the parallel part that restores unit
    length. Callers are expected to have ruled out total internal reflection.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal on the incoming side (unit length).
        etai_over_etat: Ratio of refractive indices, incident over transmitted.

    Returns:
        The refracted direction.
    """
    cos_theta = tm.min(-tm.dot(uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Approximate the Fresnel reflectance with Schlick's polynomial.

    Args:
        cosine: Cosine of the angle between the incoming ray and the normal.
        ref_idx: Ratio of refractive indices across the boundary.

    Returns:
        The probability that the boundary reflects rather than refracts.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3(lo: ti.f32, hi: ti.f32) -> vec3:
    """Generate a vector with each component uniform in [lo, hi)."""
    span = hi - lo
    return vec3(
        lo + span * ti.random(ti.f32),
        lo + span * ti.random(ti.f32),
        lo + span * ti.random(ti.f32),
    )


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a uniformly distributed point inside the unit ball.

    Draws points in [-1, 1]^3 until one has squared length below 1.

    Returns:
        A random point with length < 1.
    """
    p = random_vec3(-1.0, 1.0)
    draws = 1
    while length_squared(p) >= 1.0 and draws < MAX_REJECTION_DRAWS:
        p = random_vec3(-1.0, 1.0)
        draws += 1
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a unit vector uniformly distributed over the sphere."""
    return unit_vector(random_in_unit_sphere())


@ti.func
def random_in_hemisphere(normal: vec3) -> vec3:
    """Generate a unit-ball sample in the hemisphere around a normal.

    A sample on the wrong side of the surface is negated into the
    opposite hemisphere.

    Args:
        normal: The normal defining the hemisphere.

    Returns:
        A random point in the unit ball with non-negative dot product with normal.
    """
    in_unit_sphere = random_in_unit_sphere()
    result = in_unit_sphere
    if tm.dot(in_unit_sphere, normal) < 0.0:
        result = -in_unit_sphere
    return result


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a uniformly distributed point inside the unit disk.

    Used to sample thin-lens apertures for depth of field.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(ti.random(ti.f32) * 2.0 - 1.0, ti.random(ti.f32) * 2.0 - 1.0, 0.0)
    draws = 1
    while p.x * p.x + p.y * p.y >= 1.0 and draws < MAX_REJECTION_DRAWS:
        p = vec3(ti.random(ti.f32) * 2.0 - 1.0, ti.random(ti.f32) * 2.0 - 1.0, 0.0)
        draws += 1
    return p
