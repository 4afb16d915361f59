"""Lambertian (ideal diffuse) material implementation.

Scattered directions are drawn as the surface normal plus a random unit
vector. The resulting directions follow a cosine-weighted distribution
around the normal, so the attenuation is simply the albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_lambertian(albedo, ray_in, rec)
"""

import taichi as ti

from weekend_tracer.core.ray import Ray, make_ray
from weekend_tracer.core.vector import near_zero, random_unit_vector, vec3
from weekend_tracer.materials.validation import validate_albedo


@ti.dataclass
class LambertianMaterial:
    """Lambertian (ideal diffuse) material properties.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    albedo: vec3


@ti.func
def diffuse_direction(normal: vec3, offset: vec3) -> vec3:
    """Diffuse scatter direction for a unit offset; falls back to the normal when they cancel."""
    direction = normal + offset
    if near_zero(direction):
        direction = normal
    return direction


@ti.func
def scatter_lambertian(albedo: vec3, ray_in: Ray, rec):
    """Scatter a ray off a Lambertian surface.

    The scattered direction is rec.normal + random_unit_vector(). When the
    random vector nearly cancels the normal, the normal itself is used so
    the scattered ray never has a degenerate zero direction.

    Args:
        albedo: The diffuse reflectance color.
        ray_in: The incoming ray (unused; diffuse scattering forgets it).
        rec: The SceneHitRecord of the intersection.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where scattered is
        the outgoing Ray from the hit point, attenuation equals albedo and
        did_scatter is always 1.
    """
    scatter_direction = diffuse_direction(rec.normal, random_unit_vector())

    scattered = make_ray(rec.point, scatter_direction)
    return scattered, albedo, 1


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component must be in [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If albedo is not an RGB triple in [0, 1].
    """
    validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]


@ti.func
def scatter_lambertian_by_id(material_idx: ti.i32, ray_in: Ray, rec):
    """Scatter off a registered Lambertian material.

    Looks up the albedo from the registry and calls scatter_lambertian.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    return scatter_lambertian(get_lambertian_albedo(material_idx), ray_in, rec)
