"""Dielectric (glass/water) material implementation.

Dielectrics are clear refractive materials. At each hit the ray either
reflects or refracts:

    - Snell's law gives the refracted direction: n1 * sin(theta1) = n2 * sin(theta2)
    - When ratio * sin(theta) > 1 no refracted direction exists and the ray
      is totally internally reflected
    - Otherwise the ray reflects with probability given by Schlick's
      approximation, which rises sharply at grazing angles

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_dielectric(ior, ray_in, rec)
"""

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.ray import Ray, make_ray
from weekend_tracer.core.vector import (
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)


@ti.dataclass
class DielectricMaterial:
    """Dielectric (glass/water) material properties.

    Attributes:
        ior: Index of refraction. Common values:
            - Air: 1.0
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
    """

    ior: ti.f32


@ti.func
def refraction_ratio_for(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio of refractive indices across the boundary.

    Entering the material from outside gives 1 / ior; leaving it gives ior.
    """
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def cannot_refract(refraction_ratio: ti.f32, cos_theta: ti.f32) -> ti.i32:
    """Check for total internal reflection.

    Args:
        refraction_ratio: Incident over transmitted refractive index.
        cos_theta: Cosine of the incidence angle.

    Returns:
        1 if no refracted direction exists, 0 otherwise.
    """
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)
    return 1 if refraction_ratio * sin_theta > 1.0 else 0


@ti.func
def scatter_dielectric(ior: ti.f32, ray_in: Ray, rec):
    """Scatter a ray through a dielectric boundary.

    Glass does not tint, so the attenuation is white. The ray reflects
    when refraction is impossible, or when a uniform random draw falls
    below the Schlick reflectance; otherwise it refracts.

    A boundary between equal indices (ratio == 1) is not an optical
    interface, so it never reflects and the ray passes straight through.

    Args:
        ior: Index of refraction of the material.
        ray_in: The incoming ray.
        rec: The SceneHitRecord of the intersection. front_face selects
            whether the ray is entering or leaving the material.

    Returns:
        A tuple of (scattered, attenuation, did_scatter). did_scatter is
        always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    refraction_ratio = refraction_ratio_for(ior, rec.front_face)

    unit_direction = unit_vector(ray_in.direction)
    cos_theta = tm.min(-tm.dot(unit_direction, rec.normal), 1.0)

    must_reflect = cannot_refract(refraction_ratio, cos_theta)
    if must_reflect == 0 and refraction_ratio != 1.0:
        if schlick_reflectance(cos_theta, refraction_ratio) > ti.random(ti.f32):
            must_reflect = 1

    direction = vec3(0.0, 0.0, 0.0)
    if must_reflect == 1:
        direction = reflect(unit_direction, rec.normal)
    else:
        direction = refract(unit_direction, rec.normal, refraction_ratio)

    scattered = make_ray(rec.point, direction)
    return scattered, attenuation, 1


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be positive.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if not ior > 0.0:
        raise ValueError(f"Index of refraction = {ior} must be positive.")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(material_idx: ti.i32, ray_in: Ray, rec):
    """Scatter off a registered dielectric material.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    return scatter_dielectric(get_dielectric_ior(material_idx), ray_in, rec)
