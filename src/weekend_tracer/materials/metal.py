"""Metal (specular reflective) material implementation.

Metals reflect the incoming direction about the surface normal. A fuzz
parameter perturbs the mirror direction by a random point in a ball of
radius fuzz, giving brushed or rough metals.

The reflection formula is:
    R = I - 2(I . N)N

where I is the unit incident direction and N is the surface normal.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_metal(albedo, fuzz, ray_in, rec)
"""

import taichi as ti
import taichi.math as tm

from weekend_tracer.core.ray import Ray, make_ray
from weekend_tracer.core.vector import random_in_unit_sphere, reflect, unit_vector, vec3
from weekend_tracer.materials.validation import validate_albedo


@ti.dataclass
class MetalMaterial:
    """Metal (specular reflective) material properties.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Reflection roughness in [0, 1]. 0 is a perfect mirror.
    """

    albedo: vec3
    fuzz: ti.f32


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz factor into [0, 1]."""
    return min(max(float(fuzz), 0.0), 1.0)


@ti.func
def scatter_metal(albedo: vec3, fuzz: ti.f32, ray_in: Ray, rec):
    """Scatter a ray off a metal surface.

    The scattered direction is the mirror reflection of the unit incoming
    direction plus fuzz * random_in_unit_sphere(). The ray is absorbed when
    the perturbed direction points into the surface (grazing rays on rough
    metals).

    Args:
        albedo: The reflective color.
        fuzz: The reflection roughness in [0, 1].
        ray_in: The incoming ray.
        rec: The SceneHitRecord of the intersection.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where did_scatter
        is 1 when scattered.direction . rec.normal > 0 and 0 when absorbed.
    """
    reflected = reflect(unit_vector(ray_in.direction), rec.normal)
    scattered = make_ray(rec.point, reflected + fuzz * random_in_unit_sphere())

    did_scatter = 0
    if tm.dot(scattered.direction, rec.normal) > 0.0:
        did_scatter = 1

    return scattered, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component must be in [0, 1].
        fuzz: The reflection roughness. Default is 0 (perfect mirror).
            Values outside [0, 1] are clamped.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If albedo is not an RGB triple in [0, 1].
    """
    validate_albedo(albedo)

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = clamp_fuzz(fuzz)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz factor for a metal material by index."""
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(material_idx: ti.i32, ray_in: Ray, rec):
    """Scatter off a registered metal material.

    Looks up the albedo and fuzz from the registry and calls scatter_metal.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, ray_in, rec)
