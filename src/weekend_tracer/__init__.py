"""Monte Carlo path tracer for sphere scenes, built on Taichi.

Subpackages:
    core: Vector math, rays, the path-tracing integrator and progressive rendering
    geometry: Sphere intersection
    materials: Lambertian, metal and dielectric scattering
    camera: Thin-lens camera with depth of field
    scene: Scene storage, the scene manager and built-in scenes
    preview: Image encoding and export

Taichi must be initialized (ti.init) before any module that allocates
fields is imported.
"""

__version__ = "0.1.0"
