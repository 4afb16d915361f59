"""Built-in scene configurations.

This module provides factory functions for the standard scenes, each paired
with the camera that frames it:

- test: Three spheres resting on a large ground sphere. The left sphere is
  a hollow glass shell (an outer sphere plus a negative-radius inner one),
  the middle one is diffuse blue and the right one is polished gold.
- cover: The "random spheres" cover scene. A 22x22 grid of small spheres
  with randomly chosen materials around three large spheres, viewed with
  a shallow depth of field.

Scenes can also be loaded from JSON documents in the format written by
SceneManager.to_dict(), with an optional "camera" object.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from weekend_tracer.camera.thin_lens import setup_camera
    >>> from weekend_tracer.scene.manager import SceneManager
    >>> from weekend_tracer.scene.presets import build_scene
    >>>
    >>> scene = SceneManager()
    >>> camera = build_scene("cover", scene, aspect_ratio=3 / 2, seed=7)
    >>> setup_camera(camera)
"""

import json
import logging
import os
from collections.abc import Callable

import numpy as np

from weekend_tracer.camera.thin_lens import ThinLensCamera, default_camera
from weekend_tracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Scene builder signature: (manager, aspect_ratio, rng) -> camera
SceneBuilder = Callable[[SceneManager, float, np.random.Generator], ThinLensCamera]


# =============================================================================
# Test Scene
# =============================================================================


def create_test_scene(manager: SceneManager, aspect_ratio: float = 16.0 / 9.0) -> ThinLensCamera:
    """Populate the manager with the three-sphere test scene.

    Args:
        manager: The scene manager to populate. It is not cleared first.
        aspect_ratio: Aspect ratio for the returned camera.

    Returns:
        The default camera for this scene.
    """
    material_ground = manager.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    material_center = manager.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    material_left = manager.add_dielectric_material(ior=1.5)
    material_right = manager.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.0)

    manager.add_sphere((0.0, -100.5, -1.0), 100.0, material_ground)
    manager.add_sphere((0.0, 0.0, -1.0), 0.5, material_center)
    # Hollow glass: the inner sphere's negative radius points its normals inward
    manager.add_sphere((-1.0, 0.0, -1.0), 0.5, material_left)
    manager.add_sphere((-1.0, 0.0, -1.0), -0.45, material_left)
    manager.add_sphere((1.0, 0.0, -1.0), 0.5, material_right)

    return default_camera(aspect_ratio)


# =============================================================================
# Book Cover Scene
# =============================================================================

# Small spheres within this distance of the large metal sphere's footprint are skipped
_CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
_CLEARANCE_RADIUS = 0.9

# Material split for the small spheres
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.15


def book_cover_camera(aspect_ratio: float = 3.0 / 2.0) -> ThinLensCamera:
    """Camera framing the cover scene from a low angle with a slight blur."""
    return ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )


def create_book_cover_scene(
    manager: SceneManager,
    rng: np.random.Generator,
    aspect_ratio: float = 3.0 / 2.0,
) -> ThinLensCamera:
    """Populate the manager with the random-spheres cover scene.

    Each grid cell (a, b) for a, b in [-11, 11) gets a sphere of radius 0.2
    at a jittered position, unless it would overlap the large metal sphere.
    The material is diffuse with probability 0.8 (albedo is the product of
    two random colors), metal with probability 0.15 (albedo in [0.5, 1),
    fuzz in [0, 0.5)) and glass otherwise.

    Args:
        manager: The scene manager to populate. It is not cleared first.
        rng: Source of randomness; the same seed gives the same scene.
        aspect_ratio: Aspect ratio for the returned camera.

    Returns:
        The camera for this scene.
    """
    ground = manager.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    manager.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    # Small spheres share one glass material
    glass = manager.add_dielectric_material(ior=1.5)

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])

            if np.linalg.norm(center - _CLEARANCE_POINT) <= _CLEARANCE_RADIUS:
                continue

            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = rng.random(3) * rng.random(3)
                material_id = manager.add_lambertian_material(albedo=tuple(albedo.tolist()))
            elif choose_mat < DIFFUSE_PROBABILITY + METAL_PROBABILITY:
                albedo = rng.uniform(0.5, 1.0, size=3)
                fuzz = rng.uniform(0.0, 0.5)
                material_id = manager.add_metal_material(albedo=tuple(albedo.tolist()), fuzz=fuzz)
            else:
                material_id = glass

            manager.add_sphere(tuple(center.tolist()), 0.2, material_id)

    manager.add_sphere((0.0, 1.0, 0.0), 1.0, glass)
    manager.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, albedo=(0.4, 0.2, 0.1))
    manager.add_metal_sphere((4.0, 1.0, 0.0), 1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.0)

    logger.info("Built cover scene with %d spheres", manager.get_sphere_count())
    return book_cover_camera(aspect_ratio)


# =============================================================================
# Scene Registry
# =============================================================================


def _build_test(manager: SceneManager, aspect_ratio: float, rng: np.random.Generator) -> ThinLensCamera:
    return create_test_scene(manager, aspect_ratio)


def _build_cover(manager: SceneManager, aspect_ratio: float, rng: np.random.Generator) -> ThinLensCamera:
    return create_book_cover_scene(manager, rng, aspect_ratio)


SCENES: dict[str, SceneBuilder] = {
    "test": _build_test,
    "cover": _build_cover,
}


def build_scene(
    name: str,
    manager: SceneManager,
    aspect_ratio: float = 16.0 / 9.0,
    seed: int | None = None,
) -> ThinLensCamera:
    """Clear the manager and build a named scene into it.

    Args:
        name: A key of SCENES.
        manager: The scene manager to populate.
        aspect_ratio: Aspect ratio for the returned camera.
        seed: Seed for scenes with random content. None draws fresh entropy.

    Returns:
        The camera for the scene.

    Raises:
        ValueError: If the scene name is unknown.
    """
    builder = SCENES.get(name)
    if builder is None:
        raise ValueError(f"Unknown scene {name!r}. Available: {', '.join(sorted(SCENES))}")

    manager.clear()
    camera = builder(manager, aspect_ratio, np.random.default_rng(seed))
    logger.info(
        "Scene %r: %d spheres, %d materials",
        name,
        manager.get_sphere_count(),
        manager.get_material_count(),
    )
    return camera


def load_scene_file(
    path: str | os.PathLike[str],
    manager: SceneManager,
    aspect_ratio: float = 16.0 / 9.0,
) -> ThinLensCamera:
    """Load a JSON scene document into the manager.

    The document holds "materials" and "spheres" lists as written by
    SceneManager.to_dict(), plus an optional "camera" object with
    ThinLensCamera fields. Without a camera the default camera is used.

    Args:
        path: Path to the JSON file.
        manager: The scene manager to populate (cleared first).
        aspect_ratio: Aspect ratio for the returned camera; overrides any
            aspect ratio stored in the document.

    Returns:
        The camera for the scene.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the document is not valid JSON or describes an
            invalid scene.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Scene file {path} must contain a JSON object")

    manager.from_dict(data)

    camera_data = data.get("camera")
    if camera_data is None:
        return default_camera(aspect_ratio)
    return ThinLensCamera.from_dict(camera_data, aspect_ratio=aspect_ratio)
