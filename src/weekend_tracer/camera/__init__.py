"""Camera module for view and ray generation.

Ray generation uses normalized image-plane coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image

The thin-lens camera samples a point on its lens disk for every ray, so
depth of field falls out of ordinary Monte Carlo averaging.
"""

from .thin_lens import (
    ThinLensCamera,
    default_camera,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "default_camera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_camera_info",
]
