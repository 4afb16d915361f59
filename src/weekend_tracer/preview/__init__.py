"""Image encoding and file output.

Components:
    export: Gamma-2 byte encoding, PPM/PNG writers and image comparison
"""

from .export import compute_rmse, encode_colors, save_image, save_png, write_ppm

__all__ = [
    "encode_colors",
    "write_ppm",
    "save_png",
    "save_image",
    "compute_rmse",
]
