"""Preview module for rendered image output.

Components:
    export: uint8 conversion, PNG export (Pillow) and image comparison

Displaying images is left to the host application; it receives the
(height, width, 3) array from the renderer.

Example:
    >>> from src.pathtracer.preview import save_png_from_array
    >>> save_png_from_array(image, "output.png")
"""

from src.pathtracer.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_png_from_array,
)

__all__ = [
    "save_png_from_array",
    "image_to_uint8",
    "compute_rmse",
]
