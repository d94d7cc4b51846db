"""Image export utilities for rendered images.

The render buffer holds gamma-corrected colors that may exceed 1.0. Clamping
to [0, 1] happens only here, when an image is quantized to 8 bits for a
display surface or a file.

Supported formats:
    - PNG (8-bit via Pillow)

Example:
    >>> from src.pathtracer.preview.export import save_png_from_array
    >>> save_png_from_array(renderer.get_image_numpy(), "output.png")
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a gamma-corrected float image to uint8 for display/export.

    Components are clamped to [0, 1] and scaled by 255.99 so that 1.0 maps
    to 255.

    Args:
        image: Image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3).

    Raises:
        ValueError: If the image is not of shape (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")

    clamped = np.clip(image, 0.0, 1.0)
    return (clamped * 255.99).astype(np.uint8)


def save_png_from_array(image: npt.NDArray[np.floating], filepath: str) -> None:
    """Save a gamma-corrected float image as a PNG file.

    Args:
        image: Image array of shape (H, W, 3), row 0 at the top.
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(image_to_uint8(image))
    pil_image.save(filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
