"""Render settings and image size limits."""

from dataclasses import dataclass

from src.pathtracer.core.rng import split_seed

# Maximum supported image dimensions (render buffer is preallocated to this size)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048


@dataclass(frozen=True)
class RenderSettings:
    """Image size, sample count and seed for a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of camera rays averaged per pixel.
        seed: Render seed, a non-negative integer below 2**64. Each pixel's
            generator is derived from it and the pixel index.
    """

    width: int = 640
    height: int = 320
    samples_per_pixel: int = 100
    seed: int = 0

    def __post_init__(self) -> None:
        if not 0 < self.width <= MAX_IMAGE_WIDTH:
            raise ValueError(f"width = {self.width} must be in [1, {MAX_IMAGE_WIDTH}]")
        if not 0 < self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(f"height = {self.height} must be in [1, {MAX_IMAGE_HEIGHT}]")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be positive")
        split_seed(self.seed)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height
