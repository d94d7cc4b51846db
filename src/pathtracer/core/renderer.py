"""Rendering driver with row-batched dispatch.

This module wraps the integrator kernels with:
- Validated render settings
- Row-batched rendering with progress callbacks
- A generator interface that lets the caller stop between batches
- NumPy and 8-bit image access

Every pixel owns a generator seeded from its index, so an image rendered in
batches is identical to one rendered in a single dispatch.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.renderer import Renderer, RenderSettings
    >>> from src.pathtracer.scene.random_scene import create_reference_setup
    >>>
    >>> scene, camera, settings = create_reference_setup()
    >>> renderer = Renderer(settings)
    >>> renderer.render(scene, camera)
    >>> image = renderer.get_image_numpy()
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from src.pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
from src.pathtracer.core.integrator import (
    clear_render_target,
    get_image_numpy,
    render_pixel,
    render_rows,
    setup_render_target,
)
from src.pathtracer.core.settings import RenderSettings
from src.pathtracer.preview.export import image_to_uint8, save_png_from_array
from src.pathtracer.scene.intersection import load_scene
from src.pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)

# Callback receives (rows_completed, total_rows)
ProgressCallback = Callable[[int, int], None]


class Renderer:
    """Renders a scene into the integrator's color buffer.

    The renderer owns the render target dimensions. Scene and camera are
    uploaded at the start of each render; they stay read-only while the
    kernels run.

    Attributes:
        settings: The render settings.
    """

    def __init__(self, settings: RenderSettings) -> None:
        """Initialize the renderer and its render target.

        Args:
            settings: Image size, sample count and seed.
        """
        self._settings = settings
        self._rows_completed = 0
        setup_render_target(settings.width, settings.height)

    @property
    def settings(self) -> RenderSettings:
        return self._settings

    @property
    def width(self) -> int:
        return self._settings.width

    @property
    def height(self) -> int:
        return self._settings.height

    @property
    def rows_completed(self) -> int:
        """Number of rows rendered by the current or last render."""
        return self._rows_completed

    def reset(self) -> None:
        """Clear the image buffer."""
        clear_render_target()
        self._rows_completed = 0

    def _prepare(self, scene: Scene, camera: ThinLensCamera) -> None:
        setup_render_target(self.width, self.height)
        load_scene(scene)
        setup_camera(camera)
        self._rows_completed = 0

    def render_progressive(
        self,
        scene: Scene,
        camera: ThinLensCamera,
        rows_per_batch: int = 16,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the image in batches of rows, yielding after each batch.

        Stopping the iteration early leaves the remaining rows black; rows
        already rendered are final.

        Args:
            scene: The scene to render.
            camera: The camera to render from.
            rows_per_batch: Number of rows per kernel dispatch.

        Yields:
            Tuple of (rows_completed, total_rows).

        Raises:
            ValueError: If rows_per_batch is not positive.
        """
        if rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch = {rows_per_batch} must be positive")

        self._prepare(scene, camera)
        settings = self._settings
        logger.info(
            "Rendering %dx%d at %d spp (%d spheres)",
            settings.width,
            settings.height,
            settings.samples_per_pixel,
            len(scene),
        )

        start_time = time.perf_counter()
        row = 0
        while row < settings.height:
            row_end = min(row + rows_per_batch, settings.height)
            render_rows(row, row_end, settings.samples_per_pixel, settings.seed)
            row = row_end
            self._rows_completed = row
            yield (row, settings.height)

        logger.info("Render finished in %.2fs", time.perf_counter() - start_time)

    def render(
        self,
        scene: Scene,
        camera: ThinLensCamera,
        rows_per_batch: int | None = None,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render the whole image.

        Args:
            scene: The scene to render.
            camera: The camera to render from.
            rows_per_batch: Rows per kernel dispatch. Defaults to the whole
                image in one dispatch.
            callback: Optional callback called after each batch with
                (rows_completed, total_rows).
        """
        batch = self.height if rows_per_batch is None else rows_per_batch
        for completed, total in self.render_progressive(scene, camera, batch):
            if callback is not None:
                callback(completed, total)

    def render_pixel(self, pixel_i: int, pixel_j: int) -> tuple[float, float, float]:
        """Render one pixel with the current settings, scene and camera.

        The scene and camera must already be loaded, e.g. by a previous
        render() call.
        """
        return render_pixel(
            pixel_i, pixel_j, self._settings.samples_per_pixel, self._settings.seed
        )

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the rendered image, shape (height, width, 3), unclamped."""
        return get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the rendered image clamped and quantized to 8 bits."""
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str) -> None:
        """Save the rendered image as a PNG file."""
        save_png_from_array(self.get_image_numpy(), filepath)

    def __repr__(self) -> str:
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"spp={self._settings.samples_per_pixel}, seed={self._settings.seed})"
        )


def render_scene(
    scene: Scene,
    camera: ThinLensCamera,
    settings: RenderSettings,
) -> npt.NDArray[np.float32]:
    """Render a scene in one call and return the image.

    Args:
        scene: The scene to render.
        camera: The camera to render from.
        settings: Image size, sample count and seed.

    Returns:
        Array of shape (height, width, 3), gamma corrected and unclamped.
    """
    renderer = Renderer(settings)
    renderer.render(scene, camera)
    return renderer.get_image_numpy()
