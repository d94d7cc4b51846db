"""Random sphere field scene configuration.

This module provides factory functions for the reference scene: a large grey
ground sphere, a grid of small randomly placed and randomly coloured spheres,
and three large feature spheres (glass, diffuse and polished metal).

The scene is built on the Python side from a NumPy random generator, so the
same seed always yields the same list of spheres.

Layout:
- Ground: center (0, -1000, 0), radius 1000, grey Lambertian
- Small spheres: one per grid cell (a, b) with a, b in [-grid_range, grid_range),
  radius 0.2, jittered inside the cell at height 0.2
    - 80% Lambertian with albedo rand * rand per channel
    - 15% Metal with albedo 0.5 * (1 + rand) per channel
    - 5% Dielectric with refractive index 1.5
- Feature spheres at y = 1, radius 1: glass at x = 0, brown diffuse at
  x = -4, polished metal at x = 4

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.pathtracer.scene.random_scene import create_reference_setup
    >>> from src.pathtracer.core.renderer import Renderer
    >>>
    >>> scene, camera, settings = create_reference_setup()
    >>> renderer = Renderer(settings)
    >>> renderer.render(scene, camera)
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

from src.pathtracer.camera.thin_lens import ThinLensCamera
from src.pathtracer.core.settings import RenderSettings
from src.pathtracer.geometry.sphere import Sphere
from src.pathtracer.materials.material import Dielectric, Lambertian, Material, Metal
from src.pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)

# =============================================================================
# Scene Constants
# =============================================================================

GROUND_CENTER = (0.0, -1000.0, 0.0)
GROUND_RADIUS = 1000.0
GROUND_ALBEDO = (0.5, 0.5, 0.5)

SMALL_RADIUS = 0.2
GLASS_REF_IDX = 1.5

# Material choice thresholds on a uniform draw
LAMBERTIAN_THRESHOLD = 0.8
METAL_THRESHOLD = 0.95

# Reference view
REFERENCE_LOOKFROM = (12.0, 2.0, 3.0)
REFERENCE_LOOKAT = (0.0, 0.5, 0.0)
REFERENCE_VUP = (0.0, 1.0, 0.0)
REFERENCE_VFOV = 20.0
REFERENCE_APERTURE = 0.1
REFERENCE_WIDTH = 640
REFERENCE_HEIGHT = 320


@dataclass(frozen=True)
class RandomSceneParams:
    """Parameters for the random sphere field.

    Attributes:
        grid_range: Half extent of the grid of small spheres. The grid has
            (2 * grid_range)^2 cells.
        metal_fuzz: Fuzz of the small metal spheres, clamped to 1 by Metal.

    Example:
        >>> params = RandomSceneParams()
        >>> params.num_spheres
        488
        >>> small = RandomSceneParams(grid_range=5)
        >>> small.num_spheres
        104
    """

    grid_range: int = 11
    metal_fuzz: float = 1.0

    def __post_init__(self) -> None:
        if self.grid_range < 0:
            raise ValueError(f"grid_range = {self.grid_range} must be non-negative")
        if self.metal_fuzz < 0.0:
            raise ValueError(f"metal_fuzz = {self.metal_fuzz} must be non-negative")

    @property
    def num_spheres(self) -> int:
        """Total sphere count: ground, grid and three feature spheres."""
        return 1 + (2 * self.grid_range) ** 2 + 3


def _as_generator(rng: np.random.Generator | int | None) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(0 if rng is None else rng)


def _random_small_material(
    rng: np.random.Generator, choose_mat: float, metal_fuzz: float
) -> Material:
    if choose_mat < LAMBERTIAN_THRESHOLD:
        albedo = tuple(float(rng.random() * rng.random()) for _ in range(3))
        return Lambertian(albedo)
    if choose_mat < METAL_THRESHOLD:
        albedo = tuple(float(0.5 * (rng.random() + 1.0)) for _ in range(3))
        return Metal(albedo, fuzz=metal_fuzz)
    return Dielectric(GLASS_REF_IDX)


def create_random_scene(
    rng: np.random.Generator | int | None = None,
    params: RandomSceneParams = RandomSceneParams(),
) -> Scene:
    """Create the random sphere field scene.

    For each grid cell the generator is drawn in a fixed order: the material
    choice, the x and z jitter of the center, then the material's own draws.

    Args:
        rng: A NumPy Generator, an integer seed, or None for seed 0.
        params: Grid size and metal fuzz.

    Returns:
        The scene, ground sphere first and the three feature spheres last.
    """
    generator = _as_generator(rng)
    spheres = [Sphere(GROUND_CENTER, GROUND_RADIUS, Lambertian(GROUND_ALBEDO))]

    for a in range(-params.grid_range, params.grid_range):
        for b in range(-params.grid_range, params.grid_range):
            choose_mat = float(generator.random())
            center_x = a + 0.9 * float(generator.random())
            center_z = b + 0.9 * float(generator.random())
            material = _random_small_material(generator, choose_mat, params.metal_fuzz)
            spheres.append(Sphere((center_x, SMALL_RADIUS, center_z), SMALL_RADIUS, material))

    spheres.append(Sphere((0.0, 1.0, 0.0), 1.0, Dielectric(GLASS_REF_IDX)))
    spheres.append(Sphere((-4.0, 1.0, 0.0), 1.0, Lambertian((0.4, 0.2, 0.1))))
    spheres.append(Sphere((4.0, 1.0, 0.0), 1.0, Metal((0.7, 0.6, 0.5), fuzz=0.0)))

    logger.debug("Built random scene with %d spheres", len(spheres))
    return Scene(spheres)


def create_random_scene_camera(
    aspect_ratio: float = REFERENCE_WIDTH / REFERENCE_HEIGHT,
) -> ThinLensCamera:
    """Create the reference camera, focused on the look-at point."""
    focus_dist = math.dist(REFERENCE_LOOKFROM, REFERENCE_LOOKAT)
    return ThinLensCamera(
        lookfrom=REFERENCE_LOOKFROM,
        lookat=REFERENCE_LOOKAT,
        vup=REFERENCE_VUP,
        vfov=REFERENCE_VFOV,
        aspect_ratio=aspect_ratio,
        aperture=REFERENCE_APERTURE,
        focus_dist=focus_dist,
    )


def create_reference_setup(
    samples_per_pixel: int = 100,
    seed: int = 0,
) -> tuple[Scene, ThinLensCamera, RenderSettings]:
    """Create the reference scene, camera and 640x320 render settings.

    Args:
        samples_per_pixel: Samples per pixel for the settings.
        seed: Seed for both the scene generator and the render.

    Returns:
        Tuple of (scene, camera, settings).
    """
    settings = RenderSettings(
        width=REFERENCE_WIDTH,
        height=REFERENCE_HEIGHT,
        samples_per_pixel=samples_per_pixel,
        seed=seed,
    )
    scene = create_random_scene(seed)
    camera = create_random_scene_camera(settings.aspect_ratio)
    return scene, camera, settings
