"""Radiance integrator and per-pixel Monte Carlo sampler.

This module implements the rendering kernels: a ray is traced through the
scene, bouncing off spheres according to their materials, until it escapes to
the sky, is absorbed, or reaches the bounce limit. For each pixel, many
jittered camera rays are traced, averaged, and gamma corrected.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric) in one switch
    - Vertical sky gradient as the only light source
    - Fixed bounce cap (MAX_DEPTH); no Russian roulette
    - Per-pixel generator state seeded from the pixel index
    - Gamma 2 correction without clamping

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.integrator import (
    ...     render_image, setup_render_target, get_image_numpy
    ... )
    >>> from src.pathtracer.scene.intersection import load_scene
    >>> from src.pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> load_scene(scene)
    >>> setup_camera(camera)
    >>> setup_render_target(640, 320)
    >>> render_image(num_samples=100, seed=0)
    >>> image = get_image_numpy()
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.pathtracer.camera.thin_lens import get_ray, is_camera_initialized
from src.pathtracer.core.ray import normalize
from src.pathtracer.core.rng import rng_next_float, rng_seed, rng_seed_task, split_seed
from src.pathtracer.core.settings import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH
from src.pathtracer.materials.dielectric import scatter_dielectric
from src.pathtracer.materials.lambertian import scatter_lambertian
from src.pathtracer.materials.material import MaterialType
from src.pathtracer.materials.metal import scatter_metal
from src.pathtracer.scene.intersection import (
    intersect_scene,
    material_albedos,
    material_fuzz,
    material_kinds,
    material_ref_idx,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum number of scattering events per path. Fixed, not a tuning knob.
MAX_DEPTH = 50

# Ray parameter bounds for intersection; T_MIN avoids self-intersection
T_MIN = 0.001
T_MAX = float("inf")

# Sky gradient endpoints
SKY_BOTTOM = vec3(1.0, 1.0, 1.0)
SKY_TOP = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Gamma-corrected color per pixel, indexed [column, row] with row 0 at the top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffer.

    Sets the active image dimensions and clears the buffer.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffer to black."""
    _color_buffer.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_ready() -> None:
    """Raise if the render target or camera has not been set up."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")
    if not is_camera_initialized():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    state: tm.uvec4,
):
    """Dispatch to the scattering function of the hit material.

    Returns:
        A tuple of (state, attenuation, scattered_direction, did_scatter).
    """
    kind = material_kinds[material_id]

    new_state = state
    attenuation = vec3(0.0, 0.0, 0.0)
    scattered_direction = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if kind == int(MaterialType.LAMBERTIAN):
        new_state, attenuation, scattered_direction, did_scatter = scatter_lambertian(
            material_albedos[material_id], normal, state
        )
    elif kind == int(MaterialType.METAL):
        new_state, attenuation, scattered_direction, did_scatter = scatter_metal(
            material_albedos[material_id],
            material_fuzz[material_id],
            incident_direction,
            normal,
            state,
        )
    elif kind == int(MaterialType.DIELECTRIC):
        new_state, attenuation, scattered_direction, did_scatter = scatter_dielectric(
            material_ref_idx[material_id], incident_direction, normal, state
        )

    return new_state, attenuation, scattered_direction, did_scatter


# =============================================================================
# Radiance
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background radiance: a vertical white-to-blue gradient.

    Depends only on the y component of the unit direction.
    """
    t = 0.5 * (normalize(direction).y + 1.0)
    return (1.0 - t) * SKY_BOTTOM + t * SKY_TOP


@ti.func
def trace_color(ray_origin: vec3, ray_direction: vec3, state: tm.uvec4):
    """Estimate the radiance arriving along a ray.

    Iterative form of the recursive estimator
        color(ray, depth) = sky(ray)                               on a miss
                          = attenuation * color(scattered, depth+1) if depth < MAX_DEPTH
                                                                     and the material scatters
                          = black                                    otherwise

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (any length).
        state: The task's generator state.

    Returns:
        A tuple of (state, color).
    """
    s = state
    origin = ray_origin
    direction = ray_direction

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag instead of break
    active = 1

    for depth in range(MAX_DEPTH + 1):
        if active == 1:
            rec = intersect_scene(origin, direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(direction)
                active = 0
            elif depth < MAX_DEPTH:
                s, attenuation, scattered, did_scatter = _scatter_material(
                    rec.material_id, direction, rec.normal, s
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = rec.point
                    direction = scattered
            else:
                # Out of bounces
                active = 0

    return s, color


@ti.func
def gamma_correct(color: vec3) -> vec3:
    """Gamma 2 correction, sqrt of each channel. Values above 1 are kept."""
    return ti.sqrt(color)


@ti.func
def sample_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    seed_lo: ti.u32,
    seed_hi: ti.u32,
) -> vec3:
    """Average num_samples jittered camera rays through one pixel.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of camera rays to average.
        seed_lo: Low word of the render seed.
        seed_hi: High word of the render seed.

    Returns:
        The gamma-corrected pixel color.
    """
    state = rng_seed_task(seed_lo, seed_hi, pixel_j * width + pixel_i)
    accumulated = vec3(0.0, 0.0, 0.0)

    for _ in range(num_samples):
        state, jitter_u = rng_next_float(state)
        state, jitter_v = rng_next_float(state)
        u = (ti.cast(pixel_i, ti.f32) + jitter_u) / ti.cast(width, ti.f32)
        v = (ti.cast(height - 1 - pixel_j, ti.f32) + jitter_v) / ti.cast(height, ti.f32)

        state, origin, direction = get_ray(u, v, state)
        state, color = trace_color(origin, direction, state)
        accumulated += color

    return gamma_correct(accumulated / ti.cast(num_samples, ti.f32))


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    seed_lo: ti.u32,
    seed_hi: ti.u32,
):
    """Render every pixel of rows [row_start, row_end) into the buffer."""
    for i, j in ti.ndrange(width, (row_start, row_end)):
        _color_buffer[i, j] = sample_pixel(i, j, width, height, num_samples, seed_lo, seed_hi)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    num_samples: ti.i32,
    seed_lo: ti.u32,
    seed_hi: ti.u32,
) -> vec3:
    """Render one pixel without touching the buffer."""
    return sample_pixel(pixel_i, pixel_j, width, height, num_samples, seed_lo, seed_hi)


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    seed_lo: ti.u32,
    seed_hi: ti.u32,
) -> vec3:
    """Trace one ray with a freshly seeded generator."""
    state = rng_seed(seed_lo, seed_hi)
    _, color = trace_color(vec3(ox, oy, oz), vec3(dx, dy, dz), state)
    return color


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_samples(num_samples: int) -> None:
    if num_samples <= 0:
        raise ValueError(f"num_samples = {num_samples} must be positive")


def render_rows(row_start: int, row_end: int, num_samples: int, seed: int = 0) -> None:
    """Render the rows [row_start, row_end) of the image into the buffer.

    Pixels do not depend on which batch renders them, so rendering the image
    in several row ranges gives the same result as rendering it at once.

    Args:
        row_start: First row to render (0 = top).
        row_end: One past the last row to render.
        num_samples: Number of samples per pixel.
        seed: Render seed, a non-negative integer below 2**64.

    Raises:
        RuntimeError: If the render target or camera has not been set up.
        ValueError: If the row range or sample count is invalid.
    """
    _check_ready()
    _check_samples(num_samples)
    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Row range [{row_start}, {row_end}) outside image height {height}")

    seed_lo, seed_hi = split_seed(seed)
    if row_start < row_end:
        _render_rows(row_start, row_end, width, height, num_samples, seed_lo, seed_hi)


def render_image(num_samples: int = 1, seed: int = 0) -> None:
    """Render the whole image into the buffer.

    Args:
        num_samples: Number of samples per pixel.
        seed: Render seed, a non-negative integer below 2**64.

    Raises:
        RuntimeError: If the render target or camera has not been set up.
    """
    _check_ready()
    _, height = get_image_dimensions()
    render_rows(0, height, num_samples, seed)


def render_pixel(
    pixel_i: int, pixel_j: int, num_samples: int = 1, seed: int = 0
) -> tuple[float, float, float]:
    """Render a single pixel and return its gamma-corrected color.

    Gives the same color the pixel gets in render_image() with the same
    seed. Useful for testing; does not write the buffer.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).
        num_samples: Number of samples to average.
        seed: Render seed.

    Returns:
        Tuple of (R, G, B).
    """
    _check_ready()
    _check_samples(num_samples)
    width, height = get_image_dimensions()
    if not (0 <= pixel_i < width and 0 <= pixel_j < height):
        raise ValueError(f"Pixel ({pixel_i}, {pixel_j}) outside {width}x{height} image")

    seed_lo, seed_hi = split_seed(seed)
    color = _render_single_pixel(pixel_i, pixel_j, width, height, num_samples, seed_lo, seed_hi)
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    seed: int = 0,
) -> tuple[float, float, float]:
    """Trace a single ray through the loaded scene and return its radiance.

    The result is linear (no gamma correction).

    Args:
        origin: Ray origin.
        direction: Ray direction (any length).
        seed: Seed for the generator driving the scattering decisions.

    Returns:
        Tuple of (R, G, B).
    """
    seed_lo, seed_hi = split_seed(seed)
    color = _trace_single_ray(
        float(origin[0]),
        float(origin[1]),
        float(origin[2]),
        float(direction[0]),
        float(direction[1]),
        float(direction[2]),
        seed_lo,
        seed_hi,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Values are gamma corrected and not clamped; components above 1 are
    left as they are.

    Returns:
        Array of shape (height, width, 3), dtype float32, row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")

    width, height = get_image_dimensions()
    full_image = _color_buffer.to_numpy()

    # Buffer is [column, row]; images are [row, column]
    image = np.transpose(full_image[:width, :height, :], (1, 0, 2))
    return np.ascontiguousarray(image, dtype=np.float32)
