"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector algebra
    rng: Deterministic xorshift128 generator with explicit per-task state
    integrator: Radiance estimator, pixel sampler and rendering kernels
    settings: Render settings and image size limits
    renderer: Row-batched rendering driver

All compute-intensive operations are Taichi functions and kernels.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick,
    vec3,
)
from .rng import (
    MAX_REJECTION_TRIALS,
    random_in_unit_disk,
    random_in_unit_sphere,
    rng_next_float,
    rng_next_u32,
    rng_seed,
    rng_seed_task,
    split_seed,
)
from .settings import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, RenderSettings

# Note: integrator and renderer are NOT imported here. They declare Taichi
# fields at import time and pull in the scene and camera modules.

__all__ = [
    # Ray and vectors
    "Ray",
    "vec3",
    "make_ray",
    "ray_at",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick",
    # Random numbers
    "MAX_REJECTION_TRIALS",
    "split_seed",
    "rng_seed",
    "rng_seed_task",
    "rng_next_u32",
    "rng_next_float",
    "random_in_unit_sphere",
    "random_in_unit_disk",
    # Settings
    "RenderSettings",
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
]
