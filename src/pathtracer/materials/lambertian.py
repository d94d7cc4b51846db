"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters incoming light in a random direction around the
surface normal: the scattered ray points from the hit point toward a random
point inside the unit sphere tangent to the surface at that point. This
produces a cosine-like distribution of bounce directions.

Example:
    >>> # Within a Taichi kernel:
    >>> # state, attenuation, direction, did_scatter = scatter_lambertian(
    >>> #     albedo, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.rng import random_in_unit_sphere

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: tm.uvec4):
    """Sample a scattered direction for a Lambertian surface.

    The target point is hit.p + normal + random_in_unit_sphere(), so the
    direction relative to the hit point is normal + random offset. The
    direction is not normalized.

    Lambertian surfaces never absorb a ray; the attenuation is the albedo.

    Args:
        albedo: The diffuse reflectance color (RGB).
        normal: The outward unit surface normal at the hit point.
        state: The task's generator state.

    Returns:
        A tuple of (state, attenuation, scattered_direction, did_scatter)
        where did_scatter is always 1.
    """
    new_state, offset = random_in_unit_sphere(state)
    scattered_direction = normal + offset
    return new_state, albedo, scattered_direction, 1
