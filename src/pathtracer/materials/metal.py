"""Metal (specular reflective) material implementation.

This module implements the metal BSDF, which models specular reflection with
optional fuzz. Perfect metals (fuzz=0) produce mirror-like reflections, while
fuzzier metals perturb the reflected ray by a random offset inside a sphere
of radius fuzz.

The reflection formula is:
    R = I - 2(I . N)N

where I is the unit incident direction and N is the surface normal.

Example:
    >>> # Within a Taichi kernel:
    >>> # state, attenuation, direction, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import normalize, reflect
from src.pathtracer.core.rng import random_in_unit_sphere

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: tm.uvec4,
):
    """Compute the scattered ray direction for a metal surface.

    Reflects the unit incident direction about the normal and adds a fuzz
    offset. The ray is absorbed if the scattered direction does not point
    above the surface (dot with the normal <= 0).

    Args:
        albedo: The reflective color (RGB).
        fuzz: The surface fuzz in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any length).
        normal: The outward unit surface normal.
        state: The task's generator state.

    Returns:
        A tuple of (state, attenuation, scattered_direction, did_scatter):
        - attenuation: The albedo.
        - scattered_direction: Reflected direction plus fuzz offset
          (not normalized).
        - did_scatter: 1 if the ray leaves above the surface, 0 if absorbed.
    """
    reflected = reflect(normalize(incident_direction), normal)

    new_state, offset = random_in_unit_sphere(state)
    scattered_direction = reflected + fuzz * offset

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return new_state, albedo, scattered_direction, did_scatter
