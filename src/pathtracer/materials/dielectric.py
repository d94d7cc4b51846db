"""Dielectric (glass/water) material implementation.

This module implements the dielectric BSDF, which models transparent materials
like glass and water with refraction and Fresnel reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when no refracted ray exists

The hit normal always points out of the sphere, so the scatter function works
out from the sign of dot(direction, normal) whether the ray is entering or
leaving the material. The choice between reflection and refraction is made
with one uniform draw against the Schlick reflectance.

Example:
    >>> # Within a Taichi kernel:
    >>> # state, attenuation, direction, did_scatter = scatter_dielectric(
    >>> #     ref_idx, incident_dir, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import length, reflect, refract, schlick
from src.pathtracer.core.rng import rng_next_float

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def _refraction_setup(ref_idx: ti.f32, incident_direction: vec3, normal: vec3):
    """Orient the normal against the ray and compute the Schlick cosine.

    Returns:
        A tuple of (outward_normal, ni_over_nt, cosine).
    """
    d_dot_n = tm.dot(incident_direction, normal)
    inv_len = 1.0 / length(incident_direction)

    outward_normal = normal
    ni_over_nt = 1.0 / ref_idx
    cosine = -d_dot_n * inv_len
    if d_dot_n > 0.0:
        # Leaving the material
        outward_normal = -normal
        ni_over_nt = ref_idx
        cosine = ref_idx * d_dot_n * inv_len

    return outward_normal, ni_over_nt, cosine


@ti.func
def reflect_probability(ref_idx: ti.f32, incident_direction: vec3, normal: vec3) -> ti.f32:
    """Probability that a ray hitting the dielectric is reflected.

    Returns the Schlick reflectance when a refracted ray exists and 1.0 on
    total internal reflection.

    Args:
        ref_idx: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The outward unit surface normal.
    """
    outward_normal, ni_over_nt, cosine = _refraction_setup(ref_idx, incident_direction, normal)
    did_refract, _ = refract(incident_direction, outward_normal, ni_over_nt)

    probability = 1.0
    if did_refract == 1:
        probability = schlick(cosine, ref_idx)
    return probability


@ti.func
def scatter_dielectric(
    ref_idx: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: tm.uvec4,
):
    """Compute the scattered ray direction for a dielectric surface.

    Args:
        ref_idx: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The outward unit surface normal.
        state: The task's generator state.

    Returns:
        A tuple of (state, attenuation, scattered_direction, did_scatter):
        - attenuation: Always white, glass does not absorb.
        - scattered_direction: The reflected or refracted direction.
        - did_scatter: Always 1, dielectrics never absorb.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    outward_normal, ni_over_nt, cosine = _refraction_setup(ref_idx, incident_direction, normal)
    did_refract, refracted = refract(incident_direction, outward_normal, ni_over_nt)

    probability = 1.0
    if did_refract == 1:
        probability = schlick(cosine, ref_idx)

    new_state, choice = rng_next_float(state)
    scattered_direction = refracted
    if choice < probability:
        scattered_direction = reflect(incident_direction, normal)

    return new_state, attenuation, scattered_direction, 1
