"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass and the vector algebra used by every
other part of the engine: dot/cross products, normalization, reflection,
refraction and Schlick's Fresnel approximation. All functions are Taichi
functions and must be called from within kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.ray import Ray, ray_at, vec3
    >>> @ti.kernel
    ... def probe() -> vec3:
    ...     ray = Ray(origin=vec3(0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to
            be unit length; scattered and camera rays generally are not.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(tm.dot(v, v))


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v. A zero-length input
        returns the zero vector instead of dividing by zero.
    """
    len_sq = tm.dot(v, v)
    result = vec3(0.0, 0.0, 0.0)
    if len_sq > 0.0:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 * dot(v, n) * n. The normal should be unit length; its
    sign does not matter.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal.

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, ni_over_nt: ti.f32):
    """Refract an incident vector through a surface using Snell's law.

    The incident direction is normalized first, so callers may pass
    non-unit ray directions.

    Args:
        incident: The incoming direction vector.
        normal: The unit surface normal on the side the ray arrives from.
        ni_over_nt: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        A tuple of (did_refract, refracted) where:
        - did_refract: 1 if a refracted ray exists, 0 on total internal
          reflection.
        - refracted: The refracted direction, or the zero vector on total
          internal reflection.
    """
    uv = normalize(incident)
    dt = tm.dot(uv, normal)
    discriminant = 1.0 - ni_over_nt * ni_over_nt * (1.0 - dt * dt)

    did_refract = 0
    refracted = vec3(0.0, 0.0, 0.0)
    if discriminant > 0.0:
        did_refract = 1
        refracted = ni_over_nt * (uv - normal * dt) - normal * ti.sqrt(discriminant)
    return did_refract, refracted


@ti.func
def schlick(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Index of refraction of the material.

    Returns:
        The approximate probability that the ray is reflected.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
