"""Sphere primitive and ray-sphere intersection.

This module provides the Python-side Sphere record used to author scenes, the
HitRecord returned by intersection queries, and the intersection function.

The ray-sphere intersection is found by solving:
    |origin + t * direction - center|^2 = radius^2

which gives the quadratic a*t^2 + 2*b*t + c = 0 with:
    a = dot(direction, direction)
    b = dot(oc, direction)  (half of the traditional b)
    c = dot(oc, oc) - radius^2
    oc = origin - center

The smaller root is tested first, then the larger one.

A negative radius is allowed: the geometry is unchanged but the normal
(p - center) / radius points inward, which is how hollow glass shells are
modelled.

Example:
    >>> from src.pathtracer.geometry.sphere import Sphere
    >>> from src.pathtracer.materials import Lambertian
    >>> sphere = Sphere(center=(0.0, 0.0, -1.0), radius=0.5, material=Lambertian((0.8, 0.3, 0.3)))
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathtracer.materials.material import Material, material_from_dict

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Fixed-layout sphere record, material_id indexes the scene's material table
SPHERE_DTYPE = np.dtype(
    [
        ("center", "<f4", (3,)),
        ("radius", "<f4"),
        ("material_id", "<i4"),
    ]
)


@dataclass(frozen=True)
class Sphere:
    """A sphere with its material.

    Attributes:
        center: The center point of the sphere (x, y, z).
        radius: The radius. Negative values flip the normal inward.
        material: The sphere's material.
    """

    center: tuple[float, float, float]
    radius: float
    material: Material

    def __post_init__(self) -> None:
        if len(self.center) != 3:
            raise ValueError(f"center must have 3 components, got {len(self.center)}")
        if self.radius == 0.0:
            raise ValueError("Sphere radius must be non-zero")
        object.__setattr__(self, "center", tuple(float(c) for c in self.center))
        object.__setattr__(self, "radius", float(self.radius))

    def to_dict(self) -> dict[str, Any]:
        return {
            "center": list(self.center),
            "radius": self.radius,
            "material": self.material.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Sphere":
        return cls(
            center=tuple(data["center"]),
            radius=data["radius"],
            material=material_from_dict(data["material"]),
        )


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The world-space intersection point. Only valid if hit == 1.
        normal: The unit surface normal, (point - center) / radius. It is
            not flipped toward the incoming ray; materials handle
            orientation. Only valid if hit == 1.
        material_id: Index of the hit sphere's material, -1 on a miss or
            when the record comes straight from hit_sphere.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    radius: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection inside the open interval (t_min, t_max).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        center: The sphere center.
        radius: The sphere radius (may be negative).
        t_min: Lower bound (exclusive) for an accepted root.
        t_max: Upper bound (exclusive) for an accepted root.

    Returns:
        A HitRecord; check the hit field to determine if an intersection
        occurred.
    """
    oc = ray_origin - center
    a = tm.dot(ray_direction, ray_direction)
    b = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - radius * radius
    discriminant = b * b - a * c

    did_hit = 0
    hit_t = 0.0
    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t = (-b - sqrt_d) / a
        if t > t_min and t < t_max:
            did_hit = 1
            hit_t = t
        else:
            t = (-b + sqrt_d) / a
            if t > t_min and t < t_max:
                did_hit = 1
                hit_t = t

    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    if did_hit == 1:
        hit_point = ray_origin + hit_t * ray_direction
        hit_normal = (hit_point - center) / radius

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        material_id=-1,
    )
