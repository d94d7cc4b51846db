"""Geometry module for the sphere primitive.

Components:
    sphere: Sphere record, hit record and ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) returning a HitRecord:
    rec = hit_sphere(origin, direction, center, radius, t_min, t_max)
"""

from .sphere import SPHERE_DTYPE, HitRecord, Sphere, hit_sphere, make_miss_record

__all__ = [
    "Sphere",
    "HitRecord",
    "SPHERE_DTYPE",
    "hit_sphere",
    "make_miss_record",
]
