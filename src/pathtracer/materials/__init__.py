"""Materials module for the closed set of scattering models.

Components:
    material: Python-side material records and the fixed-layout dtype
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance

Each scatter function takes the incoming direction, the outward hit normal
and the task's generator state, and returns
(state, attenuation, scattered_direction, did_scatter).
"""

from .dielectric import reflect_probability, scatter_dielectric
from .lambertian import scatter_lambertian
from .material import (
    MATERIAL_DTYPE,
    Dielectric,
    Lambertian,
    Material,
    MaterialType,
    Metal,
    material_from_dict,
    material_to_record,
)
from .metal import scatter_metal

__all__ = [
    # Records
    "MaterialType",
    "Material",
    "Lambertian",
    "Metal",
    "Dielectric",
    "MATERIAL_DTYPE",
    "material_from_dict",
    "material_to_record",
    # Scattering
    "scatter_lambertian",
    "scatter_metal",
    "scatter_dielectric",
    "reflect_probability",
]
