"""Scene storage in Taichi fields and scene-level intersection.

The scene's sphere and material record tables are uploaded into preallocated
Structure-of-Arrays fields. Kernels scan every sphere linearly and keep the
closest hit; there is no acceleration structure.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.intersection import load_scene, intersect_scene
    >>> load_scene(scene)
    >>> # Use intersect_scene within a Taichi kernel
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathtracer.geometry.sphere import HitRecord, hit_sphere, make_miss_record
from src.pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of spheres and unique materials supported in the scene
MAX_SPHERES = 1024
MAX_MATERIALS = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Material storage, indexed by sphere_material_ids
material_kinds = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_fuzz = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_ref_idx = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all spheres and materials.

    Resets the counts to zero. The field data is overwritten by the next
    load_scene() call.
    """
    num_spheres[None] = 0
    num_materials[None] = 0


def _padded(values: np.ndarray, capacity: int) -> np.ndarray:
    """Pad a record column with zeros up to the field capacity."""
    out = np.zeros((capacity,) + values.shape[1:], dtype=values.dtype)
    out[: len(values)] = values
    return out


def load_scene(scene: Scene) -> None:
    """Upload a scene into the intersection fields.

    Replaces whatever scene was loaded before.

    Args:
        scene: The scene to upload.

    Raises:
        RuntimeError: If the scene has more spheres or unique materials than
            the fields can hold.
    """
    sphere_records, material_records = scene.to_records()

    if len(sphere_records) > MAX_SPHERES:
        raise RuntimeError(
            f"Scene has {len(sphere_records)} spheres, maximum is {MAX_SPHERES}"
        )
    if len(material_records) > MAX_MATERIALS:
        raise RuntimeError(
            f"Scene has {len(material_records)} materials, maximum is {MAX_MATERIALS}"
        )

    sphere_centers.from_numpy(_padded(sphere_records["center"], MAX_SPHERES))
    sphere_radii.from_numpy(_padded(sphere_records["radius"], MAX_SPHERES))
    sphere_material_ids.from_numpy(_padded(sphere_records["material_id"], MAX_SPHERES))
    num_spheres[None] = len(sphere_records)

    material_kinds.from_numpy(_padded(material_records["kind"], MAX_MATERIALS))
    material_albedos.from_numpy(_padded(material_records["albedo"], MAX_MATERIALS))
    material_fuzz.from_numpy(_padded(material_records["fuzz"], MAX_MATERIALS))
    material_ref_idx.from_numpy(_padded(material_records["ref_idx"], MAX_MATERIALS))
    num_materials[None] = len(material_records)

    logger.debug(
        "Loaded scene with %d spheres and %d materials",
        len(sphere_records),
        len(material_records),
    )


def get_sphere_count() -> int:
    """Get the number of spheres in the loaded scene."""
    return int(num_spheres[None])


def get_material_count() -> int:
    """Get the number of unique materials in the loaded scene."""
    return int(num_materials[None])


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test a ray against every sphere in the scene.

    Each sphere is tested in the interval (t_min, closest_so_far), so the
    nearest hit wins and earlier spheres win exact ties.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A HitRecord for the closest intersection with its material_id set,
        or a miss record.
    """
    closest_t = t_max
    result = make_miss_record()

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray_origin, ray_direction, sphere_centers[i], sphere_radii[i], t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            rec.material_id = sphere_material_ids[i]
            result = rec

    return result
