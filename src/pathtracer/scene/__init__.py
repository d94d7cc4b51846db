"""Scene module for scene description, storage and intersection.

Components:
    manager: Immutable Scene container and its fixed-layout records
    intersection: Taichi field storage and closest-hit scene query
    random_scene: Deterministic random sphere field and reference view

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere data
    - One material table row per unique material
"""

from .intersection import (
    MAX_MATERIALS,
    MAX_SPHERES,
    clear_scene,
    get_material_count,
    get_sphere_count,
    intersect_scene,
    load_scene,
)
from .manager import Scene
from .random_scene import (
    RandomSceneParams,
    create_random_scene,
    create_random_scene_camera,
    create_reference_setup,
)

__all__ = [
    # Scene container
    "Scene",
    # Field storage and intersection
    "MAX_SPHERES",
    "MAX_MATERIALS",
    "clear_scene",
    "load_scene",
    "get_sphere_count",
    "get_material_count",
    "intersect_scene",
    # Random scene
    "RandomSceneParams",
    "create_random_scene",
    "create_random_scene_camera",
    "create_reference_setup",
]
