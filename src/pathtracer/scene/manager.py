"""Immutable scene container and its fixed-layout serialization.

A Scene is an ordered tuple of spheres built once before rendering. It knows
how to flatten itself into the two fixed-layout record tables the kernels
read: one row per sphere and one row per unique material. Equal materials
(frozen dataclasses compare by value) share a single material row.

Example:
    >>> from src.pathtracer.scene.manager import Scene
    >>> from src.pathtracer.geometry.sphere import Sphere
    >>> from src.pathtracer.materials import Lambertian, Metal
    >>> scene = Scene([
    ...     Sphere((0, -100.5, -1), 100, Lambertian((0.8, 0.8, 0.0))),
    ...     Sphere((0, 0, -1), 0.5, Metal((0.8, 0.6, 0.2), fuzz=0.3)),
    ... ])
    >>> spheres, materials = scene.to_records()
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import numpy.typing as npt

from src.pathtracer.geometry.sphere import SPHERE_DTYPE, Sphere
from src.pathtracer.materials.material import (
    MATERIAL_DTYPE,
    Material,
    material_to_record,
)


@dataclass(frozen=True, init=False)
class Scene:
    """Ordered, read-only collection of spheres.

    Attributes:
        spheres: The spheres in scan order.
    """

    spheres: tuple[Sphere, ...] = field(default_factory=tuple)

    def __init__(self, spheres: Iterable[Sphere] = ()) -> None:
        spheres = tuple(spheres)
        for index, sphere in enumerate(spheres):
            if not isinstance(sphere, Sphere):
                raise TypeError(f"Scene entry {index} is not a Sphere: {sphere!r}")
        object.__setattr__(self, "spheres", spheres)

    def __len__(self) -> int:
        return len(self.spheres)

    def __iter__(self) -> Iterator[Sphere]:
        return iter(self.spheres)

    def materials(self) -> list[Material]:
        """Unique materials in order of first use."""
        unique: dict[Material, None] = {}
        for sphere in self.spheres:
            unique.setdefault(sphere.material, None)
        return list(unique)

    def to_records(
        self,
    ) -> tuple[npt.NDArray[np.void], npt.NDArray[np.void]]:
        """Flatten the scene into fixed-layout record tables.

        Returns:
            Tuple of (sphere_records, material_records) with dtypes
            SPHERE_DTYPE and MATERIAL_DTYPE. Each sphere's material_id
            indexes material_records.
        """
        materials = self.materials()
        material_ids = {material: index for index, material in enumerate(materials)}

        material_records = np.zeros(len(materials), dtype=MATERIAL_DTYPE)
        for index, material in enumerate(materials):
            material_records[index] = material_to_record(material)

        sphere_records = np.zeros(len(self.spheres), dtype=SPHERE_DTYPE)
        for index, sphere in enumerate(self.spheres):
            sphere_records["center"][index] = sphere.center
            sphere_records["radius"][index] = sphere.radius
            sphere_records["material_id"][index] = material_ids[sphere.material]

        return sphere_records, material_records

    def to_dict(self) -> dict[str, Any]:
        """Serialize the scene to plain Python types."""
        return {"spheres": [sphere.to_dict() for sphere in self.spheres]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Scene:
        """Rebuild a scene from the output of ``to_dict``."""
        return cls(Sphere.from_dict(entry) for entry in data.get("spheres", []))
