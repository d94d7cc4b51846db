"""Material records shared by scene authoring and the scatter kernels.

Materials form a closed set of three variants. On the Python side each
variant is a frozen dataclass used to author scenes; on the kernel side all
variants share one fixed-layout record (kind, albedo, fuzz, ref_idx) so a
single switch on ``MaterialType`` dispatches scattering.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Union

import numpy as np

Color = tuple[float, float, float]


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Stored in the kind slot of every material record and used by the
    integrator to pick the scattering function.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Fixed-layout material record, one row per unique material in a scene
MATERIAL_DTYPE = np.dtype(
    [
        ("kind", "<i4"),
        ("albedo", "<f4", (3,)),
        ("fuzz", "<f4"),
        ("ref_idx", "<f4"),
    ]
)


def _check_color(name: str, color: Color) -> Color:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    return (float(color[0]), float(color[1]), float(color[2]))


@dataclass(frozen=True)
class Lambertian:
    """Ideal diffuse material.

    Attributes:
        albedo: Diffuse reflectance (RGB).
    """

    albedo: Color

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", _check_color("albedo", self.albedo))

    @property
    def kind(self) -> MaterialType:
        return MaterialType.LAMBERTIAN

    def to_dict(self) -> dict[str, Any]:
        return {"type": "lambertian", "albedo": list(self.albedo)}


@dataclass(frozen=True)
class Metal:
    """Specular metal with optional fuzz.

    Attributes:
        albedo: Reflective tint (RGB).
        fuzz: Roughness in [0, 1]. Values of 1 or more are clamped to 1.
    """

    albedo: Color
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", _check_color("albedo", self.albedo))
        if self.fuzz < 0.0:
            raise ValueError(f"Fuzz = {self.fuzz} is negative")
        object.__setattr__(self, "fuzz", min(float(self.fuzz), 1.0))

    @property
    def kind(self) -> MaterialType:
        return MaterialType.METAL

    def to_dict(self) -> dict[str, Any]:
        return {"type": "metal", "albedo": list(self.albedo), "fuzz": self.fuzz}


@dataclass(frozen=True)
class Dielectric:
    """Clear dielectric (glass, water).

    Attributes:
        ref_idx: Index of refraction, must be positive. Glass is 1.5.
    """

    ref_idx: float = 1.5

    def __post_init__(self) -> None:
        if self.ref_idx <= 0.0:
            raise ValueError(f"Index of refraction = {self.ref_idx} must be positive")
        object.__setattr__(self, "ref_idx", float(self.ref_idx))

    @property
    def kind(self) -> MaterialType:
        return MaterialType.DIELECTRIC

    def to_dict(self) -> dict[str, Any]:
        return {"type": "dielectric", "ref_idx": self.ref_idx}


Material = Union[Lambertian, Metal, Dielectric]


def material_from_dict(data: dict[str, Any]) -> Material:
    """Rebuild a material from the output of its ``to_dict``.

    Raises:
        ValueError: If the material type is unknown.
    """
    mat_type = data.get("type")
    if mat_type == "lambertian":
        return Lambertian(albedo=tuple(data["albedo"]))
    if mat_type == "metal":
        return Metal(albedo=tuple(data["albedo"]), fuzz=data.get("fuzz", 0.0))
    if mat_type == "dielectric":
        return Dielectric(ref_idx=data.get("ref_idx", 1.5))
    raise ValueError(f"Unknown material type: {mat_type!r}")


def material_to_record(material: Material) -> np.void:
    """Pack a material into a ``MATERIAL_DTYPE`` record.

    Unused slots are zero except ``ref_idx``, which defaults to 1.
    """
    record = np.zeros((), dtype=MATERIAL_DTYPE)
    record["kind"] = int(material.kind)
    record["ref_idx"] = 1.0
    if isinstance(material, (Lambertian, Metal)):
        record["albedo"] = material.albedo
    if isinstance(material, Metal):
        record["fuzz"] = material.fuzz
    if isinstance(material, Dielectric):
        record["ref_idx"] = material.ref_idx
    return record[()]
