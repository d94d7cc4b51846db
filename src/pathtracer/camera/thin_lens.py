"""Thin-lens camera model with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits on the focus plane, focus_dist in front of the camera.
Rays start from a random point on a lens disk of radius aperture / 2 and pass
through the viewport point, so geometry on the focus plane is sharp and
everything else is blurred. An aperture of 0 gives a pinhole camera.

The frame is computed once on the Python side with NumPy and stored in Taichi
fields for the kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
    >>> camera = ThinLensCamera(
    ...     lookfrom=(12.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.5, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=2.0,
    ...     aperture=0.1,
    ...     focus_dist=12.3,
    ... )
    >>> setup_camera(camera)
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathtracer.core.rng import random_in_unit_disk

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Fixed-layout camera record for buffer-based consumers
CAMERA_DTYPE = np.dtype(
    [
        ("origin", "<f4", (3,)),
        ("lower_left_corner", "<f4", (3,)),
        ("horizontal", "<f4", (3,)),
        ("vertical", "<f4", (3,)),
        ("u", "<f4", (3,)),
        ("v", "<f4", (3,)),
        ("w", "<f4", (3,)),
        ("lens_radius", "<f4"),
    ]
)

_FRAME_VECTORS = ("origin", "lower_left_corner", "horizontal", "vertical", "u", "v", "w")


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class ThinLensCamera:
    """Configuration for a thin-lens (depth of field) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 disables depth of field.
        focus_dist: Distance from the camera to the plane in focus.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    aperture: float = 0.0
    focus_dist: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov = {self.vfov} must be in (0, 180) degrees")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive")
        if self.aperture < 0.0:
            raise ValueError(f"aperture = {self.aperture} must be non-negative")
        if self.focus_dist <= 0.0:
            raise ValueError(f"focus_dist = {self.focus_dist} must be positive")

        view = np.subtract(self.lookfrom, self.lookat, dtype=np.float64)
        if np.linalg.norm(view) == 0.0:
            raise ValueError("lookfrom and lookat must be different points")
        if np.linalg.norm(np.cross(np.asarray(self.vup, dtype=np.float64), view)) == 0.0:
            raise ValueError("vup must not be parallel to the view direction")

    @property
    def lens_radius(self) -> float:
        return self.aperture / 2.0


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport on the focus plane
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())

_camera_initialized = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def compute_camera_frame(camera: ThinLensCamera) -> dict[str, np.ndarray]:
    """Compute the camera basis and focus-plane viewport.

    Args:
        camera: Camera configuration.

    Returns:
        Dictionary with float64 vectors origin, lower_left_corner,
        horizontal, vertical, u, v, w and the scalar lens_radius.
    """
    theta = math.radians(camera.vfov)
    half_height = math.tan(theta / 2.0)
    half_width = camera.aspect_ratio * half_height
    focus_dist = camera.focus_dist

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w = w / np.linalg.norm(w)

    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    v = np.cross(w, u)

    lower_left = (
        lookfrom
        - half_width * focus_dist * u
        - half_height * focus_dist * v
        - focus_dist * w
    )

    return {
        "origin": lookfrom,
        "lower_left_corner": lower_left,
        "horizontal": 2.0 * half_width * focus_dist * u,
        "vertical": 2.0 * half_height * focus_dist * v,
        "u": u,
        "v": v,
        "w": w,
        "lens_radius": np.float64(camera.lens_radius),
    }


def camera_to_record(camera: ThinLensCamera) -> np.void:
    """Pack the camera frame into a ``CAMERA_DTYPE`` record."""
    frame = compute_camera_frame(camera)
    record = np.zeros((), dtype=CAMERA_DTYPE)
    for name in _FRAME_VECTORS:
        record[name] = frame[name]
    record["lens_radius"] = frame["lens_radius"]
    return record[()]


def setup_camera(camera: ThinLensCamera) -> None:
    """Initialize the camera fields from a configuration.

    Must be called from Python (not from within a Taichi kernel) before
    rendering.

    Args:
        camera: Camera configuration.
    """
    frame = compute_camera_frame(camera)

    _camera_origin[None] = frame["origin"].tolist()
    _camera_u[None] = frame["u"].tolist()
    _camera_v[None] = frame["v"].tolist()
    _camera_w[None] = frame["w"].tolist()
    _viewport_horizontal[None] = frame["horizontal"].tolist()
    _viewport_vertical[None] = frame["vertical"].tolist()
    _lower_left_corner[None] = frame["lower_left_corner"].tolist()
    _lens_radius[None] = float(frame["lens_radius"])
    _camera_initialized[None] = 1

    logger.debug(
        "Camera at %s looking at %s (vfov=%.1f, aperture=%.3f, focus_dist=%.3f)",
        camera.lookfrom,
        camera.lookat,
        camera.vfov,
        camera.aperture,
        camera.focus_dist,
    )


def is_camera_initialized() -> bool:
    """Check whether setup_camera() has been called."""
    return bool(_camera_initialized[None])


def reset_camera() -> None:
    """Mark the camera as not set up. Rendering then raises until setup_camera()."""
    _camera_initialized[None] = 0


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, state: tm.uvec4):
    """Generate a depth-of-field ray through viewport coordinates (s, t).

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    Args:
        s: Horizontal coordinate.
        t: Vertical coordinate.
        state: The task's generator state, used for the lens sample.

    Returns:
        A tuple of (state, origin, direction). The direction is not
        normalized.
    """
    new_state, disk = random_in_unit_disk(state)
    rd = _lens_radius[None] * disk
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None]
    direction = (
        _lower_left_corner[None]
        + s * _viewport_horizontal[None]
        + t * _viewport_vertical[None]
        - origin
        - offset
    )
    return new_state, origin + offset, direction


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius as stored in the fields.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info: dict[str, tuple[float, float, float] | float] = {}
    for name, field in fields.items():
        vec = field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    info["lens_radius"] = float(_lens_radius[None])
    return info
