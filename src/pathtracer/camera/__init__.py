"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with a thin-lens aperture (depth of field)

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    CAMERA_DTYPE,
    ThinLensCamera,
    camera_to_record,
    compute_camera_frame,
    get_camera_info,
    get_ray,
    is_camera_initialized,
    reset_camera,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "CAMERA_DTYPE",
    "compute_camera_frame",
    "camera_to_record",
    "setup_camera",
    "is_camera_initialized",
    "reset_camera",
    "get_ray",
    "get_camera_info",
]
