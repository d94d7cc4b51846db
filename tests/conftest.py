"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu)
    yield


@pytest.fixture(autouse=True)
def clear_render_state():
    """Clear scene, camera and image buffer around each test.

    This ensures tests are isolated from each other.
    """
    # Import here so the field-declaring modules load after ti.init()
    from src.pathtracer.camera.thin_lens import reset_camera
    from src.pathtracer.core.integrator import clear_render_target
    from src.pathtracer.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        reset_camera()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def single_sphere_scene():
    """A unit-radius grey Lambertian sphere centered at (0, 0, -2)."""
    from src.pathtracer.geometry.sphere import Sphere
    from src.pathtracer.materials.material import Lambertian
    from src.pathtracer.scene.manager import Scene

    return Scene([Sphere((0.0, 0.0, -2.0), 1.0, Lambertian((0.5, 0.5, 0.5)))])


@pytest.fixture
def forward_camera():
    """Pinhole camera at the origin looking down -z with a square image."""
    from src.pathtracer.camera.thin_lens import ThinLensCamera

    return ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=1.0,
    )
