"""Tests for the radiance integrator and pixel sampler.

This module tests the core rendering functionality including:
- Render target setup and management
- Sky gradient background
- Material dispatch and path termination
- Gamma correction without clamping
- Determinism and row-batch independence
- Monte Carlo convergence

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import math

import numpy as np
import pytest
import taichi as ti


def _load(scene, camera, width=16, height=16):
    from src.pathtracer.camera.thin_lens import setup_camera
    from src.pathtracer.core.integrator import setup_render_target
    from src.pathtracer.scene.intersection import load_scene

    load_scene(scene)
    setup_camera(camera)
    setup_render_target(width, height)


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_render_target_dimensions(self):
        from src.pathtracer.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(64, 48)
        assert get_image_dimensions() == (64, 48)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, -1), (4096, 10), (10, 4096)])
    def test_invalid_dimensions_rejected(self, width, height):
        from src.pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_image_shape_is_rows_by_columns(self):
        from src.pathtracer.core.integrator import get_image_numpy, setup_render_target

        setup_render_target(20, 10)
        image = get_image_numpy()
        assert image.shape == (10, 20, 3)
        assert image.dtype == np.float32
        assert (image == 0.0).all()

    def test_render_without_camera_raises(self, single_sphere_scene):
        from src.pathtracer.core.integrator import render_image, setup_render_target
        from src.pathtracer.scene.intersection import load_scene

        load_scene(single_sphere_scene)
        setup_render_target(8, 8)
        with pytest.raises(RuntimeError):
            render_image(num_samples=1)

    def test_invalid_row_range_rejected(self, single_sphere_scene, forward_camera):
        from src.pathtracer.core.integrator import render_rows

        _load(single_sphere_scene, forward_camera, 8, 8)
        with pytest.raises(ValueError):
            render_rows(4, 9, num_samples=1)
        with pytest.raises(ValueError):
            render_rows(5, 4, num_samples=1)

    def test_invalid_sample_count_rejected(self, single_sphere_scene, forward_camera):
        from src.pathtracer.core.integrator import render_image

        _load(single_sphere_scene, forward_camera, 8, 8)
        with pytest.raises(ValueError):
            render_image(num_samples=0)


class TestSkyColor:
    """Tests for the background gradient."""

    def test_sky_straight_up_is_blue(self):
        from src.pathtracer.core.integrator import trace_ray

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert color == pytest.approx((0.5, 0.7, 1.0), abs=1e-6)

    def test_sky_straight_down_is_white(self):
        from src.pathtracer.core.integrator import trace_ray

        color = trace_ray((0.0, 0.0, 0.0), (0.0, -1.0, 0.0))
        assert color == pytest.approx((1.0, 1.0, 1.0), abs=1e-6)

    def test_sky_horizon_is_midpoint(self):
        from src.pathtracer.core.integrator import trace_ray

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -5.0))
        assert color == pytest.approx((0.75, 0.85, 1.0), abs=1e-6)

    def test_sky_depends_only_on_direction(self):
        from src.pathtracer.core.integrator import sky_color

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = sky_color(ti.math.vec3(1.0, 1.0, 0.0))
            result[1] = sky_color(ti.math.vec3(3.0, 3.0, 0.0))

        test_kernel()
        colors = result.to_numpy()
        np.testing.assert_allclose(colors[0], colors[1], atol=1e-6)


class TestPathTermination:
    """Tests for material dispatch and termination."""

    def test_mirror_reflects_sky(self):
        """A perfect mirror facing up shows the sky tinted by its albedo."""
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Metal
        from src.pathtracer.scene.intersection import load_scene
        from src.pathtracer.scene.manager import Scene

        load_scene(Scene([Sphere((0.0, -1000.0, 0.0), 1000.0, Metal((0.8, 0.6, 0.4), fuzz=0.0))]))
        color = trace_ray((0.0, 1.0, 0.0), (0.0, -1.0, 0.0))
        # Reflected straight up: 0.8 * (0.5, 0.7, 1.0) and so on
        assert color == pytest.approx((0.4, 0.42, 0.4), abs=1e-5)

    def test_metal_absorbs_inside_ray(self):
        """A ray leaving a metal sphere from inside is absorbed."""
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Metal
        from src.pathtracer.scene.intersection import load_scene
        from src.pathtracer.scene.manager import Scene

        load_scene(Scene([Sphere((0.0, 0.0, 0.0), 1.0, Metal((0.9, 0.9, 0.9)))]))
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert color == (0.0, 0.0, 0.0)

    def test_ray_trapped_inside_sphere_goes_black(self):
        """Bouncing forever hits the depth cap and returns black."""
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Lambertian
        from src.pathtracer.scene.intersection import load_scene
        from src.pathtracer.scene.manager import Scene

        # Negative radius turns the normals inward, so no path ever escapes
        load_scene(Scene([Sphere((0.0, 0.0, 0.0), -10.0, Lambertian((1.0, 1.0, 1.0)))]))
        for seed in range(4):
            assert trace_ray((0.0, 0.0, 0.0), (0.3, 0.2, -1.0), seed=seed) == (0.0, 0.0, 0.0)

    def test_white_glass_passes_sky(self):
        """Glass never absorbs, so a ray through it still sees some sky."""
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Dielectric
        from src.pathtracer.scene.intersection import load_scene
        from src.pathtracer.scene.manager import Scene

        load_scene(Scene([Sphere((0.0, 0.0, -2.0), 0.5, Dielectric(1.5))]))
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert min(color) > 0.4

    def test_hollow_and_dense_glass_stay_bounded(self):
        """Glass shells and high indices keep radiance finite and within the sky range."""
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Dielectric
        from src.pathtracer.scene.intersection import load_scene
        from src.pathtracer.scene.manager import Scene

        load_scene(
            Scene(
                [
                    Sphere((-0.6, 0.0, -2.0), 0.5, Dielectric(1.5)),
                    Sphere((-0.6, 0.0, -2.0), -0.45, Dielectric(1.5)),
                    Sphere((0.6, 0.0, -2.0), 0.5, Dielectric(3.0)),
                ]
            )
        )
        directions = [(-0.3, 0.0, -1.0), (-0.25, 0.1, -1.0), (0.3, 0.0, -1.0), (0.35, -0.1, -1.0)]
        for seed in range(75):
            for direction in directions:
                color = trace_ray((0.0, 0.0, 0.0), direction, seed=seed)
                assert all(math.isfinite(c) for c in color)
                assert all(0.0 <= c <= 1.0 for c in color)

    def test_lambertian_attenuates(self):
        """One diffuse bounce off a half-albedo floor halves the sky."""
        from src.pathtracer.core.integrator import trace_ray
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Lambertian
        from src.pathtracer.scene.intersection import load_scene
        from src.pathtracer.scene.manager import Scene

        load_scene(Scene([Sphere((0.0, -1000.0, 0.0), 1000.0, Lambertian((0.5, 0.5, 0.5)))]))
        color = trace_ray((0.0, 1.0, 0.0), (0.0, -1.0, 0.0))
        # Scattered ray goes upward into the sky, which is between blue and white
        assert 0.25 <= color[0] <= 0.5
        assert color[2] == pytest.approx(0.5, abs=1e-5)


class TestGammaCorrection:
    """Tests for gamma 2 correction."""

    def test_gamma_is_square_root(self):
        from src.pathtracer.core.integrator import gamma_correct

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = gamma_correct(ti.math.vec3(0.25, 1.0, 4.0))

        test_kernel()
        r = result[None]
        assert r[0] == pytest.approx(0.5)
        assert r[1] == pytest.approx(1.0)
        # No clamping in the buffer
        assert r[2] == pytest.approx(2.0)


class TestPixelSampling:
    """Tests for the per-pixel sampler."""

    def test_sky_only_pixel(self, forward_camera):
        """With an empty scene a pixel is the gamma-corrected sky."""
        from src.pathtracer.core.integrator import render_pixel
        from src.pathtracer.scene.manager import Scene

        _load(Scene(), forward_camera, 1, 1)
        color = render_pixel(0, 0, num_samples=64)
        # The single pixel spans the whole 90 degree view; sky is bluish white
        assert 0.8 < color[0] < 0.93
        assert color[2] == pytest.approx(1.0, abs=1e-5)

    def test_top_row_is_bluer_than_bottom(self, forward_camera):
        from src.pathtracer.core.integrator import get_image_numpy, render_image
        from src.pathtracer.scene.manager import Scene

        _load(Scene(), forward_camera, 8, 8)
        render_image(num_samples=4)
        image = get_image_numpy()
        # Row 0 is the top of the image
        assert image[0, 4, 0] < image[7, 4, 0]

    def test_render_is_deterministic(self, single_sphere_scene, forward_camera):
        from src.pathtracer.core.integrator import get_image_numpy, render_image

        _load(single_sphere_scene, forward_camera, 12, 12)
        render_image(num_samples=8, seed=7)
        first = get_image_numpy()
        render_image(num_samples=8, seed=7)
        second = get_image_numpy()
        np.testing.assert_array_equal(first, second)

    def test_seed_changes_image(self, single_sphere_scene, forward_camera):
        from src.pathtracer.core.integrator import get_image_numpy, render_image

        _load(single_sphere_scene, forward_camera, 12, 12)
        render_image(num_samples=4, seed=1)
        first = get_image_numpy()
        render_image(num_samples=4, seed=2)
        second = get_image_numpy()
        assert not np.array_equal(first, second)

    def test_row_batches_match_full_render(self, single_sphere_scene, forward_camera):
        from src.pathtracer.core.integrator import get_image_numpy, render_image, render_rows

        _load(single_sphere_scene, forward_camera, 10, 10)
        render_image(num_samples=4, seed=3)
        full = get_image_numpy()

        _load(single_sphere_scene, forward_camera, 10, 10)
        for start in range(0, 10, 3):
            render_rows(start, min(start + 3, 10), num_samples=4, seed=3)
        np.testing.assert_array_equal(get_image_numpy(), full)

    def test_render_pixel_matches_buffer(self, single_sphere_scene, forward_camera):
        from src.pathtracer.core.integrator import get_image_numpy, render_image, render_pixel

        _load(single_sphere_scene, forward_camera, 10, 10)
        render_image(num_samples=4, seed=5)
        image = get_image_numpy()
        color = render_pixel(3, 6, num_samples=4, seed=5)
        np.testing.assert_allclose(color, image[6, 3], atol=1e-6)

    def test_render_pixel_out_of_range(self, single_sphere_scene, forward_camera):
        from src.pathtracer.core.integrator import render_pixel

        _load(single_sphere_scene, forward_camera, 10, 10)
        with pytest.raises(ValueError):
            render_pixel(10, 0)

    def test_sphere_pixel_darker_than_sky(self, single_sphere_scene, forward_camera):
        from src.pathtracer.core.integrator import get_image_numpy, render_image

        _load(single_sphere_scene, forward_camera, 16, 16)
        render_image(num_samples=16)
        image = get_image_numpy()
        # Center pixel sees the grey sphere, corner sees sky
        assert image[8, 8].mean() < image[0, 0].mean()
        assert np.isfinite(image).all()
        assert (image >= 0.0).all()


class TestConvergence:
    """Monte Carlo error shrinks roughly as 1 / sqrt(samples)."""

    def test_error_decreases_with_samples(self, single_sphere_scene, forward_camera):
        from src.pathtracer.core.integrator import get_image_numpy, render_image

        _load(single_sphere_scene, forward_camera, 16, 16)
        render_image(num_samples=256, seed=100)
        reference = get_image_numpy()

        errors = {}
        for samples in (4, 64):
            render_image(num_samples=samples, seed=1)
            diff = get_image_numpy() - reference
            errors[samples] = math.sqrt(float(np.mean(diff**2)))

        assert errors[64] < errors[4]
        # 16x the samples should cut the error by about 4x; allow slack
        assert errors[64] < errors[4] / 2.0
