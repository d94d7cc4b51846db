"""Unit tests for the sphere primitive.

Tests cover:
- Python-side Sphere validation and serialization
- Ray-sphere intersection (hit, miss, inside, behind, interval bounds)
- Hit normals, including inward normals for negative radii
"""

import pytest
import taichi as ti


class TestSphereRecord:
    """Tests for the Python-side Sphere dataclass."""

    def test_sphere_stores_floats(self):
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Lambertian

        sphere = Sphere((0, 1, 2), 3, Lambertian((0.5, 0.5, 0.5)))
        assert sphere.center == (0.0, 1.0, 2.0)
        assert sphere.radius == 3.0
        assert isinstance(sphere.radius, float)

    def test_zero_radius_rejected(self):
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Lambertian

        with pytest.raises(ValueError):
            Sphere((0.0, 0.0, 0.0), 0.0, Lambertian((0.5, 0.5, 0.5)))

    def test_bad_center_rejected(self):
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Lambertian

        with pytest.raises(ValueError):
            Sphere((0.0, 0.0), 1.0, Lambertian((0.5, 0.5, 0.5)))

    def test_negative_radius_allowed(self):
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Dielectric

        sphere = Sphere((0.0, 1.0, 0.0), -0.45, Dielectric(1.5))
        assert sphere.radius == -0.45

    def test_dict_round_trip(self):
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.material import Metal

        sphere = Sphere((1.0, 2.0, 3.0), 0.5, Metal((0.8, 0.6, 0.2), fuzz=0.3))
        assert Sphere.from_dict(sphere.to_dict()) == sphere


def _run_hit(origin, direction, center, radius, t_min=0.001, t_max=1e30):
    """Run hit_sphere in a kernel and return (hit, t, point, normal)."""
    from src.pathtracer.geometry.sphere import hit_sphere

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        rec = hit_sphere(
            ti.math.vec3(origin[0], origin[1], origin[2]),
            ti.math.vec3(direction[0], direction[1], direction[2]),
            ti.math.vec3(center[0], center[1], center[2]),
            radius,
            t_min,
            t_max,
        )
        hit[None] = rec.hit
        t[None] = rec.t
        point[None] = rec.point
        normal[None] = rec.normal

    test_kernel()
    return hit[None], t[None], point[None], normal[None]


class TestHitSphere:
    """Tests for ray-sphere intersection."""

    def test_hit_front_face(self):
        """Ray from origin toward a sphere at z = -1 hits at t = 0.5."""
        hit, t, point, normal = _run_hit((0, 0, 0), (0, 0, -1), (0, 0, -1), 0.5)
        assert hit == 1
        assert t == pytest.approx(0.5)
        assert point[2] == pytest.approx(-0.5)
        assert normal[0] == pytest.approx(0.0)
        assert normal[1] == pytest.approx(0.0)
        assert normal[2] == pytest.approx(1.0)

    def test_hit_with_unnormalized_direction(self):
        """t is measured in units of the direction vector."""
        hit, t, point, _ = _run_hit((0, 0, 0), (0, 0, -2), (0, 0, -1), 0.5)
        assert hit == 1
        assert t == pytest.approx(0.25)
        assert point[2] == pytest.approx(-0.5)

    def test_miss(self):
        hit, _, _, _ = _run_hit((0, 0, 0), (0, 1, 0), (0, 0, -1), 0.5)
        assert hit == 0

    def test_sphere_behind_ray(self):
        hit, _, _, _ = _run_hit((0, 0, 0), (0, 0, 1), (0, 0, -1), 0.5)
        assert hit == 0

    def test_origin_inside_uses_far_root(self):
        """From the center, only the larger root lies in the interval."""
        hit, t, _, normal = _run_hit((0, 0, -1), (0, 0, -1), (0, 0, -1), 0.5)
        assert hit == 1
        assert t == pytest.approx(0.5)
        # Outward normal, not flipped toward the ray
        assert normal[2] == pytest.approx(-1.0)

    def test_tangent_ray_misses(self):
        """A zero discriminant is not a hit."""
        hit, _, _, _ = _run_hit((0.5, 0, 0), (0, 0, -1), (0, 0, -1), 0.5)
        assert hit == 0

    def test_t_max_excludes_hit(self):
        hit, _, _, _ = _run_hit((0, 0, 0), (0, 0, -1), (0, 0, -1), 0.5, t_max=0.4)
        assert hit == 0

    def test_t_min_skips_near_root(self):
        hit, t, _, _ = _run_hit((0, 0, 0), (0, 0, -1), (0, 0, -1), 0.5, t_min=0.6)
        assert hit == 1
        assert t == pytest.approx(1.5)

    def test_negative_radius_flips_normal(self):
        hit, t, _, normal = _run_hit((0, 0, 0), (0, 0, -1), (0, 0, -1), -0.5)
        assert hit == 1
        assert t == pytest.approx(0.5)
        assert normal[2] == pytest.approx(-1.0)

    def test_normal_is_unit_length(self):
        hit, _, _, normal = _run_hit((0.2, 0.3, 0), (0, 0, -1), (0, 0, -3), 2.0)
        assert hit == 1
        length_sq = normal[0] ** 2 + normal[1] ** 2 + normal[2] ** 2
        assert length_sq == pytest.approx(1.0, abs=1e-5)
