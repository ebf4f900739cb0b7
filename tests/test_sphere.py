"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside
- Ray missing sphere
- Ray starting inside sphere (far root)
- Sphere behind the ray origin
- Host-side validation, normals and bounding box
- Hit points lying on the surface for a batch of random rays
"""

import numpy as np
import pytest
import taichi as ti

from phoebe.core.errors import DegenerateGeometryError


def _sphere(center=(0.0, 0.0, -10.0), radius=3.0):
    from phoebe.geometry.sphere import Sphere
    from phoebe.materials.lambertian import Lambertian

    return Sphere(center, radius, Lambertian((0.1, 0.3, 0.7)))


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_hit_sphere_direct_hit(self):
        """Ray from z=5 toward a unit sphere at the origin hits at t=4."""
        from phoebe.geometry.sphere import SphereShape, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = SphereShape(center=vec3(0.0, 0.0, 0.0), radius=1.0)
            did_hit, t = hit_sphere(vec3(0.0, 0.0, 5.0), vec3(0.0, 0.0, -1.0), sphere, 1e-4, 1e10)
            hit[None] = did_hit
            t_val[None] = t

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 4.0) < 1e-5

    def test_center_ray_hits_at_seven(self):
        from phoebe.core.ray import HostRay

        t = _sphere().intersect(HostRay.create((0, 0, 0), (0, 0, -1)))
        assert t == pytest.approx(7.0, abs=1e-4)

    def test_miss(self):
        from phoebe.core.ray import HostRay

        assert _sphere().intersect(HostRay.create((0, 0, 0), (0, 1, 0))) is None
        assert _sphere().intersect(HostRay.create((0, 0, 0), (-1, 1, -1))) is None

    def test_sphere_behind_ray(self):
        from phoebe.core.ray import HostRay

        assert _sphere().intersect(HostRay.create((0, 0, 0), (0, 0, 1))) is None

    def test_origin_inside_returns_far_root(self):
        from phoebe.core.ray import HostRay

        t = _sphere().intersect(HostRay.create((0, 0, -10), (1, 0, 0)))
        assert t == pytest.approx(3.0, abs=1e-4)

    def test_unnormalized_direction(self):
        from phoebe.core.ray import HostRay

        t = _sphere().intersect(HostRay.create((0, 0, 0), (0, 0, -2)))
        assert t == pytest.approx(3.5, abs=1e-4)

    def test_random_hits_lie_on_surface(self):
        from phoebe.core.ray import HostRay

        sphere = _sphere(center=(1.0, -0.5, -6.0), radius=2.0)
        rng = np.random.default_rng(1234)
        hits = 0
        for _ in range(64):
            origin = rng.uniform(-1.0, 1.0, size=3)
            direction = np.array([0.0, 0.0, -1.0]) + rng.uniform(-0.5, 0.5, size=3)
            ray = HostRay.create(origin, direction)
            t = sphere.intersect(ray)
            if t is None:
                continue
            hits += 1
            assert t > 0.0
            distance = np.linalg.norm(np.asarray(ray.at(t)) - np.asarray(sphere.center))
            assert distance == pytest.approx(sphere.radius, abs=1e-3)
        assert hits > 0


class TestSphereHost:
    @pytest.mark.parametrize("radius", [0.0, -1.0, float("nan"), float("inf"), "big", None, [1.0]])
    def test_invalid_radius(self, radius):
        with pytest.raises(DegenerateGeometryError):
            _sphere(radius=radius)

    def test_normal_at(self):
        assert _sphere().normal_at((0.0, 3.0, -10.0)) == pytest.approx((0.0, 1.0, 0.0))

    def test_bounding_box(self):
        box = _sphere().bounding_box()
        assert box.min == (-3.0, -3.0, -13.0)
        assert box.max == (3.0, 3.0, -7.0)

    def test_to_dict_carries_material(self):
        data = _sphere().to_dict()
        assert data["type"] == "sphere"
        assert data["radius"] == 3.0
        assert data["material"] == {"type": "lambertian", "albedo": [0.1, 0.3, 0.7]}
