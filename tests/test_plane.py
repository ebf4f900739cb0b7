"""Unit tests for the infinite plane primitive."""

import pytest
import taichi as ti

from phoebe.core.errors import DegenerateVectorError


def _back_wall():
    from phoebe.geometry.plane import Plane
    from phoebe.materials.lambertian import Lambertian

    return Plane((0.0, 0.0, -20.0), (0.0, 0.0, 1.0), Lambertian((0.8, 0.8, 0.8)))


class TestPlaneIntersection:
    def test_head_on_hit(self):
        from phoebe.core.ray import HostRay

        t = _back_wall().intersect(HostRay.create((0, 0, 0), (0, 0, -1)))
        assert t == pytest.approx(20.0, abs=1e-3)

    def test_hit_from_behind(self):
        from phoebe.core.ray import HostRay

        t = _back_wall().intersect(HostRay.create((0, 0, -30), (0, 0, 1)))
        assert t == pytest.approx(10.0, abs=1e-3)

    def test_parallel_ray_misses(self):
        from phoebe.core.ray import HostRay

        assert _back_wall().intersect(HostRay.create((0, 0, 0), (1, 0, 0))) is None

    def test_plane_behind_ray_misses(self):
        from phoebe.core.ray import HostRay

        assert _back_wall().intersect(HostRay.create((0, 0, 0), (0, 0, 1))) is None

    def test_oblique_hit(self):
        from phoebe.core.ray import HostRay

        ray = HostRay.create((0, 0, 0), (0, 1, -1))
        t = _back_wall().intersect(ray)
        assert t == pytest.approx(20.0, abs=1e-3)
        assert ray.at(t)[2] == pytest.approx(-20.0, abs=1e-3)

    def test_kernel_hit_plane(self):
        from phoebe.geometry.plane import PlaneShape, hit_plane, vec3

        hit = ti.field(dtype=ti.i32, shape=2)
        t_val = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            floor = PlaneShape(point=vec3(0.0, -10.0, 0.0), normal=vec3(0.0, 1.0, 0.0))
            did_hit, t = hit_plane(vec3(0.0, 0.0, 0.0), vec3(0.0, -1.0, 0.0), floor, 1e-4, 1e10)
            hit[0] = did_hit
            t_val[None] = t
            did_hit_parallel, _ = hit_plane(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0), floor, 1e-4, 1e10)
            hit[1] = did_hit_parallel

        test_kernel()
        assert hit[0] == 1
        assert t_val[None] == pytest.approx(10.0, abs=1e-4)
        assert hit[1] == 0


class TestPlaneHost:
    def test_normal_is_normalized(self):
        from phoebe.geometry.plane import Plane
        from phoebe.materials.lambertian import Lambertian

        plane = Plane((0, 0, 0), (0, 5, 0), Lambertian((0.5, 0.5, 0.5)))
        assert plane.normal == pytest.approx((0.0, 1.0, 0.0))
        assert plane.normal_at((3.0, 0.0, -2.0)) == plane.normal

    def test_zero_normal_raises(self):
        from phoebe.geometry.plane import Plane
        from phoebe.materials.lambertian import Lambertian

        with pytest.raises(DegenerateVectorError):
            Plane((0, 0, 0), (0, 0, 0), Lambertian((0.5, 0.5, 0.5)))

    def test_plane_is_unbounded(self):
        assert _back_wall().bounding_box() is None

    def test_to_dict(self):
        data = _back_wall().to_dict()
        assert data["type"] == "plane"
        assert data["point"] == [0.0, 0.0, -20.0]
        assert data["normal"] == [0.0, 0.0, 1.0]
