"""Unit tests for the Ray struct, HostRay and in-kernel vector helpers."""

import pytest
import taichi as ti

from phoebe.core.constants import RAY_EPSILON
from phoebe.core.errors import ValidationError


class TestHostRay:
    def test_create_converts_to_float_tuples(self):
        from phoebe.core.ray import HostRay

        ray = HostRay.create([0, 1, 2], (0, 0, -1))
        assert ray.origin == (0.0, 1.0, 2.0)
        assert ray.direction == (0.0, 0.0, -1.0)

    def test_at(self):
        from phoebe.core.ray import HostRay

        ray = HostRay.create((1.0, 0.0, 0.0), (0.0, 2.0, 0.0))
        assert ray.at(0.0) == (1.0, 0.0, 0.0)
        assert ray.at(2.5) == pytest.approx((1.0, 5.0, 0.0))

    def test_direction_is_not_normalized(self):
        from phoebe.core.ray import HostRay

        ray = HostRay.create((0, 0, 0), (0, 0, -5))
        assert ray.direction == (0.0, 0.0, -5.0)

    def test_rays_are_immutable(self):
        from dataclasses import FrozenInstanceError

        from phoebe.core.ray import HostRay

        ray = HostRay.create((0, 0, 0), (1, 0, 0))
        with pytest.raises(FrozenInstanceError):
            ray.origin = (1.0, 1.0, 1.0)

    def test_rejects_bad_components(self):
        from phoebe.core.ray import HostRay

        with pytest.raises(ValidationError):
            HostRay.create((0, 0), (1, 0, 0))


class TestKernelHelpers:
    def test_ray_at(self):
        from phoebe.core.ray import make_ray, ray_at, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 2.0, 3.0), vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 4.0)

        test_kernel()
        p = result[None]
        assert p[0] == pytest.approx(1.0)
        assert p[1] == pytest.approx(2.0)
        assert p[2] == pytest.approx(-1.0)

    def test_reflect(self):
        from phoebe.core.ray import reflect, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((1.0, 1.0, 0.0))

    def test_near_zero(self):
        from phoebe.core.ray import near_zero, vec3

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = near_zero(vec3(1e-9, -1e-9, 0.0))
            result[1] = near_zero(vec3(1e-9, 1e-3, 0.0))

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0

    @pytest.mark.parametrize("normal", [(0.0, 1.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.6, 0.8)])
    def test_orthonormal_basis(self, normal):
        from phoebe.core.ray import build_onb_from_normal, vec3

        tangent = ti.Vector.field(3, dtype=ti.f32, shape=())
        bitangent = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(n: vec3):
            t, b, _ = build_onb_from_normal(n)
            tangent[None] = t
            bitangent[None] = b

        test_kernel(vec3(*normal))
        t = tangent[None].to_numpy()
        b = bitangent[None].to_numpy()
        n = list(normal)
        assert abs(t.dot(b)) < 1e-5
        assert abs(t.dot(n)) < 1e-5
        assert abs(b.dot(n)) < 1e-5
        assert abs(t.dot(t) - 1.0) < 1e-5
        assert abs(b.dot(b) - 1.0) < 1e-5

    def test_offset_ray_origin_follows_direction(self):
        from phoebe.core.ray import offset_ray_origin, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            point = vec3(0.0, 0.0, 0.0)
            normal = vec3(0.0, 1.0, 0.0)
            result[0] = offset_ray_origin(point, normal, vec3(0.0, 1.0, 0.0))
            result[1] = offset_ray_origin(point, normal, vec3(0.0, -1.0, 0.0))

        test_kernel()
        assert result[0][1] == pytest.approx(RAY_EPSILON)
        assert result[1][1] == pytest.approx(-RAY_EPSILON)
