"""Unit tests for the pinhole camera.

Tests cover:
- Orthonormal basis construction
- Primary rays for the centre and corner pixels
- Host and kernel ray generation agreeing
- Degenerate camera parameters
"""

import numpy as np
import pytest
import taichi as ti

from phoebe.core.errors import DegenerateCameraError, ValidationError


def _default_camera(**kwargs):
    from phoebe.camera import Camera

    return Camera(eye=(0, 0, 0), center=(0, 0, -1), up=(0, 1, 0), **kwargs)


class TestCameraBasis:
    def test_default_basis(self):
        camera = _default_camera()
        tangent, normal, binormal = camera.basis()
        assert tangent == pytest.approx((0.0, 0.0, -1.0))
        assert normal == pytest.approx((0.0, 1.0, 0.0))
        assert binormal == pytest.approx((1.0, 0.0, 0.0))
        assert camera.position == (0.0, 0.0, 0.0)

    def test_basis_is_orthonormal_for_tilted_up(self):
        from phoebe.camera import Camera

        camera = Camera(eye=(1, 2, 3), center=(4, -1, -5), up=(0.3, 1.0, 0.2))
        t, n, b = (np.asarray(v) for v in camera.basis())
        for v in (t, n, b):
            assert np.linalg.norm(v) == pytest.approx(1.0)
        assert abs(t @ n) < 1e-9
        assert abs(t @ b) < 1e-9
        assert abs(n @ b) < 1e-9
        # The image-plane up vector leans toward the requested up
        assert n @ np.asarray([0.3, 1.0, 0.2]) > 0.0

    def test_from_config_uses_image_aspect(self):
        from phoebe.camera import Camera
        from phoebe.config import RenderConfig

        config = RenderConfig(width=400, height=200, camera_norm_height=0.5)
        camera = Camera.from_config(config)
        assert camera.aspect_ratio == 2.0
        assert camera.norm_height == 0.5


class TestPrimaryRays:
    def test_center_pixel_looks_straight_ahead(self):
        ray = _default_camera().ray_through(400, 400, 800, 800)
        assert ray.origin == (0.0, 0.0, 0.0)
        assert ray.direction == pytest.approx((0.0, 0.0, -1.0))

    def test_corner_pixel(self):
        ray = _default_camera().ray_through(0, 0, 800, 800)
        s = 1.0 / np.sqrt(3.0)
        assert ray.direction == pytest.approx((-s, s, -s))

    def test_row_zero_is_top(self):
        camera = _default_camera()
        top = camera.ray_through(10, 0, 20, 20, 0.5, 0.5)
        bottom = camera.ray_through(10, 19, 20, 20, 0.5, 0.5)
        assert top.direction[1] > 0.0
        assert bottom.direction[1] < 0.0

    def test_aspect_ratio_widens_horizontal_extent(self):
        ray = _default_camera(aspect_ratio=2.0).ray_through(0, 400, 800, 800)
        d = ray.direction
        # u = -2 at the left edge, v = 0 at mid height
        assert d[0] / -d[2] == pytest.approx(-2.0)
        assert d[1] == pytest.approx(0.0)

    def test_directions_are_unit_and_deterministic(self):
        camera = _default_camera(norm_height=0.75)
        first = camera.ray_through(3, 7, 16, 16, 0.25, 0.8)
        second = camera.ray_through(3, 7, 16, 16, 0.25, 0.8)
        assert first == second
        assert np.linalg.norm(first.direction) == pytest.approx(1.0)

    def test_kernel_matches_host(self):
        from phoebe.camera import get_camera_info, ray_through, setup_camera
        from phoebe.camera.pinhole import Camera

        camera = Camera(eye=(1, 0.5, 2), center=(0, 0, -8), up=(0, 1, 0), aspect_ratio=1.5)
        setup_camera(camera)
        assert get_camera_info()["position"] == pytest.approx((1.0, 0.5, 2.0))

        pixels = [(0, 0, 0.0, 0.0), (5, 9, 0.5, 0.25), (15, 11, 0.99, 0.99)]
        directions = ti.Vector.field(3, dtype=ti.f32, shape=len(pixels))

        @ti.kernel
        def test_kernel(i: ti.i32, x: ti.i32, y: ti.i32, jx: ti.f32, jy: ti.f32):
            directions[i] = ray_through(x, y, 16, 12, jx, jy).direction

        for i, (x, y, jx, jy) in enumerate(pixels):
            test_kernel(i, x, y, jx, jy)
            expected = camera.ray_through(x, y, 16, 12, jx, jy).direction
            got = directions[i]
            assert (got[0], got[1], got[2]) == pytest.approx(expected, abs=1e-5)


class TestDegenerateCamera:
    def test_eye_equals_center(self):
        from phoebe.camera import Camera

        with pytest.raises(DegenerateCameraError):
            Camera(eye=(1, 1, 1), center=(1, 1, 1), up=(0, 1, 0))

    def test_zero_up(self):
        from phoebe.camera import Camera

        with pytest.raises(DegenerateCameraError):
            Camera(eye=(0, 0, 0), center=(0, 0, -1), up=(0, 0, 0))

    def test_up_parallel_to_view(self):
        from phoebe.camera import Camera

        with pytest.raises(DegenerateCameraError, match="parallel"):
            Camera(eye=(0, 0, 0), center=(0, -5, 0), up=(0, 1, 0))

    @pytest.mark.parametrize("kwargs", [{"aspect_ratio": 0.0}, {"norm_height": -1.0}, {"norm_height": float("inf")}])
    def test_bad_image_plane(self, kwargs):
        with pytest.raises(ValidationError):
            _default_camera(**kwargs)
