"""Tests for the path tracing integrator.

Radiance values are checked with backgrounds and albedos that are exact in
float32, so averages over samples come out exact too.
"""

import pytest

from phoebe.core.errors import ValidationError


def _config(**overrides):
    from phoebe.config import RenderConfig

    values = dict(
        num_workers=2,
        file_name="test.png",
        width=8,
        height=8,
        pixel_sample_size=2,
        intersect_sample_size=2,
        trace_depth=2,
        background=(0.25, 0.5, 0.75),
    )
    values.update(overrides)
    return RenderConfig(**values)


def _tracer(config, *objects):
    from phoebe.core.tracer import PathTracer
    from phoebe.scene import Scene

    scene = Scene(config.scene_bound())
    for obj in objects:
        scene.add_object(obj)
    return PathTracer(config, scene=scene)


def _ray(origin=(0, 0, 0), direction=(0, 0, -1)):
    from phoebe.core.ray import HostRay

    return HostRay.create(origin, direction)


class TestTraceRay:
    def test_background_is_uploaded(self):
        from phoebe.core.integrator import get_background

        _tracer(_config()).trace_ray(_ray())
        assert get_background() == (0.25, 0.5, 0.75)

    def test_miss_returns_background(self):
        radiance, queries = _tracer(_config()).trace_ray(_ray())
        assert radiance == (0.25, 0.5, 0.75)
        assert queries == 1

    def test_depth_limit_returns_black(self):
        config = _config(trace_depth=3)
        radiance, queries = _tracer(config).trace_ray(_ray(), depth=3)
        assert radiance == (0.0, 0.0, 0.0)
        assert queries == 0

    def test_negative_depth_rejected(self):
        with pytest.raises(ValidationError):
            _tracer(_config()).trace_ray(_ray(), depth=-1)

    @pytest.mark.parametrize("samples", [1, 2, 4])
    def test_lone_diffuse_sphere(self, samples):
        """Every scattered ray escapes a convex sphere and sees the background."""
        from phoebe.geometry import Sphere
        from phoebe.materials import Lambertian

        config = _config(intersect_sample_size=samples, background=(1.0, 1.0, 1.0))
        tracer = _tracer(config, Sphere((0, 0, -10), 3.0, Lambertian((0.5, 0.25, 0.75))))
        radiance, queries = tracer.trace_ray(_ray())
        assert radiance == pytest.approx((0.5, 0.25, 0.75))
        assert queries == 1 + samples

    def test_depth_one_sees_only_emission(self):
        from phoebe.geometry import Sphere
        from phoebe.materials import Lambertian

        tracer = _tracer(_config(trace_depth=1), Sphere((0, 0, -10), 3.0, Lambertian((0.5, 0.5, 0.5))))
        radiance, queries = tracer.trace_ray(_ray())
        assert radiance == (0.0, 0.0, 0.0)
        assert queries == 1

    def test_emitter_is_not_scattered(self):
        from phoebe.geometry import Sphere
        from phoebe.materials import Emissive

        tracer = _tracer(_config(trace_depth=4), Sphere((0, 0, -10), 3.0, Emissive((4.0, 2.0, 1.0))))
        radiance, queries = tracer.trace_ray(_ray())
        assert radiance == pytest.approx((4.0, 2.0, 1.0))
        assert queries == 1

    def test_mirror_reflects_background(self):
        from phoebe.geometry import Plane
        from phoebe.materials import Metal

        config = _config(intersect_sample_size=3, background=(1.0, 1.0, 1.0))
        tracer = _tracer(config, Plane((0, 0, -5), (0, 0, 1), Metal((0.5, 0.5, 0.5))))
        radiance, queries = tracer.trace_ray(_ray())
        assert radiance == pytest.approx((0.5, 0.5, 0.5))
        assert queries == 4

    def test_query_count_grows_with_depth(self):
        """Inside a closed box every ray hits, so queries are 1 + K + K^2 + ..."""
        from phoebe.geometry import Plane
        from phoebe.materials import Lambertian

        clay = Lambertian((0.5, 0.5, 0.5))
        walls = [
            Plane((0, 10, 0), (0, -1, 0), clay),
            Plane((0, -10, 0), (0, 1, 0), clay),
            Plane((10, 0, 0), (-1, 0, 0), clay),
            Plane((-10, 0, 0), (1, 0, 0), clay),
            Plane((0, 0, 10), (0, 0, -1), clay),
            Plane((0, 0, -10), (0, 0, 1), clay),
        ]
        tracer = _tracer(_config(trace_depth=3, intersect_sample_size=2), *walls)
        radiance, queries = tracer.trace_ray(_ray())
        assert queries == 1 + 2 + 4
        # No light enters the closed box
        assert radiance == (0.0, 0.0, 0.0)

    @pytest.mark.parametrize("trace_depth", [8, 10, 13])
    def test_mirror_corridor_uses_every_level(self, trace_depth):
        """Two facing mirrors bounce the ray until the depth limit."""
        from phoebe.geometry import Plane
        from phoebe.materials import Metal

        mirror = Metal((0.5, 0.5, 0.5))
        config = _config(trace_depth=trace_depth, intersect_sample_size=1)
        tracer = _tracer(
            config,
            Plane((0, 0, -5), (0, 0, 1), mirror),
            Plane((0, 0, 5), (0, 0, -1), mirror),
        )
        radiance, queries = tracer.trace_ray(_ray())
        assert queries == trace_depth
        assert radiance == (0.0, 0.0, 0.0)

    def test_zero_depth_makes_no_queries(self):
        from phoebe.geometry import Sphere
        from phoebe.materials import Emissive

        tracer = _tracer(_config(trace_depth=0), Sphere((0, 0, -10), 3.0, Emissive((4.0, 2.0, 1.0))))
        assert tracer.trace_ray(_ray()) == ((0.0, 0.0, 0.0), 0)
        assert tracer.trace_pixel(4, 4) == ((0.0, 0.0, 0.0), 0)

    def test_unroll_levels(self):
        from phoebe.core.constants import UNROLL_DEPTH
        from phoebe.core.integrator import unroll_levels

        assert unroll_levels(0) == UNROLL_DEPTH
        assert unroll_levels(UNROLL_DEPTH) == UNROLL_DEPTH
        assert unroll_levels(UNROLL_DEPTH + 5) == UNROLL_DEPTH + 5

    def test_same_seed_same_result(self):
        from phoebe.scene import create_default_scene
        from phoebe.core.tracer import PathTracer

        config = _config(trace_depth=3, intersect_sample_size=3, seed=5)
        first = PathTracer(config, scene=create_default_scene()).trace_ray(_ray(direction=(0.3, -0.2, -1)))
        second = PathTracer(config, scene=create_default_scene()).trace_ray(_ray(direction=(0.3, -0.2, -1)))
        assert first == second


class TestTracePixel:
    def test_empty_scene_pixel_is_background(self):
        color, queries = _tracer(_config()).trace_pixel(3, 4)
        assert color == (0.25, 0.5, 0.75)
        assert queries == 2

    def test_out_of_range_pixel(self):
        tracer = _tracer(_config())
        with pytest.raises(ValidationError):
            tracer.trace_pixel(8, 0)
        with pytest.raises(ValidationError):
            tracer.trace_at(0, -1)
