"""Path tracing integrator for Monte Carlo light transport.

This module implements the rendering kernels. A path is traced recursively:
at every hit the surface's emission is added, and if the material scatters,
``intersect_samples`` scattered rays are traced one level deeper and their
attenuated radiance is averaged. Rays that escape return the background
colour; paths that reach ``trace_depth`` return black.

The recursion is unrolled at compile time: ``level`` and ``unroll`` are template
arguments while ``depth`` and ``trace_depth`` stay runtime values. Kernels are
unrolled to ``unroll_levels(trace_depth)`` levels, so every depth up to
UNROLL_DEPTH shares one compiled kernel and deeper paths compile their own.

Key features:
    - Material dispatch (Lambertian, Metal, Emissive)
    - Fixed truncation at ``trace_depth``, no Russian roulette
    - Per-pixel hash random streams (results independent of thread count)
    - Row-band rendering into a host array

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from phoebe.core.integrator import render_rows, set_background
    >>> set_background((1.0, 1.0, 1.0))
    >>> rows = np.zeros((16, 64, 3), dtype=np.float32)
    >>> render_rows(rows, 0, 64, 64, pixel_samples=4, intersect_samples=2, trace_depth=3, seed=0)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from phoebe.camera.pinhole import ray_through
from phoebe.core.constants import T_MAX, T_MIN, UNROLL_DEPTH
from phoebe.core.sampling import hash_combine, next_random, pcg_hash, pixel_seed
from phoebe.core.vector import Vec3, as_tuple
from phoebe.materials.dispatch import material_emission, material_scatters, scatter_material
from phoebe.scene.intersection import intersect_scene

vec3 = tm.vec3

# Radiance of rays that leave the scene
_background = ti.Vector.field(3, dtype=ti.f32, shape=())

# Outputs of the single-pixel and single-ray kernels
_single_radiance = ti.Vector.field(3, dtype=ti.f32, shape=())
_single_queries = ti.field(dtype=ti.i32, shape=())


def set_background(color: Vec3) -> None:
    _background[None] = color


def get_background() -> Vec3:
    return as_tuple(_background[None])


def unroll_levels(trace_depth: int) -> int:
    """Number of recursion levels compiled into the kernels for ``trace_depth``."""
    return max(UNROLL_DEPTH, trace_depth)


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(
    origin: vec3,
    direction: vec3,
    depth: ti.i32,
    trace_depth: ti.i32,
    intersect_samples: ti.i32,
    state: ti.u32,
    level: ti.template(),
    unroll: ti.template(),
):
    """Estimate the radiance arriving at ``origin`` from ``direction``.

    Args:
        origin: The starting point of the ray.
        direction: The direction of the ray.
        depth: Recursion depth of this ray; camera rays have depth 0.
        trace_depth: Depth at which paths are truncated.
        intersect_samples: Number of scattered rays averaged at each hit.
        state: Random stream state of this path node.
        level: Compile-time recursion level.
        unroll: Compile-time number of levels; must be at least
            ``trace_depth - depth``.

    Returns:
        A tuple of (radiance, queries) where queries counts the scene
        intersection queries performed by this node and its descendants.
    """
    radiance = vec3(0.0, 0.0, 0.0)
    queries = 0

    if depth < trace_depth:
        record = intersect_scene(origin, direction, T_MIN, T_MAX)
        queries += 1

        if record.hit == 0:
            radiance = _background[None]
        else:
            radiance = material_emission(record.material_id)

            if ti.static(level + 1 < unroll):
                if material_scatters(record.material_id) and depth + 1 < trace_depth:
                    scattered_sum = vec3(0.0, 0.0, 0.0)
                    for k in range(intersect_samples):
                        branch_state = hash_combine(state, ti.cast(k, ti.u32))
                        scattered, attenuation, did_scatter, branch_state = scatter_material(
                            record.material_id, direction, record.point, record.normal, branch_state
                        )
                        if did_scatter == 1:
                            child_radiance, child_queries = trace_path(
                                scattered.origin,
                                scattered.direction,
                                depth + 1,
                                trace_depth,
                                intersect_samples,
                                branch_state,
                                level + 1,
                                unroll,
                            )
                            scattered_sum += attenuation * child_radiance
                            queries += child_queries
                    radiance += scattered_sum / ti.cast(intersect_samples, ti.f32)

    return radiance, queries


@ti.func
def accumulate_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    pixel_samples: ti.i32,
    intersect_samples: ti.i32,
    trace_depth: ti.i32,
    seed: ti.i32,
    unroll: ti.template(),
):
    """Average ``pixel_samples`` jittered camera paths through pixel (x, y).

    Returns:
        A tuple of (color, queries).
    """
    pixel_state = pixel_seed(seed, x, y)
    color = vec3(0.0, 0.0, 0.0)
    queries = 0

    for s in range(pixel_samples):
        state = hash_combine(pixel_state, ti.cast(s, ti.u32))
        jitter_x, state = next_random(state)
        jitter_y, state = next_random(state)
        ray = ray_through(x, y, width, height, jitter_x, jitter_y)
        radiance, path_queries = trace_path(
            ray.origin, ray.direction, 0, trace_depth, intersect_samples, state, 0, unroll
        )
        color += radiance
        queries += path_queries

    return color / ti.cast(pixel_samples, ti.f32), queries


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_count: ti.i32,
    width: ti.i32,
    height: ti.i32,
    pixel_samples: ti.i32,
    intersect_samples: ti.i32,
    trace_depth: ti.i32,
    seed: ti.i32,
    out: ti.types.ndarray(dtype=ti.f32, ndim=3),
    unroll: ti.template(),
):
    """Render rows [row_start, row_start + row_count) into ``out[row, x, channel]``."""
    for r, x in ti.ndrange(row_count, width):
        color, _ = accumulate_pixel(
            x,
            row_start + r,
            width,
            height,
            pixel_samples,
            intersect_samples,
            trace_depth,
            seed,
            unroll,
        )
        for c in ti.static(range(3)):
            out[r, x, c] = color[c]


@ti.kernel
def _trace_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    pixel_samples: ti.i32,
    intersect_samples: ti.i32,
    trace_depth: ti.i32,
    seed: ti.i32,
    unroll: ti.template(),
):
    # Single-iteration outer loop keeps the sample loops serial
    for _ in range(1):
        color, queries = accumulate_pixel(
            x, y, width, height, pixel_samples, intersect_samples, trace_depth, seed, unroll
        )
        _single_radiance[None] = color
        _single_queries[None] = queries


@ti.kernel
def _trace_ray(
    origin: vec3,
    direction: vec3,
    depth: ti.i32,
    trace_depth: ti.i32,
    intersect_samples: ti.i32,
    seed: ti.i32,
    unroll: ti.template(),
):
    for _ in range(1):
        state = pcg_hash(ti.cast(seed, ti.u32))
        radiance, queries = trace_path(
            origin, direction, depth, trace_depth, intersect_samples, state, 0, unroll
        )
        _single_radiance[None] = radiance
        _single_queries[None] = queries


def render_rows(
    out: npt.NDArray[np.float32],
    row_start: int,
    width: int,
    height: int,
    pixel_samples: int,
    intersect_samples: int,
    trace_depth: int,
    seed: int,
) -> None:
    """Render ``out.shape[0]`` consecutive rows starting at ``row_start``.

    The scene, materials, camera and background must already be uploaded.

    Args:
        out: Contiguous float32 array of shape (rows, width, 3), overwritten.
        row_start: Index of the first row (0 is the top of the image).
        width: Image width in pixels.
        height: Image height in pixels.
        pixel_samples: Camera paths averaged per pixel.
        intersect_samples: Scattered rays averaged per hit.
        trace_depth: Path truncation depth.
        seed: Random seed in the signed 32-bit range.
    """
    _render_rows(
        row_start,
        out.shape[0],
        width,
        height,
        pixel_samples,
        intersect_samples,
        trace_depth,
        seed,
        out,
        unroll_levels(trace_depth),
    )


def trace_pixel(
    x: int,
    y: int,
    width: int,
    height: int,
    pixel_samples: int,
    intersect_samples: int,
    trace_depth: int,
    seed: int,
) -> tuple[Vec3, int]:
    """Value of a single pixel, as ``render_rows`` would compute it.

    Returns:
        A tuple of (color, queries).
    """
    unroll = unroll_levels(trace_depth)
    _trace_pixel(x, y, width, height, pixel_samples, intersect_samples, trace_depth, seed, unroll)
    return as_tuple(_single_radiance[None]), int(_single_queries[None])


def trace_ray(
    origin: Vec3,
    direction: Vec3,
    depth: int,
    trace_depth: int,
    intersect_samples: int,
    seed: int,
) -> tuple[Vec3, int]:
    """Trace one ray through the uploaded scene.

    Returns:
        A tuple of (radiance, queries).
    """
    _trace_ray(
        vec3(*origin),
        vec3(*direction),
        depth,
        trace_depth,
        intersect_samples,
        seed,
        unroll_levels(trace_depth),
    )
    return as_tuple(_single_radiance[None]), int(_single_queries[None])
