"""Deterministic random sampling for Monte Carlo integration.

Kernels never touch ``ti.random``: every pixel derives its own stream from
``hash(seed, x, y)``, each pixel sample from ``hash(pixel_state, s)`` and each
scattered branch from ``hash(node_state, k)``. The state is a ``u32`` threaded
through the sampling functions, which return the advanced state alongside
their result::

    u, state = next_random(state)

Results therefore do not depend on thread count or scheduling order.

The hash is the PCG-RXS-M-XS output permutation over an LCG step.
"""

import taichi as ti
import taichi.math as tm

from phoebe.core.ray import build_onb_from_normal, local_to_world

vec3 = tm.vec3

# Kept below 2**31 so they are valid i32 literals before the cast to u32
_LCG_MULTIPLIER = 747796405
_LCG_INCREMENT = 1013904223
_MIX_MULTIPLIER = 277803737
_WORD = 0xFFFFFFFF

# 24 mantissa bits of a float32 in [0, 1)
_FLOAT_BITS = 0xFFFFFF
_INV_FLOAT_RANGE = 1.0 / 16777216.0


@ti.func
def pcg_hash(value: ti.u32) -> ti.u32:
    """Scramble a 32-bit word."""
    state = value * ti.cast(_LCG_MULTIPLIER, ti.u32) + ti.cast(_LCG_INCREMENT, ti.u32)
    shift = ((state >> 28) & ti.cast(0xF, ti.u32)) + ti.cast(4, ti.u32)
    word = ((state >> shift) ^ state) * ti.cast(_MIX_MULTIPLIER, ti.u32)
    return ((word >> 22) & ti.cast(0x3FF, ti.u32)) ^ word


@ti.func
def hash_combine(state: ti.u32, value: ti.u32) -> ti.u32:
    """Derive a child stream from ``state`` and an index."""
    return pcg_hash(state ^ pcg_hash(value))


@ti.func
def pixel_seed(seed: ti.i32, x: ti.i32, y: ti.i32) -> ti.u32:
    """Initial state of the random stream owned by pixel ``(x, y)``."""
    state = pcg_hash(ti.cast(seed, ti.u32))
    state = hash_combine(state, ti.cast(x, ti.u32))
    return hash_combine(state, ti.cast(y, ti.u32))


@ti.func
def next_random(state: ti.u32):
    """Draw a float in [0, 1) and advance the stream.

    Returns:
        A tuple of (value, new_state).
    """
    new_state = pcg_hash(state)
    bits = (new_state >> 8) & ti.cast(_FLOAT_BITS, ti.u32)
    value = ti.cast(bits, ti.f32) * _INV_FLOAT_RANGE
    return value, new_state


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Uniform point inside the unit sphere.

    Draws the radius and direction directly instead of rejection sampling, so
    every call consumes exactly three numbers from the stream.

    Returns:
        A tuple of (point, new_state) with ``|point| <= 1``.
    """
    u1, rng = next_random(state)
    u2, rng = next_random(rng)
    u3, rng = next_random(rng)
    z = 2.0 * u1 - 1.0
    phi = 2.0 * tm.pi * u2
    ring = ti.sqrt(ti.max(0.0, 1.0 - z * z))
    radius = u3 ** (1.0 / 3.0)
    point = radius * vec3(ring * ti.cos(phi), ring * ti.sin(phi), z)
    return point, rng


@ti.func
def random_cosine_direction(state: ti.u32):
    """Cosine-weighted direction in the local frame (z-up), PDF ``cos(theta) / pi``.

    Returns:
        A tuple of (direction, new_state).
    """
    r1, rng = next_random(state)
    r2, rng = next_random(rng)
    phi = 2.0 * tm.pi * r1
    sqrt_r2 = ti.sqrt(r2)
    x = ti.cos(phi) * sqrt_r2
    y = ti.sin(phi) * sqrt_r2
    z = ti.sqrt(1.0 - r2)
    return vec3(x, y, z), rng


@ti.func
def sample_cosine_hemisphere(normal: vec3, state: ti.u32):
    """Cosine-weighted hemisphere sampling around ``normal``.

    Args:
        normal: The unit surface normal defining the hemisphere.
        state: Random stream state.

    Returns:
        A tuple of (direction, pdf, new_state) where pdf is ``cos(theta) / pi``.
    """
    local_dir, rng = random_cosine_direction(state)
    tangent, bitangent, n = build_onb_from_normal(normal)
    world_dir = local_to_world(local_dir, tangent, bitangent, n)
    pdf = tm.dot(world_dir, normal) / tm.pi
    return world_dir, pdf, rng


def _mix32(value: int) -> int:
    """Host twin of ``pcg_hash``; a bijection on 32-bit words."""
    state = (value * _LCG_MULTIPLIER + _LCG_INCREMENT) & _WORD
    shift = ((state >> 28) & 0xF) + 4
    word = (((state >> shift) ^ state) * _MIX_MULTIPLIER) & _WORD
    return ((word >> 22) ^ word) & _WORD


def fold_seed(seed: int) -> int:
    """Map an arbitrary Python int onto the signed 32-bit seeds kernels accept.

    Seeds already in that range are used as they are. Wider seeds are reduced
    modulo 2**64 and their high word is hashed into the low one, so distinct
    seeds sharing a low word (``1`` and ``2**32 + 1``) still differ.
    """
    if -(1 << 31) <= seed < 1 << 31:
        return seed
    value = seed % (1 << 64)
    folded = _mix32((value & _WORD) ^ _mix32(value >> 32))
    if folded >= 1 << 31:
        folded -= 1 << 32
    return folded
