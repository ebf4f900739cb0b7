"""Rays on both sides of the kernel boundary.

``Ray`` is the Taichi struct the render kernels pass around; the ``ti.func``
helpers below (reflection, orthonormal frames, origin offsets) are shared by
geometry and materials. ``HostRay`` is the frozen Python-side ray accepted by
``Scene.intersect`` and ``PathTracer.trace_ray``.

Example:
    >>> from phoebe.core.ray import HostRay
    >>> ray = HostRay.create((0, 0, 0), (0, 0, -1))
    >>> ray.at(5.0)
    (0.0, 0.0, -5.0)
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from phoebe.core.constants import RAY_EPSILON
from phoebe.core.vector import Vec3, VectorLike, as_tuple, to_vector

vec3 = tm.vec3


@ti.dataclass
class Ray:
    """Kernel-side ray ``origin + t * direction``.

    Camera and scattered rays carry unit directions, but no intersection
    routine relies on that.
    """

    origin: vec3
    direction: vec3


@dataclass(frozen=True)
class HostRay:
    """Immutable ray on the Python side.

    Attributes:
        origin: Where the ray starts.
        direction: The direction of the ray. Not re-normalized.
    """

    origin: Vec3
    direction: Vec3

    @classmethod
    def create(cls, origin: VectorLike, direction: VectorLike) -> "HostRay":
        """Build a ray from any 3-sequences, validating both components."""
        return cls(
            origin=as_tuple(to_vector(origin, "ray origin")),
            direction=as_tuple(to_vector(direction, "ray direction")),
        )

    def at(self, t: float) -> Vec3:
        """Point ``origin + t * direction``."""
        point = np.asarray(self.origin) + t * np.asarray(self.direction)
        return as_tuple(point)


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Point reached after travelling ``t`` direction-lengths from the origin."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)


# =============================================================================
# In-kernel Vector Helpers
# =============================================================================


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """1 when every component of ``v`` is within 1e-8 of zero, else 0."""
    limit = 1e-8
    return ti.abs(v.x) < limit and ti.abs(v.y) < limit and ti.abs(v.z) < limit


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror ``incident`` about the plane with unit normal ``normal``.

    Args:
        incident: Direction travelling toward the surface.
        normal: Unit surface normal.

    Returns:
        ``incident - 2 (incident . normal) normal``.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def build_onb_from_normal(normal: vec3):
    """Frame whose third axis is ``normal``.

    Returns:
        ``(tangent, bitangent, normal)``, mutually orthogonal unit vectors when
        ``normal`` is a unit vector.
    """
    helper = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        helper = vec3(0.0, 1.0, 0.0)
    tangent = tm.normalize(tm.cross(helper, normal))
    bitangent = tm.cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, bitangent: vec3, normal: vec3) -> vec3:
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * normal


@ti.func
def offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Move a hit point ``RAY_EPSILON`` off the surface, on the side ``direction`` exits.

    A ray leaving along ``direction`` from the returned point cannot hit the
    surface it started on at ``t`` near zero.
    """
    side = normal
    if tm.dot(direction, normal) < 0.0:
        side = -normal
    return point + RAY_EPSILON * side
