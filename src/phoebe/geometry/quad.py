"""Flat parallelogram patches.

A quad is given by one ``corner`` and the two edges ``edge_u`` and ``edge_v``
leaving it.

The quad spans the parallelogram corner, corner+u, corner+v, corner+u+v. Its
normal is normalize(cross(u, v)) (right-hand rule).

A ray hits the quad when it crosses the supporting plane at a point whose
edge coordinates both fall in [0, 1].
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np
import taichi as ti
import taichi.math as tm

from phoebe.core.constants import PARALLEL_EPSILON, T_MAX, T_MIN
from phoebe.core.errors import DegenerateGeometryError
from phoebe.core.ray import HostRay
from phoebe.core.vector import Vec3, VectorLike, as_tuple, cross, is_parallel, normalize, to_vector
from phoebe.geometry.base import Geometry, GeometryKind
from phoebe.geometry.bounds import BoundBox
from phoebe.materials.base import Material

vec3 = tm.vec3


@ti.dataclass
class QuadShape:
    """A parallelogram defined by a corner point and two edge vectors.

    Attributes:
        corner: The corner point of the quad (vec3).
        edge_u: Edge vector from corner to adjacent corner (vec3).
        edge_v: Edge vector from corner to other adjacent corner (vec3).
    """

    corner: vec3
    edge_u: vec3
    edge_v: vec3


@ti.func
def _compute_quad_frame(quad: QuadShape):
    """Compute the plane normal and the helper vectors for local coordinates.

    A point P on the plane satisfies P = corner + alpha * u + beta * v with
    alpha = dot(w_u, P - corner) and beta = dot(w_v, P - corner), where
    w_u = (v x n) / (n . n) and w_v = (n x u) / (n . n) for n = u x v.

    Returns:
        Tuple of (normal, d, w_u, w_v) where d is the plane constant.
    """
    n = tm.cross(quad.edge_u, quad.edge_v)
    normal = tm.normalize(n)
    d = tm.dot(normal, quad.corner)

    n_dot_n = tm.dot(n, n)
    w_u = vec3(0.0, 0.0, 0.0)
    w_v = vec3(0.0, 0.0, 0.0)
    if n_dot_n > 1e-10:
        w_u = tm.cross(quad.edge_v, n) / n_dot_n
        w_v = tm.cross(n, quad.edge_u) / n_dot_n

    return normal, d, w_u, w_v


@ti.func
def hit_quad(
    ray_origin: vec3,
    ray_direction: vec3,
    quad: QuadShape,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Intersect a ray with a quad.

    Args:
        ray_origin: Ray start.
        ray_direction: Ray direction, any length.
        quad: Patch to test.
        t_min: Exclusive lower bound on the hit parameter.
        t_max: Exclusive upper bound on the hit parameter.

    Returns:
        Tuple of (hit, t).
    """
    normal, d, w_u, w_v = _compute_quad_frame(quad)
    denom = tm.dot(normal, ray_direction)

    did_hit = 0
    hit_t = 0.0

    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = (d - tm.dot(normal, ray_origin)) / denom
        if t > t_min and t < t_max:
            p_minus_q = ray_origin + t * ray_direction - quad.corner
            alpha = tm.dot(w_u, p_minus_q)
            beta = tm.dot(w_v, p_minus_q)
            if alpha >= 0.0 and alpha <= 1.0 and beta >= 0.0 and beta <= 1.0:
                did_hit = 1
                hit_t = t

    return did_hit, hit_t


@ti.func
def quad_normal_at(quad: QuadShape, position: vec3) -> vec3:
    return tm.normalize(tm.cross(quad.edge_u, quad.edge_v))


@ti.kernel
def _query_quad(origin: vec3, direction: vec3, corner: vec3, edge_u: vec3, edge_v: vec3) -> ti.f32:
    quad = QuadShape(corner=corner, edge_u=edge_u, edge_v=edge_v)
    did_hit, t = hit_quad(origin, direction, quad, T_MIN, T_MAX)
    result = -1.0
    if did_hit == 1:
        result = t
    return result


@dataclass(frozen=True)
class Quad(Geometry):
    """Parallelogram geometry.

    Attributes:
        corner: A corner point.
        edge_u: Edge from the corner that sets the u direction.
        edge_v: Second edge vector, not parallel to ``edge_u``.
        material: Shading model of the surface.

    Raises:
        DegenerateGeometryError: If the edges are zero or parallel.
    """

    corner: Vec3
    edge_u: Vec3
    edge_v: Vec3
    material: Material

    kind: ClassVar[GeometryKind] = GeometryKind.QUAD

    def __post_init__(self) -> None:
        corner = to_vector(self.corner, "quad corner")
        edge_u = to_vector(self.edge_u, "quad edge_u")
        edge_v = to_vector(self.edge_v, "quad edge_v")
        if is_parallel(edge_u, edge_v):
            raise DegenerateGeometryError(
                f"quad edges {as_tuple(edge_u)} and {as_tuple(edge_v)} span no area"
            )
        object.__setattr__(self, "corner", as_tuple(corner))
        object.__setattr__(self, "edge_u", as_tuple(edge_u))
        object.__setattr__(self, "edge_v", as_tuple(edge_v))

    def intersect(self, ray: HostRay) -> float | None:
        t = _query_quad(
            vec3(*ray.origin),
            vec3(*ray.direction),
            vec3(*self.corner),
            vec3(*self.edge_u),
            vec3(*self.edge_v),
        )
        return float(t) if t >= 0.0 else None

    def normal_at(self, position: VectorLike) -> Vec3:
        return as_tuple(normalize(cross(self.edge_u, self.edge_v), "quad normal"))

    def bounding_box(self) -> BoundBox:
        corner = np.asarray(self.corner)
        u = np.asarray(self.edge_u)
        v = np.asarray(self.edge_v)
        points = np.stack([corner, corner + u, corner + v, corner + u + v])
        return BoundBox.create(points.min(axis=0), points.max(axis=0))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "quad",
            "corner": list(self.corner),
            "edge_u": list(self.edge_u),
            "edge_v": list(self.edge_v),
            "material": self.material.to_dict(),
        }
