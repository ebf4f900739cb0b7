"""Infinite plane primitive.

A plane is a point ``p`` and a unit normal ``n``. A ray ``o + t*d`` meets it at
``t = ((p - o) . n) / (d . n)``; rays with ``|d . n| < PARALLEL_EPSILON`` are
treated as parallel and never hit. Planes are unbounded, so the scene tests
them regardless of its bounding box.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from phoebe.core.constants import PARALLEL_EPSILON, T_MAX, T_MIN
from phoebe.core.ray import HostRay
from phoebe.core.vector import Vec3, VectorLike, as_tuple, normalize, to_vector
from phoebe.geometry.base import Geometry, GeometryKind
from phoebe.materials.base import Material

vec3 = tm.vec3


@ti.dataclass
class PlaneShape:
    """Kernel-side plane.

    Attributes:
        point: Any point on the plane.
        normal: Unit normal of the plane.
    """

    point: vec3
    normal: vec3


@ti.func
def hit_plane(
    ray_origin: vec3,
    ray_direction: vec3,
    plane: PlaneShape,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Test for ray-plane intersection.

    Returns:
        Tuple of (hit, t).
    """
    did_hit = 0
    hit_t = 0.0

    denom = tm.dot(ray_direction, plane.normal)
    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = tm.dot(plane.point - ray_origin, plane.normal) / denom
        if t > t_min and t < t_max:
            did_hit = 1
            hit_t = t

    return did_hit, hit_t


@ti.func
def plane_normal_at(plane: PlaneShape, position: vec3) -> vec3:
    return plane.normal


@ti.kernel
def _query_plane(origin: vec3, direction: vec3, point: vec3, normal: vec3) -> ti.f32:
    did_hit, t = hit_plane(origin, direction, PlaneShape(point=point, normal=normal), T_MIN, T_MAX)
    result = -1.0
    if did_hit == 1:
        result = t
    return result


@dataclass(frozen=True)
class Plane(Geometry):
    """Plane geometry.

    Attributes:
        point: Any point on the plane.
        normal: Plane normal; normalized at construction.
        material: Shading model of the surface.

    Raises:
        DegenerateVectorError: If the normal has zero length.
    """

    point: Vec3
    normal: Vec3
    material: Material

    kind: ClassVar[GeometryKind] = GeometryKind.PLANE

    def __post_init__(self) -> None:
        object.__setattr__(self, "point", as_tuple(to_vector(self.point, "plane point")))
        object.__setattr__(self, "normal", as_tuple(normalize(self.normal, "plane normal")))

    def intersect(self, ray: HostRay) -> float | None:
        t = _query_plane(vec3(*ray.origin), vec3(*ray.direction), vec3(*self.point), vec3(*self.normal))
        return float(t) if t >= 0.0 else None

    def normal_at(self, position: VectorLike) -> Vec3:
        return self.normal

    def bounding_box(self) -> None:
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "plane",
            "point": list(self.point),
            "normal": list(self.normal),
            "material": self.material.to_dict(),
        }
