"""Spheres.

This module holds the kernel-side ``SphereShape`` struct with its
intersection function, and the host-side ``Sphere`` geometry.

Roots are computed through the ``q`` form of the quadratic formula so that
neither root loses precision when the ray grazes the sphere.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from phoebe.core.ray import HostRay
    >>> from phoebe.geometry.sphere import Sphere
    >>> from phoebe.materials import Lambertian
    >>> ball = Sphere(center=(0, 0, -10), radius=3.0, material=Lambertian((0.1, 0.3, 0.7)))
    >>> ball.intersect(HostRay.create((0, 0, 0), (0, 0, -1)))  # about 7.0
"""

import math
from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np
import taichi as ti
import taichi.math as tm

from phoebe.core.constants import T_MAX, T_MIN
from phoebe.core.errors import DegenerateGeometryError
from phoebe.core.ray import HostRay
from phoebe.core.vector import Vec3, VectorLike, as_tuple, to_vector
from phoebe.geometry.base import Geometry, GeometryKind
from phoebe.geometry.bounds import BoundBox
from phoebe.materials.base import Material

vec3 = tm.vec3


@ti.dataclass
class SphereShape:
    """Kernel-side sphere: a center and a positive radius."""

    center: vec3
    radius: ti.f32


@ti.func
def _sorted_roots(a: ti.f32, half_b: ti.f32, c: ti.f32, root: ti.f32):
    """Both roots of ``a t^2 + 2 half_b t + c``, nearest first.

    ``root`` is the square root of the quarter discriminant.
    """
    q = -(half_b + ti.select(half_b < 0.0, -root, root))

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # grazing ray through the center plane
        t0 = (-half_b - root) / a
        t1 = (-half_b + root) / a
    else:
        t0 = q / a
        t1 = c / q

    return ti.min(t0, t1), ti.max(t0, t1)


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: SphereShape,
    t_min: ti.f32,
    t_max: ti.f32,
):
    """Nearest parameter in ``(t_min, t_max)`` where the ray meets the sphere.

    Expands ``|o + t d - center|^2 = radius^2`` into
    ``a t^2 + 2 half_b t + c = 0`` with ``a = d.d``, ``half_b = d.(o - center)``
    and ``c = |o - center|^2 - radius^2``. The direction may have any length.

    Returns:
        Tuple of (hit, t): hit is 1 when a root lies in (t_min, t_max), and t
        is the smaller such root.
    """
    to_origin = ray_origin - sphere.center
    a = ray_direction.dot(ray_direction)
    half_b = ray_direction.dot(to_origin)
    c = to_origin.dot(to_origin) - sphere.radius**2
    quarter_disc = half_b * half_b - a * c

    did_hit = 0
    hit_t = 0.0

    if quarter_disc >= 0.0 and a > 0.0:
        near, far = _sorted_roots(a, half_b, c, ti.sqrt(quarter_disc))

        # Prefer the near root, fall back to the far one (origin inside)
        if near > t_min and near < t_max:
            did_hit = 1
            hit_t = near
        elif far > t_min and far < t_max:
            did_hit = 1
            hit_t = far

    return did_hit, hit_t


@ti.func
def sphere_normal_at(sphere: SphereShape, position: vec3) -> vec3:
    """Outward unit normal ``(position - center) / radius``."""
    return (position - sphere.center) / sphere.radius


@ti.kernel
def _query_sphere(origin: vec3, direction: vec3, center: vec3, radius: ti.f32) -> ti.f32:
    did_hit, t = hit_sphere(origin, direction, SphereShape(center=center, radius=radius), T_MIN, T_MAX)
    result = -1.0
    if did_hit == 1:
        result = t
    return result


@dataclass(frozen=True)
class Sphere(Geometry):
    """Sphere surface with a single material.

    Attributes:
        center: Center of the sphere.
        radius: Radius, positive and finite.
        material: Shading model of the surface.

    Raises:
        DegenerateGeometryError: If the radius is not a positive finite number.
    """

    center: Vec3
    radius: float
    material: Material

    kind: ClassVar[GeometryKind] = GeometryKind.SPHERE

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", as_tuple(to_vector(self.center, "sphere center")))
        try:
            radius = float(self.radius)
        except (TypeError, ValueError) as exc:
            raise DegenerateGeometryError(f"sphere radius must be a number, got {self.radius!r}") from exc
        if not math.isfinite(radius) or radius <= 0.0:
            raise DegenerateGeometryError(f"sphere radius must be positive, got {self.radius!r}")
        object.__setattr__(self, "radius", radius)

    def intersect(self, ray: HostRay) -> float | None:
        t = _query_sphere(vec3(*ray.origin), vec3(*ray.direction), vec3(*self.center), self.radius)
        return float(t) if t >= 0.0 else None

    def normal_at(self, position: VectorLike) -> Vec3:
        offset = to_vector(position, "position") - np.asarray(self.center)
        return as_tuple(offset / self.radius)

    def bounding_box(self) -> BoundBox:
        center = np.asarray(self.center)
        return BoundBox.create(center - self.radius, center + self.radius)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "sphere",
            "center": list(self.center),
            "radius": self.radius,
            "material": self.material.to_dict(),
        }
