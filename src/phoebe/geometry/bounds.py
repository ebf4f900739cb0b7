"""Axis-aligned bounding boxes.

``BoundBox`` is the host-side value object describing the extent of a scene;
``hit_bound_box`` is the slab test the scene intersection kernel uses to skip
bounded primitives for rays that cannot reach them.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
import taichi as ti
import taichi.math as tm

from phoebe.core.errors import InvalidBoundsError, ValidationError
from phoebe.core.vector import Vec3, VectorLike, as_tuple, to_vector

vec3 = tm.vec3


@dataclass(frozen=True)
class BoundBox:
    """Axis-aligned box with ``min <= max`` on every axis.

    Attributes:
        min: Lower corner.
        max: Upper corner.
    """

    min: Vec3
    max: Vec3

    def __post_init__(self) -> None:
        lo = to_vector(self.min, "bound min")
        hi = to_vector(self.max, "bound max")
        if np.any(lo > hi):
            raise InvalidBoundsError(
                f"bound min {as_tuple(lo)} exceeds max {as_tuple(hi)} on some axis"
            )
        object.__setattr__(self, "min", as_tuple(lo))
        object.__setattr__(self, "max", as_tuple(hi))

    @classmethod
    def create(cls, lo: VectorLike, hi: VectorLike) -> "BoundBox":
        return cls(min=as_tuple(lo), max=as_tuple(hi))

    def contains(self, other: "BoundBox") -> bool:
        """True if ``other`` lies entirely inside this box."""
        return all(self.min[i] <= other.min[i] and other.max[i] <= self.max[i] for i in range(3))

    def contains_point(self, point: VectorLike) -> bool:
        return all(self.min[i] <= point[i] <= self.max[i] for i in range(3))

    def union(self, other: "BoundBox") -> "BoundBox":
        lo = np.minimum(self.min, other.min)
        hi = np.maximum(self.max, other.max)
        return BoundBox(min=as_tuple(lo), max=as_tuple(hi))

    def padded(self, amount: float) -> "BoundBox":
        lo = np.asarray(self.min) - amount
        hi = np.asarray(self.max) + amount
        return BoundBox(min=as_tuple(lo), max=as_tuple(hi))

    def intersects(self, origin: VectorLike, direction: VectorLike, t_min: float, t_max: float) -> bool:
        """Slab test on the host, mirroring ``hit_bound_box``."""
        lo, hi = t_min, t_max
        for axis in range(3):
            if direction[axis] == 0.0:
                if origin[axis] < self.min[axis] or origin[axis] > self.max[axis]:
                    return False
                continue
            inv = 1.0 / direction[axis]
            t0 = (self.min[axis] - origin[axis]) * inv
            t1 = (self.max[axis] - origin[axis]) * inv
            if t0 > t1:
                t0, t1 = t1, t0
            lo = max(lo, t0)
            hi = min(hi, t1)
        return hi >= lo

    def to_dict(self) -> dict[str, Any]:
        return {"min": list(self.min), "max": list(self.max)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BoundBox":
        """Rebuild a box from ``{"min": [...], "max": [...]}``.

        Raises:
            ValidationError: If a corner is missing or not three numbers.
            InvalidBoundsError: If ``min > max`` on some axis.
        """
        try:
            lo, hi = data["min"], data["max"]
        except (KeyError, TypeError) as exc:
            raise ValidationError(f"bounds need 'min' and 'max' corners, got {data!r}") from exc
        return cls.create(to_vector(lo, "bound min"), to_vector(hi, "bound max"))


@ti.func
def hit_bound_box(
    ray_origin: vec3,
    ray_direction: vec3,
    box_min: vec3,
    box_max: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Slab test of a ray against an axis-aligned box.

    Only an exactly zero direction component counts as parallel to a slab,
    so the test never rejects a ray that actually crosses the box.

    Args:
        ray_origin: Ray start.
        ray_direction: Ray direction, any length.
        box_min: Lower corner of the box.
        box_max: Upper corner of the box.
        t_min: Lower end of the accepted parameter range.
        t_max: Upper end of the accepted parameter range.

    Returns:
        1 if the ray overlaps the box within (t_min, t_max), 0 otherwise.
    """
    lo = t_min
    hi = t_max
    inside = 1
    for axis in ti.static(range(3)):
        if ray_direction[axis] == 0.0:
            if ray_origin[axis] < box_min[axis] or ray_origin[axis] > box_max[axis]:
                inside = 0
        else:
            inv = 1.0 / ray_direction[axis]
            t0 = (box_min[axis] - ray_origin[axis]) * inv
            t1 = (box_max[axis] - ray_origin[axis]) * inv
            if t0 > t1:
                temp = t0
                t0 = t1
                t1 = temp
            lo = ti.max(lo, t0)
            hi = ti.min(hi, t1)
    hit = 0
    if inside == 1 and hi >= lo:
        hit = 1
    return hit
