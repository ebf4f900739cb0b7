"""Geometry interface shared by every primitive.

The set of primitives is closed: each variant has a ``GeometryKind`` tag that
the scene stores per primitive, and a matching ``hit_*`` Taichi function the
scene intersection kernel dispatches to.
"""

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, ClassVar

from phoebe.core.ray import HostRay
from phoebe.core.vector import Vec3, VectorLike
from phoebe.geometry.bounds import BoundBox
from phoebe.materials.base import Material


class GeometryKind(IntEnum):
    """Tag stored per primitive in the scene's kernel tables."""

    SPHERE = 0
    PLANE = 1
    QUAD = 2


class Geometry(ABC):
    """A surface that a ray can hit.

    Attributes:
        material: Shading model of the surface.
    """

    kind: ClassVar[GeometryKind]
    material: Material

    @abstractmethod
    def intersect(self, ray: HostRay) -> float | None:
        """Smallest ``t`` in ``(T_MIN, T_MAX)`` where the ray meets the surface, or None."""

    @abstractmethod
    def normal_at(self, position: VectorLike) -> Vec3:
        """Outward unit normal at a point on the surface."""

    @abstractmethod
    def bounding_box(self) -> BoundBox | None:
        """Box enclosing the primitive, or None when it is unbounded."""

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Serializable form, tagged with ``"type"`` and carrying the material."""
