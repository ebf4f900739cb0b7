"""Geometry module for shape primitives and bounding boxes.

Components:
    bounds: Axis-aligned BoundBox and the in-kernel slab test
    base: Geometry interface and GeometryKind tags
    sphere: Sphere primitive with robust ray-sphere intersection
    plane: Infinite plane primitive
    quad: Parallelogram primitive

Each primitive pairs a Taichi struct plus ``hit_*`` function (used by the scene
intersection kernel) with a frozen host dataclass that validates its
parameters at construction:

    hit, t = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)
"""

from .base import Geometry, GeometryKind
from .bounds import BoundBox, hit_bound_box
from .plane import Plane, PlaneShape, hit_plane
from .quad import Quad, QuadShape, hit_quad
from .sphere import Sphere, SphereShape, hit_sphere

__all__ = [
    "BoundBox",
    "Geometry",
    "GeometryKind",
    "Plane",
    "PlaneShape",
    "Quad",
    "QuadShape",
    "Sphere",
    "SphereShape",
    "hit_bound_box",
    "hit_plane",
    "hit_quad",
    "hit_sphere",
]
