"""Scene module for scene storage and ray-scene queries.

Components:
    intersection: Primitive storage in Taichi fields and the nearest-hit kernel
    scene: Scene aggregate, Intersect records and JSON (de)serialization
    presets: The default room scene

Scene data is organized for kernel access:
    - Structure-of-Arrays layout per primitive kind
    - A unified primitive table in insertion order (kind, index, material id)
    - A scene bounding box used to cull bounded primitives

The intersection module declares Taichi fields, so this package must be
imported after the Taichi runtime is initialized.
"""

from .intersection import (
    MAX_PLANES,
    MAX_PRIMITIVES,
    MAX_QUADS,
    MAX_SPHERES,
    SceneHitRecord,
    add_plane,
    add_quad,
    add_sphere,
    clear_scene,
    get_primitive_count,
    intersect_scene,
    query_nearest,
    set_scene_bounds,
)
from .presets import RoomParams, create_default_scene, create_lit_room_scene
from .scene import Intersect, Scene, geometry_from_dict, load_scene, save_scene

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "add_plane",
    "add_quad",
    "clear_scene",
    "set_scene_bounds",
    "get_primitive_count",
    "intersect_scene",
    "query_nearest",
    "MAX_PRIMITIVES",
    "MAX_SPHERES",
    "MAX_PLANES",
    "MAX_QUADS",
    # Scene aggregate
    "Scene",
    "Intersect",
    "geometry_from_dict",
    "load_scene",
    "save_scene",
    # Presets
    "RoomParams",
    "create_default_scene",
    "create_lit_room_scene",
]
