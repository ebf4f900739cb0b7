"""Scene-level primitive storage and nearest-hit queries.

Primitives live in Taichi fields (structure of arrays per kind) plus a unified
primitive table that records, in insertion order, each primitive's kind, its
index in the per-kind storage and its material id. ``intersect_scene`` walks
that table in order, so equal-distance ties resolve to the first primitive
inserted.

Bounded primitives (spheres, quads) are skipped when the ray misses the scene
bounding box; planes are unbounded and always tested. The scene box must
enclose every bounded primitive, which ``phoebe.scene.scene.Scene`` ensures.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from phoebe.scene.intersection import add_sphere, clear_scene, query_nearest
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -10.0), 3.0, material_id=0)
    0
    >>> query_nearest((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))  # (0, ~7.0)
"""

import taichi as ti
import taichi.math as tm

from phoebe.core.constants import T_MAX, T_MIN, TIE_EPSILON
from phoebe.core.errors import CapacityError
from phoebe.core.vector import Vec3
from phoebe.geometry.base import GeometryKind
from phoebe.geometry.bounds import BoundBox, hit_bound_box
from phoebe.geometry.plane import PlaneShape, hit_plane, plane_normal_at
from phoebe.geometry.quad import QuadShape, hit_quad, quad_normal_at
from phoebe.geometry.sphere import SphereShape, hit_sphere, sphere_normal_at

vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of the nearest ray-scene intersection.

    Attributes:
        hit: 1 if the ray intersected any primitive, 0 on a miss.
        t: Ray parameter of the hit. Only valid if hit == 1.
        point: Hit position. Only valid if hit == 1.
        normal: Unit surface normal facing the incoming ray.
        front_face: 1 if the ray hit the side the outward normal points to.
        material_id: Unified material id of the hit primitive, -1 on a miss.
        primitive: Index of the hit primitive in insertion order, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32
    primitive: ti.i32


MAX_PRIMITIVES = 4096
MAX_SPHERES = 1024
MAX_PLANES = 1024
MAX_QUADS = 1024

# Unified primitive table, in insertion order
primitive_kinds = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_shape_indices = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_material_ids = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
num_primitives = ti.field(dtype=ti.i32, shape=())

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Plane storage
plane_points = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
num_planes = ti.field(dtype=ti.i32, shape=())

# Quad storage
quad_corners = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_edge_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_edge_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
num_quads = ti.field(dtype=ti.i32, shape=())

# Scene bounding box used for the culling pre-test
scene_bound_min = ti.Vector.field(3, dtype=ti.f32, shape=())
scene_bound_max = ti.Vector.field(3, dtype=ti.f32, shape=())

# Scratch output of the host-side nearest-hit query
_query_t = ti.field(dtype=ti.f32, shape=())
_query_index = ti.field(dtype=ti.i32, shape=())

# Incremented by every clear_scene
_generation = 0


def clear_scene() -> None:
    """Remove every primitive.

    Resets the counts to zero; stale field data is overwritten by later adds.
    Also bumps the storage generation, so a host Scene uploaded before the
    clear knows it has to upload again.
    """
    global _generation
    _generation += 1
    num_primitives[None] = 0
    num_spheres[None] = 0
    num_planes[None] = 0
    num_quads[None] = 0


def set_scene_bounds(bounds: BoundBox) -> None:
    scene_bound_min[None] = bounds.min
    scene_bound_max[None] = bounds.max


def _append_primitive(kind: GeometryKind, shape_index: int, material_id: int) -> int:
    idx = num_primitives[None]
    if idx >= MAX_PRIMITIVES:
        raise CapacityError(f"Maximum number of primitives ({MAX_PRIMITIVES}) exceeded")
    primitive_kinds[idx] = int(kind)
    primitive_shape_indices[idx] = shape_index
    primitive_material_ids[idx] = material_id
    num_primitives[None] = idx + 1
    return idx


def _reserve(counter, limit: int, name: str) -> int:
    idx = counter[None]
    if idx >= limit:
        raise CapacityError(f"Maximum number of {name} ({limit}) exceeded")
    if num_primitives[None] >= MAX_PRIMITIVES:
        raise CapacityError(f"Maximum number of primitives ({MAX_PRIMITIVES}) exceeded")
    return idx


def add_sphere(center: Vec3, radius: float, material_id: int = 0) -> int:
    """Upload a sphere into the primitive tables.

    Returns:
        The primitive index (insertion order across all kinds).

    Raises:
        CapacityError: If sphere or primitive storage is full.
    """
    idx = _reserve(num_spheres, MAX_SPHERES, "spheres")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    num_spheres[None] = idx + 1
    return _append_primitive(GeometryKind.SPHERE, idx, material_id)


def add_plane(point: Vec3, normal: Vec3, material_id: int = 0) -> int:
    """Add a plane with a unit ``normal`` to the scene.

    Raises:
        CapacityError: If plane or primitive storage is full.
    """
    idx = _reserve(num_planes, MAX_PLANES, "planes")
    plane_points[idx] = point
    plane_normals[idx] = normal
    num_planes[None] = idx + 1
    return _append_primitive(GeometryKind.PLANE, idx, material_id)


def add_quad(corner: Vec3, edge_u: Vec3, edge_v: Vec3, material_id: int = 0) -> int:
    """Add a quad spanning corner, corner+u, corner+v, corner+u+v.

    Raises:
        CapacityError: If quad or primitive storage is full.
    """
    idx = _reserve(num_quads, MAX_QUADS, "quads")
    quad_corners[idx] = corner
    quad_edge_u[idx] = edge_u
    quad_edge_v[idx] = edge_v
    num_quads[None] = idx + 1
    return _append_primitive(GeometryKind.QUAD, idx, material_id)


def get_primitive_count() -> int:
    return int(num_primitives[None])


def get_scene_generation() -> int:
    return _generation


@ti.func
def _hit_primitive(index: ti.i32, ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32):
    """Dispatch the intersection test on the primitive's kind."""
    kind = primitive_kinds[index]
    shape_index = primitive_shape_indices[index]
    did_hit = 0
    hit_t = 0.0

    if kind == int(GeometryKind.SPHERE):
        sphere = SphereShape(center=sphere_centers[shape_index], radius=sphere_radii[shape_index])
        did_hit, hit_t = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
    elif kind == int(GeometryKind.PLANE):
        plane = PlaneShape(point=plane_points[shape_index], normal=plane_normals[shape_index])
        did_hit, hit_t = hit_plane(ray_origin, ray_direction, plane, t_min, t_max)
    elif kind == int(GeometryKind.QUAD):
        quad = QuadShape(
            corner=quad_corners[shape_index],
            edge_u=quad_edge_u[shape_index],
            edge_v=quad_edge_v[shape_index],
        )
        did_hit, hit_t = hit_quad(ray_origin, ray_direction, quad, t_min, t_max)

    return did_hit, hit_t


@ti.func
def primitive_normal_at(index: ti.i32, position: vec3) -> vec3:
    """Outward unit normal of a primitive at a point on its surface."""
    kind = primitive_kinds[index]
    shape_index = primitive_shape_indices[index]
    normal = vec3(0.0, 0.0, 0.0)

    if kind == int(GeometryKind.SPHERE):
        sphere = SphereShape(center=sphere_centers[shape_index], radius=sphere_radii[shape_index])
        normal = sphere_normal_at(sphere, position)
    elif kind == int(GeometryKind.PLANE):
        plane = PlaneShape(point=plane_points[shape_index], normal=plane_normals[shape_index])
        normal = plane_normal_at(plane, position)
    elif kind == int(GeometryKind.QUAD):
        quad = QuadShape(
            corner=quad_corners[shape_index],
            edge_u=quad_edge_u[shape_index],
            edge_v=quad_edge_v[shape_index],
        )
        normal = quad_normal_at(quad, position)

    return normal


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
        primitive=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the nearest primitive hit by the ray.

    Every primitive is tested against the full (t_min, t_max) interval. A
    later candidate replaces the current one only if it is nearer by more
    than TIE_EPSILON, so ties go to the earliest inserted primitive.

    Args:
        ray_origin: Ray start.
        ray_direction: Ray direction, any length.
        t_min: Exclusive lower bound on the hit parameter.
        t_max: Exclusive upper bound on the hit parameter.

    Returns:
        A SceneHitRecord for the nearest hit, or a miss record.
    """
    in_box = hit_bound_box(
        ray_origin, ray_direction, scene_bound_min[None], scene_bound_max[None], t_min, t_max
    )

    closest_t = t_max
    closest = -1
    for i in range(num_primitives[None]):
        if in_box == 1 or primitive_kinds[i] == int(GeometryKind.PLANE):
            did_hit, t = _hit_primitive(i, ray_origin, ray_direction, t_min, t_max)
            if did_hit == 1 and (closest < 0 or t < closest_t - TIE_EPSILON):
                closest_t = t
                closest = i

    result = _make_miss_record()
    if closest >= 0:
        point = ray_origin + closest_t * ray_direction
        outward = primitive_normal_at(closest, point)
        front_face = 1
        normal = outward
        if tm.dot(ray_direction, outward) > 0.0:
            front_face = 0
            normal = -outward
        result = SceneHitRecord(
            hit=1,
            t=closest_t,
            point=point,
            normal=normal,
            front_face=front_face,
            material_id=primitive_material_ids[closest],
            primitive=closest,
        )

    return result


@ti.kernel
def _query_nearest(ray_origin: vec3, ray_direction: vec3):
    # Single-iteration outer loop keeps the primitive loop serial
    for _ in range(1):
        record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)
        _query_t[None] = record.t
        _query_index[None] = record.primitive


def query_nearest(origin: Vec3, direction: Vec3) -> tuple[int, float] | None:
    """Run the scene intersection kernel for a single ray.

    Returns:
        ``(primitive_index, t)`` of the nearest hit, or None on a miss.
    """
    _query_nearest(vec3(*origin), vec3(*direction))
    index = _query_index[None]
    if index < 0:
        return None
    return int(index), float(_query_t[None])
