"""Unified material table and in-kernel material dispatch.

Every registered material gets a unified material id. Two fields map that id
to its ``MaterialType`` and to the index inside the type-specific storage, so
the integrator can dispatch with a single id stored per primitive.
"""

import logging
from typing import Any

import taichi as ti
import taichi.math as tm

from phoebe.core.errors import CapacityError, ValidationError
from phoebe.core.ray import make_ray, offset_ray_origin
from phoebe.materials.base import Material, MaterialType
from phoebe.materials.emissive import (
    Emissive,
    clear_emissive_materials,
    get_emissive_radiance,
)
from phoebe.materials.lambertian import (
    Lambertian,
    clear_lambertian_materials,
    get_lambertian_albedo,
    scatter_lambertian,
)
from phoebe.materials.metal import (
    Metal,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_roughness,
    scatter_metal,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

MAX_MATERIALS = 768

# Per unified id: MaterialType tag and slot in that type's storage
material_kind = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_slot = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_count = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Drop every registered material, including the type-specific storage."""
    clear_lambertian_materials()
    clear_metal_materials()
    clear_emissive_materials()
    material_count[None] = 0


def register_material(material: Material) -> int:
    """Upload a material and return its unified material id.

    Raises:
        CapacityError: If the unified table or the type storage is full.
    """
    next_id = material_count[None]
    if next_id >= MAX_MATERIALS:
        raise CapacityError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    slot = material.register()
    material_kind[next_id] = int(material.material_type)
    material_slot[next_id] = slot
    material_count[None] = next_id + 1
    logger.debug("registered %r as material %d", material, next_id)
    return next_id


def get_material_count() -> int:
    return int(material_count[None])


_MATERIAL_CLASSES: dict[str, type[Material]] = {
    "lambertian": Lambertian,
    "metal": Metal,
    "emissive": Emissive,
}


def material_from_dict(data: dict[str, Any]) -> Material:
    """Build a material from its ``to_dict`` form.

    Raises:
        ValidationError: If the type tag is unknown or parameters are invalid.
    """
    if not isinstance(data, dict):
        raise ValidationError(f"material must be a JSON object, got {data!r}")
    params = dict(data)
    kind = params.pop("type", None)
    cls = _MATERIAL_CLASSES.get(kind) if isinstance(kind, str) else None
    if cls is None:
        raise ValidationError(
            f"unknown material type {kind!r}; expected one of {sorted(_MATERIAL_CLASSES)}"
        )
    try:
        return cls(**params)
    except ValidationError:
        raise
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"invalid parameters for {kind} material: {exc}") from exc


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Material type of a unified id, or -1 for an invalid id."""
    kind = -1
    if material_id >= 0 and material_id < material_count[None]:
        kind = material_kind[material_id]
    return kind


@ti.func
def material_emission(material_id: ti.i32) -> vec3:
    """Radiance emitted by the surface, zero for non-emitters."""
    emission = vec3(0.0)
    if get_material_type(material_id) == int(MaterialType.EMISSIVE):
        emission = get_emissive_radiance(material_slot[material_id])
    return emission


@ti.func
def material_scatters(material_id: ti.i32) -> ti.i32:
    kind = get_material_type(material_id)
    return kind == int(MaterialType.LAMBERTIAN) or kind == int(MaterialType.METAL)


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Dispatch to the scatter function of the material's type.

    Args:
        material_id: Unified id of the surface material.
        incident_direction: Direction of the ray that hit the surface.
        hit_point: Where the ray met the surface.
        normal: The unit surface normal, facing the incoming ray.
        state: Random stream state.

    Returns:
        A tuple of (scattered_ray, attenuation, did_scatter, new_state). The
        scattered ray starts ``RAY_EPSILON`` off the surface.
    """
    kind = get_material_type(material_id)
    slot = 0
    if kind >= 0:
        slot = material_slot[material_id]

    scattered_direction = vec3(0.0)
    attenuation = vec3(0.0)
    did_scatter = 0
    rng = state

    if kind == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(slot)
        scattered_direction, attenuation, _, rng = scatter_lambertian(albedo, normal, state)
        did_scatter = 1

    elif kind == int(MaterialType.METAL):
        albedo = get_metal_albedo(slot)
        roughness = get_metal_roughness(slot)
        scattered_direction, attenuation, did_scatter, rng = scatter_metal(
            albedo, roughness, incident_direction, normal, state
        )

    origin = offset_ray_origin(hit_point, normal, scattered_direction)
    scattered = make_ray(origin, scattered_direction)
    return scattered, attenuation, did_scatter, rng
