"""Specular metal surfaces.

Perfect metals (roughness=0) produce mirror-like reflections, while rougher
metals perturb the mirror direction by a random point in the unit sphere
scaled by the roughness:

    R = I - 2(I . N)N
    scattered = normalize(R + roughness * random_in_unit_sphere())

A scattered direction that ends up below the surface is absorbed.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from phoebe.core.errors import CapacityError, ValidationError
from phoebe.core.ray import reflect
from phoebe.core.sampling import random_in_unit_sphere
from phoebe.core.vector import Vec3
from phoebe.materials.base import Material, MaterialType, validate_color

vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    roughness: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Reflect the incoming ray, perturbed by the roughness.

    Args:
        albedo: Reflective tint per channel, in [0, 1].
        roughness: Fuzz radius in [0, 1]; 0 reflects like a mirror.
        incident_direction: Direction of the incoming ray.
        normal: The surface normal on the side of the incoming ray.
        state: Random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, new_state).
        ``did_scatter`` is 0 when the perturbed ray points into the surface.
    """
    reflected = reflect(tm.normalize(incident_direction), normal)

    fuzz, rng = random_in_unit_sphere(state)
    scattered_direction = tm.normalize(reflected + roughness * fuzz)

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0
        scattered_direction = vec3(0.0, 0.0, 0.0)

    attenuation = albedo
    return scattered_direction, attenuation, did_scatter, rng


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_METAL_MATERIALS = 256

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_roughnesses = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    num_metal_materials[None] = 0


def _validate_roughness(roughness: float) -> float:
    try:
        roughness = float(roughness)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Roughness must be a number, got {roughness!r}") from exc
    if not 0.0 <= roughness <= 1.0:
        raise ValidationError(
            f"Roughness = {roughness} is outside [0, 1]; "
            "use 0 for a mirror and up to 1 for a fully fuzzed reflection."
        )
    return roughness


def add_metal_material(
    albedo: tuple[float, float, float],
    roughness: float = 0.0,
) -> int:
    """Add a metal material to the kernel-side registry.

    Args:
        albedo: The reflective color as (R, G, B), each in [0, 1].
        roughness: Fuzz radius in [0, 1]; 0 (the default) is a mirror.

    Returns:
        Index of the parameters in the metal storage.

    Raises:
        CapacityError: If the maximum number of materials is exceeded.
        ValidationError: If albedo or roughness is outside [0, 1].
    """
    albedo = validate_color(albedo, "albedo")
    roughness = _validate_roughness(roughness)

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise CapacityError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_roughnesses[idx] = roughness
    num_metal_materials[None] = idx + 1
    return idx


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_roughness(material_idx: ti.i32) -> ti.f32:
    return metal_roughnesses[material_idx]


@dataclass(frozen=True)
class Metal(Material):
    """Specular reflector.

    Attributes:
        albedo: Reflective tint per channel, each in [0, 1].
        roughness: Fuzz radius in [0, 1]; 0 is a perfect mirror.
    """

    albedo: Vec3
    roughness: float = 0.0

    material_type: ClassVar[MaterialType] = MaterialType.METAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_color(self.albedo, "albedo"))
        object.__setattr__(self, "roughness", _validate_roughness(self.roughness))

    def register(self) -> int:
        return add_metal_material(self.albedo, self.roughness)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "metal", "albedo": list(self.albedo), "roughness": self.roughness}
