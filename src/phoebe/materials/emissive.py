"""Emissive (light source) material.

An emissive surface absorbs every incoming ray and contributes its own
radiance. Emission values are HDR and may exceed 1.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from phoebe.core.errors import CapacityError
from phoebe.core.vector import Vec3
from phoebe.materials.base import Material, MaterialType, validate_color

vec3 = tm.vec3

MAX_EMISSIVE_MATERIALS = 256

emissive_radiances = ti.Vector.field(3, dtype=ti.f32, shape=MAX_EMISSIVE_MATERIALS)
num_emissive_materials = ti.field(dtype=ti.i32, shape=())


def clear_emissive_materials() -> None:
    num_emissive_materials[None] = 0


def add_emissive_material(emission: tuple[float, float, float]) -> int:
    """Add an emissive material to the kernel-side registry.

    Args:
        emission: Emitted radiance (R, G, B), each component non-negative.

    Returns:
        The index of the added material.

    Raises:
        CapacityError: If the maximum number of materials is exceeded.
        ValidationError: If any component is negative.
    """
    emission = validate_color(emission, "emission", upper=None)

    idx = num_emissive_materials[None]
    if idx >= MAX_EMISSIVE_MATERIALS:
        raise CapacityError(
            f"Maximum number of emissive materials ({MAX_EMISSIVE_MATERIALS}) exceeded"
        )

    emissive_radiances[idx] = vec3(emission[0], emission[1], emission[2])
    num_emissive_materials[None] = idx + 1
    return idx


@ti.func
def get_emissive_radiance(material_idx: ti.i32) -> vec3:
    return emissive_radiances[material_idx]


@dataclass(frozen=True)
class Emissive(Material):
    """Light-emitting surface that never scatters.

    Attributes:
        emission: Emitted radiance per channel (non-negative, unbounded).
    """

    emission: Vec3

    material_type: ClassVar[MaterialType] = MaterialType.EMISSIVE

    def __post_init__(self) -> None:
        object.__setattr__(self, "emission", validate_color(self.emission, "emission", upper=None))

    def register(self) -> int:
        return add_emissive_material(self.emission)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "emissive", "emission": list(self.emission)}
