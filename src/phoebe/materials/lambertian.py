"""Ideal diffuse (Lambertian) surfaces.

A Lambertian surface looks equally bright from every viewing direction. Its
BRDF is constant,
    f_r(wi, wo) = albedo / pi
and scattered directions are drawn from the cosine-weighted hemisphere,
    pdf(wi) = cos(theta) / pi

Sampling with this PDF makes the estimator weight ``f_r * cos / pdf`` equal to
the albedo, which is the attenuation ``scatter_lambertian`` returns.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from phoebe.materials.lambertian import Lambertian
    >>> clay = Lambertian(albedo=(0.8, 0.4, 0.2))
    >>> # Inside a kernel:
    >>> # direction, attenuation, pdf, state = scatter_lambertian(albedo, normal, state)
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import taichi as ti
import taichi.math as tm

from phoebe.core.errors import CapacityError
from phoebe.core.ray import near_zero
from phoebe.core.sampling import sample_cosine_hemisphere
from phoebe.core.vector import Vec3
from phoebe.materials.base import Material, MaterialType, validate_color

vec3 = tm.vec3


@ti.func
def eval_lambertian(albedo: vec3) -> vec3:
    """Evaluate the Lambertian BRDF (albedo / pi), without the cosine term."""
    return albedo / tm.pi


@ti.func
def pdf_lambertian(normal: vec3, scattered_direction: vec3) -> ti.f32:
    """Density of ``scattered_direction`` under cosine sampling about a unit ``normal``.

    Directions below the surface have density 0.
    """
    cos_theta = tm.dot(normal, scattered_direction)
    pdf = 0.0
    if cos_theta > 0.0:
        pdf = cos_theta / tm.pi
    return pdf


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Draw a diffuse bounce direction.

    Args:
        albedo: Reflectance per channel, in [0, 1].
        normal: Unit normal on the side the incoming ray arrived from.
        state: Random stream state.

    Returns:
        A tuple of (scattered_direction, attenuation, pdf, new_state). The
        attenuation equals the albedo because the cosine terms cancel.
    """
    scattered_direction, pdf, rng = sample_cosine_hemisphere(normal, state)

    # Floating point can collapse the sample onto the tangent plane
    if near_zero(scattered_direction):
        scattered_direction = normal
        pdf = 1.0 / tm.pi

    attenuation = albedo
    return scattered_direction, attenuation, pdf, rng


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_LAMBERTIAN_MATERIALS = 256

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Reset the Lambertian material count to zero."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the kernel-side registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B), each in [0, 1].

    Returns:
        Index of the albedo in the Lambertian storage.

    Raises:
        CapacityError: If the maximum number of materials is exceeded.
        ValidationError: If any albedo component is outside [0, 1].
    """
    albedo = validate_color(albedo, "albedo")

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise CapacityError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]


@dataclass(frozen=True)
class Lambertian(Material):
    """Ideal diffuse material.

    Attributes:
        albedo: Fraction of light reflected per channel, each in [0, 1].
    """

    albedo: Vec3

    material_type: ClassVar[MaterialType] = MaterialType.LAMBERTIAN

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_color(self.albedo, "albedo"))

    def register(self) -> int:
        return add_lambertian_material(self.albedo)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "lambertian", "albedo": list(self.albedo)}
