"""Materials module for BRDF models.

Components:
    base: Material interface, MaterialType and color validation
    lambertian: Ideal diffuse (Lambertian) reflection
    metal: Specular reflection with optional roughness
    emissive: Light-emitting surfaces
    dispatch: Unified material table and kernel-side scatter dispatch

Each material module declares Taichi fields, so this package must be imported
after the Taichi runtime is initialized.
"""

from .base import Material, MaterialType, validate_color
from .dispatch import (
    MAX_MATERIALS,
    clear_materials,
    get_material_count,
    material_emission,
    material_from_dict,
    material_scatters,
    register_material,
    scatter_material,
)
from .emissive import Emissive
from .lambertian import Lambertian, eval_lambertian, pdf_lambertian, scatter_lambertian
from .metal import Metal, scatter_metal

__all__ = [
    "Material",
    "MaterialType",
    "validate_color",
    "Lambertian",
    "Metal",
    "Emissive",
    "eval_lambertian",
    "pdf_lambertian",
    "scatter_lambertian",
    "scatter_metal",
    "MAX_MATERIALS",
    "clear_materials",
    "get_material_count",
    "material_emission",
    "material_from_dict",
    "material_scatters",
    "register_material",
    "scatter_material",
]
