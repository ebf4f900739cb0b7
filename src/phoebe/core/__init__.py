"""Core rendering module.

Components:
    errors: Exception hierarchy
    constants: Tolerances and limits
    vector: Host-side Vec3 helpers
    ray: Ray data structure and in-kernel vector utilities
    sampling: Per-pixel deterministic random streams
    integrator: Recursive path tracing kernels
    tracer: PathTracer render driver

The integrator and tracer declare Taichi fields and are NOT imported here.
Import them directly from phoebe.core.integrator / phoebe.core.tracer after
the Taichi runtime has been initialized.
"""

from .errors import (
    CapacityError,
    ConfigError,
    DegenerateCameraError,
    DegenerateGeometryError,
    DegenerateVectorError,
    InvalidBoundsError,
    PhoebeError,
    ValidationError,
)
from .ray import HostRay, Ray, make_ray, ray_at, reflect, vec3

__all__ = [
    "PhoebeError",
    "ValidationError",
    "DegenerateVectorError",
    "DegenerateGeometryError",
    "DegenerateCameraError",
    "InvalidBoundsError",
    "ConfigError",
    "CapacityError",
    "HostRay",
    "Ray",
    "make_ray",
    "ray_at",
    "reflect",
    "vec3",
]
