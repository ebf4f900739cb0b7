"""Exception hierarchy for the path tracer.

Construction-time problems (degenerate vectors, zero-radius spheres,
collinear camera bases, inverted bounds, bad configuration) raise a
``ValidationError`` subclass immediately. Per-ray misses are never errors.
"""


class PhoebeError(Exception):
    """Base class for all errors raised by phoebe."""


class ValidationError(PhoebeError, ValueError):
    """An input failed validation at construction time."""


class DegenerateVectorError(ValidationError):
    """A vector that must have non-zero length was zero (or not finite)."""


class DegenerateGeometryError(ValidationError):
    """A primitive was constructed with degenerate parameters."""


class DegenerateCameraError(ValidationError):
    """The camera basis cannot be built from eye, center and up."""


class InvalidBoundsError(ValidationError):
    """A bounding box has ``min > max`` on some axis."""


class ConfigError(ValidationError):
    """A render configuration is malformed or out of range."""


class CapacityError(PhoebeError, RuntimeError):
    """Kernel-side storage for primitives or materials is full."""
