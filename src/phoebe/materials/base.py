"""Material interface shared by all material models.

Materials are immutable host objects. When a scene is uploaded each distinct
material is registered once in the kernel-side material table and geometry
refers to it by the returned unified material id.
"""

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any

from phoebe.core.errors import ValidationError
from phoebe.core.vector import Vec3, VectorLike, as_tuple, to_vector


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    EMISSIVE = 2


def validate_color(value: VectorLike, name: str, upper: float | None = 1.0) -> Vec3:
    """Check an RGB triple lies in ``[0, upper]`` (no upper limit if None).

    Raises:
        ValidationError: If any component is out of range or not finite.
    """
    color = to_vector(value, name)
    for i, component in enumerate(color):
        if component < 0.0 or (upper is not None and component > upper):
            limit = f"[0, {upper}]" if upper is not None else "[0, inf)"
            raise ValidationError(f"{name} component {i} = {component} is outside {limit}")
    return as_tuple(color)


class Material(ABC):
    """Shading model attached to every piece of geometry."""

    material_type: MaterialType

    @abstractmethod
    def register(self) -> int:
        """Write the parameters into kernel storage.

        Returns:
            The index of the material within its type-specific storage.
        """

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Serializable form, tagged with ``"type"``."""
