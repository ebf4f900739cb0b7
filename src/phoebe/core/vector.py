"""Host-side Vec3 helpers built on NumPy.

Kernels use ``taichi.math.vec3``; everything that runs in Python (scene
construction, camera setup, validation) goes through these helpers so that
degenerate input is rejected before any kernel sees it.
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

from phoebe.core.constants import HOST_EPSILON
from phoebe.core.errors import DegenerateVectorError, ValidationError

Vec3 = tuple[float, float, float]
VectorLike = Sequence[float] | npt.NDArray[np.floating]


def to_vector(value: VectorLike, name: str = "vector") -> npt.NDArray[np.float64]:
    """Convert a 3-sequence to a float64 array, rejecting bad shapes and NaN/inf.

    Args:
        value: Any sequence of three real numbers.
        name: Name used in the error message.

    Returns:
        A new array of shape (3,).

    Raises:
        ValidationError: If ``value`` is not three finite numbers.
    """
    try:
        array = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be three numbers, got {value!r}") from exc
    if array.shape != (3,):
        raise ValidationError(f"{name} must have exactly 3 components, got shape {array.shape}")
    if not np.all(np.isfinite(array)):
        raise ValidationError(f"{name} must be finite, got {value!r}")
    return array


def as_tuple(value: VectorLike) -> Vec3:
    """Return a plain ``(x, y, z)`` tuple of Python floats."""
    return (float(value[0]), float(value[1]), float(value[2]))


def length(value: VectorLike) -> float:
    return float(np.linalg.norm(np.asarray(value, dtype=np.float64)))


def normalize(value: VectorLike, name: str = "vector") -> npt.NDArray[np.float64]:
    """Scale a vector to unit length.

    Raises:
        DegenerateVectorError: If the vector has (near) zero length.
    """
    array = to_vector(value, name)
    norm = float(np.linalg.norm(array))
    if norm < HOST_EPSILON:
        raise DegenerateVectorError(f"cannot normalize zero-length {name} {as_tuple(array)}")
    return array / norm


def dot(a: VectorLike, b: VectorLike) -> float:
    return float(np.dot(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)))


def cross(a: VectorLike, b: VectorLike) -> npt.NDArray[np.float64]:
    return np.cross(np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64))


def is_parallel(a: VectorLike, b: VectorLike) -> bool:
    """Check whether two vectors are collinear (or either is zero)."""
    return length(cross(a, b)) < HOST_EPSILON * max(length(a) * length(b), 1.0)
