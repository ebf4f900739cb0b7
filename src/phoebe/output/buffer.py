"""Image sinks the path tracer writes pixels into.

Any object with ``dims()`` and ``set_intensity_at(x, y, color)`` can receive a
render; ``ImageBuffer`` is the in-memory implementation backed by a float32
NumPy array of shape (height, width, 3). Values are stored as given, without
clamping; clamping happens at export.
"""

from pathlib import Path
from typing import Protocol, runtime_checkable

import numpy as np
import numpy.typing as npt

from phoebe.core.errors import ValidationError
from phoebe.core.vector import Vec3, VectorLike, as_tuple
from phoebe.output.export import image_to_uint8, save_png
from phoebe.output.tonemap import ToneMapMethod


@runtime_checkable
class ImageSink(Protocol):
    """Destination of rendered pixel values."""

    def dims(self) -> tuple[int, int]:
        """Return ``(width, height)`` in pixels."""
        ...

    def set_intensity_at(self, x: int, y: int, color: Vec3) -> None:
        """Store the linear RGB value of pixel ``(x, y)``; row 0 is the top."""
        ...


class ImageBuffer:
    """In-memory linear RGB image.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Create a black image.

        Raises:
            ValidationError: If either dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValidationError(f"image dimensions must be positive, got {width}x{height}")
        self._width = width
        self._height = height
        self._data = np.zeros((height, width, 3), dtype=np.float32)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def dims(self) -> tuple[int, int]:
        return self._width, self._height

    def _check_pixel(self, x: int, y: int) -> None:
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise ValidationError(
                f"pixel ({x}, {y}) is outside the {self._width}x{self._height} image"
            )

    def set_intensity_at(self, x: int, y: int, color: VectorLike) -> None:
        self._check_pixel(x, y)
        self._data[y, x] = color

    def intensity_at(self, x: int, y: int) -> Vec3:
        self._check_pixel(x, y)
        return as_tuple(self._data[y, x])

    def to_numpy(self) -> npt.NDArray[np.float32]:
        """Copy of the linear image, shape (height, width, 3)."""
        return self._data.copy()

    def to_uint8(
        self,
        *,
        tone_map: ToneMapMethod = "none",
        gamma: float = 2.2,
        exposure: float = 1.0,
    ) -> npt.NDArray[np.uint8]:
        return image_to_uint8(self._data, tone_map=tone_map, gamma=gamma, exposure=exposure)

    def save_png(
        self,
        filepath: str | Path,
        *,
        tone_map: ToneMapMethod = "none",
        gamma: float = 2.2,
        exposure: float = 1.0,
    ) -> None:
        """Export the image as an 8-bit PNG.

        Raises:
            OSError: If the file cannot be written.
        """
        save_png(self._data, filepath, tone_map=tone_map, gamma=gamma, exposure=exposure)

    def __repr__(self) -> str:
        return f"ImageBuffer(width={self._width}, height={self._height})"
