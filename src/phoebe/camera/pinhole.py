"""Pinhole camera model for perspective projection ray generation.

The camera is positioned at ``eye`` and looks at ``center``. It builds an
orthonormal basis from the view parameters:
- tangent: the look direction, normalize(center - eye)
- binormal: points right in the image plane, normalize(tangent x up)
- normal: points up in the image plane, binormal x tangent

The image plane sits at unit distance along the tangent. Pixel ``(x, y)`` with
sub-pixel jitter ``(jx, jy)`` maps to
    u = (2 (x + jx) / width - 1) * aspect_ratio * norm_height
    v = (1 - 2 (y + jy) / height) * norm_height
so row 0 is the top of the image, and the ray direction is
normalize(tangent + u * binormal + v * normal).

``Camera.ray_through`` evaluates this on the host; ``setup_camera`` uploads the
basis to Taichi fields so kernels can call the ``ray_through`` Taichi function.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from phoebe.camera.pinhole import Camera, setup_camera
    >>>
    >>> camera = Camera(eye=(0, 0, 0), center=(0, 0, -1), up=(0, 1, 0))
    >>> camera.ray_through(400, 400, 800, 800).direction
    (0.0, 0.0, -1.0)
    >>> setup_camera(camera)
"""

import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import taichi as ti
import taichi.math as tm

from phoebe.core.errors import DegenerateCameraError, DegenerateVectorError, ValidationError
from phoebe.core.ray import HostRay, Ray, make_ray
from phoebe.core.vector import Vec3, as_tuple, cross, is_parallel, normalize, to_vector


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Immutable pinhole camera.

    Attributes:
        eye: Camera position in world space.
        center: Point the camera is looking at.
        up: Approximate up direction; orthogonalized against the view direction.
        aspect_ratio: Width divided by height of the image plane.
        norm_height: Half-height of the image plane at unit distance.
        tangent: Unit look direction (derived).
        normal: Unit up direction in the image plane (derived).
        binormal: Unit right direction in the image plane (derived).

    Raises:
        DegenerateCameraError: If eye equals center, or up is zero or parallel
            to the view direction.
        ValidationError: If aspect_ratio or norm_height is not a positive
            finite number.
    """

    eye: Vec3
    center: Vec3
    up: Vec3
    aspect_ratio: float = 1.0
    norm_height: float = 1.0
    tangent: Vec3 = field(init=False)
    normal: Vec3 = field(init=False)
    binormal: Vec3 = field(init=False)

    def __post_init__(self) -> None:
        eye = to_vector(self.eye, "camera eye")
        center = to_vector(self.center, "camera center")
        up = to_vector(self.up, "camera up")

        for name in ("aspect_ratio", "norm_height"):
            value = float(getattr(self, name))
            if not math.isfinite(value) or value <= 0.0:
                raise ValidationError(f"camera {name} must be positive, got {getattr(self, name)!r}")
            object.__setattr__(self, name, value)

        try:
            tangent = normalize(center - eye, "view direction")
            normalize(up, "up vector")
        except DegenerateVectorError as exc:
            raise DegenerateCameraError(str(exc)) from exc
        if is_parallel(tangent, up):
            raise DegenerateCameraError(
                f"up vector {as_tuple(up)} is parallel to the view direction {as_tuple(tangent)}"
            )

        binormal = normalize(cross(tangent, up), "binormal")
        normal = cross(binormal, tangent)

        object.__setattr__(self, "eye", as_tuple(eye))
        object.__setattr__(self, "center", as_tuple(center))
        object.__setattr__(self, "up", as_tuple(up))
        object.__setattr__(self, "tangent", as_tuple(tangent))
        object.__setattr__(self, "normal", as_tuple(normal))
        object.__setattr__(self, "binormal", as_tuple(binormal))

    @classmethod
    def from_config(cls, config: Any) -> "Camera":
        """Camera described by a RenderConfig; the aspect ratio is width / height."""
        eye, center, up = config.eye_center_up()
        return cls(
            eye=eye,
            center=center,
            up=up,
            aspect_ratio=config.width / config.height,
            norm_height=config.camera_norm_height,
        )

    @property
    def position(self) -> Vec3:
        return self.eye

    def basis(self) -> tuple[Vec3, Vec3, Vec3]:
        """Return ``(tangent, normal, binormal)``."""
        return self.tangent, self.normal, self.binormal

    def ray_through(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        jitter_x: float = 0.0,
        jitter_y: float = 0.0,
    ) -> HostRay:
        """Primary ray through pixel ``(x, y)`` of a ``width`` x ``height`` image.

        Args:
            x: Pixel column, 0 is the left edge.
            y: Pixel row, 0 is the top edge.
            width: Image width in pixels.
            height: Image height in pixels.
            jitter_x: Sub-pixel offset in [0, 1).
            jitter_y: Sub-pixel offset in [0, 1).

        Returns:
            A ray from the eye with a unit direction.
        """
        u = (2.0 * (x + jitter_x) / width - 1.0) * self.aspect_ratio * self.norm_height
        v = (1.0 - 2.0 * (y + jitter_y) / height) * self.norm_height
        direction = (
            np.asarray(self.tangent) + u * np.asarray(self.binormal) + v * np.asarray(self.normal)
        )
        return HostRay(origin=self.eye, direction=as_tuple(direction / np.linalg.norm(direction)))


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_position = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_tangent = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_binormal = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_aspect_ratio = ti.field(dtype=ti.f32, shape=())
_camera_norm_height = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload the camera basis for use by kernels.

    Must be called from Python (not from within a Taichi kernel) before
    rendering.
    """
    _camera_position[None] = camera.eye
    _camera_tangent[None] = camera.tangent
    _camera_normal[None] = camera.normal
    _camera_binormal[None] = camera.binormal
    _camera_aspect_ratio[None] = camera.aspect_ratio
    _camera_norm_height[None] = camera.norm_height


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def ray_through(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    jitter_x: ti.f32,
    jitter_y: ti.f32,
) -> Ray:
    """Kernel counterpart of ``Camera.ray_through`` using the uploaded camera.

    Args:
        x: Pixel column, 0 is the left edge.
        y: Pixel row, 0 is the top edge.
        width: Image width in pixels.
        height: Image height in pixels.
        jitter_x: Sub-pixel offset in [0, 1).
        jitter_y: Sub-pixel offset in [0, 1).

    Returns:
        A Ray from the camera position with a unit direction.
    """
    norm_height = _camera_norm_height[None]
    px = ti.cast(x, ti.f32) + jitter_x
    py = ti.cast(y, ti.f32) + jitter_y
    u = (2.0 * px / ti.cast(width, ti.f32) - 1.0) * _camera_aspect_ratio[None] * norm_height
    v = (1.0 - 2.0 * py / ti.cast(height, ti.f32)) * norm_height
    direction = tm.normalize(
        _camera_tangent[None] + u * _camera_binormal[None] + v * _camera_normal[None]
    )
    return make_ray(_camera_position[None], direction)


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with position, tangent, normal and binormal.
    """
    return {
        "position": as_tuple(_camera_position[None]),
        "tangent": as_tuple(_camera_tangent[None]),
        "normal": as_tuple(_camera_normal[None]),
        "binormal": as_tuple(_camera_binormal[None]),
    }
