"""Render configuration.

A ``RenderConfig`` holds everything a render needs besides the scene: image
size, sampling parameters, camera placement and the output file name. It can
be loaded from a JSON file whose keys use camelCase names::

    {
        "fileName": "out.png",
        "width": 400,
        "height": 300,
        "cameraEye": [0, 0, 0],
        "pixelSampleSize": 16,
        "traceDepth": 4
    }

Keys missing from the file keep their default value; unknown keys are
rejected. The worker count is a property of the machine, not of the render,
so ``numWorkers`` is not read from files; set it with ``--workers``.

This module declares no Taichi fields and can be imported before the Taichi
runtime is initialized.
"""

import json
import math
import os
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from phoebe.core.errors import ConfigError, ValidationError
from phoebe.core.vector import Vec3, as_tuple, to_vector

if TYPE_CHECKING:
    from phoebe.geometry.bounds import BoundBox

_SEPARATOR = "-" * 53


def _default_file_name() -> str:
    return f"phoebe_{time.time_ns()}.png"


def _default_num_workers() -> int:
    return os.cpu_count() or 1


# Python attribute name -> JSON key
_JSON_KEYS = {
    "file_name": "fileName",
    "seed": "seed",
    "width": "width",
    "height": "height",
    "scene_bound_min": "sceneBoundMin",
    "scene_bound_max": "sceneBoundMax",
    "camera_eye": "cameraEye",
    "camera_center": "cameraCenter",
    "camera_up": "cameraUp",
    "camera_norm_height": "cameraNormHeight",
    "pixel_sample_size": "pixelSampleSize",
    "intersect_sample_size": "intersectSampleSize",
    "trace_depth": "traceDepth",
    "background": "background",
}
_ATTRIBUTES = {key: name for name, key in _JSON_KEYS.items()}

_VECTOR_FIELDS = (
    "scene_bound_min",
    "scene_bound_max",
    "camera_eye",
    "camera_center",
    "camera_up",
    "background",
)
_INT_FIELDS = (
    "seed",
    "width",
    "height",
    "pixel_sample_size",
    "intersect_sample_size",
    "trace_depth",
)


@dataclass
class RenderConfig:
    """Configuration of a render.

    Attributes:
        num_workers: Number of CPU threads used by the render kernels.
        file_name: Name of the output PNG file.
        seed: Random seed; any integer, folded to 32 bits for the kernels.
        width: Image width in pixels.
        height: Image height in pixels.
        scene_bound_min: Lower corner of the initial scene bounding box.
        scene_bound_max: Upper corner of the initial scene bounding box.
        camera_eye: Camera position.
        camera_center: Point the camera looks at.
        camera_up: Up direction of the camera.
        camera_norm_height: Half-height of the image plane at unit distance.
        pixel_sample_size: Camera paths averaged per pixel.
        intersect_sample_size: Scattered rays averaged at each intersection.
        trace_depth: Path truncation depth; 0 renders a black image.
        background: Radiance of rays that leave the scene.
    """

    num_workers: int = field(default_factory=_default_num_workers)
    file_name: str = field(default_factory=_default_file_name)
    seed: int = 0
    width: int = 800
    height: int = 800
    scene_bound_min: Vec3 = (-5.0, -5.0, -5.0)
    scene_bound_max: Vec3 = (5.0, 5.0, 5.0)
    camera_eye: Vec3 = (0.0, 0.0, 0.0)
    camera_center: Vec3 = (0.0, 0.0, -1.0)
    camera_up: Vec3 = (0.0, 1.0, 0.0)
    camera_norm_height: float = 1.0
    pixel_sample_size: int = 9
    intersect_sample_size: int = 4
    trace_depth: int = 3
    background: Vec3 = (1.0, 1.0, 1.0)

    @classmethod
    def default(cls) -> "RenderConfig":
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderConfig":
        """Build a configuration from camelCase keys, defaulting missing ones.

        Raises:
            ConfigError: On unknown keys or values of the wrong type.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"configuration must be a JSON object, got {type(data).__name__}")

        if "numWorkers" in data:
            raise ConfigError("numWorkers is not read from configuration files; use --workers")

        unknown = sorted(set(data) - set(_ATTRIBUTES))
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")

        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _ATTRIBUTES[key]
            if name in _VECTOR_FIELDS:
                try:
                    values[name] = as_tuple(to_vector(value, key))
                except ValidationError as exc:
                    raise ConfigError(str(exc)) from exc
            elif name in _INT_FIELDS:
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ConfigError(f"{key} must be an integer, got {value!r}")
                values[name] = value
            elif name == "camera_norm_height":
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ConfigError(f"{key} must be a number, got {value!r}")
                values[name] = float(value)
            else:
                if not isinstance(value, str):
                    raise ConfigError(f"{key} must be a string, got {value!r}")
                values[name] = value
        return cls(**values)

    @classmethod
    def from_json(cls, path: str | Path) -> "RenderConfig":
        """Load a configuration file.

        Raises:
            OSError: If the file cannot be read.
            ConfigError: If the file is not UTF-8 encoded JSON or has bad
                keys/values.
        """
        with open(path, encoding="utf-8") as f:
            try:
                data = json.load(f)
            except UnicodeDecodeError as exc:
                raise ConfigError(f"{path}: not UTF-8 text: {exc}") from exc
            except json.JSONDecodeError as exc:
                raise ConfigError(f"{path}: invalid JSON: {exc}") from exc
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """camelCase form accepted by ``from_dict``, without the worker count."""
        result: dict[str, Any] = {}
        for name, value in asdict(self).items():
            if name == "num_workers":
                continue
            result[_JSON_KEYS[name]] = list(value) if name in _VECTOR_FIELDS else value
        return result

    def to_json(self, path: str | Path) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    def validate(self) -> None:
        """Check every value is in range.

        Raises:
            ConfigError: Describing the first invalid value found.
        """
        labels = {"num_workers": "numWorkers", **_JSON_KEYS}
        for name in ("num_workers", "width", "height", "pixel_sample_size", "intersect_sample_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{labels[name]} must be a positive integer, got {value!r}")

        depth = self.trace_depth
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
            raise ConfigError(f"traceDepth must be a non-negative integer, got {depth!r}")
        if not isinstance(self.seed, int):
            raise ConfigError(f"seed must be an integer, got {self.seed!r}")
        if not self.file_name:
            raise ConfigError("fileName must not be empty")
        if not math.isfinite(self.camera_norm_height) or self.camera_norm_height <= 0.0:
            raise ConfigError(
                f"cameraNormHeight must be positive, got {self.camera_norm_height!r}"
            )

        try:
            lo = to_vector(self.scene_bound_min, "sceneBoundMin")
            hi = to_vector(self.scene_bound_max, "sceneBoundMax")
            for name in ("camera_eye", "camera_center", "camera_up"):
                to_vector(getattr(self, name), _JSON_KEYS[name])
            background = to_vector(self.background, "background")
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

        if any(lo > hi):
            raise ConfigError(
                f"sceneBoundMin {as_tuple(lo)} exceeds sceneBoundMax {as_tuple(hi)} on some axis"
            )
        if any(background < 0.0):
            raise ConfigError(f"background must be non-negative, got {as_tuple(background)}")

    def scene_bound(self) -> "BoundBox":
        """Initial bounding box of the scene."""
        # phoebe.geometry pulls in modules that declare Taichi fields
        from phoebe.geometry.bounds import BoundBox

        return BoundBox.create(self.scene_bound_min, self.scene_bound_max)

    def eye_center_up(self) -> tuple[Vec3, Vec3, Vec3]:
        return self.camera_eye, self.camera_center, self.camera_up

    def summary(self) -> str:
        """Human readable table of the configuration."""

        def vec(v: Vec3) -> str:
            return f"({v[0]:.3f}, {v[1]:.3f}, {v[2]:.3f})"

        rows: list[tuple[str, str] | None] = [
            ("+ Number of CPU cores:", str(self.num_workers)),
            None,
            ("+ Output file name:", self.file_name),
            None,
            ("+ Random seed:", str(self.seed)),
            None,
            ("+ Image dimensions:", f"({self.width}, {self.height})"),
            None,
            ("+ Scene boundary settings:", ""),
            ("  Low:", vec(self.scene_bound_min)),
            ("  High:", vec(self.scene_bound_max)),
            None,
            ("+ Camera settings:", ""),
            ("  Eye:", vec(self.camera_eye)),
            ("  Center:", vec(self.camera_center)),
            ("  Up:", vec(self.camera_up)),
            ("  Normalized height:", f"{self.camera_norm_height:.3f}"),
            None,
            ("+ Pixel sample size:", str(self.pixel_sample_size)),
            ("+ Intersection sample size:", str(self.intersect_sample_size)),
            None,
            ("+ Recursion depth:", str(self.trace_depth)),
            ("+ Background:", vec(self.background)),
            None,
        ]
        width = max(len(row[0]) for row in rows if row is not None) + 2

        lines = [
            "=============== Configuration Summary ===============",
            _SEPARATOR,
        ]
        for row in rows:
            if row is None:
                lines.append(_SEPARATOR)
            elif row[1]:
                lines.append(f"{row[0].ljust(width)}{row[1]}")
            else:
                lines.append(row[0])
        lines.append("=" * 53)
        return "\n".join(lines)
