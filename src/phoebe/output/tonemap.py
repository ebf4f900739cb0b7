"""Display transforms for linear radiance images.

The tracer stores unclamped linear radiance. Export runs three steps in order:
an optional tone curve that compresses HDR values, gamma encoding, and a final
clamp to [0, 1]. ``DisplayTransform`` bundles the settings of those steps and
checks them when it is built, so a bad gamma or exposure is reported before
any rendering starts.

Example:
    >>> from phoebe.output.tonemap import DisplayTransform
    >>> transform = DisplayTransform(tone_map="reinhard", gamma=2.2)
    >>> display = transform.apply(buffer.to_numpy())
"""

import math
import numbers
from dataclasses import dataclass
from typing import Literal, get_args

import numpy as np
import numpy.typing as npt

from phoebe.core.errors import ValidationError

ToneMapMethod = Literal["none", "reinhard", "exposure"]

TONE_MAP_METHODS: tuple[str, ...] = get_args(ToneMapMethod)


def _check_positive(name: str, value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0.0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return float(value)


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Global Reinhard curve ``c / (1 + c)`` per channel; negatives become 0."""
    linear = np.maximum(image, 0.0)
    return (linear / (1.0 + linear)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Exponential curve ``1 - exp(-c * exposure)``.

    Args:
        image: Linear image of shape (H, W, 3).
        exposure: Positive scale applied before the curve; larger is brighter.

    Returns:
        Values in [0, 1).

    Raises:
        ValidationError: If ``exposure`` is not a positive finite number.
    """
    exposure = _check_positive("exposure", exposure)
    linear = np.maximum(image, 0.0)
    return (1.0 - np.exp(-linear * exposure)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Encode linear values with ``out = in ** (1 / gamma)``.

    Values are clamped to [0, 1] first so negative radiance cannot produce NaN.
    A gamma of 1.0 returns the input unchanged.

    Raises:
        ValidationError: If ``gamma`` is not a positive finite number.
    """
    gamma = _check_positive("gamma", gamma)
    if gamma == 1.0:
        return image

    clamped = np.clip(image, 0.0, 1.0)
    return np.power(clamped, 1.0 / gamma).astype(np.float32)


@dataclass(frozen=True)
class DisplayTransform:
    """Tone curve, gamma and exposure used to turn radiance into pixels.

    Attributes:
        tone_map: One of TONE_MAP_METHODS.
        gamma: Encoding gamma; 2.2 approximates sRGB.
        exposure: Scale used by the "exposure" curve.

    Raises:
        ValidationError: If the method is unknown or gamma/exposure is not a
            positive finite number.
    """

    tone_map: ToneMapMethod = "none"
    gamma: float = 2.2
    exposure: float = 1.0

    def __post_init__(self) -> None:
        if self.tone_map not in TONE_MAP_METHODS:
            raise ValidationError(
                f"Unknown tone mapping method: {self.tone_map!r}; expected one of {TONE_MAP_METHODS}"
            )
        object.__setattr__(self, "gamma", _check_positive("gamma", self.gamma))
        object.__setattr__(self, "exposure", _check_positive("exposure", self.exposure))

    def apply(self, image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
        """Display values in [0, 1] for a linear image; ``image`` is not modified."""
        if self.tone_map == "reinhard":
            mapped = tone_map_reinhard(image)
        elif self.tone_map == "exposure":
            mapped = tone_map_exposure(image, self.exposure)
        else:
            mapped = image.copy()
        encoded = apply_gamma(mapped, self.gamma)
        return np.clip(encoded, 0.0, 1.0).astype(np.float32)


def process_image(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Shorthand for ``DisplayTransform(tone_map, gamma, exposure).apply(image)``.

    Returns:
        A new float32 array of the same shape.

    Raises:
        ValidationError: If the settings are invalid.
    """
    return DisplayTransform(tone_map, gamma, exposure).apply(image)
