"""PNG export of rendered images through Pillow.

Example:
    >>> from phoebe.output.export import save_png
    >>> save_png(buffer.to_numpy(), "output.png", tone_map="reinhard")
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from phoebe.output.tonemap import ToneMapMethod, process_image

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """8-bit version of a linear image, after ``process_image``.

    Channel values are scaled by 255 and truncated.
    """
    display = process_image(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    return (display * 255).astype(np.uint8)


def save_png(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> None:
    """Write a linear (H, W, 3) image to ``filepath`` as an 8-bit RGB PNG.

    Keyword arguments are passed to ``process_image``.

    Raises:
        OSError: If the file cannot be written.
    """
    pixels = image_to_uint8(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    PILImage.fromarray(pixels).save(filepath, format="PNG")
    logger.info("saved %dx%d PNG to %s", pixels.shape[1], pixels.shape[0], filepath)
