"""Output module for image sinks, tone mapping and export.

Components:
    buffer: ImageSink protocol and the in-memory ImageBuffer
    tonemap: Tone mapping (Reinhard, exposure), gamma correction, clamping
    export: PNG export via Pillow

This package declares no Taichi fields and can be imported at any time.
"""

from .buffer import ImageBuffer, ImageSink
from .export import image_to_uint8, save_png
from .tonemap import (
    TONE_MAP_METHODS,
    DisplayTransform,
    ToneMapMethod,
    apply_gamma,
    process_image,
    tone_map_exposure,
    tone_map_reinhard,
)

__all__ = [
    "ImageSink",
    "ImageBuffer",
    "image_to_uint8",
    "save_png",
    "ToneMapMethod",
    "TONE_MAP_METHODS",
    "DisplayTransform",
    "apply_gamma",
    "process_image",
    "tone_map_exposure",
    "tone_map_reinhard",
]
