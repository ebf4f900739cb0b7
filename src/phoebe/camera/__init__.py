"""Camera module for view and ray generation.

Components:
    pinhole: Pinhole (perspective) camera with an eye/center/up basis

Camera responsibilities:
    - Build an orthonormal basis from eye, center and up
    - Transform pixel coordinates (plus jitter) to world-space rays
    - Upload the basis to Taichi fields for the render kernels

Pixel rows run top to bottom: row 0 is the top of the image.

The pinhole module declares Taichi fields, so this package must be imported
after the Taichi runtime is initialized.
"""

from .pinhole import Camera, get_camera_info, ray_through, setup_camera

__all__ = [
    "Camera",
    "setup_camera",
    "ray_through",
    "get_camera_info",
]
