"""Camera module for primary ray generation.

Components:
    pinhole: Pinhole (perspective) camera with look-at construction

The camera is a position plus a camera-to-world rotation. Primary rays are
built in camera space (looking down -z) and rotated into world space inside
the tracing kernel.
"""

from .pinhole import (
    IDENTITY,
    Camera,
    get_camera_origin,
    primary_direction,
    setup_camera,
    tan_half_fov,
)

__all__ = [
    "Camera",
    "IDENTITY",
    "setup_camera",
    "primary_direction",
    "get_camera_origin",
    "tan_half_fov",
]
