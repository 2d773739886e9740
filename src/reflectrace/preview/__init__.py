"""Preview module for output of rendered images.

Components:
    export: Float to 8-bit conversion and PNG export (Pillow)

Example:
    >>> from src.reflectrace.preview import save_png
    >>> from src.reflectrace.core.renderer import RayTracer
    >>>
    >>> tracer = RayTracer(width=512, height=512)
    >>> save_png(tracer.render(), "output.png", gamma=2.2)
"""

from src.reflectrace.preview.export import pixels_to_image, save_png, to_uint8

__all__ = [
    "pixels_to_image",
    "to_uint8",
    "save_png",
]
