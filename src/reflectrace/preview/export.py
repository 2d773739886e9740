"""Image export utilities for rendered images.

The tracer produces linear float colors in [0, 1]. This module is the one
place where they are converted to 8-bit, optionally gamma corrected, and
written to disk.

Supported formats:
    - PNG (8-bit sRGB via Pillow)

Example:
    >>> from src.reflectrace.preview.export import save_png
    >>> from src.reflectrace.core.renderer import RayTracer
    >>>
    >>> tracer = RayTracer(width=512, height=512)
    >>> buffer = tracer.render()
    >>> save_png(buffer, "output.png")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from src.reflectrace.core.tracer import PixelBuffer


def pixels_to_image(
    pixels: npt.NDArray[np.floating[npt.NBitBase]],
    width: int,
    height: int,
) -> npt.NDArray[np.float32]:
    """Reshape a row-major pixel array into an image.

    Args:
        pixels: Array of shape (width * height, 3), index y * width + x.
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        Array of shape (height, width, 3) with dtype float32.

    Raises:
        ValueError: If the array does not hold width * height RGB colors.
    """
    pixels = np.asarray(pixels, dtype=np.float32)
    if pixels.shape != (width * height, 3):
        raise ValueError(
            f"Expected {width * height} RGB pixels for {width}x{height}, got shape {pixels.shape}"
        )
    return pixels.reshape(height, width, 3)


def to_uint8(
    image: npt.NDArray[np.floating[npt.NBitBase]],
    gamma: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit.

    Values are clamped to [0, 1], raised to 1 / gamma and scaled to [0, 255].

    Args:
        image: Float image of any shape, usually (H, W, 3).
        gamma: Gamma correction value. 1.0 keeps colors linear.

    Returns:
        Array of the same shape with dtype uint8.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")

    clamped = np.clip(np.nan_to_num(np.asarray(image, dtype=np.float32)), 0.0, 1.0)
    if gamma != 1.0:
        clamped = np.power(clamped, 1.0 / gamma)

    # Round rather than truncate so 0.5 maps to 128
    return np.round(clamped * 255.0).astype(np.uint8)


def save_png(
    source: PixelBuffer | npt.NDArray[np.floating[npt.NBitBase]],
    filepath: str,
    *,
    gamma: float = 2.2,
) -> None:
    """Save a rendered image as a PNG file.

    Args:
        source: A PixelBuffer, or a linear float image of shape (H, W, 3).
        filepath: Output file path (should end in .png).
        gamma: Gamma correction value (default 2.2 for sRGB).

    Raises:
        ValueError: If an array source is not an (H, W, 3) image.
    """
    if isinstance(source, np.ndarray):
        image = source
        if image.ndim != 3 or image.shape[2] != 3:
            raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")
    else:
        image = source.to_image()

    pil_image = PILImage.fromarray(to_uint8(image, gamma=gamma))
    pil_image.save(filepath)
