"""Reflection tracing kernel.

This module implements the render pass: one primary ray per pixel, a
depth-bounded reflective trace against a brute-force scan of the scene table,
extra cone-jittered sample rays, and the per-pixel average written to a
row-major pixel buffer.

Shading is purely multiplicative. A ray that hits an object returns the
object's color times whatever its mirror reflection returns; a ray that
escapes, or runs out of depth, returns the background color. A white surface
passes its reflection through unchanged, a colored one tints it and a black
one absorbs it.

The pixel loop is a single Taichi parallel for. Pixels share no mutable state
besides their own buffer slot and two atomic diagnostic counters. The scene
snapshot is uploaded before the kernel is launched and is read-only while it
runs.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.reflectrace.core.config import RenderParams
    >>> from src.reflectrace.core.tracer import render
    >>> from src.reflectrace.geometry import Sphere
    >>> from src.reflectrace.scene.scene import Scene
    >>>
    >>> scene = Scene([Sphere(center=(0.0, 0.0, -3.0), radius=1.0, color=(0.9, 0.2, 0.2))])
    >>> params = RenderParams(width=64, height=48, background_color=(1.0, 1.0, 1.0))
    >>> buffer = render(scene.snapshot(), params)
    >>> buffer.to_image().shape
    (48, 64, 3)
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.reflectrace.camera.pinhole import get_camera_origin, primary_direction, setup_camera
from src.reflectrace.core.config import RenderParams
from src.reflectrace.core.ray import Ray, make_ray, offset_ray_origin, reflect, vec3
from src.reflectrace.core.sampler import sample_ray, seed_rng
from src.reflectrace.errors import ConfigurationError, RenderCancelled
from src.reflectrace.preview.export import pixels_to_image
from src.reflectrace.scene.intersection import (
    closest_hit,
    get_object_count,
    object_color,
    object_normal,
    upload_snapshot,
)
from src.reflectrace.scene.scene import SceneSnapshot

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# Pixels handed to one worker block of the parallel loop
PIXEL_BLOCK_SIZE = 64

# Rows per batch when a render is cancellable and no batch size is given
DEFAULT_CANCEL_BATCH_ROWS = 16

# Callback receives (pixels_done, total_pixels)
ProgressCallback = Callable[[int, int], None]

# Returns True when the render should stop
CancelCheck = Callable[[], bool]

# =============================================================================
# Per-pass State
# =============================================================================

_background_color = ti.Vector.field(3, dtype=ti.f32, shape=())

# Diagnostics, reset before every pass
_degenerate_samples = ti.field(dtype=ti.i32, shape=())
_invalid_pixels = ti.field(dtype=ti.i32, shape=())


@dataclass(frozen=True)
class RenderStats:
    """Diagnostics of a finished render pass.

    Attributes:
        pixels: Number of pixels written.
        degenerate_samples: Sample rays whose basis needed the fallback axis.
        invalid_pixels: Pixels whose color had a NaN or infinite channel and
            was zeroed.
        elapsed: Wall-clock duration of the pass in seconds.
    """

    pixels: int
    degenerate_samples: int
    invalid_pixels: int
    elapsed: float


class PixelBuffer:
    """Row-major RGB float buffer of one render target.

    Pixel (x, y) is stored at index ``y * width + x``; y = 0 is the top row.
    Colors are linear floats in [0, 1]. The buffer is allocated once per
    size and overwritten in full by every pass.

    Attributes:
        stats: Diagnostics of the last pass written into the buffer.
    """

    def __init__(self, width: int, height: int) -> None:
        """Allocate a buffer.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.

        Raises:
            ValueError: If a dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Buffer dimensions ({width}x{height}) must be positive")
        self._width = width
        self._height = height
        self._data = ti.Vector.ndarray(3, dtype=ti.f32, shape=width * height)
        self.stats: RenderStats | None = None

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def data(self) -> ti.Ndarray:
        """The underlying Taichi ndarray of shape (width * height,)."""
        return self._data

    def matches(self, width: int, height: int) -> bool:
        """Whether the buffer can be reused for a target of this size."""
        return self._width == width and self._height == height

    def to_numpy(self) -> npt.NDArray[np.float32]:
        """Copy the buffer into an array of shape (width * height, 3)."""
        return self._data.to_numpy().astype(np.float32, copy=False)

    def to_image(self) -> npt.NDArray[np.float32]:
        """Copy the buffer into an image array of shape (height, width, 3)."""
        return pixels_to_image(self.to_numpy(), self._width, self._height)

    def __len__(self) -> int:
        return self._width * self._height

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self._width}, height={self._height})"


# =============================================================================
# Tracing Core
# =============================================================================


@ti.func
def trace_ray(ray: Ray, depth: ti.i32) -> vec3:
    """Color seen along a ray, following up to ``depth`` mirror bounces.

    Equivalent to the recursion

        trace(o, d, depth) = background                      if depth <= 0
                           = background                      if nothing is hit
                           = color(p) * trace(p', r, depth - 1)  otherwise

    with p the nearest hit point, r the reflection of d about the normal at p
    and p' = p offset by RAY_EPSILON along the normal. The recursion is
    unrolled into a loop that multiplies surface colors into a throughput and
    applies the background once at the end.

    Args:
        ray: The ray to trace; its direction must be unit length.
        depth: Remaining bounces.

    Returns:
        The RGB color.
    """
    origin = ray.origin
    direction = ray.direction
    throughput = vec3(1.0, 1.0, 1.0)

    # Taichi doesn't support break in ti.func loops
    active = 1
    for _ in range(depth):
        if active == 1:
            hit_index, t = closest_hit(origin, direction)
            if hit_index < 0:
                active = 0
            else:
                hit_point = origin + t * direction
                normal = object_normal(hit_index, hit_point)
                throughput *= object_color(hit_index, hit_point)

                reflected = reflect(direction, normal)
                origin = offset_ray_origin(hit_point, normal, reflected)
                direction = reflected

    return throughput * _background_color[None]


@ti.func
def sanitize_color(color: vec3) -> vec3:
    """Zero the NaN or infinite channels of a pixel color.

    A pixel with any such channel is counted in the invalid-pixel counter.
    Other pixels are never affected.
    """
    result = color
    invalid = 0
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
            invalid = 1
    if invalid == 1:
        ti.atomic_add(_invalid_pixels[None], 1)
    return result


@ti.kernel
def _render_pixels(
    pixels: ti.types.ndarray(dtype=vec3, ndim=1),
    start: ti.i32,
    count: ti.i32,
    width: ti.i32,
    height: ti.i32,
    tan_half: ti.f32,
    aspect_ratio: ti.f32,
    max_depth: ti.i32,
    sample_count: ti.i32,
    seed: ti.u32,
):
    """Trace pixels ``start`` to ``start + count - 1`` into the buffer.

    Args:
        pixels: The row-major pixel buffer.
        start: First pixel index.
        count: Number of pixels.
        width: Image width in pixels.
        height: Image height in pixels.
        tan_half: tan(fov / 2).
        aspect_ratio: width / height.
        max_depth: Maximum bounces per ray.
        sample_count: Jittered rays per pixel besides the primary ray.
        seed: Seed of the per-pixel random streams.
    """
    ti.loop_config(block_dim=PIXEL_BLOCK_SIZE)
    for n in range(count):
        i = start + n
        x = i % width
        y = i // width

        primary = make_ray(
            get_camera_origin(),
            primary_direction(x, y, width, height, tan_half, aspect_ratio),
        )
        color = trace_ray(primary, max_depth)

        state = seed_rng(seed, ti.cast(i, ti.u32))
        for _ in range(sample_count):
            direction, state, degenerate = sample_ray(primary.direction, state)
            if degenerate == 1:
                ti.atomic_add(_degenerate_samples[None], 1)
            color += trace_ray(make_ray(primary.origin, direction), max_depth)

        color /= ti.cast(sample_count + 1, ti.f32)
        pixels[i] = sanitize_color(color)


# =============================================================================
# Public Rendering API
# =============================================================================


def render(
    snapshot: SceneSnapshot,
    params: RenderParams,
    target: PixelBuffer | None = None,
    *,
    batch_size: int | None = None,
    callback: ProgressCallback | None = None,
    cancel: CancelCheck | None = None,
) -> PixelBuffer:
    """Render a scene snapshot into a pixel buffer.

    Parameters are validated before anything is uploaded or launched. The
    snapshot is uploaded to the scene table, then every pixel is traced. The
    call returns once all pixels are written.

    By default all pixels are traced in one launch. With ``batch_size`` (or
    ``cancel``) the pixels are traced in contiguous batches; ``callback`` is
    called after each batch and ``cancel`` is checked before each batch.

    Args:
        snapshot: Immutable scene objects for this pass.
        params: Render parameters.
        target: Buffer to render into. Reused if its size matches the
            parameters, otherwise a new buffer is allocated.
        batch_size: Pixels per launch.
        callback: Called with (pixels_done, total_pixels) after each batch.
        cancel: Polled between batches; returning True aborts the pass.

    Returns:
        The pixel buffer holding the rendered colors.

    Raises:
        ConfigurationError: If the parameters or batch size are invalid.
        RuntimeError: If the snapshot exceeds the scene table capacity.
        RenderCancelled: If ``cancel`` returned True. The buffer contents are
            then undefined.
    """
    params.validate()
    if batch_size is not None and (not isinstance(batch_size, int) or batch_size <= 0):
        raise ConfigurationError(f"batch_size = {batch_size!r} must be a positive integer.")

    if target is None or not target.matches(params.width, params.height):
        target = PixelBuffer(params.width, params.height)
        logger.debug("Allocated %dx%d pixel buffer", params.width, params.height)

    upload_snapshot(snapshot)
    setup_camera(params.camera)
    _background_color[None] = list(params.background_color)
    _degenerate_samples[None] = 0
    _invalid_pixels[None] = 0

    total = params.pixel_count
    step = total
    if batch_size is not None:
        step = batch_size
    elif cancel is not None:
        step = params.width * DEFAULT_CANCEL_BATCH_ROWS

    start_time = time.perf_counter()
    done = 0
    while done < total:
        if cancel is not None and cancel():
            raise RenderCancelled(f"Render cancelled after {done}/{total} pixels")

        count = min(step, total - done)
        _render_pixels(
            target.data,
            done,
            count,
            params.width,
            params.height,
            params.tan_half_fov,
            params.aspect_ratio,
            params.max_depth,
            params.sample_count,
            params.seed,
        )
        done += count

        if callback is not None:
            ti.sync()
            callback(done, total)

    ti.sync()

    stats = RenderStats(
        pixels=total,
        degenerate_samples=int(_degenerate_samples[None]),
        invalid_pixels=int(_invalid_pixels[None]),
        elapsed=time.perf_counter() - start_time,
    )
    target.stats = stats
    _log_stats(stats, params)
    return target


def _log_stats(stats: RenderStats, params: RenderParams) -> None:
    logger.debug(
        "Rendered %dx%d (%d objects scanned per ray, depth %d, %d samples) in %.3fs",
        params.width,
        params.height,
        get_object_count(),
        params.max_depth,
        params.sample_count,
        stats.elapsed,
    )
    if stats.degenerate_samples:
        logger.warning(
            "%d sample rays were parallel to the up axis; used the fallback basis",
            stats.degenerate_samples,
        )
    if stats.invalid_pixels:
        logger.warning(
            "%d pixels produced NaN or infinite colors and were set to zero",
            stats.invalid_pixels,
        )
