"""Seedable per-pixel random streams and cone-jittered sample rays.

There is no process-wide random generator in the tracer. Every pixel derives
its own stream from ``(seed, pixel_index)`` with a PCG hash, so a render is
reproducible for a given seed no matter how Taichi schedules the pixel loop.

The stream state is a single ``u32`` threaded through the calls:

    >>> @ti.kernel
    ... def draw():
    ...     state = seed_rng(ti.u32(7), ti.u32(0))
    ...     u, state = next_random(state)
"""

import taichi as ti
import taichi.math as tm

from src.reflectrace.core.ray import vec3

# Reference axis used to build the sampling basis
SAMPLE_UP = vec3(0.0, 1.0, 0.0)

# Fallback reference axis when the direction is parallel to SAMPLE_UP
SAMPLE_FALLBACK_AXIS = vec3(1.0, 0.0, 0.0)

# Below this cross-product length the basis is treated as degenerate
BASIS_EPSILON = 1e-6

# 2^-24: maps a 24-bit integer onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0

# Hash constants. Taichi integer literals default to i32, so the two values
# above 2^31 are written as their signed 32-bit equivalents and cast.
_PCG_MULTIPLIER = 747796405
_PCG_INCREMENT = -1403630843  # 2891336453
_PCG_OUTPUT_MULTIPLIER = 277803737
_GOLDEN_RATIO = -1640531527  # 0x9E3779B9


@ti.func
def pcg_hash(value: ti.u32) -> ti.u32:
    """PCG-RXS-M-XS 32-bit hash.

    Args:
        value: Input word.

    Returns:
        A well mixed 32-bit word.
    """
    state = value * ti.cast(_PCG_MULTIPLIER, ti.u32) + ti.cast(_PCG_INCREMENT, ti.u32)
    shift = ((state >> ti.u32(28)) & ti.u32(15)) + ti.u32(4)
    word = ((state >> shift) ^ state) * ti.cast(_PCG_OUTPUT_MULTIPLIER, ti.u32)
    return (word >> ti.u32(22)) ^ word


@ti.func
def seed_rng(seed: ti.u32, stream: ti.u32) -> ti.u32:
    """Derive the initial state of an independent random stream.

    Args:
        seed: The render seed.
        stream: Stream identifier, the pixel index in the tracer.

    Returns:
        The initial stream state.
    """
    return pcg_hash(stream ^ (seed * ti.cast(_GOLDEN_RATIO, ti.u32)))


@ti.func
def next_random(state: ti.u32):
    """Advance a stream and draw a float uniformly from [0, 1).

    Args:
        state: Current stream state.

    Returns:
        A tuple (value, new_state).
    """
    new_state = pcg_hash(state)
    value = ti.cast(new_state & ti.u32(0x00FFFFFF), ti.f32) * _INV_2_24
    return value, new_state


@ti.func
def sample_basis(direction: vec3):
    """Build two unit vectors perpendicular to a direction.

    The basis is ``u = normalize(direction x up)`` and
    ``v = normalize(direction x u)``. When ``direction`` is parallel to the up
    axis the cross product vanishes, so the fallback axis is used instead.

    Args:
        direction: Unit direction to build the basis around.

    Returns:
        A tuple (u, v, degenerate) where degenerate is 1 if the fallback axis
        was needed.
    """
    c = tm.cross(direction, SAMPLE_UP)
    degenerate = 0
    if tm.length(c) < BASIS_EPSILON:
        c = tm.cross(direction, SAMPLE_FALLBACK_AXIS)
        degenerate = 1
    u = tm.normalize(c)
    v = tm.normalize(tm.cross(direction, u))
    return u, v, degenerate


@ti.func
def sample_ray(direction: vec3, state: ti.u32):
    """Jitter a direction inside a cone around itself.

    Draws ``phi`` in [0, 2pi) and ``cos_theta`` in [0, 1) and returns
    ``normalize(d + u cos(phi) sin_theta + v sin(phi) sin_theta + d cos_theta)``.
    The result stays within 45 degrees of ``direction`` and is biased toward
    it. This is rough-reflection anti-aliasing, not normalized importance
    sampling.

    Args:
        direction: Unit direction to perturb.
        state: Random stream state.

    Returns:
        A tuple (sample_direction, new_state, degenerate).
    """
    rng = state
    r_phi, rng = next_random(rng)
    r_cos, rng = next_random(rng)
    phi = 2.0 * tm.pi * r_phi
    cos_theta = r_cos
    sin_theta = ti.sqrt(1.0 - cos_theta * cos_theta)

    u, v, degenerate = sample_basis(direction)
    jittered = (
        direction
        + u * ti.cos(phi) * sin_theta
        + v * ti.sin(phi) * sin_theta
        + direction * cos_theta
    )
    return tm.normalize(jittered), rng, degenerate
