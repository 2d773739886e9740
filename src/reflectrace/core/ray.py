"""Ray data structure and vector utilities for the reflection tracer.

This module provides the fundamental Ray dataclass and the vector helpers used
by the tracing kernel. All operations are designed to work within Taichi
kernels so they run in the data-parallel pixel loop.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Offset applied along the surface normal when spawning a reflected ray
RAY_EPSILON = 1e-3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Unit length at the
            point of use; the tracer normalizes every direction it generates.
    """

    origin: vec3
    direction: vec3


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    The normal should be unit length for correct results. A unit incident
    vector reflected about a unit normal stays unit length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Offset a new ray origin off the surface to avoid hitting it again.

    The point is pushed RAY_EPSILON along the normal on the side the new ray
    travels. For a reflection off the front face this is +normal.

    Args:
        point: The intersection point.
        normal: The outward surface normal.
        direction: The direction of the ray leaving the surface.

    Returns:
        The offset origin point.
    """
    offset_dir = normal
    # Back-face hits (inside a sphere, behind a plane) use -normal, not +normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir
