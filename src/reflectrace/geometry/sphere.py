"""Sphere primitive with robust ray-sphere intersection.

This module provides the host-side Sphere description and the Taichi functions
implementing its intersection and normal. The intersection uses the robust
quadratic formula from Ray Tracing Gems to avoid floating-point artifacts.

The robust quadratic formula avoids catastrophic cancellation when b^2 is
nearly equal to 4ac by using a reformulated calculation that maintains
numerical stability.

Example:
    >>> from src.reflectrace.geometry.sphere import Sphere
    >>> mirror = Sphere(center=(0.0, 0.0, -3.0), radius=1.0, color=(0.9, 0.9, 0.9))
    >>> # intersect_sphere / sphere_normal are used inside Taichi kernels
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from .base import (
    Color,
    ObjectKind,
    ObjectRecord,
    SceneObject,
    Vector,
    validate_color,
    validate_vector,
)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Returned by intersection functions when the ray misses
NO_HIT = -1.0


@dataclass(frozen=True, eq=False)
class Sphere(SceneObject):
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        color: Uniform surface color, RGB in [0, 1].
    """

    center: Vector
    radius: float
    color: Color = (1.0, 1.0, 1.0)

    kind = ObjectKind.SPHERE

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", validate_vector("center", self.center))
        object.__setattr__(self, "color", validate_color("color", self.color))
        radius = float(self.radius)
        if not math.isfinite(radius) or radius <= 0.0:
            raise ValueError(f"Sphere radius = {self.radius} must be positive.")
        object.__setattr__(self, "radius", radius)

    def to_record(self) -> ObjectRecord:
        return ObjectRecord(
            kind=ObjectKind.SPHERE,
            position=self.center,
            radius=self.radius,
            color=self.color,
        )


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve quadratic equation using robust formula from Ray Tracing Gems.

    Solves a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray through the origin of the quadratic
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def intersect_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    center: vec3,
    radius: ti.f32,
) -> ti.f32:
    """Distance along a ray to the nearest non-negative sphere intersection.

    The intersection is found by solving:
        |ray_origin + t * ray_direction - center|^2 = radius^2

    which expands to a*t^2 + 2*h*t + c = 0 with
        a = dot(direction, direction)
        h = dot(direction, oc)  (half of traditional b)
        c = dot(oc, oc) - radius^2
        oc = origin - center

    A ray starting inside the sphere reports the far root.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        center: The sphere center.
        radius: The sphere radius.

    Returns:
        The smallest root t >= 0, or NO_HIT.
    """
    oc = ray_origin - center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - radius * radius

    discriminant = h * h - a * c

    result = NO_HIT
    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        if t0 >= 0.0:
            result = t0
        elif t1 >= 0.0:
            result = t1

    return result


@ti.func
def sphere_normal(point: vec3, center: vec3) -> vec3:
    """Outward unit normal of a sphere at a surface point."""
    return tm.normalize(point - center)
