"""Geometry module for the intersectable shape primitives.

This module provides the closed set of shapes the tracer understands:

Components:
    base: Object kinds, color patterns and the flattened ObjectRecord row
    sphere: Sphere primitive with ray-sphere intersection
    plane: Infinite plane with an optional checker color pattern
    quad: Parallelogram primitive

Each shape has a frozen host-side description (compared by identity) and
Taichi functions (@ti.func) implementing its part of the object capability
set used by the tracing kernel:
    t = intersect_<shape>(ray_origin, ray_direction, ...)  # NO_HIT on a miss
    n = <shape>_normal(point, ...)
"""

from .base import ColorPattern, ObjectKind, ObjectRecord, SceneObject
from .plane import Plane, checker_color, intersect_plane
from .quad import Quad, intersect_quad
from .sphere import NO_HIT, Sphere, intersect_sphere, sphere_normal

__all__ = [
    "ObjectKind",
    "ColorPattern",
    "ObjectRecord",
    "SceneObject",
    "NO_HIT",
    "Sphere",
    "intersect_sphere",
    "sphere_normal",
    "Plane",
    "intersect_plane",
    "checker_color",
    "Quad",
    "intersect_quad",
]
