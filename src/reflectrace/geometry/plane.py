"""Infinite plane primitive with an optional checker color pattern.

A plane is defined by a point on it and a normal. Its color is either uniform
or a procedural two-color checker laid out on two axes spanning the plane, so
``GetColor`` varies over the surface without any image texture.

Ray-plane intersection solves:
    dot(normal, ray_origin + t * ray_direction - point) = 0
    t = dot(normal, point - ray_origin) / dot(normal, ray_direction)

Example:
    >>> from src.reflectrace.geometry.plane import Plane
    >>> floor = Plane(
    ...     point=(0.0, -1.0, 0.0),
    ...     normal=(0.0, 1.0, 0.0),
    ...     color=(0.9, 0.9, 0.9),
    ...     checker_color=(0.1, 0.1, 0.1),
    ... )
"""

import warnings
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.reflectrace.errors import DegenerateGeometryWarning

from .base import (
    Color,
    ColorPattern,
    ObjectKind,
    ObjectRecord,
    SceneObject,
    Vector,
    cross,
    normalize,
    validate_color,
    validate_vector,
    vector_length,
)
from .sphere import NO_HIT

vec3 = tm.vec3

# Normal substituted for a zero-length plane normal
FALLBACK_NORMAL: Vector = (0.0, 1.0, 0.0)

# Rays this close to parallel with the plane never hit it
_PARALLEL_EPSILON = 1e-8


def plane_axes(normal: Vector) -> tuple[Vector, Vector]:
    """Two unit axes spanning the plane with the given unit normal.

    Args:
        normal: Unit plane normal.

    Returns:
        A tuple (axis_u, axis_v), both perpendicular to the normal.
    """
    # Choose a vector not parallel to normal
    a = (1.0, 0.0, 0.0)
    if abs(normal[0]) > 0.9:
        a = (0.0, 1.0, 0.0)
    axis_u = normalize(cross(a, normal))
    axis_v = cross(normal, axis_u)
    return axis_u, axis_v


@dataclass(frozen=True, eq=False)
class Plane(SceneObject):
    """An infinite plane.

    Attributes:
        point: Any point on the plane.
        normal: The plane normal; normalized on construction. A zero vector
            is replaced by FALLBACK_NORMAL with a DegenerateGeometryWarning.
        color: Surface color, or the first checker color.
        checker_color: Second checker color. ``None`` gives a uniform color.
        checker_size: Checker cell size in world units.
    """

    point: Vector
    normal: Vector
    color: Color = (1.0, 1.0, 1.0)
    checker_color: Color | None = None
    checker_size: float = 1.0

    kind = ObjectKind.PLANE

    def __post_init__(self) -> None:
        object.__setattr__(self, "point", validate_vector("point", self.point))
        object.__setattr__(self, "color", validate_color("color", self.color))
        if self.checker_color is not None:
            object.__setattr__(
                self, "checker_color", validate_color("checker_color", self.checker_color)
            )
        if not self.checker_size > 0.0:
            raise ValueError(f"Checker size = {self.checker_size} must be positive.")

        normal = validate_vector("normal", self.normal)
        if vector_length(normal) < 1e-12:
            warnings.warn(
                f"Plane normal {normal} has zero length; using {FALLBACK_NORMAL}.",
                DegenerateGeometryWarning,
                stacklevel=3,
            )
            normal = FALLBACK_NORMAL
        object.__setattr__(self, "normal", normalize(normal))

    def to_record(self) -> ObjectRecord:
        axis_u, axis_v = plane_axes(self.normal)
        pattern = ColorPattern.SOLID
        alt_color = self.color
        if self.checker_color is not None:
            pattern = ColorPattern.CHECKER
            alt_color = self.checker_color
        return ObjectRecord(
            kind=ObjectKind.PLANE,
            position=self.point,
            normal=self.normal,
            edge_u=axis_u,
            edge_v=axis_v,
            color=self.color,
            alt_color=alt_color,
            pattern=pattern,
            pattern_scale=float(self.checker_size),
        )


@ti.func
def intersect_plane(
    ray_origin: vec3,
    ray_direction: vec3,
    point: vec3,
    normal: vec3,
) -> ti.f32:
    """Distance along a ray to an infinite plane.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        point: A point on the plane.
        normal: The unit plane normal.

    Returns:
        The distance t >= 0, or NO_HIT if the ray is parallel to the plane
        or the plane is behind the origin.
    """
    result = NO_HIT
    denom = tm.dot(normal, ray_direction)
    if ti.abs(denom) > _PARALLEL_EPSILON:
        t = tm.dot(normal, point - ray_origin) / denom
        if t >= 0.0:
            result = t
    return result


@ti.func
def checker_color(
    hit_point: vec3,
    origin: vec3,
    axis_u: vec3,
    axis_v: vec3,
    cell_size: ti.f32,
    color_a: vec3,
    color_b: vec3,
) -> vec3:
    """Two-color checker over the plane coordinates of a point.

    Args:
        hit_point: Point on the surface.
        origin: Point the checker grid is anchored at.
        axis_u: First unit axis of the grid.
        axis_v: Second unit axis of the grid.
        cell_size: Edge length of one cell.
        color_a: Color of cells with even parity (including the anchor cell).
        color_b: Color of cells with odd parity.

    Returns:
        The color of the cell containing hit_point.
    """
    local = hit_point - origin
    cell_u = ti.cast(ti.floor(tm.dot(local, axis_u) / cell_size), ti.i32)
    cell_v = ti.cast(ti.floor(tm.dot(local, axis_v) / cell_size), ti.i32)
    result = color_a
    if ((cell_u + cell_v) & 1) == 1:
        result = color_b
    return result
