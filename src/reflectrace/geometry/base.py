"""Shared host-side pieces of the intersectable object set.

The set of shapes is closed: every object is one of the ``ObjectKind`` variants
and is flattened into an ``ObjectRecord`` row before it is uploaded to the
scene table. Device code then dispatches on the kind tag with a switch.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum

Color = tuple[float, float, float]
Vector = tuple[float, float, float]


class ObjectKind(IntEnum):
    """Tag of the shape variant stored in the scene table."""

    SPHERE = 0
    PLANE = 1
    QUAD = 2


class ColorPattern(IntEnum):
    """How an object's surface color varies over its surface."""

    SOLID = 0
    CHECKER = 1


@dataclass(frozen=True)
class ObjectRecord:
    """Flattened, kind-tagged row of the scene table.

    Fields that a kind does not use are left at their zero defaults.

    Attributes:
        kind: The shape variant.
        position: Sphere center, plane point or quad corner.
        radius: Sphere radius.
        normal: Unit normal of planes and quads.
        edge_u: Quad edge, or first checker axis of a plane.
        edge_v: Quad edge, or second checker axis of a plane.
        color: Primary surface color.
        alt_color: Second checker color.
        pattern: The color pattern.
        pattern_scale: Checker cell size in world units.
    """

    kind: ObjectKind
    position: Vector
    color: Color
    radius: float = 0.0
    normal: Vector = (0.0, 0.0, 0.0)
    edge_u: Vector = (0.0, 0.0, 0.0)
    edge_v: Vector = (0.0, 0.0, 0.0)
    alt_color: Color = (0.0, 0.0, 0.0)
    pattern: ColorPattern = ColorPattern.SOLID
    pattern_scale: float = 1.0


class SceneObject:
    """Base class of the intersectable shapes.

    Subclasses are frozen dataclasses declared with ``eq=False``, so two
    objects are equal only when they are the same reference.
    """

    kind: ObjectKind

    def to_record(self) -> ObjectRecord:
        """Flatten the object into a scene table row."""
        raise NotImplementedError


def validate_vector(name: str, value: Vector) -> Vector:
    """Check a 3-vector for length and finiteness and return it as floats.

    Raises:
        ValueError: If the vector does not have three finite components.
    """
    if len(value) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(value)}.")
    result = (float(value[0]), float(value[1]), float(value[2]))
    for i, component in enumerate(result):
        if not math.isfinite(component):
            raise ValueError(f"{name} component {i} = {component} is not finite.")
    return result


def validate_color(name: str, color: Color) -> Color:
    """Check that an RGB color has components in [0, 1].

    Raises:
        ValueError: If a component is outside [0, 1].
    """
    result = validate_vector(name, color)
    for i, component in enumerate(result):
        if not 0.0 <= component <= 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]."
            )
    return result


def vector_length(v: Vector) -> float:
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def cross(a: Vector, b: Vector) -> Vector:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def normalize(v: Vector) -> Vector:
    length = vector_length(v)
    return (v[0] / length, v[1] / length, v[2] / length)
