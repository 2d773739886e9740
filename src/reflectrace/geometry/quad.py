"""Quad primitive with ray-quad intersection.

A quad is defined by:
- corner: A corner point of the quad
- edge_u: Edge vector from the corner to an adjacent corner
- edge_v: Edge vector from the corner to the other adjacent corner

The quad spans the parallelogram from corner to corner+edge_u+edge_v. The
normal is normalize(cross(edge_u, edge_v)), pointing in the direction given by
the right-hand rule.

Ray-quad intersection uses the parametric plane test:
1. Find where ray intersects the plane containing the quad
2. Check if the intersection point lies within the quad bounds

Example:
    >>> from src.reflectrace.geometry.quad import Quad
    >>> # Mirror panel facing +z, spanning x=[-1,1] and y=[-1,1] at z=-4
    >>> panel = Quad(
    ...     corner=(-1.0, -1.0, -4.0),
    ...     edge_u=(2.0, 0.0, 0.0),
    ...     edge_v=(0.0, 2.0, 0.0),
    ...     color=(0.8, 0.8, 1.0),
    ... )
"""

import warnings
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.reflectrace.errors import DegenerateGeometryWarning

from .base import (
    Color,
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
from .plane import FALLBACK_NORMAL
from .sphere import NO_HIT

vec3 = tm.vec3

# Below this squared cross-product length the quad has no area
_DEGENERATE_AREA_SQ = 1e-10

_PARALLEL_EPSILON = 1e-8


@dataclass(frozen=True, eq=False)
class Quad(SceneObject):
    """A quad (parallelogram) defined by a corner point and two edge vectors.

    The quad represents the parallelogram with vertices at:
        corner, corner+edge_u, corner+edge_v, corner+edge_u+edge_v

    Parallel edges give a quad with no area. It is kept in the scene but never
    intersected, and its normal falls back to FALLBACK_NORMAL with a
    DegenerateGeometryWarning.

    Attributes:
        corner: The corner point of the quad.
        edge_u: Edge vector from corner to adjacent corner.
        edge_v: Edge vector from corner to other adjacent corner.
        color: Uniform surface color, RGB in [0, 1].
    """

    corner: Vector
    edge_u: Vector
    edge_v: Vector
    color: Color = (1.0, 1.0, 1.0)

    kind = ObjectKind.QUAD

    def __post_init__(self) -> None:
        object.__setattr__(self, "corner", validate_vector("corner", self.corner))
        object.__setattr__(self, "edge_u", validate_vector("edge_u", self.edge_u))
        object.__setattr__(self, "edge_v", validate_vector("edge_v", self.edge_v))
        object.__setattr__(self, "color", validate_color("color", self.color))
        if self.is_degenerate:
            warnings.warn(
                f"Quad edges {self.edge_u} and {self.edge_v} are parallel; "
                f"it will never be hit and its normal is {FALLBACK_NORMAL}.",
                DegenerateGeometryWarning,
                stacklevel=3,
            )

    @property
    def is_degenerate(self) -> bool:
        """Whether the edges are parallel (zero area)."""
        n = cross(self.edge_u, self.edge_v)
        return vector_length(n) ** 2 <= _DEGENERATE_AREA_SQ

    @property
    def normal(self) -> Vector:
        """The unit normal, or FALLBACK_NORMAL for a degenerate quad."""
        if self.is_degenerate:
            return FALLBACK_NORMAL
        return normalize(cross(self.edge_u, self.edge_v))

    def to_record(self) -> ObjectRecord:
        return ObjectRecord(
            kind=ObjectKind.QUAD,
            position=self.corner,
            normal=self.normal,
            edge_u=self.edge_u,
            edge_v=self.edge_v,
            color=self.color,
        )


@ti.func
def _compute_quad_frame(edge_u: vec3, edge_v: vec3):
    """Compute the helper vectors for the quad's local coordinates.

    The intersection point P can be expressed as:
        P = corner + alpha * edge_u + beta * edge_v

    Using n = edge_u x edge_v (unnormalized) and
        w_u = edge_v x n / dot(n, n), w_v = n x edge_u / dot(n, n)
    gives alpha = dot(w_u, P - corner) and beta = dot(w_v, P - corner).

    Args:
        edge_u: First edge vector.
        edge_v: Second edge vector.

    Returns:
        Tuple of (w_u, w_v, valid) where valid is 0 for parallel edges.
    """
    n = tm.cross(edge_u, edge_v)
    n_dot_n = tm.dot(n, n)

    w_u = vec3(0.0, 0.0, 0.0)
    w_v = vec3(0.0, 0.0, 0.0)
    valid = 0

    if n_dot_n > _DEGENERATE_AREA_SQ:
        # These satisfy: dot(w_u, u) = 1, dot(w_u, v) = 0
        #                dot(w_v, u) = 0, dot(w_v, v) = 1
        w_u = tm.cross(edge_v, n) / n_dot_n
        w_v = tm.cross(n, edge_u) / n_dot_n
        valid = 1

    return w_u, w_v, valid


@ti.func
def intersect_quad(
    ray_origin: vec3,
    ray_direction: vec3,
    corner: vec3,
    edge_u: vec3,
    edge_v: vec3,
    normal: vec3,
) -> ti.f32:
    """Distance along a ray to a quad.

    1. Compute t at the plane containing the quad
    2. Express the hit point in local coordinates (alpha, beta)
    3. Accept if 0 <= alpha <= 1 and 0 <= beta <= 1

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        corner: The quad corner.
        edge_u: First edge vector.
        edge_v: Second edge vector.
        normal: The unit quad normal.

    Returns:
        The distance t >= 0, or NO_HIT.
    """
    w_u, w_v, valid = _compute_quad_frame(edge_u, edge_v)
    denom = tm.dot(normal, ray_direction)

    result = NO_HIT
    if valid == 1 and ti.abs(denom) > _PARALLEL_EPSILON:
        t = tm.dot(normal, corner - ray_origin) / denom
        if t >= 0.0:
            p_minus_q = ray_origin + t * ray_direction - corner
            alpha = tm.dot(w_u, p_minus_q)
            beta = tm.dot(w_v, p_minus_q)
            if alpha >= 0.0 and alpha <= 1.0 and beta >= 0.0 and beta <= 1.0:
                result = t
    return result
