"""Scene table and scene-level ray queries.

The scene snapshot of a render pass is uploaded into preallocated Taichi
fields (Structure of Arrays layout, one row per object in snapshot order).
Rows are a tagged union over the shape kinds: every row has a kind tag and the
union of all shape parameters, and device code dispatches on the tag.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.reflectrace.geometry import Sphere
    >>> from src.reflectrace.scene.intersection import upload_snapshot, closest_hit
    >>> from src.reflectrace.scene.scene import Scene
    >>> scene = Scene([Sphere(center=(0.0, 0.0, -3.0), radius=1.0)])
    >>> upload_snapshot(scene.snapshot())
    >>> # Use closest_hit within a Taichi kernel
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from src.reflectrace.geometry.base import ColorPattern, ObjectKind
from src.reflectrace.geometry.plane import checker_color, intersect_plane
from src.reflectrace.geometry.quad import intersect_quad
from src.reflectrace.geometry.sphere import NO_HIT, intersect_sphere, sphere_normal
from src.reflectrace.scene.scene import SceneSnapshot

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of objects supported in one snapshot
MAX_OBJECTS = 1024

# Object table: Structure of Arrays layout
object_kinds = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_radii = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
object_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_edge_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_edge_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_alt_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_patterns = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_pattern_scales = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())


def clear_scene_table() -> None:
    """Empty the object table.

    Resets the object count to zero. The field data is overwritten by the
    next upload.
    """
    num_objects[None] = 0


def upload_snapshot(snapshot: SceneSnapshot) -> int:
    """Write a scene snapshot into the object table.

    Must be called before the tracing kernel is dispatched; the table is not
    touched while a pass runs.

    Args:
        snapshot: The objects to upload, in scan order.

    Returns:
        The number of uploaded objects.

    Raises:
        RuntimeError: If the snapshot has more than MAX_OBJECTS objects.
    """
    count = len(snapshot)
    if count > MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded: {count}")

    kinds = np.zeros(MAX_OBJECTS, dtype=np.int32)
    positions = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
    radii = np.zeros(MAX_OBJECTS, dtype=np.float32)
    normals = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
    edge_u = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
    edge_v = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
    colors = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
    alt_colors = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
    patterns = np.zeros(MAX_OBJECTS, dtype=np.int32)
    pattern_scales = np.ones(MAX_OBJECTS, dtype=np.float32)

    for i, obj in enumerate(snapshot):
        record = obj.to_record()
        kinds[i] = int(record.kind)
        positions[i] = record.position
        radii[i] = record.radius
        normals[i] = record.normal
        edge_u[i] = record.edge_u
        edge_v[i] = record.edge_v
        colors[i] = record.color
        alt_colors[i] = record.alt_color
        patterns[i] = int(record.pattern)
        pattern_scales[i] = record.pattern_scale

    object_kinds.from_numpy(kinds)
    object_positions.from_numpy(positions)
    object_radii.from_numpy(radii)
    object_normals.from_numpy(normals)
    object_edge_u.from_numpy(edge_u)
    object_edge_v.from_numpy(edge_v)
    object_colors.from_numpy(colors)
    object_alt_colors.from_numpy(alt_colors)
    object_patterns.from_numpy(patterns)
    object_pattern_scales.from_numpy(pattern_scales)
    num_objects[None] = count

    logger.debug("Uploaded %d objects to the scene table", count)
    return count


def get_object_count() -> int:
    """Get the number of objects in the scene table."""
    return int(num_objects[None])


# =============================================================================
# Object capability set (tagged-union dispatch)
# =============================================================================


@ti.func
def intersect_object(index: ti.i32, ray_origin: vec3, ray_direction: vec3) -> ti.f32:
    """Distance along a ray to object ``index``, or NO_HIT."""
    kind = object_kinds[index]
    t = NO_HIT
    if kind == int(ObjectKind.SPHERE):
        t = intersect_sphere(
            ray_origin, ray_direction, object_positions[index], object_radii[index]
        )
    elif kind == int(ObjectKind.PLANE):
        t = intersect_plane(
            ray_origin, ray_direction, object_positions[index], object_normals[index]
        )
    elif kind == int(ObjectKind.QUAD):
        t = intersect_quad(
            ray_origin,
            ray_direction,
            object_positions[index],
            object_edge_u[index],
            object_edge_v[index],
            object_normals[index],
        )
    return t


@ti.func
def object_normal(index: ti.i32, point: vec3) -> vec3:
    """Outward unit normal of object ``index`` at a point on its surface."""
    normal = object_normals[index]
    if object_kinds[index] == int(ObjectKind.SPHERE):
        normal = sphere_normal(point, object_positions[index])
    return normal


@ti.func
def object_color(index: ti.i32, point: vec3) -> vec3:
    """Surface color of object ``index`` at a point on its surface."""
    color = object_colors[index]
    if object_patterns[index] == int(ColorPattern.CHECKER):
        color = checker_color(
            point,
            object_positions[index],
            object_edge_u[index],
            object_edge_v[index],
            object_pattern_scales[index],
            object_colors[index],
            object_alt_colors[index],
        )
    return color


@ti.func
def closest_hit(ray_origin: vec3, ray_direction: vec3):
    """Find the nearest object along a ray by scanning every object.

    Keeps the minimum non-negative distance using a strict ``<`` comparison,
    so of two objects at the same distance the one scanned first wins. There
    is no early exit.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.

    Returns:
        A tuple (index, t). index is -1 if no object was hit.
    """
    hit_index = -1
    closest_t = 0.0
    for k in range(num_objects[None]):
        t = intersect_object(k, ray_origin, ray_direction)
        if t >= 0.0 and (hit_index == -1 or t < closest_t):
            hit_index = k
            closest_t = t
    return hit_index, closest_t
