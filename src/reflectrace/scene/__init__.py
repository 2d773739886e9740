"""Scene module for scene management and ray-scene queries.

Components:
    scene: Scene container and the immutable SceneSnapshot taken per pass
    intersection: Scene table in Taichi fields and the nearest-hit scan
    demo: Demo scene factory

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout, one row per object
    - Kind tag per row for tagged-union dispatch
"""

from .scene import Scene, SceneSnapshot

from .intersection import (
    MAX_OBJECTS,
    clear_scene_table,
    closest_hit,
    get_object_count,
    intersect_object,
    object_color,
    object_normal,
    upload_snapshot,
)

from .demo import DemoSceneParams, create_demo_scene

__all__ = [
    # Scene module
    "Scene",
    "SceneSnapshot",
    # Intersection module
    "MAX_OBJECTS",
    "upload_snapshot",
    "clear_scene_table",
    "get_object_count",
    "intersect_object",
    "object_normal",
    "object_color",
    "closest_hit",
    # Demo module
    "DemoSceneParams",
    "create_demo_scene",
]
