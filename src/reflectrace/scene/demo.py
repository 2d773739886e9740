"""Demo scene configuration.

This module provides a factory for a small showcase scene for the reflection
tracer:
- A checkered floor plane
- Three colored mirror spheres resting on the floor
- A white back panel (quad) behind the spheres
- A bright sky-colored background, which is the only source of light

Every surface color multiplies the background it eventually reflects, so
white surfaces act as perfect mirrors and darker colors tint or absorb.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.reflectrace.core.tracer import render
    >>> from src.reflectrace.scene.demo import create_demo_scene
    >>>
    >>> scene, params = create_demo_scene()
    >>> buffer = render(scene.snapshot(), params)
"""

from dataclasses import dataclass

from src.reflectrace.camera.pinhole import Camera
from src.reflectrace.core.config import RenderParams
from src.reflectrace.geometry import Plane, Quad, Sphere
from src.reflectrace.scene.scene import Scene

# =============================================================================
# Demo Scene Parameters
# =============================================================================


@dataclass
class DemoSceneParams:
    """Parameters for customizing the demo scene.

    Attributes:
        background_color: Sky color; every ray that escapes returns it.
        floor_color: First checker color of the floor.
        floor_checker_color: Second checker color of the floor.
        checker_size: Edge length of one floor checker cell.
        sphere_colors: Colors of the left, middle and right spheres.

    Example:
        >>> params = DemoSceneParams(background_color=(1.0, 0.9, 0.8))
        >>> scene, render_params = create_demo_scene(params=params)
    """

    background_color: tuple[float, float, float] = (0.7, 0.8, 1.0)
    floor_color: tuple[float, float, float] = (0.9, 0.9, 0.9)
    floor_checker_color: tuple[float, float, float] = (0.2, 0.2, 0.2)
    checker_size: float = 1.0
    sphere_colors: tuple[tuple[float, float, float], ...] = (
        (0.9, 0.3, 0.3),
        (1.0, 1.0, 1.0),
        (0.3, 0.4, 0.9),
    )


# =============================================================================
# Demo Scene Constants
# =============================================================================

FLOOR_HEIGHT = -1.0
SPHERE_RADIUS = 1.0
SPHERE_SPACING = 2.2
SPHERE_DEPTH = -5.0

BACK_PANEL_COLOR = (0.95, 0.95, 0.95)
BACK_PANEL_DEPTH = -9.0

CAMERA_LOOKFROM = (0.0, 1.0, 2.0)
CAMERA_LOOKAT = (0.0, 0.0, SPHERE_DEPTH)

# =============================================================================
# Demo Scene Factory
# =============================================================================


def create_demo_scene(
    params: DemoSceneParams | None = None,
    width: int = 512,
    height: int = 512,
) -> tuple[Scene, RenderParams]:
    """Create the demo scene and matching render parameters.

    The coordinate system is right-handed with +y up; the camera sits above
    the origin looking down -z at the spheres.

    Args:
        params: Optional DemoSceneParams. If None, uses DemoSceneParams().
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A tuple of (Scene, RenderParams).

    Example:
        >>> scene, params = create_demo_scene()
        >>> len(scene)
        5
    """
    if params is None:
        params = DemoSceneParams()

    scene = Scene()

    # Floor
    scene.add(
        Plane(
            point=(0.0, FLOOR_HEIGHT, 0.0),
            normal=(0.0, 1.0, 0.0),
            color=params.floor_color,
            checker_color=params.floor_checker_color,
            checker_size=params.checker_size,
        )
    )

    # Spheres, left to right, resting on the floor
    first_x = -SPHERE_SPACING * (len(params.sphere_colors) - 1) / 2.0
    for i, color in enumerate(params.sphere_colors):
        scene.add(
            Sphere(
                center=(first_x + i * SPHERE_SPACING, FLOOR_HEIGHT + SPHERE_RADIUS, SPHERE_DEPTH),
                radius=SPHERE_RADIUS,
                color=color,
            )
        )

    # Back panel facing the camera
    scene.add(
        Quad(
            corner=(-4.0, FLOOR_HEIGHT, BACK_PANEL_DEPTH),
            edge_u=(8.0, 0.0, 0.0),  # Right
            edge_v=(0.0, 5.0, 0.0),  # Up
            color=BACK_PANEL_COLOR,
        )
    )

    render_params = RenderParams(
        width=width,
        height=height,
        fov=60.0,
        max_depth=5,
        sample_count=4,
        background_color=params.background_color,
        camera=Camera.look_at(CAMERA_LOOKFROM, CAMERA_LOOKAT, (0.0, 1.0, 0.0)),
    )
    return scene, render_params
