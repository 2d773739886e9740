"""Pinhole camera model for primary ray generation.

The camera is a position plus a camera-to-world rotation. Primary rays are
generated in camera space, where the camera looks down -z with +y up and +x
right, and then rotated into world space:

    screen_x = (2 * (x + 0.5) / width - 1) * tan(fov / 2) * aspect_ratio
    screen_y = (1 - 2 * (y + 0.5) / height) * tan(fov / 2)
    direction = normalize(rotation @ (screen_x, screen_y, -1))

Pixel (0, 0) is the top-left corner of the image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.reflectrace.camera.pinhole import Camera, setup_camera
    >>>
    >>> # Camera at z=3 looking at the origin
    >>> camera = Camera.look_at(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ... )
    >>> setup_camera(camera)
"""

import math
import warnings
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.reflectrace.core.ray import vec3
from src.reflectrace.errors import ConfigurationError, DegenerateGeometryWarning

Matrix3 = tuple[
    tuple[float, float, float],
    tuple[float, float, float],
    tuple[float, float, float],
]

IDENTITY: Matrix3 = (
    (1.0, 0.0, 0.0),
    (0.0, 1.0, 0.0),
    (0.0, 0.0, 1.0),
)

# Largest deviation of rotation.T @ rotation from the identity
ORTHONORMAL_TOLERANCE = 1e-4

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Position and orientation of a pinhole camera.

    Attributes:
        position: Camera position in world space; the origin of every
            primary ray.
        rotation: Camera-to-world rotation as three rows. Its columns are the
            camera's right, up and backward axes in world space.
    """

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Matrix3 = IDENTITY

    @classmethod
    def look_at(
        cls,
        lookfrom: tuple[float, float, float],
        lookat: tuple[float, float, float],
        vup: tuple[float, float, float] = (0.0, 1.0, 0.0),
    ) -> "Camera":
        """Build a camera at ``lookfrom`` looking toward ``lookat``.

        Computes the orthonormal basis (u, v, w):
        - w points from lookat toward lookfrom (backward)
        - u = normalize(vup x w) points right
        - v = w x u points up

        If ``vup`` is parallel to the view direction, another reference axis is
        used and a DegenerateGeometryWarning is issued.

        Args:
            lookfrom: Camera position.
            lookat: Point the camera looks at.
            vup: Approximate up direction.

        Returns:
            The camera.

        Raises:
            ConfigurationError: If lookfrom and lookat coincide.
        """
        origin = np.array(lookfrom, dtype=np.float64)
        target = np.array(lookat, dtype=np.float64)
        up = np.array(vup, dtype=np.float64)

        w = origin - target
        w_len = np.linalg.norm(w)
        if w_len < 1e-12:
            raise ConfigurationError("Camera lookfrom and lookat must differ.")
        w = w / w_len

        u = np.cross(up, w)
        if np.linalg.norm(u) < 1e-9:
            fallback = np.array([0.0, 0.0, 1.0]) if abs(w[1]) > 0.9 else np.array([0.0, 1.0, 0.0])
            warnings.warn(
                f"Camera up vector {tuple(vup)} is parallel to the view direction; "
                f"using {tuple(fallback)} instead.",
                DegenerateGeometryWarning,
                stacklevel=2,
            )
            u = np.cross(fallback, w)
        u = u / np.linalg.norm(u)
        v = np.cross(w, u)

        # Columns are (u, v, w)
        rotation = np.stack([u, v, w], axis=1)
        return cls(
            position=(float(origin[0]), float(origin[1]), float(origin[2])),
            rotation=_to_matrix3(rotation),
        )

    def rotation_matrix(self) -> np.ndarray:
        """The rotation as a (3, 3) float32 array."""
        return np.array(self.rotation, dtype=np.float32)

    def validate(self) -> None:
        """Check that the position is finite and the rotation orthonormal.

        Raises:
            ConfigurationError: On a malformed or non-finite camera.
        """
        position = np.asarray(self.position, dtype=np.float64)
        if position.shape != (3,) or not np.all(np.isfinite(position)):
            raise ConfigurationError(f"Camera position {self.position} must be 3 finite floats.")
        try:
            rotation = np.asarray(self.rotation, dtype=np.float64)
        except ValueError as e:
            raise ConfigurationError(f"Camera rotation is not a 3x3 matrix: {e}") from e
        if rotation.shape != (3, 3) or not np.all(np.isfinite(rotation)):
            raise ConfigurationError("Camera rotation must be a finite 3x3 matrix.")
        if abs(np.linalg.det(rotation)) < 1e-9:
            raise ConfigurationError("Camera rotation must be invertible.")
        # Unit columns keep every primary direction finite in f32
        if not np.allclose(rotation.T @ rotation, np.eye(3), atol=ORTHONORMAL_TOLERANCE):
            raise ConfigurationError("Camera rotation must be orthonormal.")


def _to_matrix3(matrix: np.ndarray) -> Matrix3:
    return tuple(tuple(float(value) for value in row) for row in matrix)  # type: ignore[return-value]


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_position = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_rotation = ti.Matrix.field(3, 3, dtype=ti.f32, shape=())


def setup_camera(camera: Camera) -> None:
    """Copy the camera into the Taichi fields read by the kernel.

    Args:
        camera: The camera for the next render pass.
    """
    _camera_position[None] = list(camera.position)
    _camera_rotation[None] = camera.rotation_matrix().tolist()


def tan_half_fov(fov_degrees: float) -> float:
    """tan(fov / 2) for a vertical field of view given in degrees."""
    return math.tan(math.radians(fov_degrees) * 0.5)


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def primary_direction(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    tan_half: ti.f32,
    aspect_ratio: ti.f32,
) -> vec3:
    """World-space unit direction of the primary ray through a pixel center.

    Args:
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
        tan_half: tan(fov / 2) of the vertical field of view.
        aspect_ratio: width / height.

    Returns:
        The normalized ray direction.
    """
    screen_x = (
        (2.0 * (ti.cast(x, ti.f32) + 0.5) / ti.cast(width, ti.f32) - 1.0)
        * tan_half
        * aspect_ratio
    )
    screen_y = (1.0 - 2.0 * (ti.cast(y, ti.f32) + 0.5) / ti.cast(height, ti.f32)) * tan_half
    direction = _camera_rotation[None] @ vec3(screen_x, screen_y, -1.0)
    return tm.normalize(direction)


@ti.func
def get_camera_origin() -> vec3:
    """The camera position, origin of every primary ray."""
    return _camera_position[None]

