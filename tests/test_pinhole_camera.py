"""Unit tests for the pinhole camera module.

Tests cover:
- Camera construction with look_at and its orthonormal rotation
- Validation of malformed cameras
- Primary ray directions for center and corner pixels
- Rotation of camera-space directions into world space
"""

import math

import numpy as np
import pytest
import taichi as ti


def _primary_direction(x, y, width, height, fov):
    from src.reflectrace.camera.pinhole import primary_direction, tan_half_fov

    result = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(px: ti.i32, py: ti.i32, w: ti.i32, h: ti.i32, th: ti.f32, ar: ti.f32):
        result[None] = primary_direction(px, py, w, h, th, ar)

    test_kernel(x, y, width, height, tan_half_fov(fov), width / height)
    d = result[None]
    return np.array([d[0], d[1], d[2]])


class TestCameraLookAt:
    """Tests for Camera.look_at."""

    def test_rotation_is_orthonormal(self):
        """Test the rotation columns form an orthonormal basis."""
        from src.reflectrace.camera.pinhole import Camera

        camera = Camera.look_at((1.0, 2.0, 3.0), (0.0, 0.0, -1.0), (0.0, 1.0, 0.0))
        r = camera.rotation_matrix().astype(np.float64)
        assert np.allclose(r.T @ r, np.eye(3), atol=1e-6)
        assert np.linalg.det(r) == pytest.approx(1.0, abs=1e-6)

    def test_looking_down_negative_z_is_identity(self):
        """Test the default orientation is produced by looking down -z."""
        from src.reflectrace.camera.pinhole import IDENTITY, Camera

        camera = Camera.look_at((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 1.0, 0.0))
        assert np.allclose(camera.rotation_matrix(), np.array(IDENTITY), atol=1e-7)
        assert camera.position == (0.0, 0.0, 0.0)

    def test_backward_axis_points_to_camera(self):
        """Test the third column points from the target to the camera."""
        from src.reflectrace.camera.pinhole import Camera

        camera = Camera.look_at((0.0, 0.0, 3.0), (0.0, 0.0, 0.0))
        w = camera.rotation_matrix()[:, 2]
        assert np.allclose(w, [0.0, 0.0, 1.0], atol=1e-7)

    def test_coincident_points_rejected(self):
        """Test lookfrom == lookat raises ConfigurationError."""
        from src.reflectrace.camera.pinhole import Camera
        from src.reflectrace.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            Camera.look_at((1.0, 1.0, 1.0), (1.0, 1.0, 1.0))

    def test_up_parallel_to_view_warns(self):
        """Test looking straight down falls back to another up axis."""
        from src.reflectrace.camera.pinhole import Camera
        from src.reflectrace.errors import DegenerateGeometryWarning

        with pytest.warns(DegenerateGeometryWarning):
            camera = Camera.look_at((0.0, 5.0, 0.0), (0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        r = camera.rotation_matrix().astype(np.float64)
        assert np.all(np.isfinite(r))
        assert np.allclose(r.T @ r, np.eye(3), atol=1e-6)


class TestCameraValidation:
    """Tests for Camera.validate."""

    def test_default_camera_is_valid(self):
        """Test the default camera passes validation."""
        from src.reflectrace.camera.pinhole import Camera

        Camera().validate()

    def test_non_finite_position_rejected(self):
        """Test NaN positions are rejected."""
        from src.reflectrace.camera.pinhole import Camera
        from src.reflectrace.errors import ConfigurationError

        with pytest.raises(ConfigurationError, match="position"):
            Camera(position=(math.nan, 0.0, 0.0)).validate()

    def test_singular_rotation_rejected(self):
        """Test a zero matrix is rejected."""
        from src.reflectrace.camera.pinhole import Camera
        from src.reflectrace.errors import ConfigurationError

        zero = ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        with pytest.raises(ConfigurationError, match="invertible"):
            Camera(rotation=zero).validate()

    def test_malformed_rotation_rejected(self):
        """Test a 2x2 rotation is rejected."""
        from src.reflectrace.camera.pinhole import Camera
        from src.reflectrace.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            Camera(rotation=((1.0, 0.0), (0.0, 1.0))).validate()  # type: ignore[arg-type]

    def test_scaled_rotation_rejected(self):
        """Test huge entries that overflow in float32 are rejected."""
        from src.reflectrace.camera.pinhole import Camera
        from src.reflectrace.errors import ConfigurationError

        huge = ((3e38, 0.0, 0.0), (0.0, 3e38, 0.0), (0.0, 0.0, 3e38))
        with pytest.raises(ConfigurationError, match="orthonormal"):
            Camera(rotation=huge).validate()

    def test_sheared_rotation_rejected(self):
        """Test a unit-diagonal shear is not accepted as a rotation."""
        from src.reflectrace.camera.pinhole import Camera
        from src.reflectrace.errors import ConfigurationError

        shear = ((1.0, 0.5, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
        with pytest.raises(ConfigurationError, match="orthonormal"):
            Camera(rotation=shear).validate()

    def test_rounded_rotation_accepted(self):
        """Test a rotation written with rounded entries passes."""
        from src.reflectrace.camera.pinhole import Camera

        c = 0.70710678
        Camera(rotation=((c, 0.0, c), (0.0, 1.0, 0.0), (-c, 0.0, c))).validate()

    def test_render_rejects_scaled_rotation(self):
        """Test a render with an overflowing rotation fails before any work."""
        from src.reflectrace.camera.pinhole import Camera
        from src.reflectrace.core.config import RenderParams
        from src.reflectrace.core.tracer import render
        from src.reflectrace.errors import ConfigurationError
        from src.reflectrace.scene.scene import SceneSnapshot

        huge = ((3e38, 0.0, 0.0), (0.0, 3e38, 0.0), (0.0, 0.0, 3e38))
        with pytest.raises(ConfigurationError):
            render(SceneSnapshot(), RenderParams(width=4, height=4, camera=Camera(rotation=huge)))


class TestPrimaryDirection:
    """Tests for primary ray generation."""

    def test_center_pixel_looks_forward(self):
        """Test the center of an odd-sized image maps to -z."""
        from src.reflectrace.camera.pinhole import Camera, setup_camera

        setup_camera(Camera())
        d = _primary_direction(1, 1, 3, 3, 60.0)
        assert np.allclose(d, [0.0, 0.0, -1.0], atol=1e-6)

    def test_top_left_pixel(self):
        """Test pixel (0, 0) is the top-left corner of the image."""
        from src.reflectrace.camera.pinhole import Camera, setup_camera

        setup_camera(Camera())
        # 2x2 image at 90 degrees: centers at screen (+-0.5, +-0.5)
        d = _primary_direction(0, 0, 2, 2, 90.0)
        expected = np.array([-0.5, 0.5, -1.0])
        expected /= np.linalg.norm(expected)
        assert np.allclose(d, expected, atol=1e-6)

    def test_aspect_ratio_widens_horizontal_extent(self):
        """Test screen x is scaled by width / height."""
        from src.reflectrace.camera.pinhole import Camera, setup_camera

        setup_camera(Camera())
        # 4x2 image at 90 degrees: pixel 3 center at screen x = 0.75 * 2
        d = _primary_direction(3, 0, 4, 2, 90.0)
        expected = np.array([1.5, 0.5, -1.0])
        expected /= np.linalg.norm(expected)
        assert np.allclose(d, expected, atol=1e-6)

    def test_directions_are_unit_length(self):
        """Test every generated direction is normalized."""
        from src.reflectrace.camera.pinhole import Camera, setup_camera

        setup_camera(Camera())
        for x, y in [(0, 0), (7, 0), (0, 4), (7, 4), (3, 2)]:
            d = _primary_direction(x, y, 8, 5, 75.0)
            assert np.linalg.norm(d) == pytest.approx(1.0, abs=1e-6)

    def test_rotation_applied(self):
        """Test a camera turned to face +x sends the center ray along +x."""
        from src.reflectrace.camera.pinhole import Camera, setup_camera

        camera = Camera.look_at((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        setup_camera(camera)
        d = _primary_direction(1, 1, 3, 3, 60.0)
        assert np.allclose(d, [1.0, 0.0, 0.0], atol=1e-6)
