"""Tests for the scene table and nearest-hit queries.

Tests cover:
- Uploading snapshots into the scene table
- Capacity limit
- Tagged-union dispatch of intersection, normal and color
- Nearest-hit selection and tie-breaking
"""

import numpy as np
import pytest
import taichi as ti


def _closest_hit(origin, direction):
    from src.reflectrace.scene.intersection import closest_hit

    index = ti.field(dtype=ti.i32, shape=())
    distance = ti.field(dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(o: ti.math.vec3, d: ti.math.vec3):
        i, t = closest_hit(o, d)
        index[None] = i
        distance[None] = t

    test_kernel(ti.math.vec3(*origin), ti.math.vec3(*direction))
    return index[None], distance[None]


class TestSceneTableUpload:
    """Tests for upload_snapshot."""

    def test_upload_sets_count(self):
        """Test the object count matches the snapshot."""
        from src.reflectrace.geometry import Plane, Quad, Sphere
        from src.reflectrace.scene.intersection import get_object_count, upload_snapshot
        from src.reflectrace.scene.scene import Scene

        scene = Scene(
            [
                Sphere(center=(0.0, 0.0, -3.0), radius=1.0),
                Plane(point=(0.0, -1.0, 0.0), normal=(0.0, 1.0, 0.0)),
                Quad(corner=(0.0, 0.0, -5.0), edge_u=(1.0, 0.0, 0.0), edge_v=(0.0, 1.0, 0.0)),
            ]
        )
        assert upload_snapshot(scene.snapshot()) == 3
        assert get_object_count() == 3

    def test_upload_replaces_previous_snapshot(self):
        """Test a second upload replaces rather than appends."""
        from src.reflectrace.geometry import Sphere
        from src.reflectrace.scene.intersection import get_object_count, upload_snapshot
        from src.reflectrace.scene.scene import Scene

        upload_snapshot(Scene([Sphere(center=(0.0, 0.0, -3.0), radius=1.0)] * 4).snapshot())
        upload_snapshot(Scene([Sphere(center=(0.0, 0.0, -3.0), radius=1.0)]).snapshot())
        assert get_object_count() == 1

    def test_clear_scene_table(self):
        """Test clearing empties the table."""
        from src.reflectrace.geometry import Sphere
        from src.reflectrace.scene.intersection import (
            clear_scene_table,
            get_object_count,
            upload_snapshot,
        )
        from src.reflectrace.scene.scene import Scene

        upload_snapshot(Scene([Sphere(center=(0.0, 0.0, -3.0), radius=1.0)]).snapshot())
        clear_scene_table()
        assert get_object_count() == 0

    def test_capacity_exceeded(self):
        """Test uploading more than MAX_OBJECTS raises RuntimeError."""
        from src.reflectrace.geometry import Sphere
        from src.reflectrace.scene.intersection import MAX_OBJECTS, upload_snapshot
        from src.reflectrace.scene.scene import SceneSnapshot

        sphere = Sphere(center=(0.0, 0.0, -3.0), radius=1.0)
        with pytest.raises(RuntimeError, match="Maximum number of objects"):
            upload_snapshot(SceneSnapshot((sphere,) * (MAX_OBJECTS + 1)))


class TestClosestHit:
    """Tests for the nearest-hit linear scan."""

    def test_empty_table_misses(self):
        """Test an empty table reports no hit."""
        index, _ = _closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert index == -1

    def test_single_sphere_hit(self):
        """Test hitting one sphere."""
        from src.reflectrace.geometry import Sphere
        from src.reflectrace.scene.intersection import upload_snapshot
        from src.reflectrace.scene.scene import Scene

        upload_snapshot(Scene([Sphere(center=(0.0, 0.0, -5.0), radius=1.0)]).snapshot())
        index, t = _closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert index == 0
        assert t == pytest.approx(4.0, abs=1e-5)

    def test_nearest_wins_regardless_of_order(self):
        """Test the nearer object is chosen whichever order it was added in."""
        from src.reflectrace.geometry import Sphere
        from src.reflectrace.scene.intersection import upload_snapshot
        from src.reflectrace.scene.scene import Scene

        near = Sphere(center=(0.0, 0.0, -3.0), radius=1.0)
        far = Sphere(center=(0.0, 0.0, -10.0), radius=1.0)

        upload_snapshot(Scene([far, near]).snapshot())
        index, t = _closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert index == 1
        assert t == pytest.approx(2.0, abs=1e-5)

        upload_snapshot(Scene([near, far]).snapshot())
        index, t = _closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert index == 0
        assert t == pytest.approx(2.0, abs=1e-5)

    def test_tie_goes_to_first_scanned(self):
        """Test objects at equal distance resolve to the earlier one."""
        from src.reflectrace.geometry import Quad, Sphere
        from src.reflectrace.scene.intersection import upload_snapshot
        from src.reflectrace.scene.scene import Scene

        # A sphere and a quad whose surfaces touch the ray at the same point
        sphere = Sphere(center=(0.0, 0.0, -4.0), radius=2.0)
        quad = Quad(corner=(-1.0, -1.0, -2.0), edge_u=(2.0, 0.0, 0.0), edge_v=(0.0, 2.0, 0.0))

        upload_snapshot(Scene([sphere, quad]).snapshot())
        index, _ = _closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert index == 0

        upload_snapshot(Scene([quad, sphere]).snapshot())
        index, _ = _closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert index == 0

    def test_mixed_kinds(self):
        """Test a plane in front of a sphere is reported first."""
        from src.reflectrace.geometry import Plane, Sphere
        from src.reflectrace.scene.intersection import upload_snapshot
        from src.reflectrace.scene.scene import Scene

        upload_snapshot(
            Scene(
                [
                    Sphere(center=(0.0, 0.0, -10.0), radius=1.0),
                    Plane(point=(0.0, 0.0, -4.0), normal=(0.0, 0.0, 1.0)),
                ]
            ).snapshot()
        )
        index, t = _closest_hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert index == 1
        assert t == pytest.approx(4.0, abs=1e-5)


class TestObjectDispatch:
    """Tests for object_normal and object_color dispatch."""

    def test_normals_per_kind(self):
        """Test sphere normals are computed and plane/quad normals are stored."""
        from src.reflectrace.geometry import Plane, Quad, Sphere
        from src.reflectrace.scene.intersection import object_normal, upload_snapshot
        from src.reflectrace.scene.scene import Scene

        upload_snapshot(
            Scene(
                [
                    Sphere(center=(0.0, 0.0, -5.0), radius=1.0),
                    Plane(point=(0.0, -1.0, 0.0), normal=(0.0, 2.0, 0.0)),
                    Quad(corner=(0.0, 0.0, 0.0), edge_u=(0.0, 1.0, 0.0), edge_v=(1.0, 0.0, 0.0)),
                ]
            ).snapshot()
        )
        normals = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            normals[0] = object_normal(0, ti.math.vec3(1.0, 0.0, -5.0))
            normals[1] = object_normal(1, ti.math.vec3(3.0, -1.0, 2.0))
            normals[2] = object_normal(2, ti.math.vec3(0.5, 0.5, 0.0))

        test_kernel()
        n = normals.to_numpy()
        assert np.allclose(n[0], [1.0, 0.0, 0.0], atol=1e-6)
        assert np.allclose(n[1], [0.0, 1.0, 0.0], atol=1e-6)
        assert np.allclose(n[2], [0.0, 0.0, -1.0], atol=1e-6)

    def test_colors_per_pattern(self):
        """Test solid objects return their color and checker planes alternate."""
        from src.reflectrace.geometry import Plane, Sphere
        from src.reflectrace.scene.intersection import object_color, upload_snapshot
        from src.reflectrace.scene.scene import Scene

        upload_snapshot(
            Scene(
                [
                    Sphere(center=(0.0, 0.0, -5.0), radius=1.0, color=(0.5, 0.25, 1.0)),
                    Plane(
                        point=(0.0, 0.0, 0.0),
                        normal=(0.0, 1.0, 0.0),
                        color=(1.0, 1.0, 1.0),
                        checker_color=(0.0, 0.0, 0.0),
                    ),
                ]
            ).snapshot()
        )
        colors = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            colors[0] = object_color(0, ti.math.vec3(0.0, 0.0, -4.0))
            colors[1] = object_color(1, ti.math.vec3(0.5, 0.0, 0.5))
            colors[2] = object_color(1, ti.math.vec3(1.5, 0.0, 0.5))

        test_kernel()
        c = colors.to_numpy()
        assert np.allclose(c[0], [0.5, 0.25, 1.0])
        assert np.allclose(c[1], [1.0, 1.0, 1.0])
        assert np.allclose(c[2], [0.0, 0.0, 0.0])
