"""Tests for the RayTracer host class."""

import os

import numpy as np
import pytest


def _sphere(color=(1.0, 0.0, 0.0)):
    from src.reflectrace.geometry import Sphere

    return Sphere(center=(0.0, 0.0, -3.0), radius=1.0, color=color)


class TestRayTracerSetup:
    """Tests for construction and configuration."""

    def test_defaults(self):
        """Test a tracer starts with an empty scene and default parameters."""
        from src.reflectrace.core.config import RenderParams
        from src.reflectrace.core.renderer import RayTracer

        tracer = RayTracer()
        assert len(tracer.scene) == 0
        assert tracer.params == RenderParams()
        assert tracer.buffer is None

    def test_overrides(self):
        """Test keyword overrides replace individual parameters."""
        from src.reflectrace.core.renderer import RayTracer

        tracer = RayTracer(width=32, height=16, sample_count=0)
        assert (tracer.width, tracer.height) == (32, 16)
        assert tracer.params.sample_count == 0

    def test_invalid_construction_raises(self):
        """Test invalid parameters are rejected on construction."""
        from src.reflectrace.core.renderer import RayTracer
        from src.reflectrace.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            RayTracer(fov=0.0)

    def test_configure_replaces_params(self):
        """Test configure returns and keeps the new parameters."""
        from src.reflectrace.core.renderer import RayTracer

        tracer = RayTracer(width=8, height=8)
        params = tracer.configure(max_depth=2, seed=5)
        assert params is tracer.params
        assert tracer.params.max_depth == 2
        assert tracer.params.seed == 5

    def test_invalid_configure_leaves_params(self):
        """Test a failed configure keeps the previous parameters."""
        from src.reflectrace.core.renderer import RayTracer
        from src.reflectrace.errors import ConfigurationError

        tracer = RayTracer(width=8, height=8)
        before = tracer.params
        with pytest.raises(ConfigurationError):
            tracer.configure(width=-4)
        assert tracer.params is before

    def test_repr(self):
        """Test the string representation."""
        from src.reflectrace.core.renderer import RayTracer

        tracer = RayTracer(width=8, height=4)
        tracer.add_object(_sphere())
        assert repr(tracer) == "RayTracer(width=8, height=4, objects=1)"


class TestRayTracerRender:
    """Tests for rendering and image access."""

    def test_scene_edits_apply_to_next_pass(self):
        """Test adding and removing objects changes the next render."""
        from src.reflectrace.core.renderer import RayTracer

        tracer = RayTracer(
            width=3, height=3, max_depth=1, sample_count=0, background_color=(1.0, 1.0, 1.0)
        )
        sphere = _sphere(color=(0.0, 1.0, 0.0))

        tracer.add_object(sphere)
        tracer.render()
        assert np.allclose(tracer.get_image_numpy()[1, 1], (0.0, 1.0, 0.0))

        tracer.remove_object(sphere)
        tracer.render()
        assert np.allclose(tracer.get_image_numpy()[1, 1], (1.0, 1.0, 1.0))

    def test_buffer_reused_between_passes(self):
        """Test the buffer survives passes of the same size."""
        from src.reflectrace.core.renderer import RayTracer

        tracer = RayTracer(width=4, height=4, sample_count=0)
        first = tracer.render()
        second = tracer.render()
        assert first is second

        tracer.configure(width=6)
        third = tracer.render()
        assert third is not first
        assert tracer.get_image_numpy().shape == (4, 6, 3)

    def test_get_image_before_render_raises(self):
        """Test image access requires a finished pass."""
        from src.reflectrace.core.renderer import RayTracer

        tracer = RayTracer(width=4, height=4)
        with pytest.raises(RuntimeError, match="render"):
            tracer.get_image_numpy()

    def test_get_image_uint8(self):
        """Test 8-bit output of a uniform background."""
        from src.reflectrace.core.renderer import RayTracer

        tracer = RayTracer(width=5, height=3, background_color=(1.0, 0.0, 1.0))
        tracer.render()
        image = tracer.get_image_uint8(gamma=1.0)
        assert image.shape == (3, 5, 3)
        assert image.dtype == np.uint8
        assert np.all(image[:, :, 0] == 255)
        assert np.all(image[:, :, 1] == 0)

    def test_save_image(self, tmp_path):
        """Test saving the last pass to a PNG file."""
        from PIL import Image as PILImage

        from src.reflectrace.core.renderer import RayTracer

        tracer = RayTracer(width=8, height=6, sample_count=0)
        tracer.add_object(_sphere())
        tracer.render()

        filepath = str(tmp_path / "render.png")
        tracer.save_image(filepath)
        assert os.path.exists(filepath)
        with PILImage.open(filepath) as loaded:
            assert loaded.size == (8, 6)

    def test_render_forwards_progress_and_cancel(self):
        """Test callback and cancel reach the render pass."""
        from src.reflectrace.core.renderer import RayTracer
        from src.reflectrace.errors import RenderCancelled

        tracer = RayTracer(width=4, height=2, sample_count=0)
        calls = []
        tracer.render(callback=lambda done, total: calls.append(done), batch_size=4)
        assert calls == [4, 8]

        with pytest.raises(RenderCancelled):
            tracer.render(cancel=lambda: True)
