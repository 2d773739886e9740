"""Host-side ray tracer holding a scene, render parameters and a pixel buffer.

RayTracer is the glue an application drives once per frame: it owns the
mutable Scene, the current RenderParams and the reusable PixelBuffer. Each
call to render() takes a snapshot of the scene and runs one full pass.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.reflectrace.core.renderer import RayTracer
    >>> from src.reflectrace.geometry import Plane, Sphere
    >>>
    >>> tracer = RayTracer(width=320, height=240, background_color=(0.7, 0.8, 1.0))
    >>> tracer.add_object(Sphere(center=(0.0, 0.0, -3.0), radius=1.0))
    >>> tracer.add_object(Plane(point=(0.0, -1.0, 0.0), normal=(0.0, 1.0, 0.0)))
    >>> tracer.render()
    >>> tracer.save_image("output.png")
"""

import dataclasses
import logging
from typing import Any

import numpy as np
import numpy.typing as npt

from src.reflectrace.core.config import RenderParams
from src.reflectrace.core.tracer import CancelCheck, PixelBuffer, ProgressCallback, render
from src.reflectrace.geometry.base import SceneObject
from src.reflectrace.preview.export import save_png, to_uint8
from src.reflectrace.scene.scene import Scene

logger = logging.getLogger(__name__)


class RayTracer:
    """A reflection ray tracer bound to one scene and one render target.

    Attributes:
        scene: The objects rendered by every pass.
    """

    def __init__(
        self,
        scene: Scene | None = None,
        params: RenderParams | None = None,
        **overrides: Any,
    ) -> None:
        """Initialize the tracer.

        Args:
            scene: Scene to render. A new empty scene is created if omitted.
            params: Render parameters. Defaults to RenderParams().
            **overrides: RenderParams fields replacing those of ``params``.

        Raises:
            ConfigurationError: If the resulting parameters are invalid.
        """
        self.scene = scene if scene is not None else Scene()
        params = params if params is not None else RenderParams()
        if overrides:
            params = dataclasses.replace(params, **overrides)
        params.validate()
        self._params = params
        self._buffer: PixelBuffer | None = None

    @property
    def params(self) -> RenderParams:
        """The parameters used by the next pass."""
        return self._params

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._params.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._params.height

    @property
    def buffer(self) -> PixelBuffer | None:
        """The pixel buffer of the last pass, or None before the first pass."""
        return self._buffer

    def configure(self, **changes: Any) -> RenderParams:
        """Replace some render parameters.

        The buffer is kept and reallocated on the next pass only if the size
        changed.

        Args:
            **changes: RenderParams fields to replace.

        Returns:
            The new parameters.

        Raises:
            ConfigurationError: If the new parameters are invalid. The current
                parameters are then left unchanged.
        """
        params = dataclasses.replace(self._params, **changes)
        params.validate()
        self._params = params
        return params

    def add_object(self, obj: SceneObject) -> None:
        """Add an object to the scene. Takes effect on the next pass."""
        self.scene.add(obj)

    def remove_object(self, obj: SceneObject) -> None:
        """Remove an object from the scene; does nothing if it is absent."""
        self.scene.remove(obj)

    def render(
        self,
        callback: ProgressCallback | None = None,
        cancel: CancelCheck | None = None,
        batch_size: int | None = None,
    ) -> PixelBuffer:
        """Render the current scene with the current parameters.

        Args:
            callback: Called with (pixels_done, total_pixels) after each batch.
            cancel: Polled between batches; returning True aborts the pass.
            batch_size: Pixels per kernel launch.

        Returns:
            The pixel buffer holding the rendered image.

        Raises:
            RenderCancelled: If ``cancel`` returned True.
        """
        self._buffer = render(
            self.scene.snapshot(),
            self._params,
            self._buffer,
            batch_size=batch_size,
            callback=callback,
            cancel=cancel,
        )
        return self._buffer

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the last rendered image as an array of shape (height, width, 3).

        Raises:
            RuntimeError: If nothing has been rendered yet.
        """
        return self._require_buffer().to_image()

    def get_image_uint8(self, gamma: float = 2.2) -> npt.NDArray[np.uint8]:
        """Get the last rendered image as 8-bit RGB.

        Args:
            gamma: Gamma correction value. Default 2.2 for sRGB.
        """
        return to_uint8(self.get_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str, gamma: float = 2.2) -> None:
        """Save the last rendered image to a PNG file.

        Args:
            filepath: Path to save the image (e.g., "output.png").
            gamma: Gamma correction value. Default 2.2 for sRGB.
        """
        save_png(self._require_buffer(), filepath, gamma=gamma)
        logger.info("Saved %dx%d image to %s", self.width, self.height, filepath)

    def _require_buffer(self) -> PixelBuffer:
        if self._buffer is None:
            raise RuntimeError("Nothing has been rendered yet; call render() first")
        return self._buffer

    def __repr__(self) -> str:
        """Return a string representation of the tracer state."""
        return (
            f"RayTracer(width={self.width}, height={self.height}, "
            f"objects={len(self.scene)})"
        )
