"""Render parameters for one tracing pass.

RenderParams is immutable: change parameters between passes with
``dataclasses.replace``. Validation is explicit and fails fast; nothing is
clamped.

Example:
    >>> from src.reflectrace.core.config import RenderParams
    >>> params = RenderParams(width=320, height=240, fov=45.0, sample_count=4)
    >>> params.validate()
    >>> params.aspect_ratio
    1.3333333333333333
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.reflectrace.camera.pinhole import Camera, tan_half_fov
from src.reflectrace.errors import ConfigurationError

# Largest seed value accepted by the per-pixel random streams
MAX_SEED = 2**32 - 1


@dataclass(frozen=True)
class RenderParams:
    """Parameters of a render pass.

    Attributes:
        width: Image width in pixels (positive).
        height: Image height in pixels (positive).
        fov: Vertical field of view in degrees, in (0, 180).
        max_depth: Maximum number of reflection bounces. 0 renders the
            background everywhere.
        sample_count: Number of jittered rays traced per pixel in addition to
            the primary ray.
        background_color: RGB color returned by rays that escape the scene,
            components in [0, 1].
        camera: Camera position and camera-to-world rotation.
        seed: Seed of the per-pixel random streams, in [0, 2^32).
    """

    width: int = 512
    height: int = 512
    fov: float = 60.0
    max_depth: int = 5
    sample_count: int = 1
    background_color: tuple[float, float, float] = (0.0, 0.0, 0.0)
    camera: Camera = field(default_factory=Camera)
    seed: int = 0

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @property
    def pixel_count(self) -> int:
        """Number of pixels, width * height."""
        return self.width * self.height

    @property
    def tan_half_fov(self) -> float:
        """tan(fov / 2)."""
        return tan_half_fov(self.fov)

    def validate(self) -> None:
        """Reject invalid parameters.

        Raises:
            ConfigurationError: On a non-positive size, a field of view outside
                (0, 180), a negative depth or sample count, a background color
                outside [0, 1], an invalid camera or an out of range seed.
        """
        for name in ("width", "height"):
            value = getattr(self, name)
            if not _is_int(value) or value <= 0:
                raise ConfigurationError(f"{name} = {value!r} must be a positive integer.")

        if not isinstance(self.fov, (int, float)) or not 0.0 < self.fov < 180.0:
            raise ConfigurationError(
                f"fov = {self.fov!r} must be in (0, 180) degrees."
            )

        for name in ("max_depth", "sample_count"):
            value = getattr(self, name)
            if not _is_int(value) or value < 0:
                raise ConfigurationError(f"{name} = {value!r} must be a non-negative integer.")

        if len(self.background_color) != 3:
            raise ConfigurationError(
                f"background_color must have 3 components, got {len(self.background_color)}."
            )
        for i, component in enumerate(self.background_color):
            if not isinstance(component, (int, float)) or not 0.0 <= component <= 1.0:
                raise ConfigurationError(
                    f"background_color component {i} = {component!r} is outside [0, 1]."
                )

        if not _is_int(self.seed) or not 0 <= self.seed <= MAX_SEED:
            raise ConfigurationError(f"seed = {self.seed!r} must be an integer in [0, 2^32).")

        self.camera.validate()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderParams:
        """Build parameters from a plain mapping, e.g. a parsed config file.

        The optional "camera" entry is either a mapping with "position" and
        "rotation", or a mapping with "lookfrom", "lookat" and optional "vup".

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown render parameters: {sorted(unknown)}")

        values = dict(data)
        camera = values.pop("camera", None)
        if isinstance(camera, dict):
            values["camera"] = _camera_from_dict(camera)
        elif camera is not None:
            values["camera"] = camera
        if "background_color" in values:
            values["background_color"] = tuple(values["background_color"])

        params = cls(**values)
        params.validate()
        return params


def _camera_from_dict(data: dict[str, Any]) -> Camera:
    if "lookfrom" in data:
        return Camera.look_at(
            tuple(data["lookfrom"]),
            tuple(data.get("lookat", (0.0, 0.0, -1.0))),
            tuple(data.get("vup", (0.0, 1.0, 0.0))),
        )
    position = tuple(data.get("position", (0.0, 0.0, 0.0)))
    rotation = data.get("rotation")
    if rotation is None:
        return Camera(position=position)
    return Camera(position=position, rotation=tuple(tuple(row) for row in rotation))


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)

