"""Host-side scene: an ordered collection of intersectable objects.

The Scene owns the object list. The tracer never reads the live list; it takes
a SceneSnapshot, an immutable tuple of objects, before any pixel work is
dispatched, so later add/remove calls cannot race with a render pass.

Example:
    >>> from src.reflectrace.geometry import Plane, Sphere
    >>> from src.reflectrace.scene.scene import Scene
    >>> scene = Scene()
    >>> ball = Sphere(center=(0.0, 0.0, -3.0), radius=1.0)
    >>> scene.add(ball)
    >>> snapshot = scene.snapshot()
    >>> scene.remove(ball)
    >>> len(snapshot), len(scene)
    (1, 0)
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from src.reflectrace.geometry.base import SceneObject


@dataclass(frozen=True)
class SceneSnapshot:
    """Immutable view of the scene's objects for one render pass.

    Attributes:
        objects: The objects in insertion order.
    """

    objects: tuple[SceneObject, ...] = ()

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self) -> Iterator[SceneObject]:
        return iter(self.objects)


class Scene:
    """An ordered, mutable collection of scene objects.

    Insertion order is preserved and duplicates are allowed. Objects are
    matched by reference, not by value.
    """

    def __init__(self, objects: Iterable[SceneObject] = ()) -> None:
        self._objects: list[SceneObject] = list(objects)

    def add(self, obj: SceneObject) -> None:
        """Append an object to the scene."""
        self._objects.append(obj)

    def remove(self, obj: SceneObject) -> None:
        """Remove the first occurrence of ``obj``.

        Does nothing if the object is not in the scene.
        """
        for i, existing in enumerate(self._objects):
            if existing is obj:
                del self._objects[i]
                return

    def clear(self) -> None:
        """Remove every object."""
        self._objects.clear()

    def snapshot(self) -> SceneSnapshot:
        """Copy the current object list into an immutable snapshot."""
        return SceneSnapshot(tuple(self._objects))

    @property
    def objects(self) -> tuple[SceneObject, ...]:
        """The current objects, as a read-only tuple."""
        return tuple(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[SceneObject]:
        return iter(tuple(self._objects))

    def __contains__(self, obj: object) -> bool:
        return any(existing is obj for existing in self._objects)

    def __repr__(self) -> str:
        return f"Scene(objects={len(self._objects)})"
