"""Host map abstraction.

The engine never talks to a rendering toolkit directly. It needs a view that
reports its camera, emits move events and accepts named GeoJSON sources;
:class:`MapView` describes that surface and :class:`HeadlessMapView` is an
in-memory implementation for scripts, servers and tests.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from pyogcfeatures._constants import MOVE_EVENT
from pyogcfeatures.tiles import BBox


Listener = Callable[..., None]


@dataclass(frozen=True)
class Viewport:
    """Camera state captured at the start of a cycle."""

    zoom: float
    bounds: BBox
    pixel_width: int


class MapView(Protocol):
    """Structural interface of the host map."""

    def on(self, event: str, listener: Listener) -> None:
        ...

    def off(self, event: str, listener: Listener) -> None:
        ...

    def get_zoom(self) -> float:
        ...

    def get_bounds(self) -> BBox:
        ...

    def get_pixel_width(self) -> int:
        ...

    def add_source(self, source_id: str, options: dict[str, Any]) -> None:
        ...

    def set_source_data(self, source_id: str, data: dict[str, Any]) -> None:
        ...

    def remove_source(self, source_id: str) -> None:
        ...

    def has_source(self, source_id: str) -> bool:
        ...


def capture_viewport(view: MapView) -> Viewport:
    return Viewport(zoom=view.get_zoom(), bounds=view.get_bounds(), pixel_width=view.get_pixel_width())


class HeadlessMapView:
    """A map with no renderer: camera state, listeners and source data only."""

    def __init__(self, bounds: BBox, zoom: float, *, pixel_width: int = 1024) -> None:
        self._bounds = bounds
        self._zoom = zoom
        self._pixel_width = pixel_width
        self._listeners: dict[str, list[Listener]] = {}
        self.sources: dict[str, dict[str, Any]] = {}

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str = MOVE_EVENT) -> int:
        return len(self._listeners.get(event, []))

    def fire(self, event: str) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(event)

    def move_to(self, bounds: BBox, zoom: float | None = None) -> None:
        """Update the camera and notify ``moveend`` listeners."""
        self._bounds = bounds
        if zoom is not None:
            self._zoom = zoom
        self.fire(MOVE_EVENT)

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------

    def get_zoom(self) -> float:
        return self._zoom

    def get_bounds(self) -> BBox:
        return self._bounds

    def get_pixel_width(self) -> int:
        return self._pixel_width

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def add_source(self, source_id: str, options: dict[str, Any]) -> None:
        if source_id in self.sources:
            raise ValueError(f"source {source_id!r} already exists")
        self.sources[source_id] = dict(options)

    def set_source_data(self, source_id: str, data: dict[str, Any]) -> None:
        source = self.sources.get(source_id)
        if source is None:
            raise KeyError(source_id)
        source["data"] = data

    def remove_source(self, source_id: str) -> None:
        self.sources.pop(source_id, None)

    def has_source(self, source_id: str) -> bool:
        return source_id in self.sources

    def get_source_data(self, source_id: str) -> dict[str, Any] | None:
        source = self.sources.get(source_id)
        if source is None:
            return None
        data: dict[str, Any] | None = source.get("data")
        return data
