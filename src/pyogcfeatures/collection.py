"""Keeps a host map source in sync with an OGC API - Features collection."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from pyogcfeatures._api.items import fetch_items
from pyogcfeatures._constants import MOVE_EVENT
from pyogcfeatures._transport import HttpTransport, Transport
from pyogcfeatures.bands import BandState, ZoomBandIndex
from pyogcfeatures.config import CollectionConfig
from pyogcfeatures.exceptions import OgcConfigError, OgcFeaturesError
from pyogcfeatures.models.feature import FeatureCollection
from pyogcfeatures.reconciler import CycleResult, Reconciler
from pyogcfeatures.tiles import Tile
from pyogcfeatures.view import MapView, capture_viewport

_logger = logging.getLogger(__name__)


def _blank_collection() -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": []}


class OgcFeatureCollection:
    """A GeoJSON map source fed incrementally from an ``/items`` endpoint.

    Usage::

        async with OgcFeatureCollection("parcels", view, config) as source:
            view.move_to(bbox, zoom=12)
            await source.wait_idle()

    Entering the context adds a blank source to *view*, starts listening
    for ``moveend`` and runs one reconciliation cycle. Move events must be
    fired from within the running event loop.
    """

    def __init__(
        self,
        source_id: str,
        view: MapView,
        config: CollectionConfig | Mapping[str, Any],
        *,
        source_options: Mapping[str, Any] | None = None,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        if not source_id or view is None or config is None:
            raise OgcConfigError("Source id, view and config must be supplied.")
        if not isinstance(config, CollectionConfig):
            config = CollectionConfig.from_options(config)

        self.source_id = source_id
        self._view = view
        self._config = config
        self._source_options = dict(source_options or {})
        self._external_session = session is not None
        self._http_session = session
        self._custom_transport = transport
        self._transport: Transport | None = None
        self._index = ZoomBandIndex()
        self._reconciler = Reconciler(config, self._index, self._fetch_tile, self._publish)
        self._listener = self._on_move
        self._tasks: set[asyncio.Task[CycleResult]] = set()
        self._enabled = False
        self._source_added = False
        self._feature_collection: dict[str, Any] | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> OgcFeatureCollection:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def start(self) -> CycleResult:
        """Add the source to the view, enable requests and run the first cycle."""
        if self._source_added:
            raise OgcFeaturesError(f"Source {self.source_id!r} already started")
        if self._custom_transport is not None:
            self._transport = self._custom_transport
        else:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, self._config.fetch_options)

        try:
            blank = _blank_collection()
            self._view.add_source(self.source_id, {**self._source_options, "type": "geojson", "data": blank})
            self._source_added = True
            self._feature_collection = blank
            self.enable()
            return await self.refresh()
        except BaseException:
            await self.close()
            raise

    async def close(self) -> None:
        """Destroy the source, let in-flight cycles finish and close an owned session."""
        self.destroy()
        await self.wait_idle()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    def destroy(self) -> None:
        """Stop listening and remove the source from the view."""
        self.disable()
        if self._source_added:
            self._view.remove_source(self.source_id)
            self._source_added = False

    # ------------------------------------------------------------------
    # Move events
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        """Reconcile on every ``moveend`` of the view."""
        if self._enabled:
            return
        self._view.on(MOVE_EVENT, self._listener)
        self._enabled = True

    def disable(self) -> None:
        """Stop reacting to ``moveend``; in-flight cycles still complete."""
        if not self._enabled:
            return
        self._view.off(MOVE_EVENT, self._listener)
        self._enabled = False

    def _on_move(self, *_args: Any) -> None:
        task = asyncio.get_running_loop().create_task(self.reconcile())
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[CycleResult]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Reconciliation of %s failed", self.source_id, exc_info=exc)

    async def wait_idle(self) -> None:
        """Wait until every cycle scheduled by move events has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    async def reconcile(self) -> CycleResult:
        """Run one cycle against the view's current camera."""
        self._require_transport()
        return await self._reconciler.reconcile(capture_viewport(self._view))

    async def refresh(self) -> CycleResult:
        """Drop every cached band and reconcile from scratch."""
        self._require_transport()
        self._index.reset_all()
        return await self.reconcile()

    @property
    def config(self) -> CollectionConfig:
        return self._config

    @property
    def index(self) -> ZoomBandIndex:
        return self._index

    @property
    def feature_collection(self) -> dict[str, Any] | None:
        """The collection most recently handed to the view."""
        return self._feature_collection

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise OgcFeaturesError("Source not started. Use 'async with OgcFeatureCollection(...) as source:'")
        return self._transport

    async def _fetch_tile(self, tile: Tile) -> FeatureCollection:
        return await fetch_items(self._config, self._require_transport(), tile)

    def _publish(self, state: BandState) -> None:
        if not self._source_added:
            return
        data = state.to_geojson()
        self._view.set_source_data(self.source_id, data)
        self._feature_collection = data
