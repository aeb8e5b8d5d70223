"""One viewport-change cycle: pick tiles, fetch the new ones, merge, publish."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable

from pyogcfeatures.bands import BandState, ZoomBandIndex, band_for
from pyogcfeatures.config import CollectionConfig
from pyogcfeatures.exceptions import OgcFetchError
from pyogcfeatures.merge import merge_features
from pyogcfeatures.models.feature import FeatureCollection
from pyogcfeatures.tiles import BBox, Tile, bbox_to_tile, descend_overlapping
from pyogcfeatures.view import Viewport

_logger = logging.getLogger(__name__)

FetchTile = Callable[[Tile], Awaitable[FeatureCollection]]
Publish = Callable[[BandState], None]


@dataclasses.dataclass(frozen=True, slots=True)
class CycleResult:
    """Summary of one reconciliation cycle.

    ``band`` is ``None`` when the cycle was skipped below the minimum zoom.
    """

    zoom: float
    band: int | None = None
    primary_tile: Tile | None = None
    requested: tuple[Tile, ...] = ()
    failed: tuple[Tile, ...] = ()
    features_added: int = 0
    tolerance: float | None = None
    published: bool = False

    @property
    def skipped(self) -> bool:
        return self.band is None


def candidate_tiles(bounds: BBox, band: int) -> tuple[Tile, list[Tile]]:
    """Return the primary tile of *bounds* and the tiles to request for *band*.

    A primary tile coarser than the band is descended to the band zoom,
    keeping only the tiles touching *bounds*. A primary tile at or finer than
    the band is requested on its own.
    """
    primary = bbox_to_tile(bounds)
    if primary.z >= band:
        return primary, [primary]
    return primary, descend_overlapping(primary, band, bounds)


def simplify_tolerance(viewport: Viewport, simplify_factor: float | None) -> float | None:
    """Linear simplification tolerance in degrees per pixel times the factor."""
    if simplify_factor is None or viewport.pixel_width <= 0:
        return None
    return abs(viewport.bounds.width) / viewport.pixel_width * simplify_factor


class Reconciler:
    """Runs reconciliation cycles against a :class:`ZoomBandIndex`.

    Cycles may overlap. The only ordering guarantee they rely on is that the
    tiles of a cycle are claimed before its first suspension point, so every
    tile of a band is fetched at most once until it fails or the index resets.
    """

    def __init__(
        self,
        config: CollectionConfig,
        index: ZoomBandIndex,
        fetch_tile: FetchTile,
        publish: Publish,
    ) -> None:
        self._config = config
        self._index = index
        self._fetch_tile = fetch_tile
        self._publish = publish

    async def reconcile(self, viewport: Viewport) -> CycleResult:
        config = self._config
        if viewport.zoom < config.resolved_min_zoom:
            _logger.debug("Zoom %.2f below min zoom %s; skipping", viewport.zoom, config.min_zoom)
            return CycleResult(zoom=viewport.zoom)

        band = band_for(viewport.zoom, config.band_policy, config.resolved_min_zoom)
        state = self._index.get_or_create(band)
        primary, candidates = candidate_tiles(viewport.bounds, band)
        new_tiles = state.claim(candidates)
        tolerance = simplify_tolerance(viewport, config.simplify_factor)

        failed: list[Tile] = []
        added = 0
        if new_tiles:
            _logger.debug("Band %d: requesting %d of %d candidate tiles", band, len(new_tiles), len(candidates))
            try:
                results = await asyncio.gather(*(self._fetch(tile) for tile in new_tiles), return_exceptions=True)
            except BaseException:
                # Cancelled before anything merged.
                for tile in new_tiles:
                    state.release(tile)
                raise
            for tile, collection in zip(new_tiles, results, strict=True):
                if isinstance(collection, BaseException):
                    _logger.error("Unexpected error fetching tile %s", tile.quadkey or "<root>", exc_info=collection)
                    collection = None
                if collection is None:
                    state.release(tile)
                    failed.append(tile)
                    continue
                added += merge_features(state, collection.features, hash_missing_ids=config.hash_missing_ids)

        result = CycleResult(
            zoom=viewport.zoom,
            band=band,
            primary_tile=primary,
            requested=tuple(new_tiles),
            failed=tuple(failed),
            features_added=added,
            tolerance=tolerance,
        )

        if self._index.get(band) is not state:
            _logger.debug("Band %d was reset while fetching; not publishing", band)
            return result

        self._publish(state)
        _logger.debug(
            "Band %d: %d new features, %d total, %d failed tiles",
            band,
            added,
            len(state.accumulator),
            len(failed),
        )
        return dataclasses.replace(result, published=True)

    async def _fetch(self, tile: Tile) -> FeatureCollection | None:
        try:
            return await self._fetch_tile(tile)
        except OgcFetchError as exc:
            _logger.warning("Fetching tile %s failed: %s", tile.quadkey or "<root>", exc)
            return None
