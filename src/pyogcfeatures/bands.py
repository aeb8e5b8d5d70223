"""Per-zoom-band cache of requested tiles and merged features.

This is the only component that owns fetched state. Band states are created
lazily, only ever grow, and are discarded together by :meth:`ZoomBandIndex.reset_all`.
"""

from __future__ import annotations

import math
from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pyogcfeatures.models.feature import Feature
from pyogcfeatures.tiles import Tile


class BandPolicy(StrEnum):
    STATIC = "static"
    DYNAMIC = "dynamic"


def band_for(zoom: float, policy: BandPolicy, static_zoom: float) -> int:
    """Quantize a continuous map zoom to a cache band.

    The dynamic policy rounds down to the nearest even zoom so that small
    zoom changes reuse already fetched data.
    """
    if policy == BandPolicy.STATIC:
        return int(math.ceil(static_zoom))
    return 2 * int(math.floor(zoom / 2))


@dataclass
class BandState:
    """Fetched tiles and merged features for one zoom band.

    ``seen_feature_ids`` holds exactly the identities of the features in
    ``accumulator``; features without an identity are stored but not recorded.
    """

    band: int
    requested_tiles: set[str] = field(default_factory=set)
    seen_feature_ids: set[Hashable] = field(default_factory=set)
    accumulator: list[Feature] = field(default_factory=list)

    def claim(self, tiles: Iterable[Tile]) -> list[Tile]:
        """Mark unrequested *tiles* as requested and return them.

        Must run before the first await of a cycle so concurrent cycles never
        request the same tile twice.
        """
        claimed: list[Tile] = []
        for tile in tiles:
            key = tile.quadkey
            if key in self.requested_tiles:
                continue
            self.requested_tiles.add(key)
            claimed.append(tile)
        return claimed

    def release(self, tile: Tile) -> None:
        """Forget that *tile* was requested so a later cycle retries it."""
        self.requested_tiles.discard(tile.quadkey)

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [feature.raw for feature in self.accumulator],
        }


class ZoomBandIndex:
    """Band states keyed by band number."""

    def __init__(self) -> None:
        self._bands: dict[int, BandState] = {}

    def get(self, band: int) -> BandState | None:
        return self._bands.get(band)

    def get_or_create(self, band: int) -> BandState:
        state = self._bands.get(band)
        if state is None:
            state = BandState(band=band)
            self._bands[band] = state
        return state

    def reset_all(self) -> None:
        self._bands = {}

    @property
    def bands(self) -> list[int]:
        return sorted(self._bands)

    def __contains__(self, band: object) -> bool:
        return band in self._bands

    def __len__(self) -> int:
        return len(self._bands)
