"""Custom exception hierarchy for pyogcfeatures."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pyogcfeatures.tiles import Tile


class OgcFeaturesError(Exception):
    """Base exception for all pyogcfeatures errors."""


class OgcConfigError(OgcFeaturesError):
    """Invalid or missing construction arguments."""


class OgcFetchError(OgcFeaturesError):
    """A single tile request failed.

    The reconciler recovers from these locally: the failing tile contributes
    no features and sibling tiles of the same cycle still merge.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        tile: Tile | None = None,
    ) -> None:
        self.url = url
        self.tile = tile
        super().__init__(message)


class OgcTransportError(OgcFetchError):
    """HTTP-level failure (network, timeout, non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
        tile: Tile | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, url=url, tile=tile)


class OgcPayloadError(OgcFetchError):
    """Response body is not JSON or not shaped like a FeatureCollection."""
