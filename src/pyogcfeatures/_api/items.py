"""Collection items endpoint.

Endpoint:
  - {url}/collections/{collectionId}/items?limit=..&bbox=w,s,e,n[&extra=..]
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, urlencode

from pydantic import ValidationError

from pyogcfeatures._constants import ENGINE_PARAMS, RESERVED_PARAMS
from pyogcfeatures._transport import Transport
from pyogcfeatures.config import CollectionConfig
from pyogcfeatures.exceptions import OgcFetchError, OgcPayloadError
from pyogcfeatures.models.feature import Feature, FeatureCollection
from pyogcfeatures.tiles import Tile, tile_to_bbox

_logger = logging.getLogger(__name__)


def format_param(value: Any) -> str:
    """Serialize a query value the way web APIs expect it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(format_param(item) for item in value)
    return str(value)


def forwarded_params(params: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Extra query params, minus reserved option names and ``None`` values."""
    return [
        (key, format_param(value))
        for key, value in params.items()
        if key not in RESERVED_PARAMS and key not in ENGINE_PARAMS and value is not None
    ]


def build_items_url(config: CollectionConfig, tile: Tile) -> str:
    """Build the ``/items`` request URL for one tile."""
    bbox = ",".join(str(value) for value in tile_to_bbox(tile).as_tuple())
    query = [("limit", str(config.limit)), ("bbox", bbox), *forwarded_params(config.params)]
    base = config.url.rstrip("/")
    collection = quote(config.collection_id, safe="")
    return f"{base}/collections/{collection}/items?{urlencode(query, safe=',')}"


def _parse_page(payload: dict[str, Any], url: str) -> FeatureCollection:
    kind = payload.get("type")
    if kind is not None and kind != "FeatureCollection":
        raise OgcPayloadError(f"Expected a FeatureCollection from {url}, got type={kind!r}", url=url)
    try:
        return FeatureCollection.model_validate(payload)
    except ValidationError as exc:
        raise OgcPayloadError(f"Malformed FeatureCollection from {url}: {exc}", url=url) from exc


async def fetch_items(
    config: CollectionConfig,
    transport: Transport,
    tile: Tile,
) -> FeatureCollection:
    """Fetch the features of one tile.

    Follows ``rel="next"`` links until ``config.max_pages`` pages were read.
    Raises :class:`OgcFetchError` (tagged with *tile*) on any failure.
    """
    url: str | None = build_items_url(config, tile)
    pages: list[FeatureCollection] = []
    try:
        while url is not None and len(pages) < config.max_pages:
            page = _parse_page(await transport.get_json(url), url)
            pages.append(page)
            url = page.next_link()
    except OgcFetchError as exc:
        exc.tile = tile
        raise

    if len(pages) == 1:
        return pages[0]

    if url is not None:
        _logger.debug("Tile %s truncated after %d pages", tile.quadkey, len(pages))
    features: list[Feature] = [feature for page in pages for feature in page.features]
    return FeatureCollection(
        features=features,
        number_matched=pages[0].number_matched,
        number_returned=len(features),
        raw={},
    )
