from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl, urlsplit

import pytest

from pyogcfeatures._api.items import build_items_url, fetch_items, format_param, forwarded_params
from pyogcfeatures.config import CollectionConfig
from pyogcfeatures.exceptions import OgcFetchError, OgcPayloadError, OgcTransportError
from pyogcfeatures.tiles import Tile, tile_to_bbox

URL = "https://example.test/ogc/"
TILE = Tile(1, 0, 1)


@dataclass
class PagedTransport:
    """Serves canned JSON bodies by exact URL."""

    pages: dict[str, dict[str, Any]] = field(default_factory=dict)
    error: Exception | None = None
    requested: list[str] = field(default_factory=list)

    async def get_json(self, url: str) -> dict[str, Any]:
        self.requested.append(url)
        if self.error is not None:
            raise self.error
        return self.pages[url]


def _query(url: str) -> list[tuple[str, str]]:
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def _page(*ids: int, next_href: str | None = None) -> dict[str, Any]:
    links = [{"href": next_href, "rel": "next", "type": "application/geo+json"}] if next_href else []
    return {
        "type": "FeatureCollection",
        "features": [{"type": "Feature", "id": i, "geometry": None, "properties": {"n": i}} for i in ids],
        "links": links,
        "numberMatched": 4,
        "numberReturned": len(ids),
    }


def test_format_param() -> None:
    assert format_param(True) == "true"
    assert format_param(False) == "false"
    assert format_param(["name", "area"]) == "name,area"
    assert format_param((1, 2.5)) == "1,2.5"
    assert format_param(3) == "3"


def test_forwarded_params_drop_reserved_and_none() -> None:
    params = {
        "limit": 10,
        "url": "x",
        "collectionId": "y",
        "useStaticZoomLevel": True,
        "minZoom": 3,
        "bbox": "0,0,1,1",
        "properties": "name",
        "skipGeometry": False,
        "datetime": None,
    }
    assert forwarded_params(params) == [("properties", "name"), ("skipGeometry", "false")]


def test_build_items_url() -> None:
    config = CollectionConfig.from_options(
        {"url": URL, "collectionId": "lakes", "limit": 100, "properties": ["name", "area"]}
    )
    url = build_items_url(config, TILE)

    parts = urlsplit(url)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://example.test/ogc/collections/lakes/items"
    query = _query(url)
    assert [key for key, _ in query] == ["limit", "bbox", "properties"]
    assert dict(query)["limit"] == "100"
    assert dict(query)["properties"] == "name,area"
    assert "," in url and "%2C" not in url

    bounds = [float(v) for v in dict(query)["bbox"].split(",")]
    assert bounds == pytest.approx(list(tile_to_bbox(TILE).as_tuple()))


def test_build_items_url_never_leaks_option_keys() -> None:
    config = CollectionConfig.from_options(
        {"url": URL, "collectionId": "lakes", "useStaticZoomLevel": True, "minZoom": 5, "bbox": "1,2,3,4"}
    )
    keys = [key for key, _ in _query(build_items_url(config, TILE))]
    assert keys == ["limit", "bbox"]


def test_build_items_url_quotes_collection_id() -> None:
    config = CollectionConfig(url=URL, collection_id="a b/c")
    assert "/collections/a%20b%2Fc/items?" in build_items_url(config, TILE)


@pytest.mark.asyncio
async def test_fetch_items_reads_one_page_by_default() -> None:
    config = CollectionConfig(url=URL, collection_id="lakes")
    first = build_items_url(config, TILE)
    transport = PagedTransport(pages={first: _page(1, 2, next_href="https://example.test/next")})

    collection = await fetch_items(config, transport, TILE)

    assert [f.id for f in collection.features] == [1, 2]
    assert transport.requested == [first]


@pytest.mark.asyncio
async def test_fetch_items_follows_next_links_up_to_max_pages() -> None:
    config = CollectionConfig(url=URL, collection_id="lakes", max_pages=2)
    first = build_items_url(config, TILE)
    transport = PagedTransport(
        pages={
            first: _page(1, 2, next_href="https://example.test/p2"),
            "https://example.test/p2": _page(3, next_href="https://example.test/p3"),
        }
    )

    collection = await fetch_items(config, transport, TILE)

    assert [f.id for f in collection.features] == [1, 2, 3]
    assert collection.number_matched == 4
    assert collection.number_returned == 3
    assert transport.requested == [first, "https://example.test/p2"]


@pytest.mark.asyncio
async def test_fetch_items_rejects_non_collection_payload() -> None:
    config = CollectionConfig(url=URL, collection_id="lakes")
    transport = PagedTransport(pages={build_items_url(config, TILE): {"type": "Feature", "id": 1}})

    with pytest.raises(OgcPayloadError) as excinfo:
        await fetch_items(config, transport, TILE)
    assert excinfo.value.tile == TILE


@pytest.mark.asyncio
async def test_fetch_items_rejects_malformed_features() -> None:
    config = CollectionConfig(url=URL, collection_id="lakes")
    transport = PagedTransport(pages={build_items_url(config, TILE): {"type": "FeatureCollection", "features": 5}})

    with pytest.raises(OgcPayloadError):
        await fetch_items(config, transport, TILE)


@pytest.mark.asyncio
async def test_fetch_items_tags_transport_errors_with_tile() -> None:
    config = CollectionConfig(url=URL, collection_id="lakes")
    transport = PagedTransport(error=OgcTransportError("HTTP 503", status_code=503))

    with pytest.raises(OgcFetchError) as excinfo:
        await fetch_items(config, transport, TILE)
    assert isinstance(excinfo.value, OgcTransportError)
    assert excinfo.value.status_code == 503
    assert excinfo.value.tile == TILE
