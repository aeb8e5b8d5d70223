from __future__ import annotations

from pyogcfeatures.models import Feature, FeatureCollection


def test_feature_collection_parses_ogc_page() -> None:
    payload = {
        "type": "FeatureCollection",
        "numberMatched": 12,
        "numberReturned": 2,
        "timeStamp": "2026-01-01T00:00:00Z",
        "links": [
            {"href": "https://example.test/items?offset=0", "rel": "self", "type": "application/geo+json"},
            {"href": "https://example.test/items?offset=2", "rel": "next", "type": "application/geo+json"},
        ],
        "features": [
            {"type": "Feature", "id": "lake.1", "geometry": None, "properties": {"name": "A"}},
            {"type": "Feature", "id": 7, "geometry": {"type": "Point", "coordinates": [1, 2]}, "properties": {}},
        ],
    }

    fc = FeatureCollection.model_validate(payload)

    assert fc.number_matched == 12
    assert fc.number_returned == 2
    assert fc.time_stamp == "2026-01-01T00:00:00Z"
    assert [f.id for f in fc.features] == ["lake.1", 7]
    assert fc.next_link() == "https://example.test/items?offset=2"
    assert fc.raw["numberMatched"] == 12


def test_feature_keeps_raw_payload_including_foreign_members() -> None:
    payload = {"type": "Feature", "id": "x", "geometry": None, "properties": None, "bbox": [0, 0, 1, 1]}

    feature = Feature.model_validate(payload)

    assert feature.properties is None
    assert feature.raw == payload


def test_missing_or_null_features_parse_as_empty() -> None:
    assert FeatureCollection.model_validate({"type": "FeatureCollection"}).features == []
    fc = FeatureCollection.model_validate({"type": "FeatureCollection", "features": None, "links": None})
    assert fc.features == []
    assert fc.next_link() is None
