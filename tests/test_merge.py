from __future__ import annotations

import itertools
from typing import Any

from pyogcfeatures.bands import BandState
from pyogcfeatures.merge import content_hash, feature_identity, merge_features
from pyogcfeatures.models.feature import Feature


def _feature(fid: Any = None, name: str = "x", lon: float = 0.0) -> Feature:
    payload: dict[str, Any] = {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, 0.0]},
        "properties": {"name": name},
    }
    if fid is not None:
        payload["id"] = fid
    return Feature.model_validate(payload)


def test_merge_skips_seen_identities() -> None:
    state = BandState(band=4)
    first = [_feature("a"), _feature("b")]
    second = [_feature("b", name="other"), _feature("c")]

    assert merge_features(state, first) == 2
    assert merge_features(state, second) == 1

    assert [f.id for f in state.accumulator] == ["a", "b", "c"]
    assert state.seen_feature_ids == {"a", "b", "c"}
    # First arrival wins.
    assert state.accumulator[1].properties == {"name": "x"}


def test_merge_dedupes_within_one_collection() -> None:
    state = BandState(band=4)
    assert merge_features(state, [_feature(1), _feature(1), _feature(0)]) == 2
    assert [f.id for f in state.accumulator] == [1, 0]


def test_merge_membership_is_order_independent() -> None:
    tiles = [
        [_feature("shared"), _feature("a")],
        [_feature("shared"), _feature("b")],
        [_feature("b"), _feature("c"), _feature("shared")],
    ]
    memberships = set()
    for order in itertools.permutations(tiles):
        state = BandState(band=6)
        for features in order:
            merge_features(state, features)
        ids = [f.id for f in state.accumulator]
        assert len(ids) == len(set(ids))
        memberships.add(frozenset(ids))
    assert memberships == {frozenset({"shared", "a", "b", "c"})}


def test_missing_ids_are_hashed_by_content() -> None:
    state = BandState(band=4)
    merge_features(state, [_feature(name="p"), _feature(name="p"), _feature(name="q")])

    assert len(state.accumulator) == 2
    assert len(state.seen_feature_ids) == 2


def test_missing_ids_always_new_when_hashing_disabled() -> None:
    state = BandState(band=4)
    added = merge_features(state, [_feature(name="p"), _feature(name="p")], hash_missing_ids=False)

    assert added == 2
    assert len(state.accumulator) == 2
    assert state.seen_feature_ids == set()


def test_feature_identity() -> None:
    assert feature_identity(_feature("abc")) == "abc"
    assert feature_identity(_feature(0)) == 0
    assert feature_identity(_feature(), hash_missing_ids=False) is None

    hashed = feature_identity(_feature(name="p"))
    assert hashed == ("content", content_hash(_feature(name="p")))
    assert hashed != feature_identity(_feature(name="p", lon=1.0))


def test_content_hash_ignores_key_order() -> None:
    a = Feature.model_validate({"type": "Feature", "geometry": None, "properties": {"a": 1, "b": 2}})
    b = Feature.model_validate({"type": "Feature", "geometry": None, "properties": {"b": 2, "a": 1}})
    assert content_hash(a) == content_hash(b)
