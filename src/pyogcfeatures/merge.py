"""Fold fetched tile features into a band accumulator."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Hashable, Iterable

from pyogcfeatures.bands import BandState
from pyogcfeatures.models.feature import Feature


def content_hash(feature: Feature) -> str:
    """SHA-1 of the canonical JSON of geometry and properties."""
    canonical = json.dumps(
        {"geometry": feature.geometry, "properties": feature.properties},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha1(canonical.encode("utf-8")).hexdigest()  # noqa: S324


def feature_identity(feature: Feature, *, hash_missing_ids: bool = True) -> Hashable | None:
    """Return the deduplication key of *feature*.

    Server ids are used as-is. Features without one get a content-hash key
    (tagged so it cannot collide with a server id) or ``None`` when hashing
    is disabled.
    """
    if feature.id is not None:
        return feature.id
    if not hash_missing_ids:
        return None
    return ("content", content_hash(feature))


def merge_features(
    state: BandState,
    features: Iterable[Feature],
    *,
    hash_missing_ids: bool = True,
) -> int:
    """Append unseen *features* to ``state.accumulator`` in arrival order.

    Features whose identity is ``None`` are always appended.
    Returns the number of appended features.
    """
    added = 0
    for feature in features:
        identity = feature_identity(feature, hash_missing_ids=hash_missing_ids)
        if identity is not None:
            if identity in state.seen_feature_ids:
                continue
            state.seen_feature_ids.add(identity)
        state.accumulator.append(feature)
        added += 1
    return added
