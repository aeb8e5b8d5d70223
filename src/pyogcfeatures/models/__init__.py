"""Typed models for OGC API - Features payloads."""

from pyogcfeatures.models.feature import Feature, FeatureCollection, Link

__all__ = [
    "Feature",
    "FeatureCollection",
    "Link",
]
