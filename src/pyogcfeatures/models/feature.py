"""GeoJSON feature and OGC FeatureCollection models."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pyogcfeatures.models._base import OgcBaseModel


class Link(OgcBaseModel):
    """A hypermedia link from an OGC API response."""

    href: str
    rel: str | None = None
    type: str | None = None
    title: str | None = None


class Feature(OgcBaseModel):
    """A single GeoJSON feature.

    Geometry and properties are carried opaquely; the engine only reads
    ``id`` for deduplication and never mutates a feature.

    Parameters
    ----------
    id : str, int or None
        Server-assigned identifier, if any.
    geometry : dict or None
        GeoJSON geometry object.
    properties : dict or None
        Feature attributes.
    raw : dict
        Feature as received, published unchanged.
    """

    type: str = "Feature"
    id: str | int | float | None = None
    geometry: dict[str, Any] | None = None
    properties: dict[str, Any] | None = None


class FeatureCollection(OgcBaseModel):
    """An ``/items`` response page."""

    type: str = "FeatureCollection"
    features: list[Feature] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)
    number_matched: int | None = None
    number_returned: int | None = None
    time_stamp: str | None = None

    @field_validator("features", "links", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def next_link(self) -> str | None:
        """``href`` of the ``rel="next"`` link, if the server paginates."""
        for link in self.links:
            if link.rel == "next":
                return link.href
        return None
