"""Slippy-map tile math.

Tiles follow the standard Web-Mercator quadtree: tile ``(0, 0, 0)`` covers
the whole world and every zoom step splits a tile into four children.
The pyramid itself comes from :mod:`mercantile`; this module adapts it to
the inclusive bbox semantics the reconciler needs. All functions are pure.
"""

from __future__ import annotations

from dataclasses import dataclass

import mercantile

from pyogcfeatures._constants import MAX_MERCATOR_LAT


class Tile(mercantile.Tile):
    """A tile address in the quadtree.

    A plain ``mercantile.Tile`` with its quadkey attached, so it can be
    passed to any mercantile function.
    """

    __slots__ = ()

    @property
    def quadkey(self) -> str:
        return tile_to_quadkey(self)


def _as_tile(tile: mercantile.Tile) -> Tile:
    return Tile(tile.x, tile.y, tile.z)


@dataclass(frozen=True, slots=True)
class BBox:
    """WGS84 bounding box in lon/lat degrees.

    A degenerate (point) box is valid. Use :meth:`from_corners` when the
    corner order is not known.
    """

    west: float
    south: float
    east: float
    north: float

    def __post_init__(self) -> None:
        if self.west > self.east or self.south > self.north:
            raise ValueError(f"inverted bbox: {self.as_tuple()}")

    @classmethod
    def from_corners(cls, lon_a: float, lat_a: float, lon_b: float, lat_b: float) -> BBox:
        return cls(
            west=min(lon_a, lon_b),
            south=min(lat_a, lat_b),
            east=max(lon_a, lon_b),
            north=max(lat_a, lat_b),
        )

    @property
    def width(self) -> float:
        return self.east - self.west

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.west, self.south, self.east, self.north)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))


def bbox_to_tile(bbox: BBox) -> Tile:
    """Return the smallest tile containing both corners of *bbox*.

    Corners outside the Mercator world are clamped first; mercantile caps
    the result at zoom 28.
    """
    west = _clamp(bbox.west, -180.0, 180.0)
    east = _clamp(bbox.east, -180.0, 180.0)
    south = _clamp(bbox.south, -MAX_MERCATOR_LAT, MAX_MERCATOR_LAT)
    north = _clamp(bbox.north, -MAX_MERCATOR_LAT, MAX_MERCATOR_LAT)
    return _as_tile(mercantile.bounding_tile(west, south, east, north))


def get_children(tile: Tile) -> list[Tile]:
    """The four tiles one zoom deeper that partition *tile*.

    Order is ``(2x, 2y)``, ``(2x+1, 2y)``, ``(2x+1, 2y+1)``, ``(2x, 2y+1)``.
    """
    return [_as_tile(child) for child in mercantile.children(tile)]


def descend_to_zoom(tile: Tile, zoom: int) -> list[Tile]:
    """Every descendant of *tile* at *zoom*, breadth-first.

    A tile already at or beyond *zoom* is returned on its own.
    """
    if tile.z >= zoom:
        return [tile]
    return [_as_tile(child) for child in mercantile.children(tile, zoom=zoom)]


def descend_overlapping(tile: Tile, zoom: int, bbox: BBox) -> list[Tile]:
    """Descendants of *tile* at *zoom* that overlap *bbox*.

    Same result as filtering :func:`descend_to_zoom`, but only branches
    touching *bbox* are expanded, so a small box under a coarse tile stays
    cheap at any zoom.
    """
    if tile.z >= zoom:
        return [tile]
    level = [tile]
    while level and level[0].z < zoom:
        level = [child for parent in level for child in get_children(parent) if overlaps(child, bbox)]
    return level


def tile_to_bbox(tile: Tile) -> BBox:
    """Lon/lat bounds of *tile*."""
    bounds = mercantile.bounds(tile)
    return BBox(west=bounds.west, south=bounds.south, east=bounds.east, north=bounds.north)


def tile_to_quadkey(tile: Tile) -> str:
    """Bing-style quadkey; its length equals the tile zoom."""
    return mercantile.quadkey(tile)


def quadkey_to_tile(quadkey: str) -> Tile:
    try:
        return _as_tile(mercantile.quadkey_to_tile(quadkey))
    except mercantile.QuadKeyError as exc:
        raise ValueError(f"invalid quadkey {quadkey!r}") from exc


def overlaps(area: Tile | BBox, bbox: BBox) -> bool:
    """Inclusive rectangle overlap test; touching edges count as overlap."""
    bounds = tile_to_bbox(area) if isinstance(area, Tile) else area
    if bounds.east < bbox.west:
        return False
    if bounds.west > bbox.east:
        return False
    if bounds.north < bbox.south:
        return False
    return not bounds.south > bbox.north
