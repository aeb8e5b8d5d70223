"""pyogcfeatures - Incremental OGC API - Features sync for map viewports."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyogcfeatures")
except PackageNotFoundError:
    __version__ = "0+local"
from pyogcfeatures.bands import BandPolicy, BandState, ZoomBandIndex, band_for
from pyogcfeatures.collection import OgcFeatureCollection
from pyogcfeatures.config import CollectionConfig, FetchOptions
from pyogcfeatures.exceptions import (
    OgcConfigError,
    OgcFeaturesError,
    OgcFetchError,
    OgcPayloadError,
    OgcTransportError,
)
from pyogcfeatures.models import Feature, FeatureCollection, Link
from pyogcfeatures.reconciler import CycleResult, Reconciler
from pyogcfeatures.tiles import BBox, Tile
from pyogcfeatures.view import HeadlessMapView, MapView, Viewport

__all__ = [
    "__version__",
    "BandPolicy",
    "BandState",
    "BBox",
    "CollectionConfig",
    "CycleResult",
    "Feature",
    "FeatureCollection",
    "FetchOptions",
    "HeadlessMapView",
    "Link",
    "MapView",
    "OgcConfigError",
    "OgcFeatureCollection",
    "OgcFeaturesError",
    "OgcFetchError",
    "OgcPayloadError",
    "OgcTransportError",
    "Reconciler",
    "Tile",
    "Viewport",
    "ZoomBandIndex",
    "band_for",
]
