"""Internal constants shared across the library."""

USER_AGENT = "pyogcfeatures"
ACCEPT = "application/geo+json, application/json;q=0.9"

DEFAULT_LIMIT = 5000
DEFAULT_STATIC_MIN_ZOOM = 7
DEFAULT_DYNAMIC_MIN_ZOOM = 2

#: Option names that belong to the engine and are never forwarded as query params.
RESERVED_PARAMS: frozenset[str] = frozenset({"limit", "url", "useStaticZoomLevel", "collectionId", "minZoom"})

#: Query params the request builder sets itself.
ENGINE_PARAMS: frozenset[str] = frozenset({"limit", "bbox"})

MOVE_EVENT = "moveend"

# Web Mercator cannot represent the poles.
MAX_MERCATOR_LAT = 85.05112878
