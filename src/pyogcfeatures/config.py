"""Service configuration for pyogcfeatures."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pyogcfeatures._constants import DEFAULT_DYNAMIC_MIN_ZOOM, DEFAULT_LIMIT, DEFAULT_STATIC_MIN_ZOOM
from pyogcfeatures.bands import BandPolicy
from pyogcfeatures.exceptions import OgcConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class FetchOptions:
    """Transport options applied to every tile request.

    These are opaque to the reconciliation engine; only the HTTP transport
    reads them.

    Parameters
    ----------
    headers : Mapping[str, str]
        Extra request headers (e.g. ``Authorization``).
    timeout : float or None
        Total per-request timeout in seconds. ``None`` imposes none.
    """

    headers: Mapping[str, str] = dataclasses.field(default_factory=dict)
    timeout: float | None = None

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> FetchOptions:
        if not options:
            return cls()
        timeout = options.get("timeout")
        return cls(
            headers=dict(options.get("headers") or {}),
            timeout=float(timeout) if timeout is not None else None,
        )


@dataclasses.dataclass(frozen=True)
class CollectionConfig:
    """OGC API - Features collection configuration.

    Parameters
    ----------
    url : str
        Service landing page URL, e.g. ``https://demo.pygeoapi.io/master``.
    collection_id : str
        Identifier of the collection whose ``/items`` are requested.
    limit : int
        Page size sent as the ``limit`` query parameter.
    use_static_zoom_level : bool
        Request every tile at ``min_zoom`` instead of the dynamic even-zoom band.
    min_zoom : float or None
        Map zoom below which no requests are made. Defaults to ``7`` for the
        static policy and ``2`` for the dynamic one.
    simplify_factor : float or None
        Multiplier for the per-cycle simplification tolerance.
    params : Mapping[str, Any]
        Extra query parameters forwarded verbatim on every request.
    fetch_options : FetchOptions
        Headers and timeout for the HTTP transport.
    max_pages : int
        Maximum number of pages fetched per tile by following ``next`` links.
        ``1`` sends a single limited request per tile.
    hash_missing_ids : bool
        Deduplicate features without an ``id`` by a hash of their content.
        When disabled such features are always treated as new.
    """

    url: str
    collection_id: str
    limit: int = DEFAULT_LIMIT
    use_static_zoom_level: bool = False
    min_zoom: float | None = None
    simplify_factor: float | None = None
    params: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    fetch_options: FetchOptions = dataclasses.field(default_factory=FetchOptions)
    max_pages: int = 1
    hash_missing_ids: bool = True

    def __post_init__(self) -> None:
        if not self.url:
            raise OgcConfigError("A url must be supplied as part of the collection configuration.")
        if not self.collection_id:
            raise OgcConfigError("A collection_id must be supplied as part of the collection configuration.")
        if self.limit < 1:
            raise OgcConfigError(f"limit must be a positive integer, got {self.limit}")
        if self.max_pages < 1:
            raise OgcConfigError(f"max_pages must be at least 1, got {self.max_pages}")
        if self.min_zoom is None:
            default = DEFAULT_STATIC_MIN_ZOOM if self.use_static_zoom_level else DEFAULT_DYNAMIC_MIN_ZOOM
            object.__setattr__(self, "min_zoom", default)
        elif self.min_zoom < 0:
            raise OgcConfigError(f"min_zoom must not be negative, got {self.min_zoom}")
        # Freeze the pass-through mapping so later caller edits cannot leak in.
        object.__setattr__(self, "params", dict(self.params))

    @property
    def band_policy(self) -> BandPolicy:
        return BandPolicy.STATIC if self.use_static_zoom_level else BandPolicy.DYNAMIC

    @property
    def resolved_min_zoom(self) -> float:
        assert self.min_zoom is not None  # noqa: S101
        return self.min_zoom

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> CollectionConfig:
        """Build a configuration from a camelCase option mapping.

        Recognised keys are ``url``, ``collectionId``, ``limit``,
        ``useStaticZoomLevel``, ``minZoom``, ``simplifyFactor``,
        ``fetchOptions``, ``maxPages`` and ``hashMissingIds``. Every other
        key is treated as an extra query parameter.
        """
        _KEY_MAP = {
            "url": "url",
            "collectionId": "collection_id",
            "limit": "limit",
            "useStaticZoomLevel": "use_static_zoom_level",
            "minZoom": "min_zoom",
            "simplifyFactor": "simplify_factor",
            "maxPages": "max_pages",
            "hashMissingIds": "hash_missing_ids",
        }
        kwargs: dict[str, Any] = {}
        params: dict[str, Any] = {}
        for key, value in options.items():
            if key in _KEY_MAP:
                kwargs[_KEY_MAP[key]] = value
            elif key == "fetchOptions":
                kwargs["fetch_options"] = FetchOptions.from_mapping(value)
            else:
                params[key] = value

        kwargs.setdefault("url", "")
        kwargs.setdefault("collection_id", "")
        return cls(params=params, **kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> CollectionConfig:
        """Create configuration from environment variables.

        Reads ``OGC_URL``, ``OGC_COLLECTION_ID`` and the optional ``OGC_*``
        variables below. Explicit keyword arguments override environment values.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        _ENV_STR_MAP = {
            "OGC_URL": "url",
            "OGC_COLLECTION_ID": "collection_id",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        limit_env = env.get("OGC_LIMIT")
        if limit_env is not None and "limit" not in overrides:
            config_kwargs["limit"] = int(limit_env)

        min_zoom_env = env.get("OGC_MIN_ZOOM")
        if min_zoom_env is not None and "min_zoom" not in overrides:
            config_kwargs["min_zoom"] = float(min_zoom_env)

        simplify_env = env.get("OGC_SIMPLIFY_FACTOR")
        if simplify_env is not None and "simplify_factor" not in overrides:
            config_kwargs["simplify_factor"] = float(simplify_env)

        pages_env = env.get("OGC_MAX_PAGES")
        if pages_env is not None and "max_pages" not in overrides:
            config_kwargs["max_pages"] = int(pages_env)

        timeout_env = env.get("OGC_TIMEOUT")
        if timeout_env is not None and "fetch_options" not in overrides:
            config_kwargs["fetch_options"] = FetchOptions(timeout=float(timeout_env))

        if "use_static_zoom_level" not in overrides:
            config_kwargs["use_static_zoom_level"] = _env_bool(env.get("OGC_USE_STATIC_ZOOM_LEVEL"), False)

        if "hash_missing_ids" not in overrides:
            config_kwargs["hash_missing_ids"] = _env_bool(env.get("OGC_HASH_MISSING_IDS"), True)

        config_kwargs.update(overrides)
        config_kwargs.setdefault("url", "")
        config_kwargs.setdefault("collection_id", "")

        return cls(**config_kwargs)
