"""HTTP transport for OGC API - Features requests."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

import aiohttp

from pyogcfeatures._constants import ACCEPT, USER_AGENT
from pyogcfeatures._redact import redact_headers, redact_url
from pyogcfeatures.config import FetchOptions
from pyogcfeatures.exceptions import OgcPayloadError, OgcTransportError

_logger = logging.getLogger(__name__)


def _preview(payload: bytes) -> str:
    return payload[:200].decode("utf-8", errors="replace")


class Transport(Protocol):
    """Anything that can GET a URL and return the decoded JSON object.

    Failures are reported as :class:`OgcFetchError` subclasses.
    """

    async def get_json(self, url: str) -> dict[str, Any]:
        ...


class HttpTransport:
    """aiohttp-backed transport that GETs a URL and decodes a JSON object."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        options: FetchOptions | None = None,
    ) -> None:
        self._http = http_session
        self._options = options or FetchOptions()
        self._headers: dict[str, str] = {
            "accept": ACCEPT,
            "user-agent": USER_AGENT,
            **self._options.headers,
        }
        self._timeout = (
            aiohttp.ClientTimeout(total=self._options.timeout) if self._options.timeout is not None else None
        )

    async def get_json(self, url: str) -> dict[str, Any]:
        shown = redact_url(url)
        _logger.debug("GET %s headers=%s", shown, redact_headers(self._headers))

        request_kwargs: dict[str, Any] = {"headers": self._headers}
        if self._timeout is not None:
            request_kwargs["timeout"] = self._timeout

        try:
            async with self._http.get(url, **request_kwargs) as resp:
                payload = await resp.read()
                if not 200 <= resp.status < 300:
                    raise OgcTransportError(
                        f"HTTP {resp.status} from {shown}: {_preview(payload)}",
                        status_code=resp.status,
                        url=url,
                    )
        except OgcTransportError:
            raise
        except asyncio.TimeoutError as exc:
            raise OgcTransportError(f"Request to {shown} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise OgcTransportError(f"Request to {shown} failed: {exc}", url=url) from exc

        # Undecodable bytes surface as UnicodeDecodeError, a ValueError.
        try:
            body: Any = json.loads(payload)
        except ValueError as exc:
            raise OgcPayloadError(f"Invalid JSON from {shown}: {_preview(payload)}", url=url) from exc

        if not isinstance(body, dict):
            raise OgcPayloadError(f"Expected a JSON object from {shown}, got {type(body).__name__}", url=url)
        return body
