"""Helpers for safe debug logging.

Services often take API keys either as request headers or as extra query
parameters, so both the headers and the request URL are scrubbed before they
reach DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "x-api-key",
        "api-key",
        "apikey",
        "api_key",
        "key",
        "token",
        "access_token",
        "password",
    }
)


def _is_sensitive(key: str) -> bool:
    return key.lower() in _SENSITIVE_KEYS


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of *headers* with credential values replaced."""
    return {key: _REDACTED if _is_sensitive(key) else value for key, value in headers.items()}


def redact_url(url: str) -> str:
    """*url* with credential-looking query parameters replaced."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    if not any(_is_sensitive(key) for key, _ in pairs):
        return url
    query = urlencode([(key, _REDACTED if _is_sensitive(key) else value) for key, value in pairs], safe=",<>")
    return urlunsplit(parts._replace(query=query))
