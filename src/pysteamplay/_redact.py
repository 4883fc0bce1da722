"""Helpers for safe debug logging.

Steam Web API requests carry the account key as a query parameter, so URLs
and parameter dicts are passed through here before being logged.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "key",
        "api_key",
        "apikey",
        "access_token",
        "authorization",
    }
)

_REDACTED = "<redacted>"


def redact_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a copy of *params* with secret values replaced."""
    if not params:
        return {}
    return {str(k): (_REDACTED if str(k).lower() in _SENSITIVE_KEYS else v) for k, v in params.items()}


def redact_url(url: str) -> str:
    """Redact secret query parameters embedded in *url*."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    cleaned = [(k, _REDACTED if k.lower() in _SENSITIVE_KEYS else v) for k, v in pairs]
    return urlunsplit(parts._replace(query=urlencode(cleaned, safe="<>")))
