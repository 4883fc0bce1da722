"""HTTP transport for the Steam Web API and CDN."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pysteamplay._constants import USER_AGENT
from pysteamplay._redact import redact_params, redact_url
from pysteamplay.exceptions import SteamParseError, SteamTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, url: str, params: Mapping[str, str] | None = None) -> Any:
        ...

    async def get_bytes(self, url: str) -> bytes:
        ...


class HttpTransport:
    """Single bounded-timeout GET round trips over a shared ``aiohttp`` session."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get(self, url: str, params: Mapping[str, str] | None) -> tuple[int, bytes]:
        _logger.debug("GET %s params=%s", url, redact_params(params))
        try:
            async with self._http.get(
                url,
                params=dict(params) if params else None,
                headers={"user-agent": USER_AGENT},
                timeout=self._timeout,
            ) as resp:
                body = await resp.read()
                _logger.debug("HTTP %s from %s", resp.status, redact_url(str(resp.url)))
                return resp.status, body
        except asyncio.TimeoutError as exc:
            raise SteamTransportError(f"Request to {url} timed out", endpoint=url) from exc
        except aiohttp.ClientError as exc:
            raise SteamTransportError(f"Request to {url} failed: {exc}", endpoint=url) from exc

    async def get_json(self, url: str, params: Mapping[str, str] | None = None) -> Any:
        status, body = await self._get(url, params)
        text = body.decode("utf-8", errors="replace")
        if status != 200:
            raise SteamTransportError(
                f"HTTP {status} from {url}: {text[:200]}",
                status_code=status,
                endpoint=url,
            )
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise SteamParseError(f"Invalid JSON from {url}: {text[:200]}", endpoint=url) from exc

    async def get_bytes(self, url: str) -> bytes:
        status, body = await self._get(url, None)
        if status != 200:
            raise SteamTransportError(
                f"HTTP {status} from {url}",
                status_code=status,
                endpoint=url,
            )
        return body
