"""Custom exception hierarchy for pysteamplay."""

from __future__ import annotations


class SteamPlayError(Exception):
    """Base exception for all pysteamplay errors."""


class SteamConfigError(SteamPlayError):
    """Invalid or missing configuration."""


class SteamTransportError(SteamPlayError):
    """HTTP-level failure (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class SteamParseError(SteamPlayError):
    """Response body did not match the expected shape."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class CacheError(SteamPlayError):
    """Cache file could not be read or written."""


class EventStoreError(SteamPlayError):
    """Event store query or insert failed."""
