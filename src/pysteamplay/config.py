"""Plugin configuration for pysteamplay."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pysteamplay._constants import (
    API_BASE_URL,
    CDN_BASE_URL,
    POLL_INTERVAL_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)
from pysteamplay.exceptions import SteamConfigError


def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SteamConfigError(f"Unable to init steam plugin! Missing or empty '{name}'")
    return value.strip()


def _positive_float(name: str, value: Any) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise SteamConfigError(f"'{name}' must be a number, got {value!r}") from exc
    if parsed <= 0:
        raise SteamConfigError(f"'{name}' must be positive, got {parsed}")
    return parsed


@dataclasses.dataclass(frozen=True)
class SteamConfig:
    """Plugin configuration.

    Parameters
    ----------
    api_key : str
        Steam Web API key.
    steam_id : str
        64-bit Steam id of the user whose play status is polled.
    poll_interval : float
        Seconds between two ticks.
    request_timeout : float
        Timeout applied to every outbound HTTP request.
    api_base_url : str
        Steam Web API base URL.
    cdn_base_url : str
        Base URL of the CDN serving game header images.
    cache_path : Path
        JSON file holding the last observed game.
    database_url : str
        SQLAlchemy URL of the event store.
    http_host : str
        Bind address of the read endpoint.
    http_port : int
        Bind port of the read endpoint.
    """

    api_key: str
    steam_id: str
    poll_interval: float = POLL_INTERVAL_SECONDS
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    api_base_url: str = API_BASE_URL
    cdn_base_url: str = CDN_BASE_URL
    cache_path: Path = Path("cache/timeline_plugin_steam.json")
    database_url: str = "sqlite:///timeline.db"
    http_host: str = "127.0.0.1"
    http_port: int = 8080

    def __post_init__(self) -> None:
        object.__setattr__(self, "api_key", _require_text("api_key", self.api_key))
        object.__setattr__(self, "steam_id", _require_text("steam_id", self.steam_id))
        object.__setattr__(self, "poll_interval", _positive_float("poll_interval", self.poll_interval))
        object.__setattr__(self, "request_timeout", _positive_float("request_timeout", self.request_timeout))
        object.__setattr__(self, "cache_path", Path(self.cache_path))
        object.__setattr__(self, "api_base_url", self.api_base_url.rstrip("/"))
        object.__setattr__(self, "cdn_base_url", self.cdn_base_url.rstrip("/"))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None, **overrides: Any) -> SteamConfig:
        """Build configuration from a host-supplied table.

        Accepts the plugin table as written in the host's TOML config, where
        the Steam id is spelled ``user_steam_id``.

        Raises
        ------
        SteamConfigError
            When no table was provided or required keys are missing.
        """
        if data is None:
            raise SteamConfigError("Failed to init steam plugin! No config was provided!")
        if not isinstance(data, Mapping):
            raise SteamConfigError(f"Steam plugin config must be a table, got {type(data).__name__}")

        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key == "user_steam_id":
                kwargs["steam_id"] = value
            elif key in known:
                kwargs[key] = value
        kwargs.update(overrides)

        for required in ("api_key", "steam_id"):
            if required not in kwargs:
                raise SteamConfigError(
                    f"Unable to init steam plugin! Provided config does not fit the requirements: missing '{required}'"
                )
        return cls(**kwargs)

    @classmethod
    def from_env(cls, **overrides: Any) -> SteamConfig:
        """Create configuration from ``STEAM_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "STEAM_API_KEY": "api_key",
            "STEAM_USER_ID": "steam_id",
            "STEAM_API_BASE_URL": "api_base_url",
            "STEAM_CDN_BASE_URL": "cdn_base_url",
            "STEAM_CACHE_PATH": "cache_path",
            "STEAM_DATABASE_URL": "database_url",
            "STEAM_HTTP_HOST": "http_host",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # numeric fields, handle separately
        for env_key, field_name in (
            ("STEAM_POLL_INTERVAL", "poll_interval"),
            ("STEAM_REQUEST_TIMEOUT", "request_timeout"),
        ):
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _positive_float(field_name, val)

        port_env = env.get("STEAM_HTTP_PORT")
        if port_env is not None and "http_port" not in overrides:
            try:
                config_kwargs["http_port"] = int(port_env)
            except ValueError as exc:
                raise SteamConfigError(f"STEAM_HTTP_PORT must be an integer, got {port_env!r}") from exc

        config_kwargs.update(overrides)
        config_kwargs.setdefault("api_key", "")
        config_kwargs.setdefault("steam_id", "")

        return cls(**config_kwargs)
