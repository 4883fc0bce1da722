"""pysteamplay - Steam play session tracker for timeline hosts."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pysteamplay")
except PackageNotFoundError:
    __version__ = "0+local"
from pysteamplay.assets import CoverGuard
from pysteamplay.cache import Cache
from pysteamplay.config import SteamConfig
from pysteamplay.exceptions import (
    CacheError,
    EventStoreError,
    SteamConfigError,
    SteamParseError,
    SteamPlayError,
    SteamTransportError,
)
from pysteamplay.host import Scheduler
from pysteamplay.models import (
    CompressedEvent,
    CoverSave,
    EventType,
    Game,
    GameSession,
    LastGameCache,
    StoredEvent,
    TimeRange,
    TrackedState,
)
from pysteamplay.plugin import HostContext, SteamPlugin
from pysteamplay.store import EventStore, SqlEventStore

__all__ = [
    "__version__",
    "Cache",
    "CacheError",
    "CompressedEvent",
    "CoverGuard",
    "CoverSave",
    "EventStore",
    "EventStoreError",
    "EventType",
    "Game",
    "GameSession",
    "HostContext",
    "LastGameCache",
    "Scheduler",
    "SqlEventStore",
    "SteamConfig",
    "SteamConfigError",
    "SteamParseError",
    "SteamPlayError",
    "SteamPlugin",
    "SteamTransportError",
    "StoredEvent",
    "TimeRange",
    "TrackedState",
]
