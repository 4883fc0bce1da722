"""Data models for pysteamplay."""

from pysteamplay.models._base import UtcDatetime, ensure_utc
from pysteamplay.models.events import CompressedEvent, CoverSave, EventType, GameSession, StoredEvent
from pysteamplay.models.game import Game, LastGameCache, TrackedState
from pysteamplay.models.steam import PlayerSummariesResponse, PlayerSummary
from pysteamplay.models.timing import TimeRange

__all__ = [
    "CompressedEvent",
    "CoverSave",
    "EventType",
    "Game",
    "GameSession",
    "LastGameCache",
    "PlayerSummariesResponse",
    "PlayerSummary",
    "StoredEvent",
    "TimeRange",
    "TrackedState",
    "UtcDatetime",
    "ensure_utc",
]
