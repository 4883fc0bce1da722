"""Events written to and read from the event store."""

from __future__ import annotations

import base64
import binascii
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pysteamplay.models.game import Game
from pysteamplay.models.timing import TimeRange


class EventType(StrEnum):
    GAME = "Game"
    COVER = "Cover"


class GameSession(BaseModel):
    """A completed play session; immutable once constructed."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    game: Game
    range: TimeRange

    @property
    def event_id(self) -> str:
        """Composite storage key: re-submitting the same session is a no-op."""
        return f"{self.game.id}@{self.range.model_dump_json()}"

    def payload(self) -> dict[str, Any]:
        return {"game": self.game.model_dump(), "event_type": EventType.GAME.value}


class CoverSave(BaseModel):
    """Cover image for a game, kept base64 encoded in the store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    game_id: str
    data: str

    @classmethod
    def from_bytes(cls, game_id: str, raw: bytes) -> CoverSave:
        return cls(game_id=game_id, data=base64.b64encode(raw).decode("ascii"))

    def decode(self) -> bytes | None:
        """Raw image bytes, or ``None`` when the stored text is not valid base64."""
        try:
            return base64.b64decode(self.data, validate=True)
        except (binascii.Error, ValueError):
            return None

    def payload(self) -> dict[str, Any]:
        return {"game_id": self.game_id, "data": self.data, "event_type": EventType.COVER.value}


class StoredEvent(BaseModel):
    """Row shape shared by every event kept in the store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    plugin: str
    event_type: EventType
    timing: TimeRange
    game_id: str
    payload: dict[str, Any] = Field(default_factory=dict)


class CompressedEvent(BaseModel):
    """Summary handed to the timeline aggregator."""

    model_config = ConfigDict(frozen=True)

    title: str
    time: TimeRange
    data: dict[str, Any] = Field(default_factory=dict)
