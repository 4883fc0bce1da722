"""Tracked game identity and the persisted last-game cache."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pysteamplay.models._base import UtcDatetime


class Game(BaseModel):
    """A Steam game as reported by the player summary.

    Parameters
    ----------
    name : str
        Display name (``gameextrainfo``).
    id : str
        Steam app id (``gameid``). Identity comparisons use this field only.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    id: str

    def same_as(self, other: Game | None) -> bool:
        """Identity equality: same app id, display name ignored."""
        return other is not None and other.id == self.id


class TrackedState(BaseModel):
    """The game currently believed to be running and when it was first seen."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    game: Game
    since: UtcDatetime


class LastGameCache(BaseModel):
    """Durable cache envelope for a single plugin instance."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    last_game: TrackedState | None = Field(default=None)
