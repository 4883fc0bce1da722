"""Steam Web API response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pysteamplay._normalize import safe_str
from pysteamplay.models.game import Game


class PlayerSummary(BaseModel):
    """One entry of ``response.players``; only the fields we consume."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    steamid: str | None = None
    personaname: str | None = None
    gameid: str | None = None
    gameextrainfo: str | None = None

    @field_validator("steamid", "personaname", "gameid", "gameextrainfo", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return safe_str(value)

    def current_game(self) -> Game | None:
        """The running game, or ``None`` unless both name and id are reported."""
        if self.gameextrainfo is None or self.gameid is None:
            return None
        return Game(name=self.gameextrainfo, id=self.gameid)


class PlayerSummariesBody(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    players: list[PlayerSummary] = Field(default_factory=list)


class PlayerSummariesResponse(BaseModel):
    """Top-level ``GetPlayerSummaries`` document."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    response: PlayerSummariesBody
