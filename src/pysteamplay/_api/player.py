"""Current-game lookup via ``ISteamUser/GetPlayerSummaries``."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pysteamplay._constants import PLAYER_SUMMARIES_ENDPOINT
from pysteamplay._transport import Transport
from pysteamplay.config import SteamConfig
from pysteamplay.exceptions import SteamParseError
from pysteamplay.models.game import Game
from pysteamplay.models.steam import PlayerSummariesResponse

_logger = logging.getLogger(__name__)


def parse_current_game(payload: object) -> Game | None:
    """Extract the running game from a decoded player summary document.

    Raises
    ------
    SteamParseError
        When the document does not have the expected shape or lists no player.
    """
    try:
        parsed = PlayerSummariesResponse.model_validate(payload)
    except ValidationError as exc:
        raise SteamParseError(
            f"Unable to parse steam response: {exc.error_count()} validation error(s)",
            endpoint=PLAYER_SUMMARIES_ENDPOINT,
        ) from exc

    players = parsed.response.players
    if not players:
        raise SteamParseError("Steam response lists no player", endpoint=PLAYER_SUMMARIES_ENDPOINT)
    return players[0].current_game()


async def fetch_current_game(config: SteamConfig, transport: Transport) -> Game | None:
    """One round trip to the Web API; ``None`` when nothing is being played."""
    url = f"{config.api_base_url}{PLAYER_SUMMARIES_ENDPOINT}"
    payload = await transport.get_json(url, {"key": config.api_key, "steamids": config.steam_id})
    game = parse_current_game(payload)
    _logger.debug("Current game for %s: %s", config.steam_id, game)
    return game
