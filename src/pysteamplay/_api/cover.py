"""Game header image download from the Steam CDN."""

from __future__ import annotations

from pysteamplay._constants import cover_path
from pysteamplay._transport import Transport
from pysteamplay.config import SteamConfig
from pysteamplay.exceptions import SteamTransportError


async def fetch_cover(config: SteamConfig, transport: Transport, game_id: str) -> bytes:
    url = f"{config.cdn_base_url}{cover_path(game_id)}"
    data = await transport.get_bytes(url)
    if not data:
        raise SteamTransportError(f"Empty cover body from {url}", endpoint=url)
    return data
