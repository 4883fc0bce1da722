"""Internal constants shared across the library."""

PLUGIN_NAME = "timeline_plugin_steam"
ROUTE_PREFIX = f"/api/plugin/{PLUGIN_NAME}"

API_BASE_URL = "https://api.steampowered.com"
CDN_BASE_URL = "https://cdn.cloudflare.steamstatic.com"
PLAYER_SUMMARIES_ENDPOINT = "/ISteamUser/GetPlayerSummaries/v0002/"
USER_AGENT = "pysteamplay/1"

#: Seconds between two ticks of the polling loop.
POLL_INTERVAL_SECONDS: float = 30.0
#: Upper bound for every outbound HTTP round trip.
REQUEST_TIMEOUT_SECONDS: float = 30.0


def cover_path(game_id: str) -> str:
    """CDN path of the header image for a Steam app id."""
    return f"/steam/apps/{game_id}/header.jpg"
