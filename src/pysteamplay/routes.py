"""HTTP read endpoints served by ``aiohttp.web``."""

from __future__ import annotations

import logging

from aiohttp import web
from pydantic import ValidationError

from pysteamplay._constants import ROUTE_PREFIX
from pysteamplay.exceptions import SteamPlayError
from pysteamplay.models.timing import TimeRange
from pysteamplay.plugin import CoverSource, EventSource, SteamPlugin

_logger = logging.getLogger(__name__)

EVENTS_KEY = web.AppKey("events", EventSource)
COVERS_KEY = web.AppKey("covers", CoverSource)

routes = web.RouteTableDef()


@routes.get("/events")
async def get_events(request: web.Request) -> web.Response:
    """Compressed sessions overlapping ``?start=..&end=..`` (ISO 8601)."""
    source = request.app[EVENTS_KEY]
    try:
        query_range = TimeRange.model_validate(
            {"start": request.query.get("start"), "end": request.query.get("end")}
        )
    except ValidationError as exc:
        raise web.HTTPBadRequest(text=f"Invalid time range: {exc.error_count()} error(s)") from exc

    try:
        events = await source.get_compressed_events(query_range)
    except SteamPlayError as exc:
        _logger.warning("Unable to load events: %s", exc)
        raise web.HTTPInternalServerError(text="Unable to load events") from exc
    return web.json_response([event.model_dump(mode="json") for event in events])


@routes.get("/{game_id}")
async def get_cover(request: web.Request) -> web.Response:
    """Stored cover image for a game, 404 when absent or unreadable."""
    covers = request.app[COVERS_KEY]
    game_id = request.match_info["game_id"]
    try:
        data = await covers.get_cover(game_id)
    except SteamPlayError as exc:
        _logger.warning("Unable to load cover for %s: %s", game_id, exc)
        data = None
    if data is None:
        raise web.HTTPNotFound()
    return web.Response(body=data, content_type="image/jpeg")


def create_plugin_app(events: EventSource, covers: CoverSource) -> web.Application:
    app = web.Application()
    app[EVENTS_KEY] = events
    app[COVERS_KEY] = covers
    app.add_routes(routes)
    return app


def create_app(plugin: SteamPlugin) -> web.Application:
    """Root application with the plugin mounted under its route prefix."""
    root = web.Application()
    root.add_subapp(ROUTE_PREFIX, create_plugin_app(plugin, plugin))
    return root
