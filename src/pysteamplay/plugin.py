"""Steam play-time timeline plugin.

Each tick asks the Steam Web API what the user is playing, compares it with
the cached last game and, when a game stops, writes the completed session
(and the game's cover, once) to the event store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from pydantic import ValidationError

from pysteamplay._api.cover import fetch_cover
from pysteamplay._api.player import fetch_current_game
from pysteamplay._constants import PLUGIN_NAME
from pysteamplay._transport import Transport
from pysteamplay.assets import CoverGuard
from pysteamplay.cache import Cache
from pysteamplay.config import SteamConfig
from pysteamplay.exceptions import EventStoreError, SteamPlayError
from pysteamplay.models._base import utcnow
from pysteamplay.models.events import CompressedEvent, EventType, GameSession, StoredEvent
from pysteamplay.models.game import Game, LastGameCache, TrackedState
from pysteamplay.models.timing import TimeRange
from pysteamplay.store import EventStore
from pysteamplay.tracker import Action, Close, Open, Switch, apply, changes_state, decide

_logger = logging.getLogger(__name__)

ErrorReporter = Callable[[str], None]


def log_error(message: str) -> None:
    """Default error sink: the plugin's logger."""
    _logger.error("%s", message)


@dataclass
class HostContext:
    """What the embedding host hands to a plugin at construction."""

    store: EventStore
    report_error: ErrorReporter = field(default=log_error)


class PollingPlugin(Protocol):
    async def request_loop(self) -> timedelta | None:
        """Run one tick and return the delay before the next, or ``None`` to stop."""
        ...


class EventSource(Protocol):
    async def get_compressed_events(self, query_range: TimeRange) -> list[CompressedEvent]:
        ...


class CoverSource(Protocol):
    async def get_cover(self, game_id: str) -> bytes | None:
        ...


class SteamPlugin:
    """Tracks one Steam user's play sessions.

    Ticks must not overlap; the host scheduler runs :meth:`request_loop`
    strictly one after another.

    Usage::

        plugin = await SteamPlugin.create(config, HostContext(store=store), transport)
        delay = await plugin.request_loop()
    """

    name = PLUGIN_NAME

    def __init__(
        self,
        config: SteamConfig,
        context: HostContext,
        transport: Transport,
        cache: Cache[LastGameCache],
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._context = context
        self._transport = transport
        self._cache = cache
        self._clock = clock
        self._covers = CoverGuard(
            plugin=self.name,
            store=context.store,
            fetch=self._download_cover,
            clock=clock,
        )

    @classmethod
    async def create(
        cls,
        config: SteamConfig,
        context: HostContext,
        transport: Transport,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> SteamPlugin:
        """Load the persisted cache and build the plugin.

        Raises
        ------
        CacheError
            When the cache file exists but is unreadable; the plugin cannot start.
        """
        cache = await Cache.load(config.cache_path, LastGameCache)
        return cls(config, context, transport, cache, clock=clock)

    async def current_state(self) -> TrackedState | None:
        return (await self._cache.read()).last_game

    async def request_loop(self) -> timedelta | None:
        try:
            await self.update_playing_status()
        except SteamPlayError as exc:
            self._context.report_error(f"Unable to update playing status: {exc}")

        return timedelta(seconds=self._config.poll_interval)

    async def update_playing_status(self) -> Action:
        """One tick: observe, decide, apply, and emit a finished session.

        A failed observation leaves the cache untouched. Once the cache has
        been updated it is never rolled back, even if writing the session
        fails afterwards.
        """
        game = await fetch_current_game(self._config, self._transport)

        decided: list[Action] = []

        def _transform(state: LastGameCache) -> LastGameCache | None:
            action = decide(state.last_game, game, self._clock())
            decided.append(action)
            if not changes_state(action):
                return None
            return state.model_copy(update={"last_game": apply(state.last_game, action)})

        await self._cache.mutate(_transform)
        action = decided[0]

        if isinstance(action, Open):
            _logger.info("Started playing %s (%s)", action.game.name, action.game.id)
        elif isinstance(action, Switch):
            _logger.info(
                "Switched from %s to %s; the %s session is not recorded",
                action.dropped.game.name,
                action.game.name,
                action.dropped.game.name,
            )
        elif isinstance(action, Close):
            _logger.info("Stopped playing %s", action.session.game.name)
            await self._save_session(action.session)

        return action

    async def _save_session(self, session: GameSession) -> None:
        # A failed cover aborts the tick before the session is written.
        await self._covers.ensure_cover(session.game.id)

        try:
            await self._context.store.insert(
                StoredEvent(
                    id=session.event_id,
                    plugin=self.name,
                    event_type=EventType.GAME,
                    timing=session.range,
                    game_id=session.game.id,
                    payload=session.payload(),
                )
            )
        except EventStoreError as exc:
            raise EventStoreError(f"Unable to register game: {exc}") from exc

    async def _download_cover(self, game_id: str) -> bytes:
        return await fetch_cover(self._config, self._transport, game_id)

    async def get_compressed_events(self, query_range: TimeRange) -> list[CompressedEvent]:
        """Completed sessions overlapping *query_range*, ordered by start."""
        result: list[CompressedEvent] = []
        async for event in self._context.store.range_query(self.name, query_range, EventType.GAME):
            try:
                game = Game.model_validate(event.payload.get("game", {}))
            except ValidationError as exc:
                raise EventStoreError(f"Stored game event {event.id} is malformed") from exc
            result.append(
                CompressedEvent(
                    title=game.name,
                    time=event.timing,
                    data=game.model_dump(),
                )
            )
        return result

    async def get_cover(self, game_id: str) -> bytes | None:
        return await self._covers.get_cover(game_id)
