"""Fetch-if-absent guard for game cover images."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from pysteamplay.models.events import CoverSave, EventType, StoredEvent
from pysteamplay.models.timing import TimeRange
from pysteamplay.store import EventStore

_logger = logging.getLogger(__name__)

CoverFetcher = Callable[[str], Awaitable[bytes]]


class CoverGuard:
    """Stores each game's cover at most once.

    The existence check and the insert are not wrapped in a lock. Two
    processes racing on the same game may both download it; the store keys
    covers by game id so only one row survives.
    """

    def __init__(
        self,
        *,
        plugin: str,
        store: EventStore,
        fetch: CoverFetcher,
        clock: Callable[[], datetime],
    ) -> None:
        self._plugin = plugin
        self._store = store
        self._fetch = fetch
        self._clock = clock

    async def ensure_cover(self, game_id: str) -> bool:
        """Make sure a cover for *game_id* is stored.

        Returns ``True`` when a cover was downloaded and stored by this call,
        ``False`` when one already existed. Fetch and store errors propagate;
        nothing is written when the download fails, so the next completed
        session retries it.
        """
        if await self._store.query_exists(self._plugin, EventType.COVER, game_id):
            return False

        raw = await self._fetch(game_id)
        cover = CoverSave.from_bytes(game_id, raw)
        await self._store.insert(
            StoredEvent(
                id=game_id,
                plugin=self._plugin,
                event_type=EventType.COVER,
                timing=TimeRange.instant(self._clock()),
                game_id=game_id,
                payload=cover.payload(),
            )
        )
        _logger.info("Stored cover for game %s (%d bytes)", game_id, len(raw))
        return True

    async def get_cover(self, game_id: str) -> bytes | None:
        """Raw bytes of the stored cover, or ``None``."""
        event = await self._store.find_one(self._plugin, EventType.COVER, game_id)
        if event is None:
            return None
        data = event.payload.get("data")
        if not isinstance(data, str):
            return None
        return CoverSave(game_id=game_id, data=data).decode()
