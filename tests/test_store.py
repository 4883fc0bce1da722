from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from pysteamplay.models.events import EventType, StoredEvent
from pysteamplay.models.timing import TimeRange
from pysteamplay.store import SqlEventStore

PLUGIN = "timeline_plugin_steam"
T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SqlEventStore]:
    db = SqlEventStore(f"sqlite:///{tmp_path / 'events.db'}")
    yield db
    db.close()


def _session(game_id: str, start: datetime, minutes: int) -> StoredEvent:
    timing = TimeRange(start=start, end=start + timedelta(minutes=minutes))
    return StoredEvent(
        id=f"{game_id}@{timing.model_dump_json()}",
        plugin=PLUGIN,
        event_type=EventType.GAME,
        timing=timing,
        game_id=game_id,
        payload={"game": {"name": f"Game {game_id}", "id": game_id}, "event_type": "Game"},
    )


async def _collect(store: SqlEventStore, time_range: TimeRange) -> list[StoredEvent]:
    return [event async for event in store.range_query(PLUGIN, time_range, EventType.GAME)]


@pytest.mark.asyncio
async def test_duplicate_insert_is_ignored(store: SqlEventStore) -> None:
    event = _session("620", T0, 30)

    assert await store.insert(event) is True
    assert await store.insert(event) is False

    stored = await _collect(store, TimeRange(start=T0, end=T0 + timedelta(hours=1)))
    assert [e.id for e in stored] == [event.id]


@pytest.mark.asyncio
async def test_query_exists_filters_by_type_and_game(store: SqlEventStore) -> None:
    await store.insert(_session("620", T0, 30))

    assert await store.query_exists(PLUGIN, EventType.GAME, "620")
    assert not await store.query_exists(PLUGIN, EventType.COVER, "620")
    assert not await store.query_exists(PLUGIN, EventType.GAME, "570")
    assert not await store.query_exists("other_plugin", EventType.GAME, "620")


@pytest.mark.asyncio
async def test_range_query_returns_overlapping_events_in_start_order(store: SqlEventStore) -> None:
    late = _session("570", T0 + timedelta(hours=2), 30)
    early = _session("620", T0, 30)
    outside = _session("730", T0 + timedelta(days=1), 30)
    for event in (late, early, outside):
        await store.insert(event)

    # Starts inside the first session and ends inside the second.
    query = TimeRange(start=T0 + timedelta(minutes=10), end=T0 + timedelta(hours=2, minutes=5))
    stored = await _collect(store, query)

    assert [e.game_id for e in stored] == ["620", "570"]
    assert stored[0].timing == early.timing
    assert stored[0].timing.start.tzinfo is not None


@pytest.mark.asyncio
async def test_find_one_returns_payload(store: SqlEventStore) -> None:
    cover = StoredEvent(
        id="620",
        plugin=PLUGIN,
        event_type=EventType.COVER,
        timing=TimeRange.instant(T0),
        game_id="620",
        payload={"game_id": "620", "data": "aGVsbG8=", "event_type": "Cover"},
    )
    await store.insert(cover)

    found = await store.find_one(PLUGIN, EventType.COVER, "620")
    assert found is not None
    assert found.payload["data"] == "aGVsbG8="
    assert await store.find_one(PLUGIN, EventType.COVER, "570") is None
