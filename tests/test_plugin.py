from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from pysteamplay.config import SteamConfig
from pysteamplay.exceptions import EventStoreError, SteamTransportError
from pysteamplay.models.events import EventType, StoredEvent
from pysteamplay.models.game import Game, TrackedState
from pysteamplay.models.timing import TimeRange
from pysteamplay.plugin import HostContext, SteamPlugin
from pysteamplay.store import SqlEventStore
from pysteamplay.tracker import Close, Continue, Idle, Open, Switch

T0 = datetime(2026, 1, 1, 20, 0, tzinfo=UTC)
PORTAL = Game(name="Portal 2", id="620")
DOTA = Game(name="Dota 2", id="570")


@dataclass
class FakeClock:
    now: datetime = T0

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class FakeSteam:
    """Stands in for both the Web API and the CDN."""

    playing: Game | None = None
    fail_next: Exception | None = None
    raw_payload: Any = None
    cover_error: Exception | None = None
    player_calls: int = 0
    cover_calls: list[str] = field(default_factory=list)

    async def get_json(self, url: str, params: Any = None) -> Any:
        self.player_calls += 1
        assert params == {"key": "test-key", "steamids": "76561197960287930"}
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc
        if self.raw_payload is not None:
            return self.raw_payload
        player: dict[str, Any] = {"steamid": "76561197960287930", "personaname": "gordon"}
        if self.playing is not None:
            player.update(gameid=self.playing.id, gameextrainfo=self.playing.name)
        return {"response": {"players": [player]}}

    async def get_bytes(self, url: str) -> bytes:
        self.cover_calls.append(url)
        if self.cover_error is not None:
            raise self.cover_error
        return b"\xff\xd8cover"


@dataclass
class FakeStore:
    events: dict[tuple[str, str], StoredEvent] = field(default_factory=dict)
    fail_insert: bool = False

    def of_type(self, event_type: EventType) -> list[StoredEvent]:
        return [e for e in self.events.values() if e.event_type == event_type]

    async def query_exists(self, plugin: str, event_type: EventType, game_id: str) -> bool:
        return await self.find_one(plugin, event_type, game_id) is not None

    async def find_one(self, plugin: str, event_type: EventType, game_id: str) -> StoredEvent | None:
        for event in self.events.values():
            if event.plugin == plugin and event.event_type == event_type and event.game_id == game_id:
                return event
        return None

    async def insert(self, event: StoredEvent) -> bool:
        if self.fail_insert:
            raise EventStoreError("database is locked")
        key = (event.plugin, event.id)
        if key in self.events:
            return False
        self.events[key] = event
        return True

    async def range_query(self, plugin: str, time_range: TimeRange, event_type: EventType) -> AsyncIterator[StoredEvent]:
        matching = [e for e in self.of_type(event_type) if e.plugin == plugin and e.timing.overlaps(time_range)]
        for event in sorted(matching, key=lambda e: e.timing.start):
            yield event


@dataclass
class Harness:
    config: SteamConfig
    steam: FakeSteam
    store: Any
    clock: FakeClock
    errors: list[str]
    plugin: SteamPlugin

    async def tick_at(self, offset_seconds: float, playing: Game | None) -> Any:
        self.clock.now = T0 + timedelta(seconds=offset_seconds)
        self.steam.playing = playing
        return await self.plugin.update_playing_status()

    def sessions(self) -> list[StoredEvent]:
        return sorted(self.store.of_type(EventType.GAME), key=lambda e: e.timing.start)


async def _harness(tmp_path: Path, store: Any | None = None) -> Harness:
    config = SteamConfig(
        api_key="test-key",
        steam_id="76561197960287930",
        cache_path=tmp_path / "cache.json",
        api_base_url="https://api.example.test",
        cdn_base_url="https://cdn.example.test",
    )
    steam, clock, errors = FakeSteam(), FakeClock(), []
    store = store if store is not None else FakeStore()
    plugin = await SteamPlugin.create(config, HostContext(store=store, report_error=errors.append), steam, clock=clock)
    return Harness(config, steam, store, clock, errors, plugin)


@pytest.mark.asyncio
async def test_open_then_close_emits_exactly_one_session(tmp_path: Path) -> None:
    h = await _harness(tmp_path)

    assert isinstance(await h.tick_at(0, PORTAL), Open)
    assert isinstance(await h.tick_at(30, PORTAL), Continue)
    assert h.sessions() == []
    assert h.steam.cover_calls == []

    assert isinstance(await h.tick_at(60, None), Close)

    (session,) = h.sessions()
    assert session.game_id == "620"
    assert session.timing == TimeRange(start=T0, end=T0 + timedelta(seconds=60))
    assert session.payload["game"] == {"name": "Portal 2", "id": "620"}
    assert h.steam.cover_calls == ["https://cdn.example.test/steam/apps/620/header.jpg"]
    assert await h.plugin.current_state() is None
    assert h.errors == []


@pytest.mark.asyncio
async def test_continuation_keeps_start_time(tmp_path: Path) -> None:
    h = await _harness(tmp_path)

    for offset in (0, 30, 60):
        await h.tick_at(offset, PORTAL)
        assert await h.plugin.current_state() == TrackedState(game=PORTAL, since=T0)

    assert h.sessions() == []


@pytest.mark.asyncio
async def test_switch_drops_the_interrupted_session(tmp_path: Path) -> None:
    h = await _harness(tmp_path)

    await h.tick_at(0, PORTAL)
    action = await h.tick_at(30, DOTA)

    assert isinstance(action, Switch)
    assert await h.plugin.current_state() == TrackedState(game=DOTA, since=T0 + timedelta(seconds=30))
    assert h.sessions() == []

    await h.tick_at(60, None)
    (session,) = h.sessions()
    assert session.game_id == "570"
    assert session.timing.start == T0 + timedelta(seconds=30)
    assert not [e for e in h.sessions() if e.game_id == "620"]


@pytest.mark.asyncio
async def test_idle_ticks_never_touch_the_cache(tmp_path: Path) -> None:
    h = await _harness(tmp_path)

    assert isinstance(await h.tick_at(0, None), Idle)
    assert isinstance(await h.tick_at(30, None), Idle)

    assert not h.config.cache_path.exists()
    assert h.sessions() == []


@pytest.mark.asyncio
async def test_state_survives_restart(tmp_path: Path) -> None:
    h = await _harness(tmp_path)
    await h.tick_at(0, PORTAL)
    before = await h.plugin.current_state()

    restarted = await _harness(tmp_path, store=h.store)
    assert await restarted.plugin.current_state() == before

    await restarted.tick_at(90, None)
    (session,) = restarted.sessions()
    assert session.timing == TimeRange(start=T0, end=T0 + timedelta(seconds=90))


@pytest.mark.asyncio
async def test_fetch_failure_is_reported_and_leaves_cache_alone(tmp_path: Path) -> None:
    h = await _harness(tmp_path)
    await h.tick_at(0, PORTAL)

    h.steam.fail_next = SteamTransportError("Request timed out")
    h.steam.playing = None
    delay = await h.plugin.request_loop()

    assert delay == timedelta(seconds=30)
    assert h.errors == ["Unable to update playing status: Request timed out"]
    assert await h.plugin.current_state() == TrackedState(game=PORTAL, since=T0)
    assert h.sessions() == []


@pytest.mark.asyncio
async def test_malformed_response_is_reported_like_a_transport_error(tmp_path: Path) -> None:
    h = await _harness(tmp_path)
    h.steam.raw_payload = {"response": {"players": []}}

    assert await h.plugin.request_loop() == timedelta(seconds=30)

    assert len(h.errors) == 1
    assert h.errors[0].startswith("Unable to update playing status:")
    assert not h.config.cache_path.exists()


@pytest.mark.asyncio
async def test_store_failure_does_not_roll_back_cache(tmp_path: Path) -> None:
    h = await _harness(tmp_path)
    await h.tick_at(0, PORTAL)

    h.store.fail_insert = True
    h.clock.now = T0 + timedelta(seconds=60)
    h.steam.playing = None
    await h.plugin.request_loop()

    assert await h.plugin.current_state() is None
    assert any("Unable to register game" in e for e in h.errors)

    h.store.fail_insert = False
    await h.tick_at(90, None)
    assert h.sessions() == []


@pytest.mark.asyncio
async def test_cover_failure_aborts_the_tick_before_the_session_insert(tmp_path: Path) -> None:
    h = await _harness(tmp_path)
    h.steam.cover_error = SteamTransportError("HTTP 503", status_code=503)

    await h.tick_at(0, PORTAL)
    h.clock.now = T0 + timedelta(seconds=60)
    h.steam.playing = None
    delay = await h.plugin.request_loop()

    assert delay == timedelta(seconds=30)
    assert h.errors == ["Unable to update playing status: HTTP 503"]
    assert h.sessions() == []
    assert h.store.of_type(EventType.COVER) == []
    # The cache already moved on, so the interrupted session is not retried.
    assert await h.plugin.current_state() is None

    h.steam.cover_error = None
    await h.tick_at(120, PORTAL)
    await h.tick_at(180, None)

    assert len(h.sessions()) == 1
    assert h.sessions()[0].timing.start == T0 + timedelta(seconds=120)
    assert len(h.store.of_type(EventType.COVER)) == 1
    assert len(h.steam.cover_calls) == 2


@pytest.mark.asyncio
async def test_cover_is_fetched_once_per_game(tmp_path: Path) -> None:
    h = await _harness(tmp_path)

    for start in (0, 300, 600):
        await h.tick_at(start, PORTAL)
        await h.tick_at(start + 60, None)

    assert len(h.sessions()) == 3
    assert len(h.steam.cover_calls) == 1


@pytest.mark.asyncio
async def test_compressed_events_end_to_end_with_sql_store(tmp_path: Path) -> None:
    store = SqlEventStore(f"sqlite:///{tmp_path / 'timeline.db'}")
    try:
        h = await _harness(tmp_path, store=store)
        await h.tick_at(0, PORTAL)
        await h.tick_at(60, None)
        await h.tick_at(120, DOTA)
        await h.tick_at(240, None)

        events = await h.plugin.get_compressed_events(TimeRange(start=T0, end=T0 + timedelta(hours=1)))

        assert [e.title for e in events] == ["Portal 2", "Dota 2"]
        assert events[1].time == TimeRange(start=T0 + timedelta(seconds=120), end=T0 + timedelta(seconds=240))
        assert events[0].data == {"name": "Portal 2", "id": "620"}
        assert await h.plugin.get_cover("570") == b"\xff\xd8cover"
    finally:
        store.close()
