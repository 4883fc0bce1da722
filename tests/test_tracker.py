from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pysteamplay.models.game import Game, TrackedState
from pysteamplay.models.timing import TimeRange
from pysteamplay.tracker import Close, Continue, Idle, Open, Switch, apply, changes_state, decide

T0 = datetime(2026, 1, 1, 20, 0, tzinfo=UTC)
PORTAL = Game(name="Portal 2", id="620")
DOTA = Game(name="Dota 2", id="570")


def _tracked(game: Game, since: datetime = T0) -> TrackedState:
    return TrackedState(game=game, since=since)


def test_idle_when_nothing_tracked_and_nothing_played() -> None:
    action = decide(None, None, T0)

    assert action == Idle()
    assert apply(None, action) is None
    assert not changes_state(action)


def test_open_starts_tracking_at_now() -> None:
    action = decide(None, PORTAL, T0)

    assert action == Open(game=PORTAL, at=T0)
    assert apply(None, action) == _tracked(PORTAL, T0)


def test_continue_keeps_original_start() -> None:
    previous = _tracked(PORTAL)
    action = decide(previous, PORTAL, T0 + timedelta(minutes=5))

    assert action == Continue()
    assert apply(previous, action) is previous
    assert not changes_state(action)


def test_identity_is_compared_by_id_not_name() -> None:
    previous = _tracked(PORTAL)
    renamed = Game(name="Portal 2 (Beta)", id="620")

    assert decide(previous, renamed, T0 + timedelta(seconds=30)) == Continue()


def test_switch_replaces_state_and_emits_nothing_for_previous_game() -> None:
    previous = _tracked(PORTAL)
    now = T0 + timedelta(seconds=30)
    action = decide(previous, DOTA, now)

    assert isinstance(action, Switch)
    assert action.dropped == previous
    assert apply(previous, action) == _tracked(DOTA, now)
    assert changes_state(action)


def test_close_emits_session_from_since_to_now() -> None:
    previous = _tracked(PORTAL)
    now = T0 + timedelta(seconds=60)
    action = decide(previous, None, now)

    assert isinstance(action, Close)
    assert action.session.game == PORTAL
    assert action.session.range == TimeRange(start=T0, end=now)
    assert apply(previous, action) is None


def test_close_clamps_end_when_clock_went_backwards() -> None:
    previous = _tracked(PORTAL)
    action = decide(previous, None, T0 - timedelta(seconds=5))

    assert isinstance(action, Close)
    assert action.session.range.start == action.session.range.end == T0


def test_session_event_id_is_stable_for_same_session() -> None:
    previous = _tracked(PORTAL)
    now = T0 + timedelta(hours=1)
    first = decide(previous, None, now)
    second = decide(previous, None, now)

    assert isinstance(first, Close) and isinstance(second, Close)
    assert first.session.event_id == second.session.event_id
    assert first.session.event_id.startswith("620@")
