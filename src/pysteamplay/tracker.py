"""Session reconstruction from periodic play-status samples.

Pure functions only: no I/O and no clock access. Given the tracked state
from the previous tick and the game reported now, :func:`decide` picks one
of five actions and :func:`apply` yields the next tracked state.

Truth table::

    previous   current            action
    --------   -----------------  --------
    None       None               Idle
    None       game               Open
    game A     game A (same id)   Continue
    game A     game B             Switch   (A is dropped, no session)
    game A     None               Close    (emits [since, now))

``Switch`` deliberately emits nothing for the interrupted game. Back-to-back
games without an idle sample between them therefore lose the first one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pysteamplay.models.events import GameSession
from pysteamplay.models.game import Game, TrackedState
from pysteamplay.models.timing import TimeRange


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Continue:
    pass


@dataclass(frozen=True)
class Open:
    game: Game
    at: datetime


@dataclass(frozen=True)
class Switch:
    game: Game
    at: datetime
    dropped: TrackedState


@dataclass(frozen=True)
class Close:
    session: GameSession


Action = Idle | Continue | Open | Switch | Close


def decide(previous: TrackedState | None, current: Game | None, now: datetime) -> Action:
    if previous is None:
        if current is None:
            return Idle()
        return Open(game=current, at=now)

    if current is None:
        # Clamp so a clock step backwards cannot yield an inverted range.
        end = max(now, previous.since)
        return Close(session=GameSession(game=previous.game, range=TimeRange(start=previous.since, end=end)))

    if previous.game.same_as(current):
        return Continue()
    return Switch(game=current, at=now, dropped=previous)


def apply(previous: TrackedState | None, action: Action) -> TrackedState | None:
    """Tracked state after *action*."""
    if isinstance(action, (Open, Switch)):
        return TrackedState(game=action.game, since=action.at)
    if isinstance(action, Close):
        return None
    return previous


def changes_state(action: Action) -> bool:
    """Whether *action* requires a cache write."""
    return isinstance(action, (Open, Switch, Close))
