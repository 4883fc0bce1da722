"""Append-only event store.

Events are keyed by ``(plugin, id)``; inserting an id that already exists is
silently ignored, which is what makes session and cover writes idempotent.
The default implementation keeps rows in a SQLAlchemy table (SQLite unless
configured otherwise) and runs the blocking calls in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar

from sqlalchemy import JSON, Column, DateTime, Index, String, create_engine, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from pysteamplay.exceptions import EventStoreError
from pysteamplay.models.events import EventType, StoredEvent
from pysteamplay.models.timing import TimeRange

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Base = declarative_base()


class EventRow(Base):
    __tablename__ = "events"

    plugin = Column(String(64), primary_key=True)
    id = Column(String(512), primary_key=True)
    event_type = Column(String(32), nullable=False)
    game_id = Column(String(64), nullable=False)
    timing_start = Column(DateTime, nullable=False)
    timing_end = Column(DateTime, nullable=False)
    payload = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_events_lookup", "plugin", "event_type", "game_id"),
        Index("idx_events_timing", "plugin", "timing_start", "timing_end"),
    )

    def __repr__(self) -> str:
        return f"<EventRow {self.plugin}/{self.event_type} {self.id}>"


def _to_db(value: datetime) -> datetime:
    """Stored as naive UTC so string comparison in SQLite stays ordered."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.replace(tzinfo=None)


def _row_to_event(row: EventRow) -> StoredEvent:
    return StoredEvent(
        id=row.id,
        plugin=row.plugin,
        event_type=EventType(row.event_type),
        timing=TimeRange(start=row.timing_start, end=row.timing_end),
        game_id=row.game_id,
        payload=dict(row.payload or {}),
    )


class EventStore(Protocol):
    """Narrow interface the plugin needs from the timeline database."""

    async def query_exists(self, plugin: str, event_type: EventType, game_id: str) -> bool:
        ...

    async def find_one(self, plugin: str, event_type: EventType, game_id: str) -> StoredEvent | None:
        ...

    async def insert(self, event: StoredEvent) -> bool:
        ...

    def range_query(self, plugin: str, time_range: TimeRange, event_type: EventType) -> AsyncIterator[StoredEvent]:
        ...


class SqlEventStore:
    """SQLAlchemy-backed :class:`EventStore`."""

    def __init__(self, database_url: str, *, echo: bool = False) -> None:
        connect_args: dict[str, Any] = {}
        if database_url.startswith("sqlite"):
            # Calls are dispatched to arbitrary worker threads.
            connect_args["check_same_thread"] = False
        self._engine = create_engine(database_url, echo=echo, connect_args=connect_args)
        self._sessionmaker = sessionmaker(bind=self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)

    def close(self) -> None:
        self._engine.dispose()

    async def _run(self, what: str, fn: Callable[[Session], T]) -> T:
        def _call() -> T:
            with self._sessionmaker() as session:
                return fn(session)

        try:
            return await asyncio.to_thread(_call)
        except SQLAlchemyError as exc:
            raise EventStoreError(f"Error {what}: {exc}") from exc

    async def query_exists(self, plugin: str, event_type: EventType, game_id: str) -> bool:
        def _count(session: Session) -> int:
            stmt = (
                select(func.count())
                .select_from(EventRow)
                .where(
                    EventRow.plugin == plugin,
                    EventRow.event_type == event_type.value,
                    EventRow.game_id == game_id,
                )
            )
            return int(session.execute(stmt).scalar_one())

        return await self._run(f"counting {event_type.value} events", _count) > 0

    async def find_one(self, plugin: str, event_type: EventType, game_id: str) -> StoredEvent | None:
        def _find(session: Session) -> StoredEvent | None:
            stmt = (
                select(EventRow)
                .where(
                    EventRow.plugin == plugin,
                    EventRow.event_type == event_type.value,
                    EventRow.game_id == game_id,
                )
                .limit(1)
            )
            row = session.execute(stmt).scalars().first()
            return _row_to_event(row) if row is not None else None

        return await self._run(f"finding {event_type.value} event", _find)

    async def insert(self, event: StoredEvent) -> bool:
        """Insert *event*; returns ``False`` when its id was already stored."""

        def _insert(session: Session) -> bool:
            if session.get(EventRow, (event.plugin, event.id)) is not None:
                return False
            session.add(
                EventRow(
                    plugin=event.plugin,
                    id=event.id,
                    event_type=event.event_type.value,
                    game_id=event.game_id,
                    timing_start=_to_db(event.timing.start),
                    timing_end=_to_db(event.timing.end),
                    payload=event.payload,
                )
            )
            try:
                session.commit()
            except IntegrityError:
                # Lost a race against another writer with the same key.
                session.rollback()
                return False
            return True

        inserted = await self._run(f"registering event {event.id}", _insert)
        if not inserted:
            _logger.debug("Event %s already stored, skipping", event.id)
        return inserted

    async def range_query(
        self,
        plugin: str,
        time_range: TimeRange,
        event_type: EventType,
    ) -> AsyncIterator[StoredEvent]:
        """Events of *event_type* overlapping *time_range*, ordered by start."""

        def _query(session: Session) -> list[StoredEvent]:
            stmt = (
                select(EventRow)
                .where(
                    EventRow.plugin == plugin,
                    EventRow.event_type == event_type.value,
                    EventRow.timing_start <= _to_db(time_range.end),
                    EventRow.timing_end >= _to_db(time_range.start),
                )
                .order_by(EventRow.timing_start, EventRow.id)
            )
            return [_row_to_event(row) for row in session.execute(stmt).scalars()]

        for event in await self._run("querying events", _query):
            yield event
