"""Time range model shared by sessions, covers and queries."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, model_validator

from pysteamplay.models._base import UtcDatetime


class TimeRange(BaseModel):
    """Half-open interval ``[start, end)``.

    An instant is represented as a range with ``start == end``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: UtcDatetime
    end: UtcDatetime

    @model_validator(mode="after")
    def _check_order(self) -> TimeRange:
        if self.start > self.end:
            raise ValueError(f"range start {self.start.isoformat()} is after end {self.end.isoformat()}")
        return self

    @classmethod
    def instant(cls, at: datetime) -> TimeRange:
        return cls(start=at, end=at)

    def overlaps(self, other: TimeRange) -> bool:
        """Whether the two ranges share at least one instant."""
        return self.start <= other.end and other.start <= self.end
