"""Periodic scheduler standing in for the embedding host's plugin loop."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from enum import StrEnum

from pysteamplay._constants import POLL_INTERVAL_SECONDS
from pysteamplay.plugin import PollingPlugin

_logger = logging.getLogger(__name__)


class SchedulerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class Scheduler:
    """Runs a plugin's ticks one after another.

    The next tick is scheduled only once the previous one has fully
    resolved, so a plugin never sees two ticks in flight. The delay returned
    by the plugin starts counting after the tick, whether it succeeded or not.
    A tick that raises is logged and followed by *retry_delay*; it never ends
    the loop.
    """

    def __init__(
        self,
        plugin: PollingPlugin,
        *,
        retry_delay: timedelta = timedelta(seconds=POLL_INTERVAL_SECONDS),
    ) -> None:
        self._plugin = plugin
        self._retry_delay = retry_delay
        self._stopping = asyncio.Event()
        self._state = SchedulerState.IDLE
        self._ticks = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def ticks(self) -> int:
        return self._ticks

    def stop(self) -> None:
        """Ask the loop to exit after the current tick (or sleep) ends."""
        self._stopping.set()

    async def run(self) -> None:
        try:
            while not self._stopping.is_set():
                self._state = SchedulerState.RUNNING
                try:
                    delay = await self._plugin.request_loop()
                except Exception:
                    _logger.exception("Plugin tick failed")
                    delay = self._retry_delay
                self._ticks += 1
                self._state = SchedulerState.IDLE
                if delay is None:
                    _logger.debug("Plugin asked to stop polling")
                    break
                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=delay.total_seconds())
                except asyncio.TimeoutError:
                    pass
        finally:
            self._state = SchedulerState.STOPPED
