"""Command line entry point: ``python -m pysteamplay``."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys
import tomllib
from collections.abc import AsyncIterator
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import aiohttp
from aiohttp import web

from pysteamplay._constants import PLUGIN_NAME
from pysteamplay._transport import HttpTransport
from pysteamplay.config import SteamConfig
from pysteamplay.exceptions import SteamConfigError, SteamPlayError
from pysteamplay.host import Scheduler
from pysteamplay.models.timing import TimeRange
from pysteamplay.plugin import HostContext, SteamPlugin
from pysteamplay.routes import create_app
from pysteamplay.store import SqlEventStore

_logger = logging.getLogger("pysteamplay")


def _load_config(path: Path | None) -> SteamConfig:
    """Read ``[timeline_plugin_steam]`` from a TOML file, else ``STEAM_*`` env vars."""
    if path is None:
        return SteamConfig.from_env()
    try:
        with path.open("rb") as fh:
            document: dict[str, Any] = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise SteamConfigError(f"Unable to read config {path}: {exc}") from exc
    return SteamConfig.from_mapping(document.get(PLUGIN_NAME))


@contextlib.asynccontextmanager
async def _open_plugin(config: SteamConfig) -> AsyncIterator[SteamPlugin]:
    store = SqlEventStore(config.database_url)
    try:
        async with aiohttp.ClientSession() as http:
            transport = HttpTransport(http, timeout=config.request_timeout)
            yield await SteamPlugin.create(config, HostContext(store=store), transport)
    finally:
        store.close()


async def _cmd_run(config: SteamConfig) -> int:
    async with _open_plugin(config) as plugin:
        runner = web.AppRunner(create_app(plugin))
        await runner.setup()
        site = web.TCPSite(runner, config.http_host, config.http_port)
        await site.start()
        _logger.info("Serving on http://%s:%s", config.http_host, config.http_port)

        scheduler = Scheduler(plugin, retry_delay=timedelta(seconds=config.poll_interval))
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, scheduler.stop)
        try:
            await scheduler.run()
        finally:
            await runner.cleanup()
    return 0


async def _cmd_tick(config: SteamConfig) -> int:
    async with _open_plugin(config) as plugin:
        action = await plugin.update_playing_status()
        state = await plugin.current_state()
    print(f"action: {type(action).__name__}")
    print(json.dumps(state.model_dump(mode="json") if state else None, indent=2))
    return 0


async def _cmd_events(config: SteamConfig, start: datetime, end: datetime) -> int:
    async with _open_plugin(config) as plugin:
        events = await plugin.get_compressed_events(TimeRange(start=start, end=end))
    print(json.dumps([event.model_dump(mode="json") for event in events], indent=2))
    return 0


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pysteamplay", description="Steam play session tracker")
    parser.add_argument("--config", type=Path, default=None, help="TOML file with a [timeline_plugin_steam] table")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Poll forever and serve the read endpoints")
    sub.add_parser("tick", help="Run a single tick and print the tracked state")
    events = sub.add_parser("events", help="Print completed sessions in a time range")
    events.add_argument("--start", type=datetime.fromisoformat, required=True)
    events.add_argument("--end", type=datetime.fromisoformat, required=True)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _load_config(args.config)
    except SteamConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    try:
        if args.command == "run":
            return asyncio.run(_cmd_run(config))
        if args.command == "tick":
            return asyncio.run(_cmd_tick(config))
        return asyncio.run(_cmd_events(config, args.start, args.end))
    except SteamPlayError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
