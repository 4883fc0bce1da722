"""Durable, lock-guarded cache of the last observed state.

One JSON file per plugin instance. The in-memory value only ever changes
after the new value reached disk, so a crash between ticks restarts from the
last persisted state.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from pysteamplay._rwlock import RWLock
from pysteamplay.exceptions import CacheError

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as exc:
        raise CacheError(f"Cache {path} is corrupt: {exc}") from exc
    except OSError as exc:
        raise CacheError(f"Unable to read cache {path}: {exc}") from exc


def _write_atomic(path: Path, text: str) -> None:
    """Write *text* to *path* via a sibling temp file and ``os.replace``."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise
    except OSError as exc:
        raise CacheError(f"Unable to write cache {path}: {exc}") from exc


class Cache(Generic[M]):
    """Holder of a single pydantic value persisted as JSON.

    Values are frozen models, so :meth:`read` hands out the current instance
    directly; nobody can modify it in place.
    """

    def __init__(self, path: Path, value: M) -> None:
        self._path = Path(path)
        self._value = value
        self._lock = RWLock()

    @classmethod
    async def load(cls, path: Path | str, model: type[M]) -> Cache[M]:
        """Load the persisted value, or ``model()`` when no file exists yet.

        Raises
        ------
        CacheError
            When the file exists but cannot be read or parsed.
        """
        path = Path(path)
        text = await asyncio.to_thread(_read_text, path)
        if text is None:
            _logger.debug("No cache at %s, starting from defaults", path)
            return cls(path, model())
        try:
            value = model.model_validate_json(text)
        except ValidationError as exc:
            raise CacheError(f"Cache {path} is corrupt: {exc}") from exc
        return cls(path, value)

    async def read(self) -> M:
        """Snapshot of the current value."""
        async with self._lock.read():
            return self._value

    async def mutate(self, transform: Callable[[M], M | None]) -> bool:
        """Apply *transform* and persist the result as one unit.

        The write lock is held while *transform* runs and while the result is
        written, so decide-and-apply sequences cannot interleave. Returning
        ``None`` from *transform* leaves the cache untouched and skips the
        write.

        Returns
        -------
        bool
            ``True`` when a new value was persisted.

        Raises
        ------
        CacheError
            When persisting fails; the in-memory value is left unchanged.
        """
        async with self._lock.write():
            updated = transform(self._value)
            if updated is None:
                return False
            await asyncio.to_thread(_write_atomic, self._path, updated.model_dump_json())
            self._value = updated
            return True
