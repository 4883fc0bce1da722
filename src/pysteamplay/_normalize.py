"""Normalization helpers for loosely typed API payloads."""

from __future__ import annotations

from typing import Any


def safe_str(value: Any) -> str | None:
    """Coerce scalars to a stripped string; blanks become ``None``."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text if text else None
