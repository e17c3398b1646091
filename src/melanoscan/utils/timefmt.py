"""Timestamp helpers shared by the record and history services."""
from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_datetime(value: Any) -> datetime:
    """Coerce a stored timestamp into an aware UTC datetime.

    Document stores hand timestamps back in different shapes: ``datetime``
    objects (Firestore, in-memory), ISO strings (SQLite), epoch seconds, or
    ``{"_seconds": ...}`` mappings written by older clients.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str):
        return to_datetime(datetime.fromisoformat(value))
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, dict) and "_seconds" in value:
        return datetime.fromtimestamp(value["_seconds"], tz=timezone.utc)
    raise TypeError(f"Unsupported timestamp value: {value!r}")


def format_display(value: Any, utc_offset_hours: int = 7) -> str:
    """Render a timestamp as ``M/D/YYYY, h:mm:ss AM`` in a fixed UTC offset."""
    local = to_datetime(value).astimezone(timezone(timedelta(hours=utc_offset_hours)))
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (
        f"{local.month}/{local.day}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
    )


class KeyClock:
    """Millisecond timestamps that strictly increase within one process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last = 0

    def next(self) -> int:
        with self._lock:
            now_ms = time.time_ns() // 1_000_000
            self._last = max(now_ms, self._last + 1)
            return self._last
