# timestamps.py - Normalised timestamps for the store adapters
"""
Documents reach us with timestamps in several shapes: live ``datetime``
objects, the cache's ``{"seconds": n}`` objects, admin-SDK style
``{"_seconds": n, "_nanoseconds": n}`` objects, ISO-8601 strings and raw epoch
numbers. Store adapters call :func:`to_datetime` once when decoding so the
rest of the code only ever sees timezone-aware UTC ``datetime`` values.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

RawTimestamp = Union[datetime, Dict[str, Any], str, int, float, None]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_datetime(value: RawTimestamp) -> Optional[datetime]:
    """Normalise any supported timestamp shape. Returns None when unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _EPOCH + timedelta(seconds=value)
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if not isinstance(seconds, (int, float)) or isinstance(seconds, bool):
            return None
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        return _EPOCH + timedelta(seconds=seconds, microseconds=nanos / 1000)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_datetime(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def to_seconds_object(value: datetime) -> Dict[str, float]:
    """Cache representation: ``{"seconds": <epoch seconds>}``."""
    return {"seconds": round((to_datetime(value) - _EPOCH).total_seconds(), 6)}


def to_iso(value: datetime) -> str:
    return to_datetime(value).isoformat()


class MonotonicClock:
    """UTC clock whose readings strictly increase within one process.

    Two mutations in the same microsecond would otherwise produce revisions
    with equal timestamps and an ambiguous history order.
    """

    def __init__(self, source=utcnow):
        self._source = source
        self._last: Optional[datetime] = None

    def now(self) -> datetime:
        current = to_datetime(self._source())
        if self._last is not None and current <= self._last:
            current = self._last + timedelta(microseconds=1)
        self._last = current
        return current
