from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

# Every datetime stored by the app is naive and means UTC.


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    "2024-05-01T10:00:00Z", "2024-05-01T12:00:00+02:00" or a naive
    "2024-05-01T10:00" (taken as UTC) -> naive UTC datetime.

    Blank input gives None; anything else unparseable raises ValueError.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def parse_timestamp(value: Union[None, int, float, str, datetime]) -> Optional[datetime]:
    """
    Accept a datetime, an ISO-8601 string, or seconds since the epoch.

    Numeric strings are treated as epoch seconds, matching clients that send
    receipt dates as unix timestamps.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_naive_utc(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
    text = str(value).strip()
    if not text:
        return None
    try:
        seconds = float(text)
    except ValueError:
        return parse_iso_datetime(text)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Format as ISO-8601 UTC with a trailing Z, to the second."""
    if dt is None:
        return None
    return _as_naive_utc(dt).replace(microsecond=0).isoformat() + "Z"
