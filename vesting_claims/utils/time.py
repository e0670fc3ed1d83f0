"""Time utilities (UTC now, unix timestamps)."""
from __future__ import annotations
from datetime import datetime, timezone

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def unix_to_iso(timestamp: int | str) -> str:
    """Unix seconds -> ISO-8601 UTC string with millisecond precision and 'Z'."""
    dt = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

__all__ = ["utc_now", "unix_to_iso"]
