"""Timestamp helpers shared by the providers.

Every datetime leaving this module is timezone-aware UTC so that values from
ISO strings, epoch numbers and file stats compare and sort together.
"""

import os
from datetime import datetime, timezone
from typing import Any, Optional


def to_utc(value: datetime) -> datetime:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 string (``Z`` suffix allowed). Returns None if unparseable."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return to_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    except ValueError:
        return None


def from_epoch(seconds: float) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def from_epoch_ms(value: Any) -> Optional[datetime]:
    """Convert a millisecond epoch (as written by OpenCode) to a datetime."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return from_epoch(value / 1000)
    except (OverflowError, OSError, ValueError):
        return None


def file_mtime(stat: os.stat_result) -> datetime:
    return from_epoch(stat.st_mtime)


def file_birthtime(stat: os.stat_result) -> datetime:
    """Creation time where the platform records one, else ctime."""
    birth = getattr(stat, "st_birthtime", None)
    return from_epoch(birth if birth is not None else stat.st_ctime)
