"""Clock helpers.

Cache entry expiry is epoch milliseconds (it is part of stored entry
names); metadata timestamps are timezone-aware UTC datetimes.
"""

import time
from datetime import UTC, datetime


def now_ms() -> int:
    """Current Unix time in whole milliseconds."""
    return time.time_ns() // 1_000_000


def utc_now() -> datetime:
    """Current time as an aware UTC datetime (never naive local time)."""
    return datetime.now(UTC)


def from_timestamp_utc(timestamp: float) -> datetime:
    """Aware UTC datetime for a Unix timestamp in seconds (e.g. st_mtime)."""
    return datetime.fromtimestamp(timestamp, tz=UTC)
