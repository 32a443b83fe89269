"""Lenient integer parsing for query strings and header values."""

import re

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: str | None) -> int | None:
    """Parse the leading decimal integer of value ('384px' -> 384); None if absent."""
    if value is None:
        return None
    match = _LEADING_INT_RE.match(value)
    if not match:
        return None
    return int(match.group(1))
