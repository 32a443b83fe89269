"""Conditional GET evaluation (If-None-Match / If-Modified-Since).

Decides whether a 304 may be sent instead of the body, following
RFC 7232 section 4.1 and the request no-cache directive of RFC 7234
section 5.2.1.4.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

CACHE_CONTROL_NO_CACHE_RE = re.compile(r"(?:^|,)\s*?no-cache\s*?(?:,|$)")

_WEAK_PREFIX = "W/"


def _lower_keys(headers: Mapping[str, str]) -> dict[str, str]:
    return {k.lower(): v for k, v in headers.items()}


def parse_token_list(value: str) -> list[str]:
    """Split a comma-separated header into tokens.

    Leading spaces of a token are skipped; spaces after the first
    non-space character are kept up to the last non-space one.
    """
    tokens: list[str] = []
    start = end = 0
    for i, char in enumerate(value):
        if char == " ":
            if start == end:
                start = end = i + 1
        elif char == ",":
            tokens.append(value[start:end])
            start = end = i + 1
        else:
            end = i + 1
    tokens.append(value[start:end])
    return tokens


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an HTTP date; None when missing or unparseable."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def _etag_matches(token: str, etag: str) -> bool:
    return (
        token == etag
        or token == _WEAK_PREFIX + etag
        or _WEAK_PREFIX + token == etag
    )


def is_fresh(
    request_headers: Mapping[str, str],
    etag: str | None,
    last_modified: str | None = None,
) -> bool:
    """Return True when the client's cached copy is still valid (send 304).

    Args:
        request_headers: Inbound request headers (any key case).
        etag: ETag of the representation that would be served.
        last_modified: Last-Modified of that representation, when tracked.
    """
    headers = _lower_keys(request_headers)
    modified_since = headers.get("if-modified-since")
    none_match = headers.get("if-none-match")

    if not modified_since and not none_match:
        return False

    # End-to-end reload: always stale on Cache-Control: no-cache.
    cache_control = headers.get("cache-control")
    if cache_control and CACHE_CONTROL_NO_CACHE_RE.search(cache_control):
        return False

    # A lone "*" matches any representation. "*" mixed with other tokens is
    # compared token by token like any other list.
    if none_match and none_match != "*":
        if not etag:
            return False
        if not any(_etag_matches(token, etag) for token in parse_token_list(none_match)):
            return False

    if modified_since:
        requested = parse_http_date(modified_since)
        modified = parse_http_date(last_modified)
        if requested is None or modified is None or modified > requested:
            return False

    return True
