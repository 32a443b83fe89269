"""Content negotiation and cache lifetime helpers.

- get_supported_mime_type: pick a modern output type the client accepts.
- select_content_type: output content-type policy for a transform.
- get_max_age: derive the derivative max-age from the origin's Cache-Control.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from imgcache.core.constants import DEFAULT_CONTENT_TYPE, DEFAULT_MIN_MAX_AGE
from imgcache.shared.utils.mime import get_extension
from imgcache.shared.utils.numbers import parse_int


@dataclass(frozen=True)
class MediaRange:
    """One entry of an Accept header."""

    media_type: str
    quality: float
    position: int


def _parse_quality(params: list[str]) -> float | None:
    for param in params:
        name, _, value = param.partition("=")
        if name.strip().lower() != "q":
            continue
        try:
            q = float(value.strip())
        except ValueError:
            return None
        if q < 0 or q > 1:
            return None
        return q
    return 1.0


def parse_accept(accept: str | None) -> list[MediaRange]:
    """Parse an Accept header, most preferred first.

    Ranges with q=0 or an invalid q are dropped. Equal weights keep
    header order.
    """
    if not accept:
        return []
    ranges: list[MediaRange] = []
    for position, part in enumerate(accept.split(",")):
        media, *params = part.split(";")
        media = media.strip().lower()
        if not media or "/" not in media:
            continue
        quality = _parse_quality(params)
        if not quality:
            continue
        ranges.append(MediaRange(media, quality, position))
    return sorted(ranges, key=lambda r: (-r.quality, r.position))


def get_supported_mime_type(options: Sequence[str], accept: str | None = "") -> str:
    """Return the option the Accept header prefers, or "" if none is listed.

    Only types the header names explicitly count; wildcards such as
    image/* do not select a modern type. With no options, the header's own
    most preferred type is returned.
    """
    ranges = parse_accept(accept)
    if not options:
        for media_range in ranges:
            if "*" not in media_range.media_type:
                return media_range.media_type
        return ""

    by_lower = {option.lower(): option for option in options}
    for media_range in ranges:
        if media_range.media_type in by_lower:
            return by_lower[media_range.media_type]
    return ""


def select_content_type(
    requested_type: str | None,
    negotiated_type: str | None,
    upstream_type: str | None,
) -> str:
    """Decide the output content type of a transform.

    Order: explicit f parameter, negotiated modern type, origin type when it
    is a known image type, then JPEG.
    """
    if requested_type:
        return requested_type
    if negotiated_type:
        return negotiated_type
    if upstream_type and upstream_type.startswith("image/") and get_extension(upstream_type):
        return upstream_type
    return DEFAULT_CONTENT_TYPE


def parse_cache_control(value: str | None) -> dict[str, str | None]:
    """Parse a Cache-Control header into lowercase directive -> value."""
    directives: dict[str, str | None] = {}
    if not value:
        return directives
    for directive in value.split(","):
        key, sep, arg = directive.strip().partition("=")
        directives[key.lower()] = arg.split("=")[0].lower() if sep and arg else None
    return directives


def get_max_age(cache_control: str | None, minimum: int = DEFAULT_MIN_MAX_AGE) -> int:
    """Return s-maxage (preferred) or max-age in seconds, never below minimum."""
    directives = parse_cache_control(cache_control)
    age = directives.get("s-maxage") or directives.get("max-age") or ""
    if len(age) >= 2 and age.startswith('"') and age.endswith('"'):
        age = age[1:-1]
    seconds = parse_int(age)
    if seconds is None:
        return minimum
    return max(seconds, minimum)
