"""Request-scoped image values: the fetched original and the transform result.

Neither is persisted as-is; the optimizer turns a TransformOutcome (or a
pass-through OriginAsset) into a CacheEntry on write.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class OriginAsset:
    """Original image fetched from the origin for one cache miss.

    max_age is the origin's cache-control max-age in seconds, already
    clamped to the configured minimum.
    """

    buffer: bytes
    content_type: str | None
    status_code: int
    max_age: int


@dataclass(frozen=True)
class TransformOutcome:
    """Bytes to store and serve, either re-encoded or passed through."""

    content_type: str
    buffer: bytes
