"""Domain entities: stored cache entries and request-scoped image assets."""

from imgcache.domain.entities.cache_entry import (
    CacheEntry,
    cache_control_header,
    join_ref,
)
from imgcache.domain.entities.image_asset import OriginAsset, TransformOutcome

__all__ = [
    "CacheEntry",
    "OriginAsset",
    "TransformOutcome",
    "cache_control_header",
    "join_ref",
]
