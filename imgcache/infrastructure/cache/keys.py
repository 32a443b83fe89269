"""Cache key builders. Single place for key format (DRY).

A cache key is the digest of the ordered tuple
(cache_version, url, width, quality, format, negotiated mime type); its
prefix is the directory all entries for that tuple live under.
"""

from imgcache.application.dtos.image import ImageParams
from imgcache.application.services.hash_service import HashService, get_hash
from imgcache.domain.entities.cache_entry import join_ref


def derivative_key(
    cache_version: int,
    params: ImageParams,
    negotiated_type: str,
    hash_service: HashService | None = None,
) -> str:
    """Return the URL-safe cache key for one request tuple.

    Args:
        cache_version: Bump to invalidate every stored derivative.
        params: Validated request parameters; the raw f token is hashed.
        negotiated_type: Modern type picked from Accept ("" when none).
        hash_service: Optional hasher; defaults to SHA-256.
    """
    items = [
        cache_version,
        params.url,
        params.width,
        params.quality,
        params.format,
        negotiated_type,
    ]
    return hash_service.hash(items) if hash_service else get_hash(items)


def key_prefix(cache_prefix: str, key: str) -> str:
    """Storage prefix (directory) of a key: '{cache_prefix}/{key}'."""
    return join_ref(cache_prefix, key)
