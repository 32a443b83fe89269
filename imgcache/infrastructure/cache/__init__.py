"""Cache: derivative store and cache key utilities.

DerivativeCache wraps a blob store (see infrastructure.external.storage);
key format is in keys.py (DRY).
"""

from imgcache.infrastructure.cache.derivative_cache import DerivativeCache
from imgcache.infrastructure.cache.keys import derivative_key, key_prefix

__all__ = [
    "DerivativeCache",
    "derivative_key",
    "key_prefix",
]
