"""Derivative cache on top of a key-prefixed blob store.

Entries are append-only: a write never replaces an existing object, it
adds a new one whose name encodes its expiry. Expired entries are removed
lazily by the read that finds them.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from imgcache.application.services.hash_service import get_hash
from imgcache.domain.entities.cache_entry import CacheEntry, join_ref
from imgcache.infrastructure.external.storage.protocol import StorageProtocol
from imgcache.shared.utils.datetime import now_ms
from imgcache.shared.utils.mime import get_extension

logger = logging.getLogger(__name__)

FALLBACK_EXTENSION = "bin"


async def _prepend(first: bytes, rest: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    if first:
        yield first
    async for chunk in rest:
        yield chunk


class DerivativeCache:
    """Read/write derivatives under a cache key prefix.

    Storage errors propagate: an unavailable store is fatal for the
    request and there is no uncached fallback.
    """

    def __init__(self, storage: StorageProtocol, compress: bool = False) -> None:
        """Initialize the cache.

        Args:
            storage: Blob store holding the derivatives.
            compress: Ask the store for compressed objects where supported.
        """
        self.storage = storage
        self.compress = compress

    async def read(self, prefix: str, now: int | None = None) -> CacheEntry | None:
        """Return the first live entry under prefix, deleting expired ones on the way.

        Args:
            prefix: Key prefix (directory) of the entries.
            now: Current time in epoch ms; defaults to the clock.

        Returns:
            The live entry, or None when every listed entry was expired.
        """
        current = now_ms() if now is None else now
        for storage_ref in await self.storage.list(join_ref(prefix, "")):
            entry = CacheEntry.from_storage_ref(prefix, storage_ref)
            if entry is None:
                logger.warning("Skipping malformed cache entry name: %s", storage_ref)
                continue
            if entry.is_live(current):
                return entry
            await self.delete(entry)
        return None

    async def open(self, entry: CacheEntry) -> AsyncIterator[bytes]:
        """Open entry for streaming.

        The first chunk is read before returning, so a missing object or an
        unavailable store raises here, before any response has started.
        """
        chunks = self.storage.download(entry.storage_ref)
        try:
            first = await anext(chunks)
        except StopAsyncIteration:
            first = b""
        return _prepend(first, chunks)

    async def delete(self, entry: CacheEntry) -> None:
        deleted = await self.storage.delete(entry.storage_ref)
        if deleted:
            logger.info(
                "Deleted expired cache entry %s (expired at %d)",
                entry.storage_ref,
                entry.expire_at,
            )

    async def write(
        self,
        prefix: str,
        content_type: str,
        expire_at: int,
        max_age: int,
        buffer: bytes,
    ) -> CacheEntry:
        """Persist buffer as a new entry under prefix and return it."""
        entry = CacheEntry.create(
            prefix,
            expire_at=expire_at,
            etag=get_hash([buffer]),
            max_age=max_age,
            extension=get_extension(content_type) or FALLBACK_EXTENSION,
        )
        await self.storage.upload(
            buffer,
            entry.storage_ref,
            content_type,
            cache_control=entry.cache_control,
            compress=self.compress,
        )
        logger.debug(
            "Cached %s (%s, %d bytes, max-age %d)",
            entry.storage_ref,
            content_type,
            len(buffer),
            max_age,
        )
        return entry
