"""Tests for DerivativeCache: append-only writes and lazy expiry on read."""

from unittest.mock import AsyncMock

import pytest

from imgcache.application.services.hash_service import get_hash
from imgcache.infrastructure.cache import DerivativeCache
from imgcache.infrastructure.exceptions import StorageListError, StorageNotFoundError
from imgcache.infrastructure.external.storage.local_storage import LocalStorageService

PREFIX = "cache/key"


async def _read_all(cache: DerivativeCache, entry) -> bytes:
    stream = await cache.open(entry)
    return b"".join([chunk async for chunk in stream])


async def test_read_empty_prefix(derivative_cache: DerivativeCache) -> None:
    assert await derivative_cache.read(PREFIX, now=0) is None


async def test_write_then_read(derivative_cache: DerivativeCache) -> None:
    written = await derivative_cache.write(PREFIX, "image/webp", 5000, 60, b"webp-bytes")
    assert written.etag == get_hash([b"webp-bytes"])
    assert written.extension == "webp"
    assert written.storage_ref == f"{PREFIX}/5000.{written.etag}.60.webp"

    entry = await derivative_cache.read(PREFIX, now=4999)
    assert entry == written
    assert await _read_all(derivative_cache, entry) == b"webp-bytes"


async def test_write_stores_cache_control(
    derivative_cache: DerivativeCache, storage: LocalStorageService
) -> None:
    entry = await derivative_cache.write(PREFIX, "image/png", 5000, 60, b"png")
    meta = await storage.get_metadata(entry.storage_ref)
    assert meta["cache_control"] == "public, max-age=60, must-revalidate"
    assert meta["content_type"] == "image/png"


async def test_expired_entries_are_deleted_on_read(
    derivative_cache: DerivativeCache, storage: LocalStorageService
) -> None:
    await derivative_cache.write(PREFIX, "image/png", 1000, 1, b"old")
    # Nothing is removed before a read discovers the expiry.
    assert len(await storage.list(PREFIX + "/")) == 1

    assert await derivative_cache.read(PREFIX, now=1000) is None
    assert await storage.list(PREFIX + "/") == []


async def test_two_writes_same_bytes(
    derivative_cache: DerivativeCache, storage: LocalStorageService
) -> None:
    """Same bytes twice: two entries, the first live one in listing order is served."""
    first = await derivative_cache.write(PREFIX, "image/png", 1000, 1, b"same")
    second = await derivative_cache.write(PREFIX, "image/png", 2000, 1, b"same")
    assert first.storage_ref != second.storage_ref
    assert first.etag == second.etag
    assert len(await storage.list(PREFIX + "/")) == 2

    assert await derivative_cache.read(PREFIX, now=500) == first
    assert len(await storage.list(PREFIX + "/")) == 2

    assert await derivative_cache.read(PREFIX, now=1500) == second
    assert await storage.list(PREFIX + "/") == [second.storage_ref]


async def test_malformed_names_are_skipped(
    derivative_cache: DerivativeCache, storage: LocalStorageService
) -> None:
    await storage.upload(b"junk", f"{PREFIX}/not-an-entry", "application/octet-stream")
    live = await derivative_cache.write(PREFIX, "image/png", 9000, 9, b"png")
    assert await derivative_cache.read(PREFIX, now=0) == live
    assert f"{PREFIX}/not-an-entry" in await storage.list(PREFIX + "/")


async def test_unknown_content_type_gets_fallback_extension(
    derivative_cache: DerivativeCache,
) -> None:
    entry = await derivative_cache.write(PREFIX, "application/x-weird", 9000, 9, b"?")
    assert entry.extension == "bin"


async def test_prefixes_do_not_leak(derivative_cache: DerivativeCache) -> None:
    await derivative_cache.write("cache/key-2", "image/png", 9000, 9, b"other")
    assert await derivative_cache.read("cache/key", now=0) is None


async def test_storage_errors_propagate() -> None:
    storage = AsyncMock()
    storage.list.side_effect = StorageListError("cache/key/", "unreachable")
    with pytest.raises(StorageListError):
        await DerivativeCache(storage).read(PREFIX, now=0)


async def test_open_raises_before_streaming_when_object_is_gone(
    derivative_cache: DerivativeCache, storage: LocalStorageService
) -> None:
    entry = await derivative_cache.write(PREFIX, "image/png", 9000, 9, b"png-bytes")
    await storage.delete(entry.storage_ref)
    with pytest.raises(StorageNotFoundError):
        await derivative_cache.open(entry)
