"""Tests for LocalStorageService (atomic writes, prefix listing, traversal guard)."""

import pytest

from imgcache.infrastructure.exceptions import StorageNotFoundError, StoragePermissionError
from imgcache.infrastructure.external.storage.local_storage import LocalStorageService


async def _read(storage: LocalStorageService, ref: str) -> bytes:
    return b"".join([chunk async for chunk in storage.download(ref)])


@pytest.fixture
def local(tmp_path) -> LocalStorageService:
    return LocalStorageService(str(tmp_path / "store"))


async def test_upload_then_download(local: LocalStorageService) -> None:
    result = await local.upload(b"payload", "key/1.e.60.png", "image/png")
    assert result["size"] == 7
    assert await _read(local, "key/1.e.60.png") == b"payload"
    assert await local.list("key/") == ["key/1.e.60.png"]


async def test_list_filters_by_prefix_and_hides_sidecars(local: LocalStorageService) -> None:
    await local.upload(b"a", "key/2.e.60.png", "image/png")
    await local.upload(b"b", "key/1.e.60.png", "image/png")
    await local.upload(b"c", "other/1.e.60.png", "image/png")
    await local.upload(b"d", "key-longer/1.e.60.png", "image/png")

    assert await local.list("key/") == ["key/1.e.60.png", "key/2.e.60.png"]
    assert await local.list("missing/") == []
    assert len(await local.list("")) == 4


async def test_metadata_keeps_cache_control(local: LocalStorageService) -> None:
    await local.upload(
        b"x",
        "key/1.e.60.webp",
        "image/webp",
        cache_control="public, max-age=60, must-revalidate",
    )
    meta = await local.get_metadata("key/1.e.60.webp")
    assert meta["content_type"] == "image/webp"
    assert meta["cache_control"] == "public, max-age=60, must-revalidate"
    assert meta["size"] == 1


async def test_upload_is_idempotent(local: LocalStorageService) -> None:
    await local.upload(b"first", "key/1.e.60.png", "image/png")
    await local.upload(b"second", "key/1.e.60.png", "image/png")
    assert await _read(local, "key/1.e.60.png") == b"first"


async def test_delete(local: LocalStorageService) -> None:
    await local.upload(b"x", "key/1.e.60.png", "image/png")
    assert await local.delete("key/1.e.60.png") is True
    assert await local.delete("key/1.e.60.png") is False
    assert await local.list("key/") == []


async def test_missing_object(local: LocalStorageService) -> None:
    with pytest.raises(StorageNotFoundError):
        await _read(local, "nope.png")
    with pytest.raises(StorageNotFoundError):
        await local.get_metadata("nope.png")


async def test_path_traversal_is_refused(local: LocalStorageService) -> None:
    with pytest.raises(StoragePermissionError):
        await local.upload(b"x", "../escape.png", "image/png")
    with pytest.raises(StoragePermissionError):
        await local.get_metadata("../../etc/passwd")
