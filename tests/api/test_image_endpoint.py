"""API tests for GET /api/v1/image (status codes, headers, plain-text errors)."""

from io import BytesIO
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from PIL import Image

from imgcache.application.services.request_validator import ImageRequestValidator
from imgcache.application.use_cases.image_optimizer import ImageOptimizerService
from imgcache.infrastructure.cache import DerivativeCache
from imgcache.infrastructure.exceptions import StorageDownloadError, StorageListError
from imgcache.main import app

IMAGE_PATH = "/api/v1/image"


def _jpeg(size: tuple[int, int] = (800, 600)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, (30, 60, 200)).save(buf, "JPEG")
    return buf.getvalue()


@pytest.mark.parametrize(
    "params, message",
    [
        ({"w": "384", "q": "75"}, '"url" parameter is required'),
        (
            [("url", "/a.jpg"), ("url", "/b.jpg"), ("w", "384"), ("q", "75")],
            '"url" parameter cannot be an array',
        ),
        ({"url": "/a.jpg", "q": "75"}, '"w" parameter (width) is required'),
        (
            {"url": "/a.jpg", "w": "abc", "q": "75"},
            '"w" parameter (width) must be a number greater than 0',
        ),
        (
            {"url": "/a.jpg", "w": "385", "q": "75"},
            '"w" parameter (width) of 385 is not allowed',
        ),
        (
            {"url": "/a.jpg", "w": "384", "q": "101"},
            '"q" parameter (quality) must be a number between 1 and 100',
        ),
        (
            {"url": "/a.jpg", "w": "384", "q": "75", "f": "bmp"},
            '"f" parameter (format) of bmp is not allowed',
        ),
    ],
)
async def test_invalid_query_is_400_plain_text(
    client: AsyncClient, origin, params, message: str
) -> None:
    response = await client.get(IMAGE_PATH, params=params)
    assert response.status_code == 400
    assert response.text == message
    assert response.headers["content-type"].startswith("text/plain")
    assert origin.calls == []


@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
async def test_other_methods_are_405(client: AsyncClient, method: str) -> None:
    response = await client.request(method, IMAGE_PATH, params={"url": "/a.jpg"})
    assert response.status_code == 405
    assert response.headers["allow"] == "OPTIONS, GET"
    assert response.text == "METHOD-NOT-ALLOWED"


async def test_miss_then_conditional_hit(client: AsyncClient, origin) -> None:
    origin.add("/photo.jpg", _jpeg(), "image/jpeg", max_age=3600)
    params = {"url": "/photo.jpg", "w": "384", "q": "75"}
    accept = {"Accept": "image/avif;q=0.5,image/webp,*/*"}

    miss = await client.get(IMAGE_PATH, params=params, headers=accept)
    assert miss.status_code == 200
    assert miss.headers["x-cache"] == "MISS"
    assert miss.headers["content-type"] == "image/webp"
    assert miss.headers["cache-control"] == "public, max-age=3600, must-revalidate"
    assert Image.open(BytesIO(miss.content)).size == (384, 288)
    etag = miss.headers["etag"]

    not_modified = await client.get(
        IMAGE_PATH, params=params, headers={**accept, "If-None-Match": etag}
    )
    assert not_modified.status_code == 304
    assert not_modified.headers["x-cache"] == "HIT"
    assert not_modified.headers["etag"] == etag
    assert not_modified.content == b""

    hit = await client.get(IMAGE_PATH, params=params, headers=accept)
    assert hit.status_code == 200
    assert hit.headers["x-cache"] == "HIT"
    assert hit.headers["content-type"] == "image/webp"
    assert hit.content == miss.content
    assert origin.calls == ["/photo.jpg"]


async def test_no_cache_request_is_not_304(client: AsyncClient, origin) -> None:
    origin.add("/photo.jpg", _jpeg(), "image/jpeg")
    params = {"url": "/photo.jpg", "w": "384", "q": "75"}
    first = await client.get(IMAGE_PATH, params=params)

    response = await client.get(
        IMAGE_PATH,
        params=params,
        headers={"If-None-Match": first.headers["etag"], "Cache-Control": "no-cache"},
    )
    assert response.status_code == 200


async def test_format_parameter(client: AsyncClient, origin) -> None:
    origin.add("/photo.jpg", _jpeg(), "image/jpeg")
    response = await client.get(
        IMAGE_PATH,
        params={"url": "/photo.jpg", "w": "640", "q": "60", "f": "png"},
        headers={"Accept": "image/webp"},
    )
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"


async def test_upstream_error_status_and_message(client: AsyncClient) -> None:
    response = await client.get(
        IMAGE_PATH, params={"url": "/missing.jpg", "w": "384", "q": "75"}
    )
    assert response.status_code == 404
    assert response.text == '"url" parameter is valid but upstream response is invalid'


async def test_transform_failure_serves_original(client: AsyncClient, origin) -> None:
    origin.add("/broken.jpg", b"not really a jpeg", "image/jpeg")
    response = await client.get(
        IMAGE_PATH, params={"url": "/broken.jpg", "w": "384", "q": "75"}
    )
    assert response.status_code == 200
    assert response.headers["x-cache"] == "BYPASS"
    assert response.content == b"not really a jpeg"


async def test_storage_failure_is_503(client: AsyncClient, origin, clock) -> None:
    storage = AsyncMock()
    storage.list.side_effect = StorageListError("key/", "connection refused")
    app.state.image_optimizer = ImageOptimizerService(
        cache=DerivativeCache(storage),
        origin=origin,
        codec=AsyncMock(),
        validator=ImageRequestValidator([384], ["image/webp"]),
        clock=clock,
    )
    response = await client.get(
        IMAGE_PATH, params={"url": "/photo.jpg", "w": "384", "q": "75"}
    )
    assert response.status_code == 503
    assert response.text == "Image cache storage is unavailable"


async def test_unreadable_cached_entry_is_503(
    client: AsyncClient, origin, storage, monkeypatch
) -> None:
    origin.add("/photo.jpg", _jpeg(), "image/jpeg")
    params = {"url": "/photo.jpg", "w": "384", "q": "75"}
    warm = await client.get(IMAGE_PATH, params=params)
    assert warm.headers["x-cache"] == "MISS"

    async def failing_download(storage_ref: str):
        raise StorageDownloadError(storage_ref, "connection reset")
        yield b""  # pragma: no cover

    monkeypatch.setattr(storage, "download", failing_download)
    response = await client.get(IMAGE_PATH, params=params)
    assert response.status_code == 503
    assert response.text == "Image cache storage is unavailable"
