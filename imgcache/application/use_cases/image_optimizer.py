"""Image optimizer use case: validate, look up, fetch, transform, cache, respond.

Flow per request:
    validate -> derive key -> cache read
      hit:  304 when the client copy is fresh, else stream the stored entry
      miss: fetch origin -> pass through (vector / animated) or transform
            -> write entry -> respond
A failed transform serves the original bytes uncached.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence

from imgcache.application.dtos.image import ImageResponse
from imgcache.application.interfaces import IImageCodec, IOriginFetcher
from imgcache.application.services.animation_sniffer import is_animated
from imgcache.application.services.freshness import is_fresh
from imgcache.application.services.hash_service import HashService, get_hash
from imgcache.application.services.negotiation import (
    get_supported_mime_type,
    select_content_type,
)
from imgcache.application.services.request_validator import ImageRequestValidator
from imgcache.core.constants import ANIMATABLE_TYPES, MODERN_TYPES, VECTOR_TYPES
from imgcache.domain.entities import (
    CacheEntry,
    OriginAsset,
    TransformOutcome,
    cache_control_header,
)
from imgcache.domain.exceptions import TransformException
from imgcache.infrastructure.cache import DerivativeCache, derivative_key, key_prefix
from imgcache.shared.telemetry.tracing import add_span_attributes, traced
from imgcache.shared.utils.datetime import now_ms

logger = logging.getLogger(__name__)

CACHE_HIT = "HIT"
CACHE_MISS = "MISS"
CACHE_BYPASS = "BYPASS"
NOT_MODIFIED = 304


def _log_write_failure(write: asyncio.Future) -> None:
    """Collect the outcome of a cache write, which may outlive its request."""
    if write.cancelled():
        return
    exc = write.exception()
    if exc is not None:
        logger.error("Cache write failed: %s", exc, exc_info=exc)


def is_pass_through(content_type: str | None, buffer: bytes) -> bool:
    """True for content that must not be re-encoded: vectors and animations."""
    if not content_type:
        return False
    if content_type in VECTOR_TYPES:
        return True
    return content_type in ANIMATABLE_TYPES and is_animated(buffer)


class ImageOptimizerService:
    """Serve resized and re-encoded images from a derivative cache.

    Collaborators are injected; the service holds no per-request state,
    so one instance serves all requests of a process.
    """

    def __init__(
        self,
        cache: DerivativeCache,
        origin: IOriginFetcher,
        codec: IImageCodec,
        validator: ImageRequestValidator,
        *,
        cache_version: int = 1,
        cache_prefix: str = "",
        hash_service: HashService | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize the optimizer.

        Args:
            cache: Derivative cache.
            origin: Fetcher for original images.
            codec: Image re-encoder.
            validator: Query validator (width and format policy).
            cache_version: First element of every cache key.
            cache_prefix: Namespace of all keys in the derivative store.
            hash_service: Cache key hasher; defaults to SHA-256.
            clock: Current time in epoch milliseconds.
        """
        self.cache = cache
        self.origin = origin
        self.codec = codec
        self.validator = validator
        self.cache_version = cache_version
        self.cache_prefix = cache_prefix
        self.hash_service = hash_service or HashService()
        self.clock = clock

    async def optimize(
        self,
        query: Mapping[str, Sequence[str]],
        headers: Mapping[str, str],
    ) -> ImageResponse:
        """Handle one image request.

        Args:
            query: Parameter name -> all values given for it.
            headers: Request headers (any key case).

        Raises:
            ValidationException: Invalid query (400).
            UpstreamException: Origin failed (origin status).
            StorageException: Derivative store unavailable (503).
        """
        request_headers = {k.lower(): v for k, v in headers.items()}
        params = self.validator.validate(query)
        negotiated = get_supported_mime_type(
            MODERN_TYPES, request_headers.get("accept", "")
        )
        key = derivative_key(self.cache_version, params, negotiated, self.hash_service)
        prefix = key_prefix(self.cache_prefix, key)

        entry = await self.cache.read(prefix, self.clock())
        if entry is not None:
            logger.debug("Cache hit %s", entry.storage_ref)
            add_span_attributes(cache_status=CACHE_HIT)
            return await self._respond_cached(entry, request_headers)

        logger.debug("Cache miss %s for %s (w=%d)", prefix, params.url, params.width)
        add_span_attributes(cache_status=CACHE_MISS)
        asset = await self._fetch(params.url)

        if is_pass_through(asset.content_type, asset.buffer):
            outcome = TransformOutcome(
                content_type=asset.content_type or "", buffer=asset.buffer
            )
            return await self._store_and_respond(prefix, outcome, asset, request_headers)

        content_type = select_content_type(
            params.requested_type, negotiated, asset.content_type
        )
        try:
            outcome = await self._transform(
                asset.buffer,
                width=params.width,
                quality=params.quality,
                content_type=content_type,
            )
        except TransformException as e:
            logger.warning(
                "Transform of %s to %s failed, serving original uncached: %s",
                params.url,
                content_type,
                e.details.get("reason", e.message),
            )
            return self._respond(
                asset.status_code,
                asset.content_type,
                asset.max_age,
                asset.buffer,
                request_headers,
                cache_status=CACHE_BYPASS,
            )
        return await self._store_and_respond(prefix, outcome, asset, request_headers)

    @traced("image.origin_fetch")
    async def _fetch(self, url: str) -> OriginAsset:
        return await self.origin.fetch(url)

    @traced("image.transform")
    async def _transform(
        self,
        buffer: bytes,
        *,
        width: int,
        quality: int,
        content_type: str,
    ) -> TransformOutcome:
        return await self.codec.transform(buffer, width, quality, content_type)

    async def _store_and_respond(
        self,
        prefix: str,
        outcome: TransformOutcome,
        asset: OriginAsset,
        request_headers: Mapping[str, str],
    ) -> ImageResponse:
        expire_at = self.clock() + asset.max_age * 1000
        write = asyncio.ensure_future(
            self.cache.write(
                prefix,
                outcome.content_type,
                expire_at,
                asset.max_age,
                outcome.buffer,
            )
        )
        write.add_done_callback(_log_write_failure)
        # The write runs to completion even if this request is cancelled.
        entry = await asyncio.shield(write)
        return self._respond(
            asset.status_code,
            outcome.content_type,
            asset.max_age,
            outcome.buffer,
            request_headers,
            etag=entry.etag,
        )

    async def _respond_cached(
        self,
        entry: CacheEntry,
        request_headers: Mapping[str, str],
    ) -> ImageResponse:
        headers = {"Cache-Control": entry.cache_control, "ETag": entry.etag}
        if is_fresh(request_headers, entry.etag):
            return ImageResponse(NOT_MODIFIED, headers, cache_status=CACHE_HIT)
        if entry.content_type:
            headers["Content-Type"] = entry.content_type
        return ImageResponse(
            200,
            headers,
            stream=await self.cache.open(entry),
            cache_status=CACHE_HIT,
        )

    def _respond(
        self,
        status_code: int,
        content_type: str | None,
        max_age: int,
        buffer: bytes,
        request_headers: Mapping[str, str],
        etag: str | None = None,
        cache_status: str = CACHE_MISS,
    ) -> ImageResponse:
        """Headers first, then the 304 decision, so a 304 carries them too."""
        etag = etag or get_hash([buffer])
        headers = {"Cache-Control": cache_control_header(max_age), "ETag": etag}
        if is_fresh(request_headers, etag):
            return ImageResponse(NOT_MODIFIED, headers, cache_status=cache_status)
        if content_type:
            headers["Content-Type"] = content_type
        return ImageResponse(status_code, headers, body=buffer, cache_status=cache_status)
