"""Origin fetcher for originals kept in a blob store (source bucket/directory)."""

from __future__ import annotations

import logging
from posixpath import splitext

from imgcache.application.services.negotiation import get_max_age
from imgcache.core.constants import DEFAULT_MIN_MAX_AGE
from imgcache.domain.entities import OriginAsset
from imgcache.domain.exceptions import UpstreamException
from imgcache.infrastructure.exceptions import StorageException, StorageNotFoundError
from imgcache.infrastructure.external.storage.protocol import StorageProtocol
from imgcache.shared.utils.mime import get_content_type, normalize_content_type

logger = logging.getLogger(__name__)

BAD_GATEWAY = 502
NOT_FOUND = 404
OK = 200


class StorageOriginFetcher:
    """Read originals from a blob store; the url parameter is the object key.

    Content type and cache-control come from object metadata; when the
    store has no content type, it is guessed from the key's extension.
    """

    def __init__(
        self,
        storage: StorageProtocol,
        min_max_age: int = DEFAULT_MIN_MAX_AGE,
    ) -> None:
        self.storage = storage
        self.min_max_age = min_max_age

    async def fetch(self, url: str) -> OriginAsset:
        key = url.lstrip("/")
        try:
            meta = await self.storage.get_metadata(key)
            buffer = b"".join([chunk async for chunk in self.storage.download(key)])
        except StorageNotFoundError as e:
            logger.info("Origin object not found: %s", key)
            raise UpstreamException(NOT_FOUND, url, "not found") from e
        except StorageException as e:
            logger.warning("Origin object unreadable: %s (%s)", key, e.message)
            raise UpstreamException(BAD_GATEWAY, url, e.message) from e

        content_type = normalize_content_type(meta.get("content_type"))
        if content_type is None:
            content_type = get_content_type(splitext(key)[1].lstrip("."))
        return OriginAsset(
            buffer=buffer,
            content_type=content_type,
            status_code=OK,
            max_age=get_max_age(meta.get("cache_control"), self.min_max_age),
        )
