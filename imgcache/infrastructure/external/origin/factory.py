"""Origin fetcher factory: HTTP base URL or blob store, from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from imgcache.application.interfaces import IOriginFetcher
from imgcache.infrastructure.external.origin.http_origin import HttpOriginFetcher
from imgcache.infrastructure.external.origin.storage_origin import StorageOriginFetcher
from imgcache.infrastructure.external.storage.factory import StorageFactory

if TYPE_CHECKING:
    from imgcache.core.config import Settings


class OriginFactory:
    """Factory for origin fetchers based on configuration."""

    @staticmethod
    def create_origin_fetcher(
        settings: "Settings",
        http_client: httpx.AsyncClient | None = None,
    ) -> IOriginFetcher:
        """Create the fetcher for settings.origin_backend.

        Args:
            settings: Application settings.
            http_client: Shared client for the HTTP origin (owned by the caller).

        Raises:
            ValueError: Unknown backend or missing required config.
        """
        backend = settings.origin_backend.lower()
        if backend == "http":
            if not settings.origin_base_url:
                raise ValueError("ORIGIN_BASE_URL required for http origin")
            return HttpOriginFetcher(
                settings.origin_base_url,
                http_client=http_client,
                min_max_age=settings.min_cache_max_age,
                timeout=settings.origin_timeout_seconds,
            )
        return StorageOriginFetcher(
            StorageFactory.create_origin_storage(settings),
            min_max_age=settings.min_cache_max_age,
        )
