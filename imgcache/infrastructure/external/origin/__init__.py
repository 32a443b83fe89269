"""Origin fetchers: HTTP base URL and blob store (local/S3)."""

from imgcache.infrastructure.external.origin.factory import OriginFactory
from imgcache.infrastructure.external.origin.http_origin import HttpOriginFetcher
from imgcache.infrastructure.external.origin.storage_origin import StorageOriginFetcher

__all__ = [
    "HttpOriginFetcher",
    "OriginFactory",
    "StorageOriginFetcher",
]
