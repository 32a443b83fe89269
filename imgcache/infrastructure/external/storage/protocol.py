"""Blob store protocol (DIP). Implementations: LocalStorageService, S3StorageService."""

from collections.abc import AsyncIterator
from typing import Any, Protocol


class StorageProtocol(Protocol):
    """Key-prefixed object store (local filesystem, S3-compatible)."""

    async def list(self, prefix: str) -> list[str]:
        """Return references of all objects whose key starts with prefix, in key order."""
        ...

    async def upload(
        self,
        file_data: bytes,
        storage_ref: str,
        content_type: str,
        cache_control: str | None = None,
        metadata: dict[str, str] | None = None,
        compress: bool = False,
    ) -> dict[str, Any]:
        """Write an object atomically: readers see the whole object or nothing."""
        ...

    def download(self, storage_ref: str) -> AsyncIterator[bytes]:
        """Stream object content."""
        ...

    async def delete(self, storage_ref: str) -> bool:
        """Delete object. Returns True if deleted, False if not found."""
        ...

    async def get_metadata(self, storage_ref: str) -> dict[str, Any]:
        """Return size, content_type, cache_control, checksum, last_modified, custom."""
        ...
