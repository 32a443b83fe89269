"""Storage service factory: creates local or S3 backends from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from imgcache.infrastructure.external.storage.protocol import StorageProtocol

if TYPE_CHECKING:
    from imgcache.core.config import Settings


def _create_s3(settings: "Settings", bucket: str) -> StorageProtocol:
    try:
        from imgcache.infrastructure.external.storage.s3_storage import (
            S3StorageService,
        )
    except ImportError as e:
        raise ValueError(
            "S3 backend requires boto3. Install with: pip install 'imgcache[storage]'"
        ) from e
    return S3StorageService(
        bucket=bucket,
        region=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        access_key=settings.s3_access_key,
        secret_key=(
            settings.s3_secret_key.get_secret_value() if settings.s3_secret_key else None
        ),
    )


class StorageFactory:
    """Factory for blob store instances based on configuration."""

    @staticmethod
    def create_storage_service(settings: "Settings | None" = None) -> StorageProtocol:
        """Create the derivative store from settings.

        Args:
            settings: Application settings; if None, uses get_settings().

        Returns:
            LocalStorageService or S3StorageService.

        Raises:
            ValueError: Unknown backend or missing required config.
        """
        from imgcache.core.config import get_settings

        s = settings or get_settings()
        backend = s.storage_backend.lower()

        if backend == "local":
            from imgcache.infrastructure.external.storage.local_storage import (
                LocalStorageService,
            )

            if not s.storage_root:
                raise ValueError("STORAGE_ROOT required for local backend")
            return LocalStorageService(storage_root=s.storage_root)
        if backend == "s3":
            if not s.s3_bucket:
                raise ValueError("S3_BUCKET required for s3 backend")
            return _create_s3(s, s.s3_bucket)
        raise ValueError(
            f"Unknown storage backend: {backend}. Supported: 'local', 's3'"
        )

    @staticmethod
    def create_origin_storage(settings: "Settings | None" = None) -> StorageProtocol:
        """Create the blob store holding originals (origin_backend local or s3).

        Raises:
            ValueError: origin_backend is not a blob store or config is missing.
        """
        from imgcache.core.config import get_settings

        s = settings or get_settings()
        backend = s.origin_backend.lower()

        if backend == "local":
            from imgcache.infrastructure.external.storage.local_storage import (
                LocalStorageService,
            )

            if not s.origin_root:
                raise ValueError("ORIGIN_ROOT required for local origin")
            return LocalStorageService(storage_root=s.origin_root)
        if backend == "s3":
            if not s.origin_s3_bucket:
                raise ValueError("ORIGIN_S3_BUCKET required for s3 origin")
            return _create_s3(s, s.origin_s3_bucket)
        raise ValueError(
            f"Origin backend {backend!r} is not a blob store. Supported: 'local', 's3'"
        )
