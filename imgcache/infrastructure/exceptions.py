"""Infrastructure exceptions for blob storage operations.

Storage errors extend ImageCacheException so presentation can map them
to HTTP responses consistently. Any of them is fatal for the current
request: there is no fallback when the derivative store is unavailable.
"""

from imgcache.domain.exceptions import ImageCacheException


class StorageException(ImageCacheException):
    """Base exception for storage operations."""

    status_code = 503
    MESSAGE = "Image cache storage is unavailable"


class StorageNotFoundError(StorageException):
    """Object not found in storage."""

    status_code = 404

    def __init__(self, storage_ref: str) -> None:
        super().__init__(
            f"File not found: {storage_ref}",
            "STORAGE_NOT_FOUND",
            {"storage_ref": storage_ref},
        )


class StorageListError(StorageException):
    """Listing objects under a prefix failed."""

    def __init__(self, prefix: str, reason: str) -> None:
        super().__init__(
            f"Failed to list prefix: {prefix}",
            "STORAGE_LIST_ERROR",
            {"prefix": prefix, "reason": reason},
        )


class StorageUploadError(StorageException):
    """Object upload failed."""

    def __init__(self, storage_ref: str, reason: str) -> None:
        super().__init__(
            f"Failed to upload file: {storage_ref}",
            "STORAGE_UPLOAD_ERROR",
            {"storage_ref": storage_ref, "reason": reason},
        )


class StorageDownloadError(StorageException):
    """Object download failed."""

    def __init__(self, storage_ref: str, reason: str) -> None:
        super().__init__(
            f"Failed to download file: {storage_ref}",
            "STORAGE_DOWNLOAD_ERROR",
            {"storage_ref": storage_ref, "reason": reason},
        )


class StorageDeleteError(StorageException):
    """Object deletion failed."""

    def __init__(self, storage_ref: str, reason: str) -> None:
        super().__init__(
            f"Failed to delete file: {storage_ref}",
            "STORAGE_DELETE_ERROR",
            {"storage_ref": storage_ref, "reason": reason},
        )


class StoragePermissionError(StorageException):
    """Storage reference escapes the configured root."""

    status_code = 400

    def __init__(self, storage_ref: str, operation: str) -> None:
        super().__init__(
            f"Permission denied for {operation} on {storage_ref}",
            "STORAGE_PERMISSION_ERROR",
            {"storage_ref": storage_ref, "operation": operation},
        )
