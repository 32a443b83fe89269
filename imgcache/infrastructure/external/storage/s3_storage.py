"""S3-compatible object storage (AWS S3, MinIO, GCS interop, etc.)."""

from __future__ import annotations

import asyncio
import gzip
import hashlib
from collections.abc import AsyncIterator
from io import BytesIO
from typing import Any

import boto3
from botocore.exceptions import ClientError

from imgcache.infrastructure.exceptions import (
    StorageDeleteError,
    StorageDownloadError,
    StorageListError,
    StorageNotFoundError,
    StorageUploadError,
)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


class S3StorageService:
    """S3-compatible storage; single PUTs make every write atomic.

    Uses boto3 (sync) via asyncio.to_thread for async API. With compress,
    bodies are stored gzip-encoded (Content-Encoding: gzip) and inflated
    again on download.
    """

    CHUNK_SIZE = 64 * 1024  # 64KB

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        client: Any = None,
    ) -> None:
        """Initialize S3 client.

        Args:
            bucket: Bucket name.
            region: AWS region.
            endpoint_url: Custom endpoint (MinIO/Spaces/GCS interop).
            access_key: Optional; uses env/IAM if not set.
            secret_key: Optional.
            client: Pre-built boto3 S3 client (tests, shared sessions).
        """
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        if client is not None:
            self._client = client
        else:
            extra = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
            self._client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                **extra,
            )

    async def list(self, prefix: str) -> list[str]:
        """Return keys starting with prefix, in key order."""
        def _list() -> list[str]:
            paginator = self._client.get_paginator("list_objects_v2")
            keys: list[str] = []
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
            return sorted(keys)

        try:
            return await asyncio.to_thread(_list)
        except Exception as e:
            raise StorageListError(prefix, str(e)) from e

    async def upload(
        self,
        file_data: bytes,
        storage_ref: str,
        content_type: str,
        cache_control: str | None = None,
        metadata: dict[str, str] | None = None,
        compress: bool = False,
    ) -> dict[str, Any]:
        """Upload with a single put_object."""
        def _upload() -> dict[str, Any]:
            checksum = hashlib.sha256(file_data).hexdigest()
            meta = {"sha256": checksum, "original-size": str(len(file_data))}
            if metadata:
                for k, v in metadata.items():
                    meta[k.lower().replace("_", "-")] = v

            params: dict[str, Any] = {
                "Bucket": self.bucket,
                "Key": storage_ref,
                "Body": gzip.compress(file_data) if compress else file_data,
                "ContentType": content_type,
                "Metadata": meta,
            }
            if compress:
                params["ContentEncoding"] = "gzip"
            if cache_control:
                params["CacheControl"] = cache_control
            self._client.put_object(**params)
            return {
                "storage_ref": storage_ref,
                "checksum": checksum,
                "size": len(file_data),
            }

        try:
            return await asyncio.to_thread(_upload)
        except Exception as e:
            raise StorageUploadError(storage_ref, str(e)) from e

    async def download(self, storage_ref: str) -> AsyncIterator[bytes]:
        """Stream object content (inflated when stored gzip-encoded)."""
        def _get() -> bytes:
            try:
                resp = self._client.get_object(Bucket=self.bucket, Key=storage_ref)
            except ClientError as e:
                if _is_not_found(e):
                    raise StorageNotFoundError(storage_ref) from e
                raise StorageDownloadError(storage_ref, str(e)) from e
            body = resp["Body"].read()
            if resp.get("ContentEncoding") == "gzip":
                body = gzip.decompress(body)
            return body

        try:
            body = await asyncio.to_thread(_get)
        except (StorageNotFoundError, StorageDownloadError):
            raise
        except Exception as e:
            raise StorageDownloadError(storage_ref, str(e)) from e
        buf = BytesIO(body)
        while True:
            chunk = buf.read(self.CHUNK_SIZE)
            if not chunk:
                break
            yield chunk

    async def delete(self, storage_ref: str) -> bool:
        """Delete object. Returns True if deleted."""
        def _delete() -> bool:
            try:
                self._client.head_object(Bucket=self.bucket, Key=storage_ref)
            except ClientError as e:
                if _is_not_found(e):
                    return False
                raise
            self._client.delete_object(Bucket=self.bucket, Key=storage_ref)
            return True

        try:
            return await asyncio.to_thread(_delete)
        except Exception as e:
            raise StorageDeleteError(storage_ref, str(e)) from e

    async def get_metadata(self, storage_ref: str) -> dict[str, Any]:
        """Return size, content_type, cache_control, checksum, last_modified, custom."""
        def _head() -> dict[str, Any]:
            try:
                head = self._client.head_object(Bucket=self.bucket, Key=storage_ref)
            except ClientError as e:
                if _is_not_found(e):
                    raise StorageNotFoundError(storage_ref) from e
                raise StorageDownloadError(storage_ref, str(e)) from e
            meta = head.get("Metadata") or {}
            return {
                "size": head["ContentLength"],
                "content_type": head.get("ContentType"),
                "cache_control": head.get("CacheControl"),
                "checksum": meta.get("sha256"),
                "last_modified": head["LastModified"].isoformat(),
                "custom": meta,
            }

        try:
            return await asyncio.to_thread(_head)
        except (StorageNotFoundError, StorageDownloadError):
            raise
        except Exception as e:
            raise StorageDownloadError(storage_ref, str(e)) from e
