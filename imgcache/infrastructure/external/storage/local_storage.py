"""Local filesystem storage with path validation and atomic writes."""

from __future__ import annotations

import asyncio
import hashlib
import json
import os
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, cast

import aiofiles
import aiofiles.os

from imgcache.infrastructure.exceptions import (
    StorageDeleteError,
    StorageDownloadError,
    StorageListError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUploadError,
)
from imgcache.shared.utils.datetime import from_timestamp_utc, utc_now

META_SUFFIX = ".meta.json"
TEMP_PREFIX = ".tmp_"


def _is_object_file(path: Path) -> bool:
    """Skip metadata sidecars and in-flight temp files."""
    return (
        path.is_file()
        and not path.name.endswith(META_SUFFIX)
        and not path.name.startswith(TEMP_PREFIX)
    )


class LocalStorageService:
    """Local filesystem storage with atomic writes and path traversal protection.

    Paths are validated against storage_root. Writes use temp file + rename,
    so a listed object always has its final content. Metadata is stored in a
    .meta.json sidecar. Compression is not supported and is ignored.
    """

    CHUNK_SIZE = 64 * 1024  # 64KB

    def __init__(self, storage_root: str) -> None:
        """Initialize local storage.

        Args:
            storage_root: Base directory for all objects.
        """
        self.storage_root = Path(storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True, mode=0o750)

    def _get_full_path(self, storage_ref: str) -> Path:
        """Resolve and validate path under storage_root. Raises StoragePermissionError if traversal."""
        full_path = (self.storage_root / storage_ref).resolve()
        try:
            full_path.relative_to(self.storage_root)
        except ValueError as e:
            raise StoragePermissionError(storage_ref, "path_validation") from e
        return full_path

    @staticmethod
    def _meta_path(file_path: Path) -> Path:
        return file_path.with_name(file_path.name + META_SUFFIX)

    async def _compute_checksum(self, file_path: Path) -> str:
        """SHA-256 of file."""
        sha256 = hashlib.sha256()
        async with aiofiles.open(file_path, "rb") as f:
            while True:
                chunk = await f.read(self.CHUNK_SIZE)
                if not chunk:
                    break
                sha256.update(chunk)
        return sha256.hexdigest()

    async def _write_metadata(self, file_path: Path, metadata: dict[str, Any]) -> None:
        """Write JSON sidecar."""
        meta_path = self._meta_path(file_path)
        async with aiofiles.open(meta_path, "w") as f:
            await f.write(json.dumps(metadata, indent=2))
        os.chmod(meta_path, 0o640)

    async def _read_metadata(self, file_path: Path) -> dict[str, Any]:
        """Read JSON sidecar or empty dict."""
        meta_path = self._meta_path(file_path)
        if not meta_path.exists():
            return {}
        async with aiofiles.open(meta_path, "r") as f:
            content = await f.read()
            result = json.loads(content)
            return cast(dict[str, Any], result) if isinstance(result, dict) else {}

    def _list_sync(self, prefix: str) -> list[str]:
        directory, _, _ = prefix.rpartition("/")
        search_root = self._get_full_path(directory) if directory else self.storage_root
        if not search_root.is_dir():
            return []
        refs = []
        for path in search_root.rglob("*"):
            if not _is_object_file(path):
                continue
            ref = path.relative_to(self.storage_root).as_posix()
            if ref.startswith(prefix):
                refs.append(ref)
        return sorted(refs)

    async def list(self, prefix: str) -> list[str]:
        """Return object references starting with prefix, sorted."""
        try:
            return await asyncio.to_thread(self._list_sync, prefix)
        except StoragePermissionError:
            raise
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
        """Write with temp file + rename. Idempotent if the object already exists."""
        try:
            target_path = self._get_full_path(storage_ref)
            if target_path.exists():
                existing_meta = await self._read_metadata(target_path)
                return {
                    "storage_ref": storage_ref,
                    "checksum": existing_meta.get("checksum"),
                    "size": target_path.stat().st_size,
                    "uploaded_at": existing_meta.get("uploaded_at", utc_now().isoformat()),
                }

            target_path.parent.mkdir(parents=True, exist_ok=True, mode=0o750)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=target_path.parent,
                prefix=TEMP_PREFIX,
                suffix=target_path.suffix,
            )
            os.close(temp_fd)
            try:
                async with aiofiles.open(temp_path, "wb") as f:
                    await f.write(file_data)
                os.chmod(temp_path, 0o640)
                checksum = await self._compute_checksum(Path(temp_path))
                os.replace(temp_path, target_path)
            finally:
                if Path(temp_path).exists():
                    os.unlink(temp_path)

            upload_meta: dict[str, Any] = {
                "storage_ref": storage_ref,
                "checksum": checksum,
                "size": len(file_data),
                "content_type": content_type,
                "cache_control": cache_control,
                "compressed": False,
                "uploaded_at": utc_now().isoformat(),
                "custom": metadata or {},
            }
            await self._write_metadata(target_path, upload_meta)
            return {
                "storage_ref": storage_ref,
                "checksum": checksum,
                "size": len(file_data),
                "uploaded_at": upload_meta["uploaded_at"],
            }
        except StoragePermissionError:
            raise
        except Exception as e:
            raise StorageUploadError(storage_ref, str(e)) from e

    async def download(self, storage_ref: str) -> AsyncIterator[bytes]:
        """Stream file content."""
        try:
            file_path = self._get_full_path(storage_ref)
            if not file_path.is_file():
                raise StorageNotFoundError(storage_ref)
            async with aiofiles.open(file_path, "rb") as f:
                while True:
                    chunk = await f.read(self.CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk
        except (StorageNotFoundError, StoragePermissionError):
            raise
        except Exception as e:
            raise StorageDownloadError(storage_ref, str(e)) from e

    async def delete(self, storage_ref: str) -> bool:
        """Delete file and metadata. Returns True if deleted.

        Key directories are left in place; concurrent writers may be
        creating entries in them.
        """
        try:
            file_path = self._get_full_path(storage_ref)
            if not file_path.exists():
                return False
            await aiofiles.os.remove(file_path)
            meta_path = self._meta_path(file_path)
            if meta_path.exists():
                await aiofiles.os.remove(meta_path)
            return True
        except FileNotFoundError:
            # Removed by a concurrent reader.
            return False
        except StoragePermissionError:
            raise
        except Exception as e:
            raise StorageDeleteError(storage_ref, str(e)) from e

    async def get_metadata(self, storage_ref: str) -> dict[str, Any]:
        """Return size, content_type, cache_control, checksum, last_modified, custom."""
        file_path = self._get_full_path(storage_ref)
        if not file_path.is_file():
            raise StorageNotFoundError(storage_ref)
        stat = file_path.stat()
        stored = await self._read_metadata(file_path)
        return {
            "size": stat.st_size,
            "content_type": stored.get("content_type"),
            "cache_control": stored.get("cache_control"),
            "checksum": stored.get("checksum"),
            "last_modified": from_timestamp_utc(stat.st_mtime).isoformat(),
            "custom": stored.get("custom", {}),
        }
