"""Hash service for cache keys and etags (ordered digest + URL-safe encoding)."""

from __future__ import annotations

import base64
import hashlib
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Union

HashItem = Union[int, float, str, bytes, bytearray, memoryview]


class HashAlgorithm(ABC):
    """Abstract hash algorithm (OCP)."""

    @abstractmethod
    def new(self) -> Any:
        """Return a fresh hashlib-style object (update/digest)."""
        ...


class SHA256Algorithm(HashAlgorithm):
    """SHA-256 implementation."""

    def new(self) -> Any:
        return hashlib.sha256()


def _to_bytes(item: HashItem) -> bytes:
    # bool is an int subclass; reject it rather than hash "True".
    if isinstance(item, bool):
        raise TypeError("bool is not a hashable cache key item")
    if isinstance(item, (int, float)):
        return str(item).encode()
    if isinstance(item, str):
        return item.encode()
    if isinstance(item, (bytes, bytearray, memoryview)):
        return bytes(item)
    raise TypeError(f"Unsupported hash item type: {type(item).__name__}")


class HashService:
    """Single source of truth for cache key and etag computation.

    Items are digested in order: numbers as their decimal string, strings
    as UTF-8, buffers as-is. Output is standard base64 with '/' replaced
    by '-' so it can be used as a path segment.
    """

    def __init__(self, algorithm: HashAlgorithm | None = None) -> None:
        self.algorithm = algorithm or SHA256Algorithm()

    def hash(self, items: Iterable[HashItem]) -> str:
        digest = self.algorithm.new()
        for item in items:
            digest.update(_to_bytes(item))
        # https://en.wikipedia.org/wiki/Base64#Filenames
        return base64.b64encode(digest.digest()).decode("ascii").replace("/", "-")


_default = HashService()


def get_hash(items: Iterable[HashItem]) -> str:
    """Digest items with the default SHA-256 service."""
    return _default.hash(items)
