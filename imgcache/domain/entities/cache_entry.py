"""Cache entry domain entity.

A stored derivative is addressed by its name alone: everything needed to
serve it (expiry, etag, max-age, extension) is encoded in the object name
under the cache key prefix, so a listing is enough to pick a live entry.
"""

from dataclasses import dataclass

from imgcache.core.constants import ENTRY_NAME_SEP
from imgcache.shared.utils.mime import get_content_type

_FIELD_COUNT = 4


def cache_control_header(max_age: int) -> str:
    """Cache-Control value sent with (and stored alongside) every derivative."""
    return f"public, max-age={max_age}, must-revalidate"


@dataclass(frozen=True)
class CacheEntry:
    """One stored derivative (or pass-through original) under a key prefix.

    Name layout: "{expire_at}.{etag}.{max_age}.{extension}". The etag is
    the URL-safe base64 content digest, which never contains a dot.
    """

    storage_ref: str
    expire_at: int
    etag: str
    max_age: int
    extension: str

    @staticmethod
    def compose_name(expire_at: int, etag: str, max_age: int, extension: str) -> str:
        return ENTRY_NAME_SEP.join((str(expire_at), etag, str(max_age), extension))

    @classmethod
    def create(
        cls,
        prefix: str,
        expire_at: int,
        etag: str,
        max_age: int,
        extension: str,
    ) -> "CacheEntry":
        """Build an entry and its storage reference under prefix."""
        name = cls.compose_name(expire_at, etag, max_age, extension)
        return cls(
            storage_ref=join_ref(prefix, name),
            expire_at=expire_at,
            etag=etag,
            max_age=max_age,
            extension=extension,
        )

    @classmethod
    def from_storage_ref(cls, prefix: str, storage_ref: str) -> "CacheEntry | None":
        """Parse an entry from a listed reference; None when the name is malformed."""
        base = join_ref(prefix, "")
        name = storage_ref[len(base):] if storage_ref.startswith(base) else storage_ref
        parts = name.split(ENTRY_NAME_SEP)
        if len(parts) != _FIELD_COUNT or "/" in name:
            return None
        expire_at, etag, max_age, extension = parts
        try:
            return cls(
                storage_ref=storage_ref,
                expire_at=int(expire_at),
                etag=etag,
                max_age=int(max_age),
                extension=extension,
            )
        except ValueError:
            return None

    @property
    def content_type(self) -> str | None:
        return get_content_type(self.extension)

    @property
    def cache_control(self) -> str:
        return cache_control_header(self.max_age)

    def is_live(self, now_ms: int) -> bool:
        """True while now is strictly before the expiry timestamp."""
        return now_ms < self.expire_at


def join_ref(prefix: str, name: str) -> str:
    """Join storage reference segments with '/', ignoring empty ones."""
    parts = [p.strip("/") for p in (prefix, name) if p and p.strip("/")]
    joined = "/".join(parts)
    if not name:
        return f"{joined}/" if joined else ""
    return joined
