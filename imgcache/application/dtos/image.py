"""Image request/response DTOs (application layer, no HTTP types)."""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ImageParams:
    """Validated query parameters of an image request.

    format is the raw f token ("" when absent); requested_type is the
    matching mime type (None when absent).
    """

    url: str
    width: int
    quality: int
    format: str = ""
    requested_type: str | None = None


@dataclass
class ImageResponse:
    """Transport-agnostic outcome of an image request.

    Exactly one of body/stream is set for a 200; neither for a 304.
    """

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    stream: AsyncIterator[bytes] | None = None
    cache_status: str = "MISS"

    @property
    def media_type(self) -> str | None:
        return self.headers.get("Content-Type")
