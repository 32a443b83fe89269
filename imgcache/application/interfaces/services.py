"""Collaborator protocols (DIP) for the optimizer: origin fetch and codec."""

from typing import Protocol

from imgcache.domain.entities import OriginAsset, TransformOutcome


class IOriginFetcher(Protocol):
    """Fetches original images. Implementations: HttpOriginFetcher, StorageOriginFetcher."""

    async def fetch(self, url: str) -> OriginAsset:
        """Return the original for url.

        Raises:
            UpstreamException: Origin unreachable or answered with an error status.
        """
        ...


class IImageCodec(Protocol):
    """Re-encodes images. Implementation: PillowImageCodec."""

    async def transform(
        self,
        buffer: bytes,
        width: int,
        quality: int,
        content_type: str,
    ) -> TransformOutcome:
        """Auto-orient, shrink to at most width (never enlarge) and encode as content_type.

        Raises:
            TransformException: Decoding or encoding failed.
        """
        ...
