"""Application interfaces (protocols implemented by infrastructure)."""

from imgcache.application.interfaces.services import IImageCodec, IOriginFetcher

__all__ = ["IImageCodec", "IOriginFetcher"]
