"""Application DTOs."""

from imgcache.application.dtos.image import ImageParams, ImageResponse

__all__ = ["ImageParams", "ImageResponse"]
