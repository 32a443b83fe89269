"""Image codec: Pillow implementation of IImageCodec."""

from imgcache.infrastructure.external.codec.pillow_codec import PillowImageCodec

__all__ = ["PillowImageCodec"]
