"""Pillow-based image codec: auto-orient, shrink to width, re-encode."""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO

from PIL import Image, ImageOps

from imgcache.core.constants import AVIF, JPEG, PNG, WEBP
from imgcache.domain.entities import TransformOutcome
from imgcache.domain.exceptions import TransformException

logger = logging.getLogger(__name__)

# Output content type -> Pillow format name.
PILLOW_FORMATS: dict[str, str] = {
    AVIF: "AVIF",
    WEBP: "WEBP",
    PNG: "PNG",
    JPEG: "JPEG",
}

_OPAQUE_FORMATS = frozenset({"JPEG"})


def _flatten(img: Image.Image) -> Image.Image:
    """Composite transparent images on white; formats without alpha need RGB."""
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def _save_kwargs(fmt: str, quality: int) -> dict:
    if fmt == "PNG":
        return {"optimize": True}
    if fmt == "JPEG":
        return {"quality": quality, "optimize": True, "progressive": True}
    if fmt == "WEBP":
        return {"quality": quality, "method": 4}
    return {"quality": quality}


def transform_sync(buffer: bytes, width: int, quality: int, content_type: str) -> bytes:
    """Blocking transform; run in a worker thread.

    The image is never enlarged: it is resized only when its (oriented)
    natural width exceeds width, keeping the aspect ratio.
    """
    fmt = PILLOW_FORMATS.get(content_type)
    with Image.open(BytesIO(buffer)) as source:
        fmt = fmt or source.format
        if not fmt:
            raise ValueError(f"No encoder for {content_type}")
        img = ImageOps.exif_transpose(source)

        if img.width > width:
            height = max(1, round(img.height * width / img.width))
            img = img.resize((width, height), Image.Resampling.LANCZOS)

        if fmt in _OPAQUE_FORMATS:
            img = _flatten(img)
        elif img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
            img = img.convert("RGBA")

        output = BytesIO()
        img.save(output, fmt, **_save_kwargs(fmt, quality))
        return output.getvalue()


class PillowImageCodec:
    """IImageCodec implementation on Pillow, off the event loop via asyncio.to_thread."""

    async def transform(
        self,
        buffer: bytes,
        width: int,
        quality: int,
        content_type: str,
    ) -> TransformOutcome:
        try:
            data = await asyncio.to_thread(
                transform_sync, buffer, width, quality, content_type
            )
        except Exception as e:
            logger.debug("Pillow transform to %s failed: %s", content_type, e)
            raise TransformException(content_type, str(e)) from e
        return TransformOutcome(content_type=content_type, buffer=data)
