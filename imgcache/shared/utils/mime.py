"""Mime type <-> file extension mapping.

Extensions are part of stored entry names, so the common image types are
pinned here instead of relying on the platform's mime.types database.
"""

import mimetypes

_EXTENSION_BY_TYPE: dict[str, str] = {
    "image/avif": "avif",
    "image/webp": "webp",
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/gif": "gif",
    "image/svg+xml": "svg",
    "image/apng": "apng",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
    "image/x-icon": "ico",
    "image/vnd.microsoft.icon": "ico",
    "image/heic": "heic",
    "image/heif": "heif",
}

_TYPE_BY_EXTENSION: dict[str, str] = {
    "avif": "image/avif",
    "webp": "image/webp",
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "apng": "image/apng",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "ico": "image/x-icon",
    "heic": "image/heic",
    "heif": "image/heif",
}


def normalize_content_type(value: str | None) -> str | None:
    """Strip parameters and lowercase: 'Image/SVG+xml; charset=utf-8' -> 'image/svg+xml'."""
    if not value:
        return None
    media = value.split(";")[0].strip().lower()
    return media or None


def get_extension(content_type: str | None) -> str | None:
    """Return the file extension (without dot) for a content type, or None if unknown."""
    media = normalize_content_type(content_type)
    if media is None:
        return None
    if media in _EXTENSION_BY_TYPE:
        return _EXTENSION_BY_TYPE[media]
    guessed = mimetypes.guess_extension(media, strict=True)
    return guessed.lstrip(".") if guessed else None


def get_content_type(extension: str | None) -> str | None:
    """Return the content type for an extension (without dot), or None if unknown."""
    if not extension:
        return None
    ext = extension.lower()
    if ext in _TYPE_BY_EXTENSION:
        return _TYPE_BY_EXTENSION[ext]
    guessed, _ = mimetypes.guess_type(f"file.{ext}", strict=True)
    return guessed
