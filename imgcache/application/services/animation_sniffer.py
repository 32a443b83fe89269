"""Animated image detection for GIF, PNG (APNG) and WebP buffers.

Scans container structure only; pixel data is never decoded. Every walk
is bounded by the buffer length, so truncated or malformed input ends the
scan with a deterministic answer instead of raising.
"""

from __future__ import annotations

from enum import Enum

GIF_SIGNATURE = b"GIF"
PNG_SIGNATURE = bytes.fromhex("89504e470d0a1a0a")
WEBP_SIGNATURE = b"WEBP"
WEBP_ANIM_CHUNK = b"ANIM"

_GIF_IMAGE_DESCRIPTOR = 0x2C
_GIF_EXTENSION = 0x21
_GIF_TRAILER = 0x3B
_GIF_HEADER_SIZE = 6
_GIF_SCREEN_DESCRIPTOR_SIZE = 7
_GIF_IMAGE_DESCRIPTOR_SIZE = 10
_GIF_COLOR_TABLE_FLAG = 0x80
_GIF_COLOR_TABLE_SIZE_MASK = 0x07

_PNG_CHUNK_OVERHEAD = 12  # length + type + crc


class ImageFormat(str, Enum):
    """Container formats the sniffer recognizes."""

    GIF = "gif"
    PNG = "png"
    WEBP = "webp"


def detect_format(buffer: bytes) -> ImageFormat | None:
    """Classify the container by signature; None when unrecognized."""
    if buffer[:3] == GIF_SIGNATURE:
        return ImageFormat.GIF
    if buffer[:8] == PNG_SIGNATURE:
        return ImageFormat.PNG
    if buffer[8:12] == WEBP_SIGNATURE:
        return ImageFormat.WEBP
    return None


def _color_table_size(flags: int) -> int:
    if not flags & _GIF_COLOR_TABLE_FLAG:
        return 0
    return 3 * 2 ** ((flags & _GIF_COLOR_TABLE_SIZE_MASK) + 1)


def _sub_blocks_length(buffer: bytes, offset: int) -> int:
    """Length of a chain of data sub-blocks starting at offset, terminator included."""
    length = 0
    end = len(buffer)
    while offset + length < end and buffer[offset + length]:
        length += buffer[offset + length] + 1
    return length + 1


def is_animated_gif(buffer: bytes) -> bool:
    """True when two or more image descriptors precede the trailer."""
    end = len(buffer)
    if end <= 10:
        return False

    offset = _GIF_HEADER_SIZE + _GIF_SCREEN_DESCRIPTOR_SIZE
    offset += _color_table_size(buffer[10])

    images = 0
    while images < 2 and offset < end:
        block = buffer[offset]
        if block == _GIF_IMAGE_DESCRIPTOR:
            images += 1
            flags_at = offset + 9
            if flags_at >= end:
                break
            offset += _GIF_IMAGE_DESCRIPTOR_SIZE
            offset += _color_table_size(buffer[flags_at])
            # LZW minimum code size byte, then the image data sub-blocks.
            offset += 1 + _sub_blocks_length(buffer, offset + 1)
        elif block == _GIF_EXTENSION:
            # Plain text extensions could be frames in theory; no browser renders them.
            offset += 2
            offset += _sub_blocks_length(buffer, offset)
        else:
            # Trailer or garbage: nothing after this point counts.
            break

    return images > 1


def is_animated_png(buffer: bytes) -> bool:
    """True for a well-ordered APNG: acTL, then fcTL+IDAT, then fcTL+fdAT.

    Any IDAT or fdAT out of order relative to acTL/fcTL makes the image
    static.
    """
    has_actl = False
    has_idat = False
    has_fdat = False
    previous: bytes | None = None

    end = len(buffer)
    offset = len(PNG_SIGNATURE)
    while offset + 8 <= end:
        length = int.from_bytes(buffer[offset:offset + 4], "big")
        chunk_type = buffer[offset + 4:offset + 8]

        if chunk_type == b"acTL":
            has_actl = True
        elif chunk_type == b"IDAT":
            if not has_actl or previous != b"fcTL":
                return False
            has_idat = True
        elif chunk_type == b"fdAT":
            if not has_idat or previous != b"fcTL":
                return False
            has_fdat = True

        previous = chunk_type
        offset += _PNG_CHUNK_OVERHEAD + length

    return has_actl and has_idat and has_fdat


def is_animated_webp(buffer: bytes) -> bool:
    """True when an ANIM chunk marker appears anywhere in the buffer."""
    return WEBP_ANIM_CHUNK in buffer


def is_animated(buffer: bytes) -> bool:
    """Return whether buffer is an animated GIF, PNG or WebP.

    Unrecognized formats are reported as not animated.
    """
    fmt = detect_format(buffer)
    if fmt is ImageFormat.GIF:
        return is_animated_gif(buffer)
    if fmt is ImageFormat.PNG:
        return is_animated_png(buffer)
    if fmt is ImageFormat.WEBP:
        return is_animated_webp(buffer)
    return False
