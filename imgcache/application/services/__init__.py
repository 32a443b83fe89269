"""Application services: hashing, sniffing, freshness, negotiation, validation."""

from imgcache.application.services.animation_sniffer import (
    ImageFormat,
    detect_format,
    is_animated,
)
from imgcache.application.services.freshness import is_fresh
from imgcache.application.services.hash_service import HashService, get_hash
from imgcache.application.services.negotiation import (
    get_max_age,
    get_supported_mime_type,
    select_content_type,
)
from imgcache.application.services.request_validator import ImageRequestValidator

__all__ = [
    "HashService",
    "ImageFormat",
    "ImageRequestValidator",
    "detect_format",
    "get_hash",
    "get_max_age",
    "get_supported_mime_type",
    "is_animated",
    "is_fresh",
    "select_content_type",
]
