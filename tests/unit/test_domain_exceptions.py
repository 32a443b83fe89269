"""Tests for domain and storage exceptions (error_code, message, details, status)."""

import pytest

from imgcache.domain.exceptions import (
    ImageCacheException,
    TransformException,
    UpstreamException,
    ValidationException,
)
from imgcache.infrastructure.exceptions import (
    StorageException,
    StorageListError,
    StorageNotFoundError,
    StoragePermissionError,
)


def test_base_exception_default_error_code() -> None:
    """Base ImageCacheException uses class name as error_code when not provided."""
    exc = ImageCacheException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "ImageCacheException"
    assert exc.details == {}
    assert exc.status_code == 500
    assert str(exc) == "Something failed"


def test_base_exception_to_dict() -> None:
    exc = ImageCacheException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {
        "error": "CUSTOM",
        "message": "Oops",
        "details": {"key": "value"},
    }


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR, 400 and optional field in details."""
    exc = ValidationException('"q" parameter (quality) is required', field="q")
    assert exc.message == '"q" parameter (quality) is required'
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.status_code == 400
    assert exc.details == {"field": "q"}


def test_validation_exception_without_field() -> None:
    assert ValidationException("bad").details == {}


@pytest.mark.parametrize("status", [404, 500, 502, 504])
def test_upstream_exception_carries_origin_status(status: int) -> None:
    exc = UpstreamException(status, "/a.png", "error status")
    assert exc.status_code == status
    assert exc.message == '"url" parameter is valid but upstream response is invalid'
    assert exc.details["url"] == "/a.png"


def test_upstream_status_is_per_instance() -> None:
    UpstreamException(404, "/a.png")
    assert UpstreamException.status_code == 500


def test_transform_exception() -> None:
    exc = TransformException("image/avif", "encoder missing")
    assert exc.error_code == "TRANSFORM_ERROR"
    assert exc.details == {"content_type": "image/avif", "reason": "encoder missing"}


def test_storage_exceptions_are_image_cache_exceptions() -> None:
    exc = StorageListError("cache/key/", "connection reset")
    assert isinstance(exc, StorageException)
    assert isinstance(exc, ImageCacheException)
    assert exc.status_code == 503
    assert exc.details == {"prefix": "cache/key/", "reason": "connection reset"}


def test_storage_not_found() -> None:
    exc = StorageNotFoundError("a/b.png")
    assert exc.status_code == 404
    assert exc.error_code == "STORAGE_NOT_FOUND"


def test_storage_permission_error() -> None:
    exc = StoragePermissionError("../etc/passwd", "read")
    assert isinstance(exc, StorageException)
    assert exc.details["storage_ref"] == "../etc/passwd"
