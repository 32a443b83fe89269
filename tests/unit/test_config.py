"""Tests for Settings: image policy properties and backend validation."""

import pytest
from pydantic import ValidationError

from imgcache.core.config import Settings


def _settings(**overrides) -> Settings:
    values = {
        "origin_backend": "http",
        "origin_base_url": "http://origin.test",
        "storage_backend": "local",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_allowed_widths_combine_device_and_image_sizes() -> None:
    settings = _settings(device_sizes="640, 1080", image_sizes="16,640")
    assert settings.allowed_widths == frozenset({16, 640, 1080})


def test_overwrite_types_are_mime_types() -> None:
    settings = _settings(overwrite_formats="webp, png")
    assert settings.overwrite_types == ("image/webp", "image/png")


def test_default_policy() -> None:
    settings = _settings()
    assert 384 in settings.allowed_widths
    assert 3840 in settings.allowed_widths
    assert "image/avif" in settings.overwrite_types
    assert settings.cache_version == 1


def test_allowed_origin_list() -> None:
    settings = _settings(allowed_origins="https://a.test, https://b.test")
    assert settings.allowed_origin_list == ["https://a.test", "https://b.test"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"storage_backend": "gcs"},
        {"storage_backend": "s3", "s3_bucket": None},
        {"origin_backend": "ftp"},
        {"origin_backend": "http", "origin_base_url": ""},
        {"origin_backend": "local", "origin_root": ""},
        {"origin_backend": "s3", "origin_s3_bucket": None},
        {"device_sizes": "640,abc"},
        {"image_sizes": "16,-1"},
        {"overwrite_formats": " , "},
        {"min_cache_max_age": -1},
    ],
)
def test_invalid_configuration_is_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        _settings(**overrides)


def test_s3_backends_with_buckets() -> None:
    settings = _settings(
        storage_backend="s3",
        s3_bucket="derivatives",
        origin_backend="s3",
        origin_s3_bucket="originals",
    )
    assert settings.s3_bucket == "derivatives"
    assert settings.origin_s3_bucket == "originals"
