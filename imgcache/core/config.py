"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Backend-specific fields (bucket, root, base URL) are
validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_STORAGE_BACKENDS = ("local", "s3")
_ORIGIN_BACKENDS = ("http", "local", "s3")


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_sizes(value: str, name: str) -> list[int]:
    """Parse a comma-separated list of positive integers. Raises ValueError."""
    sizes: list[int] = []
    for item in _split_csv(value):
        try:
            size = int(item)
        except ValueError as e:
            raise ValueError(f"{name} must contain integers, got: {item!r}") from e
        if size <= 0:
            raise ValueError(f"{name} must contain positive integers, got: {size}")
        sizes.append(size)
    return sizes


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    The derivative store and the origin are configured independently:
    derivatives go to storage_backend (local or s3), originals are read
    from origin_backend (http, local or s3).
    """

    # App
    app_name: str = "imgcache"
    app_version: str = "1.0.0"
    debug: bool = False

    # CORS
    allowed_origins: str = "*"

    # Image policy
    cache_version: int = 1
    device_sizes: str = "640,750,828,1080,1200,1920,2048,3840"
    image_sizes: str = "16,32,48,64,96,128,256,384"
    overwrite_formats: str = "avif,webp,png,jpeg"
    min_cache_max_age: int = 60 * 60 * 24 * 365  # 1 year

    # Derivative storage
    cache_prefix: str = ""
    storage_backend: str = "local"
    storage_root: str = "./var/derivatives"
    storage_compress: bool = True
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None

    # Origin
    origin_backend: str = "http"
    origin_base_url: str = ""
    origin_root: str = ""
    origin_s3_bucket: str | None = None
    origin_timeout_seconds: float = 30.0

    # Request / middleware
    request_timeout_seconds: int = 60
    request_id_header: str = "X-Request-ID"

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_backends_and_policy(self) -> "Settings":
        """Validate storage/origin backends and the image size policy.

        - storage_backend 's3' requires S3_BUCKET.
        - origin_backend 'http' requires ORIGIN_BASE_URL, 'local' requires
          ORIGIN_ROOT, 's3' requires ORIGIN_S3_BUCKET.
        """
        if self.storage_backend == "s3":
            if not self.s3_bucket:
                raise ValueError(
                    "s3_bucket is required when storage_backend is 's3'. "
                    "Set S3_BUCKET environment variable or update .env file."
                )
        elif self.storage_backend != "local":
            raise ValueError(
                f"Invalid storage_backend '{self.storage_backend}'. "
                f"Must be one of: {', '.join(_STORAGE_BACKENDS)}"
            )

        if self.origin_backend == "http":
            if not self.origin_base_url:
                raise ValueError(
                    "ORIGIN_BASE_URL is required when origin_backend is 'http'."
                )
        elif self.origin_backend == "local":
            if not self.origin_root:
                raise ValueError(
                    "ORIGIN_ROOT is required when origin_backend is 'local'."
                )
        elif self.origin_backend == "s3":
            if not self.origin_s3_bucket:
                raise ValueError(
                    "ORIGIN_S3_BUCKET is required when origin_backend is 's3'."
                )
        else:
            raise ValueError(
                f"Invalid origin_backend '{self.origin_backend}'. "
                f"Must be one of: {', '.join(_ORIGIN_BACKENDS)}"
            )

        _parse_sizes(self.device_sizes, "DEVICE_SIZES")
        _parse_sizes(self.image_sizes, "IMAGE_SIZES")
        if not _split_csv(self.overwrite_formats):
            raise ValueError("OVERWRITE_FORMATS must list at least one format")
        if self.min_cache_max_age < 0:
            raise ValueError("MIN_CACHE_MAX_AGE must not be negative")
        return self

    @property
    def allowed_widths(self) -> frozenset[int]:
        """Device sizes and thumbnail sizes combined."""
        return frozenset(
            _parse_sizes(self.device_sizes, "DEVICE_SIZES")
            + _parse_sizes(self.image_sizes, "IMAGE_SIZES")
        )

    @property
    def overwrite_types(self) -> tuple[str, ...]:
        """Mime types a client may force through the f parameter."""
        return tuple(f"image/{fmt}" for fmt in _split_csv(self.overwrite_formats))

    @property
    def allowed_origin_list(self) -> list[str]:
        return _split_csv(self.allowed_origins)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
