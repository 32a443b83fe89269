"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Builds the process-wide
collaborators of the image optimizer (derivative store, origin fetcher,
codec) and keeps them on app.state; no module-level singletons.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from imgcache.application.services.request_validator import ImageRequestValidator
from imgcache.application.use_cases.image_optimizer import ImageOptimizerService
from imgcache.core.config import Settings, get_settings
from imgcache.infrastructure.cache import DerivativeCache
from imgcache.infrastructure.external.codec import PillowImageCodec
from imgcache.infrastructure.external.origin import OriginFactory
from imgcache.infrastructure.external.storage import StorageFactory
from imgcache.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


def build_optimizer(
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> ImageOptimizerService:
    """Wire an ImageOptimizerService from settings."""
    cache = DerivativeCache(
        StorageFactory.create_storage_service(settings),
        compress=settings.storage_compress,
    )
    return ImageOptimizerService(
        cache=cache,
        origin=OriginFactory.create_origin_fetcher(settings, http_client),
        codec=PillowImageCodec(),
        validator=ImageRequestValidator(
            settings.allowed_widths, settings.overwrite_types
        ),
        cache_version=settings.cache_version,
        cache_prefix=settings.cache_prefix,
    )


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, shared HTTP client (http origin only),
    optimizer. Shutdown order: HTTP client close, telemetry shutdown
    (telemetry itself is set up in create_app, before the app starts).
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    if settings.origin_backend == "http":
        # Shared client for origin fetches (connection reuse).
        app.state.origin_http_client = httpx.AsyncClient(
            timeout=settings.origin_timeout_seconds
        )
    else:
        app.state.origin_http_client = None

    app.state.image_optimizer = build_optimizer(settings, app.state.origin_http_client)
    logger.info(
        "Image optimizer ready: storage=%s, origin=%s, widths=%d, formats=%s",
        settings.storage_backend,
        settings.origin_backend,
        len(settings.allowed_widths),
        ",".join(settings.overwrite_types),
    )

    yield

    # ---- Shutdown ----
    if getattr(app.state, "origin_http_client", None) is not None:
        await app.state.origin_http_client.aclose()
        app.state.origin_http_client = None
        logger.info("Origin HTTP client closed")

    from imgcache.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
