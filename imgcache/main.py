"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers, telemetry.
See imgcache.core.lifespan and imgcache.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and
clear the get_settings cache) before importing or calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from imgcache.api.v1 import api_router
from imgcache.core.config import get_settings
from imgcache.core.constants import ALLOWED_METHODS
from imgcache.core.exception_handlers import register_exception_handlers
from imgcache.core.lifespan import create_lifespan
from imgcache.middleware import RequestIDMiddleware, TimeoutMiddleware
from imgcache.shared.telemetry.telemetry import TelemetryConfig, set_telemetry


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)

    # Last added = outermost. Order: timeout → request ID → CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origin_list,
        allow_credentials=True,
        allow_methods=list(ALLOWED_METHODS),
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware, header_name=settings.request_id_header)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

    app.include_router(api_router, prefix="/api/v1")

    if settings.telemetry_enabled:
        telemetry = TelemetryConfig.from_settings(settings)
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument(app)

    return app


app = create_app()
