"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Every error is answered
with a plain-text body: the image endpoint has no JSON error contract.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from imgcache.core.config import get_settings
from imgcache.domain.exceptions import ImageCacheException
from imgcache.infrastructure.exceptions import StorageException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _image_cache_exception_handler(
    request: Request, exc: ImageCacheException
) -> PlainTextResponse:
    """Return exc.message with exc.status_code (validation / upstream errors)."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.error_code, request.url.path, exc.to_dict())
    return PlainTextResponse(exc.message, status_code=exc.status_code)


def _storage_exception_handler(
    request: Request, exc: StorageException
) -> PlainTextResponse:
    """Derivative store unavailable: 503 with the canonical message."""
    logger.error("Storage failure on %s: %s", request.url.path, exc.to_dict())
    return PlainTextResponse(StorageException.MESSAGE, status_code=503)


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> PlainTextResponse:
    """Framework-level validation: 400 with the first error message."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return PlainTextResponse(message, status_code=400)


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    """Keep status and headers (e.g. Allow on 405) of Starlette HTTP exceptions."""
    return PlainTextResponse(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


def _generic_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", exc)
    detail = str(exc) if get_settings().debug else INTERNAL_ERROR_MESSAGE
    return PlainTextResponse(detail, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Handlers: StorageException, ImageCacheException (and subclasses),
    RequestValidationError, StarletteHTTPException, generic Exception.
    """
    app.add_exception_handler(StorageException, _storage_exception_handler)
    app.add_exception_handler(ImageCacheException, _image_cache_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
