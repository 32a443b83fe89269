"""Request ID middleware.

Every request gets an id: the client's X-Request-ID when it is safe to
log, a fresh UUID4 otherwise. The id is echoed on the response, stored on
scope["state"] and bound to imgcache.shared.context for log records.
Raw ASGI so streamed cache hits pass through untouched.
"""

import re
import uuid
from typing import Callable

from imgcache.shared.context import reset_request_id, set_request_id

REQUEST_ID_MAX_LENGTH = 64
_SAFE_REQUEST_ID = re.compile(r"[A-Za-z0-9_-]+")


def sanitize_request_id(raw: str | None) -> str:
    """Return raw (stripped) if safe, otherwise a new UUID4."""
    value = (raw or "").strip()
    if len(value) > REQUEST_ID_MAX_LENGTH or not _SAFE_REQUEST_ID.fullmatch(value):
        return str(uuid.uuid4())
    return value


def _find_header(headers: list, name: bytes) -> str | None:
    for key, value in headers:
        if key.lower() == name:
            return value.decode("latin-1")
    return None


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Wrap app so each HTTP request carries a sanitized request id."""
    raw_name = header_name.lower().encode("latin-1")

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        request_id = sanitize_request_id(_find_header(scope.get("headers", []), raw_name))
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_request_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (raw_name, request_id.encode("latin-1")),
                ]
            await send(message)

        token = set_request_id(request_id)
        try:
            await app(scope, receive, send_with_request_id)
        finally:
            reset_request_id(token)

    return asgi_app
