"""Request timeout middleware.

Cancels the request if it runs longer than the configured timeout and
answers 504. Cache writes in flight are shielded by the optimizer and
complete in the background. Raw ASGI (no BaseHTTPMiddleware) so streamed
image bodies are not buffered.
"""

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)

TIMEOUT_BODY = b"Request timed out"


def TimeoutMiddleware(app: Callable, timeout_seconds: float) -> Callable:
    """Cancel request after timeout_seconds (504 unless a response already started). Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        started = False

        async def send_wrapper(message: dict) -> None:
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await asyncio.wait_for(
                app(scope, receive, send_wrapper),
                timeout=float(timeout_seconds),
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Request timed out after %s seconds: %s %s",
                timeout_seconds,
                scope.get("method", ""),
                scope.get("path", ""),
            )
            if started:
                # Headers are out; all we can do is end the body.
                await send({"type": "http.response.body", "body": b"", "more_body": False})
                return
            await send({
                "type": "http.response.start",
                "status": 504,
                "headers": [(b"content-type", b"text/plain; charset=utf-8")],
            })
            await send({
                "type": "http.response.body",
                "body": TIMEOUT_BODY,
                "more_body": False,
            })

    return asgi_app
