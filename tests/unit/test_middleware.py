"""Tests for the raw-ASGI request id and timeout middleware."""

import asyncio
import logging

from imgcache.middleware import RequestIDMiddleware, TimeoutMiddleware
from imgcache.middleware.request_id import sanitize_request_id
from imgcache.shared.context import get_request_id
from imgcache.shared.telemetry.logging import RequestIdFilter


def _scope(headers: list | None = None) -> dict:
    return {"type": "http", "method": "GET", "path": "/api/v1/image", "headers": headers or []}


async def _receive() -> dict:
    return {"type": "http.request", "body": b"", "more_body": False}


class _Recorder:
    def __init__(self) -> None:
        self.messages: list[dict] = []

    async def __call__(self, message: dict) -> None:
        self.messages.append(message)


class TestRequestId:
    def test_sanitize(self) -> None:
        assert sanitize_request_id(" abc_123-x ") == "abc_123-x"
        assert len(sanitize_request_id("a" * 65)) == 36
        assert len(sanitize_request_id("has space")) == 36
        assert len(sanitize_request_id(None)) == 36

    async def test_id_is_bound_while_the_request_runs(self) -> None:
        seen: dict = {}

        async def app(scope, receive, send) -> None:
            seen["context"] = get_request_id()
            seen["state"] = scope["state"]["request_id"]
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await send({"type": "http.response.body", "body": b"ok"})

        send = _Recorder()
        wrapped = RequestIDMiddleware(app)
        await wrapped(_scope([(b"x-request-id", b"req-42")]), _receive, send)

        assert seen == {"context": "req-42", "state": "req-42"}
        assert (b"x-request-id", b"req-42") in send.messages[0]["headers"]
        assert get_request_id() == "-"

    def test_log_records_carry_the_request_id(self) -> None:
        record = logging.LogRecord("imgcache", logging.INFO, __file__, 1, "msg", (), None)
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == "-"


class TestTimeout:
    async def test_slow_request_gets_504(self) -> None:
        async def app(scope, receive, send) -> None:
            await asyncio.sleep(5)

        send = _Recorder()
        await TimeoutMiddleware(app, timeout_seconds=0.01)(_scope(), _receive, send)

        assert send.messages[0]["status"] == 504
        assert send.messages[1]["body"] == b"Request timed out"

    async def test_started_response_is_only_closed(self) -> None:
        async def app(scope, receive, send) -> None:
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await asyncio.sleep(5)

        send = _Recorder()
        await TimeoutMiddleware(app, timeout_seconds=0.01)(_scope(), _receive, send)

        assert [m["type"] for m in send.messages] == [
            "http.response.start",
            "http.response.body",
        ]
        assert send.messages[0]["status"] == 200
        assert send.messages[1] == {
            "type": "http.response.body",
            "body": b"",
            "more_body": False,
        }

    async def test_non_http_scopes_pass_through(self) -> None:
        calls: list[str] = []

        async def app(scope, receive, send) -> None:
            calls.append(scope["type"])

        await TimeoutMiddleware(app, timeout_seconds=0.01)({"type": "lifespan"}, _receive, _Recorder())
        assert calls == ["lifespan"]
