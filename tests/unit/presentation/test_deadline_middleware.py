"""
Unit tests for DeadlineMiddleware.

Usage:
    pytest tests/unit/presentation/test_deadline_middleware.py
"""

import asyncio

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from base_api.domain.exceptions import RequestReadTimeoutError, is_read_timeout
from base_api.presentation.api.middleware import DeadlineMiddleware


async def slow(request: Request) -> PlainTextResponse:
    await asyncio.sleep(float(request.query_params.get("delay", "0")))
    return PlainTextResponse("done")


async def echo(request: Request) -> PlainTextResponse:
    return PlainTextResponse(await request.body())


def make_client(read_timeout: float = 0, write_timeout: float = 0) -> TestClient:
    app = Starlette(
        routes=[
            Route("/slow", slow),
            Route("/echo", echo, methods=["POST"]),
        ]
    )
    return TestClient(
        DeadlineMiddleware(app, read_timeout=read_timeout, write_timeout=write_timeout)
    )


async def stalled_receive():
    await asyncio.sleep(5)
    return {"type": "http.request", "body": b"", "more_body": False}


def http_scope() -> dict:
    return {
        "type": "http",
        "method": "POST",
        "path": "/echo",
        "headers": [],
        "query_string": b"",
    }


class TestWriteTimeout:
    """Test the response deadline."""

    def test_fast_response_passes(self):
        """Test a response within the deadline is untouched."""
        response = make_client(write_timeout=1).get("/slow")

        assert response.status_code == 200
        assert response.text == "done"

    def test_slow_response_gets_503(self):
        """Test a handler outliving the deadline is answered with 503."""
        response = make_client(write_timeout=0.1).get("/slow?delay=2")

        assert response.status_code == 503
        assert response.text == "Service Unavailable"

    def test_zero_disables_deadline(self):
        """Test a zero write timeout never cuts the handler off."""
        response = make_client(write_timeout=0).get("/slow?delay=0.2")

        assert response.status_code == 200


class TestReadTimeout:
    """Test the request body deadline."""

    def test_body_within_deadline(self):
        """Test a promptly sent body is delivered to the handler."""
        response = make_client(read_timeout=1).post("/echo", content=b"payload")

        assert response.text == "payload"

    async def test_stalled_body_gets_408(self):
        """Test waiting too long for the body is answered with 408."""

        async def app(scope, receive, send):
            await receive()

        sent = []

        async def send(message):
            sent.append(message)

        middleware = DeadlineMiddleware(app, read_timeout=0.05)
        await middleware(http_scope(), stalled_receive, send)

        assert sent[0]["type"] == "http.response.start"
        assert sent[0]["status"] == 408

    async def test_stalled_body_through_server(self, make_server):
        """Test a stalled body reaches the client as 408 through the full chain."""
        router = APIRouter()

        @router.post("/echo")
        async def echo_body(request: Request):
            return {"size": len(await request.body())}

        server = make_server()
        server.mount("/orders/", router)
        middleware = DeadlineMiddleware(server.app, read_timeout=0.3)
        sent = []

        async def send(message):
            sent.append(message)

        scope = dict(http_scope(), path="/orders/echo", raw_path=b"/orders/echo")
        await middleware(scope, stalled_receive, send)

        statuses = [m["status"] for m in sent if m["type"] == "http.response.start"]
        assert statuses == [408]

    async def test_grouped_timeout_gets_408(self):
        """Test a read timeout wrapped in an exception group is recognized."""

        async def app(scope, receive, send):
            raise ExceptionGroup(
                "outer",
                [ExceptionGroup("inner", [RequestReadTimeoutError(0.05)])],
            )

        sent = []

        async def send(message):
            sent.append(message)

        await DeadlineMiddleware(app, read_timeout=0.05)(
            http_scope(), stalled_receive, send
        )

        assert sent[0]["status"] == 408

    async def test_timeout_after_response_started_raises(self):
        """Test a read timeout after the response began is not masked."""

        async def app(scope, receive, send):
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await receive()

        async def send(message):
            pass

        middleware = DeadlineMiddleware(app, read_timeout=0.05)

        with pytest.raises(RequestReadTimeoutError):
            await middleware(http_scope(), stalled_receive, send)


class TestIsReadTimeout:
    """Test read timeout detection."""

    def test_bare_error(self):
        """Test the error itself matches."""
        assert is_read_timeout(RequestReadTimeoutError(1))

    def test_nested_group(self):
        """Test a nested exception group containing the error matches."""
        group = ExceptionGroup(
            "outer",
            [ValueError("x"), ExceptionGroup("inner", [RequestReadTimeoutError(1)])],
        )

        assert is_read_timeout(group)

    def test_other_errors(self):
        """Test unrelated errors and groups do not match."""
        assert not is_read_timeout(RuntimeError("boom"))
        assert not is_read_timeout(ExceptionGroup("g", [RuntimeError("boom")]))

    async def test_receive_after_body_is_not_limited(self):
        """Test the deadline stops applying once the body is complete."""
        messages = [
            {"type": "http.request", "body": b"x", "more_body": False},
        ]
        received = []

        async def app(scope, receive, send):
            received.append(await receive())
            received.append(await receive())

        async def receive():
            if messages:
                return messages.pop(0)
            await asyncio.sleep(0.2)
            return {"type": "http.disconnect"}

        async def send(message):
            pass

        middleware = DeadlineMiddleware(app, read_timeout=0.05)
        await middleware(http_scope(), receive, send)

        assert [m["type"] for m in received] == ["http.request", "http.disconnect"]

    async def test_lifespan_passes_through(self):
        """Test non-HTTP scopes bypass the deadlines."""
        seen = []

        async def app(scope, receive, send):
            seen.append(scope["type"])

        await DeadlineMiddleware(app, read_timeout=0.01, write_timeout=0.01)(
            {"type": "lifespan"}, None, None
        )

        assert seen == ["lifespan"]
