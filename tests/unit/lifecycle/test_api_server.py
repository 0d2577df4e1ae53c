"""
Unit tests for the ApiServer lifecycle state machine.

Usage:
    pytest tests/unit/lifecycle/test_api_server.py
"""

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from base_api.config import ServerConfig
from base_api.domain.exceptions import LifecycleError
from base_api.lifecycle import ApiServer, LifecycleState


def orders_router() -> APIRouter:
    router = APIRouter()

    @router.get("/list")
    async def list_orders():
        return {"orders": []}

    return router


# ================================================================
# State machine
# ================================================================


class TestLifecycleStates:
    """Test allowed and rejected transitions."""

    def test_initial_state(self):
        """Test a new server is uninitialized."""
        server = ApiServer()

        assert server.state == LifecycleState.UNINITIALIZED
        assert server.config is None
        assert server.app is None

    def test_initialize(self, make_server):
        """Test initialize resolves the configuration."""
        server = make_server(listen_port=9000)

        assert server.state == LifecycleState.INITIALIZED
        assert server.config.listen_port == 9000
        assert server.config.graceful_timeout == 15
        assert server.app.state.server_config is server.config

    def test_initialize_twice(self, make_server):
        """Test a server cannot be initialized twice."""
        server = make_server()

        with pytest.raises(LifecycleError, match="initialize while server is"):
            server.initialize(ServerConfig())

    def test_start_before_initialize(self):
        """Test start requires an initialized server."""
        with pytest.raises(LifecycleError) as exc_info:
            ApiServer().start()

        assert exc_info.value.message == (
            "Cannot start while server is uninitialized"
        )

    def test_shutdown_before_start(self, make_server):
        """Test shutdown requires a running server."""
        with pytest.raises(LifecycleError):
            make_server().shutdown()

    def test_wait_for_interrupt_before_start(self, make_server):
        """Test waiting requires a running server."""
        with pytest.raises(LifecycleError):
            make_server().wait_for_interrupt()

    def test_run_before_initialize(self):
        """Test run fails fast without initialization."""
        with pytest.raises(LifecycleError):
            ApiServer().run()


# ================================================================
# Mounting
# ================================================================


class TestMount:
    """Test attaching application routes."""

    def test_mount_router(self, make_server):
        """Test a router is reachable under its prefix."""
        server = make_server()
        server.mount("/orders/", orders_router())

        response = TestClient(server.app).get("/orders/list")

        assert response.status_code == 200
        assert response.json() == {"orders": []}

    def test_mount_asgi_app(self, make_server):
        """Test an ASGI app is mounted with the prefix stripped."""

        async def ping(request):
            return PlainTextResponse(request.url.path)

        server = make_server()
        server.mount("/legacy/", Starlette(routes=[Route("/ping", ping)]))

        response = TestClient(server.app).get("/legacy/ping")

        assert response.status_code == 200
        assert response.text.endswith("/ping")

    def test_diagnostic_routes_survive_mount(self, make_server):
        """Test mounting keeps the built-in routes."""
        server = make_server()
        server.mount("/orders/", orders_router())

        assert TestClient(server.app).get("/health").status_code == 200

    def test_mount_before_initialize(self):
        """Test mount requires an initialized server."""
        with pytest.raises(LifecycleError):
            ApiServer().mount("/orders/", orders_router())


# ================================================================
# Run
# ================================================================


class TestRun:
    """Test the blocking run sequence."""

    def test_run_sequence_and_exit_code(self, make_server, monkeypatch):
        """Test run starts, waits, shuts down and exits with status 0."""
        server = make_server()
        calls = []

        monkeypatch.setattr(server, "start", lambda: calls.append("start"))
        monkeypatch.setattr(
            server, "wait_for_interrupt", lambda: calls.append("wait")
        )
        monkeypatch.setattr(server, "shutdown", lambda: calls.append("shutdown"))

        with pytest.raises(SystemExit) as exc_info:
            server.run()

        assert exc_info.value.code == 0
        assert calls == ["start", "wait", "shutdown"]

    def test_interrupt_before_wait(self, make_server, monkeypatch):
        """Test an interrupt raised early is not lost."""
        server = make_server()
        server.interrupt()
        # Skip the listener; only the wait is under test
        monkeypatch.setattr(server, "state", LifecycleState.RUNNING)

        server.wait_for_interrupt()
