"""
Test fixtures and configuration.
"""

import socket
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)

from base_api.config import DEFAULT_SERVER_CONFIG, ServerConfig
from base_api.infrastructure.monitoring.tracing import TRACER_NAME
from base_api.infrastructure.monitoring.version import VersionProvider
from base_api.lifecycle import ApiServer

# The global tracer provider can only be set once per process.
_span_exporter = InMemorySpanExporter()
_tracer_provider = TracerProvider()
_tracer_provider.add_span_processor(SimpleSpanProcessor(_span_exporter))
trace.set_tracer_provider(_tracer_provider)


def free_port() -> int:
    """Ask the OS for a currently unused TCP port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def own_spans(exporter: InMemorySpanExporter) -> list:
    """
    Finished spans emitted by this package.

    Frameworks may record their own spans for the same request; only spans
    from the base_api tracer are returned.
    """
    return [
        span
        for span in exporter.get_finished_spans()
        if span.instrumentation_scope is not None
        and span.instrumentation_scope.name == TRACER_NAME
    ]


@pytest.fixture
def span_exporter() -> Generator[InMemorySpanExporter, None, None]:
    """In-memory exporter receiving every finished span."""
    _span_exporter.clear()
    yield _span_exporter
    _span_exporter.clear()


@pytest.fixture
def version_provider() -> VersionProvider:
    return VersionProvider(
        version="1.2.3",
        build_number="42",
        build_timestamp="2026-10-01T12:00:00Z",
        git_branch="master",
        git_hash="cb765656",
    )


@pytest.fixture
def make_server(version_provider: VersionProvider) -> Callable[..., ApiServer]:
    """
    Factory for initialized ApiServer instances.

    Keyword arguments are ServerConfig fields; ``app_config`` and
    ``defaults`` are passed through.
    """

    def _make(
        app_config=None,
        defaults: ServerConfig = DEFAULT_SERVER_CONFIG,
        **fields,
    ) -> ApiServer:
        server = ApiServer(
            version_provider=version_provider,
            defaults=defaults,
            bind_host="127.0.0.1",
        )
        server.initialize(ServerConfig(**fields), app_config)
        return server

    return _make


@pytest.fixture
def client(make_server) -> TestClient:
    """TestClient over a server built from defaults."""
    server = make_server(app_name="orders", host="localhost")
    return TestClient(server.app)
