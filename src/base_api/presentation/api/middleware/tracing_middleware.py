"""
Per-request OpenTelemetry span middleware.
"""

from typing import Callable

from fastapi import Request, Response
from opentelemetry.propagate import extract
from opentelemetry.trace import SpanKind, Status, StatusCode
from starlette.middleware.base import BaseHTTPMiddleware

from base_api.infrastructure.monitoring.tracing import get_tracer


class TracingMiddleware(BaseHTTPMiddleware):
    """
    Opens a server span around each request.

    Continues an incoming W3C trace when the caller sends one. The span is
    renamed to the matched route template once routing has happened.
    """

    def __init__(self, app, service_name: str = ""):
        super().__init__(app)
        self.service_name = service_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        tracer = get_tracer()
        parent = extract(dict(request.headers))

        with tracer.start_as_current_span(
            f"{request.method} {request.url.path}",
            context=parent,
            kind=SpanKind.SERVER,
        ) as span:
            span.set_attribute("http.method", request.method)
            span.set_attribute("http.target", request.url.path)
            if self.service_name:
                span.set_attribute("service.name", self.service_name)

            try:
                response = await call_next(request)
            except Exception as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, type(e).__name__))
                raise

            route = request.scope.get("route")
            if route is not None and getattr(route, "path", None):
                span.update_name(f"{request.method} {route.path}")

            span.set_attribute("http.status_code", response.status_code)
            if response.status_code >= 500:
                span.set_status(Status(StatusCode.ERROR))

            return response
