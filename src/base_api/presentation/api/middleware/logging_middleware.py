"""
Request timing log middleware.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from base_api.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, URI and handling time of every request at DEBUG level.

    Outermost link of the chain, so the logged duration covers recovery,
    tracing and CORS handling as well as the route itself.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        uri = request.url.path
        if request.url.query:
            uri = f"{uri}?{request.url.query}"
        logger.debug(f"{request.method} {uri} {duration_ms:.3f}ms")

        return response
