"""
Top-level error boundary for the request pipeline.
"""

from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from base_api.domain.exceptions import is_read_timeout
from base_api.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_BODY = "Internal Server Error"


class PanicRecoveryMiddleware(BaseHTTPMiddleware):
    """
    Converts any exception escaping route dispatch into an HTTP response.

    Handler-reported ``ApiError`` is rendered by its exception handler before
    reaching this layer. Everything else becomes a generic 500 and the
    server keeps serving.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except Exception as e:
            if is_read_timeout(e):
                logger.warning(
                    f"{request.method} {request.url.path}: request body not "
                    "received in time"
                )
                return PlainTextResponse(
                    "Request Timeout",
                    status_code=status.HTTP_408_REQUEST_TIMEOUT,
                )

            logger.error(
                f"Recovered from {type(e).__name__} in "
                f"{request.method} {request.url.path}: {e!r}",
                exc_info=True,
            )
            return PlainTextResponse(
                INTERNAL_ERROR_BODY,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
