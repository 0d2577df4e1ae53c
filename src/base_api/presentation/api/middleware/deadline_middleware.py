"""
Listener read/write deadlines.

uvicorn exposes keep-alive and graceful-shutdown timeouts but no per-request
read or write deadline, so they are enforced here around the whole ASGI
application:

- read_timeout bounds each wait for a chunk of the request body
- write_timeout bounds the total time spent producing the response
"""

import asyncio

from fastapi.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from base_api.domain.exceptions import RequestReadTimeoutError, is_read_timeout
from base_api.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class DeadlineMiddleware:
    """
    Pure ASGI wrapper applying read and write deadlines to HTTP requests.

    A zero timeout disables the corresponding deadline. When a deadline
    expires before the response has started, a 408 (read) or 503 (write)
    is sent; otherwise the response is abandoned and the server closes the
    connection.
    """

    def __init__(
        self,
        app: ASGIApp,
        read_timeout: float = 0,
        write_timeout: float = 0,
    ) -> None:
        self.app = app
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        body_complete = False
        response_started = False

        async def timed_receive() -> Message:
            nonlocal body_complete
            # After the body, receive() only reports disconnects and may
            # legitimately block for the rest of the request.
            if body_complete or not self.read_timeout:
                return await receive()

            try:
                message = await asyncio.wait_for(receive(), self.read_timeout)
            except asyncio.TimeoutError:
                raise RequestReadTimeoutError(self.read_timeout) from None

            if message["type"] != "http.request" or not message.get(
                "more_body", False
            ):
                body_complete = True
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            if self.write_timeout:
                await asyncio.wait_for(
                    self.app(scope, timed_receive, tracking_send),
                    self.write_timeout,
                )
            else:
                await self.app(scope, timed_receive, tracking_send)
        except asyncio.TimeoutError:
            logger.warning(
                f"{scope.get('method', '')} {scope.get('path', '')} "
                f"exceeded write timeout of {self.write_timeout}s"
            )
            if not response_started:
                response = PlainTextResponse(
                    "Service Unavailable", status_code=503
                )
                await response(scope, receive, send)
        except Exception as e:
            if response_started or not is_read_timeout(e):
                raise
            logger.warning(
                f"{scope.get('method', '')} {scope.get('path', '')} "
                f"exceeded read timeout of {self.read_timeout}s"
            )
            response = PlainTextResponse("Request Timeout", status_code=408)
            await response(scope, receive, send)
