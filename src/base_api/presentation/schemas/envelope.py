"""
JSON response envelope shared by all diagnostic routes.

Wire format: ``{"code": int, "message": str, "data": any}`` with ``message``
omitted when empty and ``data`` omitted when absent.
"""

import json
from typing import Any, Dict

from fastapi.encoders import jsonable_encoder
from fastapi.responses import PlainTextResponse, Response
from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel

from base_api.infrastructure.monitoring.logger import get_logger
from base_api.infrastructure.monitoring.tracing import get_tracer

logger = get_logger(__name__)

JSON_MEDIA_TYPE = "application/json"


class JSONResult(BaseModel):
    """Response envelope."""

    code: int
    message: str = ""
    data: Any = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code}
        if self.message:
            payload["message"] = self.message
        if self.data is not None:
            payload["data"] = self.data
        return payload


def respond(result: JSONResult) -> Response:
    """
    Serialize an envelope into an HTTP response.

    A payload that cannot be serialized is answered with HTTP 500 and the
    raw error text as body.

    Args:
        result: Envelope to send

    Returns:
        JSON response with ``result.code`` as status, or a 500 text response
    """
    with get_tracer().start_as_current_span("Resp") as span:
        try:
            body = json.dumps(
                jsonable_encoder(result.to_payload()),
                allow_nan=False,
                separators=(",", ":"),
            )
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot serialize response: {e}")
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, result.message))
            return PlainTextResponse(str(e), status_code=500)

        span.set_attribute("Data", body)
        return Response(
            content=body,
            status_code=result.code,
            media_type=JSON_MEDIA_TYPE,
        )
