"""
Exception handler for handler-reported failures.
"""

from fastapi import Request, Response

from base_api.domain.exceptions import ApiError
from base_api.presentation.schemas import JSONResult, respond


async def api_error_handler(request: Request, exc: ApiError) -> Response:
    """
    Render an ApiError as the JSON envelope.

    The error's status code is used both as HTTP status and envelope code.
    """
    return respond(JSONResult(code=exc.status_code, message=exc.message))
