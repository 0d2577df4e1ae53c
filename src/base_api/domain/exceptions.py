"""
Base domain exceptions.
"""


class BaseApiException(Exception):
    """Base exception for all base-api errors."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class ApiError(BaseApiException):
    """
    Failure reported by a route handler.

    Rendered as the JSON envelope with ``status_code`` as both the HTTP
    status and the envelope ``code``.
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(message, code="API_ERROR")


class LifecycleError(BaseApiException):
    """Raised when an ApiServer operation is called in the wrong state."""

    def __init__(self, operation: str, state: str):
        message = f"Cannot {operation} while server is {state}"
        super().__init__(message, code="LIFECYCLE_ERROR")


class RequestReadTimeoutError(BaseApiException):
    """Raised when the request body is not received within read_timeout."""

    def __init__(self, timeout: float):
        message = f"Request body not received within {timeout}s"
        super().__init__(message, code="READ_TIMEOUT")


def is_read_timeout(exc: BaseException) -> bool:
    """
    Check whether an exception is a request read timeout.

    Task groups in the middleware chain wrap errors in (possibly nested)
    exception groups, which are searched as well.
    """
    if isinstance(exc, BaseExceptionGroup):
        matched, _ = exc.split(RequestReadTimeoutError)
        return matched is not None
    return isinstance(exc, RequestReadTimeoutError)
