"""
Domain errors shared by the configuration, lifecycle and presentation layers.
"""

from base_api.domain.exceptions import (
    ApiError,
    BaseApiException,
    LifecycleError,
    RequestReadTimeoutError,
    is_read_timeout,
)

__all__ = [
    "ApiError",
    "BaseApiException",
    "LifecycleError",
    "RequestReadTimeoutError",
    "is_read_timeout",
]
