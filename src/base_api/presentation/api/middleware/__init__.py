"""
Request pipeline middleware.
"""

from base_api.presentation.api.middleware.deadline_middleware import (
    DeadlineMiddleware,
)
from base_api.presentation.api.middleware.error_handler import api_error_handler
from base_api.presentation.api.middleware.logging_middleware import (
    RequestLoggingMiddleware,
)
from base_api.presentation.api.middleware.metrics_middleware import (
    MetricsMiddleware,
)
from base_api.presentation.api.middleware.recovery_middleware import (
    PanicRecoveryMiddleware,
)
from base_api.presentation.api.middleware.tracing_middleware import (
    TracingMiddleware,
)

__all__ = [
    "api_error_handler",
    "DeadlineMiddleware",
    "MetricsMiddleware",
    "PanicRecoveryMiddleware",
    "RequestLoggingMiddleware",
    "TracingMiddleware",
]
