"""
Monitoring and observability infrastructure.
"""

from base_api.infrastructure.monitoring import metrics
from base_api.infrastructure.monitoring.logger import (
    JSONFormatter,
    TraceContextFilter,
    get_logger,
    setup_logging,
)
from base_api.infrastructure.monitoring.tracing import (
    TracingConfig,
    TracingManager,
    add_span_attribute,
    get_tracer,
)
from base_api.infrastructure.monitoring.version import VersionInfo, VersionProvider

__all__ = [
    "metrics",
    "JSONFormatter",
    "TraceContextFilter",
    "get_logger",
    "setup_logging",
    "TracingConfig",
    "TracingManager",
    "add_span_attribute",
    "get_tracer",
    "VersionInfo",
    "VersionProvider",
]
