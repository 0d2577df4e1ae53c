"""
Prometheus metrics collection.
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# ============================================================
# HTTP Metrics
# ============================================================

http_requests_total = Counter(
    "base_api_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "base_api_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_errors_total = Counter(
    "base_api_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "error_type"],
)


def render_latest() -> tuple[bytes, str]:
    """Current exposition of the default registry and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
