"""
OpenTelemetry distributed tracing support.

Builds the tracer provider for the service and exposes helpers used by the
request tracing middleware and the diagnostic handlers.

Example:
    from base_api.infrastructure.monitoring.tracing import (
        TracingConfig,
        TracingManager,
    )

    manager = TracingManager(
        TracingConfig(
            service_name="base-api",
            exporter_type="otlp",
            otlp_endpoint="http://jaeger:4318/v1/traces",
        )
    )
    manager.setup()
    ...
    manager.shutdown()
"""

import logging
from typing import Any, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
    OTLPSpanExporter,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
)
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

TRACER_NAME = "base_api"


class TracingConfig(BaseModel):
    """Configuration for OpenTelemetry tracing."""

    service_name: str = "base-api"
    service_version: str = "0.0.0"
    environment: str = "development"
    exporter_type: str = Field(
        default="console", description="'console', 'otlp' or 'none'"
    )
    otlp_endpoint: Optional[str] = None
    sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    disabled: bool = False


class TracingManager:
    """
    Manages OpenTelemetry tracing setup and lifecycle.

    Handles tracer provider initialization, exporter configuration,
    and graceful shutdown.
    """

    def __init__(self, config: TracingConfig):
        """
        Initialize tracing manager.

        Args:
            config: Tracing configuration
        """
        self.config = config
        self.tracer_provider: Optional[TracerProvider] = None
        self.tracer: Optional[trace.Tracer] = None
        self._initialized = False

    def setup(self) -> trace.Tracer:
        """
        Setup OpenTelemetry tracing.

        A disabled configuration leaves the global no-op provider in place.

        Returns:
            Configured tracer instance

        Raises:
            ValueError: If exporter type is invalid
        """
        if self._initialized:
            logger.warning("Tracing already initialized")
            return self.tracer

        if self.config.disabled:
            logger.info("Tracing disabled")
            self.tracer = trace.get_tracer(TRACER_NAME)
            self._initialized = True
            return self.tracer

        resource = Resource.create(
            {
                "service.name": self.config.service_name,
                "service.version": self.config.service_version,
                "deployment.environment": self.config.environment,
            }
        )

        self.tracer_provider = TracerProvider(
            resource=resource,
            sampler=TraceIdRatioBased(self.config.sample_rate),
        )

        if self.config.exporter_type == "console":
            exporter = ConsoleSpanExporter()
            logger.info("Using Console span exporter")

        elif self.config.exporter_type == "otlp":
            if not self.config.otlp_endpoint:
                raise ValueError("otlp_endpoint required for OTLP exporter")

            exporter = OTLPSpanExporter(endpoint=self.config.otlp_endpoint)
            logger.info(f"Using OTLP span exporter: {self.config.otlp_endpoint}")

        elif self.config.exporter_type == "none":
            exporter = None

        else:
            raise ValueError(f"Invalid exporter type: {self.config.exporter_type}")

        if exporter is not None:
            self.tracer_provider.add_span_processor(BatchSpanProcessor(exporter))

        trace.set_tracer_provider(self.tracer_provider)
        self.tracer = trace.get_tracer(TRACER_NAME)
        self._initialized = True

        logger.info(f"Tracing initialized for service: {self.config.service_name}")

        return self.tracer

    def shutdown(self) -> None:
        """Shutdown tracing and flush remaining spans."""
        if self.tracer_provider:
            self.tracer_provider.shutdown()
            logger.info("Tracing shutdown complete")

    @property
    def is_initialized(self) -> bool:
        """Check if tracing is initialized."""
        return self._initialized


def get_tracer(name: Optional[str] = None) -> trace.Tracer:
    """
    Get tracer instance.

    Args:
        name: Tracer name (default: base_api)

    Returns:
        Tracer instance
    """
    return trace.get_tracer(name or TRACER_NAME)


def add_span_attribute(key: str, value: Any) -> None:
    """
    Add attribute to current span.

    Args:
        key: Attribute key
        value: Attribute value
    """
    span = trace.get_current_span()
    if span:
        span.set_attribute(key, value)
