"""
Diagnostic API routes.

Fixed operational endpoints every service exposes: liveness, build
information and a dump of the application configuration.
"""

import json

from fastapi import APIRouter, Depends, Request, Response, status
from opentelemetry.trace import Status, StatusCode

from base_api.config.server_config import ServerConfig
from base_api.infrastructure.monitoring.logger import get_logger
from base_api.infrastructure.monitoring.metrics import render_latest
from base_api.infrastructure.monitoring.tracing import add_span_attribute, get_tracer
from base_api.infrastructure.monitoring.version import VersionInfo, VersionProvider
from base_api.presentation.schemas import JSONResult, respond

logger = get_logger(__name__)

router = APIRouter(tags=["internal"])
metrics_router = APIRouter(tags=["internal"])


def get_server_config(request: Request) -> ServerConfig:
    """Dependency for the resolved server configuration."""
    return request.app.state.server_config


def get_version_provider(request: Request) -> VersionProvider:
    """Dependency for the version provider."""
    return request.app.state.version_provider


def _traced_version(provider: VersionProvider) -> VersionInfo:
    with get_tracer().start_as_current_span("ShowInfo.getVersion") as span:
        info = provider.get_version()
        add_span_attribute("BuildTimeStamp", info.build_timestamp)
        add_span_attribute("GitBranch", info.git_branch)
        add_span_attribute("GitHash", info.git_hash)
        add_span_attribute("Version", info.version)
        span.set_status(Status(StatusCode.OK))
        return info


def _traced_config(app_config):
    with get_tracer().start_as_current_span("ShowConfig.getConfig") as span:
        try:
            raw = json.dumps(app_config, default=_to_jsonable)
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot serialize application config: {e}")
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, "json.dumps"))
        else:
            add_span_attribute("Env", raw)
            span.set_status(Status(StatusCode.OK))
        return app_config


def _to_jsonable(value):
    # pydantic models (settings objects) are the usual payload
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> Response:
    """
    Health check.

    Returns 200 with ``{"alive": true}`` for as long as the process serves
    requests.
    """
    return respond(JSONResult(code=status.HTTP_200_OK, data={"alive": True}))


@router.get("/info", status_code=status.HTTP_200_OK)
async def show_info(
    provider: VersionProvider = Depends(get_version_provider),
) -> Response:
    """Build and version information about the service."""
    info = _traced_version(provider)
    return respond(JSONResult(code=status.HTTP_200_OK, data=info.to_dict()))


@router.get("/env", status_code=status.HTTP_200_OK)
async def show_config(
    config: ServerConfig = Depends(get_server_config),
) -> Response:
    """Application configuration the server was initialized with."""
    return respond(
        JSONResult(
            code=status.HTTP_200_OK,
            data=_traced_config(config.app_config),
        )
    )


@metrics_router.get("/prometheus")
async def prometheus() -> Response:
    """Prometheus exposition of the default registry."""
    content, content_type = render_latest()
    return Response(content=content, media_type=content_type)
