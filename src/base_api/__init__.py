"""
base-api - HTTP service scaffold

Configuration-driven FastAPI service base with diagnostic endpoints
(health, info, env, prometheus, swagger), CORS, panic recovery, request
logging, tracing and interrupt-driven graceful shutdown.
"""

from base_api.config import DEFAULT_SERVER_CONFIG, ServerConfig, resolve
from base_api.domain import ApiError, LifecycleError
from base_api.lifecycle import ApiServer, LifecycleState

__version__ = "0.1.0"
__all__ = [
    "ApiError",
    "ApiServer",
    "DEFAULT_SERVER_CONFIG",
    "LifecycleError",
    "LifecycleState",
    "ServerConfig",
    "resolve",
]
