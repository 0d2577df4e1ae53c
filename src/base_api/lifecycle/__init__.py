"""
Service lifecycle management.

Handles startup, serving and graceful shutdown of the API server.
"""

from base_api.lifecycle.api_server import ApiServer, LifecycleState

__all__ = [
    "ApiServer",
    "LifecycleState",
]
