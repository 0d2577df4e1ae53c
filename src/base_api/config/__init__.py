"""
Configuration: API server settings, defaults resolution and loading.
"""

from base_api.config.server_config import (
    DEFAULT_SERVER_CONFIG,
    ServerConfig,
    derive_api_host,
    resolve,
)
from base_api.config.settings import Settings, load_config

__all__ = [
    "DEFAULT_SERVER_CONFIG",
    "ServerConfig",
    "Settings",
    "derive_api_host",
    "load_config",
    "resolve",
]
