"""
Configuration management for services built on base-api.

Hybrid configuration system using YAML files and environment variables.
Priority: Environment variables > environment YAML > default YAML > defaults

The ``api`` section is a partial ServerConfig: anything left out is filled
in by ``resolve`` when the ApiServer is initialized.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from base_api.config.server_config import ServerConfig
from base_api.infrastructure.monitoring.tracing import TracingConfig
from base_api.infrastructure.monitoring.version import VersionProvider

CONFIG_DIR_ENV = "BASE_API_CONFIG_DIR"


class Settings(BaseSettings):
    """
    Service configuration schema.

    Loads configuration from:
    1. Environment variables (highest priority, nested keys via ``__``,
       e.g. ``api__listen_port=9000``)
    2. YAML configuration files
    3. Pydantic defaults (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=True,
        extra="allow",
    )

    # Application
    APP_NAME: str = "base-api"
    APP_VERSION: str = Field(
        default="", description="Overrides the installed package version"
    )
    ENV: str = Field(default="production", description="Environment name")

    # Build metadata, injected by the build pipeline
    BUILD_NUMBER: str = ""
    BUILD_TIMESTAMP: str = ""
    GIT_BRANCH: str = ""
    GIT_HASH: str = ""

    # Logging
    LOG_LEVEL: str = Field(default="info")

    # Sections
    api: ServerConfig = Field(default_factory=ServerConfig)
    trace: TracingConfig = Field(default_factory=TracingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML values arrive as init kwargs; environment must win over them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["debug", "info", "warning", "error", "critical"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid LOG_LEVEL. Must be one of: {allowed}")
        return v_lower

    @property
    def json_logs(self) -> bool:
        """Structured JSON logs in production, plain text elsewhere."""
        return self.ENV == "production"

    def version_provider(self) -> VersionProvider:
        return VersionProvider(
            version=self.APP_VERSION or None,
            build_number=self.BUILD_NUMBER,
            build_timestamp=self.BUILD_TIMESTAMP,
            git_branch=self.GIT_BRANCH,
            git_hash=self.GIT_HASH,
        )

    def server_config(self, **overrides: Any) -> ServerConfig:
        """
        Partial ApiServer configuration.

        The application name defaults to APP_NAME when the ``api`` section
        does not set one.

        Args:
            **overrides: Field values replacing the loaded ones (CLI flags)

        Returns:
            Partial ServerConfig, still to be resolved
        """
        update: Dict[str, Any] = {}
        if not self.api.app_name:
            update["app_name"] = self.APP_NAME
        update.update(overrides)
        return self.api.model_copy(update=update)

    def tracing_config(self, service_version: str) -> TracingConfig:
        """Tracing section completed with the service identity."""
        return self.trace.model_copy(
            update={
                "service_name": self.APP_NAME,
                "service_version": service_version,
                "environment": self.ENV,
            }
        )


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r") as f:
        loaded = yaml.safe_load(f)
    return loaded or {}


def default_config_dir() -> Path:
    """``$BASE_API_CONFIG_DIR`` or ``config/`` at the project root."""
    override = os.getenv(CONFIG_DIR_ENV)
    if override:
        return Path(override)
    # src/base_api/config/settings.py -> project root
    return Path(__file__).resolve().parents[3] / "config"


def load_config(
    config_file: Optional[str] = None,
    env_file: Optional[str] = None,
    env: Optional[str] = None,
    config_dir: Optional[Path] = None,
) -> Settings:
    """
    Load configuration from YAML files and environment variables.

    Priority: ENV vars > environment-specific YAML > default YAML > defaults

    Args:
        config_file: Optional YAML config filename override
        env_file: Optional .env filename (e.g., ".env.development")
        env: Optional environment name override
        config_dir: Directory holding the YAML files

    Returns:
        Settings instance

    Raises:
        ValidationError: If a value fails validation
    """
    config_dir = config_dir or default_config_dir()
    project_root = config_dir.parent

    environment = env or os.getenv("ENV", "production")

    env_map = {
        "production": (".env.production", "production.yaml"),
        "development": (".env.development", "development.yaml"),
        "test": (".env.development", "test.yaml"),
    }
    default_env_file, default_config_file = env_map.get(
        environment, (".env.production", "production.yaml")
    )
    env_file = env_file or default_env_file
    config_file = config_file or default_config_file

    # .env is loaded first so Settings sees its variables
    env_file_path = project_root / env_file
    if env_file_path.exists():
        load_dotenv(env_file_path, override=True)

    merged_config = _read_yaml(config_dir / "default.yaml")
    for key, value in _read_yaml(config_dir / config_file).items():
        merged_config[key] = value

    merged_config.setdefault("ENV", environment)

    return Settings(**merged_config)
