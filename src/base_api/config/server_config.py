"""
API server configuration and default resolution.

ServerConfig is filled in from built-in defaults with explicit override
semantics: a zero value (0, False, "") in the caller's partial configuration
means "use the default", anything else is kept verbatim. The three CORS
lists are unions of defaults and caller values.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from base_api.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class ServerConfig(BaseModel):
    """
    API server settings.

    Keys accepted from YAML/JSON keep the historical wire names
    (``schema``, ``swagger``, ``app``, ``allowed_header``); the Python
    attribute names are used everywhere else.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    # Listener
    listen_port: int = Field(default=0, ge=0, le=65535)
    write_timeout: int = Field(default=0, ge=0, description="Seconds")
    read_timeout: int = Field(default=0, ge=0, description="Seconds")
    graceful_timeout: int = Field(default=0, ge=0, description="Seconds")
    idle_timeout: int = Field(default=0, ge=0, description="Seconds")

    # Features
    swagger_enabled: bool = Field(default=False, alias="swagger")
    prometheus_enabled: bool = Field(default=False, alias="prometheus")
    local_swagger: bool = False

    # Addressing
    url_scheme: str = Field(default="", alias="schema")
    app_name: str = Field(default="", alias="app")
    host: str = ""
    api_host: str = ""

    # CORS
    allowed_origins: List[str] = Field(default_factory=list)
    allowed_headers: List[str] = Field(
        default_factory=list, alias="allowed_header"
    )
    allowed_methods: List[str] = Field(default_factory=list)

    # Opaque application payload exposed by GET /env
    app_config: Any = Field(default=None, exclude=True)

    def cors_origins(self) -> List[str]:
        """
        Origins handed to the CORS layer.

        Configured origins plus the service's own derived API address.

        Returns:
            Origin list without duplicates
        """
        origins = list(self.allowed_origins)
        if self.api_host:
            own_origin = f"{self.url_scheme}://{self.api_host}"
            if own_origin not in origins:
                origins.append(own_origin)
        return origins

    @property
    def swagger_doc_url(self) -> str:
        """URL of the OpenAPI document the swagger UI loads."""
        if self.local_swagger:
            return (
                f"{self.url_scheme}://{self.host}:{self.listen_port}"
                "/swagger/doc.json"
            )
        return (
            f"{self.url_scheme}://{self.host}/direct-container-url/"
            f"{self.app_name}/swagger/doc.json"
        )


DEFAULT_ALLOWED_ORIGINS = ["*"]
DEFAULT_ALLOWED_HEADERS = [
    "X-Requested-With",
    "Content-Type",
    "Authorization",
    "SERVICE-AGENT",
    "Access-Control-Allow-Methods",
    "Date",
    "X-FORWARDED-FOR",
    "Accept",
    "Content-Length",
    "Accept-Encoding",
    "Service-Agent",
]
DEFAULT_ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "HEAD", "OPTIONS"]

DEFAULT_SERVER_CONFIG = ServerConfig(
    listen_port=8080,
    write_timeout=30,
    read_timeout=30,
    graceful_timeout=15,
    idle_timeout=60,
    swagger_enabled=False,
    prometheus_enabled=False,
    local_swagger=False,
    url_scheme="http",
    allowed_origins=DEFAULT_ALLOWED_ORIGINS,
    allowed_headers=DEFAULT_ALLOWED_HEADERS,
    allowed_methods=DEFAULT_ALLOWED_METHODS,
)

# field name -> (type, lower bound, upper bound)
_SCALAR_FIELDS: Dict[str, Tuple[type, Optional[int], Optional[int]]] = {
    "listen_port": (int, 0, 65535),
    "write_timeout": (int, 0, None),
    "read_timeout": (int, 0, None),
    "graceful_timeout": (int, 0, None),
    "idle_timeout": (int, 0, None),
    "swagger_enabled": (bool, None, None),
    "prometheus_enabled": (bool, None, None),
    "local_swagger": (bool, None, None),
    "url_scheme": (str, None, None),
    "app_name": (str, None, None),
    "host": (str, None, None),
}

_LIST_FIELDS = ("allowed_origins", "allowed_headers", "allowed_methods")


def _merge_scalar(
    name: str,
    value: Any,
    default: Any,
    expected: type,
    lower: Optional[int],
    upper: Optional[int],
) -> Any:
    if value is None:
        return default

    # bool is an int subclass, never accept it for numeric fields
    if expected is int and isinstance(value, bool):
        raise TypeError(f"{name}: expected int, got bool")
    if not isinstance(value, expected):
        raise TypeError(
            f"{name}: expected {expected.__name__}, "
            f"got {type(value).__name__}"
        )
    if lower is not None and value < lower:
        raise ValueError(f"{name}: {value} is below {lower}")
    if upper is not None and value > upper:
        raise ValueError(f"{name}: {value} is above {upper}")

    return value if value else default


def _merge_list(name: str, values: Any, defaults: List[str]) -> List[str]:
    merged = list(defaults)
    if values is None:
        return merged

    if isinstance(values, (str, bytes)) or not hasattr(values, "__iter__"):
        raise TypeError(f"{name}: expected a list of strings")

    for item in values:
        if not isinstance(item, str):
            raise TypeError(
                f"{name}: expected str items, got {type(item).__name__}"
            )
        if item not in merged:
            merged.append(item)

    return merged


def derive_api_host(host: str, listen_port: int, local_swagger: bool) -> str:
    """
    Compute the externally reachable API host.

    Args:
        host: Configured host name
        listen_port: Resolved listen port
        local_swagger: Whether the service is reached directly

    Returns:
        ``host:port`` when served locally, bare ``host`` behind a gateway
    """
    if local_swagger:
        return f"{host}:{listen_port}"
    return host


def resolve(
    partial: ServerConfig,
    defaults: ServerConfig = DEFAULT_SERVER_CONFIG,
    app_config: Any = None,
) -> ServerConfig:
    """
    Fill a partial configuration in from defaults.

    Merge is best effort: a field that cannot be merged (wrong type, out of
    range) is logged and falls back to its default, the rest of the
    configuration is still resolved.

    Args:
        partial: Caller configuration, any field may be left at zero
        defaults: Built-in defaults
        app_config: Opaque application payload (falls back to
            ``partial.app_config``)

    Returns:
        Fully populated, frozen ServerConfig
    """
    resolved: Dict[str, Any] = {}

    for name, (expected, lower, upper) in _SCALAR_FIELDS.items():
        default = getattr(defaults, name)
        try:
            resolved[name] = _merge_scalar(
                name,
                getattr(partial, name, None),
                default,
                expected,
                lower,
                upper,
            )
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot merge data: {e}")
            resolved[name] = default

    for name in _LIST_FIELDS:
        default = list(getattr(defaults, name))
        try:
            resolved[name] = _merge_list(
                name, getattr(partial, name, None), default
            )
        except TypeError as e:
            logger.error(f"Cannot merge data: {e}")
            resolved[name] = default

    resolved["api_host"] = derive_api_host(
        resolved["host"],
        resolved["listen_port"],
        resolved["local_swagger"],
    )
    resolved["app_config"] = (
        app_config
        if app_config is not None
        else getattr(partial, "app_config", None)
    )

    return ServerConfig(**resolved)
