"""
API server lifecycle.

ApiServer owns the FastAPI application, the middleware chain and the
uvicorn listener, and runs the interrupt-driven graceful shutdown:

    UNINITIALIZED -> INITIALIZED -> RUNNING -> SHUTTING_DOWN -> TERMINATED

Example:
    server = ApiServer(version_provider=VersionProvider("1.2.0"))
    server.initialize(ServerConfig(app_name="orders", listen_port=9000), settings)
    server.mount("/orders/", orders_router)
    server.run()  # blocks until SIGINT, then exits with status 0
"""

import signal
import sys
import threading
import time
from enum import Enum
from typing import Any, Optional, Union

import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp

from base_api.config.server_config import (
    DEFAULT_SERVER_CONFIG,
    ServerConfig,
    resolve,
)
from base_api.domain.exceptions import ApiError, LifecycleError
from base_api.infrastructure.monitoring.logger import get_logger
from base_api.infrastructure.monitoring.version import VersionProvider
from base_api.presentation.api.middleware import (
    DeadlineMiddleware,
    MetricsMiddleware,
    PanicRecoveryMiddleware,
    RequestLoggingMiddleware,
    TracingMiddleware,
    api_error_handler,
)
from base_api.presentation.api.routes import (
    build_swagger_router,
    diagnostics_router,
    metrics_router,
)

logger = get_logger(__name__)

# Extra seconds granted to the server thread beyond graceful_timeout
# before uvicorn is told to force exit.
FORCE_EXIT_MARGIN = 5.0


class LifecycleState(Enum):
    """ApiServer lifecycle states."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class ApiServer:
    """
    HTTP service scaffold with diagnostic routes and graceful shutdown.

    Responsibilities:
        - Resolve the server configuration against built-in defaults
        - Register /health, /info, /env (and /prometheus, /swagger/ when
          enabled)
        - Build the middleware chain: timing log -> panic recovery ->
          metrics -> tracing -> CORS -> routes
        - Serve on a background thread
        - Wait for SIGINT and shut down within graceful_timeout

    Attributes:
        state: Current lifecycle state
        config: Resolved configuration (None until initialized)
        app: FastAPI application (None until initialized)
    """

    def __init__(
        self,
        version_provider: Optional[VersionProvider] = None,
        defaults: ServerConfig = DEFAULT_SERVER_CONFIG,
        bind_host: str = "0.0.0.0",
    ):
        """
        Create an uninitialized server.

        Args:
            version_provider: Source of /info data (installed package
                version when omitted)
            defaults: Built-in configuration defaults
            bind_host: Interface the listener binds to
        """
        self.version_provider = version_provider or VersionProvider()
        self.defaults = defaults
        self.bind_host = bind_host

        self.state = LifecycleState.UNINITIALIZED
        self.config: Optional[ServerConfig] = None
        self.app: Optional[FastAPI] = None
        self.server: Optional[uvicorn.Server] = None

        self._thread: Optional[threading.Thread] = None
        self._interrupted = threading.Event()

    # ================================================================
    # State machine
    # ================================================================

    def _require(self, operation: str, *states: LifecycleState) -> None:
        if self.state not in states:
            raise LifecycleError(operation, self.state.value)

    def _transition(self, new_state: LifecycleState) -> None:
        logger.debug(f"ApiServer {self.state.value} -> {new_state.value}")
        self.state = new_state

    # ================================================================
    # Initialization
    # ================================================================

    def initialize(self, config: ServerConfig, app_config: Any = None) -> FastAPI:
        """
        Resolve configuration and build the application.

        Args:
            config: Partial server configuration
            app_config: Opaque application payload exposed by GET /env

        Returns:
            The configured FastAPI application

        Raises:
            LifecycleError: If already initialized
        """
        self._require("initialize", LifecycleState.UNINITIALIZED)

        self.config = resolve(config, self.defaults, app_config)
        version = self.version_provider.get_version().version

        self.app = FastAPI(
            title=self.config.app_name or "base-api",
            version=version,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )
        self.app.state.server_config = self.config
        self.app.state.version_provider = self.version_provider
        self.app.add_exception_handler(ApiError, api_error_handler)

        self.app.include_router(diagnostics_router)
        self._initialize_swagger(version)
        self._initialize_prometheus()
        self._initialize_middleware()

        self._transition(LifecycleState.INITIALIZED)
        logger.info(
            f"ApiServer initialized (app={self.config.app_name!r}, "
            f"port={self.config.listen_port}, "
            f"swagger={self.config.swagger_enabled}, "
            f"prometheus={self.config.prometheus_enabled})"
        )
        return self.app

    def _initialize_swagger(self, version: str) -> None:
        if not self.config.swagger_enabled:
            return

        self.app.include_router(build_swagger_router(self.app, self.config, version))
        logger.info(f"Swagger UI enabled, document at {self.config.swagger_doc_url}")

    def _initialize_prometheus(self) -> None:
        if not self.config.prometheus_enabled:
            return

        self.app.include_router(metrics_router)
        logger.info("Prometheus metrics exposed on /prometheus")

    def _initialize_middleware(self) -> None:
        # add_middleware prepends: the last one added runs first.
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.cors_origins(),
            allow_credentials=True,
            allow_methods=list(self.config.allowed_methods),
            allow_headers=list(self.config.allowed_headers),
        )
        self.app.add_middleware(TracingMiddleware, service_name=self.config.app_name)
        if self.config.prometheus_enabled:
            self.app.add_middleware(MetricsMiddleware)
        self.app.add_middleware(PanicRecoveryMiddleware)
        self.app.add_middleware(RequestLoggingMiddleware)

    def mount(self, path: str, handler: Union[APIRouter, ASGIApp]) -> None:
        """
        Attach additional routes under a path prefix.

        Args:
            path: Prefix such as ``/orders/``
            handler: FastAPI router (included under the prefix) or any ASGI
                application (mounted with the prefix stripped)

        Raises:
            LifecycleError: If not initialized or already running
        """
        self._require("mount", LifecycleState.INITIALIZED)

        prefix = path.rstrip("/")
        if isinstance(handler, APIRouter):
            self.app.include_router(handler, prefix=prefix)
        else:
            self.app.mount(prefix, handler)
        logger.info(f"Mounted {type(handler).__name__} at {path}")

    # ================================================================
    # Serving
    # ================================================================

    def start(self) -> None:
        """
        Start serving on a background thread.

        Listener failures (port in use, bind errors) are logged on the
        server thread and do not propagate.

        Raises:
            LifecycleError: If not initialized or already started
        """
        self._require("start", LifecycleState.INITIALIZED)

        config = uvicorn.Config(
            DeadlineMiddleware(
                self.app,
                read_timeout=self.config.read_timeout,
                write_timeout=self.config.write_timeout,
            ),
            host=self.bind_host,
            port=self.config.listen_port,
            timeout_keep_alive=self.config.idle_timeout,
            timeout_graceful_shutdown=self.config.graceful_timeout,
            log_config=None,
            access_log=False,
        )
        self.server = uvicorn.Server(config)

        self._thread = threading.Thread(
            target=self._serve,
            daemon=True,
            name="ApiServer",
        )
        self._thread.start()
        self._transition(LifecycleState.RUNNING)

        logger.info(f"Listening on {self.bind_host}:{self.config.listen_port}")

    def _serve(self) -> None:
        try:
            self.server.run()
        except (OSError, SystemExit) as e:
            # uvicorn exits with SystemExit(1) when it cannot bind
            logger.error(f"Listener stopped: {e!r}")

    def wait_until_started(self, timeout: float = 5.0) -> bool:
        """
        Block until the listener accepts connections.

        Args:
            timeout: Maximum seconds to wait

        Returns:
            True once started, False on timeout or listener failure
        """
        self._require("wait for startup", LifecycleState.RUNNING)

        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.server.started:
                return True
            if not self._thread.is_alive():
                return False
            time.sleep(0.05)
        return self.server.started

    # ================================================================
    # Shutdown
    # ================================================================

    def _handle_signal(self, signum: int, frame) -> None:
        logger.info(f"Received {signal.Signals(signum).name}")
        self._interrupted.set()

    def interrupt(self) -> None:
        """Wake up wait_for_interrupt as if SIGINT had been received."""
        self._interrupted.set()

    def wait_for_interrupt(self) -> None:
        """
        Block the calling thread until SIGINT or interrupt().

        Only SIGINT is handled; SIGTERM, SIGQUIT and SIGKILL keep their
        default behaviour. The previous SIGINT handler is restored on return.

        Raises:
            LifecycleError: If the server is not running
        """
        self._require("wait for interrupt", LifecycleState.RUNNING)

        previous_handler = None
        if threading.current_thread() is threading.main_thread():
            previous_handler = signal.signal(signal.SIGINT, self._handle_signal)

        try:
            self._interrupted.wait()
        finally:
            if previous_handler is not None:
                signal.signal(signal.SIGINT, previous_handler)

    def shutdown(self) -> None:
        """
        Stop accepting connections and drain in-flight requests.

        Requests still running after graceful_timeout are cancelled and
        their connections closed. Errors are logged, never raised.

        Raises:
            LifecycleError: If the server is not running
        """
        self._require("shut down", LifecycleState.RUNNING)
        self._transition(LifecycleState.SHUTTING_DOWN)

        graceful_timeout = self.config.graceful_timeout
        logger.info(f"Graceful shutdown started (timeout: {graceful_timeout}s)")

        try:
            self.server.should_exit = True
            self._thread.join(timeout=graceful_timeout + FORCE_EXIT_MARGIN)

            if self._thread.is_alive():
                logger.warning(
                    f"Server still running after {graceful_timeout}s, forcing exit"
                )
                self.server.force_exit = True
                self._thread.join(timeout=FORCE_EXIT_MARGIN)
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)
        finally:
            self._transition(LifecycleState.TERMINATED)

    def run(self) -> None:
        """
        Serve until SIGINT, shut down gracefully, exit with status 0.

        Raises:
            LifecycleError: If not initialized
            SystemExit: Always, with code 0, once shutdown finished
        """
        self.start()
        self.wait_for_interrupt()
        self.shutdown()
        logger.info("shutting down")
        sys.exit(0)
