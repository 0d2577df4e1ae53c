"""
base-api entry point.

Bootstraps settings, logging and tracing, then runs the ApiServer until
SIGINT.

Usage:
    base-api --env development
    base-api --config staging.yaml --graceful-timeout 1m
"""

import argparse
import math
import re
from typing import List, Optional

from base_api.config.settings import Settings, load_config
from base_api.infrastructure.monitoring.logger import get_logger, setup_logging
from base_api.infrastructure.monitoring.tracing import TracingManager
from base_api.lifecycle import ApiServer

logger = get_logger(__name__)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: str) -> int:
    """
    Parse a duration such as ``15s``, ``1m`` or ``1m30s`` into seconds.

    Bare numbers are taken as seconds. Fractions are rounded up.

    Args:
        value: Duration string

    Returns:
        Whole seconds

    Raises:
        argparse.ArgumentTypeError: If the string is not a duration
    """
    text = value.strip()
    if re.fullmatch(r"\d+", text):
        return int(text)

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise argparse.ArgumentTypeError(f"invalid duration: {value!r}")

    return math.ceil(total)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="base-api",
        description="Run the API server until interrupted.",
    )
    parser.add_argument(
        "--env",
        default=None,
        help="Environment name (production, development, test)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML file in the config directory overriding default.yaml",
    )
    parser.add_argument(
        "--graceful-timeout",
        type=parse_duration,
        default=None,
        help=(
            "the duration for which the server gracefully wait for existing "
            "connections to finish - e.g. 15s or 1m"
        ),
    )
    return parser


def create_server(
    settings: Settings, graceful_timeout: Optional[int] = None
) -> ApiServer:
    """
    Build an initialized ApiServer from loaded settings.

    Args:
        settings: Loaded settings, also exposed by GET /env
        graceful_timeout: Seconds overriding ``api.graceful_timeout``

    Returns:
        Initialized ApiServer
    """
    overrides = {}
    if graceful_timeout is not None:
        overrides["graceful_timeout"] = graceful_timeout

    server = ApiServer(version_provider=settings.version_provider())
    server.initialize(settings.server_config(**overrides), settings)
    return server


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point.

    Loads configuration, sets up logging and tracing, runs the server.
    """
    args = build_parser().parse_args(argv)

    settings = load_config(config_file=args.config, env=args.env)
    setup_logging(level=settings.LOG_LEVEL, json_logs=settings.json_logs)
    logger.info(f"Starting {settings.APP_NAME} (ENV={settings.ENV})")

    server = create_server(settings, graceful_timeout=args.graceful_timeout)

    tracing = TracingManager(
        settings.tracing_config(
            server.version_provider.get_version().version
        )
    )
    tracing.setup()

    try:
        server.run()
    finally:
        tracing.shutdown()


if __name__ == "__main__":
    main()
