"""
Build and version metadata served by GET /info.
"""

from dataclasses import asdict, dataclass
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from typing import Any, Dict, Optional

DISTRIBUTION_NAME = "base-api"


@dataclass(frozen=True)
class VersionInfo:
    """Application build information."""

    version: str
    build_number: str = ""
    build_timestamp: str = ""
    git_branch: str = ""
    git_hash: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def installed_version(distribution: str = DISTRIBUTION_NAME) -> str:
    """Version of the installed distribution, ``0.0.0`` when not installed."""
    try:
        return package_version(distribution)
    except PackageNotFoundError:
        return "0.0.0"


class VersionProvider:
    """
    Holds the version metadata of the running binary.

    Build pipelines pass the build number, timestamp and git coordinates in;
    the version itself defaults to the installed package version.
    """

    def __init__(
        self,
        version: Optional[str] = None,
        build_number: str = "",
        build_timestamp: str = "",
        git_branch: str = "",
        git_hash: str = "",
    ):
        self._info = VersionInfo(
            version=version or installed_version(),
            build_number=build_number,
            build_timestamp=build_timestamp,
            git_branch=git_branch,
            git_hash=git_hash,
        )

    def get_version(self) -> VersionInfo:
        return self._info
