"""
Unit tests for version metadata.

Usage:
    pytest tests/unit/infrastructure/test_version.py
"""

from base_api.infrastructure.monitoring import VersionInfo, VersionProvider
from base_api.infrastructure.monitoring.version import installed_version


class TestVersionProvider:
    """Test version lookup."""

    def test_explicit_values(self):
        """Test build metadata is reported as given."""
        provider = VersionProvider(
            version="1.0.0",
            build_number="7",
            build_timestamp="2026-01-01T00:00:00Z",
            git_branch="main",
            git_hash="abc123",
        )

        assert provider.get_version() == VersionInfo(
            version="1.0.0",
            build_number="7",
            build_timestamp="2026-01-01T00:00:00Z",
            git_branch="main",
            git_hash="abc123",
        )

    def test_installed_version_fallback(self):
        """Test the package version is used when none is given."""
        assert VersionProvider().get_version().version == installed_version()

    def test_unknown_distribution(self):
        """Test an uninstalled distribution reports 0.0.0."""
        assert installed_version("no-such-distribution-xyz") == "0.0.0"

    def test_to_dict(self):
        """Test the serialized field names."""
        assert VersionInfo(version="1.0.0").to_dict() == {
            "version": "1.0.0",
            "build_number": "",
            "build_timestamp": "",
            "git_branch": "",
            "git_hash": "",
        }
