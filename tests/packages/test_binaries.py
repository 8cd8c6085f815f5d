"""
Unit tests for platform artifact resolution.
"""

import hashlib
import logging

import pytest

from xpackkit.core.exceptions import ConfigurationError
from xpackkit.core.integrity import encode_integrity
from xpackkit.packages.binaries import (
    DEFAULT_DESTINATION,
    Outcome,
    artifact_url,
    cache_key_for,
    parse_skip_depth,
    resolve_binaries,
)

SHA256 = hashlib.sha256(b"archive").hexdigest()


def _manifest(platforms, **binaries):
    binaries.setdefault("baseUrl", "https://example.com/releases/v1.0.0")
    binaries["platforms"] = platforms
    return {"name": "@x/tool", "version": "1.0.0", "xpack": {"binaries": binaries}}


class TestHelpers:
    def test_cache_key(self):
        assert cache_key_for("tool.tar.gz") == "xpm:binaries:tool.tar.gz"

    def test_artifact_url_adds_slash(self):
        assert artifact_url("https://example.com", "x.tar.gz") == (
            "https://example.com/x.tar.gz"
        )

    def test_artifact_url_keeps_slash(self):
        assert artifact_url("https://example.com/", "x.tar.gz") == (
            "https://example.com/x.tar.gz"
        )


class TestParseSkipDepth:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, 0),
            ("", 0),
            (False, 0),
            (0, 0),
            (1, 1),
            (2.7, 2),
            ("1", 1),
            (" 2 levels", 2),
            (-3, 0),
            ("-1", 0),
            ("0x2", 2),
            ("0X1a", 26),
            ("-0x2", 0),
            ("012", 12),
        ],
    )
    def test_values(self, value, expected):
        assert parse_skip_depth(value) == expected

    @pytest.mark.parametrize("value", ["abc", "0x", "0xg", True, [1], float("nan")])
    def test_non_numeric_warns(self, value, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_skip_depth(value) == 0

        assert "non-numeric xpack.binaries.skip" in caplog.text


class TestResolveBinaries:
    """Test matching a manifest against a platform key."""

    def test_resolved_artifact(self):
        manifest = _manifest(
            {"linux-x64": {"fileName": "tool-linux-x64.tar.gz", "sha256": SHA256}},
            skip=1,
        )

        resolution = resolve_binaries(manifest, "linux-x64")

        assert resolution.outcome is Outcome.INSTALLED
        artifact = resolution.artifact
        assert artifact.url == (
            "https://example.com/releases/v1.0.0/tool-linux-x64.tar.gz"
        )
        assert artifact.cache_key == "xpm:binaries:tool-linux-x64.tar.gz"
        assert artifact.integrity == encode_integrity(SHA256, "sha256")
        assert artifact.destination == DEFAULT_DESTINATION
        assert artifact.skip == 1

    def test_custom_destination(self):
        manifest = _manifest(
            {"linux-x64": {"fileName": "t.tar.gz"}}, destination="bin-content"
        )

        artifact = resolve_binaries(manifest, "linux-x64").artifact

        assert artifact.destination == "bin-content"
        assert artifact.skip == 0
        assert artifact.integrity is None

    def test_platform_base_url_wins(self):
        manifest = _manifest(
            {
                "linux-x64": {
                    "fileName": "t.tar.gz",
                    "baseUrl": "https://mirror.example.com/v1",
                }
            }
        )

        artifact = resolve_binaries(manifest, "linux-x64").artifact

        assert artifact.url == "https://mirror.example.com/v1/t.tar.gz"

    def test_platform_base_url_without_global(self):
        manifest = {
            "xpack": {
                "binaries": {
                    "platforms": {
                        "linux-x64": {
                            "fileName": "t.tar.gz",
                            "baseUrl": "https://mirror.example.com/v1/",
                        }
                    }
                }
            }
        }

        artifact = resolve_binaries(manifest, "linux-x64").artifact

        assert artifact.url == "https://mirror.example.com/v1/t.tar.gz"

    @pytest.mark.parametrize(
        "manifest",
        [
            {"name": "a", "version": "1.0.0"},
            {"xpack": {}},
            {"xpack": {"binaries": {}}},
            {"xpack": {"binaries": {"baseUrl": "https://x", "platforms": {}}}},
        ],
    )
    def test_not_binary(self, manifest):
        resolution = resolve_binaries(manifest, "linux-x64")

        assert resolution.outcome is Outcome.NOT_BINARY
        assert resolution.artifact is None

    def test_unsupported_platform(self):
        manifest = _manifest({"darwin-arm64": {"fileName": "t.tar.gz"}})

        resolution = resolve_binaries(manifest, "linux-x64")

        assert resolution.outcome is Outcome.UNSUPPORTED_PLATFORM
        assert resolution.platform_key == "linux-x64"

    def test_skipped_platform(self, caplog):
        manifest = _manifest({"linux-x64": {"skip": True}})

        with caplog.at_level(logging.WARNING):
            resolution = resolve_binaries(manifest, "linux-x64")

        assert resolution.outcome is Outcome.SKIPPED
        assert "No binaries are available for this platform" in caplog.text

    def test_skipped_platform_needs_no_base_url(self):
        manifest = {
            "xpack": {"binaries": {"platforms": {"linux-x64": {"skip": True}}}}
        }

        assert resolve_binaries(manifest, "linux-x64").outcome is Outcome.SKIPPED

    def test_missing_base_url(self):
        manifest = {
            "xpack": {
                "binaries": {"platforms": {"linux-x64": {"fileName": "t.tar.gz"}}}
            }
        }

        with pytest.raises(ConfigurationError, match="Missing xpack.binaries.baseUrl"):
            resolve_binaries(manifest, "linux-x64")

    def test_missing_file_name(self):
        manifest = _manifest({"linux-x64": {"sha256": SHA256}})

        with pytest.raises(ConfigurationError, match=r"platforms\[linux-x64\].fileName"):
            resolve_binaries(manifest, "linux-x64")

    def test_malformed_checksum(self):
        manifest = _manifest({"linux-x64": {"fileName": "t.tar.gz", "sha256": "xyz"}})

        with pytest.raises(ConfigurationError, match="Invalid checksum"):
            resolve_binaries(manifest, "linux-x64")

    def test_entry_not_an_object(self):
        manifest = _manifest({"linux-x64": "t.tar.gz"})

        with pytest.raises(ConfigurationError, match="expected an object"):
            resolve_binaries(manifest, "linux-x64")
