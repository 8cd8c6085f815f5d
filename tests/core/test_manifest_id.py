"""
Unit tests for package descriptor parsing.
"""

import ntpath
import os
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from xpackkit.core.manifest_id import ManifestId


class TestParse:
    """Test splitting descriptors into scope, name and version."""

    def test_scoped_with_version(self):
        manifest_id = ManifestId("@xpack-dev-tools/cmake@3.20.6-2")

        assert manifest_id.scope == "@xpack-dev-tools"
        assert manifest_id.name == "cmake"
        assert manifest_id.version == "3.20.6-2"

    def test_unscoped_with_version(self):
        manifest_id = ManifestId("busybox@1.0.0")

        assert manifest_id.scope is None
        assert manifest_id.name == "busybox"
        assert manifest_id.version == "1.0.0"

    def test_fallback_version(self):
        manifest_id = ManifestId("@micro-os-plus/diag-trace", "4.1.0")
        assert manifest_id.version == "4.1.0"

    def test_explicit_version_wins_over_fallback(self):
        assert ManifestId("busybox@1.0.0", "2.0.0").version == "1.0.0"

    def test_version_with_at(self):
        """Only the first '@' after the name separates the version."""
        assert ManifestId("tool@1.0.0@beta").version == "1.0.0@beta"

    def test_surrounding_whitespace(self):
        assert ManifestId("  busybox@1.0.0 ").name == "busybox"

    @pytest.mark.parametrize(
        "descriptor",
        ["@scope", "@/name@1.0.0", "@1.0.0", "", "busybox"],
    )
    def test_invalid(self, descriptor):
        with pytest.raises(ValueError):
            ManifestId(descriptor)

    def test_missing_version_message(self):
        with pytest.raises(ValueError, match="Missing package version"):
            ManifestId("busybox")


class TestRender:
    """Test the canonical string forms."""

    def test_scoped_forms(self):
        manifest_id = ManifestId("@xpack-dev-tools/cmake@3.20.6-2")

        assert manifest_id.scoped_name() == "@xpack-dev-tools/cmake"
        assert manifest_id.full_name() == "@xpack-dev-tools/cmake@3.20.6-2"
        assert manifest_id.posix_path() == "@xpack-dev-tools/cmake/3.20.6-2"
        assert manifest_id.relative_path() == os.path.join(
            "@xpack-dev-tools", "cmake", "3.20.6-2"
        )
        assert manifest_id.folder_name() == "xpack-dev-tools-cmake"
        assert str(manifest_id) == manifest_id.full_name()

    def test_unscoped_forms(self):
        manifest_id = ManifestId("busybox@1.0.0")

        assert manifest_id.scoped_name() == "busybox"
        assert manifest_id.full_name() == "busybox@1.0.0"
        assert manifest_id.posix_path() == "busybox/1.0.0"
        assert manifest_id.folder_name() == "busybox"

    def test_windows_separators(self):
        """posix_path keeps forward slashes on a Windows host."""
        manifest_id = ManifestId("@xpack-dev-tools/cmake@3.20.6-2")

        with patch("xpackkit.core.manifest_id.os", SimpleNamespace(path=ntpath)):
            relative = manifest_id.relative_path()
            posix = manifest_id.posix_path()

        assert relative == "@xpack-dev-tools\\cmake\\3.20.6-2"
        assert posix == "@xpack-dev-tools/cmake/3.20.6-2"

    def test_full_name_reparses(self):
        manifest_id = ManifestId("@foo/bar", "1.2.3")
        assert ManifestId(manifest_id.full_name()) == manifest_id


class TestFromManifest:
    """Test building ids from installed manifests."""

    def test_uses_from_field(self):
        manifest = {
            "_from": "@xpack-dev-tools/ninja-build@1.11.1-2",
            "name": "@xpack-dev-tools/ninja-build",
            "version": "1.11.1-2.1",
        }
        assert ManifestId.from_manifest(manifest).version == "1.11.1-2"

    def test_falls_back_to_name_and_version(self):
        manifest = {"name": "@foo/bar", "version": "1.0.0"}
        assert ManifestId.from_manifest(manifest).full_name() == "@foo/bar@1.0.0"

    def test_no_descriptor(self):
        with pytest.raises(ValueError):
            ManifestId.from_manifest({"version": "1.0.0"})


class TestIdentity:
    def test_equal_ids_are_equal(self):
        assert ManifestId("@a/b@1.0.0") == ManifestId("@a/b", "1.0.0")
        assert len({ManifestId("@a/b@1.0.0"), ManifestId("@a/b", "1.0.0")}) == 1

    def test_frozen(self):
        manifest_id = ManifestId("busybox@1.0.0")
        with pytest.raises(AttributeError):
            manifest_id.name = "other"
