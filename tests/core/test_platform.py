"""
Unit tests for platform detection.
"""

from unittest.mock import patch

import pytest

from xpackkit.core.platform import (
    PlatformInfo,
    clear_platform_cache,
    detect_platform,
    _detect_architecture,
    _detect_os,
)


class TestPlatformInfo:
    def test_platform_key(self):
        assert PlatformInfo("linux", "x64").platform_key() == "linux-x64"
        assert str(PlatformInfo("darwin", "arm64")) == "darwin-arm64"

    def test_is_windows(self):
        assert PlatformInfo("win32", "x64").is_windows
        assert not PlatformInfo("linux", "x64").is_windows


class TestDetectOS:
    @pytest.mark.parametrize(
        "system,expected",
        [
            ("Linux", "linux"),
            ("Darwin", "darwin"),
            ("Windows", "win32"),
            ("CYGWIN_NT-10.0", "win32"),
            ("MSYS_NT-10.0", "win32"),
            ("FreeBSD", "freebsd"),
        ],
    )
    def test_detect_os(self, system, expected):
        with patch("platform.system", return_value=system):
            assert _detect_os() == expected


class TestDetectArchitecture:
    @pytest.mark.parametrize(
        "machine,expected",
        [
            ("x86_64", "x64"),
            ("AMD64", "x64"),
            ("aarch64", "arm64"),
            ("arm64", "arm64"),
            ("armv7l", "arm"),
            ("i686", "x86"),
            ("riscv64", "riscv64"),
        ],
    )
    def test_detect_architecture(self, machine, expected):
        with patch("platform.machine", return_value=machine), patch(
            "platform.system", return_value="Linux"
        ):
            assert _detect_architecture() == expected

    def test_32bit_python_on_64bit_windows(self):
        with patch("platform.machine", return_value="AMD64"), patch(
            "platform.system", return_value="Windows"
        ), patch("platform.architecture", return_value=("32bit", "WindowsPE")):
            assert _detect_architecture() == "x86"


class TestDetectPlatform:
    def test_detect_platform_is_cached(self):
        first = detect_platform()
        assert detect_platform() is first

    def test_clear_platform_cache(self):
        with patch("platform.system", return_value="Linux"), patch(
            "platform.machine", return_value="x86_64"
        ):
            clear_platform_cache()
            assert detect_platform().platform_key() == "linux-x64"

        with patch("platform.system", return_value="Darwin"), patch(
            "platform.machine", return_value="arm64"
        ):
            # Still the cached result until cleared.
            assert detect_platform().platform_key() == "linux-x64"
            clear_platform_cache()
            assert detect_platform().platform_key() == "darwin-arm64"
