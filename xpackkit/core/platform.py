"""
Platform detection for xpackkit.

Binary packages list their archives per platform, keyed by a string such as
'linux-x64', 'darwin-arm64' or 'win32-x64'. This module detects the running
operating system and CPU architecture and normalizes them to the names used
in those keys.

Usage:
    from xpackkit.core.platform import detect_platform

    platform_info = detect_platform()
    print(f"Platform key: {platform_info.platform_key()}")
"""

import functools
import platform
from dataclasses import dataclass


@dataclass
class PlatformInfo:
    """
    Running platform, in manifest naming.

    Attributes:
        os: Operating system ('linux', 'darwin', 'win32', ...)
        arch: CPU architecture ('x64', 'x86', 'arm64', 'arm', ...)
    """

    os: str
    arch: str

    def platform_key(self) -> str:
        """
        Get the key used in 'xpack.binaries.platforms'.

        Example:
            >>> PlatformInfo('linux', 'x64').platform_key()
            'linux-x64'
        """
        return f"{self.os}-{self.arch}"

    @property
    def is_windows(self) -> bool:
        return self.os == "win32"

    def __str__(self) -> str:
        return self.platform_key()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    """
    Detect operating system.

    Returns:
        'linux', 'darwin', 'win32', or the lowercase system name otherwise
    """
    system = platform.system().lower()

    if system == "windows" or system.startswith(("cygwin", "msys")):
        return "win32"
    elif system == "darwin":
        return "darwin"
    elif system == "linux":
        return "linux"
    else:
        # freebsd, openbsd, sunos, aix...
        return system


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    Returns:
        Normalized architecture: 'x64', 'x86', 'arm64', 'arm'
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        # 32-bit interpreters on 64-bit Windows report the host machine.
        if platform.architecture()[0] == "32bit" and _detect_os() == "win32":
            return "x86"
        return "x64"
    elif machine in ("aarch64", "arm64", "aarch64_be", "armv8l"):
        return "arm64"
    elif machine in ("i386", "i486", "i586", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        # Return original for unknown architectures
        return machine


def clear_platform_cache():
    """
    Clear the platform detection cache.

    This forces the next call to detect_platform() to re-detect.
    """
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
]
