"""
Directory layout for xpackkit.

Directory Structure:
    Global folder (~/.xpackkit/ or %USERPROFILE%\\.xpackkit\\):
        - cache/          : Content-addressable artifact cache
          - content-v2/   : Blobs, addressed by digest
          - index-v5/     : Key to blob records
          - lock/         : Concurrent access control files
"""

import os
from pathlib import Path


class DirectoryError(Exception):
    """Base exception for directory-related errors."""

    pass


def get_global_dir() -> Path:
    """
    Get the platform-specific global xpackkit directory.

    Returns:
        Path: The global directory path.
            - Windows: %USERPROFILE%\\.xpackkit
            - Linux/macOS: ~/.xpackkit/
    """
    if os.name == "nt":  # Windows
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise DirectoryError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine global cache directory."
            )
        return Path(user_profile) / ".xpackkit"
    else:  # Linux/macOS
        return Path.home() / ".xpackkit"


def get_global_cache_dir() -> Path:
    """
    Get the default artifact cache directory.

    Example:
        >>> get_global_cache_dir()
        PosixPath('/home/user/.xpackkit/cache')  # on Linux
    """
    return get_global_dir() / "cache"


__all__ = ["DirectoryError", "get_global_dir", "get_global_cache_dir"]
