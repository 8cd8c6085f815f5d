"""
Core functionality for xpackkit.

This package contains the foundational modules that other components depend on.
"""

from .cache_store import (
    CacheEntry,
    ContentCache,
    get_info,
    put_stream,
)

from .download import cache_archive

from .integrity import (
    encode_integrity,
    decode_integrity,
    integrity_for_entry,
    IntegrityFormatError,
)

from .locking import (
    LockManager,
    LockTimeout,
)

from .manifest_id import ManifestId

from .platform import (
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .exceptions import (
    ExitCode,
    XpackKitError,
    ConfigurationError,
    DownloadError,
    NotAPackageError,
    CacheError,
    IntegrityMismatchError,
)

__all__ = [
    "CacheEntry",
    "ContentCache",
    "get_info",
    "put_stream",
    "cache_archive",
    "encode_integrity",
    "decode_integrity",
    "integrity_for_entry",
    "IntegrityFormatError",
    "LockManager",
    "LockTimeout",
    "ManifestId",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "ExitCode",
    "XpackKitError",
    "ConfigurationError",
    "DownloadError",
    "NotAPackageError",
    "CacheError",
    "IntegrityMismatchError",
]
