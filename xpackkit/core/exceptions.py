"""
Centralized exception hierarchy for xpackkit.

This module defines the custom exceptions used across the codebase and the
exit codes the command line maps them to.
"""


class ExitCode:
    """Process exit codes, grouped by error class."""

    SUCCESS = 0
    SYNTAX = 1
    APPLICATION = 2
    INPUT = 3
    OUTPUT = 4


# ============================================================================
# Base Exceptions
# ============================================================================


class XpackKitError(Exception):
    """Base exception for all xpackkit errors."""

    exit_code = ExitCode.APPLICATION


# ============================================================================
# Input Errors
# ============================================================================


class ConfigurationError(XpackKitError):
    """Raised when the binaries section of a manifest is incomplete."""

    exit_code = ExitCode.INPUT


class DownloadError(XpackKitError):
    """Raised when an artifact cannot be fetched into the cache."""

    exit_code = ExitCode.INPUT

    def __init__(self, message: str = "Download failed.", url: str = ""):
        self.url = url
        super().__init__(message)


# ============================================================================
# Package Exceptions
# ============================================================================


class NotAPackageError(XpackKitError):
    """Raised when a folder has no readable package.json."""

    def __init__(self, folder):
        self.folder = folder
        super().__init__(f"The '{folder}' folder must be an xPack.")


# ============================================================================
# Cache Exceptions
# ============================================================================


class CacheError(XpackKitError):
    """Base exception for content cache errors."""

    pass


class IntegrityMismatchError(CacheError):
    """Raised when streamed content does not match the expected integrity."""

    def __init__(self, key: str, expected: str, actual: str):
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Integrity check failed for {key}: expected {expected}, got {actual}"
        )
