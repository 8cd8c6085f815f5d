"""
Concurrent access control for xpackkit.

Two processes installing binaries at the same time may race on the same
cache key (check-then-download) or on the same destination folder
(clear-then-extract). This module provides file-based locks, shared across
processes, for both.

Usage:
    from xpackkit.core.locking import LockManager

    lock_manager = LockManager(cache_path / "lock")
    with lock_manager.artifact_lock("xpm:binaries:tool-linux-x64.tar.gz"):
        # Check the cache and download if needed
        pass
"""

import hashlib
import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

logger = logging.getLogger(__name__)


def _safe_name(value: str) -> str:
    """Turn an arbitrary key into a lock file name."""
    safe = value
    for char in '/\\:*?"<>|@ ':
        safe = safe.replace(char, "-")
    # Long keys would exceed file name limits; keep them unique with a hash.
    if len(safe) > 100:
        digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]
        safe = f"{safe[:80]}-{digest}"
    return safe


class LockManager:
    """
    Manages locks for cache keys and destination folders.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic cleanup on process death.

    Attributes:
        lock_dir: Directory where lock files are stored
        timeout: Default wait time in seconds
    """

    def __init__(self, lock_dir: Path, timeout: float = 300):
        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout

    @contextmanager
    def _acquire(self, lock_path: Path, what: str, timeout):
        timeout = self.timeout if timeout is None else timeout
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired lock: {lock_path}")
                yield
            logger.debug(f"Released lock: {lock_path}")
        except LockTimeout as e:
            logger.error(
                f"Could not acquire lock for {what} after {timeout}s. "
                "Another process may be installing the same binaries."
            )
            raise LockTimeout(
                f"Could not acquire lock for {what} after {timeout}s. "
                "Another process may be installing the same binaries."
            ) from e

    @contextmanager
    def artifact_lock(self, cache_key: str, timeout=None):
        """
        Acquire the lock guarding the cache entry of an artifact.

        Args:
            cache_key: Cache key of the artifact
            timeout: Maximum wait time in seconds (default: manager timeout)

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        lock_path = self.lock_dir / f"artifact-{_safe_name(cache_key)}.lock"
        with self._acquire(lock_path, cache_key, timeout):
            yield

    @contextmanager
    def destination_lock(self, destination: Path, timeout=None):
        """
        Acquire the lock guarding an extraction destination folder.

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        resolved = str(Path(destination).resolve())
        digest = hashlib.sha256(resolved.encode("utf-8")).hexdigest()[:16]
        lock_path = self.lock_dir / f"destination-{digest}.lock"
        with self._acquire(lock_path, resolved, timeout):
            yield


__all__ = ["LockManager", "LockTimeout"]
