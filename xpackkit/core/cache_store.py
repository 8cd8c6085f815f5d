"""
Content-addressable cache for downloaded artifacts.

Blobs are stored under their digest and looked up through an index that maps
opaque string keys to blob records:

    <cache>/
        content-v2/<algorithm>/<hex[0:2]>/<hex[2:4]>/<hex[4:]>
        index-v5/<sha256(key)[0:2]>/<sha256(key)[2:]>     (JSON record)
        tmp/                                               (in-flight writes)

Writes are streamed: the digest is computed while the bytes arrive, checked
against the expected integrity (when one is given) and only then is the blob
moved into place and the index record written. A failed or rejected write
leaves no trace in the cache.

Usage:
    from xpackkit.core.cache_store import get_info, put_stream

    with put_stream(cache_path, "xpm:binaries:tool.tar.gz", integrity) as writer:
        for chunk in chunks:
            writer.write(chunk)
    print(writer.integrity)

    entry = get_info(cache_path, "xpm:binaries:tool.tar.gz")
    print(entry.path)
"""

import hashlib
import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Union

from xpackkit.core.exceptions import CacheError, IntegrityMismatchError
from xpackkit.core.filesystem import atomic_write
from xpackkit.core.integrity import StreamingHasher, parse_integrity

logger = logging.getLogger(__name__)

CONTENT_DIR = "content-v2"
INDEX_DIR = "index-v5"
TMP_DIR = "tmp"
DEFAULT_ALGORITHM = "sha512"


@dataclass
class CacheEntry:
    """Index record of a cached blob."""

    key: str
    integrity: str
    path: Path
    size: int
    time: float
    metadata: dict = field(default_factory=dict)


def content_path(cache_path: Union[str, Path], integrity: str) -> Path:
    """Location of the blob with the given integrity."""
    algorithm, raw = parse_integrity(integrity)
    hex_digest = raw.hex()
    return (
        Path(cache_path)
        / CONTENT_DIR
        / algorithm
        / hex_digest[0:2]
        / hex_digest[2:4]
        / hex_digest[4:]
    )


def index_path(cache_path: Union[str, Path], key: str) -> Path:
    """Location of the index record for a key."""
    hashed = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return Path(cache_path) / INDEX_DIR / hashed[0:2] / hashed[2:]


def _read_record(record_path: Path, cache_path: Path) -> Optional[CacheEntry]:
    try:
        with open(record_path, "r", encoding="utf-8") as f:
            record = json.load(f)
        entry = CacheEntry(
            key=record["key"],
            integrity=record["integrity"],
            path=content_path(cache_path, record["integrity"]),
            size=record.get("size", 0),
            time=record.get("time", 0.0),
            metadata=record.get("metadata") or {},
        )
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Ignoring unreadable cache index record {record_path}: {e}")
        return None

    if not entry.path.is_file():
        logger.debug(f"cache content missing for {entry.key}: {entry.path}")
        return None

    return entry


def get_info(cache_path: Union[str, Path], key: str) -> Optional[CacheEntry]:
    """
    Look up a key in the cache.

    Never touches the network. A record whose blob has disappeared is
    reported as absent.

    Returns:
        CacheEntry, or None if the key is not cached
    """
    cache_path = Path(cache_path)
    record_path = index_path(cache_path, key)
    if not record_path.is_file():
        return None

    entry = _read_record(record_path, cache_path)
    if entry is not None and entry.key != key:
        # sha256 collision on the index name; practically impossible.
        return None
    return entry


def list_entries(cache_path: Union[str, Path]) -> Iterator[CacheEntry]:
    """Iterate over all readable index records."""
    cache_path = Path(cache_path)
    index_root = cache_path / INDEX_DIR
    if not index_root.is_dir():
        return

    for record_path in sorted(index_root.glob("*/*")):
        entry = _read_record(record_path, cache_path)
        if entry is not None:
            yield entry


def remove_entry(cache_path: Union[str, Path], key: str) -> bool:
    """
    Drop the index record of a key. The blob itself is left in place.

    Returns:
        True if a record was removed
    """
    record_path = index_path(cache_path, key)
    try:
        record_path.unlink()
    except FileNotFoundError:
        return False
    logger.debug(f"removed cache index record for {key}")
    return True


class CacheWriter:
    """
    Writable sink that commits streamed bytes into the cache.

    Use as a context manager: the entry is committed when the block exits
    normally, and discarded when it exits with an exception.

    Attributes:
        integrity: Computed integrity descriptor, set once committed
    """

    def __init__(
        self,
        cache_path: Union[str, Path],
        key: str,
        integrity: Optional[str] = None,
        metadata: Optional[dict] = None,
    ):
        self.cache_path = Path(cache_path)
        self.key = key
        self.expected_integrity = integrity
        self.metadata = metadata or {}
        self.integrity: Optional[str] = None

        algorithm = DEFAULT_ALGORITHM
        if integrity:
            algorithm, _ = parse_integrity(integrity)
        self.hasher = StreamingHasher(algorithm)

        tmp_dir = self.cache_path / TMP_DIR
        tmp_dir.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=tmp_dir, prefix="put-")
        self._temp_path = Path(temp_path)
        self._file = os.fdopen(fd, "wb")
        self._closed = False

    @property
    def size(self) -> int:
        return self.hasher.size

    def write(self, data: bytes) -> int:
        if self._closed:
            raise CacheError(f"Cache writer for {self.key} is already closed")
        self._file.write(data)
        self.hasher.update(data)
        return len(data)

    def abort(self):
        """Discard everything written so far."""
        if not self._closed:
            self._closed = True
            self._file.close()
        self._temp_path.unlink(missing_ok=True)

    def commit(self) -> str:
        """
        Verify the content and make the entry visible.

        Returns:
            The computed integrity descriptor

        Raises:
            IntegrityMismatchError: If the content does not match the
                expected integrity; nothing is committed
            CacheError: If the blob or record cannot be stored
        """
        if self._closed:
            raise CacheError(f"Cache writer for {self.key} is already closed")

        self._closed = True
        try:
            self._file.flush()
            os.fsync(self._file.fileno())
        finally:
            self._file.close()

        computed = self.hasher.integrity()
        if self.expected_integrity and not self.hasher.matches(
            self.expected_integrity
        ):
            self._temp_path.unlink(missing_ok=True)
            raise IntegrityMismatchError(self.key, self.expected_integrity, computed)

        target = content_path(self.cache_path, computed)
        try:
            if target.exists():
                # Same content already stored under another key.
                self._temp_path.unlink()
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                os.replace(self._temp_path, target)

            record = {
                "key": self.key,
                "integrity": computed,
                "size": self.size,
                "time": time.time(),
                "metadata": self.metadata,
            }
            atomic_write(index_path(self.cache_path, self.key), json.dumps(record))
        except OSError as e:
            self._temp_path.unlink(missing_ok=True)
            raise CacheError(f"Failed to store {self.key} in cache: {e}") from e

        self.integrity = computed
        logger.debug(f"computed integrity {computed}")
        return computed

    def __enter__(self) -> "CacheWriter":
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.abort()
            return False
        self.commit()
        return False


def put_stream(
    cache_path: Union[str, Path],
    key: str,
    integrity: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> CacheWriter:
    """
    Open a streaming write for a key.

    Args:
        cache_path: Cache root directory
        key: Opaque cache key
        integrity: Expected integrity descriptor; when given the content is
            verified before the entry is committed
        metadata: Extra JSON-serializable data stored in the index record

    Returns:
        CacheWriter to use as a context manager
    """
    return CacheWriter(cache_path, key, integrity, metadata)


class ContentCache:
    """
    Cache store bound to a root directory.

    Example:
        >>> cache = ContentCache(Path('~/.xpackkit/cache').expanduser())
        >>> entry = cache.info('xpm:binaries:tool-linux-x64.tar.gz')
    """

    def __init__(self, cache_path: Union[str, Path]):
        self.cache_path = Path(cache_path)

    def info(self, key: str) -> Optional[CacheEntry]:
        return get_info(self.cache_path, key)

    def put_stream(
        self,
        key: str,
        integrity: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> CacheWriter:
        return put_stream(self.cache_path, key, integrity, metadata)

    def remove(self, key: str) -> bool:
        return remove_entry(self.cache_path, key)

    def entries(self) -> Iterator[CacheEntry]:
        return list_entries(self.cache_path)


__all__ = [
    "CacheEntry",
    "CacheWriter",
    "ContentCache",
    "content_path",
    "index_path",
    "get_info",
    "put_stream",
    "list_entries",
    "remove_entry",
]
