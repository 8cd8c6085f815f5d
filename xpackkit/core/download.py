"""
Streaming download of artifacts into the content cache.

The HTTP response body is piped chunk by chunk into a cache writer; nothing
is buffered in memory beyond one chunk. The integrity digest is returned only
once both sides are done: the response body has been fully consumed and the
cache writer has verified and committed the entry. A failure on either side
fails the whole operation. There is no retry logic.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import requests

from xpackkit.core.cache_store import put_stream

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192
DEFAULT_TIMEOUT = 30


def cache_archive(
    url: str,
    cache_path: Union[str, Path],
    key: str,
    integrity: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """
    Download a URL straight into the cache under `key`.

    Args:
        url: URL to download from
        cache_path: Cache root directory
        key: Cache key to store the content under
        integrity: Expected integrity descriptor, verified before commit
        session: Optional requests session (default: module level requests)
        timeout: Connect/read timeout in seconds

    Returns:
        Integrity descriptor computed by the cache

    Raises:
        requests.RequestException: On transport errors or HTTP error status
        IntegrityMismatchError: If the content does not match `integrity`
        CacheError: If the cache cannot store the content

    Example:
        >>> cache_archive(
        ...     "https://example.com/tool-linux-x64.tar.gz",
        ...     Path("~/.xpackkit/cache").expanduser(),
        ...     "xpm:binaries:tool-linux-x64.tar.gz",
        ... )
        'sha512-...'
    """
    if not url:
        raise ValueError("URL cannot be empty")

    http = session or requests
    logger.debug(f"GET {url}")

    response = http.get(url, stream=True, timeout=timeout, allow_redirects=True)
    with response:
        response.raise_for_status()

        writer = put_stream(cache_path, key, integrity, metadata={"url": url})
        with writer:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    writer.write(chunk)

    logger.debug(f"cache_archive complete, {writer.size} bytes from {url}")
    return writer.integrity


__all__ = ["cache_archive", "CHUNK_SIZE", "DEFAULT_TIMEOUT"]
