"""
Resolution of the binary artifact a package declares for a platform.

A binary package describes its archives in package.json:

    "xpack": {
      "binaries": {
        "baseUrl": "https://github.com/org/repo/releases/download/v1.0.0",
        "destination": ".content",
        "skip": 1,
        "platforms": {
          "linux-x64": {
            "fileName": "tool-1.0.0-linux-x64.tar.gz",
            "sha256": "..."
          },
          "win32-x64": {
            "skip": true
          }
        }
      }
    }

`resolve_binaries()` selects the entry of the running platform and turns it
into a `BinaryArtifact` (URL, integrity, cache key, destination, skip depth),
or reports why there is nothing to install.
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from xpackkit.core.exceptions import ConfigurationError
from xpackkit.core.integrity import IntegrityFormatError, integrity_for_entry

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "xpm:binaries:"
DEFAULT_DESTINATION = ".content"

_LEADING_INT = re.compile(r"^\s*([+-]?)(0[xX][0-9a-fA-F]*|\d+)")


class Outcome(str, Enum):
    """What an install attempt did for a package."""

    NOT_A_PACKAGE = "not-a-package"
    NOT_BINARY = "not-binary"
    UNSUPPORTED_PLATFORM = "unsupported-platform"
    SKIPPED = "skipped"
    INSTALLED = "installed"


@dataclass
class BinaryArtifact:
    """Everything needed to fetch and unpack one platform archive."""

    platform_key: str
    file_name: str
    url: str
    integrity: Optional[str]
    cache_key: str
    destination: str
    skip: int


@dataclass
class BinariesResolution:
    """Result of matching a manifest against a platform key."""

    outcome: Outcome
    platform_key: str
    artifact: Optional[BinaryArtifact] = None


def cache_key_for(file_name: str) -> str:
    """
    Cache key of an artifact; depends on the file name only.

    Example:
        >>> cache_key_for('tool-1.0.0-linux-x64.tar.gz')
        'xpm:binaries:tool-1.0.0-linux-x64.tar.gz'
    """
    return f"{CACHE_KEY_PREFIX}{file_name}"


def artifact_url(base_url: str, file_name: str) -> str:
    """
    Join a base URL and a file name, adding the separating '/' if missing.

    Example:
        >>> artifact_url('https://example.com', 'x.tar.gz')
        'https://example.com/x.tar.gz'
    """
    if not base_url.endswith("/"):
        base_url += "/"
    return base_url + file_name


def parse_skip_depth(value: Any) -> int:
    """
    Number of leading path segments to strip when extracting.

    Follows JavaScript parseInt() leniency: the leading integer of a string
    is used ('2 levels' -> 2) and a '0x' prefix selects hexadecimal ('0x2'
    -> 2). Values without one fall back to 0 with a warning; negative values
    clamp to 0.
    """
    if value is None or value == "" or value is False:
        return 0

    skip = None
    if isinstance(value, bool):
        pass
    elif isinstance(value, int):
        skip = value
    elif isinstance(value, float):
        if math.isfinite(value):
            skip = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            sign, digits = match.groups()
            if digits[:2].lower() == "0x":
                # parseInt('0x') is NaN.
                skip = int(digits[2:], 16) if len(digits) > 2 else None
            else:
                skip = int(digits)
            if skip is not None and sign == "-":
                skip = -skip

    if skip is None:
        logger.warning(f"Ignoring non-numeric xpack.binaries.skip {value!r}, using 0")
        return 0

    return max(skip, 0)


def resolve_binaries(manifest: Mapping, platform_key: str) -> BinariesResolution:
    """
    Select the binary artifact of a platform.

    Args:
        manifest: Parsed package.json
        platform_key: Running platform, e.g. 'linux-x64'

    Returns:
        BinariesResolution; `artifact` is set only for Outcome.INSTALLED

    Raises:
        ConfigurationError: If the platform entry cannot be turned into a URL
            (missing baseUrl or fileName) or its checksum is malformed
    """
    xpack = manifest.get("xpack")
    if not xpack:
        logger.debug("doesn't look like an xPack, package.json has no xpack")
        return BinariesResolution(Outcome.NOT_BINARY, platform_key)

    binaries = xpack.get("binaries")
    if not binaries:
        logger.debug(
            "doesn't look like a binary xPack, package.json has no xpack.binaries"
        )
        return BinariesResolution(Outcome.NOT_BINARY, platform_key)

    platforms = binaries.get("platforms")
    if not platforms:
        logger.debug(
            "doesn't look like a binary xPack, package.json has no "
            "xpack.binaries.platforms"
        )
        return BinariesResolution(Outcome.NOT_BINARY, platform_key)

    entry = platforms.get(platform_key)
    if not entry:
        logger.debug(f"platform {platform_key} not defined")
        return BinariesResolution(Outcome.UNSUPPORTED_PLATFORM, platform_key)

    if not isinstance(entry, Mapping):
        raise ConfigurationError(
            f"Invalid xpack.binaries.platforms[{platform_key}], expected an object"
        )

    # A skipped platform is not validated any further.
    if entry.get("skip"):
        logger.warning("No binaries are available for this platform, command ignored.")
        return BinariesResolution(Outcome.SKIPPED, platform_key)

    base_url = entry.get("baseUrl") or binaries.get("baseUrl")
    if not base_url:
        raise ConfigurationError("Missing xpack.binaries.baseUrl")

    file_name = entry.get("fileName")
    if not file_name:
        raise ConfigurationError(
            f"Missing xpack.binaries.platforms[{platform_key}].fileName"
        )

    try:
        integrity = integrity_for_entry(entry)
    except IntegrityFormatError as e:
        raise ConfigurationError(
            f"Invalid checksum in xpack.binaries.platforms[{platform_key}]: {e}"
        ) from e

    artifact = BinaryArtifact(
        platform_key=platform_key,
        file_name=file_name,
        url=artifact_url(base_url, file_name),
        integrity=integrity,
        cache_key=cache_key_for(file_name),
        destination=binaries.get("destination") or DEFAULT_DESTINATION,
        skip=parse_skip_depth(binaries.get("skip")),
    )
    logger.debug(f"resolved {platform_key} to {artifact.url}")
    return BinariesResolution(Outcome.INSTALLED, platform_key, artifact)


__all__ = [
    "CACHE_KEY_PREFIX",
    "DEFAULT_DESTINATION",
    "Outcome",
    "BinaryArtifact",
    "BinariesResolution",
    "cache_key_for",
    "artifact_url",
    "parse_skip_depth",
    "resolve_binaries",
]
