"""
Integrity descriptors for cached artifacts.

An integrity descriptor is the algorithm name followed by the base64 encoded
digest, e.g. ``sha256-47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU=``.
Manifests declare checksums as hex strings; this module converts between the
two forms and computes descriptors incrementally while data is streamed.
"""

import base64
import binascii
import hashlib
import hmac
import logging
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = ("sha256", "sha512")

# Order matters: the first declared checksum wins.
MANIFEST_CHECKSUM_FIELDS = ("sha256", "sha512")


class IntegrityFormatError(ValueError):
    """Raised when a checksum or integrity descriptor is malformed."""

    pass


def _check_algorithm(algorithm: str) -> str:
    algorithm = algorithm.lower()
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise IntegrityFormatError(f"Unsupported hash algorithm: {algorithm}")
    return algorithm


def encode_integrity(hex_digest: str, algorithm: str) -> str:
    """
    Convert a hex checksum into an integrity descriptor.

    Args:
        hex_digest: Checksum as a hex string
        algorithm: 'sha256' or 'sha512'

    Returns:
        Descriptor of the form '<algorithm>-<base64>'

    Raises:
        IntegrityFormatError: If the hex string cannot be decoded or the
            algorithm is not supported

    Example:
        >>> encode_integrity("00ff", "sha256")
        'sha256-AP8='
    """
    algorithm = _check_algorithm(algorithm)
    try:
        raw = bytes.fromhex(hex_digest.strip())
    except ValueError as e:
        raise IntegrityFormatError(f"Invalid hex digest: {hex_digest!r}") from e

    return f"{algorithm}-{base64.b64encode(raw).decode('ascii')}"


def parse_integrity(descriptor: str) -> Tuple[str, bytes]:
    """
    Split an integrity descriptor into its algorithm and raw digest bytes.

    Raises:
        IntegrityFormatError: If the descriptor is malformed
    """
    algorithm, sep, encoded = descriptor.strip().partition("-")
    if not sep or not encoded:
        raise IntegrityFormatError(f"Invalid integrity descriptor: {descriptor!r}")

    algorithm = _check_algorithm(algorithm)
    try:
        raw = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise IntegrityFormatError(
            f"Invalid integrity descriptor: {descriptor!r}"
        ) from e

    return algorithm, raw


def decode_integrity(descriptor: str) -> Tuple[str, str]:
    """
    Convert an integrity descriptor back to (algorithm, hex digest).

    Example:
        >>> decode_integrity("sha256-AP8=")
        ('sha256', '00ff')
    """
    algorithm, raw = parse_integrity(descriptor)
    return algorithm, raw.hex()


def integrity_for_entry(entry: Mapping) -> Optional[str]:
    """
    Compute the expected integrity of a platform entry.

    Only one checksum is used per artifact; 'sha256' takes precedence over
    'sha512'. Entries without a checksum yield None and are downloaded
    without verification.
    """
    for algorithm in MANIFEST_CHECKSUM_FIELDS:
        hex_sum = entry.get(algorithm)
        if hex_sum:
            integrity = encode_integrity(hex_sum, algorithm)
            logger.debug(f"expected integrity digest {integrity} for {hex_sum}")
            return integrity

    logger.debug("no checksum declared, integrity check disabled")
    return None


class StreamingHasher:
    """Compute a digest incrementally for streamed content."""

    def __init__(self, algorithm: str = "sha512"):
        """
        Initialize streaming hasher.

        Args:
            algorithm: Hash algorithm ('sha256' or 'sha512')

        Raises:
            IntegrityFormatError: If algorithm is not supported
        """
        self.algorithm = _check_algorithm(algorithm)
        self.hasher = hashlib.new(self.algorithm)
        self.size = 0

    def update(self, data: bytes):
        """Add data to hash computation."""
        self.hasher.update(data)
        self.size += len(data)

    def digest(self) -> bytes:
        return self.hasher.digest()

    def hexdigest(self) -> str:
        return self.hasher.hexdigest()

    def integrity(self) -> str:
        """Get the integrity descriptor of everything hashed so far."""
        return f"{self.algorithm}-{base64.b64encode(self.digest()).decode('ascii')}"

    def matches(self, expected: str) -> bool:
        """
        Check the computed digest against an expected integrity descriptor.

        The comparison uses hmac.compare_digest to stay constant-time.
        """
        algorithm, raw = parse_integrity(expected)
        if algorithm != self.algorithm:
            return False
        return hmac.compare_digest(self.digest(), raw)


__all__ = [
    "SUPPORTED_ALGORITHMS",
    "IntegrityFormatError",
    "encode_integrity",
    "decode_integrity",
    "parse_integrity",
    "integrity_for_entry",
    "StreamingHasher",
]
