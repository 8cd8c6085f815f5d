"""
Package level operations: manifests, binaries resolution and installation.
"""

from .binaries import (
    Outcome,
    BinaryArtifact,
    BinariesResolution,
    resolve_binaries,
)
from .manifest import read_manifest, write_manifest
from .xpack import InstallResult, Xpack, download_binaries

__all__ = [
    "Outcome",
    "BinaryArtifact",
    "BinariesResolution",
    "resolve_binaries",
    "read_manifest",
    "write_manifest",
    "InstallResult",
    "Xpack",
    "download_binaries",
]
