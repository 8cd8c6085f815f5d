"""
Reading and writing package.json manifests.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from xpackkit.core.filesystem import atomic_write

logger = logging.getLogger(__name__)

MANIFEST_FILE = "package.json"


def manifest_path(folder: Union[str, Path]) -> Path:
    return Path(folder) / MANIFEST_FILE


def read_manifest(folder: Union[str, Path]) -> Optional[dict]:
    """
    Load the manifest of a package folder.

    Returns:
        Parsed manifest, or None if the file is missing, unreadable, or
        does not contain a JSON object
    """
    file_path = manifest_path(folder)
    logger.debug(f"reading '{file_path}'")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.debug(f"cannot read {file_path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.debug(f"{file_path} is not a JSON object")
        return None

    return data


def write_manifest(folder: Union[str, Path], manifest: dict) -> None:
    """Write a manifest back, 2-space indented, atomically."""
    file_path = manifest_path(folder)
    logger.debug(f"writing '{file_path}'")
    atomic_write(file_path, json.dumps(manifest, indent=2, ensure_ascii=False) + "\n")


def is_package_manifest(manifest: Optional[dict]) -> bool:
    """A manifest describes a package when it has both name and version."""
    return bool(manifest and manifest.get("name") and manifest.get("version"))


__all__ = [
    "MANIFEST_FILE",
    "manifest_path",
    "read_manifest",
    "write_manifest",
    "is_package_manifest",
]
