"""
File system utilities for xpackkit.

This module provides the file operations the binaries installer relies on:
- Archive extraction (tar, tar.gz, tar.bz2, tar.xz, zip) with leading path
  segments stripped, the format detected from the archive content
- Staged extraction that replaces a destination folder only on success
- Safe file operations (atomic writes, safe deletion)
"""

import logging
import os
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, Optional, Union

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ArchiveExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if a path is relative to (under) another path.

    Example:
        >>> is_relative_to(Path('/a/b/c'), Path('/a'))
        True
    """
    try:
        path.resolve().relative_to(parent.resolve())
        return True
    except ValueError:
        return False


def strip_components(name: str, strip: int) -> Optional[str]:
    """
    Remove the first `strip` segments of an archive member name.

    Returns:
        The remaining relative name, or None when nothing is left

    Example:
        >>> strip_components('pkg-1.0/bin/tool', 1)
        'bin/tool'
        >>> strip_components('pkg-1.0/', 1) is None
        True
    """
    parts = [part for part in PurePosixPath(name.replace("\\", "/")).parts if part != "."]
    if parts and parts[0] == "/":
        parts = parts[1:]
    if len(parts) <= strip:
        return None
    return "/".join(parts[strip:])


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def detect_archive_format(archive_path: Union[str, Path]) -> str:
    """
    Detect archive format from its leading bytes.

    Returns:
        One of 'zip', 'tar.gz', 'tar.bz2', 'tar.xz', 'tar'

    Raises:
        UnsupportedArchiveFormat: If the content is not a known archive
    """
    with open(archive_path, "rb") as f:
        header = f.read(512)

    for magic, archive_format in _MAGIC_NUMBERS:
        if header.startswith(magic):
            return archive_format

    # Plain tar has its magic inside the first header block.
    if header[257:262] == b"ustar":
        return "tar"

    raise UnsupportedArchiveFormat(
        f"Unsupported archive format: {Path(archive_path).name}. "
        "Supported: tar, tar.gz, tar.bz2, tar.xz, zip"
    )


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    strip: int = 0,
) -> int:
    """
    Extract an archive to a destination directory.

    The format is detected from the archive content, not from its name, so
    cached blobs without an extension are handled too. All member paths are
    validated to prevent directory traversal.

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        strip: Number of leading path segments to drop from member names

    Returns:
        Number of extracted entries (files, directories and links)

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        ArchiveExtractionError: If extraction fails
        InsecureArchiveError: If archive contains malicious paths

    Example:
        >>> extract_archive('tool-linux-x64.tar.gz', '.content', strip=1)
        42
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)

    try:
        archive_format = detect_archive_format(archive_path)
        logger.debug(f"Detected {archive_format} archive: {archive_path}")
        extractor = _EXTRACTORS[archive_format]
        return extractor(archive_path, destination, strip)
    except (InsecureArchiveError, UnsupportedArchiveFormat):
        raise
    except Exception as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


def _extract_zip(archive_path: Path, destination: Path, strip: int) -> int:
    """Extract a ZIP archive."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = []
        for info in zf.infolist():
            name = strip_components(info.filename, strip)
            if name is None:
                continue
            _validate_archive_path(name, destination)
            if info.is_dir():
                name += "/"
            info.filename = name
            members.append(info)

        for info in members:
            target = zf.extract(info, destination)
            # Keep the executable bits recorded by Unix zip tools.
            mode = (info.external_attr >> 16) & 0o777
            if mode and not info.is_dir() and not IS_WINDOWS:
                os.chmod(target, mode)

    return len(members)


def _extract_tar(
    archive_path: Path,
    destination: Path,
    strip: int,
    mode: str = "r:",
) -> int:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        members = []
        for member in tar.getmembers():
            name = strip_components(member.name, strip)
            if name is None:
                continue
            _validate_archive_path(name, destination)
            member.name = name
            if member.islnk():
                linkname = strip_components(member.linkname, strip)
                if linkname is None:
                    continue
                member.linkname = linkname
            members.append(member)

        for member in members:
            # The data filter rejects links that resolve outside destination.
            if hasattr(tarfile, "data_filter"):
                tar.extract(member, destination, filter="data")
            else:
                tar.extract(member, destination)

    return len(members)


def _tar_extractor(mode: str):
    def extract(archive_path, destination, strip):
        return _extract_tar(archive_path, destination, strip, mode)

    return extract


_MAGIC_NUMBERS = (
    (b"PK\x03\x04", "zip"),
    (b"PK\x05\x06", "zip"),
    (b"\x1f\x8b", "tar.gz"),
    (b"BZh", "tar.bz2"),
    (b"\xfd7zXZ\x00", "tar.xz"),
)

_EXTRACTORS: Dict[str, Callable[..., int]] = {
    "zip": _extract_zip,
    "tar": _tar_extractor("r:"),
    "tar.gz": _tar_extractor("r:gz"),
    "tar.bz2": _tar_extractor("r:bz2"),
    "tar.xz": _tar_extractor("r:xz"),
}


def extract_archive_replacing(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    strip: int = 0,
) -> int:
    """
    Extract into a staging folder, then swap it in place of destination.

    The previous destination content is removed only after the extraction
    succeeded, so a failed or interrupted extraction never leaves a
    half-populated destination behind.

    Returns:
        Number of extracted entries
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    staging = Path(
        tempfile.mkdtemp(dir=destination.parent, prefix=f".{destination.name}.")
    )
    try:
        count = extract_archive(archive_path, staging, strip=strip)

        logger.debug(f"rmtree {destination}")
        safe_rmtree(destination)
        staging.replace(destination)
    except Exception:
        if staging.exists():
            safe_rmtree(staging)
        raise

    return count


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    If the write fails, the original file (if any) remains unchanged.

    Example:
        >>> atomic_write('package.json', '{"name": "busybox"}')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory (ensures same filesystem)
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def safe_rmtree(path: Union[str, Path]) -> None:
    """
    Remove a directory tree (or a single file); a missing path is not an error.

    Args:
        path: Directory to remove

    Raises:
        FilesystemError: If deletion fails
    """
    path = Path(path)

    if not path.exists() and not path.is_symlink():
        return  # Already gone, nothing to do

    try:
        if path.is_symlink() or not path.is_dir():
            path.unlink()
        elif IS_WINDOWS:

            def handle_remove_readonly(func, path, exc):
                """Error handler for Windows read-only files."""
                if not os.access(path, os.W_OK):
                    os.chmod(path, 0o777)
                    func(path)
                else:
                    raise exc[1]

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except OSError as e:
        raise FilesystemError(f"Failed to remove '{path}': {e}") from e


__all__ = [
    "FilesystemError",
    "ArchiveExtractionError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "is_relative_to",
    "strip_components",
    "detect_archive_format",
    "extract_archive",
    "extract_archive_replacing",
    "atomic_write",
    "safe_rmtree",
]
