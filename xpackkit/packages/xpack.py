"""
Binary package installation.

This module orchestrates fetching the native binaries a package declares for
the running platform:

1. Check the folder is a package (package.json with name and version)
2. Resolve the platform entry of xpack.binaries
3. Look the artifact up in the content cache, download it if absent
4. Extract it into the package destination folder, stripping the declared
   number of leading path segments

Packages without binaries, platforms without an entry and platforms marked
as skipped are not errors; they are reported through the returned
InstallResult and the log so batch installs can carry on.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import requests

from xpackkit.core.cache_store import get_info
from xpackkit.core.directory import get_global_cache_dir
from xpackkit.core.download import DEFAULT_TIMEOUT, cache_archive
from xpackkit.core.exceptions import DownloadError, NotAPackageError
from xpackkit.core.filesystem import extract_archive_replacing
from xpackkit.core.locking import LockManager
from xpackkit.core.platform import PlatformInfo, detect_platform
from xpackkit.packages.binaries import (
    BinaryArtifact,
    Outcome,
    resolve_binaries,
)
from xpackkit.packages.manifest import (
    is_package_manifest,
    read_manifest,
    write_manifest,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of a binaries install for one package."""

    outcome: Outcome
    package_path: Path
    url: Optional[str] = None
    cache_key: Optional[str] = None
    integrity: Optional[str] = None
    destination: Optional[Path] = None
    files_extracted: int = 0
    downloaded: bool = False

    @property
    def installed(self) -> bool:
        return self.outcome is Outcome.INSTALLED


class Xpack:
    """
    A package folder and the operations on its manifest and binaries.

    Example:
        >>> xpack = Xpack(Path('node_modules/@xpack-dev-tools/cmake'))
        >>> result = xpack.download_binaries()
        >>> print(f"{result.files_extracted} files extracted.")
    """

    def __init__(
        self,
        xpack_path: Union[str, Path],
        cache_path: Optional[Union[str, Path]] = None,
        platform: Optional[PlatformInfo] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        lock_timeout: float = 300,
        extractor: Optional[Callable[..., int]] = None,
    ):
        """
        Initialize package.

        Args:
            xpack_path: Package folder
            cache_path: Content cache root (default: global cache)
            platform: Platform to install for (default: detected)
            session: Optional requests session used for downloads
            timeout: Download connect/read timeout in seconds
            lock_timeout: Wait time for cache and destination locks
            extractor: Callable(archive, destination, strip=N) -> count
                (default: staged extraction replacing the destination)
        """
        self.xpack_path = Path(xpack_path)
        self.cache_path = Path(cache_path) if cache_path else get_global_cache_dir()
        self.platform = platform
        self.session = session
        self.timeout = timeout
        self.lock_timeout = lock_timeout
        self.extractor = extractor or extract_archive_replacing
        self.package_json: Optional[dict] = None

    # ------------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------------

    def read_package_json(self) -> dict:
        """
        Load package.json of the package folder.

        Name and version are not mandatory here; they are needed only when a
        package is published.

        Raises:
            NotAPackageError: If package.json is missing or not valid JSON
        """
        manifest = read_manifest(self.xpack_path)
        if manifest is None:
            raise NotAPackageError(self.xpack_path)

        self.package_json = manifest
        return manifest

    def rewrite_package_json(self) -> None:
        """Write the loaded package.json back, 2-space indented."""
        if self.package_json is None:
            raise ValueError("package.json was not loaded")
        write_manifest(self.xpack_path, self.package_json)

    @staticmethod
    def is_folder_package(folder: Union[str, Path]) -> Optional[dict]:
        """
        Check whether a folder holds a package.

        Returns:
            The manifest if package.json has both name and version, else None
        """
        manifest = read_manifest(folder)
        if is_package_manifest(manifest):
            return manifest
        return None

    # ------------------------------------------------------------------------
    # Binaries
    # ------------------------------------------------------------------------

    def download_binaries(
        self,
        package_path: Optional[Union[str, Path]] = None,
        cache_path: Optional[Union[str, Path]] = None,
    ) -> InstallResult:
        """
        Install the binaries the package declares for this platform.

        Args:
            package_path: Package folder (default: this package)
            cache_path: Content cache root (default: the instance cache)

        Returns:
            InstallResult describing what was done

        Raises:
            ConfigurationError: If the platform entry is incomplete
            DownloadError: If the artifact cannot be fetched into the cache
            ArchiveExtractionError: If the cached archive cannot be extracted
            LockTimeout: If another process holds the cache or destination
        """
        package_path = Path(package_path) if package_path else self.xpack_path
        cache_path = Path(cache_path) if cache_path else self.cache_path

        manifest = self.is_folder_package(package_path)
        if manifest is None:
            logger.debug(f"'{package_path}' is not a package, no binaries")
            return InstallResult(Outcome.NOT_A_PACKAGE, package_path)

        platform = self.platform or detect_platform()
        resolution = resolve_binaries(manifest, platform.platform_key())
        if resolution.artifact is None:
            return InstallResult(resolution.outcome, package_path)

        artifact = resolution.artifact
        lock_manager = LockManager(cache_path / "lock", timeout=self.lock_timeout)

        with lock_manager.artifact_lock(artifact.cache_key):
            cache_info, downloaded = self._ensure_cached(artifact, cache_path)

        logger.debug(f"skip {artifact.skip} levels")
        destination = package_path / artifact.destination
        logger.debug(f"cached archive {cache_info.path}")

        logger.info(f"Extracting '{artifact.file_name}'...")
        with lock_manager.destination_lock(destination):
            count = self.extractor(cache_info.path, destination, strip=artifact.skip)
        logger.info(f"{count} files extracted.")

        return InstallResult(
            outcome=Outcome.INSTALLED,
            package_path=package_path,
            url=artifact.url,
            cache_key=artifact.cache_key,
            integrity=cache_info.integrity,
            destination=destination,
            files_extracted=count,
            downloaded=downloaded,
        )

    def _ensure_cached(self, artifact: BinaryArtifact, cache_path: Path):
        """
        Return the cache entry of an artifact, downloading it when absent.

        Returns:
            (CacheEntry, downloaded)
        """
        logger.debug(f"getting cache info({cache_path}, {artifact.cache_key})...")
        cache_info = get_info(cache_path, artifact.cache_key)
        if cache_info is not None:
            logger.debug(f"{artifact.cache_key} found in cache")
            return cache_info, False

        logger.info(f"Downloading {artifact.url}...")
        try:
            self.cache_archive(
                artifact.url, cache_path, artifact.cache_key, artifact.integrity
            )
        except Exception as e:
            logger.info(str(e))
            # The antivirus hint is about the host, not the target platform.
            if detect_platform().is_windows:
                logger.info(
                    "If you have an aggressive antivirus, try to"
                    " reconfigure it, or temporarily disable it."
                )
            raise DownloadError("Download failed.", url=artifact.url) from e

        # The cache accepted the write; it must now be able to report it.
        cache_info = get_info(cache_path, artifact.cache_key)
        if cache_info is None:
            raise DownloadError("Download failed.", url=artifact.url)

        return cache_info, True

    def cache_archive(
        self,
        url: str,
        cache_path: Union[str, Path],
        key: str,
        integrity: Optional[str] = None,
    ) -> str:
        """
        Stream a URL into the cache.

        Returns:
            The integrity digest computed by the cache
        """
        computed = cache_archive(
            url,
            cache_path,
            key,
            integrity=integrity,
            session=self.session,
            timeout=self.timeout,
        )
        logger.debug(f"computed integrity {computed}")
        return computed


def download_binaries(
    package_path: Union[str, Path],
    cache_path: Optional[Union[str, Path]] = None,
    **kwargs,
) -> InstallResult:
    """
    Convenience function to install the binaries of one package.

    Example:
        >>> from xpackkit.packages.xpack import download_binaries
        >>> result = download_binaries("node_modules/@xpack-dev-tools/ninja-build")
    """
    return Xpack(package_path, cache_path=cache_path, **kwargs).download_binaries()


__all__ = ["InstallResult", "Xpack", "download_binaries"]
