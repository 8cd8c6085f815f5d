"""
Install command implementation.

Installs the platform binaries of one or more package folders.
"""

import logging
from pathlib import Path

from xpackkit.cli.utils import load_settings
from xpackkit.core.exceptions import ExitCode, NotAPackageError
from xpackkit.core.platform import PlatformInfo, detect_platform
from xpackkit.packages.binaries import Outcome
from xpackkit.packages.xpack import Xpack

logger = logging.getLogger(__name__)


def parse_platform_key(key: str) -> PlatformInfo:
    """
    Split a platform key such as 'linux-x64' into a PlatformInfo.

    Raises:
        ValueError: If the key is not of the form '<os>-<arch>'
    """
    os_name, sep, arch = key.strip().partition("-")
    if not sep or not os_name or not arch:
        raise ValueError(f"Invalid platform key '{key}', expected <os>-<arch>")
    return PlatformInfo(os=os_name, arch=arch)


def run(args) -> int:
    """
    Run the install command.

    Folders that are not packages are reported and skipped; configuration
    and download errors stop the batch.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    logger.debug(f"Arguments: {args}")
    settings = load_settings(args)

    if args.platform:
        try:
            platform = parse_platform_key(args.platform)
        except ValueError as e:
            logger.error(str(e))
            return ExitCode.SYNTAX
    else:
        platform = detect_platform()

    folders = args.folders or [Path.cwd()]
    logger.debug(f"cache: {settings.cache_dir}, platform: {platform}")

    exit_code = ExitCode.SUCCESS
    for folder in folders:
        xpack = Xpack(
            folder,
            cache_path=settings.cache_dir,
            platform=platform,
            timeout=settings.timeout,
            lock_timeout=settings.lock_timeout,
        )

        try:
            xpack.read_package_json()
        except NotAPackageError as e:
            logger.error(str(e))
            exit_code = e.exit_code
            continue

        result = xpack.download_binaries()

        if result.outcome is Outcome.INSTALLED:
            source = "downloaded" if result.downloaded else "from cache"
            logger.info(
                f"'{folder}': {result.files_extracted} files in "
                f"'{result.destination}' ({source})"
            )
        elif result.outcome is Outcome.NOT_A_PACKAGE:
            logger.warning(f"'{folder}' package.json has no name or version, skipped")
        else:
            logger.debug(f"'{folder}': {result.outcome.value}")

    return exit_code
