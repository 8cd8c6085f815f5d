"""
Id command implementation.

Prints the canonical renderings of a package descriptor.
"""

import logging

from xpackkit.core.exceptions import ExitCode
from xpackkit.core.manifest_id import ManifestId

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the id command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    try:
        manifest_id = ManifestId(args.descriptor, args.fallback_version)
    except ValueError as e:
        logger.error(str(e))
        return ExitCode.SYNTAX

    print(f"scope:         {manifest_id.scope or ''}")
    print(f"name:          {manifest_id.name}")
    print(f"version:       {manifest_id.version}")
    print(f"scoped name:   {manifest_id.scoped_name()}")
    print(f"full name:     {manifest_id.full_name()}")
    print(f"relative path: {manifest_id.relative_path()}")
    print(f"posix path:    {manifest_id.posix_path()}")
    print(f"folder name:   {manifest_id.folder_name()}")

    return ExitCode.SUCCESS
