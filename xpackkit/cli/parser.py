"""
xpackkit CLI argument parser.

This module implements the command-line interface for xpackkit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from xpackkit import __version__
from xpackkit.core.exceptions import ExitCode, XpackKitError

logger = logging.getLogger(__name__)


class CLI:
    """xpackkit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="xpackkit",
            description="xpackkit - install the native binaries of xPack packages",
            epilog='Use "xpackkit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"xpackkit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./xpackkit.yaml)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_id_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install platform binaries of packages",
            description="Download, cache and extract the binaries packages "
            "declare for this platform",
        )
        parser.add_argument(
            "folders",
            nargs="*",
            type=Path,
            metavar="FOLDER",
            help="Package folders (default: current directory)",
        )
        parser.add_argument(
            "--cache",
            type=Path,
            metavar="DIR",
            help="Content cache directory (default: ~/.xpackkit/cache)",
        )
        parser.add_argument(
            "--platform",
            metavar="KEY",
            help="Install for another platform key, e.g. linux-arm64",
        )

    def _add_id_command(self, subparsers):
        """Add 'id' subcommand."""
        parser = subparsers.add_parser(
            "id",
            help="Show the canonical forms of a package descriptor",
            description="Parse a package descriptor such as @scope/name@1.0.0",
        )
        parser.add_argument("descriptor", help="Package descriptor")
        parser.add_argument(
            "--fallback-version",
            metavar="VERSION",
            help="Version to use when the descriptor has none",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return ExitCode.SYNTAX

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except XpackKitError as e:
            logger.error(f"Error: {e}")
            self._print_traceback(parsed_args)
            return e.exit_code
        except Exception as e:
            logger.error(f"Error: {e}")
            self._print_traceback(parsed_args)
            return ExitCode.APPLICATION

    @staticmethod
    def _print_traceback(args):
        if args.verbose:
            import traceback

            traceback.print_exc()

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "install": "xpackkit.cli.commands.install",
            "id": "xpackkit.cli.commands.id",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return ExitCode.SYNTAX

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
