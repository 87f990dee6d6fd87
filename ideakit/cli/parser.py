"""
ideakit CLI argument parser.

This module implements the command-line interface for ideakit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ideakit.config.parser import DEFAULT_CONFIG_FILE
from ideakit.core.exceptions import IdeaKitError
from ideakit.core.locking import LockTimeout

# Get version from package
try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("ideakit")
except PackageNotFoundError:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

COMMAND_MODULES = {
    "resolve": "ideakit.cli.commands.resolve",
    "local": "ideakit.cli.commands.local",
    "types": "ideakit.cli.commands.types",
}


class CLI:
    """ideakit command-line interface."""

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
            prog="ideakit",
            description="ideakit - IDE distributions as build dependencies",
            epilog='Use "ideakit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"ideakit {__version__}"
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
            help=f"Path to configuration file (default: ./{DEFAULT_CONFIG_FILE})",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_resolve_command(subparsers)
        self._add_local_command(subparsers)
        self._add_types_command(subparsers)

        return parser

    def _add_resolve_command(self, subparsers):
        """Add 'resolve' subcommand."""
        parser = subparsers.add_parser(
            "resolve",
            help="Download and extract an IDE distribution",
            description="Resolve a remote IDE distribution into the local cache",
        )
        parser.add_argument("type", metavar="TYPE", help="Platform type (e.g. IC, IU, RD)")
        parser.add_argument("version", metavar="VERSION", help="IDE version (e.g. 2022.3)")
        parser.add_argument(
            "--no-sources",
            dest="sources",
            action="store_false",
            help="Do not attach the IDE sources jar",
        )
        parser.add_argument(
            "--extra",
            action="append",
            default=[],
            metavar="NAME",
            help="Extra artifact to resolve (can be used multiple times)",
        )
        parser.add_argument(
            "--without-kotlin",
            dest="with_kotlin",
            action="store_false",
            help="Leave out the bundled Kotlin runtime jars",
        )
        parser.add_argument(
            "--descriptor",
            action="store_true",
            help="Write the Ivy descriptor and print its registration",
        )

    def _add_local_command(self, subparsers):
        """Add 'local' subcommand."""
        parser = subparsers.add_parser(
            "local",
            help="Describe a locally installed IDE",
            description="Resolve an IDE installed on disk (directory or .app bundle)",
        )
        parser.add_argument("path", type=Path, metavar="PATH", help="IDE installation")
        parser.add_argument(
            "--sources",
            type=Path,
            metavar="PATH",
            help="Sources jar to attach",
        )
        parser.add_argument(
            "--without-kotlin",
            dest="with_kotlin",
            action="store_false",
            help="Leave out the bundled Kotlin runtime jars",
        )
        parser.add_argument(
            "--descriptor",
            action="store_true",
            help="Write the Ivy descriptor and print its registration",
        )

    def _add_types_command(self, subparsers):
        """Add 'types' subcommand."""
        subparsers.add_parser(
            "types",
            help="List supported platform types",
            description="List supported platform types and their repository coordinates",
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
            return 1

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except (IdeaKitError, LockTimeout, OSError) as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

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
        module_name = COMMAND_MODULES.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            logger.error(f"Failed to load command module: {e}")
            return 1

        if not hasattr(module, "run"):
            logger.error(f"Command module {module_name} has no run() function")
            return 1

        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
