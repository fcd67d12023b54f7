# SPDX-License-Identifier: MIT
"""Command-line interface for fbbridge."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from fbbridge.configure.config import CacheMode, FBuildSettings, load_settings
from fbbridge.core.action import load_actions
from fbbridge.core.errors import ConfigureError, DependencyCycleError, GenerateError
from fbbridge.executor import execute_actions
from fbbridge.fbuild import BuildResult
from fbbridge.generators.bff import BffGenerator
from fbbridge.toolchains.msvc import VcEnvironment

# Set up logging
logger = logging.getLogger("fbbridge")

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_UNAVAILABLE = 3

DEFAULT_OUTPUT = "fbuild.bff"

_EXIT_CODES = {
    BuildResult.SUCCEEDED: EXIT_SUCCESS,
    BuildResult.FAILED: EXIT_FAILURE,
    BuildResult.UNAVAILABLE: EXIT_UNAVAILABLE,
}


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def _load_settings(args: argparse.Namespace) -> FBuildSettings:
    settings = load_settings(args.config)
    if getattr(args, "no_dist", False):
        settings.enable_distribution = False
    if getattr(args, "cache", None):
        settings.enable_caching = True
        settings.cache_mode = CacheMode.parse(args.cache)
    if getattr(args, "cache_path", None):
        settings.cache_path = args.cache_path
    if getattr(args, "fbuild", None):
        settings.fbuild_executable = args.fbuild
    return settings


def cmd_generate(args: argparse.Namespace) -> int:
    """Write a .bff for an actions file without running fbuild."""
    try:
        settings = _load_settings(args)
        actions = load_actions(args.actions)
        generator = BffGenerator(
            settings,
            vc_env=VcEnvironment.from_environ(),
            base_dir=Path(args.actions).resolve().parent,
        )
        result = generator.generate(actions, Path(args.output))
    except (ConfigureError, GenerateError, DependencyCycleError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    logger.info("Generated %s", result.output_path)
    for action in result.local_actions:
        print(f"local: {action.describe()}")
    return EXIT_SUCCESS


def cmd_build(args: argparse.Namespace) -> int:
    """Generate a .bff and build it with fbuild."""
    try:
        settings = _load_settings(args)
        actions = load_actions(args.actions)
    except (ConfigureError, GenerateError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    report = execute_actions(
        actions,
        args.output,
        settings,
        vc_env=VcEnvironment.from_environ(),
        working_dir=args.directory,
    )
    for action in report.local_actions:
        print(f"local: {action.describe()}")
    return _EXIT_CODES[report.result]


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument("--config", metavar="FILE", help="JSON settings file")


def add_generate_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments for generate-related commands."""
    parser.add_argument("actions", help="Planner actions file (JSON)")
    parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_OUTPUT,
        help=f"Output .bff file (default: {DEFAULT_OUTPUT})",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the fbbridge CLI."""
    parser = argparse.ArgumentParser(
        prog="fbbridge",
        description="Translate a build action graph into FASTBuild and run it.",
        epilog="Run 'fbbridge <command> --help' for command-specific help.",
    )
    from fbbridge import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # fbbridge generate
    gen_parser = subparsers.add_parser(
        "generate", help="Write a .bff file from an actions file"
    )
    add_common_args(gen_parser)
    add_generate_args(gen_parser)
    gen_parser.set_defaults(func=cmd_generate)

    # fbbridge build
    build_parser = subparsers.add_parser(
        "build", help="Write a .bff file and build it with fbuild"
    )
    add_common_args(build_parser)
    add_generate_args(build_parser)
    build_parser.add_argument(
        "--no-dist", action="store_true", help="Disable distributed compilation"
    )
    build_parser.add_argument(
        "--cache",
        metavar="MODE",
        choices=[m.value for m in CacheMode],
        help="Enable the cache (readwrite, readonly, writeonly)",
    )
    build_parser.add_argument("--cache-path", metavar="PATH", help="Cache location")
    build_parser.add_argument("--fbuild", metavar="EXE", help="Path to fbuild")
    build_parser.add_argument(
        "-C", "--directory", metavar="DIR", help="Directory to run fbuild in"
    )
    build_parser.set_defaults(func=cmd_build)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_FAILURE

    setup_logging(args.verbose, args.debug)

    # Run the specified command
    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
