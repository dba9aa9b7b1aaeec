"""
Command-line interface for protoforge.

This module provides the `protoforge` CLI tool for building protobuf from
source and generating code from its schemas.
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import __version__
from .build import BuildOrchestrator
from .cli_utils import ErrorFormatter, PathValidator, setup_logging
from .config import OrchestratorSettings
from .errors import OrchestrationError
from .packages import PlatformDetector
from .packages.cache import BuildWorkspace


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    out_dir: Optional[Path] = None
    clean: bool = False
    verbose: bool = False


@dataclass
class CleanArgs:
    """Arguments for the clean command."""

    out_dir: Optional[Path] = None
    verbose: bool = False


def build_command(args: BuildArgs) -> None:
    """Build protobuf (if not cached) and generate code.

    Examples:
        protoforge build                    # Use $OUT_DIR
        protoforge build --out-dir out      # Explicit output root
        protoforge build --clean            # Rebuild protobuf from scratch
        protoforge build --verbose          # Stream CMake output
    """
    print(f"protoforge v{__version__}")
    print()

    try:
        settings = OrchestratorSettings.from_environment(out_dir=args.out_dir)
        orchestrator = BuildOrchestrator(settings, verbose=args.verbose)

        if args.verbose:
            print(f"Output directory: {settings.out_dir}")
            print(f"Protobuf: {settings.version} ({settings.version.tag})")
            print(f"Platform: {orchestrator.profile.label} ({orchestrator.arch.value})")
            print()

        result = orchestrator.build(clean=args.clean)

        ErrorFormatter.print_success("Build successful!")
        print()
        print(f"protoc: {result.protoc}")
        print(f"Generated: {len(result.codegen.modules)} module(s) in {result.codegen.output_dir}")
        skipped = [p.name for p in result.codegen.passes if p.skipped]
        if skipped:
            print(f"Skipped: {', '.join(skipped)}")
        print(f"Metadata: {result.metadata_path}")
        print(f"Build time: {result.build_time:.2f}s")
        print()
        print(f"PROTOBUF={result.artifact_tree}")
        sys.exit(0)

    except OrchestrationError as e:
        ErrorFormatter.handle_orchestration_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def clean_command(args: CleanArgs) -> None:
    """Remove the pinned version's artifact and scratch trees.

    Examples:
        protoforge clean
        protoforge clean --out-dir out
    """
    try:
        settings = OrchestratorSettings.from_environment(out_dir=args.out_dir)
        workspace = BuildWorkspace(settings.out_dir, settings.version)
        workspace.clean()
        ErrorFormatter.print_success(f"Removed protobuf {settings.version} from {settings.out_dir}")
        sys.exit(0)

    except OrchestrationError as e:
        ErrorFormatter.handle_orchestration_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def info_command() -> None:
    """Print the detected platform profile."""
    info = PlatformDetector.get_platform_info()
    for key in ("system", "machine", "python_version", "profile", "arch", "toolchain", "jobs"):
        print(f"{key:>15}: {info[key]}")
    print(f"{'conformance':>15}: {'ON' if info['conformance'] else 'OFF'}")
    sys.exit(0)


def _add_out_dir_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-o",
        "--out-dir",
        type=Path,
        default=None,
        help="Output root (default: $OUT_DIR)",
    )


def main() -> None:
    """protoforge - build protobuf from source and generate code from its schemas."""
    parser = argparse.ArgumentParser(
        prog="protoforge",
        description="Build protobuf from source once per version and generate code from its schemas",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"protoforge {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build protobuf if needed and generate code",
    )
    _add_out_dir_argument(build_parser)
    build_parser.add_argument(
        "-c",
        "--clean",
        action="store_true",
        help="Remove cached protobuf build before building",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose build output",
    )

    # Clean command
    clean_parser = subparsers.add_parser(
        "clean",
        help="Remove cached protobuf build",
    )
    _add_out_dir_argument(clean_parser)
    clean_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Info command
    subparsers.add_parser(
        "info",
        help="Show detected platform profile",
    )

    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    if hasattr(parsed_args, "verbose"):
        setup_logging(parsed_args.verbose)

    if hasattr(parsed_args, "out_dir"):
        PathValidator.validate_out_dir(parsed_args.out_dir)

    # Execute command
    if parsed_args.command == "build":
        build_command(
            BuildArgs(
                out_dir=parsed_args.out_dir,
                clean=parsed_args.clean,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command == "clean":
        clean_command(CleanArgs(out_dir=parsed_args.out_dir, verbose=parsed_args.verbose))
    elif parsed_args.command == "info":
        info_command()


if __name__ == "__main__":
    main()
