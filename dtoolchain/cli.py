# SPDX-License-Identifier: MIT
"""Command-line interface for dtoolchain."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from dtoolchain.configure.config import get_var, set_cli_vars
from dtoolchain.core.errors import ConfigurationError, DToolchainError
from dtoolchain.core.settings import (
    BuildOption,
    BuildSettings,
    TargetType,
    option_names,
    options_from_names,
    parse_target_type,
)
from dtoolchain.toolchains import compiler_registry
from dtoolchain.tools.process import OutputStream
from dtoolchain.tools.toolchain import BaseCompiler

# Set up logging
logger = logging.getLogger("dtoolchain")


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


def parse_variables(args: Sequence[str]) -> tuple[dict[str, str], list[str]]:
    """Parse KEY=value arguments from a list.

    Collection stops at the first ``--``; everything after it is passed
    through unchanged.

    Args:
        args: List of arguments.

    Returns:
        Tuple of (variables dict, remaining args).
    """
    variables: dict[str, str] = {}
    remaining: list[str] = []

    for i, arg in enumerate(args):
        if arg == "--":
            remaining.extend(args[i:])
            break
        if "=" in arg and not arg.startswith("-"):
            key, _, value = arg.partition("=")
            if key:  # Valid KEY=value
                variables[key] = value
            else:
                remaining.append(arg)
        else:
            remaining.append(arg)

    return variables, remaining


def _option_type(text: str) -> BuildOption:
    try:
        return options_from_names([text])
    except KeyError:
        raise argparse.ArgumentTypeError(f"unknown build option: {text}") from None


def _target_type(text: str) -> TargetType:
    try:
        return parse_target_type(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _resolve_compiler(args: argparse.Namespace) -> tuple[BaseCompiler, str]:
    """Return (backend, binary) from --compiler or the DC variable."""
    requested = args.compiler or get_var("DC") or "dmd"
    try:
        info = compiler_registry.info(requested)
    except ConfigurationError:
        # Not a backend name; treat it as a path to a compiler binary
        return compiler_registry.find_for_binary(requested), requested
    return info.compiler_class(), info.default_binary


def _settings_from_args(args: argparse.Namespace) -> BuildSettings:
    settings = BuildSettings(
        target_type=args.target_type,
        target_name=args.target_name or "",
        target_path=args.target_path or "",
    )
    for option in args.options:
        settings.add_options(option)
    settings.add_versions(*args.versions)
    settings.add_debug_versions(*args.debug_versions)
    settings.add_import_paths(*args.import_paths)
    settings.add_string_import_paths(*args.string_import_paths)
    settings.add_libs(*args.libs)
    settings.add_lflags(*args.lflags)
    settings.add_dflags(*args.dflags)
    settings.add_source_files(*args.sources)
    return settings


def _print_output(stream: OutputStream, line: str) -> None:
    print(line, file=sys.stderr if stream is OutputStream.ERROR else sys.stdout)


def cmd_platform(args: argparse.Namespace) -> int:
    """Show the detected build platform for a compiler."""
    compiler, binary = _resolve_compiler(args)
    platform = compiler.determine_platform(BuildSettings(), binary, args.arch)

    print(f"compiler:         {platform.compiler}")
    print(f"binary:           {platform.compiler_binary}")
    print(f"platform:         {', '.join(platform.platform)}")
    print(f"architecture:     {', '.join(platform.architecture)}")
    print(f"frontend version: {platform.frontend_version}")
    return 0


def cmd_flags(args: argparse.Namespace) -> int:
    """Print the compiler flags for a build description."""
    compiler, binary = _resolve_compiler(args)
    settings = _settings_from_args(args)
    # Flag generation never needs the frontend version
    platform = compiler.determine_platform(
        settings, binary, args.arch, frontend_version=0
    )

    prepared = compiler.prepare_build_settings(settings, platform=platform)
    if prepared.target_type not in (
        TargetType.AUTODETECT,
        TargetType.NONE,
        TargetType.SOURCE_LIBRARY,
    ):
        compiler.set_target(prepared, platform)

    for flag in prepared.dflags:
        print(flag)
    return 0


def cmd_extract(args: argparse.Namespace) -> int:
    """Decode a raw flag list into options, versions and leftover flags."""
    compiler, _ = _resolve_compiler(args)
    flags = [f for f in args.flags if f != "--"]
    extracted = compiler.extract_build_options(BuildSettings(dflags=flags))

    print(f"options:        {' '.join(option_names(extracted.options))}")
    print(f"versions:       {' '.join(extracted.versions)}")
    print(f"debug versions: {' '.join(extracted.debug_versions)}")
    print(f"flags:          {' '.join(extracted.dflags)}")
    return 0


def cmd_target_name(args: argparse.Namespace) -> int:
    """Print the artifact file name for a target."""
    compiler, binary = _resolve_compiler(args)
    settings = BuildSettings(target_type=args.target_type, target_name=args.target_name)
    platform = compiler.determine_platform(
        settings, binary, args.arch, frontend_version=0
    )

    file_name = compiler.get_target_file_name(settings, platform)
    if file_name is not None:
        print(file_name)
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    """Compile a build description and return the compiler's exit code."""
    compiler, binary = _resolve_compiler(args)
    settings = _settings_from_args(args)
    platform = compiler.determine_platform(settings, binary, args.arch)

    prepared = compiler.prepare_build_settings(settings, platform=platform)
    compiler.set_target(prepared, platform)
    status = compiler.invoke(prepared, platform, _print_output)
    if status != 0:
        logger.error("%s exited with code %d", platform.compiler_binary, status)
    return status


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument(
        "-c",
        "--compiler",
        metavar="NAME",
        help="Compiler name or binary (default: $DC or dmd)",
    )
    parser.add_argument(
        "-a", "--arch", default="", help="Architecture override (x86, x86_64)"
    )


def add_settings_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments describing a build."""
    parser.add_argument(
        "-o",
        "--option",
        dest="options",
        action="append",
        type=_option_type,
        default=[],
        metavar="NAME",
        help="Build option (e.g. debugMode, optimize)",
    )
    parser.add_argument(
        "--version-id",
        dest="versions",
        action="append",
        default=[],
        metavar="ID",
        help="Version identifier",
    )
    parser.add_argument(
        "--debug-version",
        dest="debug_versions",
        action="append",
        default=[],
        metavar="ID",
        help="Debug identifier",
    )
    parser.add_argument(
        "-I", dest="import_paths", action="append", default=[], help="Import path"
    )
    parser.add_argument(
        "-J",
        dest="string_import_paths",
        action="append",
        default=[],
        help="String import path",
    )
    parser.add_argument(
        "--lib", dest="libs", action="append", default=[], help="Library to link"
    )
    parser.add_argument(
        "--lflag", dest="lflags", action="append", default=[], help="Linker flag"
    )
    parser.add_argument(
        "--dflag", dest="dflags", action="append", default=[], help="Compiler flag"
    )
    parser.add_argument(
        "-t",
        "--target-type",
        type=_target_type,
        default=TargetType.EXECUTABLE,
        help="Target type (default: executable)",
    )
    parser.add_argument("-n", "--target-name", help="Target name")
    parser.add_argument("-p", "--target-path", help="Target directory")
    parser.add_argument("sources", nargs="*", help="Source files")


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the dtoolchain CLI."""
    parser = argparse.ArgumentParser(
        prog="dtoolchain",
        description="Translate D build descriptions into compiler invocations.",
        epilog="Run 'dtoolchain <command> --help' for command-specific help.",
    )
    from dtoolchain import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # dtoolchain platform
    platform_parser = subparsers.add_parser(
        "platform", help="Show the build platform for a compiler"
    )
    add_common_args(platform_parser)
    platform_parser.set_defaults(func=cmd_platform)

    # dtoolchain flags
    flags_parser = subparsers.add_parser(
        "flags", help="Print compiler flags for a build description"
    )
    add_common_args(flags_parser)
    add_settings_args(flags_parser)
    flags_parser.set_defaults(func=cmd_flags)

    # dtoolchain extract
    extract_parser = subparsers.add_parser(
        "extract", help="Decode compiler flags into build options"
    )
    add_common_args(extract_parser)
    extract_parser.add_argument(
        "flags", nargs=argparse.REMAINDER, help="Flags to decode (after --)"
    )
    extract_parser.set_defaults(func=cmd_extract)

    # dtoolchain target-name
    name_parser = subparsers.add_parser(
        "target-name", help="Print the artifact file name for a target"
    )
    add_common_args(name_parser)
    name_parser.add_argument(
        "-t", "--target-type", type=_target_type, required=True, help="Target type"
    )
    name_parser.add_argument("-n", "--target-name", required=True, help="Target name")
    name_parser.set_defaults(func=cmd_target_name)

    # dtoolchain build
    build_parser = subparsers.add_parser("build", help="Compile a build description")
    add_common_args(build_parser)
    add_settings_args(build_parser)
    build_parser.set_defaults(func=cmd_build)

    # KEY=value variables may appear anywhere before "--"
    variables, remaining = parse_variables(sys.argv[1:] if argv is None else argv)
    if variables:
        set_cli_vars(variables)

    args = parser.parse_args(remaining)
    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(args.verbose, args.debug)
    try:
        result: int = args.func(args)
    except DToolchainError as e:
        logger.error("%s", e)
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
