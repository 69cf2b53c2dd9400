# SPDX-License-Identifier: MIT
"""Toolchain queries.

Everything that learns something by running the compiler binary and
reading its text output lives here, so tests can stub a single
function instead of launching real processes.
"""

from __future__ import annotations

import logging
import re
import subprocess
from enum import Enum

from dtoolchain.core.errors import ToolchainQueryError

logger = logging.getLogger(__name__)

# Triple fragment that identifies the MSVC (COFF) object format
COFF_TRIPLE_MARKER = "-windows-msvc"

_FRONTEND_VERSION_RE = re.compile(r"\bv(\d+)\.(\d+)")


class LinkerAbi(Enum):
    """Object/linker convention the compiler produces by default."""

    COFF = "coff"
    ELF = "elf"


def query_compiler_output(binary: str, flag: str) -> str:
    """Run ``<binary> <flag>`` and return its combined output.

    Stderr is merged into stdout; GCC-style drivers print their
    configuration to stderr.

    Raises:
        ToolchainQueryError: If the binary cannot be run or exits non-zero.
    """
    logger.debug("Querying toolchain: %s %s", binary, flag)
    try:
        result = subprocess.run(
            [binary, flag],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as e:
        raise ToolchainQueryError(
            f'Failed to run "{binary} {flag}": {e}', binary
        ) from e

    if result.returncode != 0:
        raise ToolchainQueryError(
            f'"{binary} {flag}" failed with exit code {result.returncode}.',
            binary,
            result.returncode,
        )
    return result.stdout


def find_marker_line(output: str, marker: str) -> str | None:
    """Return the first line that starts with `marker`, case-insensitively.

    Lines are stripped before matching. The returned line is lowercased.
    """
    marker = marker.lower()
    for line in output.splitlines():
        line = line.strip().lower()
        if line.startswith(marker):
            return line
    return None


def detect_linker_abi(binary: str, version_flag: str, marker: str) -> LinkerAbi:
    """Find out which object format the compiler targets by default.

    Args:
        binary: Compiler executable.
        version_flag: Flag that makes the compiler print its target.
        marker: Start of the line carrying the target triple
            (e.g. "default target:").

    Raises:
        ToolchainQueryError: If the query fails or no marker line is found.
    """
    output = query_compiler_output(binary, version_flag)
    line = find_marker_line(output, marker)
    if line is None:
        raise ToolchainQueryError(
            f'Failed to determine linker used by {binary}: no "{marker}" line '
            f'in "{binary} {version_flag}" output.',
            binary,
            0,
        )
    abi = LinkerAbi.COFF if COFF_TRIPLE_MARKER in line else LinkerAbi.ELF
    logger.debug("%s targets %s (%s)", binary, abi.value, line)
    return abi


def parse_frontend_version(output: str) -> int:
    """Extract the frontend version from a version banner.

    Examples:
        >>> parse_frontend_version("DMD64 D Compiler v2.102.2")
        2102
        >>> parse_frontend_version("gdc (GCC) 12.2.0")
        0
    """
    match = _FRONTEND_VERSION_RE.search(output)
    if match is None:
        return 0
    return int(match.group(1)) * 1000 + int(match.group(2))


def query_frontend_version(binary: str, version_flag: str = "--version") -> int:
    """Run the compiler's version query and parse its frontend version.

    Returns 0 if the banner does not mention a frontend version.

    Raises:
        ToolchainQueryError: If the query fails.
    """
    version = parse_frontend_version(query_compiler_output(binary, version_flag))
    if version == 0:
        logger.debug("No frontend version found in %s banner", binary)
    return version
