# SPDX-License-Identifier: MIT
"""Library resolution.

Turns library names into raw linker flags. On POSIX hosts pkg-config is
asked first (``pkg-config --libs libfoo``); if that fails, plain
``-lfoo`` flags are used. Windows links ``foo.lib`` directly.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from dtoolchain.core.settings import TargetType

if TYPE_CHECKING:
    from dtoolchain.configure.platform import BuildPlatform

logger = logging.getLogger(__name__)

LibResolver = Callable[[Sequence[str], "BuildPlatform", TargetType], list[str]]


def split_pkg_config_libs(output: str) -> list[str]:
    """Split ``pkg-config --libs`` output into raw linker flags.

    ``-Wl,a,b`` compiler-driver wrappers are unwrapped into ``a`` and ``b``
    since backends apply their own linker pass-through.

    Examples:
        >>> split_pkg_config_libs("-L/opt/lib -lssl -Wl,--as-needed,-z,now\\n")
        ['-L/opt/lib', '-lssl', '--as-needed', '-z', 'now']
    """
    flags: list[str] = []
    for token in output.split():
        if token.startswith("-Wl,"):
            flags.extend(part for part in token[4:].split(",") if part)
        else:
            flags.append(token)
    return flags


def _pkg_config_libs(libs: Sequence[str]) -> list[str] | None:
    pkg_config = shutil.which("pkg-config")
    if pkg_config is None:
        logger.debug("pkg-config not found")
        return None
    try:
        result = subprocess.run(
            [pkg_config, "--libs", *(f"lib{lib}" for lib in libs)],
            capture_output=True,
            text=True,
        )
    except OSError as e:
        logger.debug("pkg-config failed: %s", e)
        return None
    if result.returncode != 0:
        logger.debug("pkg-config exited with error code %d", result.returncode)
        return None
    return split_pkg_config_libs(result.stdout)


def resolve_libs(
    libs: Sequence[str],
    platform: BuildPlatform,
    target_type: TargetType,
) -> list[str]:
    """Resolve library names to raw linker flags.

    Args:
        libs: Library names without prefix or suffix (e.g. "ssl").
        platform: Build platform; Windows links libraries by file name.
        target_type: Static library builds ignore import libraries.

    Returns:
        Raw linker flags, before any backend-specific pass-through wrapping.
    """
    if not libs:
        return []

    if target_type in (TargetType.LIBRARY, TargetType.STATIC_LIBRARY):
        logger.debug("Ignoring all import libraries for static library build.")
        return []

    if platform.is_windows:
        return [f"{lib}.lib" for lib in libs]

    flags = _pkg_config_libs(libs)
    if flags is None:
        logger.debug("Falling back to direct -lxyz flags.")
        flags = [f"-l{lib}" for lib in libs]
    return flags
