# SPDX-License-Identifier: MIT
"""Host platform detection.

Produces the OS and architecture tags used to select platform specific
build behavior, and the BuildPlatform record that describes one
compiler on one host.
"""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass, replace

# Architecture names accepted as an explicit override
SUPPORTED_ARCH_OVERRIDES: tuple[str, ...] = ("x86", "x86_64")

_ARCH_ALIASES: dict[str, tuple[str, ...]] = {
    "x86_64": ("x86_64",),
    "amd64": ("x86_64",),
    "x64": ("x86_64",),
    "i386": ("x86",),
    "i486": ("x86",),
    "i586": ("x86",),
    "i686": ("x86",),
    "x86": ("x86",),
    "aarch64": ("aarch64",),
    "arm64": ("aarch64",),
    "armv7l": ("arm",),
    "armv6l": ("arm",),
    "arm": ("arm",),
    "ppc64le": ("ppc64",),
    "ppc64": ("ppc64",),
    "riscv64": ("riscv64",),
    "s390x": ("s390x",),
}


@dataclass(frozen=True)
class BuildPlatform:
    """Describes the platform a build runs on and the compiler used.

    Attributes:
        platform: OS tags, most specific first (e.g. ("linux", "posix")).
        architecture: Architecture tags (e.g. ("x86_64",)).
        compiler: Backend name (e.g. "ldc").
        compiler_binary: Path or name of the compiler executable.
        frontend_version: Frontend release as an integer, 2.102 -> 2102.
    """

    platform: tuple[str, ...]
    architecture: tuple[str, ...]
    compiler: str = ""
    compiler_binary: str = ""
    frontend_version: int = 0

    @property
    def is_windows(self) -> bool:
        return "windows" in self.platform

    @property
    def is_macos(self) -> bool:
        return "osx" in self.platform

    def with_architecture(self, arch: str) -> BuildPlatform:
        """Return a copy targeting exactly one architecture."""
        return replace(self, architecture=(arch,))


def detect_platform_tags() -> tuple[str, ...]:
    """Return the OS tags of the host, most specific first."""
    if sys.platform.startswith("win") or sys.platform == "cygwin":
        return ("windows",)
    if sys.platform == "darwin":
        return ("osx", "posix")
    if sys.platform.startswith("linux"):
        return ("linux", "posix")
    for bsd in ("freebsd", "openbsd", "netbsd", "dragonfly"):
        if sys.platform.startswith(bsd):
            return (bsd, "bsd", "posix")
    if sys.platform.startswith("sunos"):
        return ("solaris", "posix")
    return (sys.platform, "posix")


def detect_architecture_tags() -> tuple[str, ...]:
    """Return the architecture tags of the host.

    Never empty; an unknown machine name is passed through as its own tag.
    """
    machine = _platform.machine().lower()
    if not machine:
        machine = "x86_64" if sys.maxsize > 2**32 else "x86"
    return _ARCH_ALIASES.get(machine, (machine,))


def get_platform(
    compiler: str = "",
    compiler_binary: str = "",
    frontend_version: int = 0,
) -> BuildPlatform:
    """Detect the host platform and wrap it in a BuildPlatform."""
    return BuildPlatform(
        platform=detect_platform_tags(),
        architecture=detect_architecture_tags(),
        compiler=compiler,
        compiler_binary=compiler_binary,
        frontend_version=frontend_version,
    )
