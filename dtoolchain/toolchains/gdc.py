# SPDX-License-Identifier: MIT
"""GDC toolchain implementation.

GDC is the GCC-based D compiler and uses GCC-style flags. Static
libraries are compiled with ``-c`` and archived with ``ar`` in the
separate link step.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from dtoolchain.core.flags import pairwise
from dtoolchain.core.settings import BuildOption, TargetType
from dtoolchain.tools.process import invoke_tool
from dtoolchain.tools.toolchain import BaseCompiler, OptionTable, compiler_registry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dtoolchain.configure.platform import BuildPlatform
    from dtoolchain.core.settings import BuildSettings
    from dtoolchain.tools.libs import LibResolver
    from dtoolchain.tools.process import OutputCallback

logger = logging.getLogger(__name__)


class GdcCompiler(BaseCompiler):
    """GDC compiler backend.

    Every flag appears in at most one table entry, so decoding is
    unambiguous; ALWAYS_STACK_FRAME, STACK_STOMPING and PROFILE_GC have
    no GDC equivalent.
    """

    OPTIONS: OptionTable = (
        (BuildOption.DEBUG_MODE, ("-fdebug",)),
        (BuildOption.RELEASE_MODE, ("-frelease",)),
        (BuildOption.COVERAGE, ("-fprofile-arcs", "-ftest-coverage")),
        (BuildOption.DEBUG_INFO, ("-g",)),
        (BuildOption.DEBUG_INFO_C, ("-fdebug-c",)),
        (BuildOption.INLINE, ("-finline-functions",)),
        (BuildOption.NO_BOUNDS_CHECK, ("-fno-bounds-check",)),
        (BuildOption.OPTIMIZE, ("-O3",)),
        (BuildOption.PROFILE, ("-pg",)),
        (BuildOption.UNITTESTS, ("-funittest",)),
        (BuildOption.VERBOSE, ("-fd-verbose",)),
        (BuildOption.IGNORE_UNKNOWN_PRAGMAS, ("-fignore-unknown-pragmas",)),
        (BuildOption.SYNTAX_ONLY, ("-fsyntax-only",)),
        (BuildOption.WARNINGS, ("-Wall",)),
        (BuildOption.WARNINGS_AS_ERRORS, ("-Werror",)),
        (BuildOption.IGNORE_DEPRECATIONS, ("-Wno-deprecated",)),
        (BuildOption.DEPRECATION_WARNINGS, ("-Wdeprecated",)),
        (BuildOption.DEPRECATION_ERRORS, ("-Werror=deprecated",)),
        (BuildOption.PROPERTY, ("-fproperty",)),
        (BuildOption.DOCS, ("-fdoc-dir=docs",)),
        (BuildOption.DDOX, ("-fXf=docs.json", "-fdoc-file=__dummy.html")),
    )

    ARCH_FLAGS: dict[str, tuple[str, ...]] = {
        "x86": ("-m32",),
        "x86_64": ("-m64",),
    }

    VERSION_PREFIX = "-fversion="
    DEBUG_VERSION_PREFIX = "-fdebug="
    PIC_FLAGS = ("-fPIC",)
    VERSION_QUERY_FLAG = "--version"
    # GCC drivers print "Target: <triple>" on stderr for -v
    ABI_QUERY_FLAG = "-v"
    ABI_MARKER = "target:"
    COLUMNS_FLAG = None

    # Flags that still matter when GDC drives the linker
    LINKAGE_FLAG_PREFIXES: tuple[str, ...] = ("-L", "-l", "-m", "-pthread")

    def __init__(self, lib_resolver: LibResolver | None = None) -> None:
        super().__init__("gdc", lib_resolver)

    def lflags_to_dflags(self, lflags: Sequence[str]) -> list[str]:
        return pairwise("-Xlinker", lflags)

    def target_type_flags(
        self, target_type: TargetType, platform: BuildPlatform
    ) -> list[str]:
        if target_type in (
            TargetType.LIBRARY,
            TargetType.STATIC_LIBRARY,
            TargetType.OBJECT,
        ):
            return ["-c"]
        if target_type is TargetType.DYNAMIC_LIBRARY:
            return ["-shared"]
        return []

    def output_flags(self, target_path: str) -> list[str]:
        return ["-o", target_path]

    def linkage_dflags(self, dflags: Sequence[str]) -> list[str]:
        """Keep only the flags relevant to linking, with their arguments."""
        result: list[str] = []
        take_next = False
        for flag in dflags:
            if take_next:
                result.append(flag)
                take_next = False
            elif flag == "-Xlinker":
                result.append(flag)
                take_next = True
            elif flag.startswith(self.LINKAGE_FLAG_PREFIXES):
                result.append(flag)
        return result

    def linker_command(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        objects: Sequence[str],
    ) -> list[str]:
        """Return the full command line for the link step."""
        file_name = self.get_target_file_name(settings, platform)
        assert file_name is not None
        target = str(Path(settings.target_path) / file_name)

        if settings.target_type in (TargetType.LIBRARY, TargetType.STATIC_LIBRARY):
            return ["ar", "rcs", target, *objects]

        command = [platform.compiler_binary, "-o", target]
        command.extend(objects)
        command.extend(settings.source_files)
        command.extend(self.lflags_to_dflags(settings.lflags))
        command.extend(self.linkage_dflags(settings.dflags))
        if "linux" in platform.platform:
            # Libraries may be listed before the objects using them
            command.extend(self.lflags_to_dflags(["--no-as-needed"]))
        return command

    def invoke_linker(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        objects: Sequence[str],
        output_callback: OutputCallback | None = None,
    ) -> int:
        """Link objects with GDC, or archive them with ``ar``."""
        command = self.linker_command(settings, platform, objects)
        logger.debug("Linking %s", settings.target_name)
        return invoke_tool(command, output_callback)


# =============================================================================
# Registration
# =============================================================================

compiler_registry.register(
    GdcCompiler,
    name="gdc",
    default_binary="gdc",
)
