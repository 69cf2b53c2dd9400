# SPDX-License-Identifier: MIT
"""DMD toolchain implementation.

DMD is the reference D compiler. It can both compile and drive the
system linker, so separate linking is supported.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from dtoolchain.core.flags import prefix
from dtoolchain.core.settings import BuildOption, TargetType
from dtoolchain.tools.process import invoke_with_response_file
from dtoolchain.tools.query import LinkerAbi
from dtoolchain.tools.toolchain import BaseCompiler, OptionTable, compiler_registry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dtoolchain.configure.platform import BuildPlatform
    from dtoolchain.core.settings import BuildSettings
    from dtoolchain.tools.libs import LibResolver
    from dtoolchain.tools.process import OutputCallback

logger = logging.getLogger(__name__)


class DmdCompiler(BaseCompiler):
    """DMD compiler backend."""

    OPTIONS: OptionTable = (
        (BuildOption.DEBUG_MODE, ("-debug",)),
        (BuildOption.RELEASE_MODE, ("-release",)),
        (BuildOption.COVERAGE, ("-cov",)),
        (BuildOption.DEBUG_INFO, ("-g",)),
        (BuildOption.DEBUG_INFO_C, ("-gc",)),
        (BuildOption.ALWAYS_STACK_FRAME, ("-gs",)),
        (BuildOption.STACK_STOMPING, ("-gx",)),
        (BuildOption.INLINE, ("-inline",)),
        (BuildOption.NO_BOUNDS_CHECK, ("-noboundscheck",)),
        (BuildOption.OPTIMIZE, ("-O",)),
        (BuildOption.PROFILE, ("-profile",)),
        (BuildOption.UNITTESTS, ("-unittest",)),
        (BuildOption.VERBOSE, ("-v",)),
        (BuildOption.IGNORE_UNKNOWN_PRAGMAS, ("-ignore",)),
        (BuildOption.SYNTAX_ONLY, ("-o-",)),
        (BuildOption.WARNINGS, ("-wi",)),
        (BuildOption.WARNINGS_AS_ERRORS, ("-w",)),
        (BuildOption.IGNORE_DEPRECATIONS, ("-d",)),
        (BuildOption.DEPRECATION_WARNINGS, ("-dw",)),
        (BuildOption.DEPRECATION_ERRORS, ("-de",)),
        (BuildOption.PROPERTY, ("-property",)),
        (BuildOption.PROFILE_GC, ("-profile=gc",)),
        (BuildOption.DOCS, ("-Dddocs",)),
        (BuildOption.DDOX, ("-Xfdocs.json", "-Df__dummy.html")),
    )

    ARCH_FLAGS: dict[str, tuple[str, ...]] = {
        "x86": ("-m32",),
        "x86_64": ("-m64",),
    }

    # Compile-only flags dropped from the link command line
    LINKER_IGNORED_DFLAGS: frozenset[str] = frozenset(
        [
            "-w",
            "-property",
            "-release",
            "-O",
            "-inline",
            "-noboundscheck",
            "-gc",
            "-g",
            "-unittest",
            "-gx",
            "-gs",
            "-cov",
        ]
    )

    def __init__(self, lib_resolver: LibResolver | None = None) -> None:
        super().__init__("dmd", lib_resolver)

    def lflags_to_dflags(self, lflags: Sequence[str]) -> list[str]:
        return prefix("-L", lflags)

    def pic_flags(self, platform: BuildPlatform) -> list[str]:
        # Windows DLLs need no PIC
        if platform.is_windows:
            return []
        return super().pic_flags(platform)

    def linker_abi(self, platform: BuildPlatform) -> LinkerAbi:
        # The DMD banner names no target triple; DMD uses the MS linker
        # (COFF) on Windows and the system ELF/Mach-O linker elsewhere.
        return LinkerAbi.COFF if platform.is_windows else LinkerAbi.ELF

    def target_type_flags(
        self, target_type: TargetType, platform: BuildPlatform
    ) -> list[str]:
        if target_type in (TargetType.LIBRARY, TargetType.STATIC_LIBRARY):
            return ["-lib"]
        if target_type is TargetType.DYNAMIC_LIBRARY:
            if platform.is_windows or platform.is_macos:
                return ["-shared"]
            return ["-shared", "-defaultlib=libphobos2.so"]
        if target_type is TargetType.OBJECT:
            return ["-c"]
        return []

    def linker_args(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        objects: Sequence[str],
    ) -> list[str]:
        """Return the flags for linking `objects` into the target."""
        file_name = self.get_target_file_name(settings, platform)
        assert file_name is not None
        target = Path(settings.target_path) / file_name

        args = [f"-of{target}"]
        args.extend(objects)
        args.extend(settings.source_files)
        if "linux" in platform.platform:
            # Libraries may be listed before the objects using them
            args.extend(self.lflags_to_dflags(["--no-as-needed"]))
        args.extend(self.lflags_to_dflags(settings.lflags))
        args.extend(f for f in settings.dflags if f not in self.LINKER_IGNORED_DFLAGS)
        return args

    def invoke_linker(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        objects: Sequence[str],
        output_callback: OutputCallback | None = None,
    ) -> int:
        """Link objects by running DMD with a ``.lnk`` response file."""
        args = self.linker_args(settings, platform, objects)
        logger.debug("Linking %s", settings.target_name)
        return invoke_with_response_file(
            platform.compiler_binary, args, output_callback, suffix=".lnk"
        )


# =============================================================================
# Registration
# =============================================================================

compiler_registry.register(
    DmdCompiler,
    name="dmd",
    default_binary="dmd",
)
