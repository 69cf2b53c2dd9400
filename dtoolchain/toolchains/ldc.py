# SPDX-License-Identifier: MIT
"""LDC toolchain implementation.

LDC is the LLVM-based D compiler. It always writes one object file per
module, so object files are kept apart by output directory. It has no
separate link step here: linking is done by the compile invocation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dtoolchain.core.errors import UnsupportedOperationError
from dtoolchain.core.flags import prefix
from dtoolchain.core.settings import BuildOption, TargetType
from dtoolchain.tools.toolchain import BaseCompiler, OptionTable, compiler_registry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dtoolchain.configure.platform import BuildPlatform
    from dtoolchain.core.settings import BuildSettings
    from dtoolchain.tools.libs import LibResolver
    from dtoolchain.tools.process import OutputCallback


class LdcCompiler(BaseCompiler):
    """LDC compiler backend (``ldc2``).

    Coverage, stack frame, stack stomping, profiling and GC profiling
    options have no LDC equivalent and emit nothing.
    """

    OPTIONS: OptionTable = (
        (BuildOption.DEBUG_MODE, ("-d-debug",)),
        (BuildOption.RELEASE_MODE, ("-release",)),
        (BuildOption.DEBUG_INFO, ("-g",)),
        (BuildOption.DEBUG_INFO_C, ("-gc",)),
        (BuildOption.INLINE, ("-enable-inlining",)),
        (BuildOption.NO_BOUNDS_CHECK, ("-boundscheck=off",)),
        (BuildOption.OPTIMIZE, ("-O",)),
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
        (BuildOption.DOCS, ("-Dd=docs",)),
        (BuildOption.DDOX, ("-Xf=docs.json", "-Dd=__dummy_docs")),
    )

    ARCH_FLAGS: dict[str, tuple[str, ...]] = {
        "x86": ("-march=x86",),
        "x86_64": ("-march=x86-64",),
    }

    VERSION_PREFIX = "-d-version="
    DEBUG_VERSION_PREFIX = "-d-debug="
    # LDC writes one object per module; keep them out of the source tree
    HOUSEKEEPING_FLAGS = ("-oq", "-od=.dub/obj")
    PIC_FLAGS = ("-relocation-model=pic",)
    VERSION_QUERY_FLAG = "-version"
    ABI_QUERY_FLAG = "-version"
    ABI_MARKER = "default target:"

    def __init__(self, lib_resolver: LibResolver | None = None) -> None:
        super().__init__("ldc", lib_resolver)

    @property
    def supports_separate_link(self) -> bool:
        return False

    def lflags_to_dflags(self, lflags: Sequence[str]) -> list[str]:
        return prefix("-L=", lflags)

    def target_type_flags(
        self, target_type: TargetType, platform: BuildPlatform
    ) -> list[str]:
        if target_type in (TargetType.LIBRARY, TargetType.STATIC_LIBRARY):
            return ["-lib"]
        if target_type is TargetType.DYNAMIC_LIBRARY:
            if platform.is_windows or platform.is_macos:
                return ["-shared"]
            # TODO: confirm against a shared druntime build whether other
            # POSIX hosts still need the explicit phobos2-ldc default lib.
            return ["-shared", "-defaultlib=phobos2-ldc"]
        if target_type is TargetType.OBJECT:
            return ["-c"]
        return []

    def invoke_linker(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        objects: Sequence[str],
        output_callback: OutputCallback | None = None,
    ) -> int:
        raise UnsupportedOperationError(self.name, "Separate linking")


# =============================================================================
# Registration
# =============================================================================

compiler_registry.register(
    LdcCompiler,
    name="ldc",
    aliases=["ldc2"],
    default_binary="ldc2",
)
