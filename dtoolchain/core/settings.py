# SPDX-License-Identifier: MIT
"""Build settings: the compiler-independent description of one build unit.

A BuildSettings value is what a caller fills in before handing it to a
compiler backend. The backend translates the typed fields (options,
versions, import paths, ...) into concrete compiler flags.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, Flag, auto
from typing import TYPE_CHECKING

from dtoolchain.core.flags import merge_unique

if TYPE_CHECKING:
    from collections.abc import Iterable


class TargetType(Enum):
    """Kind of artifact a build produces."""

    AUTODETECT = "autodetect"
    NONE = "none"
    EXECUTABLE = "executable"
    LIBRARY = "library"
    SOURCE_LIBRARY = "sourceLibrary"
    STATIC_LIBRARY = "staticLibrary"
    DYNAMIC_LIBRARY = "dynamicLibrary"
    OBJECT = "object"


class BuildOption(Flag):
    """Boolean build options, combined as a bit set."""

    NONE = 0
    DEBUG_MODE = auto()
    RELEASE_MODE = auto()
    COVERAGE = auto()
    DEBUG_INFO = auto()
    DEBUG_INFO_C = auto()
    ALWAYS_STACK_FRAME = auto()
    STACK_STOMPING = auto()
    INLINE = auto()
    NO_BOUNDS_CHECK = auto()
    OPTIMIZE = auto()
    PROFILE = auto()
    UNITTESTS = auto()
    VERBOSE = auto()
    IGNORE_UNKNOWN_PRAGMAS = auto()
    SYNTAX_ONLY = auto()
    WARNINGS = auto()
    WARNINGS_AS_ERRORS = auto()
    IGNORE_DEPRECATIONS = auto()
    DEPRECATION_WARNINGS = auto()
    DEPRECATION_ERRORS = auto()
    PROPERTY = auto()
    PROFILE_GC = auto()
    # Documentation generation, set internally by doc builds
    DOCS = auto()
    DDOX = auto()


class BuildSetting(Flag):
    """Field groups of BuildSettings, used to select what gets translated."""

    NONE = 0
    DFLAGS = auto()
    LFLAGS = auto()
    LIBS = auto()
    SOURCE_FILES = auto()
    COPY_FILES = auto()
    VERSIONS = auto()
    DEBUG_VERSIONS = auto()
    IMPORT_PATHS = auto()
    STRING_IMPORT_PATHS = auto()
    OPTIONS = auto()
    ALL = (
        DFLAGS
        | LFLAGS
        | LIBS
        | SOURCE_FILES
        | COPY_FILES
        | VERSIONS
        | DEBUG_VERSIONS
        | IMPORT_PATHS
        | STRING_IMPORT_PATHS
        | OPTIONS
    )


@dataclass
class BuildSettings:
    """Mutable specification of a single compilation/link unit.

    Attributes:
        target_type: Kind of artifact to produce.
        target_name: Base name of the artifact (no prefix/suffix).
        target_path: Directory the artifact is written to.
        dflags: Raw compiler flags, in order.
        lflags: Raw linker flags, in order.
        libs: Library names that still need resolving to link flags.
        source_files: Source files to compile.
        copy_files: Files copied next to the artifact after the build.
        versions: Version identifiers for conditional compilation.
        debug_versions: Debug identifiers for conditional compilation.
        import_paths: Module search directories.
        string_import_paths: Directories searched by string imports.
        options: Set of enabled BuildOption flags.
    """

    target_type: TargetType = TargetType.AUTODETECT
    target_name: str = ""
    target_path: str = ""
    dflags: list[str] = field(default_factory=list)
    lflags: list[str] = field(default_factory=list)
    libs: list[str] = field(default_factory=list)
    source_files: list[str] = field(default_factory=list)
    copy_files: list[str] = field(default_factory=list)
    versions: list[str] = field(default_factory=list)
    debug_versions: list[str] = field(default_factory=list)
    import_paths: list[str] = field(default_factory=list)
    string_import_paths: list[str] = field(default_factory=list)
    options: BuildOption = BuildOption.NONE

    def copy(self) -> BuildSettings:
        """Return an independent copy (lists are not shared)."""
        return replace(
            self,
            dflags=list(self.dflags),
            lflags=list(self.lflags),
            libs=list(self.libs),
            source_files=list(self.source_files),
            copy_files=list(self.copy_files),
            versions=list(self.versions),
            debug_versions=list(self.debug_versions),
            import_paths=list(self.import_paths),
            string_import_paths=list(self.string_import_paths),
        )

    # Flags are order-sensitive and may legitimately repeat
    def add_dflags(self, *flags: str) -> None:
        self.dflags.extend(flags)

    def add_lflags(self, *flags: str) -> None:
        self.lflags.extend(flags)

    def add_source_files(self, *files: str) -> None:
        merge_unique(self.source_files, files)

    def add_libs(self, *libs: str) -> None:
        merge_unique(self.libs, libs)

    def add_copy_files(self, *files: str) -> None:
        merge_unique(self.copy_files, files)

    def add_versions(self, *versions: str) -> None:
        merge_unique(self.versions, versions)

    def add_debug_versions(self, *versions: str) -> None:
        merge_unique(self.debug_versions, versions)

    def add_import_paths(self, *paths: str) -> None:
        merge_unique(self.import_paths, paths)

    def add_string_import_paths(self, *paths: str) -> None:
        merge_unique(self.string_import_paths, paths)

    def add_options(self, options: BuildOption) -> None:
        self.options |= options


def options_from_names(names: Iterable[str]) -> BuildOption:
    """Parse option names like ``debugMode`` or ``DEBUG_MODE`` into a bit set.

    Raises:
        KeyError: If a name is not a BuildOption.
    """
    result = BuildOption.NONE
    for name in names:
        result |= BuildOption[_normalize_option_name(name)]
    return result


def _normalize_option_name(name: str) -> str:
    if name.isupper() or "_" in name:
        return name.upper()
    # camelCase -> CAMEL_CASE
    out: list[str] = []
    for i, ch in enumerate(name):
        if ch.isupper() and i and name[i - 1].islower():
            out.append("_")
        out.append(ch.upper())
    return "".join(out)


def option_names(options: BuildOption) -> list[str]:
    """Return the names of the options set in `options`, in declaration order."""
    return [
        option.name
        for option in BuildOption.__members__.values()
        if option.value and option in options
    ]


def parse_target_type(text: str) -> TargetType:
    """Parse a target type from its value ("staticLibrary") or name ("STATIC_LIBRARY").

    Raises:
        ValueError: If the text names no target type.
    """
    for target_type in TargetType:
        if text == target_type.value or text.upper() == target_type.name:
            return target_type
    raise ValueError(f"unknown target type: {text}")
