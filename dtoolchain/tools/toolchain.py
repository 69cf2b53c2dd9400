# SPDX-License-Identifier: MIT
"""Compiler protocol and base implementation.

A Compiler turns compiler-independent BuildSettings into the exact
flags one D compiler expects, and back. Switching compilers switches
the flag syntax, artifact naming and invocation as a unit.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from dtoolchain.configure.platform import SUPPORTED_ARCH_OVERRIDES, get_platform
from dtoolchain.core.errors import ConfigurationError
from dtoolchain.core.flags import prefix, strip_prefix
from dtoolchain.core.settings import BuildOption, BuildSetting, TargetType
from dtoolchain.tools.libs import resolve_libs
from dtoolchain.tools.process import invoke_with_response_file
from dtoolchain.tools.query import LinkerAbi, detect_linker_abi, query_frontend_version

if TYPE_CHECKING:
    from dtoolchain.configure.platform import BuildPlatform
    from dtoolchain.core.settings import BuildSettings
    from dtoolchain.tools.libs import LibResolver
    from dtoolchain.tools.process import OutputCallback

logger = logging.getLogger(__name__)

# Ordered (option, flags) pairs; the first entry containing a flag wins
OptionTable = tuple[tuple[BuildOption, tuple[str, ...]], ...]


@runtime_checkable
class Compiler(Protocol):
    """Protocol for compiler backends.

    Every backend implements every method. An operation a backend cannot
    perform raises UnsupportedOperationError instead of doing nothing.
    """

    @property
    def name(self) -> str:
        """Compiler name (e.g., 'dmd', 'gdc', 'ldc')."""
        ...

    def determine_platform(
        self,
        settings: BuildSettings,
        compiler_binary: str,
        arch_override: str = "",
        *,
        frontend_version: int | None = None,
    ) -> BuildPlatform: ...

    def prepare_build_settings(
        self,
        settings: BuildSettings,
        fields: BuildSetting = BuildSetting.NONE,
        *,
        platform: BuildPlatform | None = None,
    ) -> BuildSettings: ...

    def extract_build_options(self, settings: BuildSettings) -> BuildSettings: ...

    def get_target_file_name(
        self, settings: BuildSettings, platform: BuildPlatform
    ) -> str | None: ...

    def set_target(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        target_path: str | None = None,
    ) -> None: ...

    def invoke(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        output_callback: OutputCallback | None = None,
    ) -> int: ...

    def invoke_linker(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        objects: Sequence[str],
        output_callback: OutputCallback | None = None,
    ) -> int: ...

    def lflags_to_dflags(self, lflags: Sequence[str]) -> list[str]: ...


class BaseCompiler(ABC):
    """Abstract base class for compiler backends.

    Subclasses describe their flag syntax through class attributes and
    override the hooks where behavior differs.

    Class attributes:
        OPTIONS: Option translation table.
        ARCH_FLAGS: Flags appended for each architecture override.
        VERSION_PREFIX: Prefix of version identifier flags.
        DEBUG_VERSION_PREFIX: Prefix of debug identifier flags.
        IMPORT_PREFIX: Prefix of import path flags.
        STRING_IMPORT_PREFIX: Prefix of string import path flags.
        HOUSEKEEPING_FLAGS: Flags every compile gets.
        PIC_FLAGS: Flags for position independent code.
        VERSION_QUERY_FLAG: Flag that prints the version banner.
        ABI_QUERY_FLAG: Flag that prints the default target.
        ABI_MARKER: Start of the line carrying the default target triple.
        COLUMNS_FLAG: Flag for column numbers in diagnostics, if any.
        COLUMNS_MIN_FRONTEND: First frontend version supporting it.
    """

    OPTIONS: OptionTable = ()
    ARCH_FLAGS: dict[str, tuple[str, ...]] = {}
    VERSION_PREFIX: str = "-version="
    DEBUG_VERSION_PREFIX: str = "-debug="
    IMPORT_PREFIX: str = "-I"
    STRING_IMPORT_PREFIX: str = "-J"
    HOUSEKEEPING_FLAGS: tuple[str, ...] = ()
    PIC_FLAGS: tuple[str, ...] = ("-fPIC",)
    VERSION_QUERY_FLAG: str = "--version"
    ABI_QUERY_FLAG: str = "-version"
    ABI_MARKER: str = "default target:"
    COLUMNS_FLAG: str | None = "-vcolumns"
    COLUMNS_MIN_FRONTEND: int = 2066

    def __init__(self, name: str, lib_resolver: LibResolver | None = None) -> None:
        """Initialize a compiler backend.

        Args:
            name: Compiler name.
            lib_resolver: Turns library names into raw linker flags;
                defaults to resolve_libs.
        """
        self._name = name
        self._lib_resolver = lib_resolver or resolve_libs

    @property
    def name(self) -> str:
        return self._name

    @property
    def supports_separate_link(self) -> bool:
        """Whether invoke_linker can be used with this backend."""
        return True

    # =========================================================================
    # Platform
    # =========================================================================

    def determine_platform(
        self,
        settings: BuildSettings,
        compiler_binary: str,
        arch_override: str = "",
        *,
        frontend_version: int | None = None,
    ) -> BuildPlatform:
        """Detect the build platform for this compiler.

        An architecture override replaces the detected architecture and
        appends the matching code generation flag to ``settings.dflags``.

        Args:
            settings: Settings receiving the architecture flag.
            compiler_binary: Compiler executable.
            arch_override: "" (auto-detect), "x86" or "x86_64".
            frontend_version: Known frontend version; queried from the
                compiler when None.

        Raises:
            ConfigurationError: If the override is not a known architecture.
            ToolchainQueryError: If the frontend version query fails.
        """
        if arch_override and arch_override not in self.ARCH_FLAGS:
            raise ConfigurationError(
                f"Unsupported architecture: {arch_override} "
                f"(expected one of {', '.join(SUPPORTED_ARCH_OVERRIDES)})",
                arch_override,
            )

        if frontend_version is None:
            frontend_version = query_frontend_version(
                compiler_binary, self.VERSION_QUERY_FLAG
            )

        build_platform = get_platform(self.name, compiler_binary, frontend_version)
        if arch_override:
            build_platform = build_platform.with_architecture(arch_override)
            settings.add_dflags(*self.ARCH_FLAGS[arch_override])

        logger.debug(
            "%s platform: %s, architecture: %s, frontend %d",
            self.name,
            ",".join(build_platform.platform),
            ",".join(build_platform.architecture),
            build_platform.frontend_version,
        )
        return build_platform

    # =========================================================================
    # Settings translation
    # =========================================================================

    def prepare_build_settings(
        self,
        settings: BuildSettings,
        fields: BuildSetting = BuildSetting.NONE,
        *,
        platform: BuildPlatform | None = None,
    ) -> BuildSettings:
        """Translate typed settings into compiler flags.

        Returns a new settings value; ``settings`` is not modified. Every
        translated group is empty in the result, so translating the
        result again adds nothing but the housekeeping flags.

        Args:
            settings: Settings to translate.
            fields: Groups that are already translated and must be left
                alone. Must not contain DFLAGS or COPY_FILES.
            platform: Build platform used to resolve libraries; the host
                platform if None.
        """
        assert not fields & BuildSetting.DFLAGS, "dflags cannot be excluded"
        assert not fields & BuildSetting.COPY_FILES, "copy files cannot be excluded"

        if platform is None:
            platform = get_platform(self.name)
        result = settings.copy()

        if not fields & BuildSetting.OPTIONS:
            for option, flags in self.OPTIONS:
                if option in result.options:
                    result.add_dflags(*flags)
            result.options = BuildOption.NONE

        result.add_dflags(*self.HOUSEKEEPING_FLAGS)

        if not fields & BuildSetting.VERSIONS:
            result.add_dflags(*prefix(self.VERSION_PREFIX, result.versions))
            result.versions = []

        if not fields & BuildSetting.DEBUG_VERSIONS:
            result.add_dflags(*prefix(self.DEBUG_VERSION_PREFIX, result.debug_versions))
            result.debug_versions = []

        if not fields & BuildSetting.IMPORT_PATHS:
            result.add_dflags(*prefix(self.IMPORT_PREFIX, result.import_paths))
            result.import_paths = []

        if not fields & BuildSetting.STRING_IMPORT_PATHS:
            result.add_dflags(
                *prefix(self.STRING_IMPORT_PREFIX, result.string_import_paths)
            )
            result.string_import_paths = []

        if not fields & BuildSetting.SOURCE_FILES:
            result.add_dflags(*result.source_files)
            result.source_files = []

        if not fields & BuildSetting.LIBS:
            result.add_lflags(
                *self._lib_resolver(result.libs, platform, result.target_type)
            )
            result.libs = []

        if not fields & BuildSetting.LFLAGS:
            result.add_dflags(*self.lflags_to_dflags(result.lflags))
            result.lflags = []

        if result.target_type is TargetType.DYNAMIC_LIBRARY:
            result.add_dflags(*self.pic_flags(platform))

        return result

    def extract_build_options(self, settings: BuildSettings) -> BuildSettings:
        """Recover options and version identifiers from raw flags.

        Returns a new settings value whose ``dflags`` holds only the flags
        that were not recognized, in their original order.
        """
        result = settings.copy()
        remaining: list[str] = []
        for flag in settings.dflags:
            option = self.option_for_flag(flag)
            if option is not None:
                result.options |= option
                continue

            version = strip_prefix(flag, self.VERSION_PREFIX)
            if version is not None:
                result.add_versions(version)
                continue

            debug_version = strip_prefix(flag, self.DEBUG_VERSION_PREFIX)
            if debug_version is not None:
                result.add_debug_versions(debug_version)
                continue

            remaining.append(flag)

        result.dflags = remaining
        return result

    def option_for_flag(self, flag: str) -> BuildOption | None:
        """Return the first option whose flag sequence contains `flag`."""
        for option, flags in self.OPTIONS:
            if flag in flags:
                return option
        return None

    @abstractmethod
    def lflags_to_dflags(self, lflags: Sequence[str]) -> list[str]:
        """Wrap raw linker flags so the compiler passes them to the linker."""
        ...

    def pic_flags(self, platform: BuildPlatform) -> list[str]:
        """Return the flags for position independent code."""
        return list(self.PIC_FLAGS)

    # =========================================================================
    # Targets
    # =========================================================================

    def linker_abi(self, platform: BuildPlatform) -> LinkerAbi:
        """Ask the compiler which object format it produces by default."""
        return detect_linker_abi(
            platform.compiler_binary, self.ABI_QUERY_FLAG, self.ABI_MARKER
        )

    def get_target_file_name(
        self, settings: BuildSettings, platform: BuildPlatform
    ) -> str | None:
        """Return the artifact file name, or None if nothing is produced.

        Raises:
            ConfigurationError: If the target type is undetermined or the
                target name is empty.
            ToolchainQueryError: If the linker ABI of a static library
                cannot be determined.
        """
        target_type = settings.target_type
        if target_type is TargetType.AUTODETECT:
            raise ConfigurationError(
                "Configurations must have a concrete target type.", target_type
            )
        if target_type in (TargetType.NONE, TargetType.SOURCE_LIBRARY):
            return None
        if not settings.target_name:
            raise ConfigurationError("No target name set.")

        name = settings.target_name
        if target_type is TargetType.EXECUTABLE:
            return f"{name}.exe" if platform.is_windows else name
        if target_type in (TargetType.LIBRARY, TargetType.STATIC_LIBRARY):
            if self.linker_abi(platform) is LinkerAbi.COFF:
                return f"{name}.lib"
            return f"lib{name}.a"
        if target_type is TargetType.DYNAMIC_LIBRARY:
            return f"{name}.dll" if platform.is_windows else f"lib{name}.so"
        if target_type is TargetType.OBJECT:
            return f"{name}.obj" if platform.is_windows else f"{name}.o"
        raise ConfigurationError(f"Unsupported target type: {target_type.value}")

    @abstractmethod
    def target_type_flags(
        self, target_type: TargetType, platform: BuildPlatform
    ) -> list[str]:
        """Return the flags that select the artifact kind."""
        ...

    def output_flags(self, target_path: str) -> list[str]:
        """Return the flags that set the output file."""
        return [f"-of{target_path}"]

    def set_target(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        target_path: str | None = None,
    ) -> None:
        """Append the artifact kind and output flags to ``settings.dflags``.

        Args:
            settings: Settings to modify.
            platform: Build platform.
            target_path: Output file; defaults to the target file name
                inside ``settings.target_path``.

        Raises:
            ConfigurationError: If the target type produces no artifact.
        """
        target_type = settings.target_type
        if target_type in (
            TargetType.AUTODETECT,
            TargetType.NONE,
            TargetType.SOURCE_LIBRARY,
        ):
            raise ConfigurationError(
                f"Invalid target type: {target_type.value}", target_type
            )

        settings.add_dflags(*self.target_type_flags(target_type, platform))

        if target_path is None:
            file_name = self.get_target_file_name(settings, platform)
            assert file_name is not None
            target_path = str(Path(settings.target_path) / file_name)
        settings.add_dflags(*self.output_flags(target_path))

    # =========================================================================
    # Invocation
    # =========================================================================

    def invoke_args(
        self, settings: BuildSettings, platform: BuildPlatform
    ) -> list[str]:
        """Return the flags written to the compile response file."""
        args = list(settings.dflags)
        if (
            self.COLUMNS_FLAG is not None
            and platform.frontend_version >= self.COLUMNS_MIN_FRONTEND
        ):
            args.append(self.COLUMNS_FLAG)
        return args

    def invoke(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        output_callback: OutputCallback | None = None,
    ) -> int:
        """Run the compiler on the prepared settings.

        Returns:
            The compiler's exit code.
        """
        return invoke_with_response_file(
            platform.compiler_binary,
            self.invoke_args(settings, platform),
            output_callback,
        )

    @abstractmethod
    def invoke_linker(
        self,
        settings: BuildSettings,
        platform: BuildPlatform,
        objects: Sequence[str],
        output_callback: OutputCallback | None = None,
    ) -> int:
        """Link previously compiled objects into the target.

        Raises:
            UnsupportedOperationError: If the backend cannot link separately.
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


# =============================================================================
# Registry
# =============================================================================


@dataclass
class CompilerInfo:
    """Registration record of a compiler backend."""

    compiler_class: type[BaseCompiler]
    aliases: tuple[str, ...]
    default_binary: str


_VERSIONED_BINARY_RE = re.compile(r"-[\d.]+$")


class CompilerRegistry:
    """Registry of compiler backends, looked up by name or alias."""

    def __init__(self) -> None:
        self._compilers: dict[str, CompilerInfo] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        compiler_class: type[BaseCompiler],
        *,
        name: str,
        aliases: Sequence[str] = (),
        default_binary: str,
    ) -> None:
        self._compilers[name] = CompilerInfo(
            compiler_class, tuple(aliases), default_binary
        )
        for alias in (name, *aliases):
            self._aliases[alias] = name

    def names(self) -> list[str]:
        return sorted(self._compilers)

    def info(self, name: str) -> CompilerInfo:
        """Return the registration record for a name or alias.

        Raises:
            ConfigurationError: If the name is unknown.
        """
        canonical = self._aliases.get(name.lower())
        if canonical is None:
            raise ConfigurationError(
                f"Unknown compiler: {name} (known: {', '.join(self.names())})", name
            )
        return self._compilers[canonical]

    def get(self, name: str) -> BaseCompiler:
        """Create the backend registered under a name or alias."""
        return self.info(name).compiler_class()

    def find_for_binary(self, binary: str) -> BaseCompiler:
        """Pick the backend from a compiler binary path.

        ``/usr/bin/ldc2``, ``gdc-12`` and ``C:\\D\\dmd.exe`` all work.

        Raises:
            ConfigurationError: If no backend matches.
        """
        base = Path(binary.replace("\\", "/")).name.lower()
        if base.endswith(".exe"):
            base = base[: -len(".exe")]
        for candidate in (base, _VERSIONED_BINARY_RE.sub("", base)):
            if candidate in self._aliases:
                return self.get(candidate)
        raise ConfigurationError(f"Unknown compiler binary: {binary}", binary)


compiler_registry = CompilerRegistry()
