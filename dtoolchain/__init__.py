# SPDX-License-Identifier: MIT
"""
dtoolchain: D compiler backends behind one interface.

dtoolchain translates a compiler-independent description of a build
(options, versions, import paths, libraries, target type) into the exact
command line of DMD, GDC or LDC, decodes raw flag lists back into
structured options, names build artifacts, and runs the compiler.

Example:
    from dtoolchain import BuildSettings, TargetType, get_compiler

    ldc = get_compiler("ldc")
    settings = BuildSettings(target_type=TargetType.EXECUTABLE, target_name="app")
    platform = ldc.determine_platform(settings, "ldc2")
    prepared = ldc.prepare_build_settings(settings)
    ldc.set_target(prepared, platform)
    status = ldc.invoke(prepared, platform)
"""

from __future__ import annotations

from dtoolchain.configure.config import get_var
from dtoolchain.configure.platform import BuildPlatform, get_platform
from dtoolchain.core.errors import (
    ConfigurationError,
    DToolchainError,
    ToolchainQueryError,
    UnsupportedOperationError,
)
from dtoolchain.core.settings import (
    BuildOption,
    BuildSetting,
    BuildSettings,
    TargetType,
)
from dtoolchain.toolchains import find_compiler, get_compiler
from dtoolchain.tools.process import OutputStream
from dtoolchain.tools.toolchain import BaseCompiler, Compiler, compiler_registry

__version__ = "0.1.0"

# Public API exports
__all__ = [
    # Version
    "__version__",
    # Configuration
    "get_var",
    # Data model
    "BuildOption",
    "BuildPlatform",
    "BuildSetting",
    "BuildSettings",
    "TargetType",
    "OutputStream",
    "get_platform",
    # Compilers
    "BaseCompiler",
    "Compiler",
    "compiler_registry",
    "find_compiler",
    "get_compiler",
    # Errors
    "ConfigurationError",
    "DToolchainError",
    "ToolchainQueryError",
    "UnsupportedOperationError",
]
