# SPDX-License-Identifier: MIT
"""Compiler backends (DMD, GDC, LDC).

Importing this package registers every backend with compiler_registry.
"""

from dtoolchain.toolchains.dmd import DmdCompiler
from dtoolchain.toolchains.gdc import GdcCompiler
from dtoolchain.toolchains.ldc import LdcCompiler
from dtoolchain.tools.toolchain import compiler_registry


def get_compiler(name: str) -> DmdCompiler | GdcCompiler | LdcCompiler:
    """Return the backend registered under a name or alias ('ldc2', ...)."""
    return compiler_registry.get(name)  # type: ignore[return-value]


def find_compiler(binary: str) -> DmdCompiler | GdcCompiler | LdcCompiler:
    """Return the backend matching a compiler binary path."""
    return compiler_registry.find_for_binary(binary)  # type: ignore[return-value]


__all__ = [
    "DmdCompiler",
    "GdcCompiler",
    "LdcCompiler",
    "compiler_registry",
    "find_compiler",
    "get_compiler",
]
