# SPDX-License-Identifier: MIT
"""Shared fixtures for dtoolchain tests."""

from __future__ import annotations

import pytest

from dtoolchain.configure.config import reset_cli_vars
from dtoolchain.configure.platform import BuildPlatform

LINUX = ("linux", "posix")
WINDOWS = ("windows",)
MACOS = ("osx", "posix")


def make_platform(
    os_tags: tuple[str, ...] = LINUX,
    compiler: str = "ldc",
    binary: str = "ldc2",
    frontend_version: int = 2102,
    architecture: tuple[str, ...] = ("x86_64",),
) -> BuildPlatform:
    return BuildPlatform(
        platform=os_tags,
        architecture=architecture,
        compiler=compiler,
        compiler_binary=binary,
        frontend_version=frontend_version,
    )


@pytest.fixture(autouse=True)
def _fresh_cli_vars():
    """Make every test re-read configuration variables from the environment."""
    reset_cli_vars()
    yield
    reset_cli_vars()


@pytest.fixture
def platform_factory():
    """Build a BuildPlatform without touching the host or the compiler."""
    return make_platform


@pytest.fixture
def linux_platform() -> BuildPlatform:
    return make_platform(LINUX)


@pytest.fixture
def windows_platform() -> BuildPlatform:
    return make_platform(WINDOWS)


@pytest.fixture
def macos_platform() -> BuildPlatform:
    return make_platform(MACOS)
