# SPDX-License-Identifier: MIT
"""Tests for dtoolchain.toolchains.gdc."""

from pathlib import Path

import pytest

from dtoolchain.core.settings import BuildOption, BuildSettings, TargetType
from dtoolchain.toolchains.gdc import GdcCompiler
from dtoolchain.tools.query import LinkerAbi


def _gdc() -> GdcCompiler:
    return GdcCompiler(lib_resolver=lambda libs, platform, kind: [f"-l{l}" for l in libs])


class TestGdcCompiler:
    def test_creation(self):
        gdc = GdcCompiler()
        assert gdc.name == "gdc"
        assert gdc.supports_separate_link

    def test_lflags_wrapped_pairwise(self):
        assert GdcCompiler().lflags_to_dflags(["-rpath", "/opt/lib"]) == [
            "-Xlinker",
            "-rpath",
            "-Xlinker",
            "/opt/lib",
        ]

    def test_option_flags_unique(self):
        flags = [flag for _, group in GdcCompiler.OPTIONS for flag in group]
        assert len(flags) == len(set(flags))

    def test_abi_query(self, platform_factory, monkeypatch):
        calls = []

        def fake_detect(binary, flag, marker):
            calls.append((binary, flag, marker))
            return LinkerAbi.ELF

        monkeypatch.setattr("dtoolchain.tools.toolchain.detect_linker_abi", fake_detect)
        platform = platform_factory(compiler="gdc", binary="gdc-12")
        settings = BuildSettings(target_type=TargetType.LIBRARY, target_name="foo")

        assert GdcCompiler().get_target_file_name(settings, platform) == "libfoo.a"
        assert calls == [("gdc-12", "-v", "target:")]


class TestGdcPrepare:
    def test_flags(self, linux_platform):
        settings = BuildSettings(
            target_type=TargetType.EXECUTABLE,
            options=BuildOption.RELEASE_MODE | BuildOption.COVERAGE,
            versions=["Posix"],
            debug_versions=["trace"],
            import_paths=["src"],
            lflags=["-s"],
        )
        result = _gdc().prepare_build_settings(settings, platform=linux_platform)
        assert result.dflags == [
            "-frelease",
            "-fprofile-arcs",
            "-ftest-coverage",
            "-fversion=Posix",
            "-fdebug=trace",
            "-Isrc",
            "-Xlinker",
            "-s",
        ]

    def test_extract(self):
        settings = BuildSettings(
            dflags=["-fdebug", "-fdebug=trace", "-O3", "-fversion=Foo", "-march=native"]
        )
        result = _gdc().extract_build_options(settings)
        assert result.options == BuildOption.DEBUG_MODE | BuildOption.OPTIMIZE
        assert result.versions == ["Foo"]
        assert result.debug_versions == ["trace"]
        assert result.dflags == ["-march=native"]


class TestGdcSetTarget:
    @pytest.mark.parametrize(
        "kind,flags",
        [
            (TargetType.EXECUTABLE, []),
            (TargetType.STATIC_LIBRARY, ["-c"]),
            (TargetType.OBJECT, ["-c"]),
            (TargetType.DYNAMIC_LIBRARY, ["-shared"]),
        ],
    )
    def test_kind_flags(self, linux_platform, kind, flags):
        settings = BuildSettings(target_type=kind, target_name="app")
        GdcCompiler().set_target(settings, linux_platform, "out/app")
        assert settings.dflags == [*flags, "-o", "out/app"]

    def test_dynamic_library_pic_once(self, linux_platform):
        gdc = _gdc()
        settings = BuildSettings(target_type=TargetType.DYNAMIC_LIBRARY, target_name="foo")
        prepared = gdc.prepare_build_settings(settings, platform=linux_platform)
        gdc.set_target(prepared, linux_platform)
        assert prepared.dflags == ["-fPIC", "-shared", "-o", "libfoo.so"]

    def test_default_path(self, linux_platform):
        settings = BuildSettings(
            target_type=TargetType.EXECUTABLE, target_name="app", target_path="bin"
        )
        GdcCompiler().set_target(settings, linux_platform)
        assert settings.dflags == ["-o", str(Path("bin") / "app")]


class TestGdcLink:
    def test_linkage_dflags(self):
        dflags = ["-O3", "-m64", "-Xlinker", "-s", "-L/opt", "-lz", "-pthread", "-Isrc"]
        assert GdcCompiler().linkage_dflags(dflags) == [
            "-m64",
            "-Xlinker",
            "-s",
            "-L/opt",
            "-lz",
            "-pthread",
        ]

    def test_executable_command(self, platform_factory):
        platform = platform_factory(compiler="gdc", binary="/usr/bin/gdc")
        settings = BuildSettings(
            target_type=TargetType.EXECUTABLE,
            target_name="app",
            target_path="bin",
            lflags=["-s"],
            dflags=["-O3", "-m64"],
        )
        command = GdcCompiler().linker_command(settings, platform, ["a.o", "b.o"])
        assert command == [
            "/usr/bin/gdc",
            "-o",
            str(Path("bin") / "app"),
            "a.o",
            "b.o",
            "-Xlinker",
            "-s",
            "-m64",
            "-Xlinker",
            "--no-as-needed",
        ]

    def test_static_library_archived(self, platform_factory, monkeypatch):
        monkeypatch.setattr(
            "dtoolchain.tools.toolchain.detect_linker_abi", lambda *args: LinkerAbi.ELF
        )
        platform = platform_factory(compiler="gdc", binary="gdc")
        settings = BuildSettings(target_type=TargetType.STATIC_LIBRARY, target_name="foo")
        command = GdcCompiler().linker_command(settings, platform, ["a.o"])
        assert command == ["ar", "rcs", "libfoo.a", "a.o"]

    def test_invoke_linker(self, platform_factory, monkeypatch):
        seen = {}

        def fake_invoke_tool(command, output_callback=None):
            seen["command"] = command
            return 2

        monkeypatch.setattr("dtoolchain.toolchains.gdc.invoke_tool", fake_invoke_tool)
        platform = platform_factory(os_tags=("osx", "posix"), compiler="gdc", binary="gdc")
        settings = BuildSettings(target_type=TargetType.EXECUTABLE, target_name="app")

        assert GdcCompiler().invoke_linker(settings, platform, ["app.o"]) == 2
        assert seen["command"] == ["gdc", "-o", "app", "app.o"]
