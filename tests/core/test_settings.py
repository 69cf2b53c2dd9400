# SPDX-License-Identifier: MIT
"""Tests for dtoolchain.core.settings."""

import pytest

from dtoolchain.core.settings import (
    BuildOption,
    BuildSetting,
    BuildSettings,
    TargetType,
    option_names,
    options_from_names,
    parse_target_type,
)


class TestBuildSettings:
    def test_defaults(self):
        settings = BuildSettings()
        assert settings.target_type is TargetType.AUTODETECT
        assert settings.target_name == ""
        assert settings.dflags == []
        assert settings.options == BuildOption.NONE

    def test_add_dflags_keeps_duplicates(self):
        settings = BuildSettings()
        settings.add_dflags("-w", "-w")
        assert settings.dflags == ["-w", "-w"]

    def test_add_versions_skips_duplicates(self):
        settings = BuildSettings(versions=["A"])
        settings.add_versions("B", "A", "C")
        assert settings.versions == ["A", "B", "C"]

    def test_add_import_paths_skips_duplicates(self):
        settings = BuildSettings()
        settings.add_import_paths("source", "source")
        assert settings.import_paths == ["source"]

    def test_options(self):
        settings = BuildSettings()
        settings.add_options(BuildOption.DEBUG_MODE)
        settings.add_options(BuildOption.DEBUG_INFO | BuildOption.DEBUG_MODE)
        assert settings.options == BuildOption.DEBUG_MODE | BuildOption.DEBUG_INFO

    def test_copy_is_independent(self):
        settings = BuildSettings(dflags=["-O"], versions=["A"])
        copied = settings.copy()
        copied.add_dflags("-g")
        copied.add_versions("B")
        assert settings.dflags == ["-O"]
        assert settings.versions == ["A"]
        assert copied == BuildSettings(dflags=["-O", "-g"], versions=["A", "B"])


class TestBuildSetting:
    def test_all_contains_every_group(self):
        for group in (
            BuildSetting.DFLAGS,
            BuildSetting.LFLAGS,
            BuildSetting.LIBS,
            BuildSetting.SOURCE_FILES,
            BuildSetting.COPY_FILES,
            BuildSetting.VERSIONS,
            BuildSetting.DEBUG_VERSIONS,
            BuildSetting.IMPORT_PATHS,
            BuildSetting.STRING_IMPORT_PATHS,
            BuildSetting.OPTIONS,
        ):
            assert group in BuildSetting.ALL

    def test_none_is_empty(self):
        assert not BuildSetting.NONE


class TestOptionNames:
    def test_camel_case(self):
        assert options_from_names(["debugMode"]) == BuildOption.DEBUG_MODE
        assert options_from_names(["debugInfoC"]) == BuildOption.DEBUG_INFO_C
        assert options_from_names(["profileGC"]) == BuildOption.PROFILE_GC
        assert options_from_names(["noBoundsCheck"]) == BuildOption.NO_BOUNDS_CHECK

    def test_upper_case(self):
        assert options_from_names(["UNITTESTS", "optimize"]) == (
            BuildOption.UNITTESTS | BuildOption.OPTIMIZE
        )

    def test_unknown(self):
        with pytest.raises(KeyError):
            options_from_names(["turbo"])

    def test_option_names_in_declaration_order(self):
        options = BuildOption.OPTIMIZE | BuildOption.DEBUG_MODE
        assert option_names(options) == ["DEBUG_MODE", "OPTIMIZE"]

    def test_option_names_empty(self):
        assert option_names(BuildOption.NONE) == []


class TestParseTargetType:
    def test_by_value(self):
        assert parse_target_type("staticLibrary") is TargetType.STATIC_LIBRARY

    def test_by_name(self):
        assert parse_target_type("dynamic_library") is TargetType.DYNAMIC_LIBRARY

    def test_unknown(self):
        with pytest.raises(ValueError, match="unknown target type"):
            parse_target_type("bundle")
