# SPDX-License-Identifier: MIT
"""Tests for dtoolchain.tools.process."""

from __future__ import annotations

import sys
from pathlib import Path

from dtoolchain.tools.process import (
    OutputStream,
    format_response_file,
    invoke_tool,
    invoke_with_response_file,
    write_response_file,
)


class TestFormatResponseFile:
    def test_one_flag_per_line(self):
        assert format_response_file(["-O", "-release", "app.d"]) == "-O\n-release\napp.d"

    def test_space_quoted(self):
        content = format_response_file(["-O", "-of output with space"])
        assert content.split("\n") == ["-O", '"-of output with space"']

    def test_empty(self):
        assert format_response_file([]) == ""


class TestWriteResponseFile:
    def test_writes_utf8(self, tmp_path: Path):
        path = write_response_file(["-O", "-Isrc/ünïcode"], directory=tmp_path)
        try:
            assert path.parent == tmp_path
            assert path.suffix == ".rsp"
            assert path.read_text(encoding="utf-8") == "-O\n-Isrc/ünïcode"
        finally:
            path.unlink()

    def test_unique_names(self, tmp_path: Path):
        first = write_response_file(["-O"], directory=tmp_path)
        second = write_response_file(["-O"], directory=tmp_path)
        assert first != second

    def test_tmpdir_variable(self, tmp_path: Path, monkeypatch):
        rsp_dir = tmp_path / "rsp"
        monkeypatch.setenv("DTOOLCHAIN_TMPDIR", str(rsp_dir))
        path = write_response_file(["-g"], suffix=".lnk")
        assert path.parent == rsp_dir
        assert path.name.endswith(".lnk")


class TestInvokeTool:
    def test_streams_and_exit_code(self):
        script = (
            "import sys\n"
            "print('compiling app.d')\n"
            "print('app.d(3): Error: undefined identifier', file=sys.stderr)\n"
            "sys.exit(3)\n"
        )
        lines: list[tuple[OutputStream, str]] = []
        status = invoke_tool(
            [sys.executable, "-c", script], lambda s, l: lines.append((s, l))
        )

        assert status == 3
        assert (OutputStream.STATUS, "compiling app.d") in lines
        assert (
            OutputStream.ERROR,
            "app.d(3): Error: undefined identifier",
        ) in lines
        assert len(lines) == 2

    def test_success_without_callback(self, caplog):
        with caplog.at_level("INFO", logger="dtoolchain.tools.process"):
            status = invoke_tool([sys.executable, "-c", "print('hello')"])
        assert status == 0
        assert "hello" in caplog.text

    def test_order_within_stream_preserved(self):
        script = "for i in range(50): print(i)"
        lines: list[str] = []
        invoke_tool([sys.executable, "-c", script], lambda s, l: lines.append(l))
        assert lines == [str(i) for i in range(50)]


class TestInvokeWithResponseFile:
    def test_response_file_argument(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DTOOLCHAIN_TMPDIR", str(tmp_path))
        seen: dict[str, object] = {}

        def fake_invoke_tool(command, output_callback=None):
            seen["command"] = command
            rsp = Path(command[1][1:])
            seen["content"] = rsp.read_text(encoding="utf-8")
            seen["rsp"] = rsp
            return 0

        monkeypatch.setattr("dtoolchain.tools.process.invoke_tool", fake_invoke_tool)
        status = invoke_with_response_file("ldc2", ["-O", "-of output with space"])

        assert status == 0
        command = seen["command"]
        assert command[0] == "ldc2"
        assert command[1].startswith("@")
        assert len(command) == 2
        assert seen["content"] == '-O\n"-of output with space"'
        # Removed after the run
        assert not Path(seen["rsp"]).exists()

    def test_keep_response_files(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DTOOLCHAIN_TMPDIR", str(tmp_path))
        monkeypatch.setenv("DTOOLCHAIN_KEEP_RESPONSE_FILES", "1")
        monkeypatch.setattr(
            "dtoolchain.tools.process.invoke_tool", lambda command, cb=None: 1
        )

        status = invoke_with_response_file("dmd", ["-g"], suffix=".lnk")

        assert status == 1
        kept = list(tmp_path.glob("*.lnk"))
        assert len(kept) == 1
        assert kept[0].read_text(encoding="utf-8") == "-g"

    def test_exit_code_passed_through(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("DTOOLCHAIN_TMPDIR", str(tmp_path))
        monkeypatch.setattr(
            "dtoolchain.tools.process.invoke_tool", lambda command, cb=None: 42
        )
        assert invoke_with_response_file("dmd", ["-c"]) == 42
        assert list(tmp_path.iterdir()) == []
