# SPDX-License-Identifier: MIT
"""Launching compiler processes.

Flags are passed through a response file (``@file``) so long command
lines never hit host argument-length limits. Output is streamed line by
line to a caller supplied callback, tagged with the stream it came from.
"""

from __future__ import annotations

import logging
import os
import queue
import subprocess
import tempfile
import threading
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path
from typing import IO

from dtoolchain.configure.config import get_flag, get_var
from dtoolchain.core.flags import escape_args

logger = logging.getLogger(__name__)


class OutputStream(Enum):
    """Logical stream an output line came from."""

    STATUS = "status"
    ERROR = "error"


OutputCallback = Callable[[OutputStream, str], None]


def format_response_file(args: Sequence[str]) -> str:
    """Serialize flags for a response file: one per line, quoted if spaced.

    Examples:
        >>> format_response_file(["-O", "-of output with space"])
        '-O\\n"-of output with space"'
    """
    return "\n".join(escape_args(args))


def write_response_file(
    args: Sequence[str],
    *,
    prefix: str = "dtoolchain-build-",
    suffix: str = ".rsp",
    directory: str | Path | None = None,
) -> Path:
    """Write flags to a new, uniquely named response file.

    Args:
        args: Flags to write.
        prefix: File name prefix.
        suffix: File name suffix.
        directory: Target directory; defaults to DTOOLCHAIN_TMPDIR or the
            system temp directory.

    Returns:
        Path to the response file. The caller owns it.
    """
    if directory is None:
        directory = get_var("DTOOLCHAIN_TMPDIR")
    if directory is not None:
        Path(directory).mkdir(parents=True, exist_ok=True)

    fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=directory)
    with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
        f.write(format_response_file(args))
    return Path(name)


def _log_output(stream: OutputStream, line: str) -> None:
    if stream is OutputStream.ERROR:
        logger.warning("%s", line)
    else:
        logger.info("%s", line)


def _pump(
    pipe: IO[str],
    stream: OutputStream,
    lines: queue.Queue[tuple[OutputStream, str] | None],
) -> None:
    with pipe:
        for line in pipe:
            lines.put((stream, line.rstrip("\r\n")))
    lines.put(None)


def invoke_tool(
    command: Sequence[str],
    output_callback: OutputCallback | None = None,
    *,
    cwd: str | Path | None = None,
) -> int:
    """Run a command, streaming its output, and return the exit code.

    Blocks until the process exits and both output streams are drained.
    The exit code is returned as-is; judging it is up to the caller.

    Args:
        command: Program and arguments.
        output_callback: Receives (stream, line) for every output line,
            always on the calling thread. Lines are logged if None.
        cwd: Working directory for the process.
    """
    emit = output_callback or _log_output
    logger.debug("Running: %s", " ".join(command))

    proc = subprocess.Popen(
        list(command),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
        cwd=cwd,
    )
    assert proc.stdout is not None and proc.stderr is not None

    lines: queue.Queue[tuple[OutputStream, str] | None] = queue.Queue()
    readers = [
        threading.Thread(
            target=_pump, args=(proc.stdout, OutputStream.STATUS, lines), daemon=True
        ),
        threading.Thread(
            target=_pump, args=(proc.stderr, OutputStream.ERROR, lines), daemon=True
        ),
    ]
    for reader in readers:
        reader.start()

    remaining = len(readers)
    while remaining:
        item = lines.get()
        if item is None:
            remaining -= 1
            continue
        emit(*item)

    for reader in readers:
        reader.join()
    status = proc.wait()
    logger.debug("%s exited with %d", command[0], status)
    return status


def invoke_with_response_file(
    binary: str,
    args: Sequence[str],
    output_callback: OutputCallback | None = None,
    *,
    suffix: str = ".rsp",
) -> int:
    """Write `args` to a response file and run ``<binary> @<file>``.

    The response file is removed afterwards unless
    DTOOLCHAIN_KEEP_RESPONSE_FILES is set.
    """
    res_file = write_response_file(args, suffix=suffix)
    logger.debug("%s %s", binary, " ".join(escape_args(args)))
    try:
        return invoke_tool([binary, f"@{res_file}"], output_callback)
    finally:
        if get_flag("DTOOLCHAIN_KEEP_RESPONSE_FILES"):
            logger.debug("Keeping response file %s", res_file)
        else:
            res_file.unlink(missing_ok=True)
