# SPDX-License-Identifier: MIT
"""Flag handling utilities for dtoolchain.

Small helpers shared by the compiler backends for building and
serializing flag lists. Flags are opaque strings; the helpers never
look inside a flag beyond a prefix or a space character.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def prefix(flag_prefix: str, values: Iterable[str]) -> list[str]:
    """Attach a prefix to every value.

    Examples:
        >>> prefix("-I", ["source", "import"])
        ['-Isource', '-Iimport']
        >>> prefix("-version=", [])
        []
    """
    return [f"{flag_prefix}{value}" for value in values]


def pairwise(flag: str, values: Iterable[str]) -> list[str]:
    """Emit the flag as a separate token before every value.

    Examples:
        >>> pairwise("-Xlinker", ["-lz", "--as-needed"])
        ['-Xlinker', '-lz', '-Xlinker', '--as-needed']
    """
    result: list[str] = []
    for value in values:
        result.append(flag)
        result.append(value)
    return result


def strip_prefix(flag: str, flag_prefix: str) -> str | None:
    """Return the part after the prefix, or None if the flag lacks it.

    Examples:
        >>> strip_prefix("-version=Have_foo", "-version=")
        'Have_foo'
        >>> strip_prefix("-O", "-version=") is None
        True
    """
    if flag.startswith(flag_prefix):
        return flag[len(flag_prefix) :]
    return None


def escape_arg(arg: str) -> str:
    """Quote a single argument for a response file if it contains a space.

    Examples:
        >>> escape_arg("-O")
        '-O'
        >>> escape_arg("-ofout dir/app")
        '"-ofout dir/app"'
    """
    if " " in arg:
        return f'"{arg}"'
    return arg


def escape_args(args: Iterable[str]) -> list[str]:
    """Quote every argument that contains a space."""
    return [escape_arg(arg) for arg in args]


def merge_unique(existing: list[str], new: Iterable[str]) -> None:
    """Append items from `new` that aren't already in `existing`.

    This modifies `existing` in place and preserves first-seen order.

    Examples:
        >>> existing = ["Have_a", "Have_b"]
        >>> merge_unique(existing, ["Have_b", "Have_c", "Have_c"])
        >>> existing
        ['Have_a', 'Have_b', 'Have_c']
    """
    seen = set(existing)
    for item in new:
        if item not in seen:
            seen.add(item)
            existing.append(item)
