# SPDX-License-Identifier: MIT
"""Configuration variables for dtoolchain.

Variables can be set on the dtoolchain command line (``KEY=value``),
which the CLI installs with set_cli_vars, or in the environment.

Known variables:
    DC: Default compiler binary.
    DTOOLCHAIN_TMPDIR: Directory for response files.
    DTOOLCHAIN_KEEP_RESPONSE_FILES: Set to 1 to keep response files.
"""

from __future__ import annotations

import os

# Internal storage for CLI variables
_cli_vars: dict[str, str] = {}


def get_var(name: str, default: str | None = None) -> str | None:
    """Get a configuration variable set on the command line or in the environment.

    Precedence (highest to lowest):
        1. Command line: dtoolchain VAR=value
        2. Environment variable: VAR=value dtoolchain

    Args:
        name: Variable name.
        default: Default value if not set.

    Returns:
        The variable value, or default if not set.
    """
    if name in _cli_vars:
        return _cli_vars[name]

    return os.environ.get(name, default)


def set_cli_vars(variables: dict[str, str]) -> None:
    """Install command-line variables (called by the CLI)."""
    global _cli_vars
    _cli_vars = dict(variables)


def reset_cli_vars() -> None:
    """Forget command-line variables."""
    global _cli_vars
    _cli_vars = {}


def get_flag(name: str) -> bool:
    """Return True if a variable is set to a true-ish value."""
    value = get_var(name, "")
    return (value or "").lower() in ("1", "true", "yes", "on")
