# SPDX-License-Identifier: MIT
"""Compiler protocol, toolchain queries, library resolution and process invocation."""
