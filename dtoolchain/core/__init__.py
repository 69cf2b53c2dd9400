# SPDX-License-Identifier: MIT
"""Core data model: build settings, flags and errors."""
