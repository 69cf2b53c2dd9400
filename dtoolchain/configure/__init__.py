# SPDX-License-Identifier: MIT
"""Host platform detection and configuration variables."""
