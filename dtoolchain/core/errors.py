# SPDX-License-Identifier: MIT
"""Custom exceptions for dtoolchain.

All dtoolchain exceptions inherit from DToolchainError. None of them is
retried inside dtoolchain; they are surfaced to the caller verbatim.
"""

from __future__ import annotations


class DToolchainError(Exception):
    """Base class for all dtoolchain exceptions.

    Attributes:
        message: The error message.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(DToolchainError):
    """Invalid build configuration.

    Raised for an unrecognized architecture override, an unknown compiler
    name, an empty target name, or a target type that cannot be named or
    built (e.g. one that was never determined).

    Attributes:
        value: The offending value, if any.
    """

    def __init__(self, message: str, value: object | None = None) -> None:
        self.value = value
        super().__init__(message)


class ToolchainQueryError(DToolchainError):
    """Querying the compiler binary failed or produced unusable output.

    Attributes:
        binary: The compiler binary that was queried.
        exit_code: Exit code of the query process, or None if it never ran.
    """

    def __init__(
        self,
        message: str,
        binary: str,
        exit_code: int | None = None,
    ) -> None:
        self.binary = binary
        self.exit_code = exit_code
        super().__init__(message)


class UnsupportedOperationError(DToolchainError):
    """The backend cannot perform the requested operation.

    Attributes:
        compiler: Name of the backend.
        operation: Name of the unsupported operation.
    """

    def __init__(self, compiler: str, operation: str) -> None:
        self.compiler = compiler
        self.operation = operation
        super().__init__(f"{operation} is not supported by {compiler}")
