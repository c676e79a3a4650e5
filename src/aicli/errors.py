"""Error taxonomy and process exit codes for the ai CLI.

Every failure the CLI can surface maps to one ``CLIError`` subclass, and
every subclass carries the exit code ``main()`` terminates with.
"""

from __future__ import annotations


class ExitCode:
    """Process exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    UNAVAILABLE = 10
    ASSETS_NOT_READY = 11
    GENERATION_FAILED = 20
    TIMEOUT = 21
    GUARDRAIL = 22
    CONTEXT_EXCEEDED = 23


class CLIError(Exception):
    """Base class for all user-visible CLI failures.

    Attributes:
        message: Human readable description printed as ``Error: <message>``
        exit_code: Process exit code for this failure
    """

    default_exit_code = ExitCode.GENERAL_ERROR

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code if exit_code is not None else self.default_exit_code


class UnavailableError(CLIError):
    """The generation backend cannot be reached or is not ready."""

    default_exit_code = ExitCode.UNAVAILABLE


class InvalidInputError(CLIError):
    """Bad flags, empty prompt, or an invalid budget configuration."""

    default_exit_code = ExitCode.USAGE_ERROR


class GenerationTimeoutError(CLIError):
    default_exit_code = ExitCode.TIMEOUT

    def __init__(self, message: str = "Operation timed out", exit_code: int | None = None):
        super().__init__(message, exit_code)


class GenerationFailedError(CLIError):
    """The backend accepted the request but generation failed."""

    default_exit_code = ExitCode.GENERATION_FAILED


class ContextExceededError(GenerationFailedError):
    """The assembled prompt is over the backend's hard context ceiling."""

    default_exit_code = ExitCode.CONTEXT_EXCEEDED


class GuardrailError(GenerationFailedError):
    """The backend refused to answer (content filter)."""

    default_exit_code = ExitCode.GUARDRAIL


__all__ = [
    "ExitCode",
    "CLIError",
    "UnavailableError",
    "InvalidInputError",
    "GenerationTimeoutError",
    "GenerationFailedError",
    "ContextExceededError",
    "GuardrailError",
]
