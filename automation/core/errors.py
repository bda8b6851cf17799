"""Exit codes and the exception taxonomy of the dispatcher.

Service layers report failures as `Err` values (see `automation.core.result`).
Once a failure reaches the command layer it becomes one of the exceptions
below, and the CLI turns any `AutomationError` into `ErrorCode.FAILURE`.
"""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "AutomationError",
    "CommandFailed",
    "ConfigurationError",
    "ErrorCode",
    "ExecutionError",
    "UsageError",
]


class ErrorCode(IntEnum):
    """Process exit codes.

    Every fatal condition exits with FAILURE; these values should remain stable
    since CI pipelines check them.
    """

    OK = 0
    FAILURE = 1


class AutomationError(Exception):
    """Base class for every fatal dispatcher error."""

    exit_code: ErrorCode = ErrorCode.FAILURE


class UsageError(AutomationError):
    """Bad command line: no arguments, or an unknown command token."""


class ConfigurationError(AutomationError):
    """The environment or project configuration is unusable."""


class ExecutionError(AutomationError):
    """A command failed while running.

    The message always names the failing command token; the underlying
    exception is kept as `__cause__`.
    """

    def __init__(self, command: str, cause: BaseException) -> None:
        super().__init__(f'"{command}": {cause}')
        self.command = command


class CommandFailed(AutomationError):
    """Raised by command handlers when a service reports an error."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message
