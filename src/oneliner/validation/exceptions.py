"""
Exception taxonomy and error handling for the oneliner package.

Transient OS races are retried locally by the caller (see strategies.py);
everything raised from here on is either a fatal escalation or, when a
command was run with ``throw_on_failure``, a logically failed outcome that
carries the full result.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from ..models.results import CmdResult

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class OneLinerError(Exception):
    """Base class for every error raised by this package."""


class LaunchError(OneLinerError):
    """The child process could not be started."""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.command = command


class ValidationError(LaunchError):
    """
    Exception raised when a CommandSpec field or configuration value is invalid.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class CommandFailedError(OneLinerError):
    """
    A command resolved to a failure outcome and ``throw_on_failure`` was set.

    The complete result is available on ``self.result``.
    """

    def __init__(self, result: "CmdResult", message: Optional[str] = None):
        super().__init__(message or f"Command failed with exit code {result.exit_code}")
        self.result = result


class TimeoutFailure(CommandFailedError):
    """The deadline elapsed before the process exited on its own."""


class CancelFailure(CommandFailedError):
    """The process was killed through its cancellation token."""


class AmbiguousStateError(CommandFailedError):
    """The wait primitive and the liveness check disagree about the process."""


class ExitStatusRace(OneLinerError):
    """The exit code could still not be read after the retry budget was spent."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class KillConfirmationTimeout(OneLinerError):
    """The OS did not confirm termination within the allowed bound."""

    def __init__(self, message: str, pid: Optional[int] = None, waited: float = 0.0):
        super().__init__(message)
        self.pid = pid
        self.waited = waited


class PriorityAdjustmentError(OneLinerError):
    """
    Changing the I/O priority failed.

    ``attempts`` holds the CmdResult of every try (unprivileged first, then
    elevated) so callers can inspect both diagnostics.
    """

    def __init__(self, message: str, attempts: Optional[list] = None):
        super().__init__(message)
        self.attempts = attempts or []


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error
