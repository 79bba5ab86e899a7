"""
Validation and error handling for the oneliner package.

This module provides the exception taxonomy, input validation and the
bounded retry helpers used to ride out transient OS races.
"""

# Core exception classes and error handling
from .exceptions import (
    AmbiguousStateError,
    CancelFailure,
    CommandFailedError,
    ErrorSeverity,
    ExitStatusRace,
    KillConfirmationTimeout,
    LaunchError,
    OneLinerError,
    PriorityAdjustmentError,
    TimeoutFailure,
    ValidationError,
    handle_error,
)

# Bounded retry loops
from .strategies import (
    RetryResult,
    poll_with_backoff,
    wait_until,
)

# Validation functions
from .validators import (
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_working_directory,
)

__all__ = [
    # Errors
    "AmbiguousStateError",
    "CancelFailure",
    "CommandFailedError",
    "ErrorSeverity",
    "ExitStatusRace",
    "KillConfirmationTimeout",
    "LaunchError",
    "OneLinerError",
    "PriorityAdjustmentError",
    "TimeoutFailure",
    "ValidationError",
    "handle_error",
    # Retry
    "RetryResult",
    "poll_with_backoff",
    "wait_until",
    # Validators
    "validate_enum_choice",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_working_directory",
]
