"""
oneliner: run a command line application in one line of code.

The package launches an external program, drains its output, samples its
resource usage and resolves a trustworthy outcome even when the OS process
APIs race under load.

The package is organized into specialized modules:
- config: Runner tunables loaded from TOML
- models: Command specification and result types
- validation: Error taxonomy, validators and bounded retries
- system: Launching, output draining, monitoring, cancellation, priorities
- executor: The run primitive and exit resolution
- cli: Command-line front end

Usage:
    From command line:
        oneliner --timeout 20 "sleeper 5"

    Programmatically:
        from oneliner import run_command
        result = run_command("sleeper 5", timeout=20)
        print(result.exit_code, result.stdout, result.peak_memory_bytes)
"""

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .executor import run, run_command, set_io_priority
from .cli import main_cli

# Model classes for external use
from .models import (
    CmdResult,
    CommandSpec,
    IOPriorityClass,
    Outcome,
    PriorityClass,
    RunnerConfig,
)

# Cancellation
from .system import CancellationSource, CancellationToken

# Errors
from .validation import (
    AmbiguousStateError,
    CancelFailure,
    CommandFailedError,
    ExitStatusRace,
    KillConfirmationTimeout,
    LaunchError,
    OneLinerError,
    PriorityAdjustmentError,
    TimeoutFailure,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "run",
    "run_command",
    "set_io_priority",
    "main_cli",
    "get_config",
    "set_config_path",
    "clear_config_cache",
    # Models
    "CmdResult",
    "CommandSpec",
    "IOPriorityClass",
    "Outcome",
    "PriorityClass",
    "RunnerConfig",
    # Cancellation
    "CancellationSource",
    "CancellationToken",
    # Errors
    "AmbiguousStateError",
    "CancelFailure",
    "CommandFailedError",
    "ExitStatusRace",
    "KillConfirmationTimeout",
    "LaunchError",
    "OneLinerError",
    "PriorityAdjustmentError",
    "TimeoutFailure",
    "ValidationError",
]
