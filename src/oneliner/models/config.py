"""
Configuration data models.

RunnerConfig holds the tunables of the run primitive, loaded from the
``[runner]`` table of a TOML file.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RunnerConfig:
    """
    Tunables for process launching, monitoring and exit resolution.
    """

    # Seconds to wait for the OS to confirm a process is gone.
    kill_confirmation_timeout: float = 60.0
    # Retries for a "not yet exited" exit-code read, after the first try.
    exit_code_max_retries: int = 5
    # Retry N sleeps exit_code_retry_backoff * N seconds.
    exit_code_retry_backoff: float = 2.0
    # Polling period while waiting for termination confirmation.
    termination_poll_interval: float = 0.05
    # Pause between two resource samples.
    monitor_poll_interval: float = 0.01
    # Final sleep of the monitor before its last sample.
    monitor_grace_period: float = 0.1
    # Same, when the invocation carries a cancellation token.
    monitor_grace_period_cancelable: float = 0.5
    output_encoding: str = "utf-8"
    # External tool used to change the I/O scheduling class.
    io_priority_tool: str = "ionice"
    io_priority_timeout: float = 30.0
