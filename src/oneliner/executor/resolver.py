"""
Exit resolution: turning a finished (or abandoned) process into a CmdResult.

The resolver waits for the process and for both output streams under one
deadline, then classifies the invocation as exactly one of success, failure,
timed out, canceled or ambiguous. The killed flag set by the cancellation
watcher takes precedence over a timeout.
"""

import logging
import time
from typing import Optional

from ..models.config import RunnerConfig
from ..models.results import CmdResult, Outcome
from ..system.cancellation import CancellationWatcher
from ..system.launcher import ProcessHandle
from ..system.monitor import ResourceMonitor
from ..system.output import OutputCollector
from ..validation import (
    AmbiguousStateError,
    CancelFailure,
    CommandFailedError,
    ErrorSeverity,
    ExitStatusRace,
    KillConfirmationTimeout,
    TimeoutFailure,
    handle_error,
    poll_with_backoff,
)

logger = logging.getLogger(__name__)

TIMED_OUT_MESSAGE = "Process timed out."
KILLED_MESSAGE = "Process killed."
AMBIGUOUS_MESSAGE = "Process state is ambiguous: wait reported exit but the process is still running."

_FAILURE_ERRORS = {
    Outcome.FAILED: CommandFailedError,
    Outcome.TIMED_OUT: TimeoutFailure,
    Outcome.CANCELED: CancelFailure,
    Outcome.AMBIGUOUS: AmbiguousStateError,
}


def annotate(stderr: str, message: str) -> str:
    """Append a diagnostic line to captured stderr."""
    if stderr and not stderr.endswith("\n"):
        stderr += "\n"
    return f"{stderr}{message}\n"


def raise_for_outcome(result: CmdResult) -> None:
    """Raise the error matching a failed result; no-op on success."""
    if result.success:
        return
    error_type = _FAILURE_ERRORS[result.outcome]
    message = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else None
    raise error_type(result, message if result.outcome is not Outcome.FAILED else None)


class ExitResolver:
    """
    Resolves the outcome of one invocation.
    """

    def __init__(
        self,
        handle: ProcessHandle,
        watcher: CancellationWatcher,
        output: OutputCollector,
        config: RunnerConfig,
        monitor: Optional[ResourceMonitor] = None,
        timeout: Optional[float] = None,
        sleep=time.sleep,
    ):
        self.handle = handle
        self.watcher = watcher
        self.output = output
        self.monitor = monitor
        self.config = config
        self.timeout = timeout
        self._sleep = sleep

    def resolve(self) -> CmdResult:
        """
        Wait for the process and its output, then classify.

        Raises:
            KillConfirmationTimeout: If the OS does not confirm termination
            ExitStatusRace: If the exit code stays unreadable after all retries
        """
        deadline = None if self.timeout is None else self.handle.started_at + self.timeout

        exited = self.handle.wait(self._remaining(deadline))
        drained = exited and self.output.wait(self._remaining(deadline))
        wall_clock = time.monotonic() - self.handle.started_at

        if self.watcher.error is not None:
            raise self.watcher.error

        if self.watcher.killed:
            logger.info(f"'{self.handle.name}' (PID {self.handle.pid}) was killed on request")
            return self._build(Outcome.CANCELED, -1, wall_clock, KILLED_MESSAGE)

        if not drained:
            logger.info(f"'{self.handle.name}' (PID {self.handle.pid}) timed out after {self.timeout}s")
            try:
                self.handle.kill()
            except OSError as e:
                logger.debug(f"Kill after timeout failed for PID {self.handle.pid}: {e}")
            return self._build(Outcome.TIMED_OUT, -1, wall_clock, TIMED_OUT_MESSAGE)

        return self._resolve_natural_exit(wall_clock)

    def _resolve_natural_exit(self, wall_clock: float) -> CmdResult:
        if self.handle.is_alive_os():
            logger.error(f"Wait returned for PID {self.handle.pid} but the OS still reports it running")
            return self._build(Outcome.AMBIGUOUS, -1, wall_clock, AMBIGUOUS_MESSAGE)

        self.confirm_terminated()
        exit_code = self.read_exit_code()
        outcome = Outcome.SUCCESS if exit_code == 0 else Outcome.FAILED
        logger.debug(f"'{self.handle.name}' (PID {self.handle.pid}) exited with code {exit_code}")
        return self._build(outcome, exit_code, wall_clock)

    def confirm_terminated(self) -> None:
        """
        Poll the OS until it no longer reports the process.

        The wait primitive can return slightly before the OS reflects the
        termination.
        """
        if self.handle.confirm_terminated(
            self.config.kill_confirmation_timeout, self.config.termination_poll_interval
        ):
            return
        handle_error(
            error=KillConfirmationTimeout(
                f"OS still reports '{self.handle.name}' (PID {self.handle.pid}) "
                f"{self.config.kill_confirmation_timeout:.0f}s after it exited",
                pid=self.handle.pid,
                waited=self.config.kill_confirmation_timeout,
            ),
            context="confirming process termination",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )

    def read_exit_code(self) -> int:
        # Exit status can lag the termination on some handles, so retry.
        retry = poll_with_backoff(
            self.handle.read_exit_code,
            max_retries=self.config.exit_code_max_retries,
            backoff=self.config.exit_code_retry_backoff,
            context=f"reading exit code of PID {self.handle.pid}",
            sleep=self._sleep,
        )
        if retry.ok:
            return retry.value
        handle_error(
            error=ExitStatusRace(
                f"Exit code of PID {self.handle.pid} unavailable after {retry.attempts} attempts",
                attempts=retry.attempts,
            ),
            context="reading exit code",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )

    def _build(self, outcome: Outcome, exit_code: int, wall_clock: float,
               diagnostic: Optional[str] = None) -> CmdResult:
        stderr = self.output.stderr_text
        if diagnostic is not None:
            stderr = annotate(stderr, diagnostic)

        peak_memory = user_cpu = total_cpu = None
        if self.monitor is not None:
            snapshot = self.monitor.snapshot()
            peak_memory = snapshot.peak_memory_bytes
            user_cpu = snapshot.user_cpu_time
            total_cpu = snapshot.total_cpu_time

        return CmdResult(
            exit_code=exit_code,
            success=outcome is Outcome.SUCCESS,
            stdout=self.output.stdout_text,
            stderr=stderr,
            outcome=outcome,
            wall_clock_duration=wall_clock,
            peak_memory_bytes=peak_memory,
            user_cpu_time=user_cpu,
            total_cpu_time=total_cpu,
        )

    @staticmethod
    def _remaining(deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())
