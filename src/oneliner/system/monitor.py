"""
Resource usage sampling for a running child process.

The monitor polls psutil on a background thread and folds each reading into
a monotonic-max accumulator. Its end is deliberately not synchronized with
the main wait: the last in-flight sample can be missed, so the numbers are
best-effort.
"""

import logging
import sys
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import psutil

from ..models.config import RunnerConfig
from ..models.results import ResourceSnapshot, ResourceStats

if TYPE_CHECKING:
    from .cancellation import CancellationToken
    from .launcher import ProcessHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessUsage:
    """One raw reading of a process's memory and CPU counters."""

    resident: int
    peak_resident: int
    user_cpu: float
    total_cpu: float


def read_peak_resident_linux(pid: int) -> int:
    """Read VmHWM (peak resident set size) from /proc/<pid>/status, in bytes."""
    try:
        with open(f"/proc/{pid}/status", "r") as f_status:
            for line in f_status:
                if line.startswith("VmHWM:"):
                    return int(line.split()[1]) * 1024
    except (FileNotFoundError, IOError, ValueError, IndexError):
        pass
    return 0


def read_process_usage(proc: psutil.Process) -> Optional[ProcessUsage]:
    """
    Take one reading; None if the process vanished or cannot be inspected.
    """
    try:
        with proc.oneshot():
            mem_info = proc.memory_info()
            cpu_times = proc.cpu_times()
    except psutil.Error:
        return None

    peak = getattr(mem_info, "peak_wset", 0)
    if not peak and sys.platform.startswith("linux"):
        peak = read_peak_resident_linux(proc.pid)

    return ProcessUsage(
        resident=mem_info.rss,
        peak_resident=peak,
        user_cpu=cpu_times.user,
        total_cpu=cpu_times.user + cpu_times.system,
    )


class ResourceMonitor:
    """
    Samples peak memory and CPU time while a process runs.

    Sampling continues while the process is alive, the timeout has not
    elapsed and no cancellation was requested. After that the thread sleeps
    one grace period, takes a final sample and ends.
    """

    def __init__(
        self,
        handle: "ProcessHandle",
        config: RunnerConfig,
        timeout: Optional[float] = None,
        cancel_token: Optional["CancellationToken"] = None,
    ):
        self.handle = handle
        self.timeout = timeout
        self.cancel_token = cancel_token
        self.poll_interval = config.monitor_poll_interval
        self.grace_period = (
            config.monitor_grace_period_cancelable if cancel_token is not None
            else config.monitor_grace_period
        )
        self.stats = ResourceStats()
        self.finished = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "ResourceMonitor":
        self._thread = threading.Thread(
            target=self._run,
            name=f"oneliner-monitor-{self.handle.pid}",
            daemon=True,
        )
        self._thread.start()
        return self

    def snapshot(self) -> ResourceSnapshot:
        return self.stats.snapshot()

    def should_continue(self, started: float) -> bool:
        if self.cancel_token is not None and self.cancel_token.is_cancellation_requested:
            return False
        if self.timeout is not None and time.monotonic() - started >= self.timeout:
            return False
        return self.handle.is_alive_os()

    def sample(self) -> Optional[ResourceSnapshot]:
        """Take one reading and fold it in; None if nothing could be read."""
        proc = self.handle.os_process
        if proc is None:
            return None
        usage = read_process_usage(proc)
        if usage is None:
            return None
        return self.stats.update(
            peak_resident=usage.peak_resident,
            resident=usage.resident,
            user_cpu=usage.user_cpu,
            total_cpu=usage.total_cpu,
        )

    def _run(self) -> None:
        started = self.handle.started_at
        try:
            while self.should_continue(started):
                self.sample()
                time.sleep(self.poll_interval)

            if self.cancel_token is not None:
                self.cancel_token.wait(self.grace_period)
            else:
                time.sleep(self.grace_period)
            self.sample()
        except Exception as e:
            logger.warning(f"Resource monitor for PID {self.handle.pid} stopped: {e}")
        finally:
            snapshot = self.stats.snapshot()
            logger.debug(
                f"Monitor for PID {self.handle.pid} done after {snapshot.samples} samples: "
                f"peak {snapshot.peak_memory_bytes} B, cpu {snapshot.total_cpu_time:.2f}s"
            )
            self.finished.set()
