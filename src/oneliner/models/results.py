"""
Result data models.

CmdResult is the single, immutable outcome of one invocation. ResourceStats
is the accumulator the resource monitor writes into while the process runs.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Outcome(Enum):
    """The one classification every invocation resolves to."""

    SUCCESS = "success"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELED = "canceled"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class CmdResult:
    """
    Complete outcome of one invocation.

    Durations are in seconds. The resource fields are None when stats
    collection was disabled.
    """

    exit_code: int
    success: bool
    stdout: str
    stderr: str
    outcome: Outcome
    wall_clock_duration: float
    peak_memory_bytes: Optional[int] = None
    user_cpu_time: Optional[float] = None
    total_cpu_time: Optional[float] = None


@dataclass(frozen=True)
class ResourceSnapshot:
    """Point-in-time copy of the monitor's accumulators."""

    peak_memory_bytes: int = 0
    user_cpu_time: float = 0.0
    total_cpu_time: float = 0.0
    samples: int = 0


@dataclass
class ResourceStats:
    """
    Monotonic-max accumulator for resource samples.

    OS counters can be observed out of order across rapid samples, so every
    field only ever grows.
    """

    peak_memory_bytes: int = 0
    user_cpu_time: float = 0.0
    total_cpu_time: float = 0.0
    samples: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def update(
        self,
        peak_resident: int = 0,
        resident: int = 0,
        user_cpu: float = 0.0,
        total_cpu: float = 0.0,
    ) -> ResourceSnapshot:
        with self._lock:
            self.peak_memory_bytes = max(self.peak_memory_bytes, peak_resident, resident)
            self.user_cpu_time = max(self.user_cpu_time, user_cpu)
            self.total_cpu_time = max(self.total_cpu_time, total_cpu)
            self.samples += 1
            return self._snapshot()

    def snapshot(self) -> ResourceSnapshot:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> ResourceSnapshot:
        return ResourceSnapshot(
            peak_memory_bytes=self.peak_memory_bytes,
            user_cpu_time=self.user_cpu_time,
            total_cpu_time=self.total_cpu_time,
            samples=self.samples,
        )
