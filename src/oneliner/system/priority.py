"""
Scheduling and I/O priority adjustment for spawned processes.

CPU scheduling priority is set in-process through psutil. The I/O scheduling
class is changed by running the external ``ionice`` tool through the same
run primitive every other command uses, first unprivileged and then through
passwordless sudo.
"""

import logging
import os
import sys
from typing import TYPE_CHECKING, Callable, Dict, List, Tuple, Union

import psutil

from ..models.command import CommandSpec, IOPriorityClass, PriorityClass
from ..models.config import RunnerConfig
from ..validation import LaunchError, PriorityAdjustmentError

if TYPE_CHECKING:
    from ..models.results import CmdResult

logger = logging.getLogger(__name__)

# (class, classdata) pairs for the Linux I/O scheduler:
# 1 = realtime, 2 = best-effort, 3 = idle; classdata 0 is the highest level.
IO_PRIORITY_LEVELS: Dict[IOPriorityClass, Tuple[int, int]] = {
    IOPriorityClass.IDLE: (3, 0),
    IOPriorityClass.LOW_EFFORT: (2, 7),
    IOPriorityClass.NORMAL_EFFORT: (2, 4),
    IOPriorityClass.HIGH_EFFORT: (2, 0),
    IOPriorityClass.ADMIN_REALTIME_LOW_EFFORT: (1, 7),
    IOPriorityClass.ADMIN_REALTIME_AVERAGE_EFFORT: (1, 4),
    IOPriorityClass.ADMIN_REALTIME_EXTREME_EFFORT: (1, 0),
}

POSIX_NICE_LEVELS: Dict[PriorityClass, int] = {
    PriorityClass.IDLE: 19,
    PriorityClass.BELOW_NORMAL: 10,
    PriorityClass.NORMAL: 0,
    PriorityClass.ABOVE_NORMAL: -5,
    PriorityClass.HIGH: -10,
    PriorityClass.REALTIME: -20,
}

# psutil only defines these constants on Windows.
WINDOWS_PRIORITY_CLASSES: Dict[PriorityClass, str] = {
    PriorityClass.IDLE: "IDLE_PRIORITY_CLASS",
    PriorityClass.BELOW_NORMAL: "BELOW_NORMAL_PRIORITY_CLASS",
    PriorityClass.NORMAL: "NORMAL_PRIORITY_CLASS",
    PriorityClass.ABOVE_NORMAL: "ABOVE_NORMAL_PRIORITY_CLASS",
    PriorityClass.HIGH: "HIGH_PRIORITY_CLASS",
    PriorityClass.REALTIME: "REALTIME_PRIORITY_CLASS",
}

ELEVATION_PREFIX = ["sudo", "-n"]


def is_io_priority_supported() -> bool:
    """Check whether I/O priority classes can be applied on this platform."""
    return sys.platform.startswith("linux")


def io_priority_arguments(tier: IOPriorityClass) -> Tuple[int, int]:
    """Return the (class, classdata) pair for an I/O priority tier."""
    return IO_PRIORITY_LEVELS[tier]


def set_process_priority(pid: int, tier: PriorityClass) -> bool:
    """
    Set the CPU scheduling priority of a process.

    Args:
        pid: Process ID
        tier: Requested scheduling tier

    Returns:
        True if successful, False otherwise
    """
    try:
        if os.name == "nt":
            value = getattr(psutil, WINDOWS_PRIORITY_CLASSES[tier])
        else:
            value = POSIX_NICE_LEVELS[tier]
        psutil.Process(pid).nice(value)
        logger.debug(f"Set priority of PID {pid} to {tier.name}")
        return True
    except Exception as e:
        logger.warning(f"Failed to set priority {tier.name} for PID {pid}: {e}")
        return False


class PriorityAdjuster:
    """
    Changes the I/O priority of a process by running an external tool.

    ``run`` is the spawn-and-capture primitive used for the tool itself; it
    is passed in rather than imported so the recursion stays explicit.
    """

    def __init__(self, run: Callable[[CommandSpec], "CmdResult"], config: RunnerConfig):
        self._run = run
        self.config = config

    def build_command(self, pid: int, tier: IOPriorityClass) -> List[str]:
        io_class, io_data = io_priority_arguments(tier)
        command = [self.config.io_priority_tool, "-c", str(io_class)]
        # The idle class takes no level.
        if io_class != 3:
            command += ["-n", str(io_data)]
        return command + ["-p", str(pid)]

    def set_io_priority(self, pid: int, tier: IOPriorityClass) -> "CmdResult":
        """
        Apply ``tier`` to ``pid``, escalating to sudo if the plain attempt fails.

        Returns:
            The result of the attempt that succeeded

        Raises:
            PriorityAdjustmentError: On non-POSIX platforms, or when both
                attempts fail
        """
        if os.name != "posix":
            raise PriorityAdjustmentError(f"I/O priority is not supported on platform '{sys.platform}'")

        command = self.build_command(pid, tier)
        attempts: List[Union["CmdResult", LaunchError]] = []

        for prefix in ([], ELEVATION_PREFIX):
            spec = CommandSpec(
                command=prefix + command,
                timeout=self.config.io_priority_timeout,
                collect_resource_stats=False,
            )
            try:
                result = self._run(spec)
            except LaunchError as e:
                attempts.append(e)
                logger.debug(f"'{spec.display_name}' could not start: {e}")
                continue

            attempts.append(result)
            if result.success:
                logger.debug(f"Set I/O priority of PID {pid} to {tier.name} via '{spec.display_name}'")
                return result
            logger.debug(f"'{spec.display_name}' failed with exit code {result.exit_code}")

        details = "; ".join(_describe_attempt(attempt) for attempt in attempts)
        raise PriorityAdjustmentError(
            f"Failed to set I/O priority {tier.name} for PID {pid}: {details}",
            attempts=attempts,
        )


def _describe_attempt(attempt: Union["CmdResult", LaunchError]) -> str:
    if isinstance(attempt, LaunchError):
        return f"launch failed ({attempt})"
    return f"exit code {attempt.exit_code} ({attempt.stderr.strip() or 'no output'})"
