"""
System interaction for one command invocation.

This module provides the pieces that touch the operating system:

- Process launching and the handle that owns a running child
- Concurrent stdout/stderr draining
- Resource usage sampling through psutil
- Cancellation handles and the kill-and-confirm watcher
- CPU and I/O priority adjustment
"""

from .cancellation import (
    CancellationRegistration,
    CancellationSource,
    CancellationToken,
    CancellationWatcher,
)
from .launcher import ProcessHandle, ProcessLauncher
from .monitor import ProcessUsage, ResourceMonitor, read_process_usage
from .output import OutputCollector, StreamDrain
from .priority import (
    IO_PRIORITY_LEVELS,
    PriorityAdjuster,
    io_priority_arguments,
    is_io_priority_supported,
    set_process_priority,
)

__all__ = [
    # Cancellation
    "CancellationRegistration",
    "CancellationSource",
    "CancellationToken",
    "CancellationWatcher",
    # Launching
    "ProcessHandle",
    "ProcessLauncher",
    # Monitoring
    "ProcessUsage",
    "ResourceMonitor",
    "read_process_usage",
    # Output
    "OutputCollector",
    "StreamDrain",
    # Priority
    "IO_PRIORITY_LEVELS",
    "PriorityAdjuster",
    "io_priority_arguments",
    "is_io_priority_supported",
    "set_process_priority",
]
