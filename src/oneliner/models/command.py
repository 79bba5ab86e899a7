"""
Command specification models.

This module contains the immutable description of what to run and how,
together with the scheduling and I/O priority tiers it may request.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence, Tuple, Union

from ..validation import ValidationError, validate_enum_choice, validate_positive_float

if TYPE_CHECKING:
    from ..system.cancellation import CancellationToken


class PriorityClass(Enum):
    """OS scheduling tier for the spawned process."""

    IDLE = 0
    BELOW_NORMAL = 1
    NORMAL = 2
    ABOVE_NORMAL = 3
    HIGH = 4
    REALTIME = 5


class IOPriorityClass(Enum):
    """Disk scheduling tier; only has an effect on Linux."""

    IDLE = 0
    LOW_EFFORT = 1
    NORMAL_EFFORT = 2
    HIGH_EFFORT = 3
    ADMIN_REALTIME_LOW_EFFORT = 4
    ADMIN_REALTIME_AVERAGE_EFFORT = 5
    ADMIN_REALTIME_EXTREME_EFFORT = 6


@dataclass(frozen=True)
class CommandSpec:
    """
    Full description of one invocation.

    ``command`` is either a single string, whose first space separates the
    executable from its arguments, or an already split argv sequence.
    """

    # The program and its arguments.
    command: Union[str, Sequence[str]]
    # Directory to run in; None keeps the caller's current directory.
    working_directory: Optional[Union[str, Path]] = None
    # Text written to the child's stdin, which is then closed.
    standard_input: Optional[str] = None
    # Seconds before the process is killed; None waits forever.
    timeout: Optional[float] = None
    cancel_token: Optional["CancellationToken"] = None
    priority: PriorityClass = PriorityClass.NORMAL
    io_priority: IOPriorityClass = IOPriorityClass.NORMAL_EFFORT
    collect_resource_stats: bool = True
    echo_output_realtime: bool = False
    throw_on_failure: bool = False
    use_shell_execute: bool = False

    def __post_init__(self):
        if isinstance(self.command, str):
            if not self.command.strip():
                raise ValidationError("command must not be empty", field_name="command", value=self.command)
        else:
            argv = tuple(str(part) for part in self.command)
            if not argv or not argv[0]:
                raise ValidationError("command must not be empty", field_name="command", value=self.command)
            object.__setattr__(self, "command", argv)

        if self.timeout is not None:
            object.__setattr__(
                self, "timeout", validate_positive_float(self.timeout, field_name="timeout")
            )
        object.__setattr__(
            self, "priority", validate_enum_choice(self.priority, PriorityClass, "priority")
        )
        object.__setattr__(
            self, "io_priority", validate_enum_choice(self.io_priority, IOPriorityClass, "io_priority")
        )

    @property
    def display_name(self) -> str:
        """The command as a single line, for logs and messages."""
        if isinstance(self.command, str):
            return self.command
        return " ".join(self.command)


def split_command_line(command: str) -> Tuple[str, str]:
    """
    Split a command line into (executable, argument string) on the first space.

    No quoting rules apply, so an executable path containing spaces cannot be
    expressed this way; pass an argv sequence instead.

    Examples:
        >>> split_command_line("sleeper 5")
        ('sleeper', '5')
        >>> split_command_line("ls")
        ('ls', '')
    """
    stripped = command.strip()
    executable, _, arguments = stripped.partition(" ")
    return executable, arguments.strip()
