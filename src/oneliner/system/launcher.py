"""
Process launching.

ProcessLauncher validates a CommandSpec and starts the child with its output
redirected; ProcessHandle is the single owner of the running child for the
rest of the invocation.
"""

import logging
import os
import shlex
import subprocess
import threading
import time
from typing import TYPE_CHECKING, List, Optional, Union

import psutil

from ..models.command import CommandSpec, IOPriorityClass, PriorityClass, split_command_line
from ..models.config import RunnerConfig
from ..validation import (
    LaunchError,
    PriorityAdjustmentError,
    validate_working_directory,
    wait_until,
)
from .priority import is_io_priority_supported, set_process_priority

if TYPE_CHECKING:
    from .priority import PriorityAdjuster

logger = logging.getLogger(__name__)


class ProcessHandle:
    """
    Owns one running child process.

    Two independent views of liveness are kept: the Popen object that
    started and reaps the child, and a psutil.Process captured right after
    start that reflects what the OS reports.
    """

    def __init__(self, popen: subprocess.Popen, name: str):
        self.popen = popen
        self.name = name
        self.pid = popen.pid
        self.started_at = time.monotonic()
        self._stdin_writer: Optional[threading.Thread] = None
        try:
            self.os_process: Optional[psutil.Process] = psutil.Process(popen.pid)
        except psutil.Error as e:
            logger.debug(f"No psutil view of PID {popen.pid}: {e}")
            self.os_process = None

    def poll(self) -> Optional[int]:
        return self.popen.poll()

    def has_exited(self) -> bool:
        """Popen's view; errors count as exited."""
        try:
            return self.popen.poll() is not None
        except OSError:
            return True

    def read_exit_code(self) -> Optional[int]:
        """The exit code, or None while the process is not known to have exited."""
        return self.popen.poll()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the process to exit; False if ``timeout`` elapsed first."""
        try:
            self.popen.wait(timeout=timeout)
            return True
        except subprocess.TimeoutExpired:
            return False

    def kill(self) -> None:
        self.popen.kill()

    def is_alive_os(self) -> bool:
        """The OS view of liveness; zombies count as dead."""
        if self.os_process is None:
            return self.popen.poll() is None
        try:
            if not self.os_process.is_running():
                return False
            return self.os_process.status() != psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return False
        except psutil.AccessDenied:
            return True

    def confirm_terminated(self, timeout: float, interval: float = 0.05) -> bool:
        """
        Block until both views agree the process is gone, at most ``timeout``
        seconds in total.
        """
        deadline = time.monotonic() + timeout
        if not self.wait(timeout):
            return False
        remaining = max(0.0, deadline - time.monotonic())
        return wait_until(lambda: not self.is_alive_os(), remaining, interval)

    def write_stdin(self, payload: str) -> Optional[threading.Thread]:
        """
        Write the whole payload and close stdin on a daemon thread.

        The caller goes straight on to the deadline wait; a child that never
        reads is killed there, which breaks the pipe and ends the writer.
        """
        if self.popen.stdin is None:
            return None
        self._stdin_writer = threading.Thread(
            target=self._feed_stdin,
            args=(payload,),
            name=f"oneliner-stdin-{self.pid}",
            daemon=True,
        )
        self._stdin_writer.start()
        return self._stdin_writer

    def _feed_stdin(self, payload: str) -> None:
        stdin = self.popen.stdin
        try:
            stdin.write(payload)
            stdin.flush()
        except (OSError, ValueError) as e:
            logger.debug(f"PID {self.pid} closed stdin early: {e}")
        finally:
            try:
                stdin.close()
            except (OSError, ValueError):
                pass

    def release(self, reap_timeout: float = 60.0) -> None:
        """
        Make sure the child is gone and reaped.

        The output pipes belong to the drain threads, which close them at
        end-of-stream. A stdin writer thread closes its own pipe once the
        child has read everything or died.
        """
        stdin = self.popen.stdin
        if self._stdin_writer is None and stdin is not None and not stdin.closed:
            try:
                stdin.close()
            except (OSError, ValueError):
                pass
        if self.popen.poll() is None:
            logger.debug(f"Releasing PID {self.pid} while still running, killing it")
            try:
                self.popen.kill()
            except OSError as e:
                logger.warning(f"Kill of PID {self.pid} during release failed: {e}")
            if not self.wait(reap_timeout):
                logger.warning(f"PID {self.pid} still not reaped after {reap_timeout:.0f}s")


class ProcessLauncher:
    """
    Starts child processes described by a CommandSpec.
    """

    def __init__(self, config: RunnerConfig, priority_adjuster: Optional["PriorityAdjuster"] = None):
        self.config = config
        self.priority_adjuster = priority_adjuster

    @staticmethod
    def build_args(spec: CommandSpec) -> Union[str, List[str]]:
        """
        Turn ``spec.command`` into what Popen expects.

        Without a shell, a string command is split once on the first space and
        its argument string on whitespace. With a shell, the command line is
        handed over as one string.
        """
        if spec.use_shell_execute:
            if isinstance(spec.command, str):
                return spec.command
            if os.name == "nt":
                return subprocess.list2cmdline(spec.command)
            return shlex.join(spec.command)

        if isinstance(spec.command, str):
            executable, arguments = split_command_line(spec.command)
            return [executable] + arguments.split()
        return list(spec.command)

    def launch(self, spec: CommandSpec) -> ProcessHandle:
        """
        Validate ``spec`` and start its process.

        Raises:
            LaunchError: If the working directory is invalid or the executable
                cannot be started
        """
        cwd = None
        if spec.working_directory is not None:
            cwd = validate_working_directory(spec.working_directory)

        args = self.build_args(spec)
        executable = args if isinstance(args, str) else args[0]
        logger.debug(f"Launching '{spec.display_name}' in '{cwd or os.getcwd()}'")

        try:
            popen = subprocess.Popen(
                args,
                cwd=cwd,
                shell=spec.use_shell_execute,
                stdin=subprocess.PIPE if spec.standard_input is not None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding=self.config.output_encoding,
                errors="replace",
                bufsize=1,  # Line buffered
                creationflags=subprocess.CREATE_NO_WINDOW if os.name == "nt" else 0,
            )
        except FileNotFoundError as e:
            logger.error(f"Executable not found: {executable}")
            raise LaunchError(f"Executable not found: '{executable}'", command=spec.display_name) from e
        except PermissionError as e:
            logger.error(f"Permission denied starting: {executable}")
            raise LaunchError(f"Permission denied: '{executable}'", command=spec.display_name) from e
        except OSError as e:
            logger.error(f"Failed to start '{executable}': {type(e).__name__}: {e}")
            raise LaunchError(f"Cannot start '{executable}': {e}", command=spec.display_name) from e

        handle = ProcessHandle(popen, name=executable if isinstance(args, list) else spec.display_name)
        logger.info(f"Started '{spec.display_name}' with PID {handle.pid}")
        return handle

    def apply_priorities(self, handle: ProcessHandle, spec: CommandSpec) -> None:
        """
        Best-effort priority changes for a launched child.

        Adjustment failures are logged and never abort the run. Any other
        error propagates, so callers apply priorities where a failure still
        releases the child.
        """
        if spec.priority is not PriorityClass.NORMAL:
            set_process_priority(handle.pid, spec.priority)

        if spec.io_priority is IOPriorityClass.NORMAL_EFFORT:
            return
        if self.priority_adjuster is None or not is_io_priority_supported():
            logger.debug(f"I/O priority {spec.io_priority.name} not applied on this platform")
            return
        try:
            self.priority_adjuster.set_io_priority(handle.pid, spec.io_priority)
        except PriorityAdjustmentError as e:
            logger.warning(f"Could not set I/O priority of PID {handle.pid}: {e}")
