"""
The run primitive: launch a command, capture its output and resolve a
trustworthy result.

``run`` keeps no state between calls; every invocation owns its process,
threads and buffers, so any number of callers may run commands concurrently.
"""

import logging
from typing import Optional

from ..config import get_config
from ..models.command import CommandSpec, IOPriorityClass
from ..models.config import RunnerConfig
from ..models.results import CmdResult
from ..system.cancellation import CancellationWatcher
from ..system.launcher import ProcessLauncher
from ..system.monitor import ResourceMonitor
from ..system.output import OutputCollector
from ..system.priority import PriorityAdjuster
from .resolver import ExitResolver, raise_for_outcome

logger = logging.getLogger(__name__)


def run(spec: CommandSpec, config: Optional[RunnerConfig] = None) -> CmdResult:
    """
    Execute a command line application and wait for a resolved outcome.

    Args:
        spec: What to run and how
        config: Runner tunables; defaults to the loaded configuration

    Returns:
        The CmdResult. A non-zero exit, a timeout or a cancel is a normal,
        unsuccessful result unless ``spec.throw_on_failure`` is set.

    Raises:
        LaunchError: If the process cannot be started
        CommandFailedError: On a failed outcome with ``throw_on_failure``
        KillConfirmationTimeout: If the OS never confirms the process is gone
        ExitStatusRace: If the exit code cannot be read within the retry budget
    """
    config = config or get_config()
    launcher = ProcessLauncher(config, PriorityAdjuster(lambda s: run(s, config), config))
    handle = launcher.launch(spec)

    watcher = CancellationWatcher(
        handle, config.kill_confirmation_timeout, config.termination_poll_interval
    )
    try:
        output = OutputCollector(
            handle.popen.stdout, handle.popen.stderr,
            echo=spec.echo_output_realtime, name=str(handle.pid),
        ).start()
        launcher.apply_priorities(handle, spec)

        monitor = None
        if spec.collect_resource_stats:
            monitor = ResourceMonitor(handle, config, spec.timeout, spec.cancel_token).start()

        watcher.attach(spec.cancel_token)

        if spec.standard_input is not None:
            handle.write_stdin(spec.standard_input)

        result = ExitResolver(
            handle, watcher, output, config, monitor=monitor, timeout=spec.timeout
        ).resolve()
    finally:
        watcher.detach()
        handle.release(config.kill_confirmation_timeout)

    logger.debug(
        f"'{spec.display_name}' resolved as {result.outcome.value} "
        f"(exit code {result.exit_code}, {result.wall_clock_duration:.2f}s)"
    )
    if spec.throw_on_failure:
        raise_for_outcome(result)
    return result


def run_command(command, **options) -> CmdResult:
    """
    Run a command given as a string or argv sequence.

    Keyword options are CommandSpec fields, e.g.
    ``run_command("sleeper 5", timeout=20)``.
    """
    config = options.pop("config", None)
    return run(CommandSpec(command=command, **options), config=config)


def set_io_priority(pid: int, tier: IOPriorityClass, config: Optional[RunnerConfig] = None) -> CmdResult:
    """
    Set the I/O priority of any process.

    Raises:
        PriorityAdjustmentError: If the platform has no I/O priorities or
            both the plain and the sudo attempt fail
    """
    config = config or get_config()
    return PriorityAdjuster(lambda s: run(s, config), config).set_io_priority(pid, tier)
