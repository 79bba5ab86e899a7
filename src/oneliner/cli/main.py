"""
Command-line interface for oneliner.

Runs a single command through the run primitive and prints what it captured
together with a resource usage summary. SIGINT and SIGTERM cancel the
running command instead of killing this front end.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..executor import run
from ..models import CmdResult, CommandSpec, IOPriorityClass, Outcome, PriorityClass
from ..system import CancellationSource
from ..validation import OneLinerError, ValidationError, validate_enum_choice

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"


def _choices(enum_type) -> List[str]:
    return [member.name.lower().replace("_", "-") for member in enum_type]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oneliner",
        description="Run a command, capture its output and report how it ended.",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to run. A single argument is split on its first space; "
             "several arguments are used as-is.",
    )
    parser.add_argument("--cwd", type=Path, help="Working directory for the command.")
    parser.add_argument("--timeout", type=float, help="Kill the command after this many seconds.")
    parser.add_argument("--stdin", dest="standard_input", help="Text to write to the command's stdin.")
    parser.add_argument(
        "--priority", default="normal", choices=_choices(PriorityClass),
        help="CPU scheduling priority (default: normal).",
    )
    parser.add_argument(
        "--io-priority", default="normal-effort", choices=_choices(IOPriorityClass),
        help="I/O scheduling priority, Linux only (default: normal-effort).",
    )
    parser.add_argument("--no-stats", action="store_true", help="Skip resource usage sampling.")
    parser.add_argument("--echo", action="store_true", help="Echo output while the command runs.")
    parser.add_argument("--shell", action="store_true", help="Run the command through the system shell.")
    parser.add_argument("--config", type=Path, help="TOML file with a [runner] table.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def format_summary(result: CmdResult) -> str:
    """One line describing how the command ended and what it used."""
    parts = [f"exit code {result.exit_code} ({result.outcome.value})",
             f"wall clock {result.wall_clock_duration:.2f}s"]
    if result.user_cpu_time is not None:
        parts.append(f"user cpu {result.user_cpu_time:.2f}s")
        parts.append(f"total cpu {result.total_cpu_time:.2f}s")
    if result.peak_memory_bytes is not None:
        parts.append(f"peak memory {result.peak_memory_bytes / 1024 / 1024:.1f} MiB")
    return ", ".join(parts)


def main_cli(argv: Optional[List[str]] = None) -> int:
    """
    Entry point of the ``oneliner`` console script.

    Returns:
        The command's exit code, or 1 if it ended without a usable one
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    if not args.command:
        parser.error("no command given")

    if args.config:
        set_config_path(args.config)

    cancel_source = CancellationSource()

    def signal_handler(signum, frame):
        logger.info(f"Signal {signal.strsignal(signum)} received. Cancelling command...")
        # The main thread is blocked waiting on the child; cancel from another thread.
        cancel_source.cancel_after(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    command = args.command[0] if len(args.command) == 1 else args.command
    try:
        spec = CommandSpec(
            command=command,
            working_directory=args.cwd,
            standard_input=args.standard_input,
            timeout=args.timeout,
            cancel_token=cancel_source.token,
            priority=validate_enum_choice(args.priority, PriorityClass, "priority"),
            io_priority=validate_enum_choice(args.io_priority, IOPriorityClass, "io_priority"),
            collect_resource_stats=not args.no_stats,
            echo_output_realtime=args.echo,
            use_shell_execute=args.shell,
        )
        result = run(spec, config=get_config())
    except ValidationError as e:
        print(f"oneliner: invalid {e.field_name}: {e}", file=sys.stderr)
        return 2
    except (OneLinerError, FileNotFoundError) as e:
        print(f"oneliner: {e}", file=sys.stderr)
        return 1

    if not args.echo:
        sys.stdout.write(result.stdout)
        sys.stderr.write(result.stderr)
    elif result.outcome not in (Outcome.SUCCESS, Outcome.FAILED):
        # The diagnostic line was not part of the echoed stream.
        sys.stderr.write(result.stderr.splitlines()[-1] + "\n")
    print(format_summary(result), file=sys.stderr)

    return result.exit_code if result.exit_code >= 0 else 1


if __name__ == "__main__":
    sys.exit(main_cli())
