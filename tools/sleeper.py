"""
Busy-spin helper used as a deterministic child process in tests.

Usage: sleeper.py N

Keeps one CPU core at 100% for N seconds, then writes
"Finished sleeping N seconds." to stdout and exits 0.
"""

import os
import sys
import time


def main(argv) -> int:
    if len(argv) != 2 or not argv[1].isdigit():
        name = os.path.basename(argv[0]) if argv else "sleeper"
        sys.stderr.write(
            f"Usage: {name} N\n"
            f"\tN - Amount of seconds to freeze this application, while utilizing one CPU to 100%.\n"
        )
        return 1

    seconds = int(argv[1])
    deadline = time.monotonic() + seconds
    while time.monotonic() < deadline:
        pass
    sys.stdout.write(f"Finished sleeping {seconds} seconds.")
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
