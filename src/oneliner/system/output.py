"""
Concurrent draining of a child's stdout and stderr.

Both pipes must be read while the child runs, otherwise a full pipe buffer
blocks the child forever. Each stream gets its own thread, its own buffer and
its own completion event.
"""

import logging
import sys
import threading
import time
from typing import IO, Callable, List, Optional

logger = logging.getLogger(__name__)


class StreamDrain:
    """
    Reads one text stream line by line until end-of-stream.
    """

    def __init__(self, stream: Optional[IO[str]], name: str,
                 echo: Optional[Callable[[], IO[str]]] = None):
        """
        Args:
            stream: Pipe to read; None counts as already finished
            name: Thread name
            echo: Returns the sink each line is forwarded to, if any
        """
        self.stream = stream
        self.name = name
        self.echo = echo
        self.done = threading.Event()
        self._lines: List[str] = []
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "StreamDrain":
        if self.stream is None:
            self.done.set()
            return self
        self._thread = threading.Thread(target=self._drain, name=self.name, daemon=True)
        self._thread.start()
        return self

    def text(self) -> str:
        with self._lock:
            return "".join(self._lines)

    def _drain(self) -> None:
        try:
            for line in iter(self.stream.readline, ""):
                if not line.endswith("\n"):
                    line += "\n"
                with self._lock:
                    self._lines.append(line)
                if self.echo is not None:
                    sink = self.echo()
                    sink.write(line)
                    sink.flush()
        except (OSError, ValueError) as e:
            logger.debug(f"{self.name} stopped reading: {e}")
        finally:
            try:
                self.stream.close()
            except OSError:
                pass
            self.done.set()


class OutputCollector:
    """
    Drains stdout and stderr of one process concurrently.
    """

    def __init__(self, stdout: Optional[IO[str]], stderr: Optional[IO[str]],
                 echo: bool = False, name: str = "process"):
        self.stdout = StreamDrain(
            stdout, f"oneliner-stdout-{name}", (lambda: sys.stdout) if echo else None
        )
        self.stderr = StreamDrain(
            stderr, f"oneliner-stderr-{name}", (lambda: sys.stderr) if echo else None
        )

    def start(self) -> "OutputCollector":
        self.stdout.start()
        self.stderr.start()
        return self

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for both streams to reach end-of-stream.

        ``timeout`` bounds the whole wait, not each stream.
        """
        if timeout is None:
            self.stdout.done.wait()
            self.stderr.done.wait()
            return True
        deadline = time.monotonic() + timeout
        if not self.stdout.done.wait(timeout):
            return False
        return self.stderr.done.wait(max(0.0, deadline - time.monotonic()))

    @property
    def stdout_text(self) -> str:
        return self.stdout.text()

    @property
    def stderr_text(self) -> str:
        return self.stderr.text()
