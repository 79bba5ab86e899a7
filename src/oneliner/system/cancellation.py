"""
Cancellation handles and the watcher that turns a cancel into a confirmed kill.

A CancellationSource owns the cancel decision; the read-only
CancellationToken it hands out is what gets passed around in a CommandSpec.
Callbacks registered on the token run synchronously on the thread that calls
``cancel()``.
"""

import itertools
import logging
import threading
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from ..validation import ErrorSeverity, KillConfirmationTimeout, handle_error

if TYPE_CHECKING:
    from .launcher import ProcessHandle

logger = logging.getLogger(__name__)


class CancellationRegistration:
    """Handle returned by ``CancellationToken.register``; dispose to deregister."""

    def __init__(self, source: "CancellationSource", key: Optional[int]):
        self._source = source
        self._key = key

    def dispose(self) -> None:
        if self._key is not None:
            self._source._unregister(self._key)
            self._key = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()


class CancellationToken:
    """Read-only view of a CancellationSource."""

    def __init__(self, source: "CancellationSource"):
        self._source = source

    @property
    def is_cancellation_requested(self) -> bool:
        return self._source.is_cancelled

    def register(self, callback: Callable[[], None]) -> CancellationRegistration:
        """
        Run ``callback`` when cancellation is requested.

        If cancellation was already requested the callback runs immediately on
        the calling thread.
        """
        return self._source._register(callback)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancellation is requested or ``timeout`` elapses."""
        return self._source._event.wait(timeout)


class CancellationSource:
    """
    Issues cancellation for every operation holding its token.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._keys = itertools.count()
        self._timer: Optional[threading.Timer] = None
        self.token = CancellationToken(self)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """
        Request cancellation and run every registered callback.

        All callbacks run even if one raises; the first error is re-raised
        afterwards. Callbacks block until the killed process is confirmed
        gone, so a signal handler on the thread running the command must use
        ``cancel_after(0)`` instead.
        """
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()

        errors: List[Exception] = []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(f"Cancellation callback failed: {e}")
                errors.append(e)
        if errors:
            raise errors[0]

    def cancel_after(self, delay: float) -> threading.Timer:
        """Schedule ``cancel()`` on a daemon timer thread."""
        timer = threading.Timer(delay, self.cancel)
        timer.daemon = True
        timer.start()
        self._timer = timer
        return timer

    def _register(self, callback: Callable[[], None]) -> CancellationRegistration:
        with self._lock:
            if not self._event.is_set():
                key = next(self._keys)
                self._callbacks[key] = callback
                return CancellationRegistration(self, key)
        callback()
        return CancellationRegistration(self, None)

    def _unregister(self, key: int) -> None:
        with self._lock:
            self._callbacks.pop(key, None)


class CancellationWatcher:
    """
    Kills one process when its token fires and confirms the kill.

    The watcher belongs to a single invocation. ``killed`` is set before the
    kill is issued, so once the main wait returns because of the kill the
    flag is already visible.
    """

    def __init__(
        self,
        handle: "ProcessHandle",
        kill_confirmation_timeout: float = 60.0,
        poll_interval: float = 0.05,
    ):
        self.handle = handle
        self.kill_confirmation_timeout = kill_confirmation_timeout
        self.poll_interval = poll_interval
        self.error: Optional[KillConfirmationTimeout] = None
        self._killed = threading.Event()
        self._registration: Optional[CancellationRegistration] = None

    @property
    def killed(self) -> bool:
        return self._killed.is_set()

    def attach(self, token: Optional[CancellationToken]) -> "CancellationWatcher":
        if token is not None:
            self._registration = token.register(self._on_cancel)
        return self

    def detach(self) -> None:
        if self._registration is not None:
            self._registration.dispose()
            self._registration = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.detach()

    def _on_cancel(self) -> None:
        if self.handle.has_exited():
            logger.debug(f"Cancel requested for PID {self.handle.pid}, already exited")
            return

        self._killed.set()
        logger.info(f"Cancel requested, killing '{self.handle.name}' (PID {self.handle.pid})")
        try:
            self.handle.kill()
        except OSError as e:
            logger.warning(f"Kill of PID {self.handle.pid} failed: {e}")

        if not self.handle.confirm_terminated(self.kill_confirmation_timeout, self.poll_interval):
            self.error = KillConfirmationTimeout(
                f"Process '{self.handle.name}' (PID {self.handle.pid}) was not confirmed dead "
                f"{self.kill_confirmation_timeout:.0f}s after kill",
                pid=self.handle.pid,
                waited=self.kill_confirmation_timeout,
            )
            handle_error(
                error=self.error,
                context="confirming process kill",
                severity=ErrorSeverity.CRITICAL,
                reraise=True,
                logger=logger
            )
