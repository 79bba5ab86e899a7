"""
Bounded retry loops for transient OS races.

Races are not signalled with exceptions here: a read returns ``None`` while
the answer is not available yet, and the loop reports what happened through
a RetryResult. Escalation is left to the caller.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class RetryResult(Generic[T]):
    """Outcome of a bounded retry loop."""

    value: Optional[T]
    attempts: int
    waited: float = 0.0

    @property
    def ok(self) -> bool:
        return self.value is not None


def poll_with_backoff(
    read: Callable[[], Optional[T]],
    max_retries: int = 5,
    backoff: float = 2.0,
    context: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> RetryResult[T]:
    """
    Call ``read`` until it returns a value, sleeping ``backoff * retry``
    seconds before each retry.

    Args:
        read: Returns the value, or None while it is not available yet
        max_retries: Retries after the first attempt
        backoff: Base delay; retry N waits ``backoff * N`` seconds
        context: Context description for log messages
        sleep: Sleep function, injectable for tests

    Returns:
        RetryResult with the value (None if the budget was exhausted)
    """
    waited = 0.0
    for attempt in range(max_retries + 1):
        if attempt > 0:
            delay = backoff * attempt
            logger.debug(f"Retry {attempt}/{max_retries} for {context} in {delay:.1f}s")
            sleep(delay)
            waited += delay

        value = read()
        if value is not None:
            if attempt > 0:
                logger.info(f"Operation '{context}' succeeded on attempt {attempt + 1}")
            return RetryResult(value=value, attempts=attempt + 1, waited=waited)

    logger.error(f"All {max_retries + 1} attempts failed for {context}")
    return RetryResult(value=None, attempts=max_retries + 1, waited=waited)


def wait_until(
    predicate: Callable[[], bool],
    timeout: float,
    interval: float = 0.05,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """
    Poll ``predicate`` until it holds or ``timeout`` seconds pass.

    Returns:
        True if the predicate became true within the bound
    """
    deadline = clock() + timeout
    while True:
        if predicate():
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            return False
        sleep(min(interval, remaining))
