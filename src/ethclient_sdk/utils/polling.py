"""
Polling utilities for the ethclient SDK.

Provides the bounded, cancellable wait strategy used while a submitted
transaction is still pending: a fixed interval by default, with
optional exponential backoff and an overall deadline.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..constants import DEFAULT_MAX_POLL_ATTEMPTS, DEFAULT_POLL_INTERVAL_SECONDS
from ..errors import PollCancelledError, ValidationError

Clock = Callable[[], float]
Sleeper = Callable[[float], None]


@dataclass(frozen=True)
class PollConfig:
    """
    Configuration for confirmation polling.

    Example:
        ```python
        config = PollConfig(
            max_attempts=10,
            interval=0.5,
            backoff=2.0,
            max_interval=8.0,
            timeout=60.0,
        )
        ```
    """

    max_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS
    """Total number of pending checks (first check included)."""

    interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    """Delay in seconds before the first retry."""

    backoff: float = 1.0
    """Multiplier applied to the delay after each retry (1.0 = fixed interval)."""

    max_interval: Optional[float] = None
    """Cap for the delay between two checks."""

    timeout: Optional[float] = None
    """Overall deadline in seconds, measured from the first check."""

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValidationError("max_attempts must be at least 1")
        if self.interval < 0:
            raise ValidationError("interval must be non-negative")
        if self.backoff < 1.0:
            raise ValidationError("backoff must be >= 1.0")
        if self.max_interval is not None and self.max_interval < 0:
            raise ValidationError("max_interval must be non-negative")
        if self.timeout is not None and self.timeout < 0:
            raise ValidationError("timeout must be non-negative")


def calculate_delay(attempt: int, config: PollConfig) -> float:
    """
    Calculate the wait before a retry.

    Args:
        attempt: Zero-based retry number (0 = first retry)
        config: Poll configuration

    Returns:
        Delay in seconds
    """
    delay = config.interval * (config.backoff ** attempt)
    if config.max_interval is not None:
        delay = min(delay, config.max_interval)
    return delay


class Waiter:
    """
    Blocking wait that honours a cancellation token and a deadline.

    The clock and sleep functions are injectable so that tests can run
    the poll loop without real time passing.
    """

    def __init__(
        self,
        config: PollConfig,
        cancel: Optional[threading.Event] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self.config = config
        self.cancel = cancel
        self._clock = clock
        self._sleep = sleep
        self._deadline = None if config.timeout is None else clock() + config.timeout

    def check_cancelled(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise PollCancelledError("Confirmation polling cancelled")

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def wait(self, attempt: int) -> bool:
        """
        Wait before retry number ``attempt``.

        Returns:
            False if the deadline has already passed, True once the
            delay has elapsed and another check should be made

        Raises:
            PollCancelledError: If the cancellation token fires
        """
        self.check_cancelled()
        delay = calculate_delay(attempt, self.config)
        remaining = self.remaining()
        if remaining is not None:
            if remaining <= 0:
                return False
            delay = min(delay, remaining)

        if self.cancel is not None:
            if self.cancel.wait(delay):
                raise PollCancelledError("Confirmation polling cancelled")
        else:
            self._sleep(delay)
        return True


__all__ = ["PollConfig", "Waiter", "calculate_delay"]
