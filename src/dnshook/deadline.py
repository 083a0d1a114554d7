"""Overall deadline and cancellation for a single hook invocation."""

import threading
import time
from collections.abc import Callable

from dnshook.exceptions import DeadlineExceededError, OperationCancelledError


class Deadline:
    """An optional wall-clock budget that can also be cancelled explicitly.

    One instance is threaded through a whole create or delete call.
    Waits on it return early as soon as the budget runs out or
    ``cancel()`` is called from another thread.

    Args:
        timeout: Budget in seconds. None or 0 means no deadline.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._clock = clock
        self._expires_at = clock() + timeout if timeout else None
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Cancel the operation, waking up any pending wait."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    @property
    def done(self) -> bool:
        """True once the deadline expired or the operation was cancelled."""
        return self.cancelled or self.expired

    def remaining(self) -> float | None:
        """Seconds left, or None when there is no deadline."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def clamp(self, seconds: float) -> float:
        """Bound a sub-timeout by the time remaining."""
        remaining = self.remaining()
        if remaining is None:
            return seconds
        return min(seconds, remaining)

    def wait(self, seconds: float) -> bool:
        """Sleep for ``seconds`` unless the deadline fires first.

        Returns:
            True if the deadline expired or cancel() was called before
            the delay elapsed, False if the full delay passed.
        """
        remaining = self.remaining()
        if remaining is not None and remaining <= seconds:
            self._cancelled.wait(remaining)
            return True
        return self._cancelled.wait(seconds)

    def check(self) -> None:
        """Raise if no further work should be started.

        Raises:
            OperationCancelledError: cancel() was called.
            DeadlineExceededError: The deadline expired.
        """
        if self.cancelled:
            raise OperationCancelledError("Operation cancelled")
        if self.expired:
            raise DeadlineExceededError("Deadline exceeded")
