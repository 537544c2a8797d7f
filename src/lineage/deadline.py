"""Deadline and cancellation token passed through every traversal call."""

import threading
import time

from src.shared.exceptions import TraversalTimeoutError


class Deadline:
    """
    A point in time after which a query must stop, plus a cancel switch.

    The service layer creates one per request and may call ``cancel()``
    from another thread; traversals call ``check()`` between store calls.
    """

    def __init__(self, timeout: float | None = None):
        self._expires_at = None if timeout is None else time.monotonic() + timeout
        self._timeout = timeout
        self._cancelled = threading.Event()

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(seconds)

    @classmethod
    def never(cls) -> "Deadline":
        return cls(None)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        """Seconds left before expiry (never negative), or None if unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self) -> None:
        """Raise TraversalTimeoutError if the query was cancelled or ran out of time."""
        if self._cancelled.is_set():
            raise TraversalTimeoutError("Lineage query was cancelled", cancelled=True)
        if self.expired():
            raise TraversalTimeoutError(f"Lineage query exceeded its {self._timeout}s deadline")
