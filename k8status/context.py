"""Caller context for a health run: cancellation signal plus optional deadline.

A run carries one CheckContext. Network-facing code calls ``raise_if_done()``
before each request and bounds the request with ``timeout()``, so an expired
or cancelled context surfaces as a failed probe of the checker that hit it.
"""

from __future__ import annotations

import threading
import time


class ContextError(Exception):
    """Raised when work is attempted on a finished context."""


class ContextCanceled(ContextError):
    def __init__(self) -> None:
        super().__init__("context canceled")


class DeadlineExceeded(ContextError):
    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


class CheckContext:
    """Cancellation flag shared by derived contexts, plus a monotonic deadline."""

    def __init__(
        self,
        deadline: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.deadline = deadline
        self._cancel_event = cancel_event or threading.Event()

    @classmethod
    def background(cls) -> CheckContext:
        """A context that is never cancelled and has no deadline."""
        return cls()

    def with_timeout(self, seconds: float) -> CheckContext:
        """Derive a context expiring after ``seconds`` (never later than this one)."""
        deadline = time.monotonic() + seconds
        if self.deadline is not None:
            deadline = min(deadline, self.deadline)
        return CheckContext(deadline=deadline, cancel_event=self._cancel_event)

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def err(self) -> ContextError | None:
        if self._cancel_event.is_set():
            return ContextCanceled()
        if self.deadline is not None and time.monotonic() >= self.deadline:
            return DeadlineExceeded()
        return None

    def raise_if_done(self) -> None:
        err = self.err()
        if err is not None:
            raise err

    def timeout(self, cap: float | None = None) -> float | None:
        """Seconds left before the deadline, bounded by ``cap``.

        Returns ``cap`` (possibly None = no limit) when there is no deadline.
        """
        if self.deadline is None:
            return cap
        remaining = max(self.deadline - time.monotonic(), 0.0)
        if cap is None:
            return remaining
        return min(remaining, cap)
