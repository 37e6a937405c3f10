"""
Cancellation handle passed through every adapter operation.

A ``Context`` is cancelled explicitly, when its deadline passes, or when its
parent is cancelled.  It is safe to share between threads.
"""

from __future__ import annotations

import threading
import time

from sdp import ErrorType, QueryError

# Upper bound on a single sleep so deadlines and parent cancellation are
# noticed promptly.
_POLL_INTERVAL = 0.05


class Context:
    def __init__(
        self,
        timeout: float | None = None,
        parent: "Context | None" = None,
    ) -> None:
        self._event = threading.Event()
        self._parent = parent
        self._deadline = time.monotonic() + timeout if timeout is not None else None

        if parent is not None and parent._deadline is not None:
            if self._deadline is None or parent._deadline < self._deadline:
                self._deadline = parent._deadline

    def cancel(self) -> None:
        self._event.set()

    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        if self._parent is not None and self._parent.cancelled():
            return True
        return False

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self, timeout: float) -> bool:
        """Sleep for up to *timeout* seconds.

        Returns True as soon as the context is cancelled, False if the full
        timeout elapsed without cancellation.
        """
        end = time.monotonic() + timeout
        while True:
            if self.cancelled():
                return True
            left = end - time.monotonic()
            if left <= 0:
                return False
            self._event.wait(min(left, _POLL_INTERVAL))

    def raise_if_cancelled(self, scope: str | None = None) -> None:
        if self.cancelled():
            if self._deadline is not None and time.monotonic() >= self._deadline:
                reason = "context deadline exceeded"
            else:
                reason = "context cancelled"
            raise QueryError(ErrorType.TIMEOUT, reason, scope=scope)


def background() -> Context:
    """A context that is never cancelled unless ``cancel()`` is called."""
    return Context()
