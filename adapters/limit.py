"""
Shared token-bucket rate limiting.

Mirrors the way EC2 throttles requests:
https://docs.aws.amazon.com/AWSEC2/latest/APIReference/throttling.html

One bucket is created per AWS API family and handed to every adapter that
calls that API.  The bucket starts empty and is topped up by a background
thread every ``refill_duration`` seconds until the context passed to
``start()`` is cancelled.
"""

from __future__ import annotations

import logging
import threading
import time

from adapters.context import Context

logger = logging.getLogger(__name__)

DEFAULT_REFILL_DURATION = 1.0

# Waits longer than this are logged.
_SLOW_WAIT_SECONDS = 0.3


class LimitBucket:
    def __init__(
        self,
        max_capacity: int,
        refill_rate: int,
        refill_duration: float = DEFAULT_REFILL_DURATION,
        name: str = "",
    ) -> None:
        if max_capacity <= 0:
            raise ValueError("max_capacity must be positive")
        if refill_rate <= 0:
            raise ValueError("refill_rate must be positive")

        self.max_capacity = max_capacity
        self.refill_rate = refill_rate
        self.refill_duration = refill_duration or DEFAULT_REFILL_DURATION
        self.name = name

        self._tokens = 0
        self._cond = threading.Condition()
        self._thread: threading.Thread | None = None
        self._start_lock = threading.Lock()

    def start(self, ctx: Context) -> None:
        """Start the refill loop.  Calling this more than once is a no-op."""
        with self._start_lock:
            if self._thread is not None:
                logger.debug("LimitBucket %s already started", self.name or id(self))
                return

            self._thread = threading.Thread(
                target=self._run,
                args=(ctx,),
                name=f"limit-bucket-{self.name or id(self)}",
                daemon=True,
            )
            self._thread.start()

        logger.info(
            "LimitBucket %s started (capacity=%d, refill=%d per %.2fs)",
            self.name or id(self), self.max_capacity, self.refill_rate,
            self.refill_duration,
        )

    def _run(self, ctx: Context) -> None:
        while not ctx.wait(self.refill_duration):
            self._refill()

        # Wake any waiters so they can observe their own cancellation.
        with self._cond:
            self._cond.notify_all()
        logger.debug("LimitBucket %s stopped", self.name or id(self))

    def _refill(self) -> bool:
        """Add up to ``refill_rate`` tokens.  Returns True if the bucket is full."""
        with self._cond:
            delta = self.max_capacity - self._tokens
            if delta < self.refill_rate:
                new_tokens = delta
                full = True
            else:
                new_tokens = self.refill_rate
                full = False

            self._tokens += new_tokens
            if new_tokens:
                self._cond.notify(new_tokens)
            return full

    @property
    def available(self) -> int:
        with self._cond:
            return self._tokens

    def try_acquire(self) -> bool:
        """Take a token without blocking.  Returns False if none is available."""
        with self._cond:
            if self._tokens > 0:
                self._tokens -= 1
                return True
            return False

    def wait(self, ctx: Context) -> None:
        """Block until a token is available.

        Raises QueryError(TIMEOUT) if *ctx* is cancelled first.
        """
        start = time.monotonic()

        with self._cond:
            while self._tokens <= 0:
                ctx.raise_if_cancelled()
                timeout = 0.05
                remaining = ctx.remaining()
                if remaining is not None:
                    timeout = min(timeout, remaining)
                self._cond.wait(timeout)
            self._tokens -= 1

        waited = time.monotonic() - start
        if waited > _SLOW_WAIT_SECONDS:
            logger.debug(
                "Waited %.0fms for LimitBucket %s",
                waited * 1000, self.name or id(self),
            )
