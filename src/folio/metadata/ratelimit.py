# ABOUTME: Minimum-interval rate limiter shared by all provider calls of one service.
# ABOUTME: Thread-safe; reserves the next slot under a lock and sleeps outside it.

import threading
import time

from folio.metadata.context import RequestContext
from folio.metadata.errors import LookupCancelledError


class RateLimiter:
    """Guarantee a minimum interval between permitted calls.

    Each wait() reserves the earliest free slot while holding the lock, then
    releases the lock before sleeping. Concurrent callers therefore queue up
    one interval apart without any of them holding the lock while blocked.
    """

    def __init__(self, interval: float) -> None:
        if interval < 0:
            msg = f"interval must be non-negative, got {interval}"
            raise ValueError(msg)
        self._interval = interval
        self._lock = threading.Lock()
        self._last_call: float | None = None

    @property
    def interval(self) -> float:
        return self._interval

    def wait(self, ctx: RequestContext | None = None) -> None:
        """Block until another call is allowed.

        A wait that is cancelled hands its reserved slot back, unless a later
        caller has already queued behind it.

        Raises:
            LookupCancelledError: If ctx is cancelled before or during the wait.
        """
        if ctx is not None:
            ctx.raise_if_done()

        with self._lock:
            now = time.monotonic()
            previous = self._last_call
            if previous is None:
                slot = now
            else:
                slot = max(now, previous + self._interval)
            self._last_call = slot

        delay = slot - now
        if delay <= 0:
            return
        if ctx is None:
            time.sleep(delay)
            return

        try:
            ctx.sleep(delay)
        except LookupCancelledError:
            with self._lock:
                if self._last_call == slot:
                    self._last_call = previous
            raise
