# ABOUTME: Request context carrying a deadline and a cancel flag through a lookup.
# ABOUTME: Provider calls and rate-limiter waits consult it so cancelled work returns promptly.

import threading
import time
from collections.abc import Callable

from folio.metadata.errors import LookupCancelledError


class RequestContext:
    """Deadline and cancellation state for one metadata resolution request.

    A context without a timeout never expires on its own but can still be
    cancelled from another thread. Waiting is done on a threading.Event so a
    cancel() wakes sleepers immediately instead of after the full interval.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    def cancel(self) -> None:
        """Cancel the request; pending and future waits raise LookupCancelledError.

        Callbacks registered with on_cancel() run once, in the cancelling thread.
        """
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run `callback` when the context is cancelled.

        Runs it immediately if the context is already cancelled. Returns a
        function that unregisters the callback.
        """
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                return lambda: self._discard(callback)
        callback()
        return lambda: None

    def _discard(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def cancelled(self) -> bool:
        """Whether the context was cancelled or its deadline has passed."""
        if self._cancelled.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_done(self) -> None:
        """Raise LookupCancelledError if the context is no longer live."""
        if self._cancelled.is_set():
            raise LookupCancelledError("request cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise LookupCancelledError("request deadline exceeded")

    def timeout_for(self, default: float) -> float:
        """Bound a per-call timeout by the time left on the context."""
        self.raise_if_done()
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)

    def sleep(self, seconds: float) -> None:
        """Sleep for up to `seconds`, waking early on cancel or deadline.

        Raises:
            LookupCancelledError: If the context ends before the sleep completes.
        """
        self.raise_if_done()
        if seconds <= 0:
            return
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._cancelled.wait(remaining)
            self.raise_if_done()
            # Deadline landed exactly on the boundary; treat it as expired.
            raise LookupCancelledError("request deadline exceeded")
        if self._cancelled.wait(seconds):
            raise LookupCancelledError("request cancelled")


def background() -> RequestContext:
    """A context with no deadline, used when the caller supplies none."""
    return RequestContext()
