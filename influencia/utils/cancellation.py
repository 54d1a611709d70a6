from __future__ import annotations

import threading
import time


class DispatchCancelled(RuntimeError):
    """Raised at a suspension point once the caller's token has fired."""


class CancelToken:
    """Caller-supplied cancellation signal with an optional hard deadline.

    The token fires either when `cancel()` is called or when the deadline
    (seconds from construction) passes.
    """

    def __init__(self, deadline_s: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + deadline_s if deadline_s is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining_s(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def bound_ms(self, timeout_ms: int) -> int:
        """Clamp a wait so it never outlives the deadline.

        Never returns 0, which Playwright reads as "wait forever".
        """
        remaining = self.remaining_s()
        if remaining is None:
            return timeout_ms
        return max(1, min(timeout_ms, int(remaining * 1000)))

    def raise_if_cancelled(self, where: str) -> None:
        if self.cancelled:
            raise DispatchCancelled(f"cancelled before {where}")

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`; return True if the token fired meanwhile."""
        remaining = self.remaining_s()
        if remaining is not None and remaining < seconds:
            fired = self._event.wait(remaining)
            return fired or self.cancelled
        return self._event.wait(seconds)
