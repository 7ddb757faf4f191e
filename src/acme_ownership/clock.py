"""
Clock and cancellation primitives for the verification polling loop.

The poller never calls time.sleep directly; it asks a Clock to wait and
hands over a CancellationToken so the caller can stop polling early.
"""

import threading
import time
from typing import Optional, Protocol


class CancellationToken:
    """A thread-safe flag a caller sets to stop an ongoing polling session."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def wait(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds; True if cancelled meanwhile."""
        return self._event.wait(timeout)


class Clock(Protocol):
    def monotonic(self) -> float:
        ...

    def sleep(self, seconds: float, token: Optional[CancellationToken] = None) -> bool:
        """Wait ``seconds``; return False if the token was cancelled."""
        ...


class SystemClock:
    """Wall-clock implementation backed by time.monotonic."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, token: Optional[CancellationToken] = None) -> bool:
        if token is None:
            time.sleep(seconds)
            return True
        if token.cancelled:
            return False
        return not token.wait(seconds)
