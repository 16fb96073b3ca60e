"""
Event Loop Timers
=================

Single-slot timers on top of ``loop.call_later``.

Every timer kind in the client (reconnect, heartbeat, throttle flush) owns
exactly one slot. Arming a slot cancels whatever it held, so at most one
timer per kind is outstanding at any instant.

Any object exposing ``call_later(delay, callback, *args)`` returning a
cancellable handle and ``time()`` works as the loop; tests use a virtual
clock.
"""

import logging
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class TimerSlot:
    """
    A one-shot timer that holds at most one pending callback.

    Attributes:
        name: Label used in log messages
        armed: Whether a callback is pending
    """

    def __init__(self, loop: Any, name: str) -> None:
        self._loop = loop
        self.name = name
        self._handle: Optional[Any] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, delay: float, callback: Callable[[], None]) -> None:
        """Cancel any pending callback, then schedule callback after delay seconds."""
        self.cancel()
        self._handle = self._loop.call_later(max(0.0, delay), self._fire, callback)
        logger.debug(f"Timer {self.name} armed for {delay:.3f}s")

    def cancel(self) -> None:
        """Cancel the pending callback, if any."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        callback()


class PeriodicTimer:
    """
    A fixed-period timer built on a TimerSlot.

    The next tick is armed before the callback runs, so a failing callback
    does not stop the timer.
    """

    def __init__(self, loop: Any, name: str) -> None:
        self._slot = TimerSlot(loop, name)
        self._interval: float = 0.0
        self._callback: Optional[Callable[[], None]] = None

    @property
    def running(self) -> bool:
        return self._slot.armed

    def start(self, interval: float, callback: Callable[[], None]) -> None:
        """(Re)start ticking every interval seconds, first tick after one interval."""
        self.stop()
        self._interval = interval
        self._callback = callback
        self._slot.arm(interval, self._tick)

    def stop(self) -> None:
        self._slot.cancel()
        self._callback = None

    def _tick(self) -> None:
        callback = self._callback
        if callback is None:
            return
        self._slot.arm(self._interval, self._tick)
        callback()
