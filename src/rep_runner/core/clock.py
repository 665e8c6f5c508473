"""
Tick sources for the session runner.

A SessionMachine never sleeps or spawns threads.  It asks a Clock for a
repeating one-second TimerHandle when it enters a timed phase and cancels
that handle when it leaves the phase.  Handles fire on the caller's thread
whenever the clock is advanced:

- ManualClock is advanced explicitly (tests, replays).
- MonotonicClock is advanced from ``time.monotonic()`` by ``pump()`` /
  ``sleep()``, which the CLI calls from its single event loop.
"""

from __future__ import annotations

import itertools
import time
from typing import Callable, Protocol

from .config import TICK_SECONDS


class TimerHandle:
    """A repeating callback registered with a clock."""

    _ids = itertools.count()

    def __init__(self, interval: float, callback: Callable[[], None], start: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.callback = callback
        self.next_due = start + interval
        self.seq = next(self._ids)
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop the handle; a cancelled handle never fires again."""
        self._active = False

    def __repr__(self) -> str:
        state = "active" if self._active else "cancelled"
        return f"<TimerHandle #{self.seq} every {self.interval}s {state}>"


class Clock(Protocol):
    def now(self) -> float: ...

    def every(self, interval: float, callback: Callable[[], None]) -> TimerHandle: ...

    def sleep(self, seconds: float) -> None: ...

    def pump(self) -> None: ...


class ManualClock:
    """
    Deterministic clock.

    ``advance(n)`` moves time forward by ``n`` seconds and fires every due
    handle in (due time, registration order).  A handle registered from
    inside a callback starts counting from the moment it was registered.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._handles: list[TimerHandle] = []

    def now(self) -> float:
        return self._now

    def every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(interval, callback, self._now)
        self._handles.append(handle)
        return handle

    def tick(self, count: int = 1) -> None:
        """Advance by ``count`` whole ticks."""
        self.advance(count * TICK_SECONDS)

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("cannot move a clock backwards")
        target = self._now + seconds
        while True:
            due = [h for h in self._handles if h.active and h.next_due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.next_due, h.seq))
            self._now = handle.next_due
            handle.next_due += handle.interval
            handle.callback()
        self._now = target
        self._handles = [h for h in self._handles if h.active]

    def sleep(self, seconds: float) -> None:
        self.advance(seconds)

    def pump(self) -> None:
        """No real time passes on a manual clock."""

    @property
    def pending(self) -> list[TimerHandle]:
        """Handles that are still scheduled."""
        return [h for h in self._handles if h.active]


class MonotonicClock(ManualClock):
    """Real-time clock driven by ``time.monotonic()``."""

    def __init__(self) -> None:
        super().__init__(start=0.0)
        self._origin = time.monotonic()

    def pump(self) -> None:
        """Fire every handle that came due since the last pump."""
        real = time.monotonic() - self._origin
        if real > self._now:
            self.advance(real - self._now)

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)
        self.pump()
