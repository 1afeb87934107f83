from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Core logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class OneShotTimer:
    """Cancellable single-fire timer polled against an injected Clock.

    Nothing runs in the background: the owner calls poll() from its update loop
    and the callback runs on that same turn once the deadline has passed.
    """

    def __init__(self, *, clock: Clock, duration_s: float, callback: Callable[[], None]) -> None:
        if duration_s < 0.0:
            raise ValueError("duration_s must be >= 0")
        self._clock = clock
        self._callback = callback
        self._due_at_s = clock.now() + float(duration_s)
        self._pending = True

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def due_at_s(self) -> float:
        return self._due_at_s

    def remaining_s(self) -> float | None:
        if not self._pending:
            return None
        return max(0.0, self._due_at_s - self._clock.now())

    def cancel(self) -> None:
        self._pending = False

    def poll(self) -> bool:
        """Fire the callback if due. Returns True only on the firing call."""

        if not self._pending:
            return False
        if self._clock.now() < self._due_at_s:
            return False
        self._pending = False
        self._callback()
        return True
