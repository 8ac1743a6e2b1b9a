"""Cancellable one-shot and periodic timers on the engine clock."""
from __future__ import annotations

import heapq
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from tick_keepalive.clock import Clock


class Timer:
    """Handle for a scheduled callback.

    One-shot timers fire once and become inactive. Periodic timers fire every
    ``interval_ms`` until cancelled. Cancelling an inactive handle is a no-op.
    """

    __slots__ = ("name", "due_ms", "interval_ms", "_callback", "_active")

    def __init__(
        self,
        name: str,
        due_ms: int,
        callback: Callable[[], None],
        interval_ms: int | None = None,
    ) -> None:
        self.name = name
        self.due_ms = due_ms
        self.interval_ms = interval_ms
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def periodic(self) -> bool:
        return self.interval_ms is not None

    def cancel(self) -> None:
        self._active = False

    def __repr__(self) -> str:
        state = "active" if self._active else "inactive"
        return f"Timer({self.name!r}, due_ms={self.due_ms}, {state})"


class TimerQueue:
    """Min-heap of timers keyed on due time, fired in due order."""

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._heap: list[tuple[int, int, Timer]] = []
        self._counter = 0

    def call_later(
        self, delay_ms: int, callback: Callable[[], None], name: str = ""
    ) -> Timer:
        """Fire *callback* once, *delay_ms* after the current clock time."""
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        timer = Timer(name, self._clock.now_ms + delay_ms, callback)
        self._push(timer)
        return timer

    def call_every(
        self, interval_ms: int, callback: Callable[[], None], name: str = ""
    ) -> Timer:
        """Fire *callback* every *interval_ms*, first firing one interval from now."""
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        timer = Timer(name, self._clock.now_ms + interval_ms, callback, interval_ms)
        self._push(timer)
        return timer

    def pending(self) -> int:
        """Number of active timers."""
        return sum(1 for _, _, t in self._heap if t.active)

    def active_timers(self, name: str | None = None) -> list[Timer]:
        timers = sorted(
            (t for _, _, t in self._heap if t.active),
            key=lambda t: t.due_ms,
        )
        if name is None:
            return timers
        return [t for t in timers if t.name == name]

    def fire_due(self, now_ms: int) -> int:
        """Fire every timer due at or before *now_ms*. Returns the number fired.

        The clock is moved to each timer's due time before its callback runs,
        so timers armed from inside a callback are relative to that moment.
        """
        fired = 0
        while True:
            self._discard_inactive()
            if not self._heap or self._heap[0][0] > now_ms:
                break
            due, _, timer = heapq.heappop(self._heap)
            self._clock.set_time(due)
            if timer.periodic:
                timer.due_ms = due + timer.interval_ms
                self._push(timer)
            else:
                timer.cancel()
            timer._callback()
            fired += 1
        self._clock.set_time(now_ms)
        return fired

    def _push(self, timer: Timer) -> None:
        self._counter += 1
        heapq.heappush(self._heap, (timer.due_ms, self._counter, timer))

    def _discard_inactive(self) -> None:
        while self._heap and not self._heap[0][2].active:
            heapq.heappop(self._heap)
