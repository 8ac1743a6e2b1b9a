"""Millisecond clock and TickContext for the keep-alive loop."""

import random
from typing import Callable

from tick_keepalive.types import TickContext


class Clock:
    def __init__(self, tps: int) -> None:
        if tps <= 0:
            raise ValueError("tps must be positive")
        self._tps = tps
        self._dt_ms = max(1, 1000 // tps)
        self._tick_number = 0
        self._now_ms = 0

    @property
    def tps(self) -> int:
        return self._tps

    @property
    def dt_ms(self) -> int:
        return self._dt_ms

    @property
    def tick_number(self) -> int:
        return self._tick_number

    @property
    def now_ms(self) -> int:
        return self._now_ms

    def advance(self) -> int:
        self._tick_number += 1
        return self._tick_number

    def set_time(self, now_ms: int) -> None:
        """Move the clock forward to *now_ms*. Time never runs backwards."""
        if now_ms > self._now_ms:
            self._now_ms = now_ms

    def context(self, stop_fn: Callable[[], None], rng: random.Random) -> TickContext:
        return TickContext(
            tick_number=self._tick_number,
            now_ms=self._now_ms,
            dt_ms=self._dt_ms,
            request_stop=stop_fn,
            random=rng,
        )
