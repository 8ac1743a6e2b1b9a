"""Engine - owned context for the keep-alive loop: clock, timers, signals, RNG."""

import os
import random
import time
from typing import Callable

from tick_keepalive.clock import Clock
from tick_keepalive.signals import SignalBus
from tick_keepalive.timers import TimerQueue
from tick_keepalive.types import TickContext

Hook = Callable[[TickContext], None]


class Engine:
    def __init__(self, tps: int = 20, seed: int | None = None) -> None:
        self._clock = Clock(tps)
        self._timers = TimerQueue(self._clock)
        self._bus = SignalBus()
        self._start_hooks: list[Hook] = []
        self._stop_hooks: list[Hook] = []
        self._stop_requested: bool = False

        if seed is None:
            seed = int.from_bytes(os.urandom(8))
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def timers(self) -> TimerQueue:
        return self._timers

    @property
    def bus(self) -> SignalBus:
        return self._bus

    @property
    def random(self) -> random.Random:
        return self._rng

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def now_ms(self) -> int:
        return self._clock.now_ms

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def on_start(self, hook: Hook) -> None:
        self._start_hooks.append(hook)

    def on_stop(self, hook: Hook) -> None:
        self._stop_hooks.append(hook)

    def request_stop(self) -> None:
        self._stop_requested = True

    def context(self) -> TickContext:
        return self._clock.context(self.request_stop, self._rng)

    def _tick(self, now_ms: int) -> None:
        self._clock.advance()
        self._clock.set_time(now_ms)
        self._bus.flush()
        self._timers.fire_due(now_ms)
        self._bus.flush()

    def step(self) -> None:
        self._tick(self._clock.now_ms + self._clock.dt_ms)

    def advance(self, ms: int) -> None:
        """Run one tick that jumps the clock forward by *ms*.

        Every timer due inside the window fires at its own due time, in order.
        """
        if ms < 0:
            raise ValueError(f"ms must be >= 0, got {ms}")
        self._tick(self._clock.now_ms + ms)

    def run(self, n: int) -> None:
        self._stop_requested = False
        self._run_hooks(self._start_hooks)
        try:
            for _ in range(n):
                self.step()
                if self._stop_requested:
                    break
        finally:
            self._run_hooks(self._stop_hooks)

    def run_forever(self) -> None:
        self._stop_requested = False
        self._run_hooks(self._start_hooks)

        dt = self._clock.dt_ms / 1000.0
        origin = time.monotonic()
        base_ms = self._clock.now_ms
        try:
            while not self._stop_requested:
                start = time.monotonic()
                self._tick(base_ms + int((start - origin) * 1000))
                if self._stop_requested:
                    break
                elapsed = time.monotonic() - start
                sleep_time = dt - elapsed
                if sleep_time > 0:
                    time.sleep(sleep_time)
        finally:
            self._run_hooks(self._stop_hooks)

    def _run_hooks(self, hooks: list[Hook]) -> None:
        ctx = self.context()
        for hook in hooks:
            hook(ctx)
