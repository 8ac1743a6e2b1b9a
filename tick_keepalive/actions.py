"""Natural-action scheduler: randomly timed, randomly weighted idle activity."""
from __future__ import annotations

import logging
import math
import random as _random_mod
from enum import Enum
from typing import TYPE_CHECKING, Callable, Sequence, TypeVar

from tick_keepalive.client import GameClient, safe_call, safe_chat, safe_query

if TYPE_CHECKING:
    from tick_keepalive.config import KeepAliveConfig
    from tick_keepalive.engine import Engine
    from tick_keepalive.timers import Timer

logger = logging.getLogger(__name__)

_K = TypeVar("_K")


class ActionKind(Enum):
    LOOK = "look"
    WALK = "walk"
    JUMP = "jump"
    SNEAK = "sneak"
    SPRINT = "sprint"
    IDLE_GLANCE = "idle_glance"


DEFAULT_WEIGHTS: tuple[tuple[ActionKind, float], ...] = (
    (ActionKind.LOOK, 3.0),
    (ActionKind.WALK, 3.0),
    (ActionKind.JUMP, 2.0),
    (ActionKind.SNEAK, 1.0),
    (ActionKind.SPRINT, 1.0),
    (ActionKind.IDLE_GLANCE, 2.0),
)

JUMP_HOLD_MS = 400
GREETING_DELAY_MS = (500, 2500)


def pick_weighted(weights: Sequence[tuple[_K, float]], rng: _random_mod.Random) -> _K:
    """Pick a key with probability weight / total.

    Draws ``r`` in ``[0, total)`` and subtracts each weight in order until the
    remainder is non-positive. Ties go to the earlier entry.
    """
    if not weights:
        raise ValueError("weights must not be empty")
    total = 0.0
    for key, weight in weights:
        if weight <= 0:
            raise ValueError(f"weight for {key!r} must be positive, got {weight}")
        total += weight
    r = rng.random() * total
    for key, weight in weights:
        r -= weight
        if r <= 0:
            return key
    # Float rounding can leave a sliver above zero.
    return weights[-1][0]


class ActionScheduler:
    """Runs one natural action per random interval while the session is active.

    Every timer the scheduler arms checks the running flag when it fires, so
    ``stop`` takes effect immediately even for timers already in the queue.
    """

    def __init__(
        self,
        engine: Engine,
        config: KeepAliveConfig,
        client_ref: Callable[[], GameClient | None],
        weights: Sequence[tuple[ActionKind, float]] = DEFAULT_WEIGHTS,
    ) -> None:
        self._engine = engine
        self._config = config
        self._client_ref = client_ref
        self._weights = tuple(weights)
        self._running = False
        self._wait: Timer | None = None
        self._pending: list[Timer] = []
        self._profiles: dict[ActionKind, Callable[[GameClient, _random_mod.Random], None]] = {
            ActionKind.LOOK: self._look,
            ActionKind.WALK: self._walk,
            ActionKind.JUMP: self._jump,
            ActionKind.SNEAK: self._sneak,
            ActionKind.SPRINT: self._sprint,
            ActionKind.IDLE_GLANCE: self._idle_glance,
        }
        self.actions_done = 0
        self.last_action: ActionKind | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def next_action_due(self) -> int | None:
        if self._wait is None or not self._wait.active:
            return None
        return self._wait.due_ms

    def start(self) -> None:
        self.stop()
        self._running = True
        self._schedule_next()
        logger.info("action loop started")

    def stop(self) -> None:
        was_running = self._running
        self._running = False
        if self._wait is not None:
            self._wait.cancel()
            self._wait = None
        for timer in self._pending:
            timer.cancel()
        self._pending.clear()
        if was_running:
            client = self._client_ref()
            if client is not None:
                safe_call("clear controls", client.clear_control_states)
            logger.info("action loop stopped")

    def run_once(self) -> ActionKind | None:
        """Execute one action now. Returns the kind run, or None if skipped."""
        client = self._client_ref()
        if client is None or safe_query("position", client.position) is None:
            logger.debug("no position yet; skipping action")
            return None

        rng = self._engine.random
        kind = pick_weighted(self._weights, rng)
        try:
            self._profiles[kind](client, rng)
        except Exception as exc:
            logger.warning("action %s failed: %s", kind.value, exc)
        else:
            logger.info("did action: %s", kind.value)
        self.actions_done += 1
        self.last_action = kind

        if self._config.greetings and rng.random() < self._config.chat_probability:
            text = rng.choice(self._config.greetings)
            lo, hi = GREETING_DELAY_MS
            self._later(rng.randint(lo, hi), lambda: safe_chat(client, text), "greeting")
        return kind

    # --- Loop ---

    def _schedule_next(self) -> None:
        delay = self._engine.random.randint(
            self._config.min_action_delay_ms, self._config.max_action_delay_ms
        )
        self._wait = self._engine.timers.call_later(delay, self._on_wait, "action")

    def _on_wait(self) -> None:
        if not self._running:
            return
        self._pending = [t for t in self._pending if t.active]
        self.run_once()
        if self._running:
            self._schedule_next()

    def _later(self, delay_ms: int, fn: Callable[[], object], name: str) -> None:
        def fire() -> None:
            if self._running:
                fn()

        self._pending.append(self._engine.timers.call_later(delay_ms, fire, name))

    def _release(self, client: GameClient, control: str, delay_ms: int) -> None:
        self._later(
            delay_ms,
            lambda: safe_call(f"release {control}", client.set_control_state, control, False),
            f"release:{control}",
        )

    # --- Execution profiles ---

    def _look(self, client: GameClient, rng: _random_mod.Random) -> None:
        yaw = rng.random() * math.pi * 2
        pitch = (rng.random() - 0.5) * math.pi * 0.6
        client.look(yaw, pitch)

    def _walk(self, client: GameClient, rng: _random_mod.Random) -> None:
        duration = 500 + rng.randint(0, 1600)
        yaw, pitch = client.orientation()
        safe_call("look", client.look, yaw + (rng.random() - 0.5) * 0.9, pitch)
        client.set_control_state("forward", True)
        self._release(client, "forward", duration)
        if rng.random() < 0.5:
            side = rng.choice(("left", "right"))
            client.set_control_state(side, True)
            self._release(client, side, duration // 2)

    def _jump(self, client: GameClient, rng: _random_mod.Random) -> None:
        client.set_control_state("jump", True)
        self._release(client, "jump", JUMP_HOLD_MS)

    def _sneak(self, client: GameClient, rng: _random_mod.Random) -> None:
        client.set_control_state("sneak", True)
        self._release(client, "sneak", 600 + rng.randint(0, 1200))

    def _sprint(self, client: GameClient, rng: _random_mod.Random) -> None:
        duration = 400 + rng.randint(0, 800)
        client.set_control_state("sprint", True)
        client.set_control_state("forward", True)
        self._release(client, "sprint", duration)
        self._release(client, "forward", duration)

    def _idle_glance(self, client: GameClient, rng: _random_mod.Random) -> None:
        delay = 0
        for _ in range(rng.randint(2, 4)):
            delay += rng.randint(200, 900)
            d_yaw = (rng.random() - 0.5) * 0.5
            d_pitch = (rng.random() - 0.5) * 0.2
            self._later(delay, lambda dy=d_yaw, dp=d_pitch: self._nudge(client, dy, dp), "glance")

    def _nudge(self, client: GameClient, d_yaw: float, d_pitch: float) -> None:
        orientation = safe_query("orientation", client.orientation)
        if orientation is None:
            return
        yaw, pitch = orientation
        safe_call("look", client.look, yaw + d_yaw, pitch + d_pitch)
