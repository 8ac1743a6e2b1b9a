"""Tests for clock advancement and TickContext generation."""

import random

import pytest
from tick_keepalive.clock import Clock
from tick_keepalive.types import TickContext

_test_rng = random.Random(0)


def test_clock_initialization():
    """Clock starts at tick 0, time 0, with dt derived from tps."""
    clock = Clock(tps=20)
    assert clock.tps == 20
    assert clock.tick_number == 0
    assert clock.now_ms == 0
    assert clock.dt_ms == 50


def test_invalid_tps_rejected():
    with pytest.raises(ValueError):
        Clock(tps=0)
    with pytest.raises(ValueError):
        Clock(tps=-5)


def test_advance_increments_tick_number():
    clock = Clock(tps=20)
    assert clock.advance() == 1
    assert clock.advance() == 2
    assert clock.tick_number == 2


def test_set_time_never_moves_backwards():
    """set_time only moves forward; earlier values are ignored."""
    clock = Clock(tps=20)
    clock.set_time(500)
    assert clock.now_ms == 500
    clock.set_time(200)
    assert clock.now_ms == 500


def test_context_reflects_clock_state():
    clock = Clock(tps=10)
    clock.advance()
    clock.set_time(1234)
    stop_calls = []
    ctx = clock.context(lambda: stop_calls.append(True), _test_rng)

    assert isinstance(ctx, TickContext)
    assert ctx.tick_number == 1
    assert ctx.now_ms == 1234
    assert ctx.dt_ms == 100
    assert ctx.random is _test_rng
    ctx.request_stop()
    assert stop_calls == [True]

