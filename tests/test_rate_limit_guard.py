"""Rate-limit guard: cooldown arithmetic, auto-clear, override and ticker."""

from __future__ import annotations

import threading

from minara.services.rate_limit_guard import RateLimitGuard
from tests.conftest import FakeClock


def test_blocks_for_the_whole_cooldown(logger, clock):
    guard = RateLimitGuard(logger=logger, clock=clock)
    guard.activate(48)

    check = guard.check_and_maybe_block()
    assert check.blocked
    assert check.remaining_seconds == 48

    clock.advance(47.5)
    check = guard.check_and_maybe_block()
    assert check.blocked
    assert check.remaining_seconds == 1

    clock.advance(0.5)
    assert not guard.check_and_maybe_block().blocked


def test_remaining_rounds_up_and_auto_clears(logger, clock):
    guard = RateLimitGuard(logger=logger, clock=clock)
    guard.activate(10, reason="throttled_generic")
    clock.advance(0.2)
    assert guard.remaining_seconds() == 10
    assert guard.reason == "throttled_generic"

    clock.advance(20)
    assert guard.remaining_seconds() == 0
    # State was dropped, not just reported as zero.
    assert guard.reason is None
    assert not guard.is_active


def test_idle_guard_never_blocks(logger, clock):
    guard = RateLimitGuard(logger=logger, clock=clock)
    check = guard.check_and_maybe_block()
    assert not check.blocked
    assert check.remaining_seconds == 0


def test_clear_is_a_manual_override(logger, clock):
    guard = RateLimitGuard(logger=logger, clock=clock)
    guard.activate(60)
    guard.clear()
    assert not guard.check_and_maybe_block().blocked


def test_reactivation_replaces_previous_cooldown(logger, clock):
    guard = RateLimitGuard(logger=logger, clock=clock)
    guard.activate(60)
    guard.activate(5)
    assert guard.remaining_seconds() == 5


def test_ticker_counts_down_and_stops_at_zero(logger):
    clock = FakeClock()
    guard = RateLimitGuard(logger=logger, clock=clock)
    guard.activate(3)

    ticks: list[int] = []
    done = threading.Event()

    def on_tick(remaining: int) -> None:
        ticks.append(remaining)
        clock.advance(1)
        if remaining == 0:
            done.set()

    guard.start_ticker(on_tick, interval=0.001)
    assert done.wait(timeout=5)
    guard.stop_ticker()

    assert ticks == [3, 2, 1, 0]
    assert not guard.is_active


def test_stop_ticker_halts_reporting(logger, clock):
    guard = RateLimitGuard(logger=logger, clock=clock)
    guard.activate(60)
    first_tick = threading.Event()

    guard.start_ticker(lambda remaining: first_tick.set(), interval=30)
    assert first_tick.wait(timeout=5)
    guard.stop_ticker()

    assert not guard.ticker_running
    # Stopping twice is harmless.
    guard.stop_ticker()
