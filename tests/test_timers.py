"""Tests for the 60 Hz delay and sound timers."""

import time

import pytest

from chipvm.constants import TIMER_TICK_NS, TIMER_HALF_TICK_NS
from chipvm.errors import InvariantViolation
from chipvm.timers import AtomicCounter, InlineTimers, ThreadedTimers, create_timers


class TestAtomicCounter:

    def test_set_returns_previous(self):
        counter = AtomicCounter(7)
        assert counter.set(3) == 7
        assert counter.value == 3

    def test_decrement_clamps_at_zero(self):
        counter = AtomicCounter(2)
        assert counter.decrement(5) == 0
        assert counter.decrement() == 0

    def test_values_are_bytes(self):
        counter = AtomicCounter()
        counter.set(0x1FF)
        assert counter.value == 0xFF


class TestInlineTimers:
    """Catch-up decrementing driven by a fake clock."""

    @pytest.fixture
    def timers(self, clock):
        return InlineTimers(clock=clock)

    def test_starts_idle(self, timers):
        assert timers.delay == 0 and timers.sound == 0
        assert not timers.delay_active and not timers.sound_active

    def test_whole_ticks(self, timers, clock):
        timers.set_delay(60)
        clock.advance(3 * TIMER_TICK_NS)
        timers.update()
        assert timers.delay == 57

    def test_rounds_to_nearest_tick(self, timers, clock):
        timers.set_sound(10)
        clock.advance(TIMER_HALF_TICK_NS - 1)
        timers.update()
        assert timers.sound == 10

        clock.advance(1)
        timers.update()
        assert timers.sound == 9

    def test_fast_updates_accumulate(self, timers, clock):
        """Updates closer together than a tick are not lost."""
        timers.set_delay(10)
        for _ in range(4):
            clock.advance(TIMER_TICK_NS // 4)
            timers.update()
        assert timers.delay == 9

    def test_clamps_and_deactivates(self, timers, clock):
        timers.set_delay(2)
        timers.set_sound(2)
        clock.advance(100 * TIMER_TICK_NS)
        timers.update()
        assert timers.delay == 0 and timers.sound == 0
        assert not timers.delay_active and not timers.sound_active

    def test_never_increases(self, timers, clock):
        timers.set_delay(30)
        previous = timers.delay
        for _ in range(50):
            clock.advance(TIMER_TICK_NS // 3)
            timers.update()
            assert timers.delay <= previous
            previous = timers.delay

    def test_setting_zero_stays_idle(self, timers):
        timers.set_sound(0)
        assert not timers.sound_active

    def test_reload_while_active_keeps_baseline(self, timers, clock):
        timers.set_delay(20)
        clock.advance(TIMER_TICK_NS)
        timers.update()
        clock.advance(10_000_000)
        timers.set_delay(20)
        clock.advance(TIMER_TICK_NS - 10_000_000)
        timers.update()
        assert timers.delay == 19

    def test_timers_are_independent(self, timers, clock):
        timers.set_delay(5)
        clock.advance(2 * TIMER_TICK_NS)
        timers.set_sound(5)
        clock.advance(2 * TIMER_TICK_NS)
        timers.update()
        assert timers.delay == 1
        assert timers.sound == 3


class TestThreadedTimers:
    """Background thread lifecycle."""

    def test_ticks_without_updates(self):
        timers = ThreadedTimers(period=0.001)
        timers.set_delay(5)
        timers.start()
        try:
            deadline = time.monotonic() + 2.0
            while timers.delay > 0 and time.monotonic() < deadline:
                time.sleep(0.005)
        finally:
            timers.stop()
        assert timers.delay == 0
        assert not timers.delay_active
        assert not timers.running

    def test_manual_tick(self):
        timers = ThreadedTimers()
        timers.set_delay(2)
        timers.set_sound(1)
        timers.tick()
        assert timers.delay == 1
        assert timers.sound == 0
        assert timers.delay_active and not timers.sound_active

    def test_reload_after_expiry_reactivates(self):
        timers = ThreadedTimers()
        timers.set_delay(1)
        timers.tick()
        assert not timers.delay_active

        timers.set_delay(3)

        assert timers.delay_active
        assert timers.delay == 3

    def test_running_counter_is_always_active(self):
        """Reloads racing the timer thread never leave a running counter inactive."""
        timers = ThreadedTimers(period=0.0001)
        timers.start()
        try:
            for _ in range(2000):
                timers.set_delay(1)
                timers.set_sound(1)
        finally:
            timers.stop()
        if timers.delay > 0:
            assert timers.delay_active
        if timers.sound > 0:
            assert timers.sound_active

    def test_start_only_once(self):
        timers = ThreadedTimers(period=0.001)
        with timers:
            assert timers.running
            with pytest.raises(InvariantViolation):
                timers.start()
        assert not timers.running

    def test_stop_is_idempotent(self):
        timers = ThreadedTimers(period=0.001)
        timers.stop()
        timers.start()
        timers.stop()
        timers.stop()
        assert not timers.running


class TestCreateTimers:

    def test_modes(self, clock):
        assert isinstance(create_timers("inline", clock=clock), InlineTimers)
        assert isinstance(create_timers("threaded"), ThreadedTimers)

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            create_timers("hourglass")
