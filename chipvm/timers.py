"""60 Hz delay and sound timers, decoupled from the instruction rate.

Two interchangeable implementations share one interface:

* ``InlineTimers`` catches up on every ``update()`` call from the driver
  loop, converting elapsed wall-clock time into whole ticks.
* ``ThreadedTimers`` runs a background thread that ticks every 16 ms.

In both, the counters are ``AtomicCounter`` instances, and every change to an
active flag happens under one lock together with its counter update. The
timer side is the only decrementer; the dispatcher is the only setter (FX15/FX18) and
the only reader (FX07).
"""

import threading
import time
from typing import Callable, Optional

from chipvm.constants import TIMER_TICK_NS, TIMER_HALF_TICK_NS, TIMER_THREAD_PERIOD
from chipvm.errors import InvariantViolation


class AtomicCounter:
    """Lock-guarded 8-bit counter that never goes below zero."""

    def __init__(self, value: int = 0):
        self._lock = threading.Lock()
        self._value = value & 0xFF

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def set(self, value: int) -> int:
        """Overwrite the counter, returning the previous value."""
        with self._lock:
            previous, self._value = self._value, value & 0xFF
            return previous

    def decrement(self, ticks: int = 1) -> int:
        """Subtract ``ticks`` clamped at zero, returning the new value."""
        with self._lock:
            self._value = max(0, self._value - ticks)
            return self._value


class Timers:
    """Common bookkeeping for the delay and sound counters."""

    def __init__(self, clock: Callable[[], int] = time.monotonic_ns):
        self.clock = clock
        self._delay = AtomicCounter()
        self._sound = AtomicCounter()
        # Guards the active flags together with their counters.
        self._flag_lock = threading.Lock()
        self.delay_active = False
        self.sound_active = False

    @property
    def delay(self) -> int:
        return self._delay.value

    @property
    def sound(self) -> int:
        return self._sound.value

    def set_delay(self, value: int) -> None:
        """FX15 - load the delay timer, starting a new countdown if it was idle."""
        with self._flag_lock:
            self._delay.set(value)
            if value and not self.delay_active:
                self.delay_active = True
                self._activate_delay()

    def set_sound(self, value: int) -> None:
        """FX18 - load the sound timer, starting a new countdown if it was idle."""
        with self._flag_lock:
            self._sound.set(value)
            if value and not self.sound_active:
                self.sound_active = True
                self._activate_sound()

    def _activate_delay(self) -> None:
        pass

    def _activate_sound(self) -> None:
        pass

    def start(self) -> None:
        pass

    def update(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.stop()


class InlineTimers(Timers):
    """Catch-up timers advanced from the driver loop.

    Each active counter remembers the wall-clock instant of its last tick.
    ``update`` rounds the elapsed time to the nearest whole tick, subtracts
    that many ticks and moves the baseline forward only when a tick was
    consumed, so calls faster than 60 Hz accumulate instead of being lost.
    """

    def __init__(self, clock: Callable[[], int] = time.monotonic_ns):
        super().__init__(clock)
        self._delay_baseline = 0
        self._sound_baseline = 0

    def _activate_delay(self) -> None:
        self._delay_baseline = self.clock()

    def _activate_sound(self) -> None:
        self._sound_baseline = self.clock()

    @staticmethod
    def _elapsed_ticks(now: int, baseline: int) -> int:
        return (now - baseline + TIMER_HALF_TICK_NS) // TIMER_TICK_NS

    def update(self) -> None:
        now = self.clock()
        with self._flag_lock:
            if self._delay.value > 0:
                ticks = self._elapsed_ticks(now, self._delay_baseline)
                if ticks > 0:
                    self._delay.decrement(ticks)
                    self._delay_baseline = now
            if self._delay.value == 0:
                self.delay_active = False

            if self._sound.value > 0:
                ticks = self._elapsed_ticks(now, self._sound_baseline)
                if ticks > 0:
                    self._sound.decrement(ticks)
                    self._sound_baseline = now
            if self._sound.value == 0:
                self.sound_active = False


class ThreadedTimers(Timers):
    """Background thread decrementing both counters every 16 ms.

    ``start`` and ``stop`` may each be called once; ``stop`` joins the thread.
    """

    def __init__(self, period: float = TIMER_THREAD_PERIOD, clock: Callable[[], int] = time.monotonic_ns):
        super().__init__(clock)
        self.period = period
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise InvariantViolation("Timer thread can only be started once")
        self._thread = threading.Thread(target=self._run, name="chipvm-timers", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop_event.wait(self.period):
            self.tick()

    def tick(self) -> None:
        """Decrement each non-zero counter by one."""
        with self._flag_lock:
            if self._delay.decrement() == 0:
                self.delay_active = False
            if self._sound.decrement() == 0:
                self.sound_active = False

    def stop(self) -> None:
        if self._thread is None or self._stop_event.is_set():
            return
        self._stop_event.set()
        self._thread.join()


def create_timers(mode: str = "inline", **kwargs) -> Timers:
    """Build the timer subsystem for ``mode`` ("inline" or "threaded")."""
    if mode == "inline":
        return InlineTimers(**kwargs)
    if mode == "threaded":
        return ThreadedTimers(**kwargs)
    raise ValueError(f"Unknown timer mode '{mode}'. Available: ['inline', 'threaded']")
