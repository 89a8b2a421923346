"""Collaborator contracts between the machine and its host.

The core never talks to a window, a keyboard or a sound device directly.
A session is handed one object per role; the null versions below keep the
machine runnable headless.
"""

from typing import Sequence

import numpy as np

from chipvm.constants import NUM_KEYS, SCREEN_WIDTH, SCREEN_HEIGHT

# Pause execution, resume it, and run one instruction while paused.
PAUSE, RESUME, STEP = "pause", "resume", "step"
# Switch instruction tracing and register dumps on or off at run time.
TRACE_ON, TRACE_OFF = "trace_on", "trace_off"
DUMP_ON, DUMP_OFF = "dump_on", "dump_off"

DEBUG_COMMANDS = frozenset({PAUSE, RESUME, STEP, TRACE_ON, TRACE_OFF, DUMP_ON, DUMP_OFF})


class DisplaySurface:
    """Presents the 64x32 display buffer."""

    def render(self, display: np.ndarray) -> None:
        """Show a (64, 32) boolean frame indexed ``[x, y]``."""
        raise NotImplementedError

    def clear(self) -> None:
        self.render(np.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=np.bool_))

    def close(self) -> None:
        pass


class InputSource:
    """Supplies the keypad snapshot once per driver iteration."""

    quit_requested: bool = False

    def poll(self) -> Sequence[bool]:
        """Return 16 pressed/not-pressed flags for keys 0x0..0xF."""
        raise NotImplementedError

    def commands(self) -> set[str]:
        """Debugger commands issued since the last call, drawn from ``DEBUG_COMMANDS``."""
        return set()


class AudioSurface:
    """Plays the buzzer while the sound timer is non-zero."""

    def start_sound(self) -> None:
        raise NotImplementedError

    def stop_sound(self) -> None:
        raise NotImplementedError


class NullDisplay(DisplaySurface):
    """Keeps the last rendered frame and a render count."""

    def __init__(self):
        self.frame = np.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=np.bool_)
        self.render_count = 0

    def render(self, display: np.ndarray) -> None:
        self.frame = np.array(display, dtype=np.bool_)
        self.render_count += 1


class NullInput(InputSource):
    """No keys are ever pressed."""

    def poll(self) -> Sequence[bool]:
        return [False] * NUM_KEYS


class NullAudio(AudioSurface):
    """Tracks whether the buzzer would be sounding."""

    def __init__(self):
        self.playing = False

    def start_sound(self) -> None:
        self.playing = True

    def stop_sound(self) -> None:
        self.playing = False
