"""pygame window, keyboard and buzzer for interactive sessions."""

import numpy as np
import pygame

from chipvm.constants import NUM_KEYS, SCREEN_WIDTH, SCREEN_HEIGHT
from chipvm.logging import logger
from chipvm.rendering import chip8_display_to_rgb, create_color_scheme
from chipvm.surfaces import (
    AudioSurface, DisplaySurface, InputSource,
    PAUSE, RESUME, STEP, TRACE_ON, TRACE_OFF, DUMP_ON, DUMP_OFF,
)

# Four rows of the host keyboard map onto keys 0x0..0xF in order.
KEY_MAP = {
    pygame.K_1: 0x0, pygame.K_2: 0x1, pygame.K_3: 0x2, pygame.K_4: 0x3,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0x7,
    pygame.K_a: 0x8, pygame.K_s: 0x9, pygame.K_d: 0xA, pygame.K_f: 0xB,
    pygame.K_z: 0xC, pygame.K_x: 0xD, pygame.K_c: 0xE, pygame.K_v: 0xF,
}

# Debugger keys sit outside the keypad block.
DEBUG_KEYS = {
    pygame.K_b: PAUSE, pygame.K_g: RESUME, pygame.K_n: STEP,
    pygame.K_p: TRACE_ON, pygame.K_l: TRACE_OFF,
    pygame.K_o: DUMP_ON, pygame.K_k: DUMP_OFF,
}

SAMPLE_RATE = 44100
BEEP_FREQUENCY = 500


class PygameDisplay(DisplaySurface):
    """Scaled window showing the display buffer."""

    def __init__(self, scale: int = 16, color_scheme: str = "classic", title: str = "Chip 8 Emulator"):
        pygame.display.init()
        self.scale = scale
        self.on_color, self.off_color = create_color_scheme(color_scheme)
        self.screen = pygame.display.set_mode((SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale))
        pygame.display.set_caption(title)

    def render(self, display: np.ndarray) -> None:
        frame = chip8_display_to_rgb(display, self.scale, self.on_color, self.off_color)
        # surfarray is indexed [x, y]
        pygame.surfarray.blit_array(self.screen, frame.swapaxes(0, 1))
        pygame.display.flip()

    def close(self) -> None:
        pygame.display.quit()


class PygameKeyboard(InputSource):
    """Keypad snapshot from the host keyboard; Escape or closing the window quits.

    Presses of the ``DEBUG_KEYS`` are queued as debugger commands until the
    session collects them.
    """

    def __init__(self, key_map: dict = None, debug_keys: dict = None):
        self.key_map = KEY_MAP if key_map is None else key_map
        self.debug_keys = DEBUG_KEYS if debug_keys is None else debug_keys
        self.quit_requested = False
        self.pending_commands: set[str] = set()

    def poll(self) -> list[bool]:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.quit_requested = True
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                self.quit_requested = True
            elif event.type == pygame.KEYDOWN and event.key in self.debug_keys:
                self.pending_commands.add(self.debug_keys[event.key])

        pressed = pygame.key.get_pressed()
        keys = [False] * NUM_KEYS
        for host_key, chip_key in self.key_map.items():
            if pressed[host_key]:
                keys[chip_key] = True
        return keys

    def commands(self) -> set[str]:
        commands, self.pending_commands = self.pending_commands, set()
        return commands


def square_wave(frequency: int = BEEP_FREQUENCY, sample_rate: int = SAMPLE_RATE, volume: float = 0.25) -> np.ndarray:
    """One period-aligned second of a 16-bit stereo square wave."""
    t = np.arange(sample_rate) / sample_rate
    mono = np.where(np.sin(2 * np.pi * frequency * t) >= 0, 1.0, -1.0) * volume * 32767
    return np.repeat(mono.astype(np.int16)[:, None], 2, axis=1)


class PygameBuzzer(AudioSurface):
    """Loops a square-wave beep while the sound timer runs."""

    def __init__(self):
        self.sound = None
        try:
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=2)
        except pygame.error as e:
            logger.warning(f"Audio unavailable, running silent: {e}")
            return
        self.sound = pygame.sndarray.make_sound(square_wave())

    def start_sound(self) -> None:
        if self.sound is not None:
            self.sound.play(loops=-1)

    def stop_sound(self) -> None:
        if self.sound is not None:
            self.sound.stop()
