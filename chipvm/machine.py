"""Host-side instruction dispatcher.

``Machine`` owns the current ``EmulatorState`` and a timer subsystem and
exposes the ``step()`` the driver loop calls. Each step syncs the timer
counters into the state, fetches the instruction, validates it against the
machine invariants, runs the jitted pure ``execute`` and hands timer writes
back to the timer subsystem.
"""

from typing import Optional, Sequence

import jax
import jax.numpy as jnp
import numpy as np

from chipvm.debug import format_instruction, format_registers
from chipvm.emulator import execute, fetch, load_rom, load_rom_bytes
from chipvm.invariants import check_fetch, validate
from chipvm.logging import ConsoleLogger, logger as default_logger
from chipvm.state import EmulatorState, create_state
from chipvm.timers import InlineTimers, Timers

SET_DELAY_TIMER = 0xF015
SET_SOUND_TIMER = 0xF018


class Machine:
    """A CHIP-8 machine driven one instruction at a time."""

    def __init__(
        self,
        state: Optional[EmulatorState] = None,
        timers: Optional[Timers] = None,
        sprite_wrap: bool = True,
        seed: int = 0,
        trace: bool = False,
        dump_registers: bool = False,
        logger: Optional[ConsoleLogger] = None,
    ):
        if state is None:
            state = create_state(jax.random.PRNGKey(seed), sprite_wrap=sprite_wrap)
        self.state = state
        self.timers = timers if timers is not None else InlineTimers()
        self.trace = trace
        self.dump_registers = dump_registers
        self.logger = logger if logger is not None else default_logger
        self.cycles = 0
        self._execute = jax.jit(execute)
        self._fetch = jax.jit(fetch)

    def load(self, rom_data: bytes) -> None:
        self.state = load_rom_bytes(self.state, rom_data)

    def load_file(self, filename: str) -> None:
        self.state = load_rom(self.state, filename)

    @property
    def pc(self) -> int:
        return int(self.state.pc)

    @property
    def display(self) -> np.ndarray:
        """Current (64, 32) frame as a host array."""
        return np.asarray(self.state.display)

    @property
    def draw_pending(self) -> bool:
        return bool(self.state.draw_pending)

    @property
    def waiting_for_key(self) -> bool:
        return bool(self.state.waiting_for_key)

    def acknowledge_draw(self) -> None:
        """Mark the current frame as rendered."""
        self.state = self.state.replace(draw_pending=jnp.zeros((), dtype=jnp.bool_))

    def set_keys(self, keys: Sequence[bool]) -> None:
        """Replace the keypad snapshot with 16 pressed/not-pressed flags."""
        self.state = self.state.replace(keypad=jnp.asarray(keys, dtype=jnp.bool_).reshape(16))

    def update_timers(self) -> None:
        self.timers.update()

    def step(self) -> int:
        """Execute the instruction at ``pc`` and return its raw word.

        Raises:
            InvalidOpcodeError: the fetched word is not a CHIP-8 instruction.
            InvariantViolation: the instruction would leave memory, the
                stack, the keypad or the screen.
        """
        state = self.state.replace(
            delay_timer=jnp.asarray(self.timers.delay, dtype=jnp.uint8),
            sound_timer=jnp.asarray(self.timers.sound, dtype=jnp.uint8),
        )
        pc = int(state.pc)
        check_fetch(pc)
        instruction = int(self._fetch(state))
        validate(state, instruction)

        if self.trace:
            self.logger.debug(format_instruction(pc, instruction))

        state = self._execute(state, instruction)

        masked = instruction & 0xF0FF
        if masked == SET_DELAY_TIMER:
            self.timers.set_delay(int(state.delay_timer))
        elif masked == SET_SOUND_TIMER:
            self.timers.set_sound(int(state.sound_timer))

        self.state = state
        self.cycles += 1

        if self.dump_registers:
            for line in format_registers(state):
                self.logger.debug(line)
        return instruction
