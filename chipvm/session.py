"""Driver loop tying a machine to its display, input and audio collaborators."""

import time
from typing import Callable, Optional

from chipvm.logging import ConsoleLogger, logger as default_logger
from chipvm.machine import Machine
from chipvm.surfaces import (
    AudioSurface, DisplaySurface, InputSource, NullAudio, NullDisplay, NullInput,
    PAUSE, RESUME, STEP, TRACE_ON, TRACE_OFF, DUMP_ON, DUMP_OFF,
)


class Session:
    """Runs a machine at a fixed cycle rate until the input source asks to quit.

    One iteration polls the keypad, advances the timers, executes one
    instruction, renders if the display changed, and switches the buzzer on
    or off when the sound timer crosses zero. Debugger commands from the
    input source can pause the machine, single-step it and switch tracing
    or register dumps on and off. Whatever ends the loop, the
    display is cleared, the buzzer silenced and the timers stopped before
    control returns to the caller.
    """

    def __init__(
        self,
        machine: Machine,
        display: Optional[DisplaySurface] = None,
        input_source: Optional[InputSource] = None,
        audio: Optional[AudioSurface] = None,
        cycle_ns: int = 0,
        logger: Optional[ConsoleLogger] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], int] = time.perf_counter_ns,
    ):
        self.machine = machine
        self.display = display if display is not None else NullDisplay()
        self.input_source = input_source if input_source is not None else NullInput()
        self.audio = audio if audio is not None else NullAudio()
        self.cycle_ns = cycle_ns
        self.logger = logger if logger is not None else default_logger
        self.sleep = sleep
        self.clock = clock
        self.sound_on = False
        self.paused = False

    def iterate(self) -> None:
        """Run a single driver iteration, without pacing.

        While paused the machine only executes when a step command arrives,
        and the frame is redrawn after every such step.
        """
        machine = self.machine
        machine.set_keys(self.input_source.poll())
        stepping = self._apply_commands(self.input_source.commands())
        machine.update_timers()

        if self.paused and not stepping:
            self._update_sound()
            return

        machine.step()

        if machine.draw_pending or stepping:
            self.display.render(machine.display)
            machine.acknowledge_draw()

        self._update_sound()

    def _apply_commands(self, commands: set[str]) -> bool:
        """Apply debugger commands; return whether one paused step should run."""
        machine = self.machine
        if PAUSE in commands and not self.paused:
            self.paused = True
            self.logger.info("Debug Mode ON.")
        if RESUME in commands and self.paused:
            self.paused = False
            self.logger.info("Debug Mode OFF.")
        if TRACE_ON in commands and not machine.trace:
            machine.trace = True
            self._enable_debug_output()
            self.logger.info("Print-Instruction Mode ON.")
        if TRACE_OFF in commands and machine.trace:
            machine.trace = False
            self.logger.info("Print-Instruction Mode OFF.")
        if DUMP_ON in commands and not machine.dump_registers:
            machine.dump_registers = True
            self._enable_debug_output()
            self.logger.info("Register-Dump Mode ON.")
        if DUMP_OFF in commands and machine.dump_registers:
            machine.dump_registers = False
            self.logger.info("Register-Dump Mode OFF.")
        return self.paused and STEP in commands

    def _enable_debug_output(self) -> None:
        # Trace lines and register dumps are logged at DEBUG.
        if not self.machine.logger.is_enabled_for("DEBUG"):
            self.machine.logger.set_level("DEBUG")

    def _update_sound(self) -> None:
        sounding = self.machine.timers.sound > 0
        if sounding and not self.sound_on:
            self.audio.start_sound()
            self.sound_on = True
        elif not sounding and self.sound_on:
            self.audio.stop_sound()
            self.sound_on = False

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Drive the machine, returning the number of driver iterations.

        Raises:
            Chip8Error: propagated after teardown when the ROM hits an
                invalid opcode or breaks a machine invariant.
        """
        timers = self.machine.timers
        timers.start()
        self.logger.info(f"Session started ({self.cycle_ns} ns per cycle)")
        cycles = 0
        try:
            while not self.input_source.quit_requested:
                if max_cycles is not None and cycles >= max_cycles:
                    break
                started = self.clock()
                self.iterate()
                cycles += 1
                remaining = self.cycle_ns - (self.clock() - started)
                if remaining > 0:
                    self.sleep(remaining / 1e9)
        finally:
            try:
                self.teardown()
            finally:
                timers.stop()
        self.logger.info(f"Session ended after {cycles} cycles")
        return cycles

    def teardown(self) -> None:
        """Blank the screen, close it and silence the buzzer."""
        try:
            try:
                self.display.clear()
            finally:
                self.display.close()
        finally:
            self.audio.stop_sound()
            self.sound_on = False
