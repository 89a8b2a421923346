"""CHIP-8 virtual machine package."""

from chipvm.state import EmulatorState, StackState, create_state
from chipvm.emulator import execute, fetch, step, load_rom, load_rom_bytes
from chipvm.decode import DecodedInstruction, decode, disassemble, is_defined
from chipvm.constants import *
from chipvm.errors import (
    Chip8Error, UsageError, RomLoadError, InvalidOpcodeError, InvariantViolation,
)
from chipvm.timers import AtomicCounter, InlineTimers, ThreadedTimers, create_timers
from chipvm.machine import Machine
from chipvm.session import Session

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "load_rom",
    "load_rom_bytes",
    "DecodedInstruction",
    "decode",
    "disassemble",
    "is_defined",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "Chip8Error",
    "UsageError",
    "RomLoadError",
    "InvalidOpcodeError",
    "InvariantViolation",
    "AtomicCounter",
    "InlineTimers",
    "ThreadedTimers",
    "create_timers",
    "Machine",
    "Session",
]
