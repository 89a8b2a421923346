"""Error types raised by the CHIP-8 virtual machine."""


class Chip8Error(Exception):
    """Base class for all fatal CHIP-8 errors."""


class UsageError(Chip8Error):
    """Bad command-line arguments."""


class RomLoadError(Chip8Error):
    """ROM file missing, unreadable or too large."""


class InvalidOpcodeError(Chip8Error):
    """Fetched instruction word matches no defined CHIP-8 instruction."""

    def __init__(self, opcode: int, pc: int):
        self.opcode = opcode
        self.pc = pc
        super().__init__(f"Unknown opcode 0x{opcode:04X} at 0x{pc:03X}")


class InvariantViolation(Chip8Error):
    """Stack overflow/underflow or an out-of-range memory, register or pixel access."""
