"""Host-side checks run before an instruction reaches the traced core.

JAX gathers clamp and scatters drop out-of-range indices, so any access that
would leave memory, the register file, the keypad, the stack or the screen
has to be caught here, on concrete values, and reported as fatal.
"""

import numpy as np

from chipvm.constants import (
    MEMORY_SIZE, NUM_KEYS, SCREEN_WIDTH, SCREEN_HEIGHT,
)
from chipvm.decode import decode, is_defined
from chipvm.errors import InvalidOpcodeError, InvariantViolation
from chipvm.stack import is_empty, is_full
from chipvm.state import EmulatorState


def check_fetch(pc: int) -> None:
    if pc < 0 or pc + 1 >= MEMORY_SIZE:
        raise InvariantViolation(f"Program counter 0x{pc:04X} is outside memory")


def check_memory_range(start: int, length: int, what: str) -> None:
    if start < 0 or start + length > MEMORY_SIZE:
        raise InvariantViolation(
            f"{what} accesses memory 0x{start:04X}..0x{start + length - 1:04X}, beyond 0x{MEMORY_SIZE - 1:03X}"
        )


def check_sprite_on_screen(state: EmulatorState, vx: int, vy: int, start: int, height: int) -> None:
    """Reject a draw whose set bits would land outside the 64x32 grid."""
    rows = np.asarray(state.memory[start:start + height], dtype=np.uint8)
    bits = np.unpackbits(rows[:, None], axis=1)  # MSB first
    ys, xs = np.nonzero(bits)
    if xs.size == 0:
        return
    if vx + int(xs.max()) >= SCREEN_WIDTH or vy + int(ys.max()) >= SCREEN_HEIGHT:
        raise InvariantViolation(
            f"Sprite at ({vx}, {vy}) with height {height} leaves the {SCREEN_WIDTH}x{SCREEN_HEIGHT} display"
        )


def validate(state: EmulatorState, instruction: int) -> None:
    """Raise if executing ``instruction`` on ``state`` would be undefined.

    Raises:
        InvalidOpcodeError: the word is not a CHIP-8 instruction.
        InvariantViolation: the instruction would overflow or underflow the
            stack, or touch memory, keys or pixels outside their ranges.
    """
    pc = int(state.pc)
    if not is_defined(instruction):
        raise InvalidOpcodeError(instruction, pc)

    d = decode(instruction)
    index = int(state.I)

    if instruction == 0x00EE and is_empty(state.stack):
        raise InvariantViolation(f"Stack underflow: RET at 0x{pc:03X} with an empty stack")
    if d.opcode == 0x2 and is_full(state.stack):
        raise InvariantViolation(f"Stack overflow: CALL at 0x{pc:03X} exceeds {len(state.stack.data)} frames")
    if d.opcode == 0xD:
        check_memory_range(index, d.n, "DRW")
        if not state.sprite_wrap:
            check_sprite_on_screen(state, int(state.V[d.x]), int(state.V[d.y]), index, d.n)
    if d.opcode == 0xE and int(state.V[d.x]) >= NUM_KEYS:
        raise InvariantViolation(f"Key index V{d.x:X}={int(state.V[d.x])} is not a keypad key")
    if d.opcode == 0xF:
        if d.nn == 0x33:
            check_memory_range(index, 3, "BCD")
        elif d.nn in (0x55, 0x65):
            check_memory_range(index, d.x + 1, "register transfer")
