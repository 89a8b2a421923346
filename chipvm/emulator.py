"""Pure CHIP-8 fetch/execute engine and ROM loading."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import decode
from chipvm.constants import PROGRAM_START, MAX_ROM_SIZE
from chipvm.errors import RomLoadError
from chipvm.instructions.system import execute_system_instruction
from chipvm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset, execute_skip_if_key
)
from chipvm.instructions.alu import execute_alu_operation
from chipvm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipvm.instructions.display import execute_display
from chipvm.instructions.misc import execute_misc_instruction

# Families that load the program counter themselves: 1NNN, 2NNN, BNNN.
_SETS_PC = jnp.array([0, 1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0, 0], dtype=bool)


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute a single CHIP-8 instruction located at ``state.pc``.

    ``pc`` moves past the instruction before the handler runs unless the
    instruction family sets it directly, so a skip adds two more bytes and a
    return overwrites it. Undefined instruction words are not rejected here;
    ``chipvm.machine.Machine`` validates them on the host first.
    """
    decoded_instruction = decode(instruction)

    state = state.replace(pc=jnp.where(
        _SETS_PC[decoded_instruction.opcode], state.pc, state.pc + 2
    ).astype(jnp.uint16))

    return jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> jnp.uint16:
    """Read the big-endian instruction word at ``pc`` without advancing it."""
    return _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])


def step(state: EmulatorState) -> EmulatorState:
    """Fetch and execute one instruction, without host-side validation."""
    return execute(state, fetch(state))


def load_rom_bytes(state: EmulatorState, rom_data: bytes) -> EmulatorState:
    """Copy a ROM image into memory starting at 0x200."""
    if len(rom_data) > MAX_ROM_SIZE:
        raise RomLoadError(
            f"ROM is {len(rom_data)} bytes, exceeding the maximum ROM size of {MAX_ROM_SIZE} bytes"
        )
    if not rom_data:
        return state
    rom_array = jnp.array(list(rom_data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_data)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load a ROM file into CHIP-8 memory starting at 0x200."""
    try:
        with open(filename, 'rb') as f:
            rom_data = f.read()
    except OSError as e:
        raise RomLoadError(f"Could not open file {filename}: {e.strerror or e}") from e
    try:
        return load_rom_bytes(state, rom_data)
    except RomLoadError as e:
        raise RomLoadError(f'The file "{filename}": {e}') from e
