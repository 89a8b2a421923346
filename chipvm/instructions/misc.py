"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.constants import ADDRESS_MASK, FONT_START, FONT_GLYPH_SIZE, NUM_KEYS, NUM_REGISTERS
from chipvm.instructions.system import no_op


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I, VF = 1 when the sum leaves the 12-bit address space."""
    new_i = jnp.astype(state.I, jnp.int32) + state.V[instruction.x]
    overflow_flag = jnp.astype(new_i > ADDRESS_MASK, jnp.uint8)
    return state.replace(
        I=jnp.astype(new_i & ADDRESS_MASK, jnp.uint16),
        V=state.V.at[15].set(overflow_flag)
    )


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    With several keys down the highest index is stored. Without a pressed
    key the program counter is moved back onto this instruction, so the next
    step executes it again.
    """
    def key_pressed_action(state):
        pressed_key = NUM_KEYS - 1 - jnp.argmax(state.keypad[::-1])
        return state.replace(
            V=state.V.at[instruction.x].set(jnp.astype(pressed_key, jnp.uint8)),
            waiting_for_key=jnp.zeros((), dtype=jnp.bool_),
        )

    def wait_action(state):
        return state.replace(
            pc=state.pc - 2,
            waiting_for_key=jnp.ones((), dtype=jnp.bool_),
        )

    return jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to the font glyph for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.uint16) * FONT_GLYPH_SIZE
    return state.replace(I=jnp.astype(font_address, jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + state.I
    return state.replace(memory=state.memory.at[indices].set(digits))


def _register_window(state: EmulatorState, instruction: DecodedInstruction) -> tuple[jnp.ndarray, jnp.ndarray]:
    # Registers past X alias onto VX so every address stays within I..I+X.
    registers = jnp.minimum(jnp.arange(NUM_REGISTERS), instruction.x)
    return registers, state.I + registers


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I, then I += X + 1."""
    registers, addresses = _register_window(state, instruction)
    return state.replace(
        memory=state.memory.at[addresses].set(state.V[registers]),
        I=jnp.astype(state.I + instruction.x + 1, jnp.uint16),
    )


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I, then I += X + 1."""
    registers, addresses = _register_window(state, instruction)
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    return state.replace(
        V=jnp.where(register_mask, state.memory[addresses], state.V),
        I=jnp.astype(state.I + instruction.x + 1, jnp.uint16),
    )


_MISC_HANDLERS = (
    (0x07, execute_get_delay_timer),
    (0x0A, execute_wait_for_key),
    (0x15, execute_set_delay_timer),
    (0x18, execute_set_sound_timer),
    (0x1E, execute_add_to_index),
    (0x29, execute_font_character),
    (0x33, execute_bcd_conversion),
    (0x55, execute_store_registers),
    (0x65, execute_load_registers),
)

# Low byte -> branch index; unknown bytes fall through to the trailing no-op.
_MISC_BRANCH = jnp.full(256, len(_MISC_HANDLERS), dtype=jnp.int32).at[
    jnp.array([nn for nn, _ in _MISC_HANDLERS])
].set(jnp.arange(len(_MISC_HANDLERS), dtype=jnp.int32))


def execute_misc_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FXNN - dispatch on the low byte."""
    return jax.lax.switch(
        _MISC_BRANCH[instruction.nn],
        [handler for _, handler in _MISC_HANDLERS] + [no_op],
        state, instruction
    )
