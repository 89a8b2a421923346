"""CHIP-8 ALU operations (8xxx).

Each operation maps ``(vx, vy, vf)`` to ``(result, vf)``. For the arithmetic
and shift operations the flag is written after the result, so when X is F
the register ends up holding the flag.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction


def alu_set(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY0 - Set: VX = VY."""
    return vy, vf


def alu_or(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, vf


def alu_and(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, vf


def alu_xor(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, vf


def alu_add(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, VF = carry."""
    result = jnp.astype(vx, jnp.int32) + vy
    carry = jnp.astype(result > 255, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, VF = NOT borrow."""
    not_borrow = jnp.astype(vx >= vy, jnp.uint8)
    return (vx - vy) & 0xFF, not_borrow


def alu_shift_right(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, VF = NOT borrow."""
    not_borrow = jnp.astype(vy >= vx, jnp.uint8)
    return (vy - vx) & 0xFF, not_borrow


def alu_shift_left(vx: int, vy: int, vf: int) -> tuple[int, int]:
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out."""
    return (vx << 1) & 0xFF, (vx & 0x80) >> 7


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher.

    Undefined N values are rejected before execution; here they leave the
    registers untouched so the traced switch stays total.
    """
    vx = state.V[instruction.x]
    vy = state.V[instruction.y]
    vf = state.V[15]

    valid_ops = jnp.array([1, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 1, 0], dtype=bool)

    result, flag = jax.lax.cond(
        valid_ops[instruction.n],
        lambda: jax.lax.switch(
            # 0..7 map to themselves, E maps to 8
            jnp.where(instruction.n == 14, 8, instruction.n),
            [alu_set, alu_or, alu_and, alu_xor, alu_add,
             alu_sub_xy, alu_shift_right, alu_sub_yx, alu_shift_left],
            vx, vy, vf
        ),
        lambda: (vx, vf)
    )

    # 8XY0..8XY3 never touch VF, even when VF is the destination.
    sets_flag = instruction.n >= 4
    new_V = state.V.at[instruction.x].set(result)
    new_V = jnp.where(sets_flag, new_V.at[15].set(flag), new_V)
    return state.replace(V=new_V)
