"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipvm.state import EmulatorState
from chipvm.decode import DecodedInstruction
from chipvm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def sprite_mask(state: EmulatorState, instruction: DecodedInstruction) -> jnp.ndarray:
    """Per-pixel (64, 32) mask of the sprite bits DXYN would flip."""
    vx = jnp.astype(state.V[instruction.x], jnp.int32)
    vy = jnp.astype(state.V[instruction.y], jnp.int32)

    if state.sprite_wrap:
        col_offset = (xx - vx) % SCREEN_WIDTH
        row_offset = (yy - vy) % SCREEN_HEIGHT
        in_sprite = (col_offset < SPRITE_WIDTH) & (row_offset < instruction.n)
    else:
        col_offset = xx - vx
        row_offset = yy - vy
        in_sprite = (col_offset >= 0) & (col_offset < SPRITE_WIDTH) & (row_offset >= 0) & (row_offset < instruction.n)

    row_offset = jnp.where(in_sprite, row_offset, 0)
    shift = jnp.where(in_sprite, (SPRITE_WIDTH - 1) - col_offset, 0)
    sprite_bytes = state.memory[state.I + row_offset]
    return jnp.astype((sprite_bytes >> shift) & 1, jnp.bool_) & in_sprite


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - XOR an N-row sprite from memory[I] onto the display at (VX, VY).

    VF is set to 1 when any lit pixel is switched off, 0 otherwise.
    """
    sprite = sprite_mask(state, instruction)
    collision = jnp.any(state.display & sprite)

    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[15].set(jnp.astype(collision, jnp.uint8)),
        draw_pending=jnp.ones((), dtype=jnp.bool_),
    )
