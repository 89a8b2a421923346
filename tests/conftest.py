"""Test configuration and fixtures for CHIP-8 machine tests."""

import pytest
import jax.numpy as jnp
from chipvm import create_state


@pytest.fixture
def fresh_state():
    """Provide a fresh machine state (sprites wrap) for each test."""
    return create_state()


@pytest.fixture
def strict_state():
    """Provide a fresh state where off-screen sprite pixels are fatal."""
    return create_state(sprite_wrap=False)


class FakeClock:
    """Monotonic nanosecond clock advanced by hand."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, nanoseconds: int):
        self.now += nanoseconds


@pytest.fixture
def clock():
    return FakeClock()


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def rom(*words):
    """Assemble 16-bit instruction words into big-endian ROM bytes."""
    return b"".join(word.to_bytes(2, "big") for word in words)
