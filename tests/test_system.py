"""Tests for system instructions (0xxx)."""

import jax.numpy as jnp
from chipvm import execute, load_rom_bytes, step


def test_execute_clear_screen(fresh_state):
    """Test 00E0 - Clear display."""
    state = fresh_state.replace(display=fresh_state.display.at[0, 0].set(True).at[63, 31].set(True))

    state = execute(state, 0x00E0)

    assert jnp.sum(state.display) == 0
    assert state.draw_pending
    assert state.pc == 0x202


def test_execute_call_and_return(fresh_state):
    """Test 2NNN (call) and 00EE (return) together."""
    state = fresh_state
    initial_pc = state.pc

    # Call subroutine
    state = execute(state, 0x2300)  # Call 0x300
    assert state.pc == 0x300
    assert state.stack.pointer == 1
    assert state.stack.data[0] == initial_pc

    # Return from subroutine
    state = execute(state, 0x00EE)  # Return
    assert state.pc == initial_pc + 2
    assert state.stack.pointer == 0


def test_nested_calls_unwind_in_order(fresh_state):
    """Returns resume after the matching call, innermost first."""
    state = execute(fresh_state, 0x2300)  # 0x200: call 0x300
    state = execute(state, 0x2400)        # 0x300: call 0x400
    assert state.stack.pointer == 2

    state = execute(state, 0x00EE)
    assert state.pc == 0x302
    state = execute(state, 0x00EE)
    assert state.pc == 0x202
    assert state.stack.pointer == 0


def test_machine_code_call_is_no_op(fresh_state):
    """0NNN - anything other than 00E0/00EE only advances the program counter."""
    state = fresh_state.replace(V=fresh_state.V.at[3].set(0x33))

    state = execute(state, 0x0123)

    assert state.pc == 0x202
    assert state.V[3] == 0x33
    assert state.stack.pointer == 0
    assert not state.draw_pending


def test_step_fetches_and_executes(fresh_state):
    """step reads the big-endian word at PC and runs it."""
    state = load_rom_bytes(fresh_state, bytes([0x6A, 0x42, 0x00, 0xE0]))

    state = step(state)
    assert state.V[0xA] == 0x42
    assert state.pc == 0x202

    state = step(state)
    assert state.draw_pending
    assert state.pc == 0x204
