"""CHIP-8 return-address stack operations.

The stack stores the address of the CALL instruction itself; RETURN resumes
two bytes after it. Capacity checks happen on the host before these run
(see ``chipvm.invariants``), so ``pointer`` is always in range here.
"""

import jax.numpy as jnp
from chipvm.constants import ADDRESS_MASK, STACK_SIZE
from chipvm.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> StackState:
    """Push a return address."""
    new_data = stack.data.at[stack.pointer].set(address & ADDRESS_MASK)
    return stack.replace(data=new_data, pointer=stack.pointer + 1)


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray]:
    """Pop the most recent return address, clearing its slot."""
    top = stack.pointer - 1
    address = stack.data[top]
    return stack.replace(data=stack.data.at[top].set(0), pointer=top), address


def is_full(stack: StackState) -> bool:
    return int(stack.pointer) >= STACK_SIZE


def is_empty(stack: StackState) -> bool:
    return int(stack.pointer) <= 0


def frames(stack: StackState) -> list[int]:
    """Return addresses currently on the stack, oldest first."""
    return [int(address) for address in stack.data[:int(stack.pointer)]]
