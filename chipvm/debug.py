"""Formatting helpers for instruction tracing and register dumps."""

from chipvm.decode import disassemble
from chipvm.stack import frames
from chipvm.state import EmulatorState


def format_instruction(pc: int, instruction: int) -> str:
    """One trace line: decimal address, hex address, raw word, mnemonic."""
    return f"{pc:04d}  {pc:04X}  {instruction:04X}  {disassemble(instruction)}"


def format_registers(state: EmulatorState) -> list[str]:
    """Register file, index register, the byte at I and the call stack."""
    V = [int(v) for v in state.V]
    index = int(state.I)
    lines = ["Register Values:"]
    for i in range(0, 16, 4):
        lines.append("  ".join(f"V{j:X}={V[j]:02X}" for j in range(i, i + 4)))
    lines.append(f"Address of index: {index:04X}")
    lines.append(f"Value at index: {int(state.memory[min(index, len(state.memory) - 1)]):02X}")
    stack = frames(state.stack)
    lines.append("Stack:" if stack else "Stack: empty")
    lines.extend(f"  {depth}: {address:04X}" for depth, address in enumerate(stack))
    return lines
