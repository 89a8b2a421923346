"""CHIP-8 instruction decoding."""

from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Split a 16-bit instruction word into its operand fields."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


ALU_OPERATIONS = frozenset({0x0, 0x1, 0x2, 0x3, 0x4, 0x5, 0x6, 0x7, 0xE})
KEY_OPERATIONS = frozenset({0x9E, 0xA1})
MISC_OPERATIONS = frozenset({0x07, 0x0A, 0x15, 0x18, 0x1E, 0x29, 0x33, 0x55, 0x65})


def is_defined(instruction: int) -> bool:
    """Whether a concrete instruction word is part of the CHIP-8 instruction set.

    Every 0NNN word is accepted: 00E0 and 00EE are system calls and the
    remaining machine-code calls execute as no-ops.
    """
    family = (instruction & 0xF000) >> 12
    n = instruction & 0x000F
    nn = instruction & 0x00FF
    if family in (0x5, 0x9):
        return n == 0
    if family == 0x8:
        return n in ALU_OPERATIONS
    if family == 0xE:
        return nn in KEY_OPERATIONS
    if family == 0xF:
        return nn in MISC_OPERATIONS
    return True


_ALU_MNEMONICS = {
    0x0: "LD", 0x1: "OR", 0x2: "AND", 0x3: "XOR", 0x4: "ADD",
    0x5: "SUB", 0x6: "SHR", 0x7: "SUBN", 0xE: "SHL",
}

_MISC_FORMATS = {
    0x07: "LD V{x:X}, DT",
    0x0A: "LD V{x:X}, K",
    0x15: "LD DT, V{x:X}",
    0x18: "LD ST, V{x:X}",
    0x1E: "ADD I, V{x:X}",
    0x29: "LD F, V{x:X}",
    0x33: "LD B, V{x:X}",
    0x55: "LD [I], V{x:X}",
    0x65: "LD V{x:X}, [I]",
}


def disassemble(instruction: int) -> str:
    """Render a concrete instruction word as an assembly mnemonic."""
    d = decode(instruction)
    x, y, n, nn, nnn = d.x, d.y, d.n, d.nn, d.nnn
    if not is_defined(instruction):
        return f"??? {instruction:04X}"
    if instruction == 0x00E0:
        return "CLS"
    if instruction == 0x00EE:
        return "RET"
    match d.opcode:
        case 0x0:
            return f"SYS {nnn:03X}"
        case 0x1:
            return f"JP {nnn:03X}"
        case 0x2:
            return f"CALL {nnn:03X}"
        case 0x3:
            return f"SE V{x:X}, {nn:02X}"
        case 0x4:
            return f"SNE V{x:X}, {nn:02X}"
        case 0x5:
            return f"SE V{x:X}, V{y:X}"
        case 0x6:
            return f"LD V{x:X}, {nn:02X}"
        case 0x7:
            return f"ADD V{x:X}, {nn:02X}"
        case 0x8:
            return f"{_ALU_MNEMONICS[n]} V{x:X}, V{y:X}"
        case 0x9:
            return f"SNE V{x:X}, V{y:X}"
        case 0xA:
            return f"LD I, {nnn:03X}"
        case 0xB:
            return f"JP V0, {nnn:03X}"
        case 0xC:
            return f"RND V{x:X}, {nn:02X}"
        case 0xD:
            return f"DRW V{x:X}, V{y:X}, {n:X}"
        case 0xE:
            return f"{'SKP' if nn == 0x9E else 'SKNP'} V{x:X}"
    return _MISC_FORMATS[nn].format(x=x)
