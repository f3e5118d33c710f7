"""
ISA-206 Emulator: opcode decoder.

Maps one instruction byte to a decoded instruction variant. Classification
order matters:

  1. 0x01 exactly            HALT
  2. top 2 bits  10______    JMP    addr = low 6 bits
                 11______    LDI    rd = bits 3-2, imm = bits 5-4 : bits 1-0
  3. top 4 bits  0111____    ADD    rd = bits 3-2, rs = bits 1-0
                 0001____    SUB    rd = bits 3-2, rs = bits 1-0
                 0100____    SKIPNZ rd = bits 3-2
  4. anything else           Invalid (abnormal halt when executed)

Each variant renders back to assembly text with str(), which is what the
disassembler and the trace print.
"""

from dataclasses import dataclass
from typing import Union

__all__ = [
    'OP_ADD', 'OP_SUB', 'OP_SKIPNZ', 'OP_JMP', 'OP_LDI', 'OP_HALT',
    'Jmp', 'Ldi', 'Add', 'Sub', 'SkipNz', 'Halt', 'Invalid', 'Instruction',
    'decode', 'get_rd', 'get_rs',
]

# ──────────────────────────────────────────────
# Opcode patterns
# ──────────────────────────────────────────────

OP_ADD    = 0b01110000
OP_SUB    = 0b00010000
OP_SKIPNZ = 0b01000000
OP_JMP    = 0b10000000
OP_LDI    = 0b11000000
OP_HALT   = 0b00000001

TOP2_MASK = 0b11000000
TOP4_MASK = 0b11110000

REG_NAMES = 'ABCD'


def get_rd(op: int) -> int:
    return (op >> 2) & 0x03


def get_rs(op: int) -> int:
    return op & 0x03


# ──────────────────────────────────────────────
# Decoded instruction variants
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Jmp:
    addr: int

    def __str__(self) -> str:
        return f"JMP {self.addr}"


@dataclass(frozen=True)
class Ldi:
    rd: int
    imm: int

    def __str__(self) -> str:
        return f"LDI {REG_NAMES[self.rd]}, {self.imm}"


@dataclass(frozen=True)
class Add:
    rd: int
    rs: int

    def __str__(self) -> str:
        return f"ADD {REG_NAMES[self.rd]}, {REG_NAMES[self.rs]}"


@dataclass(frozen=True)
class Sub:
    rd: int
    rs: int

    def __str__(self) -> str:
        return f"SUB {REG_NAMES[self.rd]}, {REG_NAMES[self.rs]}"


@dataclass(frozen=True)
class SkipNz:
    rd: int

    def __str__(self) -> str:
        return f"SKIPNZ {REG_NAMES[self.rd]}"


@dataclass(frozen=True)
class Halt:
    def __str__(self) -> str:
        return "HALT"


@dataclass(frozen=True)
class Invalid:
    byte: int

    def __str__(self) -> str:
        return "???"


Instruction = Union[Jmp, Ldi, Add, Sub, SkipNz, Halt, Invalid]


def decode(op: int) -> Instruction:
    """Decode one instruction byte."""
    op &= 0xFF

    if op == OP_HALT:
        return Halt()

    top2 = op & TOP2_MASK
    if top2 == OP_JMP:
        return Jmp(op & 0b00111111)
    if top2 == OP_LDI:
        imm_hi = (op >> 4) & 0x3
        imm_lo = op & 0x3
        return Ldi(get_rd(op), (imm_hi << 2) | imm_lo)

    top4 = op & TOP4_MASK
    if top4 == OP_ADD:
        return Add(get_rd(op), get_rs(op))
    if top4 == OP_SUB:
        return Sub(get_rd(op), get_rs(op))
    if top4 == OP_SKIPNZ:
        return SkipNz(get_rd(op))

    return Invalid(op)
