"""
ISA-206 instruction encoding.

Every instruction is exactly one byte, so an instruction's index in the
program is also its byte offset. Label addresses in the assembler rely on
this; variable-length instructions would need real size tracking in pass 1.

Bit layouts (MSB -> LSB):
  LDI    11 hh rr ll   hh/ll = high/low 2 bits of a 4-bit immediate
  ADD    0111 aa bb    aa += bb
  SUB    0001 aa bb    aa -= bb
  SKIPNZ 0100 rr 00    skip next instruction if rr != 0
  JMP    10 aaaaaa     absolute 6-bit address
  HALT   00000001
"""

from typing import Dict

from .errors import AssemblerError, ErrorKind

__all__ = [
    'OP_ADD', 'OP_SUB', 'OP_SKIPNZ', 'OP_JMP', 'OP_LDI', 'OP_HALT',
    'REGISTERS', 'LDI_MAX', 'JMP_MAX',
    'register_code', 'encode_ldi', 'encode_add', 'encode_sub',
    'encode_skipnz', 'encode_jmp', 'encode_halt',
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

REGISTERS: Dict[str, int] = {'A': 0, 'B': 1, 'C': 2, 'D': 3}

LDI_MAX = 15   # 4-bit immediate
JMP_MAX = 63   # 6-bit address


def register_code(name: str) -> int:
    """Map a register name (already upper-cased) to its 2-bit code."""
    try:
        return REGISTERS[name]
    except KeyError:
        raise AssemblerError(f"Unknown register {name}", ErrorKind.SYNTAX) from None


def encode_ldi(rd: str, imm: int) -> int:
    if imm < 0 or imm > LDI_MAX:
        raise AssemblerError(f"LDI immediate out of range: {imm}", ErrorKind.RANGE)
    r = register_code(rd)
    hi = (imm >> 2) & 0x3
    lo = imm & 0x3
    return OP_LDI | (hi << 4) | (r << 2) | lo


def encode_add(a: str, b: str) -> int:
    return OP_ADD | (register_code(a) << 2) | register_code(b)


def encode_sub(a: str, b: str) -> int:
    return OP_SUB | (register_code(a) << 2) | register_code(b)


def encode_skipnz(rd: str) -> int:
    return OP_SKIPNZ | (register_code(rd) << 2)


def encode_jmp(addr: int) -> int:
    if addr < 0 or addr > JMP_MAX:
        raise AssemblerError(f"JMP address out of range: {addr}", ErrorKind.RANGE)
    return OP_JMP | addr


def encode_halt() -> int:
    return OP_HALT
