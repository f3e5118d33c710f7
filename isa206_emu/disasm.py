"""
ISA-206 Disassembler.

Every instruction is one byte, so disassembly is a straight walk over the
image: address i holds instruction i. Bytes that decode to nothing are
shown as '???' with their raw value.

    from isa206_emu.disasm import disassemble
    for d in disassemble(data):
        print(d.format())   # "$04: 86  JMP 6"
"""

from dataclasses import dataclass
from typing import List

from .cpu.decoder import Instruction, Invalid, decode


@dataclass
class DisassembledInstruction:
    """One decoded byte with its address."""
    address: int
    byte: int
    instruction: Instruction

    @property
    def is_valid(self) -> bool:
        return not isinstance(self.instruction, Invalid)

    def format(self) -> str:
        line = f"${self.address:02X}: {self.byte:02X}  {self.instruction}"
        if not self.is_valid:
            line += f"  ; unknown opcode {self.byte:08b}"
        return line


def disassemble(data: bytes) -> List[DisassembledInstruction]:
    return [DisassembledInstruction(addr, byte, decode(byte))
            for addr, byte in enumerate(bytes(data))]


def format_listing(data: bytes) -> str:
    """Full listing, one line per byte, newline-terminated."""
    lines = [d.format() for d in disassemble(data)]
    return '\n'.join(lines) + '\n' if lines else ''
