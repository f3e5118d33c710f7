"""
ISA-206 Emulator: CPU register set.

Register model:
  A, B, C, D  signed 8-bit general registers (-128..127)
  PC          unsigned program counter (index of the next byte to fetch)
  halted      set by HALT or by an illegal opcode

Registers are addressed by their 2-bit code through get()/set(), which is
how the decoder's rd/rs fields reach them.
"""

from enum import IntEnum

from .alu import twos_complement_8


class Register(IntEnum):
    A = 0
    B = 1
    C = 2
    D = 3


_NAMES = ('A', 'B', 'C', 'D')


class Registers:
    """ISA-206 CPU state."""

    __slots__ = ('A', 'B', 'C', 'D', 'PC', 'halted')

    def __init__(self):
        self.reset()

    def get(self, reg: int) -> int:
        return getattr(self, _NAMES[reg])

    def set(self, reg: int, value: int):
        """Store value into a register, truncated to signed 8 bits."""
        setattr(self, _NAMES[reg], twos_complement_8(value))

    def reset(self):
        self.A: int = 0
        self.B: int = 0
        self.C: int = 0
        self.D: int = 0
        self.PC: int = 0
        self.halted: bool = False

    def display(self) -> str:
        """Final register dump line (no trailing newline)."""
        return (f"A = {self.A}\tB = {self.B}\tC = {self.C}\t"
                f"D = {self.D}\tPC = {self.PC}")
