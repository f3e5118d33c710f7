"""
ISA-206 Virtual Emulator
========================
Fetch-decode-execute emulator for .bin206 programs.

    - cpu/regs.py:    A-D signed 8-bit registers, PC, halted flag
    - cpu/alu.py:     Two's-complement 8-bit wraparound arithmetic
    - cpu/decoder.py: Byte -> tagged instruction variant
    - mem/memory.py:  Immutable program image (memory size == file size)
    - emu.py:         Step/run loop and instruction handlers
    - disasm.py:      Byte -> assembly text listing
"""

__version__ = "1.0.0"

from .cpu.regs import Register, Registers
from .cpu.decoder import decode
from .mem.memory import LoadError, Memory
from .emu import Emulator, StopReason
from .disasm import DisassembledInstruction, disassemble, format_listing
