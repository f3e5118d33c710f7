"""
ISA-206 Emulator: 8-bit signed arithmetic.

Registers hold two's-complement bytes, so every result is truncated to
8 bits and reinterpreted as signed: 127 + 1 == -128, -128 - 1 == 127.
"""


def twos_complement_8(value: int) -> int:
    """Truncate to 8 bits and interpret as signed (-128..127)."""
    return ((value + 0x80) & 0xFF) - 0x80


def add8(a: int, b: int) -> int:
    return twos_complement_8(a + b)


def sub8(a: int, b: int) -> int:
    return twos_complement_8(a - b)
