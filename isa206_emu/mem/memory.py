"""
ISA-206 Emulator: program memory.

Memory is the loaded .bin206 image and nothing else: its length is fixed
at load time and is the whole addressable space. It is read-only; no
ISA-206 instruction writes memory.
"""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class LoadError(Exception):
    """Raised when a program image cannot be opened or fully read."""
    pass


class Memory:
    """Immutable byte-addressable program image."""

    def __init__(self, data: bytes = b''):
        self._mem = bytes(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'Memory':
        try:
            f = open(path, 'rb')
        except OSError:
            raise LoadError(f"Could not open file {path}") from None

        with f:
            try:
                data = f.read()
            except OSError:
                raise LoadError("File read error!") from None

        logger.debug(f"Loaded {len(data)} bytes from {path}")
        return cls(data)

    def read8(self, addr: int) -> int:
        return self._mem[addr]

    def __len__(self) -> int:
        return len(self._mem)

    def __bytes__(self) -> bytes:
        return self._mem
