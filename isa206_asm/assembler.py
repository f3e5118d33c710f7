"""
ISA-206 Two-Pass Assembler.

Translates line-oriented ISA-206 assembly into the raw .bin206 format:
one byte per instruction, no header, byte offset == program counter.

Source grammar (per line):
    [whitespace] LABEL:
    [whitespace] MNEMONIC [operand[, operand]]
Either form may be followed by a comment starting with ';' or '//'.
Mnemonics, registers and labels are case-insensitive.

How the two passes work:
  Pass 1: Walk the normalized lines with an instruction counter. A line
          containing ':' declares a label at the current counter and emits
          nothing; any other non-empty line counts as one instruction.
  Pass 2: Walk the lines again and encode each instruction line into one
          byte, resolving JMP label operands against the pass-1 table.

Any error aborts the whole assembly. Nothing is written unless every
line encoded, so a .bin206 file only exists when it is fully valid.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import AssemblerError, ErrorKind
from .encoding import (
    encode_add, encode_halt, encode_jmp, encode_ldi, encode_skipnz, encode_sub,
)

__all__ = [
    'Assembler', 'Label', 'LabelTable', 'SourceLine',
    'normalize_line', 'load_source', 'write_binary', 'assemble', 'assemble_file',
]

logger = logging.getLogger(__name__)

_LEADING_WS = ' \t\r\n'
_SIGNED_INT = re.compile(r'[+-]?[0-9]+')
_UNSIGNED_INT = re.compile(r'[0-9]+')


# ──────────────────────────────────────────────
# Line normalizer
# ──────────────────────────────────────────────

def normalize_line(raw: str) -> str:
    """Trim leading whitespace, drop ';' and '//' comments, upper-case the rest."""
    text = raw.lstrip(_LEADING_WS)

    semi = text.find(';')
    if semi >= 0:
        text = text[:semi]

    slash = text.find('//')
    if slash >= 0:
        text = text[:slash]

    return text.upper()


@dataclass
class SourceLine:
    """One line of assembly source, raw and normalized."""
    line_num: int
    raw: str
    text: str

    @property
    def is_blank(self) -> bool:
        return not self.text

    @property
    def is_label(self) -> bool:
        return ':' in self.text


# ──────────────────────────────────────────────
# Label table
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Label:
    name: str
    address: int


class LabelTable:
    """Append-only name -> address table.

    Duplicate names may be added; lookups always return the first one,
    the same answer a linear scan from the start would give.
    """

    def __init__(self):
        self._items: List[Label] = []
        self._first: Dict[str, int] = {}

    def add(self, name: str, address: int):
        self._items.append(Label(name, address))
        if name in self._first:
            logger.warning(f"Duplicate label {name} at {address}; "
                           f"first definition at {self._first[name]} wins")
            return
        self._first[name] = address

    def find(self, name: str) -> int:
        try:
            return self._first[name]
        except KeyError:
            raise AssemblerError(f"Unknown label: {name}", ErrorKind.UNKNOWN_SYMBOL) from None

    def __contains__(self, name: str) -> bool:
        return name in self._first

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Label]:
        return iter(self._items)


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

class Assembler:
    """Two-pass ISA-206 assembler.

    Usage:
        asm = Assembler()
        binary = asm.assemble(source_text)
        print(asm.get_listing())
    """

    def __init__(self):
        self.labels = LabelTable()
        self.binary: bytearray = bytearray()
        self.lines: List[SourceLine] = []
        self._emitted: Dict[int, Tuple[int, int]] = {}   # line_num -> (address, byte)
        self._encoders: Dict[str, Callable[[List[str]], int]] = {
            'LDI':    self._enc_ldi,
            'ADD':    self._enc_add,
            'SUB':    self._enc_sub,
            'SKIPNZ': self._enc_skipnz,
            'JMP':    self._enc_jmp,
            'HALT':   self._enc_halt,
        }

    def assemble(self, source: Union[str, Sequence[str]]) -> bytearray:
        """Assemble source text (or a sequence of lines) into bytes."""
        if isinstance(source, str):
            source = source.splitlines()

        self.labels = LabelTable()
        self.binary = bytearray()
        self._emitted = {}
        self.lines = [SourceLine(i, raw, normalize_line(raw))
                      for i, raw in enumerate(source, 1)]

        self._pass1()
        self._pass2()

        logger.debug(f"Assembled {len(self.binary)} bytes, {len(self.labels)} labels")
        return self.binary

    def _pass1(self):
        """Pass 1: assign every label the index of the next instruction line."""
        pc = 0
        for line in self.lines:
            if line.is_blank:
                continue

            if line.is_label:
                head, tail = line.text.split(':', 1)
                parts = head.split()
                name = parts[0] if parts else ""
                self.labels.add(name, pc)
                logger.debug(f"Label {name} = {pc}")
                if tail.strip():
                    logger.warning(f"Line {line.line_num}: text after label {name} "
                                   f"ignored: {tail.strip()}")
                continue

            pc += 1

    def _pass2(self):
        """Pass 2: encode one byte per instruction line."""
        for line in self.lines:
            if line.is_blank or line.is_label:
                continue

            parts = line.text.replace(',', ' ').split()
            if not parts:
                raise AssemblerError("Missing mnemonic", ErrorKind.SYNTAX,
                                     line.line_num, line.raw)
            mnem, operands = parts[0], parts[1:]

            encoder = self._encoders.get(mnem)
            if encoder is None:
                raise AssemblerError(f"Unknown opcode: {mnem}", ErrorKind.SYNTAX,
                                     line.line_num, line.raw)
            try:
                byte = encoder(operands)
            except AssemblerError as e:
                raise e.at_line(line.line_num, line.raw) from None

            self._emitted[line.line_num] = (len(self.binary), byte)
            self.binary.append(byte)

    # ── Per-mnemonic encoders ──

    @staticmethod
    def _operands(mnem: str, operands: List[str], count: int) -> List[str]:
        if len(operands) != count:
            raise AssemblerError(f"{mnem}: expected {count} operand(s), got {len(operands)}",
                                 ErrorKind.SYNTAX)
        return operands

    def _enc_ldi(self, operands: List[str]) -> int:
        rd, imm = self._operands('LDI', operands, 2)
        if not _SIGNED_INT.fullmatch(imm):
            raise AssemblerError(f"Invalid integer: {imm}", ErrorKind.SYNTAX)
        return encode_ldi(rd, int(imm))

    def _enc_add(self, operands: List[str]) -> int:
        return encode_add(*self._operands('ADD', operands, 2))

    def _enc_sub(self, operands: List[str]) -> int:
        return encode_sub(*self._operands('SUB', operands, 2))

    def _enc_skipnz(self, operands: List[str]) -> int:
        return encode_skipnz(*self._operands('SKIPNZ', operands, 1))

    def _enc_jmp(self, operands: List[str]) -> int:
        target, = self._operands('JMP', operands, 1)
        if target[0] in '0123456789':
            if not _UNSIGNED_INT.fullmatch(target):
                raise AssemblerError(f"Invalid integer: {target}", ErrorKind.SYNTAX)
            return encode_jmp(int(target))
        return encode_jmp(self.labels.find(target))

    def _enc_halt(self, operands: List[str]) -> int:
        self._operands('HALT', operands, 0)
        return encode_halt()

    # ── Listing ──

    def get_listing(self) -> str:
        """Return a human-readable listing: address, byte and source per line."""
        lines = [f"{'ADDR':>4}  {'BYTE':<8}  SOURCE", "-" * 60]

        for line in self.lines:
            raw = line.raw.strip()
            if line.line_num in self._emitted:
                addr, byte = self._emitted[line.line_num]
                lines.append(f"  {addr:02X}  {byte:02X} {byte:08b}  {raw}")
            elif raw:
                lines.append(f"{'':4}  {'':<8}  {raw}")

        if len(self.labels):
            lines.append("")
            lines.append("SYMBOLS")
            for label in self.labels:
                lines.append(f"  {label.name:<16} {label.address:>3}")

        return '\n'.join(lines) + '\n'


# ──────────────────────────────────────────────
# File I/O + convenience functions
# ──────────────────────────────────────────────

def load_source(path: Union[str, Path]) -> List[str]:
    """Read an .asm206 file into a list of lines without line terminators.

    A leading UTF-8 byte order mark is dropped.
    """
    try:
        with open(path, 'r', encoding='utf-8-sig') as f:
            return [line.rstrip('\r\n') for line in f]
    except (OSError, UnicodeDecodeError):
        raise AssemblerError(f"Cannot open {path}", ErrorKind.IO) from None


def _write_atomic(path: Union[str, Path], data: bytes):
    """Write data to a temp file beside path, then rename it into place."""
    target = Path(path)
    tmp = None
    try:
        with tempfile.NamedTemporaryFile(dir=target.parent, prefix=f".{target.name}.",
                                         suffix='.tmp', delete=False) as f:
            tmp = f.name
            f.write(data)
        os.replace(tmp, target)
    except OSError:
        if tmp is not None and os.path.exists(tmp):
            os.remove(tmp)
        raise AssemblerError(f"Cannot write {path}", ErrorKind.IO) from None


def write_binary(path: Union[str, Path], data: bytes):
    _write_atomic(path, bytes(data))


def assemble(source: Union[str, Sequence[str]]) -> bytes:
    """Assemble source text, return the encoded program."""
    return bytes(Assembler().assemble(source))


def assemble_file(src: Union[str, Path], dst: Union[str, Path],
                  listing: Optional[Union[str, Path]] = None) -> bytes:
    """Assemble src into dst, optionally writing a listing file as well.

    The listing is written before the binary, so a failed listing write
    leaves no .bin206 behind.
    """
    asm = Assembler()
    binary = bytes(asm.assemble(load_source(src)))

    if listing is not None:
        _write_atomic(listing, asm.get_listing().encode('utf-8'))

    write_binary(dst, binary)
    logger.debug(f"Wrote {len(binary)} bytes to {dst}")
    return binary
