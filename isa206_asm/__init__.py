"""
ISA-206 Assembler
=================
Two-pass assembler for the ISA-206 toy 8-bit instruction set.

Architecture:
    ┌──────────────┐    ┌────────────┐    ┌────────────┐    ┌────────────┐    ┌──────────┐
    │ Source .asm  │───>│ Normalizer │───>│   Pass 1   │───>│   Pass 2   │───>│ .bin206  │
    │ (text lines) │    │ (comments, │    │  (labels)  │    │ (encoding) │    │ (bytes)  │
    └──────────────┘    │ upper-case)│    └────────────┘    └────────────┘    └──────────┘
                        └────────────┘

    - errors.py:    AssemblerError tagged with an ErrorKind (Io/Syntax/Range/UnknownSymbol)
    - encoding.py:  Opcode patterns and one pure encoder per mnemonic
    - assembler.py: Line normalizer, label table, both passes, listing, file I/O
"""

__version__ = "1.0.0"

from .errors import AssemblerError, ErrorKind
from .encoding import REGISTERS
from .assembler import (
    Assembler, Label, LabelTable, SourceLine,
    normalize_line, load_source, write_binary, assemble, assemble_file,
)
