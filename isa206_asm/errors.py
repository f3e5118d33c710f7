"""
ISA-206 Assembler: error taxonomy.

Every fatal assembly condition is raised as an AssemblerError tagged with
an ErrorKind. Only the CLI turns it into a message on stderr and exit 1.
"""

from enum import Enum

__all__ = ['ErrorKind', 'AssemblerError']


class ErrorKind(Enum):
    IO = 'Io'                          # source unreadable / output unwritable
    SYNTAX = 'Syntax'                  # unknown mnemonic or register, bad operand shape
    RANGE = 'Range'                    # numeric operand outside its field
    UNKNOWN_SYMBOL = 'UnknownSymbol'   # JMP to a label that was never declared


class AssemblerError(Exception):
    """Raised on assembly errors."""
    def __init__(self, message: str, kind: ErrorKind = ErrorKind.SYNTAX,
                 line_num: int = 0, line_text: str = ""):
        self.message = message
        self.kind = kind
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)

    def at_line(self, line_num: int, line_text: str) -> 'AssemblerError':
        """Return a copy of this error bound to a source line."""
        return AssemblerError(self.message, self.kind, line_num, line_text)
