#!/usr/bin/env python3
"""
emu206: ISA-206 emulator CLI

Usage:
    python emu206.py <program.bin206> [--trace] [--disassemble] [--verbose]

Runs the program until HALT, an unknown opcode, or the end of memory and
prints the final registers:

    A = 0	B = 1	C = 0	D = 0	PC = 7

An unknown opcode is reported on stderr but still ends with the register
dump and exit status 0. Only load failures exit with status 1.

Examples:
    python emu206.py countdown.bin206
    python emu206.py countdown.bin206 --trace
    python emu206.py countdown.bin206 --disassemble
"""

import argparse
import logging
import sys
import os

# Allow running from project root without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from isa206_emu import Emulator, LoadError, Memory, StopReason, __version__, format_listing


class _ArgumentParser(argparse.ArgumentParser):
    """Reports argument errors with usage on stdout and exit status 1."""

    def error(self, message):
        self.print_usage(sys.stdout)
        print(f"{self.prog}: error: {message}", file=sys.stderr)
        sys.exit(1)


def _trace_to_stderr(line: str):
    print(line, file=sys.stderr, flush=True)


def main(argv=None):
    parser = _ArgumentParser(
        prog="emu206",
        description="ISA-206 fetch-decode-execute emulator",
    )
    parser.add_argument("program", help="Program binary (.bin206)")
    parser.add_argument("--trace", action="store_true",
                        help="Print each executed instruction to stderr as it runs")
    parser.add_argument("--disassemble", action="store_true",
                        help="Print a disassembly listing instead of running")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log emulator details to stderr")
    parser.add_argument("--version", action="version",
                        version=f"emu206 {__version__}")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[emu206] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        mem = Memory.from_file(args.program)
    except LoadError as e:
        print(e, file=sys.stderr)
        sys.exit(1)

    if args.disassemble:
        sys.stdout.write(format_listing(bytes(mem)))
        return 0

    emu = Emulator(mem)
    if args.trace:
        emu.enable_trace(sink=_trace_to_stderr)
    reason = emu.run()

    if reason is StopReason.ILLEGAL:
        print(f"Unknown opcode {emu.illegal_opcode:02X} at PC={emu.illegal_address}",
              file=sys.stderr)

    print(emu.regs.display())
    return 0


if __name__ == "__main__":
    sys.exit(main())
