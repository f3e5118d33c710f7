#!/usr/bin/env python3
"""
asm206: ISA-206 assembler CLI

Usage:
    python asm206.py <input.asm206> <output.bin206> [--listing FILE] [--verbose]

The output file is written only when the whole program assembled; on any
error nothing is written, a message goes to stderr and the exit status is 1.

Examples:
    python asm206.py countdown.asm206 countdown.bin206
    python asm206.py countdown.asm206 countdown.bin206 --listing countdown.lst -v
"""

import argparse
import logging
import sys
import os

# Allow running from project root without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from isa206_asm import AssemblerError, __version__, assemble_file


class _ArgumentParser(argparse.ArgumentParser):
    """Reports argument errors with usage on stdout and exit status 1."""

    def error(self, message):
        self.print_usage(sys.stdout)
        print(f"{self.prog}: error: {message}", file=sys.stderr)
        sys.exit(1)


def main(argv=None):
    parser = _ArgumentParser(
        prog="asm206",
        description="ISA-206 two-pass assembler",
    )
    parser.add_argument("input", help="Input assembly file (.asm206)")
    parser.add_argument("output", help="Output binary file (.bin206)")
    parser.add_argument("--listing", metavar="FILE",
                        help="Also write an address/byte/source listing to FILE")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log assembly details to stderr")
    parser.add_argument("--version", action="version",
                        version=f"asm206 {__version__}")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[asm206] %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        assemble_file(args.input, args.output, listing=args.listing)
    except AssemblerError as e:
        print(f"Assembler error: {e}", file=sys.stderr)
        sys.exit(1)

    return 0


if __name__ == "__main__":
    sys.exit(main())
