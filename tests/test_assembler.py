"""
Assembler Tests for the ISA-206 toolchain.

Tests the line normalizer, label resolution (pass 1) and instruction
encoding (pass 2) against hand-computed bit patterns.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging

import pytest
from isa206_asm import (
    Assembler, AssemblerError, ErrorKind, LabelTable,
    assemble, assemble_file, load_source, normalize_line,
)
from isa206_asm import assembler as assembler_module
from isa206_asm.encoding import encode_jmp, encode_ldi, register_code


COUNTDOWN = """\
START:
LDI A, 3
LDI B, 1
LOOP:
SUB A, B
SKIPNZ A
JMP END
JMP LOOP
END:
HALT
"""


def _asm(source: str) -> bytes:
    return assemble(source)


class TestNormalizer:

    def test_trims_leading_whitespace_and_upper_cases(self):
        assert normalize_line("\t  ldi a, 3") == "LDI A, 3"

    def test_semicolon_comment(self):
        assert normalize_line("add a, b ; accumulate") == "ADD A, B "

    def test_slash_comment(self):
        assert normalize_line("halt // done") == "HALT "

    def test_both_comment_styles(self):
        assert normalize_line("jmp x // a ; b") == "JMP X "
        assert normalize_line("jmp x ; a // b") == "JMP X "

    def test_comment_only_line_is_empty(self):
        assert normalize_line("   ; nothing here") == ""
        assert normalize_line("// nothing here") == ""

    def test_line_terminators_are_whitespace(self):
        assert normalize_line("\r\n") == ""


class TestOpcodeEncoding:
    """Verify every instruction form against its bit layout."""

    def test_ldi(self):
        assert _asm("LDI A, 3") == bytes([0b11000011])
        assert _asm("LDI B, 1") == bytes([0b11000101])
        assert _asm("LDI C, 0") == bytes([0b11001000])
        assert _asm("LDI D, 9") == bytes([0b11101101])

    def test_ldi_boundaries(self):
        assert _asm("LDI A, 15") == bytes([0b11110011])
        assert _asm("LDI A, 0") == bytes([0b11000000])

    def test_add(self):
        assert _asm("ADD A, B") == bytes([0b01110001])
        assert _asm("ADD D, C") == bytes([0b01111110])
        assert _asm("ADD A, A") == bytes([0b01110000])

    def test_sub(self):
        assert _asm("SUB A, B") == bytes([0b00010001])
        assert _asm("SUB C, D") == bytes([0b00011011])

    def test_skipnz(self):
        assert _asm("SKIPNZ A") == bytes([0b01000000])
        assert _asm("SKIPNZ D") == bytes([0b01001100])

    def test_jmp_literal(self):
        assert _asm("JMP 0") == bytes([0b10000000])
        assert _asm("JMP 5") == bytes([0b10000101])
        assert _asm("JMP 63") == bytes([0b10111111])

    def test_halt(self):
        assert _asm("HALT") == b'\x01'

    def test_operands_without_commas(self):
        assert _asm("ADD A B") == _asm("ADD A, B")
        assert _asm("LDI A 0") == _asm("LDI A, 0")

    def test_case_insensitive(self):
        assert _asm("ldi b, 2\nadd c, d\nhalt") == _asm("LDI B, 2\nADD C, D\nHALT")

    def test_register_codes(self):
        assert [register_code(r) for r in "ABCD"] == [0, 1, 2, 3]

    def test_encoders_directly(self):
        assert encode_ldi("A", 15) == 0xF3
        assert encode_jmp(63) == 0xBF


class TestLabels:

    def test_countdown_program(self):
        assert _asm(COUNTDOWN) == bytes([0xC3, 0xC5, 0x11, 0x40, 0x86, 0x82, 0x01])

    def test_label_addresses(self):
        a = Assembler()
        a.assemble(COUNTDOWN)
        assert a.labels.find("START") == 0
        assert a.labels.find("LOOP") == 2
        assert a.labels.find("END") == 6

    def test_jmp_label_matches_numeric_address(self):
        src = "LDI A, 1\nTARGET:\nHALT\nJMP TARGET"
        a = Assembler()
        binary = a.assemble(src)
        addr = a.labels.find("TARGET")
        assert binary[-1] == _asm(f"JMP {addr}")[0]

    def test_forward_reference(self):
        assert _asm("JMP LATER\nHALT\nLATER:\nHALT") == bytes([0x82, 0x01, 0x01])

    def test_label_lines_emit_nothing(self):
        assert _asm("A1:\nA2:\nA3:\nHALT") == b'\x01'

    def test_comments_and_blank_lines_do_not_advance_pc(self):
        src = "\n; header\n\n   // more\nHALT\nNEXT: ; marker\nJMP NEXT\n"
        assert _asm(src) == bytes([0x01, 0x81])

    def test_label_is_case_insensitive(self):
        assert _asm("loop:\nJMP Loop") == bytes([0x80])

    def test_indented_label(self):
        assert _asm("   here:\nJMP HERE") == bytes([0x80])

    def test_trailing_label_points_past_end(self):
        a = Assembler()
        a.assemble("HALT\nTAIL:")
        assert a.labels.find("TAIL") == 1

    def test_text_after_colon_is_ignored_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            binary = _asm("START: LDI A, 3\nHALT")
        assert binary == b'\x01'
        assert "ignored" in caplog.text

    def test_duplicate_label_first_wins(self, caplog):
        with caplog.at_level(logging.WARNING):
            binary = _asm("X:\nHALT\nX:\nHALT\nJMP X")
        assert binary[-1] == 0x80
        assert "Duplicate label X" in caplog.text

    def test_long_label_names(self):
        name = "L" * 100
        assert _asm(f"HALT\n{name}:\nJMP {name}") == bytes([0x01, 0x81])


class TestLabelTable:

    def test_first_insert_wins(self):
        t = LabelTable()
        t.add("X", 3)
        t.add("X", 9)
        assert t.find("X") == 3
        assert len(t) == 2
        assert [(l.name, l.address) for l in t] == [("X", 3), ("X", 9)]

    def test_contains(self):
        t = LabelTable()
        t.add("LOOP", 0)
        assert "LOOP" in t
        assert "END" not in t

    def test_unknown_label(self):
        with pytest.raises(AssemblerError) as exc:
            LabelTable().find("NOWHERE")
        assert exc.value.kind is ErrorKind.UNKNOWN_SYMBOL
        assert "Unknown label: NOWHERE" in str(exc.value)


class TestErrors:

    def _error(self, source: str) -> AssemblerError:
        with pytest.raises(AssemblerError) as exc:
            _asm(source)
        return exc.value

    def test_ldi_out_of_range(self):
        e = self._error("LDI A, 16")
        assert e.kind is ErrorKind.RANGE
        assert "LDI immediate out of range: 16" in str(e)

    def test_ldi_negative(self):
        assert self._error("LDI A, -1").kind is ErrorKind.RANGE

    def test_jmp_out_of_range(self):
        e = self._error("JMP 64")
        assert e.kind is ErrorKind.RANGE
        assert "JMP address out of range: 64" in str(e)

    def test_label_out_of_jmp_range(self):
        src = "HALT\n" * 64 + "FAR:\nJMP FAR"
        assert self._error(src).kind is ErrorKind.RANGE

    def test_unknown_register(self):
        e = self._error("ADD A, E")
        assert e.kind is ErrorKind.SYNTAX
        assert "Unknown register E" in str(e)

    def test_unknown_opcode(self):
        e = self._error("HALT\nNOP")
        assert e.kind is ErrorKind.SYNTAX
        assert "Unknown opcode: NOP" in str(e)
        assert e.line_num == 2
        assert e.line_text == "NOP"

    def test_unknown_label(self):
        e = self._error("JMP MISSING")
        assert e.kind is ErrorKind.UNKNOWN_SYMBOL
        assert str(e) == "Line 1: Unknown label: MISSING"

    def test_missing_operand(self):
        assert self._error("SKIPNZ").kind is ErrorKind.SYNTAX
        assert self._error("LDI A").kind is ErrorKind.SYNTAX
        assert self._error("JMP").kind is ErrorKind.SYNTAX

    def test_extra_operand(self):
        assert self._error("HALT A").kind is ErrorKind.SYNTAX
        assert self._error("ADD A, B, C").kind is ErrorKind.SYNTAX

    def test_bad_integer(self):
        assert self._error("LDI A, X").kind is ErrorKind.SYNTAX
        assert self._error("JMP 1X").kind is ErrorKind.SYNTAX

    def test_error_line_number(self):
        e = self._error("LDI A, 1\n\n; c\nLDI B, 99")
        assert e.line_num == 4
        assert str(e).startswith("Line 4: ")


class TestDeterminism:

    def test_repeat_assembly_is_identical(self):
        assert _asm(COUNTDOWN) == _asm(COUNTDOWN)

    def test_assembler_instance_is_reusable(self):
        a = Assembler()
        first = bytes(a.assemble(COUNTDOWN))
        second = bytes(a.assemble(COUNTDOWN))
        assert first == second
        assert len(a.labels) == 3

    def test_accepts_line_sequence(self):
        assert _asm(COUNTDOWN) == bytes(Assembler().assemble(COUNTDOWN.splitlines()))


class TestListing:

    def test_listing_contents(self):
        a = Assembler()
        a.assemble(COUNTDOWN)
        listing = a.get_listing()
        assert "  00  C3 11000011  LDI A, 3" in listing
        assert "  06  01 00000001  HALT" in listing
        assert "SYMBOLS" in listing
        assert "LOOP" in listing


class TestFileIO:

    def test_assemble_file(self, tmp_path):
        src = tmp_path / "prog.asm206"
        dst = tmp_path / "prog.bin206"
        src.write_text(COUNTDOWN)
        binary = assemble_file(src, dst)
        assert dst.read_bytes() == binary == bytes([0xC3, 0xC5, 0x11, 0x40, 0x86, 0x82, 0x01])

    def test_assemble_file_with_listing(self, tmp_path):
        src = tmp_path / "prog.asm206"
        src.write_text(COUNTDOWN)
        lst = tmp_path / "prog.lst"
        assemble_file(src, tmp_path / "prog.bin206", listing=lst)
        assert "SUB A, B" in lst.read_text()

    def test_crlf_source(self, tmp_path):
        src = tmp_path / "prog.asm206"
        src.write_bytes(b"LDI A, 3\r\nHALT\r\n")
        assert assemble_file(src, tmp_path / "out.bin206") == bytes([0xC3, 0x01])

    def test_missing_source(self, tmp_path):
        with pytest.raises(AssemblerError) as exc:
            load_source(tmp_path / "nope.asm206")
        assert exc.value.kind is ErrorKind.IO
        assert "Cannot open" in str(exc.value)

    def test_unwritable_output(self, tmp_path):
        src = tmp_path / "prog.asm206"
        src.write_text("HALT\n")
        with pytest.raises(AssemblerError) as exc:
            assemble_file(src, tmp_path / "no_such_dir" / "out.bin206")
        assert exc.value.kind is ErrorKind.IO
        assert "Cannot write" in str(exc.value)

    def test_no_output_on_error(self, tmp_path):
        src = tmp_path / "bad.asm206"
        dst = tmp_path / "bad.bin206"
        src.write_text("LDI A, 1\nJMP NOWHERE\n")
        with pytest.raises(AssemblerError):
            assemble_file(src, dst)
        assert not dst.exists()

    def test_utf8_bom_source(self, tmp_path):
        src = tmp_path / "prog.asm206"
        src.write_bytes(b"\xef\xbb\xbfLDI A, 3\nHALT\n")
        assert assemble_file(src, tmp_path / "out.bin206") == bytes([0xC3, 0x01])

    def test_failed_write_keeps_previous_output(self, tmp_path, monkeypatch):
        src = tmp_path / "prog.asm206"
        dst = tmp_path / "out.bin206"
        src.write_text("HALT\n")
        dst.write_bytes(b"old")

        def _disk_full(tmp, target):
            raise OSError("No space left on device")

        monkeypatch.setattr(assembler_module.os, "replace", _disk_full)
        with pytest.raises(AssemblerError) as exc:
            assemble_file(src, dst)
        assert exc.value.kind is ErrorKind.IO
        assert dst.read_bytes() == b"old"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["out.bin206", "prog.asm206"]

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        src = tmp_path / "prog.asm206"
        dst = tmp_path / "out.bin206"
        src.write_text("HALT\n")
        dst.write_bytes(b"stale contents")
        assert assemble_file(src, dst) == b'\x01'
        assert dst.read_bytes() == b'\x01'
        assert sorted(p.name for p in tmp_path.iterdir()) == ["out.bin206", "prog.asm206"]

    def test_failed_listing_writes_no_binary(self, tmp_path):
        src = tmp_path / "prog.asm206"
        dst = tmp_path / "prog.bin206"
        src.write_text(COUNTDOWN)
        with pytest.raises(AssemblerError) as exc:
            assemble_file(src, dst, listing=tmp_path / "no_such_dir" / "prog.lst")
        assert exc.value.kind is ErrorKind.IO
        assert "Cannot write" in str(exc.value)
        assert not dst.exists()

    def test_empty_source(self, tmp_path):
        src = tmp_path / "empty.asm206"
        src.write_text("")
        assert assemble_file(src, tmp_path / "empty.bin206") == b''
