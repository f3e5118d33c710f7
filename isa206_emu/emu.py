"""
ISA-206 Emulator: main emulator class.

Integrates:
  - CPU registers (cpu/regs.py)
  - Program memory (mem/memory.py)
  - Opcode decoder (cpu/decoder.py)
  - 8-bit signed arithmetic (cpu/alu.py)

Execution model, one step:
  1. Stop if PC has run past the end of memory (implicit halt)
  2. Fetch the byte at PC, PC += 1
  3. Decode it into an instruction variant
  4. Dispatch to the handler, which may redirect PC or halt

Termination reasons:
  - HALT:     HALT instruction executed
  - ILLEGAL:  byte matching no opcode pattern (abnormal halt)
  - END:      PC ran past the end of memory

There is no step limit: a JMP loop without HALT runs forever, as it
would on hardware.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from .cpu import alu
from .cpu.regs import Registers
from .cpu.decoder import Add, Halt, Invalid, Jmp, Ldi, SkipNz, Sub, decode
from .mem.memory import Memory

logger = logging.getLogger(__name__)


class StopReason(Enum):
    HALT = 'HALT'
    ILLEGAL = 'ILLEGAL'
    END = 'END'


class Emulator:
    """ISA-206 virtual CPU.

    Usage:
        emu = Emulator()
        emu.load_binary('countdown.bin206')
        reason = emu.run()
        print(emu.regs.display())
    """

    def __init__(self, program: Union[bytes, Memory] = b''):
        self.regs = Registers()
        self.mem = program if isinstance(program, Memory) else Memory(program)

        self.stop_reason: Optional[StopReason] = None
        self.illegal_opcode: Optional[int] = None
        self.illegal_address: Optional[int] = None

        self._trace = False
        self._trace_output: List[str] = []
        self._trace_sink: Optional[Callable[[str], None]] = None

        self._dispatch = {
            Jmp:     self._op_jmp,
            Ldi:     self._op_ldi,
            Add:     self._op_add,
            Sub:     self._op_sub,
            SkipNz:  self._op_skipnz,
            Halt:    self._op_halt,
            Invalid: self._op_invalid,
        }

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_binary(self, path_or_data):
        """Load a .bin206 file or raw bytes as the program and reset the CPU."""
        if isinstance(path_or_data, (str, Path)):
            self.mem = Memory.from_file(path_or_data)
        else:
            self.mem = Memory(path_or_data)
        self.reset()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None."""
        if self.stop_reason is not None:
            return self.stop_reason

        pc = self.regs.PC
        if pc >= len(self.mem):
            logger.debug(f"PC={pc} past end of memory ({len(self.mem)} bytes)")
            self.stop_reason = StopReason.END
            return self.stop_reason

        op = self.mem.read8(pc)
        self.regs.PC = pc + 1
        inst = decode(op)

        reason = self._dispatch[type(inst)](inst)

        if self._trace:
            line = f"{pc:02X}: {op:02X}  {str(inst):<10} {self.regs.display()}"
            if self._trace_sink is not None:
                self._trace_sink(line)
            else:
                self._trace_output.append(line)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"{pc:02X}: {op:02X}  {inst}")

        if reason is not None:
            self.stop_reason = reason
        return reason

    def run(self) -> StopReason:
        """Run until HALT, an illegal opcode, or the end of memory."""
        while True:
            reason = self.step()
            if reason is not None:
                return reason

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _op_jmp(self, inst: Jmp):
        self.regs.PC = inst.addr

    def _op_ldi(self, inst: Ldi):
        self.regs.set(inst.rd, inst.imm)

    def _op_add(self, inst: Add):
        self.regs.set(inst.rd, alu.add8(self.regs.get(inst.rd), self.regs.get(inst.rs)))

    def _op_sub(self, inst: Sub):
        self.regs.set(inst.rd, alu.sub8(self.regs.get(inst.rd), self.regs.get(inst.rs)))

    def _op_skipnz(self, inst: SkipNz):
        if self.regs.get(inst.rd) != 0:
            self.regs.PC += 1

    def _op_halt(self, inst: Halt) -> StopReason:
        self.regs.halted = True
        return StopReason.HALT

    def _op_invalid(self, inst: Invalid) -> StopReason:
        self.regs.halted = True
        self.illegal_opcode = inst.byte
        self.illegal_address = self.regs.PC - 1
        logger.debug(f"Unknown opcode {inst.byte:02X} at PC={self.illegal_address}")
        return StopReason.ILLEGAL

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True,
                     sink: Optional[Callable[[str], None]] = None):
        """Enable instruction trace capture.

        With a sink, each trace line is handed to it as the step executes
        and nothing is buffered; get_trace() then stays empty. Use a sink
        for programs that may never halt.
        """
        self._trace = enable
        self._trace_sink = sink

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Reset CPU state; the loaded program is kept."""
        self.regs.reset()
        self.stop_reason = None
        self.illegal_opcode = None
        self.illegal_address = None
        self._trace_output.clear()
