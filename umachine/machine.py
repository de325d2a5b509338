"""
Universal Machine — fetch/decode/execute loop over a segment heap.

Eight 32-bit registers, an execution finger (pc) into segment 0, a segment
heap and a byte console. Fourteen operators; anything else is fatal.
"""

from __future__ import annotations

from .chips import Register, Console
from .faults import CycleLimitExceeded, DivisionByZero, MachineFault, UnknownOperation
from .heap import SegmentHeap, WORD_MASK


# ---------------------------------------------------------------------------
# Word format
#
#   standard:     op(4) | unused(19) | A(3) | B(3) | C(3)
#   orthography:  op(4) | A(3) | value(25)
# ---------------------------------------------------------------------------

WORD_BITS     = 32
NUM_REGISTERS = 8

OP_SHIFT  = 28
A_SHIFT   = 6
B_SHIFT   = 3
C_SHIFT   = 0
REG_MASK  = 0x7

ORTHO_A_SHIFT = 25
ORTHO_VALUE_MASK = 0x1FFFFFF

EOF_SENTINEL = WORD_MASK   # input register value at end of stream

# Operators
OP_CMOV         = 0
OP_INDEX        = 1
OP_AMEND        = 2
OP_ADD          = 3
OP_MUL          = 4
OP_DIV          = 5
OP_NAND         = 6
OP_HALT         = 7
OP_ALLOC        = 8
OP_FREE         = 9
OP_OUTPUT       = 10
OP_INPUT        = 11
OP_LOAD_PROGRAM = 12
OP_ORTHOGRAPHY  = 13

OP_NAMES = {
    OP_CMOV: "cmov", OP_INDEX: "index", OP_AMEND: "amend",
    OP_ADD: "add", OP_MUL: "mul", OP_DIV: "div", OP_NAND: "nand",
    OP_HALT: "halt", OP_ALLOC: "alloc", OP_FREE: "free",
    OP_OUTPUT: "output", OP_INPUT: "input",
    OP_LOAD_PROGRAM: "loadprog", OP_ORTHOGRAPHY: "ortho",
}

# Machine states
S_RUNNING = 0
S_HALTED  = 1


def make_standard_word(op: int, a: int = 0, b: int = 0, c: int = 0) -> int:
    return ((op & 0xF) << OP_SHIFT) | \
           ((a & REG_MASK) << A_SHIFT) | \
           ((b & REG_MASK) << B_SHIFT) | \
           ((c & REG_MASK) << C_SHIFT)


def make_orthography_word(a: int, value: int) -> int:
    return (OP_ORTHOGRAPHY << OP_SHIFT) | \
           ((a & REG_MASK) << ORTHO_A_SHIFT) | \
           (value & ORTHO_VALUE_MASK)


def unpack_word(word: int) -> tuple[int, int, int, int]:
    """Decode a standard-operator word into (op, a, b, c)."""
    op = (word >> OP_SHIFT) & 0xF
    a  = (word >> A_SHIFT) & REG_MASK
    b  = (word >> B_SHIFT) & REG_MASK
    c  = (word >> C_SHIFT) & REG_MASK
    return (op, a, b, c)


def unpack_orthography(word: int) -> tuple[int, int]:
    """Decode an orthography word into (a, value)."""
    return ((word >> ORTHO_A_SHIFT) & REG_MASK, word & ORTHO_VALUE_MASK)


# ---------------------------------------------------------------------------
# Machine
# ---------------------------------------------------------------------------

class UniversalMachine:
    """Single-threaded fetch/decode/execute engine."""

    def __init__(self, program=(), console: Console | None = None,
                 max_cycles: int | None = None):
        self.heap = SegmentHeap(program)
        self.console = console or Console()
        self.max_cycles = max_cycles

        # --- Registers ---
        self.regs = [Register(WORD_BITS) for _ in range(NUM_REGISTERS)]
        self.pc = Register(WORD_BITS)
        self.state = Register(1)

        # --- Counters ---
        self.cycles = 0
        self.io_ops = 0

    @property
    def halted(self) -> bool:
        return self.state.value == S_HALTED

    def registers(self) -> list[int]:
        return [r.value for r in self.regs]

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------

    def tick(self) -> bool:
        """Execute one instruction. Returns True if still running."""
        if self.state.value == S_HALTED:
            return False

        pc = self.pc.value
        op = None
        try:
            if self.max_cycles is not None and self.cycles >= self.max_cycles:
                raise CycleLimitExceeded(
                    f"no halt after {self.max_cycles} cycles")
            self.cycles += 1
            word = self.heap.fetch(pc)
            op = word >> OP_SHIFT
            self._execute(op, word)
        except MachineFault as fault:
            fault.pc = pc
            fault.opcode = op
            self.state.load(S_HALTED)
            raise
        except BaseException:
            # Host-side failures (KeyboardInterrupt, stray errors) are
            # terminal too; the instruction is never retried.
            self.state.load(S_HALTED)
            raise

        # Load program has already placed the finger on its target.
        if op != OP_LOAD_PROGRAM:
            self.pc.load(pc + 1)
        return self.state.value != S_HALTED

    def _execute(self, op: int, word: int):
        r = self.regs

        if op == OP_ORTHOGRAPHY:
            a, value = unpack_orthography(word)
            r[a].load(value)
            return

        _, a, b, c = unpack_word(word)

        if op == OP_CMOV:
            if r[c].value != 0:
                r[a].load(r[b].value)

        elif op == OP_INDEX:
            r[a].load(self.heap.read(r[b].value, r[c].value))

        elif op == OP_AMEND:
            self.heap.write(r[a].value, r[b].value, r[c].value)

        elif op == OP_ADD:
            r[a].load(r[b].value + r[c].value)

        elif op == OP_MUL:
            r[a].load(r[b].value * r[c].value)

        elif op == OP_DIV:
            divisor = r[c].value
            if divisor == 0:
                raise DivisionByZero(f"division by zero (register {c} is 0)")
            r[a].load(r[b].value // divisor)

        elif op == OP_NAND:
            r[a].load(~(r[b].value & r[c].value))

        elif op == OP_HALT:
            self.state.load(S_HALTED)

        elif op == OP_ALLOC:
            r[b].load(self.heap.allocate(r[c].value))

        elif op == OP_FREE:
            self.heap.free(r[c].value)

        elif op == OP_OUTPUT:
            # Values above 255 are truncated to their low byte.
            self.console.write_byte(r[c].value)
            self.io_ops += 1

        elif op == OP_INPUT:
            byte = self.console.read_byte()
            r[c].load(EOF_SENTINEL if byte is None else byte)
            self.io_ops += 1

        elif op == OP_LOAD_PROGRAM:
            self.heap.replace_program(r[b].value)
            self.pc.load(r[c].value)

        else:
            raise UnknownOperation(f"unknown operator {op}")

    # -------------------------------------------------------------------
    # Run to completion
    # -------------------------------------------------------------------

    def run(self) -> int:
        """Run until halt. Returns the number of cycles executed."""
        while self.tick():
            pass
        return self.cycles

    def reset_counters(self):
        self.cycles = 0
        self.io_ops = 0
        h = self.heap
        h.reads = h.writes = h.allocs = h.frees = h.program_loads = 0

    def stats(self) -> dict:
        h = self.heap
        return {
            "cycles": self.cycles,
            "heap_reads": h.reads,
            "heap_writes": h.writes,
            "allocs": h.allocs,
            "frees": h.frees,
            "program_loads": h.program_loads,
            "live_segments": len(h),
            "program_words": h.size(0),
            "io_ops": self.io_ops,
        }

    def stats_summary(self) -> str:
        s = self.stats()
        return (
            f"Cycles: {s['cycles']}\n"
            f"Heap: {s['heap_reads']}R/{s['heap_writes']}W "
            f"({s['live_segments']} live segments)\n"
            f"Segments: {s['allocs']} allocated, {s['frees']} freed\n"
            f"Program loads: {s['program_loads']} "
            f"(program is {s['program_words']} words)\n"
            f"IO: {s['io_ops']} operations"
        )
