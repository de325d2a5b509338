"""
MachineHost — high-level interface to the Universal Machine.

Boots a machine from an image file, raw image bytes or a word list, wires
its console to in-memory or caller-supplied streams, and runs it.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from .chips import Console
from .faults import MachineFault
from .image import load_image, words_from_bytes
from .machine import UniversalMachine


@dataclass
class RunResult:
    output: bytes
    halted: bool
    fault: MachineFault | None = None
    stats: dict = field(default_factory=dict)


class MachineHost:
    """Owns one machine and the streams attached to its console.

    Args:
        stdin: Input bytes or a binary stream. Bytes are wrapped in BytesIO.
        stdout: Binary stream for output. When omitted, output is captured
            and returned in RunResult.output.
        max_cycles: Optional cycle bound passed to the machine.
    """

    def __init__(self, stdin: bytes | BinaryIO = b"",
                 stdout: BinaryIO | None = None,
                 max_cycles: int | None = None):
        self.rx = io.BytesIO(stdin) if isinstance(stdin, (bytes, bytearray)) else stdin
        self._captured = stdout is None
        self.tx = io.BytesIO() if stdout is None else stdout
        self.max_cycles = max_cycles
        self.machine: UniversalMachine | None = None

    # -------------------------------------------------------------------
    # Booting
    # -------------------------------------------------------------------

    def boot(self, program) -> UniversalMachine:
        """Create a fresh machine with `program` in segment 0."""
        console = Console(self.rx, self.tx)
        self.machine = UniversalMachine(program, console, self.max_cycles)
        return self.machine

    def boot_file(self, path: str | Path) -> UniversalMachine:
        return self.boot(load_image(path))

    def boot_bytes(self, data: bytes) -> UniversalMachine:
        return self.boot(words_from_bytes(data))

    # -------------------------------------------------------------------
    # Running
    # -------------------------------------------------------------------

    def run(self, capture_faults: bool = False) -> RunResult:
        """Run the booted machine to halt.

        With capture_faults, a MachineFault ends the run and is returned in
        the result instead of being raised.
        """
        if self.machine is None:
            raise RuntimeError("no program booted")
        fault = None
        try:
            self.machine.run()
        except MachineFault as e:
            if not capture_faults:
                raise
            fault = e
        output = self.tx.getvalue() if self._captured else b""
        return RunResult(
            output=output,
            halted=self.machine.halted,
            fault=fault,
            stats=self.machine.stats(),
        )


def run_words(words, stdin: bytes = b"", max_cycles: int | None = None) -> RunResult:
    """Boot `words` on a fresh host, run it, capture faults and output."""
    host = MachineHost(stdin, max_cycles=max_cycles)
    host.boot(words)
    return host.run(capture_faults=True)
