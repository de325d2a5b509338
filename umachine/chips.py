"""
Chip primitives for the Universal Machine.

Register models one platter-wide register; Console models the byte-wide
serial channel the machine reads from and writes to.
"""

from __future__ import annotations

import sys
from typing import BinaryIO

from .faults import ConsoleError


class Register:
    """N-bit clocked register."""

    def __init__(self, width: int):
        self.width = width
        self.value = 0
        self._mask = (1 << width) - 1

    def load(self, val: int):
        self.value = val & self._mask


class Console:
    """
    Byte console: an rx stream the machine reads from and a tx stream it
    writes to.

    Every byte written is flushed before write_byte() returns, so a consumer
    interleaving input and output always sees output in program order.
    """

    def __init__(self, rx: BinaryIO | None = None, tx: BinaryIO | None = None):
        self.rx = rx if rx is not None else sys.stdin.buffer
        self.tx = tx if tx is not None else sys.stdout.buffer

    def read_byte(self) -> int | None:
        """Next input byte, or None at end of stream."""
        try:
            data = self.rx.read(1)
        except OSError as e:
            raise ConsoleError(f"cannot read input: {e}") from e
        if not data:
            return None
        return data[0]

    def write_byte(self, byte: int):
        try:
            self.tx.write(bytes((byte & 0xFF,)))
            self.tx.flush()
        except OSError as e:
            raise ConsoleError(f"cannot write output: {e}") from e
