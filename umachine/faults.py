"""
Fault types for the Universal Machine.

Every runtime fault is terminal: once raised the machine is halted and
never executes another instruction.
"""

from __future__ import annotations


class LoadError(ValueError):
    """Program image could not be read or is not a whole number of words."""


class MachineFault(RuntimeError):
    """Base class for faults raised while the machine is running."""

    def __init__(self, message: str):
        super().__init__(message)
        self.pc: int | None = None
        self.opcode: int | None = None

    def __str__(self) -> str:
        msg = super().__str__()
        if self.pc is None:
            return msg
        return f"{msg} (pc={self.pc}, opcode={self.opcode})"


class InvalidHandle(MachineFault):
    """Heap access through a handle that is not bound to a live segment."""


class OutOfBounds(MachineFault):
    """Index past the end of a segment."""


class AllocationError(MachineFault):
    """Requested segment size is outside 0..MAX_SEGMENT_WORDS."""


class DivisionByZero(MachineFault):
    pass


class UnknownOperation(MachineFault):
    """Opcode 14 or 15."""


class CycleLimitExceeded(MachineFault):
    """The optional cycle bound given to run() was reached."""


class ConsoleError(MachineFault):
    """The input or output stream failed (closed pipe, unreadable stdin)."""
