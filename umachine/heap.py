"""
Segment heap for the Universal Machine.

Handle-indexed table of word arrays plus a stack of freed handles. Handle 0
is always the running program image.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np

from .faults import AllocationError, InvalidHandle, OutOfBounds

WORD_MASK = 0xFFFFFFFF
MAX_SEGMENT_WORDS = 1 << 28   # 1 GiB of uint32 per segment


class SegmentHeap:
    """Owns every segment; the machine only ever holds handles."""

    def __init__(self, program: Iterable[int] | np.ndarray = ()):
        # Freed slots hold None until their handle is reissued.
        self.segments: list[np.ndarray | None] = [
            np.array(program, dtype=np.uint32)
        ]
        self.free_handles: list[int] = []

        # --- Counters ---
        self.reads = 0
        self.writes = 0
        self.allocs = 0
        self.frees = 0
        self.program_loads = 0

    def __len__(self) -> int:
        return len(self.segments) - len(self.free_handles)

    def __contains__(self, handle: int) -> bool:
        return 0 <= handle < len(self.segments) and self.segments[handle] is not None

    def _live(self, handle: int) -> np.ndarray:
        if handle < 0 or handle >= len(self.segments):
            raise InvalidHandle(f"handle {handle} was never allocated")
        seg = self.segments[handle]
        if seg is None:
            raise InvalidHandle(f"handle {handle} has been freed")
        return seg

    def size(self, handle: int) -> int:
        return len(self._live(handle))

    # -------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------

    def allocate(self, size: int) -> int:
        """Create a zero-filled segment of `size` words, return its handle.

        The most recently freed handle is reused first.
        """
        if size < 0 or size > MAX_SEGMENT_WORDS:
            raise AllocationError(f"cannot allocate a segment of {size} words")
        try:
            seg = np.zeros(size, dtype=np.uint32)
        except MemoryError as e:
            raise AllocationError(
                f"host cannot back a segment of {size} words") from e
        self.allocs += 1
        if self.free_handles:
            handle = self.free_handles.pop()
            self.segments[handle] = seg
            return handle
        self.segments.append(seg)
        return len(self.segments) - 1

    def free(self, handle: int):
        if handle == 0:
            raise InvalidHandle("segment 0 holds the program and cannot be freed")
        self._live(handle)
        self.segments[handle] = None
        self.free_handles.append(handle)
        self.frees += 1

    # -------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------

    def read(self, handle: int, index: int) -> int:
        seg = self._live(handle)
        if not 0 <= index < len(seg):
            raise OutOfBounds(
                f"index {index} out of bounds for segment {handle} "
                f"of {len(seg)} words")
        self.reads += 1
        return int(seg[index])

    def write(self, handle: int, index: int, value: int):
        seg = self._live(handle)
        if not 0 <= index < len(seg):
            raise OutOfBounds(
                f"index {index} out of bounds for segment {handle} "
                f"of {len(seg)} words")
        self.writes += 1
        seg[index] = value & WORD_MASK

    def fetch(self, pc: int) -> int:
        """Instruction fetch from segment 0."""
        program = self.segments[0]
        if not 0 <= pc < len(program):
            raise OutOfBounds(
                f"execution finger {pc} ran off the end of the "
                f"{len(program)}-word program")
        return int(program[pc])

    # -------------------------------------------------------------------
    # Program replacement
    # -------------------------------------------------------------------

    def replace_program(self, handle: int):
        """Rebind segment 0 to a copy of `handle`'s segment.

        Loading segment 0 itself is a plain jump and copies nothing.
        """
        if handle == 0:
            return
        source = self._live(handle)
        try:
            self.segments[0] = source.copy()
        except MemoryError as e:
            raise AllocationError(
                f"host cannot duplicate segment {handle} of {len(source)} words") from e
        self.program_loads += 1
