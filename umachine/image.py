"""
Program image loading: a file of big-endian 32-bit words becomes the
initial contents of segment 0.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from .faults import LoadError

WORD_BYTES = 4


def words_from_bytes(data: bytes) -> np.ndarray:
    """Decode a program image into native uint32 words."""
    if len(data) % WORD_BYTES != 0:
        raise LoadError(
            f"program image is {len(data)} bytes, "
            f"not a multiple of {WORD_BYTES}")
    return np.frombuffer(data, dtype=">u4").astype(np.uint32)


def words_to_bytes(words) -> bytes:
    """Encode words as a program image (inverse of words_from_bytes)."""
    return np.asarray(words, dtype=np.uint32).astype(">u4").tobytes()


def load_image(path: str | Path) -> np.ndarray:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise LoadError(f"cannot read program image {path}: {e}") from e
    return words_from_bytes(data)
