"""
Tests for program image loading and the command-line runner.
"""

from __future__ import annotations

import sys
import os
import tempfile
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from umachine.faults import LoadError
from umachine.host import MachineHost
from umachine.image import load_image, words_from_bytes, words_to_bytes
from umachine.machine import make_standard_word, make_orthography_word, OP_DIV, OP_HALT, OP_OUTPUT
from umachine.run import main as run_main

HALT = make_standard_word(OP_HALT)


def test_words_are_big_endian():
    words = words_from_bytes(bytes([0x70, 0, 0, 0, 0xD0, 0, 0, 0x48]))
    assert [int(w) for w in words] == [HALT, make_orthography_word(0, 72)]


def test_empty_image():
    assert len(words_from_bytes(b"")) == 0


def test_bad_length_rejected():
    for n in (1, 2, 3, 5, 7):
        with pytest.raises(LoadError):
            words_from_bytes(b"\x00" * n)


def test_words_to_bytes():
    assert words_to_bytes([HALT, 0xDEADBEEF]) == b"\x70\x00\x00\x00\xde\xad\xbe\xef"


def test_load_image_file():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "hello.um"
        path.write_bytes(words_to_bytes([
            make_orthography_word(0, 72),
            make_standard_word(OP_OUTPUT, 0, 0, 0),
            HALT,
        ]))
        assert len(load_image(path)) == 3

        host = MachineHost()
        host.boot_file(path)
        assert host.run().output == b"H"


def test_load_image_missing_file():
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(LoadError):
            load_image(Path(tmp) / "missing.um")


def test_boot_bytes_rejects_partial_word():
    host = MachineHost()
    with pytest.raises(LoadError):
        host.boot_bytes(b"\x70\x00\x00")
    assert host.machine is None


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def _run_cli(data: bytes, *args: str) -> int:
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "prog.um"
        path.write_bytes(data)
        return run_main([str(path), *args])


def test_cli_halt():
    assert _run_cli(words_to_bytes([HALT])) == 0
    assert _run_cli(words_to_bytes([HALT]), "--stats") == 0


def test_cli_load_error():
    assert _run_cli(b"\x70\x00\x00\x00\x00") == 1


def test_cli_fault():
    assert _run_cli(words_to_bytes([make_standard_word(OP_DIV, 0, 1, 2), HALT])) == 2


def test_cli_cycle_limit():
    assert _run_cli(words_to_bytes([14 << 28]), "--max-cycles", "5") == 2
    assert _run_cli(words_to_bytes([HALT, HALT]), "--max-cycles", "0") == 2


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    tests = [(name, fn) for name, fn in globals().items()
             if name.startswith("test_") and callable(fn)]
    failed = 0
    for name, fn in tests:
        try:
            fn()
        except Exception as e:
            print(f"  FAIL: {name}: {type(e).__name__}: {e}")
            failed += 1
    print(f"Image/CLI: {len(tests) - failed}/{len(tests)} passed")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
