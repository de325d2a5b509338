"""
Command-line runner for Universal Machine program images.

Usage:
  um program.um                  # run with the terminal as console
  um program.um --stats          # print machine statistics on exit
  python -m umachine.run sandmark.umz --max-cycles 1000000
"""

from __future__ import annotations

import argparse
import sys

from .faults import LoadError, MachineFault
from .host import MachineHost
from .machine import OP_NAMES


def _describe_fault(fault: MachineFault) -> str:
    name = type(fault).__name__
    if fault.opcode is not None and fault.opcode in OP_NAMES:
        return f"{name} in {OP_NAMES[fault.opcode]}: {fault}"
    return f"{name}: {fault}"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run a Universal Machine program image",
        prog="um",
    )
    parser.add_argument("program", help="Path to a program image (big-endian 32-bit words)")
    parser.add_argument("--stats", action="store_true",
                        help="Print machine statistics to stderr on exit")
    parser.add_argument("--max-cycles", type=int, default=None,
                        help="Stop with a fault after this many instructions")
    args = parser.parse_args(argv)

    host = MachineHost(sys.stdin.buffer, sys.stdout.buffer,
                       max_cycles=args.max_cycles)
    try:
        host.boot_file(args.program)
    except LoadError as e:
        print(f"Error: {e}", file=sys.stderr, flush=True)
        return 1

    status = 0
    try:
        host.run()
    except MachineFault as fault:
        print(f"Fault: {_describe_fault(fault)}", file=sys.stderr, flush=True)
        status = 2
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr, flush=True)
        status = 130

    if args.stats:
        print(host.machine.stats_summary(), file=sys.stderr, flush=True)
    return status


if __name__ == "__main__":
    sys.exit(main())
