#!/usr/bin/env python3
"""
ElfCode — command-line interface

Usage:
    elfcode run <program>               Run an #ip listing until it halts
    elfcode resolve <samples>           Resolve opcodes from before/after samples
    elfcode check <grammar> <file>      Parse a file with a bundled grammar
"""

from __future__ import annotations

import argparse
import sys
import textwrap
from pathlib import Path
from typing import Optional, Sequence

from elfcode import (
    Machine,
    OpcodeResolutionError,
    ParseError,
    Registers,
    StepBudgetExceeded,
    parse,
    parse_or_raise,
)
from elfcode.combinators import locate
from elfcode.grammars import GRAMMARS, program as program_grammar
from elfcode.grammars import registers_literal, sample_file
from elfcode.registers import DEFAULT_REGISTER_COUNT
from elfcode.resolver import count_ambiguous, decode, opcode_candidates, resolve_opcodes


# ============================================================================
# Formatting helpers
# ============================================================================

class C:
    """ANSI escapes for terminal output; `off()` blanks them for --no-color."""
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    RESET = "\033[0m"

    @classmethod
    def off(cls):
        for name in ("BOLD", "DIM", "RED", "GREEN", "YELLOW", "CYAN", "RESET"):
            setattr(cls, name, "")


# kind -> (color attribute on C, mark)
_MARKS = {
    "ok": ("GREEN", "✓"),
    "warn": ("YELLOW", "⚠"),
    "fail": ("RED", "✗"),
}


def banner(title: str) -> str:
    rule = f"{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}"
    return f"\n{rule}\n{C.BOLD}  {title}{C.RESET}\n{rule}"


def status(kind: str, text: str) -> str:
    """One indented result line with a colored mark."""
    color, mark = _MARKS[kind]
    return f"  {getattr(C, color)}{mark}{C.RESET} {text}"


def muted(text: str) -> str:
    return f"{C.DIM}{text}{C.RESET}"


# ============================================================================
# Commands
# ============================================================================

def cmd_run(args) -> int:
    """Run a program listing until it halts."""
    source = Path(args.program).read_text()
    program = parse_or_raise(program_grammar, source, "program")

    if args.registers:
        registers = parse_or_raise(registers_literal, args.registers, "registers")
    else:
        registers = Registers.zeros(args.register_count)

    print(banner(f"RUN: {args.program}"))
    ip = "none (straight-line)" if program.ip_register is None else f"r{program.ip_register}"
    print(f"  {C.DIM}Instructions: {len(program)}  |  ip: {ip}  |  start: {registers}{C.RESET}")

    if args.verbose:
        print(muted(textwrap.indent(str(program), "    ")))

    machine = Machine(program, max_steps=args.max_steps, trace=args.trace)
    result = machine.run(registers)

    print(status("ok", f"Halted after {result.steps} steps"))
    print(f"\n  {C.BOLD}Registers:{C.RESET} {result.registers}")

    if args.trace:
        print(f"\n  {C.BOLD}Trace:{C.RESET}")
        for entry in result.trace:
            print(
                f"    [{entry['step']:4d}] ip={entry['ip']:<3d} {entry['instruction']:18s} "
                f"{muted(str(entry['before']))} → {entry['after']}"
            )
    return 0


def cmd_resolve(args) -> int:
    """Resolve opcodes from samples, then run the trailing test program."""
    source = Path(args.samples).read_text()
    samples, rows = parse_or_raise(sample_file, source, "sample file")

    print(banner(f"RESOLVE: {args.samples}"))
    print(f"  {C.DIM}Samples: {len(samples)}  |  Program rows: {len(rows)}{C.RESET}")

    if not samples:
        print(status("warn", "No samples to resolve from"))
        return 1

    ambiguous = count_ambiguous(samples, args.threshold)
    print(f"\n  Samples matching ≥{args.threshold} operations: {C.BOLD}{ambiguous}{C.RESET}")

    if args.verbose:
        print(f"\n  {C.BOLD}Candidates:{C.RESET}")
        for opcode, ops in opcode_candidates(samples).items():
            names = ", ".join(sorted(op.mnemonic for op in ops))
            print(f"    {opcode:3d}: {muted(names)}")

    mapping = resolve_opcodes(samples)
    print(f"\n  {C.BOLD}Opcodes:{C.RESET}")
    for opcode, operation in sorted(mapping.items()):
        print(f"    {C.CYAN}{opcode:3d}{C.RESET} → {operation.mnemonic}")

    if rows:
        program = decode(rows, mapping)
        register_count = len(samples[0].before)
        result = Machine(program, max_steps=args.max_steps).run(Registers.zeros(register_count))
        print(status("ok", f"Test program ran {result.steps} instructions"))
        print(f"\n  {C.BOLD}Registers:{C.RESET} {result.registers}")
    return 0


def cmd_check(args) -> int:
    """Parse a file with one of the bundled grammars."""
    source = Path(args.file).read_text()
    grammar = GRAMMARS[args.grammar]

    print(banner(f"CHECK: {args.file} as {args.grammar}"))
    outcome = parse(grammar, source)

    if outcome.ok:
        print(status("ok", f"Parsed {len(source)} characters"))
        if args.verbose:
            print(muted(textwrap.indent(repr(outcome.value), "    ")))
        return 0

    line, col = locate(source, outcome.position)
    print(status("fail", f"Parse failed at line {line}, col {col} (offset {outcome.position})"))
    lines = source.splitlines()
    text = lines[line - 1] if line <= len(lines) else ""
    print(f"    {text}")
    print(f"    {' ' * col}{C.RED}^{C.RESET}")
    return 1


# ============================================================================
# CLI setup
# ============================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="elfcode",
        description="ElfCode — parser combinators and a register machine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
        examples:
          elfcode run program.txt --registers "[1, 0, 0, 0, 0, 0]"
          elfcode run program.txt --max-steps 1000000 --trace
          elfcode resolve samples.txt -v
          elfcode check route directions.txt
        """),
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")

    sub = parser.add_subparsers(dest="command", help="Command to run")

    # run
    p = sub.add_parser("run", help="Run an #ip program listing")
    p.add_argument("program", help="Path to the program listing")
    p.add_argument("-r", "--registers", help='Initial registers, e.g. "[1, 0, 0, 0, 0, 0]"')
    p.add_argument("-n", "--register-count", type=int, default=DEFAULT_REGISTER_COUNT,
                   help=f"Register count when --registers is not given (default: {DEFAULT_REGISTER_COUNT})")
    p.add_argument("--max-steps", type=int, default=None, help="Step budget (default: unbounded)")
    p.add_argument("--trace", action="store_true", help="Print every executed instruction")
    p.add_argument("-v", "--verbose", action="store_true", help="Show the parsed program")

    # resolve
    p = sub.add_parser("resolve", help="Resolve opcodes from before/after samples")
    p.add_argument("samples", help="Path to the sample file")
    p.add_argument("-t", "--threshold", type=int, default=3,
                   help="Report samples matching at least this many operations (default: 3)")
    p.add_argument("--max-steps", type=int, default=None, help="Step budget for the test program")
    p.add_argument("-v", "--verbose", action="store_true", help="Show candidate operations per opcode")

    # check
    p = sub.add_parser("check", help="Parse a file with a bundled grammar")
    p.add_argument("grammar", choices=sorted(GRAMMARS), help="Grammar to use")
    p.add_argument("file", help="File to parse")
    p.add_argument("-v", "--verbose", action="store_true", help="Show the parsed value")

    args = parser.parse_args(argv)

    if args.no_color:
        C.off()

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "run": cmd_run,
        "resolve": cmd_resolve,
        "check": cmd_check,
    }

    handler = commands[args.command]
    try:
        return handler(args)
    except FileNotFoundError as e:
        print(status("fail", f"File not found: {e.filename}"))
    except ParseError as e:
        print(status("fail", f"Parse error: {e}"))
    except StepBudgetExceeded as e:
        print(status("fail", f"{e}"))
    except (OpcodeResolutionError, ValueError) as e:
        print(status("fail", f"Error: {e}"))
    return 1


if __name__ == "__main__":
    sys.exit(main())
