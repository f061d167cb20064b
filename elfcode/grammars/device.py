"""
ElfCode Device Grammars

Text formats of the register machine:

    register literal     [3, 2, 1, 1]
    instruction          addr 0 1 2
    program listing      #ip 0
                         seti 5 0 1
                         ...
    sample block         Before: [3, 2, 1, 1]
                         9 2 1 2
                         After:  [3, 2, 2, 1]
    sample file          sample blocks, blank lines, then numeric rows
                         `opcode a b c` of a test program
"""

from __future__ import annotations

from typing import Any, Callable

from elfcode.combinators import Parser, char, literal, one_of
from elfcode.grammars.primitives import (
    blank_lines,
    comma,
    integer,
    line,
    natural,
    newline,
    space,
    spaces,
)
from elfcode.machine import Program
from elfcode.operations import Instruction, Operation
from elfcode.registers import Registers
from elfcode.resolver import Sample


def _row(head: Parser, build: Callable[..., Any]) -> Parser:
    """`head a b c` with three integer operands."""
    return head.then(lambda x:
        (space >> integer).then(lambda a:
            (space >> integer).then(lambda b:
                (space >> integer).map(lambda c: build(x, a, b, c)))))


registers_literal: Parser = (
    (char("[") >> spaces >> integer.one_or_more(comma) << spaces << char("]"))
    .map(Registers.of)
    .named("registers")
)

operation: Parser = one_of([
    literal(op.mnemonic).becomes(op) for op in Operation
]).named("operation")

instruction: Parser = _row(operation, Instruction).named("instruction")

ip_directive: Parser = (literal("#ip") >> space >> natural << newline).named("ip_directive")

program: Parser = (
    ip_directive.optional()
    .then(lambda ip: line(instruction).one_or_more().map(lambda rows: Program(tuple(rows), ip)))
    << blank_lines
).named("program")

raw_instruction: Parser = _row(natural, lambda *row: row).named("raw_instruction")

sample: Parser = (
    (literal("Before:") >> spaces >> registers_literal << newline).then(lambda before:
        (raw_instruction << newline).then(lambda row:
            (literal("After:") >> spaces >> registers_literal << newline).map(lambda after:
                Sample(before, *row, after))))
    .named("sample")
)

sample_file: Parser = (
    (sample << blank_lines).zero_or_more().then(lambda samples:
        (blank_lines >> line(raw_instruction).zero_or_more()).map(lambda rows:
            (samples, rows)))
    << blank_lines
).named("sample_file")
