"""
ElfCode - parser combinators and a register machine

Parsing:  Parser values composed with combinators (elfcode.combinators),
          yielding Success/Failure outcomes (elfcode.result)
Machine:  immutable Registers, sixteen operations, a "run until the
          instruction pointer leaves the program" interpreter
Resolver: recover an opcode -> operation mapping from sample executions
"""

__version__ = "0.1.0"

from elfcode.result import ParseOutcome, Success, Failure
from elfcode.combinators import (
    Parser,
    ParseError,
    parse,
    parse_or_raise,
)
from elfcode.registers import Registers, RegisterIndexError
from elfcode.operations import Operation, OperandMode, Instruction, MalformedInstruction
from elfcode.machine import (
    Program,
    Machine,
    ExecutionResult,
    ExecutionStatus,
    StepBudgetExceeded,
    run_program,
)
from elfcode.resolver import Sample, OpcodeResolutionError, resolve_opcodes

__all__ = [
    "ParseOutcome",
    "Success",
    "Failure",
    "Parser",
    "ParseError",
    "parse",
    "parse_or_raise",
    "Registers",
    "RegisterIndexError",
    "Operation",
    "OperandMode",
    "Instruction",
    "MalformedInstruction",
    "Program",
    "Machine",
    "ExecutionResult",
    "ExecutionStatus",
    "StepBudgetExceeded",
    "run_program",
    "Sample",
    "OpcodeResolutionError",
    "resolve_opcodes",
]
