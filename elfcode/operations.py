"""
ElfCode Operations

The closed instruction set of the register machine. Every operation is a
pure function

    (registers, a, b, c) -> registers'

where `a` and `b` are inputs (a register index or an immediate value, fixed
per operation) and `c` is always the output register index.

    Family        reg/reg   reg/imm   imm/reg
    add           addr      addi
    multiply      mulr      muli
    bitwise-and   banr      bani
    bitwise-or    borr      bori
    assign        setr      seti                 (b ignored)
    greater-than  gtrr      gtri      gtir
    equal         eqrr      eqri      eqir
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from elfcode.registers import Registers


# ============================================================================
# Semantics
# ============================================================================

def addr(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, registers[a] + registers[b])


def addi(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, registers[a] + b)


def mulr(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, registers[a] * registers[b])


def muli(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, registers[a] * b)


def banr(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, registers[a] & registers[b])


def bani(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, registers[a] & b)


def borr(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, registers[a] | registers[b])


def bori(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, registers[a] | b)


def setr(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, registers[a])


def seti(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, a)


def gtir(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, 1 if a > registers[b] else 0)


def gtri(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, 1 if registers[a] > b else 0)


def gtrr(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, 1 if registers[a] > registers[b] else 0)


def eqir(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, 1 if a == registers[b] else 0)


def eqri(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, 1 if registers[a] == b else 0)


def eqrr(registers: Registers, a: int, b: int, c: int) -> Registers:
    return registers.set(c, 1 if registers[a] == registers[b] else 0)


# ============================================================================
# Operation enum
# ============================================================================

class OperandMode(Enum):
    """How an input operand is read."""
    REGISTER = "r"
    IMMEDIATE = "i"
    IGNORED = "-"


class Operation(Enum):
    """The sixteen operations, keyed by mnemonic."""
    ADDR = "addr"
    ADDI = "addi"
    MULR = "mulr"
    MULI = "muli"
    BANR = "banr"
    BANI = "bani"
    BORR = "borr"
    BORI = "bori"
    SETR = "setr"
    SETI = "seti"
    GTIR = "gtir"
    GTRI = "gtri"
    GTRR = "gtrr"
    EQIR = "eqir"
    EQRI = "eqri"
    EQRR = "eqrr"

    @property
    def mnemonic(self) -> str:
        return self.value

    @property
    def modes(self) -> tuple[OperandMode, OperandMode]:
        """Operand modes of (a, b)."""
        return _MODES[self]

    def apply(self, registers: Registers, a: int, b: int, c: int) -> Registers:
        return _SEMANTICS[self](registers, a, b, c)

    @classmethod
    def from_mnemonic(cls, mnemonic: str) -> Operation:
        try:
            return cls(mnemonic)
        except ValueError:
            raise ValueError(
                f"Unknown operation '{mnemonic}'. "
                f"Known: {[op.value for op in cls]}"
            ) from None

    def __repr__(self) -> str:
        return f"<Operation {self.value}>"


R, I, X = OperandMode.REGISTER, OperandMode.IMMEDIATE, OperandMode.IGNORED

_TABLE: dict[Operation, tuple[Callable[[Registers, int, int, int], Registers], OperandMode, OperandMode]] = {
    Operation.ADDR: (addr, R, R),
    Operation.ADDI: (addi, R, I),
    Operation.MULR: (mulr, R, R),
    Operation.MULI: (muli, R, I),
    Operation.BANR: (banr, R, R),
    Operation.BANI: (bani, R, I),
    Operation.BORR: (borr, R, R),
    Operation.BORI: (bori, R, I),
    Operation.SETR: (setr, R, X),
    Operation.SETI: (seti, I, X),
    Operation.GTIR: (gtir, I, R),
    Operation.GTRI: (gtri, R, I),
    Operation.GTRR: (gtrr, R, R),
    Operation.EQIR: (eqir, I, R),
    Operation.EQRI: (eqri, R, I),
    Operation.EQRR: (eqrr, R, R),
}

_SEMANTICS = {op: entry[0] for op, entry in _TABLE.items()}
_MODES = {op: (entry[1], entry[2]) for op, entry in _TABLE.items()}

ALL_OPERATIONS: tuple[Operation, ...] = tuple(Operation)


# ============================================================================
# Instructions
# ============================================================================

class MalformedInstruction(ValueError):
    """An instruction that cannot run on a given machine."""

    def __init__(self, message: str, instruction: Instruction, line: Optional[int] = None):
        where = f" (instruction {line})" if line is not None else ""
        super().__init__(f"{instruction}{where}: {message}")
        self.instruction = instruction
        self.line = line


@dataclass(frozen=True)
class Instruction:
    """One decoded instruction: `operation a b c`."""
    operation: Operation
    a: int
    b: int
    c: int

    def execute(self, registers: Registers) -> Registers:
        return self.operation.apply(registers, self.a, self.b, self.c)

    def validate(self, register_count: int, line: Optional[int] = None) -> None:
        """Reject register operands that do not exist on the machine."""
        mode_a, mode_b = self.operation.modes
        for name, value, mode in (("a", self.a, mode_a), ("b", self.b, mode_b)):
            if mode == OperandMode.REGISTER and not 0 <= value < register_count:
                raise MalformedInstruction(
                    f"operand {name}={value} is not a register (0..{register_count - 1})",
                    self, line,
                )
        if not 0 <= self.c < register_count:
            raise MalformedInstruction(
                f"output register {self.c} out of range (0..{register_count - 1})",
                self, line,
            )

    def __str__(self) -> str:
        return f"{self.operation.value} {self.a} {self.b} {self.c}"
