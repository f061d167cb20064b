"""
ElfCode Machine

Executes Programs against Registers.

The machine has a single state shape: (registers, ip register, program).
One step:
1. Read the ip register. If its value is outside [0, len(program)), halt.
2. Execute program[ip], producing new registers.
3. Increment the ip register by 1.

There is no branch instruction and no halt instruction: writing to the ip
register is a jump, running off either end of the program is termination.
Non-terminating programs are cut off by a caller-supplied step budget.

Usage:
    machine = Machine(program, max_steps=10_000_000)
    result = machine.run(Registers.zeros(6))
    result.registers[0]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from elfcode.operations import Instruction
from elfcode.registers import DEFAULT_REGISTER_COUNT, Registers


class StepBudgetExceeded(Exception):
    """The program did not halt within the configured number of steps."""

    def __init__(self, steps: int, registers: Registers):
        super().__init__(f"Step budget exhausted after {steps} steps at {registers}")
        self.steps = steps
        self.registers = registers


@dataclass(frozen=True)
class Program:
    """An immutable instruction listing.

    `ip_register` is the register bound to the instruction pointer. A program
    without one is straight-line code: every instruction runs once, in order.
    """
    instructions: tuple[Instruction, ...]
    ip_register: Optional[int] = None

    def __post_init__(self) -> None:
        # Accept any sequence, store a tuple
        object.__setattr__(self, "instructions", tuple(self.instructions))

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self.instructions[index]

    def validate(self, register_count: int) -> None:
        """Raise MalformedInstruction for the first unrunnable instruction."""
        if self.ip_register is not None and not 0 <= self.ip_register < register_count:
            raise ValueError(
                f"ip register {self.ip_register} out of range (0..{register_count - 1})"
            )
        for line, instruction in enumerate(self.instructions):
            instruction.validate(register_count, line)

    def __str__(self) -> str:
        lines = [] if self.ip_register is None else [f"#ip {self.ip_register}"]
        lines.extend(str(instruction) for instruction in self.instructions)
        return "\n".join(lines) + "\n"


class ExecutionStatus(Enum):
    HALTED = "halted"     # instruction pointer left the program
    STOPPED = "stopped"   # the caller's `until` predicate matched


@dataclass
class ExecutionResult:
    """The result of running a program."""
    registers: Registers
    steps: int
    status: ExecutionStatus
    trace: list[dict[str, Any]] = field(default_factory=list)

    @property
    def halted(self) -> bool:
        return self.status == ExecutionStatus.HALTED

    def summary(self) -> str:
        lines = [
            f"Execution {self.status.value.upper()}",
            f"  Steps: {self.steps}",
            f"  Registers: {self.registers}",
        ]
        if self.trace:
            lines.append(f"  Trace entries: {len(self.trace)}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"<ExecutionResult: {self.status.value} steps={self.steps} {self.registers}>"


class Machine:
    """Fetch/decode/execute loop over a Program.

    Args:
        program: The program to run
        max_steps: Step budget; None runs until the program halts
        trace: Record one provenance entry per executed step
    """

    def __init__(
        self,
        program: Program,
        max_steps: Optional[int] = None,
        trace: bool = False,
    ) -> None:
        if max_steps is not None and max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {max_steps}")
        self._program = program
        self._max_steps = max_steps
        self._trace = trace

    @property
    def program(self) -> Program:
        return self._program

    def step(self, registers: Registers) -> Optional[Registers]:
        """Execute one instruction; None when the machine has halted."""
        ip_register = self._program.ip_register
        if ip_register is None:
            raise ValueError("step() needs a program with an ip register; use run()")
        ip = registers[ip_register]
        if not 0 <= ip < len(self._program):
            return None
        after = self._program[ip].execute(registers)
        return after.set(ip_register, after[ip_register] + 1)

    def states(self, registers: Registers) -> Iterator[Registers]:
        """Yield every register state after each step, until halt.

        Unbounded: the step budget does not apply here, the caller decides
        when to stop iterating.
        """
        if self._program.ip_register is None:
            for instruction in self._program.instructions:
                registers = instruction.execute(registers)
                yield registers
            return

        while True:
            nxt = self.step(registers)
            if nxt is None:
                return
            registers = nxt
            yield registers

    def run(
        self,
        registers: Registers,
        until: Optional[Callable[[Registers], bool]] = None,
    ) -> ExecutionResult:
        """Run until the program halts or `until(registers)` is true.

        `until` is checked after every step. Raises StepBudgetExceeded when
        the budget runs out first.
        """
        self._program.validate(len(registers))
        trace: list[dict[str, Any]] = []
        steps = 0
        ip_register = self._program.ip_register

        for after in self.states(registers):
            if self._max_steps is not None and steps >= self._max_steps:
                raise StepBudgetExceeded(steps, registers)
            steps += 1
            if self._trace:
                trace.append(self._log(steps, registers, after, ip_register))
            registers = after
            if until is not None and until(registers):
                return ExecutionResult(registers, steps, ExecutionStatus.STOPPED, trace)

        return ExecutionResult(registers, steps, ExecutionStatus.HALTED, trace)

    def _log(
        self,
        step: int,
        before: Registers,
        after: Registers,
        ip_register: Optional[int],
    ) -> dict[str, Any]:
        """Provenance entry for one executed instruction."""
        ip = before[ip_register] if ip_register is not None else step - 1
        return {
            "step": step,
            "ip": ip,
            "instruction": str(self._program[ip]),
            "before": before,
            "after": after,
        }

    def __repr__(self) -> str:
        budget = "unbounded" if self._max_steps is None else f"budget={self._max_steps}"
        return f"<Machine: {len(self._program)} instructions ip={self._program.ip_register} {budget}>"


def run_program(
    program: Program,
    registers: Optional[Registers] = None,
    max_steps: Optional[int] = None,
    register_count: int = DEFAULT_REGISTER_COUNT,
) -> Registers:
    """Convenience wrapper: run from `registers` (zeros by default) to halt."""
    if registers is None:
        registers = Registers.zeros(register_count)
    return Machine(program, max_steps=max_steps).run(registers).registers

