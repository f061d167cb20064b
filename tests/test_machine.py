"""
ElfCode Machine Test Suite

Tests the register machine:
1. Registers (immutability, bounds, rendering)
2. Operations (semantics of all sixteen, operand modes)
3. Instructions (validation)
4. Programs and the run loop (halting, budgets, until, trace)
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from elfcode import (
    ExecutionStatus,
    Instruction,
    Machine,
    MalformedInstruction,
    OperandMode,
    Operation,
    Program,
    RegisterIndexError,
    Registers,
    StepBudgetExceeded,
    parse_or_raise,
    run_program,
)
from elfcode.grammars import program as program_grammar
from elfcode.operations import addr, eqri, gtir


def load(source):
    return parse_or_raise(program_grammar, source)


# The listing that sets r1, r2 and r5 and halts at ip 7.
EXAMPLE = """\
#ip 0
seti 5 0 1
seti 6 0 2
addi 0 1 0
addr 1 2 3
setr 1 0 0
seti 8 0 4
seti 9 0 5
"""

# r0 counts up forever: addi 0 1 0, then jump back to 0.
COUNTER = """\
#ip 1
addi 0 1 0
seti -1 0 1
"""


# --- 1. Registers ---

def test_registers_read_and_set():
    before = Registers(3, 1, 2, 0)
    after = before.set(2, 5)
    assert after == Registers(3, 1, 5, 0)
    assert before == Registers(3, 1, 2, 0)
    assert after[2] == 5
    assert len(after) == 4


def test_registers_bounds():
    registers = Registers(1, 2)
    with pytest.raises(RegisterIndexError):
        registers[2]
    with pytest.raises(RegisterIndexError):
        registers[-1]
    with pytest.raises(RegisterIndexError):
        registers.set(5, 0)


def test_registers_rendering_and_hashing():
    registers = Registers(3, 1, 2, 0)
    assert str(registers) == "[3, 1, 2, 0]"
    assert repr(registers) == "Registers(3, 1, 2, 0)"
    assert {registers, Registers.of([3, 1, 2, 0])} == {registers}
    assert Registers.zeros(4) == Registers(0, 0, 0, 0)
    assert list(Registers.zeros()) == [0] * 6


def test_registers_need_at_least_one():
    with pytest.raises(ValueError):
        Registers()


# --- 2. Operations ---

def test_operation_examples():
    assert addr(Registers(3, 1, 2, 0), 0, 1, 2) == Registers(3, 1, 4, 0)
    assert eqri(Registers(5, 0, 0, 0), 0, 5, 1) == Registers(5, 1, 0, 0)
    assert gtir(Registers(2, 0, 0, 0), 5, 0, 1) == Registers(2, 1, 0, 0)


# Every operation applied to [3, 2, 1, 1] with a=2 b=1 c=2
EXPECTED_R2 = {
    Operation.ADDR: 3,
    Operation.ADDI: 2,
    Operation.MULR: 2,
    Operation.MULI: 1,
    Operation.BANR: 0,
    Operation.BANI: 1,
    Operation.BORR: 3,
    Operation.BORI: 1,
    Operation.SETR: 1,
    Operation.SETI: 2,
    Operation.GTIR: 0,
    Operation.GTRI: 0,
    Operation.GTRR: 0,
    Operation.EQIR: 1,
    Operation.EQRI: 1,
    Operation.EQRR: 0,
}


def test_all_sixteen_operations():
    before = Registers(3, 2, 1, 1)
    assert set(EXPECTED_R2) == set(Operation)
    for operation, value in EXPECTED_R2.items():
        after = operation.apply(before, 2, 1, 2)
        assert after == Registers(3, 2, value, 1), operation
    assert before == Registers(3, 2, 1, 1)


def test_operand_modes():
    assert Operation.SETI.modes == (OperandMode.IMMEDIATE, OperandMode.IGNORED)
    assert Operation.GTIR.modes == (OperandMode.IMMEDIATE, OperandMode.REGISTER)
    assert Operation.ADDI.modes == (OperandMode.REGISTER, OperandMode.IMMEDIATE)
    assert Operation.EQRR.modes == (OperandMode.REGISTER, OperandMode.REGISTER)


def test_from_mnemonic():
    assert Operation.from_mnemonic("borr") is Operation.BORR
    with pytest.raises(ValueError, match="Unknown operation"):
        Operation.from_mnemonic("jmp")


def test_register_operand_out_of_range_raises():
    with pytest.raises(RegisterIndexError):
        Operation.ADDR.apply(Registers(0, 0), 0, 7, 1)


# --- 3. Instructions ---

def test_instruction_execute_and_str():
    instruction = Instruction(Operation.MULI, 1, 4, 0)
    assert instruction.execute(Registers(0, 3)) == Registers(12, 3)
    assert str(instruction) == "muli 1 4 0"


def test_instruction_validate():
    Instruction(Operation.ADDI, 0, 7, 1).validate(4)  # b is immediate
    Instruction(Operation.SETI, 99, 99, 3).validate(4)
    with pytest.raises(MalformedInstruction):
        Instruction(Operation.ADDR, 0, 7, 1).validate(4)
    with pytest.raises(MalformedInstruction):
        Instruction(Operation.SETI, 0, 0, 4).validate(4)
    with pytest.raises(MalformedInstruction, match="instruction 3"):
        Instruction(Operation.GTIR, 0, -1, 0).validate(4, line=3)


# --- 4. Programs and the run loop ---

def test_example_program_halts():
    result = Machine(load(EXAMPLE)).run(Registers.zeros(6))
    assert result.halted
    assert result.status == ExecutionStatus.HALTED
    assert result.registers == Registers(7, 5, 6, 0, 0, 9)
    assert result.steps == 5


def test_jump_out_of_program_halts():
    program = Program((
        Instruction(Operation.SETI, 0, 0, 1),
        Instruction(Operation.ADDI, 1, 5, 1),
    ), ip_register=1)
    result = Machine(program).run(Registers.zeros(4))
    assert result.registers == Registers(0, 7, 0, 0)
    assert result.steps == 2


def test_step():
    machine = Machine(load(COUNTER))
    after = machine.step(Registers(0, 0))
    assert after == Registers(1, 1)
    assert machine.step(Registers(0, 2)) is None
    assert machine.step(Registers(0, -1)) is None


def test_step_budget():
    machine = Machine(load(COUNTER), max_steps=10)
    with pytest.raises(StepBudgetExceeded) as info:
        machine.run(Registers(0, 0))
    assert info.value.steps == 10
    assert info.value.registers == Registers(5, 0)


def test_budget_equal_to_halting_steps_is_enough():
    result = Machine(load(EXAMPLE), max_steps=5).run(Registers.zeros(6))
    assert result.halted


def test_negative_budget_rejected():
    with pytest.raises(ValueError):
        Machine(load(EXAMPLE), max_steps=-1)


def test_until_stops_the_run():
    result = Machine(load(COUNTER), max_steps=1000).run(
        Registers(0, 0), until=lambda registers: registers[0] == 3
    )
    assert result.status == ExecutionStatus.STOPPED
    assert not result.halted
    assert result.steps == 5
    assert result.registers == Registers(3, 1)


def test_states_is_lazy():
    states = Machine(load(COUNTER)).states(Registers(0, 0))
    first = [next(states) for _ in range(4)]
    assert first == [Registers(1, 1), Registers(1, 0), Registers(2, 1), Registers(2, 0)]


def test_trace():
    result = Machine(load(EXAMPLE), trace=True).run(Registers.zeros(6))
    assert len(result.trace) == result.steps
    first = result.trace[0]
    assert first["step"] == 1
    assert first["ip"] == 0
    assert first["instruction"] == "seti 5 0 1"
    assert first["before"] == Registers.zeros(6)
    assert [entry["ip"] for entry in result.trace] == [0, 1, 2, 4, 6]
    assert "Trace entries: 5" in result.summary()


def test_no_trace_by_default():
    assert Machine(load(EXAMPLE)).run(Registers.zeros(6)).trace == []


def test_straight_line_program():
    program = load("seti 3 0 0\nseti 4 0 1\nmulr 0 1 2\naddr 2 0 3\n")
    result = Machine(program, trace=True).run(Registers.zeros(4))
    assert result.registers == Registers(3, 4, 12, 15)
    assert result.steps == 4
    assert [entry["ip"] for entry in result.trace] == [0, 1, 2, 3]
    with pytest.raises(ValueError):
        Machine(program).step(Registers.zeros(4))


def test_run_validates_before_executing():
    program = load("#ip 0\nseti 1 0 5\n")
    with pytest.raises(MalformedInstruction):
        Machine(program).run(Registers.zeros(4))
    with pytest.raises(ValueError, match="ip register"):
        Machine(load("#ip 9\nseti 1 0 0\n")).run(Registers.zeros(4))


def test_run_program_defaults_to_six_zeros():
    assert run_program(load(EXAMPLE)) == Registers(7, 5, 6, 0, 0, 9)


def test_program_str():
    assert str(load(COUNTER)) == COUNTER
