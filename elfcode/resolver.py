"""
ElfCode Opcode Resolver

Recovers a hidden opcode -> operation mapping from observed executions.

Each Sample records a register state before an instruction, the instruction
with a numeric opcode, and the state after. The resolver:

1. Finds, per sample, the operations whose execution on `before`
   reproduces `after`.
2. Intersects those sets across every sample sharing an opcode.
3. Propagates constraints: an opcode with a single candidate is resolved and
   its operation is removed from every other opcode's candidates; repeat.

The candidate sets are held as a bipartite NetworkX graph (opcodes on one
side, operations on the other, an edge for every consistent pair), so
elimination is node removal. If propagation stalls with opcodes still
ambiguous, a maximum bipartite matching picks a consistent bijection.

Usage:
    mapping = resolve_opcodes(samples)
    program = decode(raw_instructions, mapping)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import networkx as nx

from elfcode.machine import Program
from elfcode.operations import ALL_OPERATIONS, Instruction, Operation
from elfcode.registers import RegisterIndexError, Registers


class OpcodeResolutionError(Exception):
    """No opcode -> operation bijection is consistent with the samples."""

    def __init__(self, message: str, candidates: Optional[dict[int, frozenset[Operation]]] = None):
        super().__init__(message)
        self.candidates = candidates or {}


@dataclass(frozen=True)
class Sample:
    """One observed execution: before, `opcode a b c`, after."""
    before: Registers
    opcode: int
    a: int
    b: int
    c: int
    after: Registers

    def matches(self, operation: Operation) -> bool:
        """Does `operation` turn `before` into `after`?

        An operation that would read or write a register the machine does
        not have cannot be the one that was observed.
        """
        try:
            return operation.apply(self.before, self.a, self.b, self.c) == self.after
        except RegisterIndexError:
            return False

    def __str__(self) -> str:
        return (
            f"Before: {self.before}\n"
            f"{self.opcode} {self.a} {self.b} {self.c}\n"
            f"After:  {self.after}\n"
        )


def candidates(
    sample: Sample,
    operations: Sequence[Operation] = ALL_OPERATIONS,
) -> frozenset[Operation]:
    """Operations consistent with a single sample."""
    return frozenset(op for op in operations if sample.matches(op))


def count_ambiguous(
    samples: Iterable[Sample],
    threshold: int = 3,
    operations: Sequence[Operation] = ALL_OPERATIONS,
) -> int:
    """Number of samples consistent with at least `threshold` operations."""
    return sum(1 for s in samples if len(candidates(s, operations)) >= threshold)


def candidate_graph(
    samples: Iterable[Sample],
    operations: Sequence[Operation] = ALL_OPERATIONS,
) -> nx.Graph:
    """Bipartite graph linking each opcode to every operation consistent
    with all of that opcode's samples."""
    by_opcode: dict[int, list[Sample]] = {}
    for sample in samples:
        by_opcode.setdefault(sample.opcode, []).append(sample)

    graph = nx.Graph()
    graph.add_nodes_from(operations, bipartite=1)
    for opcode, group in sorted(by_opcode.items()):
        graph.add_node(opcode, bipartite=0)
        for operation in operations:
            if all(sample.matches(operation) for sample in group):
                graph.add_edge(opcode, operation)
    return graph


def _opcodes(graph: nx.Graph) -> list[int]:
    return sorted(n for n, side in graph.nodes(data="bipartite") if side == 0)


def opcode_candidates(
    samples: Iterable[Sample],
    operations: Sequence[Operation] = ALL_OPERATIONS,
) -> dict[int, frozenset[Operation]]:
    """Per opcode, the intersection of its samples' candidate sets."""
    graph = candidate_graph(samples, operations)
    return {opcode: frozenset(graph.neighbors(opcode)) for opcode in _opcodes(graph)}


def resolve_opcodes(
    samples: Iterable[Sample],
    operations: Sequence[Operation] = ALL_OPERATIONS,
) -> dict[int, Operation]:
    """Resolve every observed opcode to a distinct operation.

    Raises OpcodeResolutionError when an opcode runs out of candidates or no
    bijection exists.
    """
    graph = candidate_graph(samples, operations)
    mapping: dict[int, Operation] = {}

    while True:
        remaining = _opcodes(graph)
        if not remaining:
            return mapping

        empty = [opcode for opcode in remaining if graph.degree(opcode) == 0]
        if empty:
            raise OpcodeResolutionError(
                f"No operation left for opcode(s) {empty}",
                {opcode: frozenset() for opcode in empty},
            )

        forced = next((opcode for opcode in remaining if graph.degree(opcode) == 1), None)
        if forced is None:
            break
        (operation,) = graph.neighbors(forced)
        mapping[forced] = operation
        graph.remove_nodes_from([forced, operation])

    # Propagation stalled: any perfect matching of what is left is consistent.
    remaining = _opcodes(graph)
    matching = nx.bipartite.hopcroft_karp_matching(graph, top_nodes=remaining)
    unmatched = [opcode for opcode in remaining if opcode not in matching]
    if unmatched:
        raise OpcodeResolutionError(
            f"No consistent assignment for opcode(s) {unmatched}",
            {opcode: frozenset(graph.neighbors(opcode)) for opcode in remaining},
        )
    for opcode in remaining:
        mapping[opcode] = matching[opcode]
    return mapping


def decode(
    raw: Iterable[tuple[int, int, int, int]],
    mapping: dict[int, Operation],
    ip_register: Optional[int] = None,
) -> Program:
    """Turn numeric `opcode a b c` rows into a Program using `mapping`."""
    instructions = []
    for line, (opcode, a, b, c) in enumerate(raw):
        if opcode not in mapping:
            raise OpcodeResolutionError(f"Opcode {opcode} (instruction {line}) is not resolved")
        instructions.append(Instruction(mapping[opcode], a, b, c))
    return Program(tuple(instructions), ip_register)
