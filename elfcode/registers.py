"""
ElfCode Registers

A fixed-arity, immutable tuple of integer registers. Every write returns a
new Registers value, so the same `before` state can be fed to many candidate
operations without interference (see elfcode.resolver).

    regs = Registers(3, 1, 2, 0)
    regs[0]            # 3
    regs.set(2, 5)     # Registers(3, 1, 5, 0); `regs` is unchanged
    str(regs)          # "[3, 1, 2, 0]"
"""

from __future__ import annotations

from typing import Iterable, Iterator


DEFAULT_REGISTER_COUNT = 6


class RegisterIndexError(IndexError):
    """A register index outside 0..N-1. Always a programming error."""

    def __init__(self, index: int, count: int):
        super().__init__(f"Invalid register {index} (machine has {count} registers)")
        self.index = index
        self.count = count


class Registers:
    """Immutable register file."""

    __slots__ = ("_values",)

    def __init__(self, *values: int) -> None:
        if not values:
            raise ValueError("Registers needs at least one register")
        self._values = tuple(int(v) for v in values)

    @classmethod
    def zeros(cls, count: int = DEFAULT_REGISTER_COUNT) -> Registers:
        return cls(*([0] * count))

    @classmethod
    def of(cls, values: Iterable[int]) -> Registers:
        return cls(*values)

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self._values):
            raise RegisterIndexError(index, len(self._values))

    def __getitem__(self, index: int) -> int:
        self._check(index)
        return self._values[index]

    def set(self, index: int, value: int) -> Registers:
        """A copy with register `index` replaced by `value`."""
        self._check(index)
        values = list(self._values)
        values[index] = value
        return Registers(*values)

    @property
    def values(self) -> tuple[int, ...]:
        return self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Registers):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        return hash(self._values)

    def __str__(self) -> str:
        return "[" + ", ".join(str(v) for v in self._values) + "]"

    def __repr__(self) -> str:
        return f"Registers({', '.join(str(v) for v in self._values)})"
