"""
ElfCode Parse Results

Every parser invocation produces exactly one ParseOutcome:

    Success(position, value)  the parse matched; resume at `position`
    Failure(position)         the parse could not continue at `position`

Failure is plain data, never an exception. Combinators inspect `outcome.ok`
and propagate failures untouched until someone recovers (or_else, optional,
otherwise) or the top-level parse reports it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ParseOutcome:
    """Base class for Success and Failure."""

    __slots__ = ()

    position: int

    @property
    def ok(self) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class Success(ParseOutcome):
    """A successful parse.

    Attributes:
        position: Where the next parser should resume (>= the start position)
        value: The parsed value
    """
    position: int
    value: Any

    @property
    def ok(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"<Success @{self.position}: {self.value!r}>"


@dataclass(frozen=True)
class Failure(ParseOutcome):
    """A failed parse.

    `position` is diagnostic only: it may lie past the position the parser
    started from (e.g. the first mismatching character of a literal).
    """
    position: int

    @property
    def ok(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"<Failure @{self.position}>"
