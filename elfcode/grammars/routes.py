"""
ElfCode Route Grammar

Route expressions describe every path through a building as a regular
expression over compass directions, with nested alternation groups:

    ^ENWWW(NEEE|SSE(EE|N))$

A group whose last alternative is empty, e.g. `(NEWS|)`, means the detour
may be skipped. Groups nest without limit, which is why the grammar is a
fixed point.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from elfcode.combinators import Parser, char, fix_point, one_of


class Direction(Enum):
    NORTH = "N"
    SOUTH = "S"
    EAST = "E"
    WEST = "W"


@dataclass(frozen=True)
class Steps:
    """A run of plain directions."""
    directions: tuple[Direction, ...]

    def __str__(self) -> str:
        return "".join(d.value for d in self.directions)


@dataclass(frozen=True)
class Branch:
    """Alternatives; each alternative is a sequence of Steps and Branches."""
    options: tuple[tuple[Node, ...], ...]

    def __str__(self) -> str:
        return "(" + "|".join("".join(str(n) for n in option) for option in self.options) + ")"


Node = Union[Steps, Branch]


direction: Parser = one_of([
    char(d.value).becomes(d) for d in Direction
]).named("direction")

steps: Parser = direction.one_or_more().map(lambda ds: Steps(tuple(ds))).named("steps")


def _alternatives(group: Parser) -> Parser:
    node = steps | (char("(") >> group << char(")"))
    return (
        node.one_or_more().map(tuple)
        .one_or_more(char("|"))
        .then(lambda options: char("|").becomes(tuple(options) + ((),)).otherwise(tuple(options)))
    )


group: Parser = fix_point(lambda group: _alternatives(group).map(Branch)).named("group")

route: Parser = (char("^") >> group << char("$") << char("\n").optional()).named("route")


def render(branch: Branch) -> str:
    """Route text for a parsed route (the inverse of `route`)."""
    return "^" + str(branch)[1:-1] + "$"
