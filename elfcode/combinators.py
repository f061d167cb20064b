"""
ElfCode Parser Combinators

A parser is a pure function (source, position) -> ParseOutcome, wrapped in a
Parser object so grammars read left to right:

    register = char("[") >> natural.one_or_more(comma) << char("]")

`source` is any indexable sequence: a str for text grammars, or a list/tuple
of tokens. Positions are returned, never mutated; backtracking is simply
retrying from the position you started with.

Primitives:    literal, one_of_chars, char / token, satisfy, lift, end_of_input
Combinators:   sequence, or_else, one_of, zero_or_more, one_or_more,
               keep_left, keep_right, map_value, becomes, optional, otherwise,
               fix_point
Top level:     parse (outcome, trailing input is a failure), parse_or_raise
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, Sequence

from elfcode.result import Failure, ParseOutcome, Success


ParseFn = Callable[[Sequence[Any], int], ParseOutcome]


class ParseError(Exception):
    """Raised by parse_or_raise when the input does not match the grammar."""

    def __init__(self, message: str, position: int, line: int, col: int):
        super().__init__(f"Line {line}, Col {col}: {message}")
        self.position = position
        self.line = line
        self.col = col


class Parser:
    """A composable parser.

    Calling a Parser runs it: `parser(source, position)` returns a Success or
    Failure. The methods below are the fluent spelling of the module-level
    combinators and never mutate `self`.
    """

    __slots__ = ("_fn", "name")

    def __init__(self, fn: ParseFn, name: str = "") -> None:
        self._fn = fn
        self.name = name

    def __call__(self, source: Sequence[Any], position: int = 0) -> ParseOutcome:
        return self._fn(source, position)

    def parse(self, source: Sequence[Any]) -> ParseOutcome:
        """Parse the entire source. See the module-level `parse`."""
        return parse(self, source)

    def then(self, f: Callable[[Any], Parser]) -> Parser:
        return sequence(self, f)

    def or_else(self, other: Parser) -> Parser:
        return or_else(self, other)

    def map(self, f: Callable[[Any], Any]) -> Parser:
        return map_value(self, f)

    def becomes(self, value: Any) -> Parser:
        return becomes(self, value)

    def keep_left(self, other: Parser) -> Parser:
        return keep_left(self, other)

    def keep_right(self, other: Parser) -> Parser:
        return keep_right(self, other)

    def zero_or_more(self, separator: Optional[Parser] = None) -> Parser:
        return zero_or_more(self, separator)

    def one_or_more(self, separator: Optional[Parser] = None) -> Parser:
        return one_or_more(self, separator)

    def optional(self) -> Parser:
        return optional(self)

    def otherwise(self, default: Any) -> Parser:
        return otherwise(self, default)

    def named(self, name: str) -> Parser:
        """Same parser, new display name (for reprs and debugging)."""
        return Parser(self._fn, name)

    def __or__(self, other: Parser) -> Parser:
        return or_else(self, other)

    def __rshift__(self, other: Parser) -> Parser:
        return keep_right(self, other)

    def __lshift__(self, other: Parser) -> Parser:
        return keep_left(self, other)

    def __repr__(self) -> str:
        return f"<Parser {self.name or '?'}>"


# ============================================================================
# Primitives
# ============================================================================

def literal(expected: Sequence[Any]) -> Parser:
    """Match `expected` exactly; the value is `expected` itself.

    Fails at the offset of the first mismatching (or missing) element.
    """
    size = len(expected)

    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        for i in range(size):
            j = position + i
            if j >= len(source) or source[j] != expected[i]:
                return Failure(j)
        return Success(position + size, expected)

    return Parser(run, f"literal({expected!r})")


def satisfy(predicate: Callable[[Any], bool], name: str = "satisfy") -> Parser:
    """Consume one element for which `predicate` holds."""

    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        if position >= len(source):
            return Failure(position)
        element = source[position]
        if predicate(element):
            return Success(position + 1, element)
        return Failure(position)

    return Parser(run, name)


def one_of_chars(chars: Iterable[Any]) -> Parser:
    """Consume one element that is a member of `chars`."""
    allowed = frozenset(chars)
    return satisfy(allowed.__contains__, f"one_of_chars({''.join(sorted(map(str, allowed)))!r})")


def char(c: Any) -> Parser:
    """Consume exactly the element `c`."""
    return satisfy(lambda element: element == c, f"char({c!r})")


# Token grammars read better with this name.
token = char


def lift(value: Any) -> Parser:
    """Zero-width parser that always succeeds with `value`."""
    return Parser(lambda source, position: Success(position, value), f"lift({value!r})")


def end_of_input() -> Parser:
    """Zero-width parser that succeeds only at the end of the source."""

    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        if position >= len(source):
            return Success(position, None)
        return Failure(position)

    return Parser(run, "end_of_input")


# ============================================================================
# Combinators
# ============================================================================

def sequence(parser: Parser, f: Callable[[Any], Parser]) -> Parser:
    """Monadic bind: run `parser`, feed its value to `f`, run the result.

    On failure `f` is never called.
    """

    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        outcome = parser(source, position)
        if not outcome.ok:
            return outcome
        return f(outcome.value)(source, outcome.position)

    return Parser(run, f"{parser.name}.then")


def or_else(first: Parser, second: Parser) -> Parser:
    """Try `first`; on failure retry `second` from the original position."""
    return one_of([first, second])


def one_of(parsers: Sequence[Parser]) -> Parser:
    """First alternative to succeed wins; alternatives are tried in order.

    When every alternative fails, the failure reports the furthest position
    any of them reached.
    """
    alternatives = tuple(parsers)

    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        furthest = position
        for alternative in alternatives:
            outcome = alternative(source, position)
            if outcome.ok:
                return outcome
            furthest = max(furthest, outcome.position)
        return Failure(furthest)

    return Parser(run, " | ".join(p.name or "?" for p in alternatives))


def _repeat(parser: Parser, separator: Optional[Parser], at_least_one: bool) -> Parser:
    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        first = parser(source, position)
        if not first.ok:
            return first if at_least_one else Success(position, [])

        values = [first.value]
        current = first.position
        if separator is None and current == position:
            return Success(current, values)

        while True:
            cursor = current
            if separator is not None:
                sep = separator(source, cursor)
                if not sep.ok:
                    break
                cursor = sep.position
            item = parser(source, cursor)
            # a round that consumed nothing ends the repetition
            if not item.ok or item.position == current:
                break
            values.append(item.value)
            current = item.position

        return Success(current, values)

    return run


def zero_or_more(parser: Parser, separator: Optional[Parser] = None) -> Parser:
    """Apply `parser` until it fails, collecting values into a list.

    Always succeeds. With a `separator`, elements must be separated by it and
    a trailing separator with no element after it is left unconsumed.
    """
    return Parser(_repeat(parser, separator, False), f"zero_or_more({parser.name})")


def one_or_more(parser: Parser, separator: Optional[Parser] = None) -> Parser:
    """Like zero_or_more, but fails when the first element does."""
    return Parser(_repeat(parser, separator, True), f"one_or_more({parser.name})")


def keep_left(left: Parser, right: Parser) -> Parser:
    """Run both; keep the value of `left`."""

    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        first = left(source, position)
        if not first.ok:
            return first
        second = right(source, first.position)
        if not second.ok:
            return second
        return Success(second.position, first.value)

    return Parser(run, f"{left.name} << {right.name}")


def keep_right(left: Parser, right: Parser) -> Parser:
    """Run both; keep the value of `right`."""

    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        first = left(source, position)
        if not first.ok:
            return first
        return right(source, first.position)

    return Parser(run, f"{left.name} >> {right.name}")


def map_value(parser: Parser, f: Callable[[Any], Any]) -> Parser:
    """Transform a successful value through `f`."""

    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        outcome = parser(source, position)
        if not outcome.ok:
            return outcome
        return Success(outcome.position, f(outcome.value))

    return Parser(run, parser.name)


def becomes(parser: Parser, value: Any) -> Parser:
    """On success, replace the parsed value with `value`."""
    return map_value(parser, lambda _: value).named(f"{parser.name} -> {value!r}")


def otherwise(parser: Parser, default: Any) -> Parser:
    """Succeed with `default`, consuming nothing, when `parser` fails."""

    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        outcome = parser(source, position)
        if outcome.ok:
            return outcome
        return Success(position, default)

    return Parser(run, f"{parser.name}?")


def optional(parser: Parser) -> Parser:
    """The parsed value, or None (consuming nothing) when `parser` fails."""
    return otherwise(parser, None)


def fix_point(f: Callable[[Parser], Parser]) -> Parser:
    """Build a recursive parser.

    `f` receives a stand-in for the parser being defined and returns its
    body. The stand-in is tied to the body on first use, so `f` may pass it
    straight to other combinators.
    """
    body: list[Parser] = []

    def run(source: Sequence[Any], position: int) -> ParseOutcome:
        if not body:
            body.append(f(recursive))
        return body[0](source, position)

    recursive = Parser(run, "fix_point")
    return recursive


# ============================================================================
# Top level
# ============================================================================

def parse(parser: Parser, source: Sequence[Any]) -> ParseOutcome:
    """Run `parser` over the whole of `source` starting at position 0.

    A success that leaves input unconsumed is turned into a Failure at the
    first unconsumed position.
    """
    outcome = parser(source, 0)
    if outcome.ok and outcome.position != len(source):
        return Failure(outcome.position)
    return outcome


def locate(source: Sequence[Any], position: int) -> tuple[int, int]:
    """(line, col) of `position`; lines count from 1, columns from 0.

    Token sequences have no lines, so they report line 1 and the position.
    """
    if not isinstance(source, str):
        return 1, position
    line = source.count("\n", 0, position) + 1
    col = position - (source.rfind("\n", 0, position) + 1)
    return line, col


def parse_or_raise(parser: Parser, source: Sequence[Any], what: str = "input") -> Any:
    """Parse the whole of `source` and return the value, or raise ParseError."""
    outcome = parse(parser, source)
    if outcome.ok:
        return outcome.value
    line, col = locate(source, outcome.position)
    if outcome.position >= len(source):
        message = f"Unexpected end of {what}"
    else:
        message = f"Cannot parse {what} at {source[outcome.position]!r}"
    raise ParseError(message, outcome.position, line, col)
