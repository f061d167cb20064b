"""
ElfCode Primitive Grammars

Numbers, whitespace and line structure shared by the other grammars.
"""

from __future__ import annotations

from elfcode.combinators import (
    Parser,
    char,
    end_of_input,
    one_of_chars,
)


DIGITS = "0123456789"

digit = one_of_chars(DIGITS).named("digit")
digits = digit.one_or_more().map("".join).named("digits")

natural = digits.map(int).named("natural")
integer = (
    char("-").optional()
    .then(lambda sign: digits.map(lambda d: -int(d) if sign else int(d)))
    .named("integer")
)

space = char(" ")
newline = char("\n")
spaces = one_of_chars(" \t").zero_or_more().named("spaces")
blank_lines = newline.zero_or_more().named("blank_lines")

# A line ends at a newline or at the end of the input.
line_end = (newline | end_of_input()).named("line_end")

comma = (char(",") << spaces).named("comma")


def line(parser: Parser) -> Parser:
    """`parser` followed by the end of the line."""
    return parser << line_end
