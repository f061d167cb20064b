"""
ElfCode JSON Grammar

JSON values (RFC 8259) built from the combinators, parsed into plain Python
values: dict, list, str, int, float, True, False, None.

    parse_or_raise(document, '{"a": [1, 2.5, null]}')

Surrogate pairs in \\u escapes are decoded one code unit at a time.
"""

from __future__ import annotations

from elfcode.combinators import (
    Parser,
    char,
    fix_point,
    literal,
    one_of,
    one_of_chars,
    satisfy,
)
from elfcode.grammars.primitives import DIGITS, digits


whitespace = one_of_chars(" \t\n\r").zero_or_more().named("ws")


def token(parser: Parser) -> Parser:
    return parser << whitespace


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

_int_part = char("0") | (
    one_of_chars("123456789").then(lambda head:
        one_of_chars(DIGITS).zero_or_more().map(lambda tail: head + "".join(tail)))
)
_fraction = (char(".") >> digits).map(lambda d: "." + d)
_exponent = one_of_chars("eE").then(lambda e:
    one_of_chars("+-").otherwise("").then(lambda sign:
        digits.map(lambda d: e + sign + d)))

number: Parser = (
    char("-").otherwise("").then(lambda sign:
        _int_part.then(lambda whole:
            _fraction.otherwise("").then(lambda frac:
                _exponent.otherwise("").map(lambda exp:
                    float(sign + whole + frac + exp) if frac or exp else int(sign + whole)))))
    .named("number")
)


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------

_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_hex = one_of_chars("0123456789abcdefABCDEF")
_unicode_escape = char("u") >> _hex.then(lambda a:
    _hex.then(lambda b:
        _hex.then(lambda c:
            _hex.map(lambda d: chr(int(a + b + c + d, 16))))))

_escape = char("\\") >> (
    one_of_chars(_ESCAPES).map(_ESCAPES.__getitem__) | _unicode_escape
)
_plain = satisfy(lambda c: c not in '"\\' and c >= " ", "string_char")

string: Parser = (
    (char('"') >> (_plain | _escape).zero_or_more() << char('"'))
    .map("".join)
    .named("string")
)


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------

def _value(value: Parser) -> Parser:
    comma = token(char(","))
    member = token(string).then(lambda key:
        (token(char(":")) >> value).map(lambda v: (key, v)))
    obj = (token(char("{")) >> member.zero_or_more(comma) << char("}")).map(dict)
    array = token(char("[")) >> value.zero_or_more(comma) << char("]")
    return token(one_of([
        string,
        number,
        obj,
        array,
        literal("true").becomes(True),
        literal("false").becomes(False),
        literal("null").becomes(None),
    ]))


value: Parser = fix_point(_value).named("value")

document: Parser = (whitespace >> value).named("document")
