"""
ElfCode Built-in Grammars

Each grammar is a Parser assembled from elfcode.combinators.
"""

from elfcode.grammars.device import (
    instruction,
    program,
    raw_instruction,
    registers_literal,
    sample,
    sample_file,
)
from elfcode.grammars.json_value import document as json_document
from elfcode.grammars.routes import route

GRAMMARS = {
    "program": program,
    "samples": sample_file,
    "route": route,
    "json": json_document,
}

__all__ = [
    "GRAMMARS",
    "instruction",
    "program",
    "raw_instruction",
    "registers_literal",
    "sample",
    "sample_file",
    "json_document",
    "route",
]
