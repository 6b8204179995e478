"""
Token Types for the demonstrate block DSL

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENT = auto()

    # Block keywords (contextual)
    DESCRIBE = auto()
    CONTEXT = auto()
    IT = auto()
    TEST = auto()
    BEFORE = auto()
    AFTER = auto()
    ASYNC = auto()

    # Signature
    ARROW = auto()  # ->

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    DOT = auto()
    COMMA = auto()
    AT = auto()
    PIPE = auto()  # | (type unions)

    # Anything else found inside statement bodies
    OP = auto()

    # Special
    EOF = auto()


# Keywords that open a block; anything else at block position is an error.
SCOPE_KEYWORDS = frozenset({TT.DESCRIBE, TT.CONTEXT})
UNIT_KEYWORDS = frozenset({TT.IT, TT.TEST})
HOOK_KEYWORDS = frozenset({TT.BEFORE, TT.AFTER})


@dataclass
class Tok:
    """Token with position info"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0
    start_pos: int = 0
    end_pos: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def is_word(self) -> bool:
        """True for identifiers and contextual keywords alike."""
        return isinstance(self.value, str) and self.value.isidentifier()
