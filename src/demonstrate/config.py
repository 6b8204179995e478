"""Options for the generator and the Python emitter."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TeardownOrder(Enum):
    """Order in which inherited after-blocks run at the end of a unit."""

    LIFO = "lifo"  # innermost scope first
    FIFO = "fifo"  # outermost scope first


@dataclass(frozen=True)
class GenerateOptions:
    teardown_order: TeardownOrder = TeardownOrder.LIFO


@dataclass(frozen=True)
class EmitOptions:
    """
    Rendering choices for generated Python.

    The prefixes are prepended to scope and unit names so that pytest's default
    collection rules (``Test*`` classes, ``test*`` functions) pick them up.
    """

    indent: str = "    "
    class_prefix: str = "Test_"
    function_prefix: str = "test_"
    header: bool = True

    def __post_init__(self) -> None:
        if not self.indent or self.indent.strip():
            raise ValueError(f"indent must be non-empty whitespace, got {self.indent!r}")
        for prefix in (self.class_prefix, self.function_prefix):
            if prefix and not prefix.isidentifier():
                raise ValueError(f"name prefix must be a valid identifier start, got {prefix!r}")
