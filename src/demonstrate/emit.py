"""
Python emitter for generated test trees.

Walks the output of generate() top-down and renders:
- test_module -> a module with a test-only header
- scope       -> class <class_prefix><name>: (attributes as decorators)
- test_unit   -> [async] def <function_prefix><name>(self?) [-> T]:
"""
from __future__ import annotations

from typing import List, Optional

from lark import Tree
from lark.visitors import Interpreter

from .config import EmitOptions
from .tree import token_values, tree_children

HEADER = "# Generated by demonstrate. Test-only module, do not import from library code."


class PythonEmitter(Interpreter):
    def __init__(self, options: Optional[EmitOptions] = None):
        self.options = options or EmitOptions()
        self.lines: List[str] = []
        self.depth = 0

    def render(self, tree: Tree) -> str:
        self.lines = []
        self.depth = 0
        self.visit(tree)
        return "\n".join(self.lines) + "\n"

    # ========================================================================
    # Node handlers
    # ========================================================================

    def test_module(self, tree: Tree) -> None:
        if self.options.header:
            self.write(HEADER)
        self._items(tree_children(tree), blank_lines=2)

    def scope(self, tree: Tree) -> None:
        name, attributes, items = tree.children
        self._decorators(attributes)
        self.write(f"class {self.options.class_prefix}{name}:")

        self.depth += 1
        children = tree_children(items)
        if children:
            self._items(children, blank_lines=1, leading=False)
        else:
            self.write("pass")
        self.depth -= 1

    def test_unit(self, tree: Tree) -> None:
        name, attributes, signature, body = tree.children
        self._decorators(attributes)

        return_type = token_values(signature, "RETURN_TYPE")
        is_async = bool(token_values(signature, "ASYNC"))

        prefix = "async def" if is_async else "def"
        params = "self" if self.depth > 0 else ""
        returns = f" -> {return_type[0]}" if return_type else ""
        self.write(f"{prefix} {self.options.function_prefix}{name}({params}){returns}:")

        self.depth += 1
        statements = token_values(body)
        for stmt in statements or ["pass"]:
            self.write(stmt)
        self.depth -= 1

    # ========================================================================
    # Helpers
    # ========================================================================

    def _items(self, items: list, blank_lines: int, leading: bool = True) -> None:
        for idx, item in enumerate(items):
            if idx > 0 or (leading and self.lines):
                self.lines.extend([""] * blank_lines)
            self.visit(item)

    def _decorators(self, attributes: Tree) -> None:
        for attr in token_values(attributes, "ATTRIBUTE"):
            self.write(f"@{attr}")

    def write(self, line: str) -> None:
        # Only the first physical line is indented; later lines continue a
        # string or bracket and are emitted as written. Blank lines stay blank.
        first, newline, rest = line.partition("\n")
        lead = self.options.indent * self.depth + first if first else ""
        self.lines.append(lead + newline + rest)


def emit(tree: Tree, options: Optional[EmitOptions] = None) -> str:
    """Render a generated test tree as Python source."""
    if tree.data != "test_module":
        raise ValueError(f"expected a test_module tree, got {tree.data!r}")
    return PythonEmitter(options).render(tree)
