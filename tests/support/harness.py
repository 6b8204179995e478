from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

from lark import Tree

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from demonstrate.blocks import Root
from demonstrate.config import GenerateOptions
from demonstrate.generate import generate
from demonstrate.lexer_rd import LexError
from demonstrate.parser_rd import (
    DuplicateHook,
    DuplicateName,
    InvalidSignature,
    MissingIdentifier,
    ParseError,
    UnexpectedToken,
    UnterminatedBlock,
    parse_source,
)
from demonstrate.runner import expand
from demonstrate.tree import child_by_label, token_values, tree_children


def parse_pipeline(code: str) -> Root:
    """Run lex -> parse and return the block tree."""
    return parse_source(code)


def generate_pipeline(code: str, options: Optional[GenerateOptions] = None) -> Tree:
    """Run lex -> parse -> generate and return the test_module tree."""
    return generate(parse_source(code), options)


def _items(node: Tree) -> List[Tree]:
    if node.data == "test_module":
        return [ch for ch in tree_children(node) if isinstance(ch, Tree)]
    items = child_by_label(node, "items")
    assert items is not None, f"{node.data} has no items"
    return [ch for ch in tree_children(items) if isinstance(ch, Tree)]


def item_names(node: Tree) -> List[str]:
    """Names of the scopes/units directly inside a test_module or scope."""
    return [str(item.children[0]) for item in _items(node)]


def find_item(node: Tree, *path: str) -> Tree:
    """Follow scope/unit names from node, e.g. find_item(tree, "tests", "nested", "two")."""
    current = node
    for name in path:
        matches = [item for item in _items(current) if str(item.children[0]) == name]
        assert matches, f"no item {name!r} under {current.data}, have {item_names(current)}"
        current = matches[0]
    return current


def unit_body(unit: Tree) -> List[str]:
    assert unit.data == "test_unit", f"expected test_unit, got {unit.data}"
    return token_values(child_by_label(unit, "body"), "STATEMENT")


def unit_attributes(node: Tree) -> List[str]:
    return token_values(child_by_label(node, "attributes"), "ATTRIBUTE")


def unit_signature(unit: Tree) -> tuple[Optional[str], bool]:
    """(return type or None, is_async) of a generated unit."""
    signature = child_by_label(unit, "signature")
    return_type = token_values(signature, "RETURN_TYPE")
    return (return_type[0] if return_type else None, bool(token_values(signature, "ASYNC")))
