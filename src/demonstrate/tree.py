"""Shared helpers for working with the lark Tree/Token nodes of the output tree."""
from __future__ import annotations
from typing import List, Optional, TypeGuard

from lark import Token, Tree
from typing_extensions import TypeAlias

from .token_types import Tok


Node: TypeAlias = Tree | Token


def token_from(type_: str, value: str, origin: Optional[Tok] = None) -> Token:
    """Build an output Token, borrowing the position of a DSL token when given."""
    if origin is None:
        return Token(type_, value)
    return Token(type_, value,
                 start_pos=origin.start_pos, line=origin.line, column=origin.column,
                 end_pos=origin.end_pos)


def is_tree(node: Node) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: Node) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: Node) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: Node) -> List[Node]:
    if not is_tree(node):
        return []

    children = getattr(node, "children", None)
    if children is None:
        return []

    return list(children)

def child_by_label(node: Node, label: str) -> Optional[Node]:
    for ch in tree_children(node):
        if tree_label(ch) == label:
            return ch

    return None

def token_values(node: Optional[Node], type_: Optional[str] = None) -> List[str]:
    """Values of the direct Token children of node, optionally filtered by type."""
    if node is None:
        return []
    return [str(ch) for ch in tree_children(node) if is_token(ch) and (type_ is None or ch.type == type_)]

