"""
Block tree produced by the parser.

Each node is an immutable record; parents own an ordered tuple of children.
Attributes, type expressions and statements are carried verbatim as text.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union
from typing_extensions import TypeAlias

from .token_types import Tok

Attribute: TypeAlias = str
Statement: TypeAlias = str
Body: TypeAlias = Tuple[Statement, ...]


@dataclass(frozen=True)
class Signature:
    """Return type and async marker of a generated test function."""
    return_type: Optional[str] = None
    is_async: bool = False


@dataclass(frozen=True)
class SetupHook:
    body: Body
    token: Optional[Tok] = field(default=None, compare=False)


@dataclass(frozen=True)
class TeardownHook:
    body: Body
    token: Optional[Tok] = field(default=None, compare=False)


@dataclass(frozen=True)
class Unit:
    name: str
    attributes: Tuple[Attribute, ...] = ()
    signature: Optional[Signature] = None
    body: Body = ()
    token: Optional[Tok] = field(default=None, compare=False)


@dataclass(frozen=True)
class Scope:
    name: str
    attributes: Tuple[Attribute, ...] = ()
    signature: Optional[Signature] = None
    children: Tuple[Block, ...] = ()
    token: Optional[Tok] = field(default=None, compare=False)


@dataclass(frozen=True)
class Root:
    children: Tuple[Block, ...] = ()


Block: TypeAlias = Union[Scope, Unit, SetupHook, TeardownHook]
Container: TypeAlias = Union[Root, Scope]


def hooks_of(container: Container) -> Tuple[Optional[SetupHook], Optional[TeardownHook]]:
    """Return the setup and teardown hook declared directly in container.

    The parser rejects a second hook of either kind, so finding one here is a
    parser defect rather than a user error.
    """
    setup: Optional[SetupHook] = None
    teardown: Optional[TeardownHook] = None

    for child in container.children:
        match child:
            case SetupHook():
                if setup is not None:
                    raise AssertionError("parser admitted a second setup hook")
                setup = child
            case TeardownHook():
                if teardown is not None:
                    raise AssertionError("parser admitted a second teardown hook")
                teardown = child

    return setup, teardown
