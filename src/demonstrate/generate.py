from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from lark import Token, Tree

from .blocks import Block, Body, Container, Root, Scope, SetupHook, Signature, TeardownHook, Unit, hooks_of
from .config import GenerateOptions, TeardownOrder
from .tree import token_from

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Context:
    """What a block inherits from its enclosing scopes."""

    setup_chain: Tuple[Body, ...] = ()
    teardown_chain: Tuple[Body, ...] = ()
    default_signature: Optional[Signature] = None

    def enter(self, container: Container, signature: Optional[Signature] = None) -> Context:
        """Context seen by the children of container."""
        setup, teardown = hooks_of(container)

        return Context(
            self.setup_chain + ((setup.body,) if setup is not None else ()),
            self.teardown_chain + ((teardown.body,) if teardown is not None else ()),
            signature if signature is not None else self.default_signature,
        )


def generate(root: Root, options: Optional[GenerateOptions] = None) -> Tree:
    """Expand a parsed block tree into a test_module output tree."""
    options = options or GenerateOptions()

    ctx = Context().enter(root)
    items = _generate_children(root.children, ctx, options)

    logger.debug("generated %d top-level items (teardown order %s)", len(items), options.teardown_order.value)
    return Tree("test_module", items)


def _generate_children(children: Iterable[Block], ctx: Context, options: GenerateOptions) -> List[Tree]:
    items: List[Tree] = []

    for child in children:
        match child:
            case Scope():
                items.append(_generate_scope(child, ctx, options))
            case Unit():
                items.append(_generate_unit(child, ctx, options))
            case SetupHook() | TeardownHook():
                # Folded into ctx by the parent.
                continue

    return items


def _generate_scope(scope: Scope, ctx: Context, options: GenerateOptions) -> Tree:
    inner = ctx.enter(scope, scope.signature)
    items = _generate_children(scope.children, inner, options)

    return Tree("scope", [
        token_from("NAME", scope.name, scope.token),
        _attributes(scope.attributes),
        Tree("items", items),
    ])


def _generate_unit(unit: Unit, ctx: Context, options: GenerateOptions) -> Tree:
    teardowns = ctx.teardown_chain
    if options.teardown_order is TeardownOrder.LIFO:
        teardowns = tuple(reversed(teardowns))

    statements = [
        *_flatten(ctx.setup_chain),
        *unit.body,
        *_flatten(teardowns),
    ]
    signature = unit.signature if unit.signature is not None else ctx.default_signature

    return Tree("test_unit", [
        token_from("NAME", unit.name, unit.token),
        _attributes(unit.attributes),
        _signature(signature),
        Tree("body", [Token("STATEMENT", stmt) for stmt in statements]),
    ])


def _flatten(bodies: Iterable[Body]) -> List[str]:
    return [stmt for body in bodies for stmt in body]


def _attributes(attributes: Tuple[str, ...]) -> Tree:
    return Tree("attributes", [Token("ATTRIBUTE", attr) for attr in attributes])


def _signature(signature: Optional[Signature]) -> Tree:
    children: List[Token] = []

    if signature is not None:
        if signature.return_type is not None:
            children.append(Token("RETURN_TYPE", signature.return_type))
        if signature.is_async:
            children.append(Token("ASYNC", "async"))

    return Tree("signature", children)
