from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from lark import Tree

from .config import EmitOptions, GenerateOptions, TeardownOrder
from .emit import emit
from .generate import generate
from .lexer_rd import LexError
from .parser_rd import ParseError, parse_source

logger = logging.getLogger(__name__)

EXPAND_ERRORS = (LexError, ParseError)


def expand_tree(src: str, generate_options: Optional[GenerateOptions]=None) -> Tree:
    """Parse block DSL source and return the generated test_module tree."""
    root = parse_source(src)
    return generate(root, generate_options)

def expand(src: str, generate_options: Optional[GenerateOptions]=None, emit_options: Optional[EmitOptions]=None) -> str:
    """
    Expand block DSL source into Python test source.

    Raises LexError or ParseError (with line/column) on the first problem; no
    output is produced in that case.
    """
    tree = expand_tree(src, generate_options)
    text = emit(tree, emit_options)
    logger.debug("emitted %d lines", text.count("\n"))
    return text

def format_diagnostic(exc: Union[LexError, ParseError], origin: str="<input>") -> str:
    kind = getattr(exc, "kind", type(exc).__name__)

    if exc.line is None:
        return f"{origin}: {kind}: {exc.message}"
    return f"{origin}:{exc.line}:{exc.column}: {kind}: {exc.message}"

def _load_source(arg: Optional[str]) -> tuple[str, str]:
    """
    Resolve CLI input into (origin, source text).
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return "<stdin>", data

    candidate = Path(arg)
    if candidate.exists():
        return str(candidate), candidate.read_text(encoding="utf-8")

    return "<input>", arg

def main(argv: Optional[list[str]]=None) -> int:
    teardown_order = TeardownOrder.LIFO
    emit_kwargs: dict = {}
    show_tree = False
    verbose = False
    arg = None
    it = iter(sys.argv[1:] if argv is None else argv)

    for token in it:
        if token == "--fifo-teardown":
            teardown_order = TeardownOrder.FIFO
            continue

        if token == "--tree":
            show_tree = True
            continue

        if token == "--verbose":
            verbose = True
            continue

        if token == "--no-header":
            emit_kwargs["header"] = False
            continue

        if token in ("--indent", "--class-prefix", "--function-prefix"):
            try:
                value = next(it)
            except StopIteration:
                raise SystemExit(f"{token} flag requires a value") from None

            if token == "--indent":
                width = int(value) if value.isascii() and value.isdigit() else 0
                if width < 1:
                    raise SystemExit(f"--indent expects a positive number, got {value!r}")
                emit_kwargs["indent"] = " " * width
            else:
                emit_kwargs[token[2:].replace("-", "_")] = value
            continue

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        emit_options = EmitOptions(**emit_kwargs)
    except ValueError as exc:
        raise SystemExit(str(exc)) from None

    origin, source = _load_source(arg or "-")
    generate_options = GenerateOptions(teardown_order=teardown_order)

    try:
        if show_tree:
            print(expand_tree(source, generate_options).pretty(), end="")
        else:
            print(expand(source, generate_options, emit_options), end="")
    except EXPAND_ERRORS as exc:
        print(format_diagnostic(exc, origin), file=sys.stderr)
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
