"""
Recursive Descent Parser for the demonstrate block DSL

Grammar:
    root          := block* EOF
    block         := scope_block | unit_block | setup_hook | teardown_hook
    scope_block   := attribute* ('describe'|'context') NAME signature? '{' block* '}'
    unit_block    := attribute* ('it'|'test') NAME signature? '{' statement* '}'
    setup_hook    := 'before' '{' statement* '}'
    teardown_hook := 'after' '{' statement* '}'
    signature     := '->' type_expr 'async'? | 'async'
    attribute     := '@' dotted_name ('(' ... ')')?
    type_expr     := type_atom ('|' type_atom)*
    type_atom     := dotted_name ('[' ... ']')? | STRING | NUMBER

Structure:
- Lexer: Token stream from source
- Parser: one method per rule, fail-fast on the first error
- Statement bodies, attributes and type expressions are sliced verbatim out
  of the source text; they are never interpreted here
"""

import keyword
import logging
from typing import List, Optional, Sequence, Set, Tuple

from .blocks import Attribute, Block, Body, Root, Scope, SetupHook, Signature, TeardownHook, Unit
from .token_types import HOOK_KEYWORDS, SCOPE_KEYWORDS, TT, Tok, UNIT_KEYWORDS

logger = logging.getLogger(__name__)

# ============================================================================
# Errors
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

    @property
    def kind(self) -> str:
        return type(self).__name__


class UnexpectedToken(ParseError):
    """A token that cannot start or continue the construct being parsed."""


class UnterminatedBlock(ParseError):
    """An opening bracket whose match never arrives; reported at the opener."""


class MissingIdentifier(ParseError):
    """describe/context/it/test not followed by a usable name."""


class DuplicateHook(ParseError):
    """A second before/after among the direct children of one block."""


class DuplicateName(ParseError):
    """Two sibling scopes/units sharing a name."""


class InvalidSignature(ParseError):
    """'->' not followed by a well-formed type expression."""


# ============================================================================
# Parser
# ============================================================================

class Parser:
    """Recursive descent parser for the block DSL."""

    def __init__(self, tokens: List[Tok], source: str):
        self.tokens = tokens
        self.source = source
        self.pos = 0
        self.current = tokens[0] if tokens else Tok(TT.EOF, None, 0, 0)
        self.last = self.current

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return Tok(TT.EOF, None, 0, 0)

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.pos += 1
        if self.pos < len(self.tokens):
            self.current = self.tokens[self.pos]
        else:
            self.current = Tok(TT.EOF, None, 0, 0)
        self.last = prev
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"Expected {token_type.name}, got {describe_token(self.current)}"
            raise UnexpectedToken(msg, self.current)
        return self.advance()

    def text_from(self, start: Tok) -> str:
        """Source text from start up to the end of the last consumed token."""
        return self.source[start.start_pos:self.last.end_pos]

    # ========================================================================
    # Blocks
    # ========================================================================

    def parse(self) -> Root:
        """Parse an entire block file"""
        children = self.parse_blocks(opener=None)
        self.expect(TT.EOF)
        return Root(children)

    def parse_blocks(self, opener: Optional[Tok]) -> Tuple[Block, ...]:
        """
        Parse sibling blocks up to the closing brace of opener (or EOF at top
        level), enforcing the per-level hook and name rules.
        """
        blocks: List[Block] = []
        names: Set[str] = set()
        seen_setup = False
        seen_teardown = False

        while True:
            if self.check(TT.EOF):
                if opener is not None:
                    raise UnterminatedBlock("Unterminated block: missing '}'", opener)
                break
            if self.check(TT.RBRACE):
                if opener is None:
                    raise UnexpectedToken("Unmatched '}'", self.current)
                break

            start = self.current
            block = self.parse_block()

            match block:
                case SetupHook():
                    if seen_setup:
                        raise DuplicateHook("Only one before block is allowed per scope", start)
                    seen_setup = True
                case TeardownHook():
                    if seen_teardown:
                        raise DuplicateHook("Only one after block is allowed per scope", start)
                    seen_teardown = True
                case Scope(name=name) | Unit(name=name):
                    if name in names:
                        raise DuplicateName(f"'{name}' is already defined in this scope", block.token)
                    names.add(name)

            blocks.append(block)

        return tuple(blocks)

    def parse_block(self) -> Block:
        attributes = self.parse_attributes()

        if self.current.type in SCOPE_KEYWORDS:
            return self.parse_scope(attributes)
        if self.current.type in UNIT_KEYWORDS:
            return self.parse_unit(attributes)
        if self.current.type in HOOK_KEYWORDS:
            if attributes:
                raise UnexpectedToken(
                    f"Attributes cannot be applied to {self.current.value} blocks", self.current
                )
            return self.parse_hook()

        raise UnexpectedToken(
            f"Expected describe, context, it, test, before or after, got {describe_token(self.current)}",
            self.current,
        )

    def parse_scope(self, attributes: Tuple[Attribute, ...]) -> Scope:
        """describe/context NAME signature? { block* }"""
        kw = self.advance()
        name = self.parse_name(kw)
        signature = self.parse_signature()
        lbrace = self.expect(TT.LBRACE, f"Expected '{{' to open {kw.value} {name.value}")
        children = self.parse_blocks(opener=lbrace)
        self.expect(TT.RBRACE)

        return Scope(name.value, attributes, signature, children, token=name)

    def parse_unit(self, attributes: Tuple[Attribute, ...]) -> Unit:
        """it/test NAME signature? { statement* }"""
        kw = self.advance()
        name = self.parse_name(kw)
        signature = self.parse_signature()
        body = self.parse_body(f"{kw.value} {name.value}")

        return Unit(name.value, attributes, signature, body, token=name)

    def parse_hook(self) -> Block:
        """before { statement* } | after { statement* }"""
        kw = self.advance()
        body = self.parse_body(kw.value)

        if kw.type == TT.BEFORE:
            return SetupHook(body, token=kw)
        return TeardownHook(body, token=kw)

    # ========================================================================
    # Names, Attributes, Signatures
    # ========================================================================

    def parse_name(self, kw: Tok) -> Tok:
        """Identifier following a block keyword. Block keywords are allowed as names."""
        tok = self.current
        if not tok.is_word or keyword.iskeyword(tok.value):
            raise MissingIdentifier(
                f"Expected a name after '{kw.value}', got {describe_token(tok)}", tok
            )
        return self.advance()

    def parse_dotted_name(self, message: str) -> Tok:
        """NAME ('.' NAME)*, returning the first token."""
        first = self.current
        if not first.is_word:
            raise UnexpectedToken(f"{message}, got {describe_token(first)}", first)
        self.advance()

        while self.check(TT.DOT) and self.peek(1).is_word:
            self.advance()
            self.advance()

        return first

    def parse_attributes(self) -> Tuple[Attribute, ...]:
        """
        Zero or more decorator-style attributes, e.g. @pytest.mark.skip(reason="x").
        Captured verbatim without the leading '@'.
        """
        attributes: List[Attribute] = []

        while self.check(TT.AT):
            self.advance()
            start = self.parse_dotted_name("Expected attribute name after '@'")
            if self.check(TT.LPAR):
                self.skip_balanced(TT.LPAR, TT.RPAR)
            attributes.append(self.text_from(start))

        return tuple(attributes)

    def parse_signature(self) -> Optional[Signature]:
        """'->' type_expr 'async'? | 'async'"""
        if self.match(TT.ASYNC):
            return Signature(None, True)

        if not self.check(TT.ARROW):
            return None

        arrow = self.advance()
        return_type = self.parse_type_expr(arrow)
        is_async = self.match(TT.ASYNC)
        return Signature(return_type, is_async)

    def parse_type_expr(self, arrow: Tok) -> str:
        start = self.current
        self.parse_type_atom(arrow)

        while self.match(TT.PIPE):
            self.parse_type_atom(arrow)

        return self.text_from(start)

    def parse_type_atom(self, arrow: Tok) -> None:
        tok = self.current

        if self.match(TT.STRING, TT.NUMBER):
            return

        if not tok.is_word or (keyword.iskeyword(tok.value) and tok.value != 'None'):
            raise InvalidSignature(
                f"Expected a return type after '->', got {describe_token(tok)}",
                tok if tok.type != TT.EOF else arrow,
            )

        self.parse_dotted_name("Expected a return type")
        if self.check(TT.LSQB):
            self.skip_balanced(TT.LSQB, TT.RSQB)

    # ========================================================================
    # Statement Bodies
    # ========================================================================

    def parse_body(self, owner: str) -> Body:
        """'{' statement* '}' with the statements sliced from the source."""
        lbrace = self.expect(TT.LBRACE, f"Expected '{{' to open {owner}")
        first = self.pos
        rbrace = self.skip_balanced(TT.LBRACE, TT.RBRACE, opener=lbrace)
        # columns are 1-based, so the brace column is where the body text starts
        return split_statements(
            self.source[lbrace.end_pos:rbrace.start_pos],
            tokens=self.tokens[first:self.pos - 1],
            base=lbrace.end_pos,
            head_column=lbrace.column,
        )

    def skip_balanced(self, open_type: TT, close_type: TT, opener: Optional[Tok] = None) -> Tok:
        """
        Consume tokens up to the bracket matching opener and return the closing
        token. Strings are single tokens, so brackets inside them are ignored.
        """
        if opener is None:
            opener = self.expect(open_type)
        depth = 1

        while True:
            if self.check(TT.EOF):
                raise UnterminatedBlock(f"Unterminated '{opener.value}'", opener)
            tok = self.advance()
            if tok.type == open_type:
                depth += 1
            elif tok.type == close_type:
                depth -= 1
                if depth == 0:
                    return tok


def split_statements(text: str, tokens: Optional[Sequence[Tok]] = None, base: int = 0, head_column: int = 0) -> Body:
    """
    Split a statement body into statements with the common indentation removed.

    Each statement is one source line. A line that starts inside a multi-line
    string token is glued, verbatim, onto the statement before it, so string
    contents are never re-indented; the margin is measured on statement-start
    lines only.

    A first statement written on the brace line sits at its source column
    (head_column is the 0-based column where text begins). Lines after it keep
    their indentation relative to that column. When they are indented less,
    the head is taken as a simple statement at their level; a head that opens
    a block with ':' cannot be placed and is an error.

    tokens are the lexed tokens of text, with offsets relative to base; they
    are produced here when not supplied.
    """
    if tokens is None:
        from .lexer_rd import tokenize
        tokens = [tok for tok in tokenize(text) if tok.type != TT.EOF]

    inside = _string_line_starts(tokens, base)

    groups: List[List[str]] = []
    offset = 0
    for raw in text.split("\n"):
        if offset in inside and groups:
            groups[-1].append(raw)
        else:
            groups.append([raw])
        offset += len(raw) + 1

    head_line = groups[0][0]
    head = groups.pop(0) if head_line.strip() else None
    if head is None:
        groups.pop(0)

    starts = [group[0] for group in groups if group[0].strip()]
    margin = min((_indent_of(line) for line in starts), default=None)

    head_col = head_column + _indent_of(head_line)
    if head is not None and margin is not None and head_col > margin:
        colon = _block_opener(tokens, base, len(head_line))
        if colon is not None:
            raise UnexpectedToken(
                "Lines after a block opened on the '{' line must be indented past it", colon
            )
        head_col = margin
    if head is not None:
        # the head sits at the margin; lines below are placed relative to it
        margin = head_col if margin is None else min(margin, head_col)

    statements: List[str] = []
    if head is not None:
        statements.append(_join_group([head[0].lstrip(), *head[1:]]))
    for group in groups:
        first = group[0][margin:] if group[0].strip() else ""
        statements.append(_join_group([first, *group[1:]]))

    while statements and not statements[0]:
        statements.pop(0)
    while statements and not statements[-1]:
        statements.pop()

    return tuple(statements)


def _join_group(lines: List[str]) -> str:
    # Only the last line ends outside a string, so only it may lose trailing space.
    lines[-1] = lines[-1].rstrip()
    return "\n".join(lines)


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def _string_line_starts(tokens: Sequence[Tok], base: int) -> Set[int]:
    """Offsets (relative to base) of line starts that fall inside a string token."""
    starts: Set[int] = set()
    for tok in tokens:
        if tok.type != TT.STRING:
            continue
        start = tok.start_pos - base
        newline = tok.value.find("\n")
        while newline != -1:
            starts.add(start + newline + 1)
            newline = tok.value.find("\n", newline + 1)
    return starts


def _block_opener(tokens: Sequence[Tok], base: int, head_len: int) -> Optional[Tok]:
    """The ':' ending the brace line, if that line opens a block."""
    on_head = [tok for tok in tokens if tok.start_pos - base < head_len]
    if on_head and on_head[-1].type == TT.OP and on_head[-1].value == ':':
        return on_head[-1]
    return None


def describe_token(tok: Tok) -> str:
    if tok.type == TT.EOF:
        return "end of input"
    return repr(tok.value)


def parse_tokens(tokens: List[Tok], source: str) -> Root:
    return Parser(tokens, source).parse()


def parse_source(source: str) -> Root:
    """Tokenize and parse block DSL source into a Root."""
    from .lexer_rd import tokenize

    tokens = tokenize(source)
    logger.debug("lexed %d tokens", len(tokens))

    root = parse_tokens(tokens, source)
    logger.debug("parsed %d top-level blocks", len(root.children))
    return root


# ============================================================================
# Main
# ============================================================================

if __name__ == '__main__':
    import sys
    from .lexer_rd import LexError

    # Read source from file or stdin
    args = [arg for arg in sys.argv[1:] if not arg.startswith('--')]
    if len(args) > 0 and args[0] != '-':
        with open(args[0], 'r') as f:
            source = f.read()
    else:
        source = sys.stdin.read()

    try:
        print(parse_source(source))
    except (LexError, ParseError) as e:
        print(f"Parse error: {e}", file=sys.stderr)
        sys.exit(1)
