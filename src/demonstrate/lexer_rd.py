"""
Lexer for the demonstrate block DSL - Recursive Descent Parser

Tokenizes DSL source into a flat token stream.

Features:
- Single-pass tokenization
- Contextual block keywords (describe/context/it/test/before/after/async)
- Position tracking (line, column, start/end offsets)
- Python string literals (prefixes, triple quotes) so braces inside them
  never unbalance a statement body
- Any other character becomes an OP token: embedded Python always lexes
"""

from typing import List, Tuple

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    Block DSL lexer.

    Whitespace and newlines carry no meaning at block level, so neither is
    emitted. Statement bodies are recovered by the parser from the source
    text between their braces.
    """

    # Keyword mapping
    KEYWORDS = {
        'describe': TT.DESCRIBE,
        'context': TT.CONTEXT,
        'it': TT.IT,
        'test': TT.TEST,
        'before': TT.BEFORE,
        'after': TT.AFTER,
        'async': TT.ASYNC,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        ('->', TT.ARROW),

        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('.', TT.DOT),
        (',', TT.COMMA),
        ('@', TT.AT),
        ('|', TT.PIPE),
    ]

    STRING_PREFIXES = frozenset({
        'r', 'u', 'b', 'f', 'br', 'rb', 'fr', 'rf',
    })

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list"""
        while self.pos < len(self.source):
            self.scan_token()

        self.emit(TT.EOF, None, self.mark())
        return self.tokens

    def scan_token(self):
        """Scan next token"""
        ch = self.peek()

        if ch in (' ', '\t', '\n', '\r', '\f'):
            self.advance()
            return

        # Comments
        if ch == '#':
            self.skip_comment()
            return

        # String literals
        if ch in ('"', "'"):
            self.scan_string(self.mark())
            return

        # Numbers
        if ch.isdigit():
            self.scan_number()
            return

        # Identifiers, keywords and prefixed strings
        if ch.isidentifier():
            self.scan_identifier()
            return

        # Operators and punctuation
        self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self, start: Tuple[int, int, int]):
        """Scan string literal: '...', "...", '''...''' or \"\"\"...\"\"\" """
        quote = self.advance()
        triple = self.peek() == quote and self.peek(1) == quote
        if triple:
            self.advance(2)
            closing = quote * 3
        else:
            closing = quote

        while not self.source.startswith(closing, self.pos):
            if self.pos >= len(self.source) or (not triple and self.peek() in ('\n', '\r')):
                raise LexError("Unterminated string", start[1], start[2])
            if self.peek() == '\\':
                # Keep escape sequence as-is
                self.advance()
            self.advance()

        self.advance(len(closing))
        self.emit(TT.STRING, self.source[start[0]:self.pos], start)

    def scan_number(self):
        """Scan number literal (ints, floats, exponents, radix and imaginary forms)"""
        start = self.mark()

        while True:
            ch = self.peek()
            if ch.isalnum() or ch == '_':
                prev = ch
                self.advance()
                if prev in ('e', 'E') and self.peek() in ('+', '-') and self.peek(1).isdigit():
                    self.advance()
                continue
            if ch == '.' and self.peek(1).isdigit():
                self.advance()
                continue
            break

        # Keep as string, numbers are opaque here
        self.emit(TT.NUMBER, self.source[start[0]:self.pos], start)

    def scan_identifier(self):
        """Scan identifier, keyword, or a prefixed string such as f"...\""""
        start = self.mark()

        while self.peek().isidentifier() or self.peek().isdigit():
            self.advance()

        value = self.source[start[0]:self.pos]
        if value.lower() in self.STRING_PREFIXES and self.peek() in ('"', "'"):
            self.scan_string(start)
            return

        # Check if keyword
        token_type = self.KEYWORDS.get(value, TT.IDENT)
        self.emit(token_type, value, start)

    def scan_operator(self):
        """Scan operators and punctuation"""
        start = self.mark()

        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                self.emit(op_type, op_str, start)
                return

        self.emit(TT.OP, self.advance(), start)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    def mark(self) -> Tuple[int, int, int]:
        """Current (offset, line, column), used as a token start."""
        return (self.pos, self.line, self.column)

    def skip_comment(self):
        """Skip comment until end of line"""
        while self.peek() not in ('\n', '\r', '\0'):
            self.advance()

    def emit(self, token_type: TT, value, start: Tuple[int, int, int]):
        """Emit a token"""
        start_pos, line, column = start
        tok = Tok(
            type=token_type,
            value=value,
            line=line,
            column=column,
            start_pos=start_pos,
            end_pos=self.pos,
        )
        self.tokens.append(tok)

class LexError(Exception):
    """Lexical analysis error"""
    def __init__(self, message: str, line: int, column: int):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, col {column}")

# ============================================================================
# Testing
# ============================================================================

def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    lexer = Lexer(source)
    return lexer.tokenize()


if __name__ == '__main__':
    # Simple test
    test_source = '''
describe tests {
    before { one = 1 }
    it one { assert one == 1 }
}
'''

    for tok in tokenize(test_source):
        print(tok)
