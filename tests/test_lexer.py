from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pytest

from demonstrate.lexer_rd import LexError, TT, tokenize


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[TT, object], ...]] = None
    expected_types: Optional[Tuple[TT, ...]] = None
    msg: Optional[str] = None
    err_line: Optional[int] = None
    err_col: Optional[int] = None


def _non_eof_tokens(source: str):
    return [token for token in tokenize(source) if token.type != TT.EOF]


BASIC_TOKEN_CASES: List[Case] = [
    Case("number-int", "123", expected=((TT.NUMBER, "123"),)),
    Case("number-float", "3.14", expected=((TT.NUMBER, "3.14"),)),
    Case("number-exponent", "1.5e-3", expected=((TT.NUMBER, "1.5e-3"),)),
    Case("number-hex", "0x1F", expected=((TT.NUMBER, "0x1F"),)),
    Case("number-underscore", "1_000", expected=((TT.NUMBER, "1_000"),)),
    Case("ident-single", "x", expected=((TT.IDENT, "x"),)),
    Case("ident-snake", "foo_bar", expected=((TT.IDENT, "foo_bar"),)),
    Case("ident-leading-underscore", "_private", expected=((TT.IDENT, "_private"),)),
    Case("string-double", '"hello"', expected=((TT.STRING, '"hello"'),)),
    Case("string-single", "'world'", expected=((TT.STRING, "'world'"),)),
    Case("string-triple", '"""a\nb"""', expected=((TT.STRING, '"""a\nb"""'),)),
    Case("string-fstring", 'f"{x}"', expected=((TT.STRING, 'f"{x}"'),)),
    Case("string-raw-bytes", "rb'\\d'", expected=((TT.STRING, "rb'\\d'"),)),
    Case("string-empty", "''", expected=((TT.STRING, "''"),)),
]

PUNCTUATION_CASES: List[Case] = [
    Case("arrow", "->", expected_types=(TT.ARROW,)),
    Case("minus-gt-spaced", "- >", expected_types=(TT.OP, TT.OP)),
    Case("braces", "{}", expected_types=(TT.LBRACE, TT.RBRACE)),
    Case("parens", "()", expected_types=(TT.LPAR, TT.RPAR)),
    Case("brackets", "[]", expected_types=(TT.LSQB, TT.RSQB)),
    Case("at", "@", expected_types=(TT.AT,)),
    Case("dot", ".", expected_types=(TT.DOT,)),
    Case("comma", ",", expected_types=(TT.COMMA,)),
    Case("pipe", "|", expected_types=(TT.PIPE,)),
    Case("python-operators", "a == b", expected_types=(TT.IDENT, TT.OP, TT.OP, TT.IDENT)),
    Case("backslash", "\\", expected_types=(TT.OP,)),
]

KEYWORD_CASES: List[Case] = [
    Case("describe", "describe", expected_types=(TT.DESCRIBE,)),
    Case("context", "context", expected_types=(TT.CONTEXT,)),
    Case("it", "it", expected_types=(TT.IT,)),
    Case("test", "test", expected_types=(TT.TEST,)),
    Case("before", "before", expected_types=(TT.BEFORE,)),
    Case("after", "after", expected_types=(TT.AFTER,)),
    Case("async", "async", expected_types=(TT.ASYNC,)),
    Case("keyword-prefix-ident", "describes", expected_types=(TT.IDENT,)),
    Case("keyword-suffix-ident", "retest", expected_types=(TT.IDENT,)),
    Case("keyword-case-sensitive", "Describe", expected_types=(TT.IDENT,)),
]

LEX_ERROR_CASES: List[Case] = [
    Case("unterminated-double", '"abc', msg="Unterminated string", err_line=1, err_col=1),
    Case("unterminated-single-newline", "x = 'abc\n'", msg="Unterminated string", err_line=1, err_col=5),
    Case("unterminated-triple", "it a {\n  '''doc\n}", msg="Unterminated string", err_line=2, err_col=3),
    Case("unterminated-escape-at-eof", '"abc\\', msg="Unterminated string", err_line=1, err_col=1),
]


@pytest.mark.parametrize("case", BASIC_TOKEN_CASES, ids=lambda case: case.name)
def test_basic_tokens(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)
    assert case.expected is not None
    assert [(token.type, token.value) for token in tokens] == list(case.expected)


@pytest.mark.parametrize("case", PUNCTUATION_CASES, ids=lambda case: case.name)
def test_punctuation(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)
    assert case.expected_types is not None
    assert [token.type for token in tokens] == list(case.expected_types)


@pytest.mark.parametrize("case", KEYWORD_CASES, ids=lambda case: case.name)
def test_keywords(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)
    assert case.expected_types is not None
    assert [token.type for token in tokens] == list(case.expected_types)


@pytest.mark.parametrize("case", LEX_ERROR_CASES, ids=lambda case: case.name)
def test_lex_errors(case: Case) -> None:
    assert case.msg is not None
    with pytest.raises(LexError) as exc_info:
        tokenize(case.source)

    err = exc_info.value
    assert case.msg in str(err)

    if case.err_line is not None:
        assert err.line == case.err_line, f"expected line {case.err_line}, got {err.line}"
    if case.err_col is not None:
        assert err.column == case.err_col, f"expected col {case.err_col}, got {err.column}"


def test_comments_are_skipped() -> None:
    source = "describe a { # it b { }\n}"
    types = [token.type for token in _non_eof_tokens(source)]

    assert types == [TT.DESCRIBE, TT.IDENT, TT.LBRACE, TT.RBRACE]


def test_braces_inside_strings_stay_in_string() -> None:
    tokens = _non_eof_tokens('x = "{" + f"{y}}}"')

    assert [token.type for token in tokens].count(TT.LBRACE) == 0
    assert [token.type for token in tokens].count(TT.RBRACE) == 0


def test_position_tracking() -> None:
    source = "describe outer {\n    it inner {\n    }\n}"
    tokens = {str(token.value): token for token in tokenize(source) if token.type != TT.EOF}

    assert (tokens["outer"].line, tokens["outer"].column) == (1, 10)
    assert (tokens["inner"].line, tokens["inner"].column) == (2, 8)
    assert (tokens["it"].line, tokens["it"].column) == (2, 5)


def test_offsets_slice_back_to_source() -> None:
    source = "@pytest.mark.skip(reason='x') it a -> int { }"
    for token in _non_eof_tokens(source):
        assert source[token.start_pos:token.end_pos] == token.value


def test_eof_always_emitted() -> None:
    tokens = tokenize("")

    assert len(tokens) == 1
    assert tokens[0].type == TT.EOF
