"""Tokenizer and reader tests."""

import pytest

from choreo import ReadError, TokenizeError, read, read_all
from choreo.ast import (
    MAX_DEPTH,
    Do,
    Form,
    Ident,
    If,
    Keyword,
    Let,
    Literal,
    Pos,
    QualifiedIdent,
    Select,
    Vector,
)
from choreo.reader import Reader
from choreo.tokens import TK_EOF, TK_KEYWORD, TK_STRING, TK_SYMBOL, Token, tokenize


# ── Tokens ───────────────────────────────────────────────────


def test_tokenize_positions():
    tokens = tokenize("(do\n  Ana/x)")
    assert [t.value for t in tokens] == ["(", "do", "Ana/x", ")", ""]
    assert (tokens[2].line, tokens[2].col) == (2, 3)
    assert tokens[-1].type == TK_EOF


def test_tokenize_comments_and_commas():
    tokens = tokenize("; roles: Ana\n[a, b] ; trailing")
    assert [t.value for t in tokens] == ["[", "a", "b", "]", ""]


def test_tokenize_string_escapes():
    tokens = tokenize('"a\\n\\"b\\""')
    assert tokens[0].type == TK_STRING
    assert tokens[0].text_value == 'a\n"b"'


def test_tokenize_keyword_and_symbol():
    tokens = tokenize(":done -")
    assert tokens[0].type == TK_KEYWORD
    assert tokens[1].type == TK_SYMBOL


@pytest.mark.parametrize(
    "source,message",
    [
        ('"abc', "unterminated string literal"),
        ('"\\q"', "invalid escape"),
        ("12abc", "invalid number"),
        (":", "empty keyword"),
    ],
)
def test_tokenize_errors(source: str, message: str):
    with pytest.raises(TokenizeError) as exc_info:
        tokenize(source)
    assert message in exc_info.value.msg
    assert exc_info.value.line == 1


# ── Atoms ────────────────────────────────────────────────────


def test_read_atoms():
    forms = read_all('x Ana/x 42 -7 2.5 "hi" :k true false nil')
    assert forms == [
        Ident("x"),
        QualifiedIdent("Ana", "x"),
        Literal(42),
        Literal(-7),
        Literal(2.5),
        Literal("hi"),
        Literal(Keyword("k")),
        Literal(True),
        Literal(False),
        Literal(None),
    ]


def test_read_exponent_floats():
    assert read_all("1e3 -2.5E-2 6.02e+23") == [
        Literal(1000.0),
        Literal(-0.025),
        Literal(6.02e23),
    ]


@pytest.mark.parametrize("source", ["1e", "1e+", "2.5ex"])
def test_tokenize_rejects_bad_exponent(source: str):
    with pytest.raises(TokenizeError) as exc_info:
        tokenize(source)
    assert "invalid number" in exc_info.value.msg


def test_reader_rejects_unknown_token():
    tokens = [Token("BOGUS", "?", 1, 1), Token(TK_EOF, "", 1, 2)]
    with pytest.raises(ReadError) as exc_info:
        Reader(tokens).read_one()
    assert exc_info.value.msg == "unexpected token '?'"
    assert (exc_info.value.line, exc_info.value.col) == (1, 1)


def test_read_division_symbol_is_plain():
    assert read("/") == Ident("/")


def test_read_records_positions():
    form = read("(do\n  x)")
    assert isinstance(form, Do)
    assert form.pos == Pos(1, 1)
    assert form.exprs[0].pos == Pos(2, 3)


def test_positions_do_not_affect_equality():
    assert read("x") == Ident("x")


@pytest.mark.parametrize("source", ["Ana/", "/x"])
def test_read_malformed_qualified_symbol(source: str):
    with pytest.raises(ReadError):
        read(source)


# ── Special forms ────────────────────────────────────────────


def test_read_do():
    assert read("(do x y)") == Do([Ident("x"), Ident("y")])


def test_read_let():
    form = read("(let [x 1 [a b] v] x)")
    assert form == Let(
        [
            (Ident("x"), Literal(1)),
            (Vector([Ident("a"), Ident("b")]), Ident("v")),
        ],
        [Ident("x")],
    )


def test_read_let_without_body():
    assert read("(let [])") == Let([], [])


def test_read_if():
    assert read("(if c t e)") == If(Ident("c"), Ident("t"), Ident("e"))


def test_read_select():
    form = read("(select [Ana/c] x)")
    assert form == Select([QualifiedIdent("Ana", "c")], [Ident("x")])


def test_read_role_headed_list_is_a_plain_form():
    assert read("(Ana x)") == Form([Ident("Ana"), Ident("x")])


def test_read_keyword_not_in_head_position():
    assert read("(f do)") == Form([Ident("f"), Ident("do")])


@pytest.mark.parametrize(
    "source,message",
    [
        ("(do)", "do requires at least one expression"),
        ("(let x y)", "let requires a binding vector"),
        ("(let [x] x)", "even number of binding forms"),
        ("(if c t)", "if requires exactly 3 parts"),
        ("(if c t e x)", "if requires exactly 3 parts"),
        ("(select x y)", "select requires a chooser vector"),
        ("(select [] y)", "at least one chooser"),
    ],
)
def test_read_malformed_special_forms(source: str, message: str):
    with pytest.raises(ReadError) as exc_info:
        read(source)
    assert message in exc_info.value.msg
    assert (exc_info.value.line, exc_info.value.col) == (1, 1)


@pytest.mark.parametrize(
    "source,message",
    [
        ("(do x", "unclosed '('"),
        ("(do x]", "expected ')'"),
        (")", "unexpected ')'"),
        ("", "expected a form"),
        ("x y", "unexpected trailing form"),
    ],
)
def test_read_structural_errors(source: str, message: str):
    with pytest.raises(ReadError) as exc_info:
        read(source)
    assert message in exc_info.value.msg


def test_read_error_location():
    with pytest.raises(ReadError) as exc_info:
        read("(do\n  (if a b))")
    assert (exc_info.value.line, exc_info.value.col) == (2, 3)
    assert str(exc_info.value) == "if requires exactly 3 parts, got 2 at line 2 col 3"


def test_read_rejects_deep_nesting():
    source = "(do " * (MAX_DEPTH + 1) + "x" + ")" * (MAX_DEPTH + 1)
    with pytest.raises(ReadError) as exc_info:
        read(source)
    assert "nested too deeply" in exc_info.value.msg


def test_read_all_empty():
    assert read_all("; nothing here\n") == []


def test_read_accepts_nesting_at_limit():
    form = read("(do " * MAX_DEPTH + "x" + ")" * MAX_DEPTH)
    for _ in range(MAX_DEPTH):
        assert isinstance(form, Do)
        form = form.exprs[0]
    assert form == Ident("x")
