"""Choreography reader: recursive descent from tokens to surface nodes."""

from __future__ import annotations

from .ast import (
    Do,
    Form,
    Ident,
    If,
    Keyword,
    Let,
    Literal,
    MAX_DEPTH,
    Node,
    Pos,
    QualifiedIdent,
    Select,
    Vector,
)
from .tokens import (
    TK_CLOSE,
    TK_EOF,
    TK_FLOAT,
    TK_INT,
    TK_KEYWORD,
    TK_OPEN,
    TK_STRING,
    TK_SYMBOL,
    Token,
    tokenize,
)


CONSTANTS: dict[str, object] = {"true": True, "false": False, "nil": None}


class ReadError(Exception):
    """Malformed syntax with location info."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class Reader:
    """Recursive descent reader for choreography s-expressions."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def error(self, msg: str) -> ReadError:
        tok = self.current()
        return ReadError(msg, tok.line, tok.col)

    def _tok_pos(self, tok: Token) -> Pos:
        return Pos(tok.line, tok.col)

    # ── Top Level ────────────────────────────────────────────

    def read_program(self) -> list[Node]:
        forms: list[Node] = []
        while not self.at_type(TK_EOF):
            forms.append(self.read_form(0))
        return forms

    def read_one(self) -> Node:
        if self.at_type(TK_EOF):
            raise self.error("expected a form, got end of input")
        form = self.read_form(0)
        if not self.at_type(TK_EOF):
            raise self.error("unexpected trailing form")
        return form

    # ── Forms ────────────────────────────────────────────────

    def read_form(self, depth: int) -> Node:
        if depth > MAX_DEPTH:
            raise self.error("form nested too deeply")
        tok = self.current()
        if tok.type == TK_OPEN:
            return self.read_seq(depth)
        if tok.type == TK_CLOSE:
            raise self.error("unexpected '" + tok.value + "'")
        if tok.type == TK_EOF:
            raise self.error("unexpected end of input")
        self.advance()
        pos = self._tok_pos(tok)
        if tok.type == TK_INT:
            return Literal(int(tok.value), pos)
        if tok.type == TK_FLOAT:
            return Literal(float(tok.value), pos)
        if tok.type == TK_STRING:
            return Literal(tok.text_value, pos)
        if tok.type == TK_KEYWORD:
            return Literal(Keyword(tok.value[1:]), pos)
        if tok.type != TK_SYMBOL:
            raise ReadError("unexpected token '" + tok.value + "'", tok.line, tok.col)
        return self.read_symbol(tok)

    def read_symbol(self, tok: Token) -> Node:
        pos = self._tok_pos(tok)
        text = tok.value
        if text in CONSTANTS:
            return Literal(CONSTANTS[text], pos)
        # A lone "/" is an ordinary symbol (division).
        if "/" in text and text != "/":
            role, _, name = text.partition("/")
            if role == "" or name == "":
                raise ReadError("malformed qualified symbol '" + text + "'", tok.line, tok.col)
            return QualifiedIdent(role, name, pos)
        return Ident(text, pos)

    def read_seq(self, depth: int) -> Node:
        open_tok = self.advance()
        close = ")" if open_tok.value == "(" else "]"
        items: list[Node] = []
        while not (self.at_type(TK_CLOSE) and self.current().value == close):
            if self.at_type(TK_EOF):
                raise ReadError(
                    "unclosed '" + open_tok.value + "'", open_tok.line, open_tok.col
                )
            if self.at_type(TK_CLOSE):
                raise self.error(
                    "expected '" + close + "', got '" + self.current().value + "'"
                )
            items.append(self.read_form(depth + 1))
        self.advance()
        pos = self._tok_pos(open_tok)
        if open_tok.value == "[":
            return Vector(items, pos)
        return self.build_list(items, pos)

    # ── Special forms ────────────────────────────────────────

    def build_list(self, items: list[Node], pos: Pos) -> Node:
        if len(items) > 0 and isinstance(items[0], Ident):
            head = items[0].name
            if head == "do":
                return self.build_do(items, pos)
            if head == "let":
                return self.build_let(items, pos)
            if head == "if":
                return self.build_if(items, pos)
            if head == "select":
                return self.build_select(items, pos)
        return Form(items, pos)

    def build_do(self, items: list[Node], pos: Pos) -> Do:
        if len(items) < 2:
            raise ReadError("do requires at least one expression", pos.line, pos.col)
        return Do(items[1:], pos)

    def build_let(self, items: list[Node], pos: Pos) -> Let:
        if len(items) < 2 or not isinstance(items[1], Vector):
            raise ReadError("let requires a binding vector", pos.line, pos.col)
        binders = items[1].items
        if len(binders) % 2 != 0:
            raise ReadError(
                "let requires an even number of binding forms, got " + str(len(binders)),
                pos.line,
                pos.col,
            )
        bindings: list[tuple[Node, Node]] = []
        for i in range(0, len(binders), 2):
            bindings.append((binders[i], binders[i + 1]))
        return Let(bindings, items[2:], pos)

    def build_if(self, items: list[Node], pos: Pos) -> If:
        if len(items) != 4:
            raise ReadError(
                "if requires exactly 3 parts, got " + str(len(items) - 1),
                pos.line,
                pos.col,
            )
        return If(items[1], items[2], items[3], pos)

    def build_select(self, items: list[Node], pos: Pos) -> Select:
        if len(items) < 2 or not isinstance(items[1], Vector):
            raise ReadError("select requires a chooser vector", pos.line, pos.col)
        choosers = items[1].items
        if len(choosers) == 0:
            raise ReadError("select requires at least one chooser", pos.line, pos.col)
        return Select(choosers, items[2:], pos)


def read(source: str) -> Node:
    """Read exactly one form from source."""
    return Reader(tokenize(source)).read_one()


def read_all(source: str) -> list[Node]:
    """Read every top-level form in source."""
    return Reader(tokenize(source)).read_program()
