"""Choreography tokenizer: lexes s-expression source into a flat token list."""

from __future__ import annotations


# Token type constants
TK_INT = "INT"
TK_FLOAT = "FLOAT"
TK_STRING = "STRING"
TK_KEYWORD = "KEYWORD"
TK_SYMBOL = "SYMBOL"
TK_OPEN = "OPEN"
TK_CLOSE = "CLOSE"
TK_EOF = "EOF"

OPEN_DELIMS: dict[str, str] = {"(": ")", "[": "]"}
CLOSE_DELIMS: set[str] = {")", "]"}

ESCAPE_MAP: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "0": "\0",
}

# Characters that end a symbol or number
TERMINATORS: set[str] = {" ", "\t", "\r", "\n", ",", "(", ")", "[", "]", '"', ";"}


class TokenizeError(Exception):
    """Error during tokenization."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


class Token:
    """A token with type, value, and position."""

    def __init__(self, type_: str, value: str, line: int, col: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col
        self.text_value: str = ""

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.line)
            + ", "
            + str(self.col)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_number(text: str) -> str | None:
    """Classify text as TK_INT, TK_FLOAT, or None if it is not a number."""
    body = text
    if body.startswith("-") or body.startswith("+"):
        body = body[1:]
    if body == "":
        return None
    mantissa = body
    exponent = None
    for i, c in enumerate(body):
        if c == "e" or c == "E":
            mantissa = body[:i]
            exponent = body[i + 1 :]
            if exponent.startswith("-") or exponent.startswith("+"):
                exponent = exponent[1:]
            if exponent == "" or not all(_is_digit(d) for d in exponent):
                return None
            break
    seen_dot = False
    seen_digit = False
    for c in mantissa:
        if _is_digit(c):
            seen_digit = True
        elif c == "." and not seen_dot:
            seen_dot = True
        else:
            return None
    if not seen_digit:
        return None
    if seen_dot or exponent is not None:
        return TK_FLOAT
    return TK_INT


def tokenize(source: str) -> list[Token]:
    """Tokenize choreography source into a flat list ending with TK_EOF."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    col = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            col = 1
            continue

        # Whitespace; commas are whitespace too
        if c == " " or c == "\t" or c == "\r" or c == ",":
            pos += 1
            col += 1
            continue

        # Line comment: ;
        if c == ";":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        start_line = line
        start_col = col

        # Delimiters
        if c in OPEN_DELIMS:
            tokens.append(Token(TK_OPEN, c, start_line, start_col))
            pos += 1
            col += 1
            continue
        if c in CLOSE_DELIMS:
            tokens.append(Token(TK_CLOSE, c, start_line, start_col))
            pos += 1
            col += 1
            continue

        # String literal
        if c == '"':
            start_pos = pos
            pos += 1
            col += 1
            chars: list[str] = []
            while pos < length and source[pos] != '"':
                ch = source[pos]
                if ch == "\\":
                    if pos + 1 >= length:
                        raise TokenizeError(
                            "unexpected end of string in escape", line, col
                        )
                    esc = source[pos + 1]
                    if esc not in ESCAPE_MAP:
                        raise TokenizeError("invalid escape: \\" + esc, line, col)
                    chars.append(ESCAPE_MAP[esc])
                    pos += 2
                    col += 2
                    continue
                chars.append(ch)
                pos += 1
                if ch == "\n":
                    line += 1
                    col = 1
                else:
                    col += 1
            if pos >= length:
                raise TokenizeError("unterminated string literal", start_line, start_col)
            pos += 1  # skip closing "
            col += 1
            tok = Token(TK_STRING, source[start_pos:pos], start_line, start_col)
            tok.text_value = "".join(chars)
            tokens.append(tok)
            continue

        # Atom: symbol, keyword or number
        start_pos = pos
        while pos < length and source[pos] not in TERMINATORS:
            pos += 1
        text = source[start_pos:pos]
        col += pos - start_pos
        if text.startswith(":"):
            if len(text) == 1:
                raise TokenizeError("empty keyword", start_line, start_col)
            tokens.append(Token(TK_KEYWORD, text, start_line, start_col))
            continue
        kind = _is_number(text)
        if kind is not None:
            tokens.append(Token(kind, text, start_line, start_col))
            continue
        if _is_digit(text[0]):
            raise TokenizeError("invalid number: " + text, start_line, start_col)
        tokens.append(Token(TK_SYMBOL, text, start_line, start_col))

    tokens.append(Token(TK_EOF, "", line, col))
    return tokens
