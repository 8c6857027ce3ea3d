"""Minimal JavaScript tokenizer used to locate module syntax."""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from pathlib import Path

LINE_TERMINATORS = "\n\r\u2028\u2029"

# Longest first so that greedy matching picks compound operators.
PUNCTUATORS = (
    ">>>=",
    "...",
    "===",
    "!==",
    "**=",
    "<<=",
    ">>=",
    ">>>",
    "&&=",
    "||=",
    "??=",
    "=>",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "??",
    "?.",
    "++",
    "--",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "<<",
    ">>",
    "**",
)

# Keywords after which a slash starts a regular expression rather than a division.
REGEX_PRECEDING_KEYWORDS = frozenset(
    {
        "await",
        "case",
        "delete",
        "do",
        "else",
        "in",
        "instanceof",
        "new",
        "of",
        "return",
        "throw",
        "typeof",
        "void",
        "yield",
    }
)
HEADER_KEYWORDS = frozenset({"if", "while", "for", "with"})


class ParseError(ValueError):
    """Raised when source text cannot be tokenized or its module syntax is invalid."""

    def __init__(
        self,
        diagnostic: str,
        *,
        line: int | None = None,
        column: int | None = None,
        path: Path | str | None = None,
    ) -> None:
        self.diagnostic = diagnostic
        self.line = line
        self.column = column
        self.path = path
        super().__init__(self._format())

    def for_path(self, path: Path | str) -> ParseError:
        """Return a copy of this error attributed to a source file."""

        return ParseError(self.diagnostic, line=self.line, column=self.column, path=path)

    def _format(self) -> str:
        location = str(self.path) if self.path is not None else ""
        if self.line is not None:
            if location:
                location = f"{location}:{self.line}:{self.column}"
            else:
                location = f"line {self.line}, column {self.column}"
        if location:
            return f"{location}: {self.diagnostic}"
        return self.diagnostic


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexical token with its source span."""

    kind: str
    value: str
    start: int
    end: int
    line: int
    column: int
    newline_before: bool

    def is_name(self, value: str | None = None) -> bool:
        return self.kind == "name" and (value is None or self.value == value)

    def is_punct(self, value: str) -> bool:
        return self.kind == "punct" and self.value == value


class Lexer:
    """Split JavaScript source into tokens, skipping whitespace and comments.

    Strings, template literals (including nested ``${}`` expressions) and
    regular expression literals are each returned as a single token so that
    callers never mistake their contents for code.
    """

    def __init__(self, source: str) -> None:
        self._source = source
        self._length = len(source)
        self._pos = 0
        self._last: Token | None = None
        self._parens: list[bool] = []
        self._closed_header = False
        self._line_starts = [0]
        for index, char in enumerate(source):
            if char == "\n" or (char == "\r" and source[index + 1 : index + 2] != "\n"):
                self._line_starts.append(index + 1)
            elif char in "\u2028\u2029":
                self._line_starts.append(index + 1)

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while True:
            token = self._next_token()
            if token is None:
                return tokens
            tokens.append(token)
            self._advance(token)

    def position(self, offset: int) -> tuple[int, int]:
        """Return the 1-based (line, column) for a source offset."""

        index = bisect.bisect_right(self._line_starts, offset) - 1
        return index + 1, offset - self._line_starts[index] + 1

    def _advance(self, token: Token) -> None:
        # A "/" after the ")" of an if/for/while header starts a regex.
        if token.is_punct("("):
            last = self._last
            self._parens.append(
                last is not None and last.kind == "name" and last.value in HEADER_KEYWORDS
            )
        elif token.is_punct(")"):
            self._closed_header = self._parens.pop() if self._parens else False
        self._last = token

    def _error(self, message: str, offset: int) -> ParseError:
        line, column = self.position(offset)
        return ParseError(message, line=line, column=column)

    def _next_token(self) -> Token | None:
        newline = self._skip_trivia()
        if self._pos >= self._length:
            return None
        start = self._pos
        char = self._source[start]

        if _is_identifier_start(char):
            kind = "name"
            self._read_identifier()
        elif char.isdigit() or (char == "." and self._peek(1).isdigit()):
            kind = "number"
            self._read_number()
        elif char in "'\"":
            kind = "string"
            self._read_string(char)
        elif char == "`":
            kind = "template"
            self._read_template()
        elif char == "/" and self._regex_allowed():
            kind = "regex"
            self._read_regex()
        else:
            kind = "punct"
            self._read_punctuator()

        line, column = self.position(start)
        return Token(
            kind=kind,
            value=self._source[start : self._pos],
            start=start,
            end=self._pos,
            line=line,
            column=column,
            newline_before=newline,
        )

    def _peek(self, ahead: int = 0) -> str:
        index = self._pos + ahead
        if index < self._length:
            return self._source[index]
        return ""

    def _skip_trivia(self) -> bool:
        newline = False
        if self._pos == 0 and self._source.startswith("#!"):
            self._skip_line()
        while self._pos < self._length:
            char = self._source[self._pos]
            if char in LINE_TERMINATORS:
                newline = True
                self._pos += 1
            elif char.isspace() or char == "\ufeff":
                self._pos += 1
            elif char == "/" and self._peek(1) == "/":
                self._skip_line()
            elif char == "/" and self._peek(1) == "*":
                end = self._source.find("*/", self._pos + 2)
                if end == -1:
                    raise self._error("Unterminated comment", self._pos)
                if any(term in self._source[self._pos : end] for term in LINE_TERMINATORS):
                    newline = True
                self._pos = end + 2
            else:
                break
        return newline

    def _skip_line(self) -> None:
        while self._pos < self._length and self._source[self._pos] not in LINE_TERMINATORS:
            self._pos += 1

    def _read_identifier(self) -> None:
        while self._pos < self._length:
            char = self._source[self._pos]
            if char == "\\":
                self._pos += 2
            elif _is_identifier_part(char):
                self._pos += 1
            else:
                break

    def _read_number(self) -> None:
        start = self._pos
        while self._pos < self._length:
            char = self._source[self._pos]
            if char.isalnum() or char in "._":
                self._pos += 1
            elif (
                char in "+-"
                and self._source[self._pos - 1] in "eE"
                and self._source[start : start + 2].lower() not in ("0x", "0b", "0o")
            ):
                self._pos += 1
            else:
                break

    def _read_string(self, quote: str) -> None:
        start = self._pos
        self._pos += 1
        while self._pos < self._length:
            char = self._source[self._pos]
            if char == "\\":
                if self._source[self._pos + 1 : self._pos + 3] == "\r\n":
                    self._pos += 3
                else:
                    self._pos += 2
                continue
            if char == quote:
                self._pos += 1
                return
            if char in "\n\r":
                break
            self._pos += 1
        raise self._error("Unterminated string literal", start)

    def _read_template(self) -> None:
        start = self._pos
        self._pos += 1
        while self._pos < self._length:
            char = self._source[self._pos]
            if char == "\\":
                self._pos += 2
            elif char == "`":
                self._pos += 1
                return
            elif char == "$" and self._peek(1) == "{":
                self._pos += 2
                self._read_template_expression(start)
            else:
                self._pos += 1
        raise self._error("Unterminated template literal", start)

    def _read_template_expression(self, template_start: int) -> None:
        saved_last = self._last
        self._last = None
        depth = 0
        try:
            while True:
                token = self._next_token()
                if token is None:
                    raise self._error("Unterminated template literal", template_start)
                if token.is_punct("{"):
                    depth += 1
                elif token.is_punct("}"):
                    if depth == 0:
                        return
                    depth -= 1
                self._advance(token)
        finally:
            self._last = saved_last

    def _read_regex(self) -> None:
        start = self._pos
        self._pos += 1
        in_class = False
        while True:
            if self._pos >= self._length or self._source[self._pos] in LINE_TERMINATORS:
                raise self._error("Unterminated regular expression", start)
            char = self._source[self._pos]
            if char == "\\":
                self._pos += 2
                continue
            self._pos += 1
            if char == "[":
                in_class = True
            elif char == "]":
                in_class = False
            elif char == "/" and not in_class:
                break
        while self._pos < self._length and _is_identifier_part(self._source[self._pos]):
            self._pos += 1

    def _read_punctuator(self) -> None:
        for punct in PUNCTUATORS:
            if self._source.startswith(punct, self._pos):
                self._pos += len(punct)
                return
        self._pos += 1

    def _regex_allowed(self) -> bool:
        last = self._last
        if last is None:
            return True
        if last.kind in ("number", "string", "template", "regex"):
            return False
        if last.kind == "name":
            return last.value in REGEX_PRECEDING_KEYWORDS
        if last.value == ")":
            return self._closed_header
        return last.value not in ("]", "++", "--")


def tokenize(source: str) -> list[Token]:
    """Tokenize ``source`` and return the significant tokens."""

    return Lexer(source).tokenize()


def string_value(raw: str) -> str:
    """Decode a quoted JavaScript string literal token.

    Malformed escapes raise ``ParseError`` without a location; callers that
    hold the token attach its line and column.
    """

    body = raw[1:-1]
    if "\\" not in body:
        return body
    try:
        return _decode_escapes(body)
    except ValueError as exc:
        raise ParseError(f"Invalid escape sequence in string literal {raw}") from exc


def _decode_escapes(body: str) -> str:
    out: list[str] = []
    index = 0
    while index < len(body):
        char = body[index]
        if char != "\\":
            out.append(char)
            index += 1
            continue
        escape = body[index + 1 : index + 2]
        index += 2
        if escape in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[escape])
        elif escape == "x":
            out.append(chr(_hex(body[index : index + 2], 2)))
            index += 2
        elif escape == "u" and body[index : index + 1] == "{":
            close = body.index("}", index)
            out.append(chr(_hex(body[index + 1 : close])))
            index = close + 1
        elif escape == "u":
            out.append(chr(_hex(body[index : index + 4], 4)))
            index += 4
        elif escape == "\r":
            if body[index : index + 1] == "\n":
                index += 1
        elif escape in LINE_TERMINATORS:
            continue
        else:
            out.append(escape)
    return "".join(out)


_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


def _hex(digits: str, width: int | None = None) -> int:
    if (
        not digits
        or (width is not None and len(digits) != width)
        or any(char not in "0123456789abcdefABCDEF" for char in digits)
    ):
        raise ValueError(f"invalid hex escape {digits!r}")
    return int(digits, 16)


def _is_identifier_start(char: str) -> bool:
    return char.isalpha() or char in "_$\\" or (ord(char) > 127 and not char.isspace())


def _is_identifier_part(char: str) -> bool:
    return char.isalnum() or char in "_$\u200c\u200d" or (ord(char) > 127 and not char.isspace())


__all__ = ["Lexer", "ParseError", "Token", "string_value", "tokenize"]
