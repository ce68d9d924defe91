"""Lexical analyzer (tokenizer) for the AIR language.

Converts source text into a flat list of tokens. The lexer is permissive:
characters it does not recognise become ``SYMBOL`` tokens so a single stray
character never hides diagnostics for the rest of the file. The only hard
failure is an unterminated string literal.

Two rules depend on lexical context rather than on the current character:

* ``#`` starts a comment only when it is the first non-blank character of a
  line *and* the bracket nesting depth is zero. Depth is tracked across the
  whole token stream, so a ``#`` at the start of a line inside ``( ... )``
  is never a comment.
* ``#`` followed by 3, 4, 6 or 8 hex digits directly after a ``:`` or ``,``
  token is a colour literal and lexes as one ``STRING`` token (``"#fff"``).
  Anywhere else ``#`` is the reference operator.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from airengine.errors import AirLexError


class TokenKind(Enum):
    """Token kinds produced by :class:`Lexer`."""

    AT_KEYWORD = "at_keyword"
    IDENTIFIER = "identifier"
    TYPE_KEYWORD = "type_keyword"
    OPERATOR = "operator"
    HASH = "hash"
    COLON = "colon"
    COMMA = "comma"
    OPEN_PAREN = "open_paren"
    CLOSE_PAREN = "close_paren"
    OPEN_BRACE = "open_brace"
    CLOSE_BRACE = "close_brace"
    OPEN_BRACKET = "open_bracket"
    CLOSE_BRACKET = "close_bracket"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NEWLINE = "newline"
    SYMBOL = "symbol"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    """A single token with position information."""

    kind: TokenKind
    value: str
    line: int
    column: int

    @property
    def col(self) -> int:
        return self.column

    def is_(self, kind: TokenKind, value: Optional[str] = None) -> bool:
        return self.kind is kind and (value is None or self.value == value)

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.value!r}, {self.line}:{self.column})"


TYPE_KEYWORDS = frozenset({"str", "int", "float", "bool", "date", "datetime", "enum"})

SINGLE_CHAR_TOKENS = {
    "(": TokenKind.OPEN_PAREN,
    ")": TokenKind.CLOSE_PAREN,
    "{": TokenKind.OPEN_BRACE,
    "}": TokenKind.CLOSE_BRACE,
    "[": TokenKind.OPEN_BRACKET,
    "]": TokenKind.CLOSE_BRACKET,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
}

OPENERS = frozenset("({[")
CLOSERS = frozenset(")}]")

OPERATOR_CHARS = frozenset(">|+?*!~^./-$<")

HEX_COLOR_LENGTHS = frozenset({3, 4, 6, 8})


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def _is_hex_digit(char: str) -> bool:
    return _is_digit(char) or "a" <= char <= "f" or "A" <= char <= "F"


def _is_ident_start(char: str) -> bool:
    return "a" <= char <= "z" or "A" <= char <= "Z" or char == "_"


def _is_ident_char(char: str) -> bool:
    return _is_ident_start(char) or _is_digit(char) or char == "-"


class Lexer:
    """Tokenizer for AIR source code."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []
        # Only blanks seen so far on the current line.
        self.at_line_start = True
        # Bracket nesting depth, floored at zero.
        self.depth = 0

    def peek(self, offset: int = 0) -> Optional[str]:
        pos = self.pos + offset
        if pos < len(self.source):
            return self.source[pos]
        return None

    def advance(self) -> str:
        char = self.source[self.pos]
        self.pos += 1
        self.column += 1
        return char

    def push(self, kind: TokenKind, value: str, column: Optional[int] = None, line: Optional[int] = None) -> None:
        self.tokens.append(
            Token(
                kind=kind,
                value=value,
                line=self.line if line is None else line,
                column=self.column if column is None else column,
            )
        )

    def tokenize(self) -> List[Token]:
        """Tokenize the whole source and return the token list (ending in ``EOF``)."""
        while self.pos < len(self.source):
            self.skip_blanks()
            char = self.peek()
            if char is None:
                break

            if char == "\n":
                if self.tokens and self.tokens[-1].kind is not TokenKind.NEWLINE:
                    self.push(TokenKind.NEWLINE, "\n")
                self.pos += 1
                self.line += 1
                self.column = 1
                self.at_line_start = True
                continue

            if char == "#" and self.at_line_start and self.depth == 0:
                self.skip_comment()
                continue

            self.at_line_start = False

            if char == '"':
                self.read_string()
            elif char == "@":
                self.read_at_keyword()
            elif char == "#":
                if self.is_hex_color():
                    self.read_hex_color()
                else:
                    self.push(TokenKind.HASH, "#")
                    self.advance()
            elif _is_digit(char):
                self.read_number()
            elif char in SINGLE_CHAR_TOKENS:
                if char in OPENERS:
                    self.depth += 1
                elif char in CLOSERS:
                    self.depth = max(0, self.depth - 1)
                self.push(SINGLE_CHAR_TOKENS[char], char)
                self.advance()
            elif char in OPERATOR_CHARS:
                self.push(TokenKind.OPERATOR, char)
                self.advance()
            elif _is_ident_start(char):
                self.read_identifier()
            else:
                self.push(TokenKind.SYMBOL, char)
                self.advance()

        if self.tokens and self.tokens[-1].kind is TokenKind.NEWLINE:
            self.tokens.pop()
        self.push(TokenKind.EOF, "")
        return self.tokens

    def skip_blanks(self) -> None:
        while self.peek() in (" ", "\t", "\r"):
            self.advance()

    def skip_comment(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] != "\n":
            self.advance()

    def read_string(self) -> None:
        start_line, start_column = self.line, self.column
        self.advance()
        chars: List[str] = []
        while self.pos < len(self.source) and self.source[self.pos] != '"':
            if self.source[self.pos] == "\\" and self.pos + 1 < len(self.source):
                self.advance()
            char = self.advance()
            if char == "\n":
                self.line += 1
                self.column = 1
            chars.append(char)
        if self.pos >= len(self.source):
            raise AirLexError("Unterminated string literal", start_line, start_column)
        self.advance()
        self.push(TokenKind.STRING, "".join(chars), column=start_column, line=start_line)

    def read_at_keyword(self) -> None:
        start = self.column
        self.advance()
        name = self._read_while(_is_ident_char)
        self.push(TokenKind.AT_KEYWORD, "@" + name, column=start)

    def read_number(self) -> None:
        start = self.column
        text = self._read_while(_is_digit)
        if self.peek() == "." and self.peek(1) is not None and _is_digit(self.peek(1)):
            text += self.advance()
            text += self._read_while(_is_digit)
        nxt = self.peek()
        if nxt is not None and _is_ident_start(nxt):
            # "7d", "5_apps": one identifier, not number + identifier
            text += self._read_while(_is_ident_char)
            self.push(TokenKind.IDENTIFIER, text, column=start)
        else:
            self.push(TokenKind.NUMBER, text, column=start)

    def read_identifier(self) -> None:
        start = self.column
        word = self._read_while(_is_ident_char)
        if word in ("true", "false"):
            kind = TokenKind.BOOLEAN
        elif word in TYPE_KEYWORDS:
            kind = TokenKind.TYPE_KEYWORD
        else:
            kind = TokenKind.IDENTIFIER
        self.push(kind, word, column=start)

    def is_hex_color(self) -> bool:
        index = self.pos + 1
        count = 0
        while index < len(self.source) and _is_hex_digit(self.source[index]):
            count += 1
            index += 1
        if count not in HEX_COLOR_LENGTHS:
            return False
        if index < len(self.source) and _is_ident_char(self.source[index]):
            return False
        if not self.tokens:
            return False
        return self.tokens[-1].kind in (TokenKind.COLON, TokenKind.COMMA)

    def read_hex_color(self) -> None:
        start = self.column
        self.advance()
        digits = self._read_while(_is_hex_digit)
        self.push(TokenKind.STRING, "#" + digits, column=start)

    def _read_while(self, predicate) -> str:
        chars: List[str] = []
        while self.pos < len(self.source) and predicate(self.source[self.pos]):
            chars.append(self.advance())
        return "".join(chars)


def tokenize(source: str) -> List[Token]:
    """Tokenize ``source`` into a list of :class:`Token` ending with ``EOF``."""
    return Lexer(source).tokenize()


__all__ = ["Token", "TokenKind", "Lexer", "tokenize", "TYPE_KEYWORDS", "OPERATOR_CHARS"]
