"""Sequential token cursor shared by every block parser."""

from __future__ import annotations

from typing import List, Optional, Sequence

from airengine.errors import AirParseError
from airengine.lang.lexer import Token, TokenKind


class TokenStream:
    """Cursor over a token list.

    The cursor never moves past the final ``EOF`` token, so ``current()`` is
    always safe to call.
    """

    def __init__(self, tokens: Sequence[Token], source: Optional[str] = None) -> None:
        if not tokens:
            raise ValueError("TokenStream requires at least an EOF token")
        self.tokens: List[Token] = list(tokens)
        self.pos = 0
        self._lines = source.split("\n") if source is not None else None

    def peek(self, offset: int = 0) -> Token:
        index = self.pos + offset
        if index >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[index]

    def current(self) -> Token:
        return self.peek()

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return token

    def is_(self, kind: TokenKind, value: Optional[str] = None) -> bool:
        return self.current().is_(kind, value)

    def is_name(self) -> bool:
        """True on an identifier or a type keyword used as a plain name."""
        return self.current().kind in (TokenKind.IDENTIFIER, TokenKind.TYPE_KEYWORD)

    def is_op(self, value: str) -> bool:
        return self.is_(TokenKind.OPERATOR, value)

    def is_eof(self) -> bool:
        return self.current().kind is TokenKind.EOF

    def match(self, kind: TokenKind, value: Optional[str] = None) -> bool:
        if self.is_(kind, value):
            self.advance()
            return True
        return False

    def expect(self, kind: TokenKind, value: Optional[str] = None) -> Token:
        token = self.current()
        if not token.is_(kind, value):
            wanted = f"{kind.value} '{value}'" if value else kind.value
            raise self.error(f"Expected {wanted}, got {token.kind.value} '{token.value}'")
        return self.advance()

    def skip_newlines(self) -> None:
        while self.current().kind is TokenKind.NEWLINE:
            self.advance()

    def save(self) -> int:
        return self.pos

    def restore(self, pos: int) -> None:
        self.pos = pos

    def error(self, message: str) -> AirParseError:
        token = self.current()
        return AirParseError(
            message,
            token.line,
            token.column,
            token=token.value or None,
            source_line=self.source_line(token.line),
        )

    def source_line(self, line: int) -> Optional[str]:
        if self._lines is None or not 1 <= line <= len(self._lines):
            return None
        return self._lines[line - 1].rstrip("\r")


__all__ = ["TokenStream"]
