"""Unified error model for the AIR compiler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorLocation:
    path: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def describe(self) -> str:
        if self.path and self.line is not None and self.column is not None:
            return f"{self.path}:{self.line}:{self.column}"
        if self.line is not None and self.column is not None:
            return f"{self.line}:{self.column}"
        if self.path and self.line is not None:
            return f"{self.path}:{self.line}"
        if self.path:
            return self.path
        return "unknown location"


class AirError(Exception):
    """Base class for all compiler errors surfaced to users."""

    code: str = "AIR_ERROR"
    kind: str = "AIR"
    hint: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = ErrorLocation(path=path, line=line, column=column)
        self.path = path
        self.line = line
        self.column = column
        if code is not None:
            self.code = code
        if hint is not None:
            self.hint = hint
        super().__init__(self._render())

    @property
    def col(self) -> Optional[int]:
        return self.column

    def _render(self) -> str:
        if self.line is None:
            return f"[{self.kind} Error] {self.message}"
        if self.column is None:
            return f"[{self.kind} Error] Line {self.line}: {self.message}"
        return f"[{self.kind} Error] Line {self.line}:{self.column}: {self.message}"

    def format(self) -> str:
        components = [str(self)]
        if self.path:
            components.append(f"({self.path})")
        if self.hint:
            components.append(f"Hint: {self.hint}")
        return " ".join(components)


class AirLexError(AirError):
    """Raised when the lexer meets an unterminated string literal."""

    code = "LEX_ERROR"
    kind = "AIR Lex"

    def __init__(self, message: str, line: int, column: int, **kwargs) -> None:
        super().__init__(message, line=line, column=column, **kwargs)


class AirParseError(AirError):
    """Raised on the first grammar violation; no partial AST is produced."""

    code = "PARSE_ERROR"
    kind = "AIR Parse"

    def __init__(
        self,
        message: str,
        line: int,
        column: int = 1,
        *,
        token: Optional[str] = None,
        source_line: Optional[str] = None,
        **kwargs,
    ) -> None:
        self.token = token
        self.source_line = source_line
        super().__init__(message, line=line, column=column, **kwargs)

    def _render(self) -> str:
        base = super()._render()
        if self.token:
            base = f"{base} (token: '{self.token}')"
        return base

    def format(self) -> str:
        rendered = super().format()
        if self.source_line is None:
            return rendered
        caret = " " * max((self.column or 1) - 1, 0) + "^"
        return f"{rendered}\n  {self.source_line}\n  {caret}"


class AirConfigError(AirError):
    """Raised when project configuration or generation options are invalid."""

    code = "CONFIG_ERROR"
    kind = "AIR Config"


__all__ = [
    "AirError",
    "AirLexError",
    "AirParseError",
    "AirConfigError",
    "ErrorLocation",
]
