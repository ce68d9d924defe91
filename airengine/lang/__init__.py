"""AIR language front end: lexer and parser."""

from .lexer import Lexer, Token, TokenKind, tokenize
from .parser import parse

__all__ = ["Lexer", "Token", "TokenKind", "tokenize", "parse"]
