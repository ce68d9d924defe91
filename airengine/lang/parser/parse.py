"""Top-level AIR parser: ``@app:<name>`` header followed by ``@block`` sections."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Callable, Dict, Iterator

from airengine.ast import AirAST, App, Block, PersistBlock
from airengine.errors import AirParseError
from airengine.lang.lexer import TokenKind, tokenize

from .blocks import (
    parse_api,
    parse_auth,
    parse_cron,
    parse_db,
    parse_deploy,
    parse_email,
    parse_env,
    parse_handler,
    parse_hook,
    parse_nav,
    parse_persist,
    parse_queue,
    parse_state,
    parse_style,
    parse_webhook,
)
from .stream import TokenStream
from .ui import parse_ui

logger = logging.getLogger(__name__)

AST_VERSION = "0.1"

# Deeply nested @ui trees recurse several frames per level.
_RECURSION_FLOOR = 12000


def _parse_persist_block(s: TokenStream) -> PersistBlock:
    s.expect(TokenKind.COLON)
    method = s.advance().value
    return parse_persist(s, method)


BLOCK_PARSERS: Dict[str, Callable[[TokenStream], Block]] = {
    "state": parse_state,
    "style": parse_style,
    "ui": parse_ui,
    "api": parse_api,
    "auth": parse_auth,
    "nav": parse_nav,
    "persist": _parse_persist_block,
    "hook": parse_hook,
    "db": parse_db,
    "cron": parse_cron,
    "webhook": parse_webhook,
    "queue": parse_queue,
    "email": parse_email,
    "env": parse_env,
    "deploy": parse_deploy,
    "handler": parse_handler,
}


@contextmanager
def _recursion_headroom() -> Iterator[None]:
    """Raise the interpreter recursion limit to ``_RECURSION_FLOOR`` while parsing.

    The limit is process wide, so other threads see the raised value until
    the parse returns. The previous limit is restored on exit, including
    when the parse raises.
    """
    previous = sys.getrecursionlimit()
    if previous < _RECURSION_FLOOR:
        sys.setrecursionlimit(_RECURSION_FLOOR)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def parse(source: str) -> AirAST:
    """Parse AIR source text into an :class:`AirAST`.

    Raises :class:`~airengine.errors.AirLexError` or
    :class:`~airengine.errors.AirParseError` on the first problem; no
    partial tree is ever returned. The interpreter recursion limit is
    raised for the duration of the call and restored afterwards.
    """
    s = TokenStream(tokenize(source), source)
    with _recursion_headroom():
        app = _parse_app(s)
    logger.debug("Parsed app '%s' with %d blocks", app.name, len(app.blocks))
    return AirAST(app=app, version=AST_VERSION)


def _parse_app(s: TokenStream) -> App:
    s.skip_newlines()
    token = s.current()
    if not token.is_(TokenKind.AT_KEYWORD, "@app"):
        raise AirParseError(
            "Missing @app:name declaration",
            1,
            1,
            token=token.value or None,
            hint="Start the file with '@app:<name>'",
        )
    s.advance()
    s.expect(TokenKind.COLON)
    if not s.is_name():
        token = s.current()
        raise s.error(f"Expected app name, got {token.kind.value} '{token.value}'")
    app = App(name=s.advance().value)

    s.skip_newlines()
    while not s.is_eof():
        token = s.expect(TokenKind.AT_KEYWORD)
        keyword = token.value[1:]
        block_parser = BLOCK_PARSERS.get(keyword)
        if block_parser is None:
            raise AirParseError(
                f"Unknown block type: {token.value}",
                token.line,
                token.column,
                token=token.value,
                source_line=s.source_line(token.line),
            )
        app.blocks.append(block_parser(s))
        s.skip_newlines()
    return app


__all__ = ["parse", "BLOCK_PARSERS", "AST_VERSION"]
