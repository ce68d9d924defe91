"""Recursive-descent parser for AIR source.

Public API:
    parse(source) -> AirAST
    TokenStream - the token cursor every block parser reads from
    BLOCK_PARSERS - ``@keyword`` to block parser table
"""

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
from .parse import AST_VERSION, BLOCK_PARSERS, parse
from .stream import TokenStream
from .types import parse_db_field_list, parse_field_list, parse_literal, parse_type
from .ui import MAX_DEPTH, parse_ui

__all__ = [
    "parse",
    "AST_VERSION",
    "BLOCK_PARSERS",
    "TokenStream",
    "parse_type",
    "parse_literal",
    "parse_field_list",
    "parse_db_field_list",
    "parse_ui",
    "MAX_DEPTH",
    "parse_state",
    "parse_style",
    "parse_api",
    "parse_auth",
    "parse_nav",
    "parse_persist",
    "parse_hook",
    "parse_db",
    "parse_cron",
    "parse_webhook",
    "parse_queue",
    "parse_email",
    "parse_env",
    "parse_handler",
    "parse_deploy",
]
