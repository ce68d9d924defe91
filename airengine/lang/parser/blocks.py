"""One recursive-descent routine per top-level block kind.

Each routine is entered with the cursor just past the block's ``@keyword``
header and leaves it just past the block's closing delimiter.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Union

from airengine.ast import (
    APIBlock,
    AuthBlock,
    CronBlock,
    CronJob,
    DbBlock,
    DbIndex,
    DbModel,
    DbRelation,
    DeployBlock,
    EmailBlock,
    EmailTemplate,
    EnumType,
    EnvBlock,
    EnvVar,
    Field,
    HandlerBlock,
    HandlerContract,
    Hook,
    HookBlock,
    Literal,
    NavBlock,
    NavRoute,
    PersistBlock,
    QueueBlock,
    QueueJob,
    Route,
    ScalarType,
    StateBlock,
    StyleBlock,
    WebhookBlock,
    WebhookRoute,
)
from airengine.lang.lexer import TokenKind

from .stream import TokenStream
from .types import (
    parse_db_field_list,
    parse_field_list,
    parse_type,
    read_dotted_name,
    read_expression_until_newline,
    read_path,
    read_single_action,
    to_number,
)

PERSIST_FLAGS = frozenset({"httpOnly", "secure", "sameSite", "strict", "lax", "none"})
_DURATION = re.compile(r"^\d+[dhms]$")

ON_DELETE_POLICIES = {"cascade": "cascade", "set-null": "setNull", "restrict": "restrict"}


def _open(s: TokenStream, kind: TokenKind = TokenKind.OPEN_PAREN) -> None:
    s.expect(kind)
    s.skip_newlines()


def _skip_comma(s: TokenStream) -> None:
    s.skip_newlines()
    s.match(TokenKind.COMMA)
    s.skip_newlines()


def _optional_params(s: TokenStream) -> Optional[List[Field]]:
    if not s.is_(TokenKind.OPEN_PAREN):
        return None
    s.advance()
    params = parse_field_list(s, TokenKind.CLOSE_PAREN)
    s.expect(TokenKind.CLOSE_PAREN)
    return params or None


# ---- @state / @style ----

def parse_state(s: TokenStream) -> StateBlock:
    _open(s, TokenKind.OPEN_BRACE)
    fields = parse_field_list(s, TokenKind.CLOSE_BRACE)
    s.skip_newlines()
    s.expect(TokenKind.CLOSE_BRACE)
    return StateBlock(fields=fields)


def parse_style(s: TokenStream) -> StyleBlock:
    _open(s)
    properties: Dict[str, Literal] = {}
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        key = s.expect(TokenKind.IDENTIFIER).value
        s.expect(TokenKind.COLON)
        properties[key] = _parse_style_value(s)
        s.skip_newlines()
        if not s.match(TokenKind.COMMA):
            s.skip_newlines()
            break
        s.skip_newlines()
    s.expect(TokenKind.CLOSE_PAREN)
    return StyleBlock(properties=properties)


def _parse_style_value(s: TokenStream) -> Literal:
    if s.is_(TokenKind.NUMBER):
        return to_number(s.advance().value)
    if s.is_(TokenKind.STRING):
        return s.advance().value
    if s.is_(TokenKind.BOOLEAN):
        return s.advance().value == "true"
    if s.is_name():
        value = s.advance().value
        while s.is_op("+"):
            s.advance()
            if s.is_name():
                value += "+" + s.advance().value
        return value
    token = s.current()
    raise s.error(f"Expected style value, got {token.kind.value} '{token.value}'")


# ---- @api ----

def parse_api(s: TokenStream) -> APIBlock:
    _open(s)
    routes: List[Route] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        routes.append(_parse_route(s))
        s.skip_newlines()
    s.expect(TokenKind.CLOSE_PAREN)
    return APIBlock(routes=routes)


def _parse_route(s: TokenStream) -> Route:
    method = s.expect(TokenKind.IDENTIFIER).value
    s.expect(TokenKind.COLON)
    path = read_path(s)
    params: Optional[List[Field]] = None
    if s.is_(TokenKind.OPEN_PAREN):
        s.advance()
        params = _parse_route_params(s)
        s.expect(TokenKind.CLOSE_PAREN)
    s.expect(TokenKind.OPERATOR, ">")
    handler = read_expression_until_newline(s)
    return Route(method=method, path=path, handler=handler, params=params or None)


def _parse_route_params(s: TokenStream) -> List[Field]:
    params: List[Field] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        if s.is_op("?"):
            s.advance()
            name = "?" + s.advance().value
        else:
            name = s.advance().value
        param_type = ScalarType(name="str")
        if s.match(TokenKind.COLON):
            param_type = parse_type(s)
        params.append(Field(name=name, type=param_type))
        if not s.match(TokenKind.COMMA):
            break
    return params


# ---- @auth / @nav ----

def parse_auth(s: TokenStream) -> AuthBlock:
    _open(s)
    block = AuthBlock()
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        if s.match(TokenKind.IDENTIFIER, "required"):
            block.required = True
        elif s.match(TokenKind.IDENTIFIER, "role"):
            s.expect(TokenKind.COLON)
            if s.match(TokenKind.TYPE_KEYWORD, "enum"):
                s.expect(TokenKind.OPEN_PAREN)
                values: List[str] = []
                while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
                    values.append(s.advance().value)
                    if not s.match(TokenKind.COMMA):
                        break
                s.expect(TokenKind.CLOSE_PAREN)
                block.role = EnumType(values=values)
            else:
                block.role = s.advance().value
        elif s.match(TokenKind.IDENTIFIER, "redirect"):
            s.expect(TokenKind.COLON)
            block.redirect = read_path(s)
        else:
            s.advance()
        _skip_comma(s)
    s.expect(TokenKind.CLOSE_PAREN)
    return block


def parse_nav(s: TokenStream) -> NavBlock:
    _open(s)
    routes: List[NavRoute] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        routes.append(_parse_nav_route(s))
        _skip_comma(s)
    s.expect(TokenKind.CLOSE_PAREN)
    return NavBlock(routes=routes)


def _read_target_path(s: TokenStream) -> str:
    if s.is_op("/"):
        return read_path(s)
    if s.is_name():
        return s.advance().value
    return ""


def _parse_nav_route(s: TokenStream) -> NavRoute:
    path = ""
    if s.is_op("/"):
        s.advance()
        path = "/"
        while s.is_name() or s.is_(TokenKind.HASH) or s.is_op("/") or s.is_op("-"):
            path += s.advance().value

    if not s.is_op(">"):
        return NavRoute(path=path, target=path)
    s.advance()

    condition: Optional[str] = None
    if s.is_op("?"):
        s.advance()
        if s.is_name():
            condition = s.advance().value
        s.expect(TokenKind.OPERATOR, ">")

    target = ""
    if s.is_(TokenKind.AT_KEYWORD):
        target = s.advance().value
        if s.match(TokenKind.COLON):
            suffix = _read_target_path(s)
            if suffix:
                target += ":" + suffix
    elif s.is_name():
        target = s.advance().value
    elif s.is_op("/"):
        target = read_path(s)

    fallback: Optional[str] = None
    if s.match(TokenKind.COLON):
        fallback = _read_target_path(s) or None

    return NavRoute(path=path, target=target, condition=condition, fallback=fallback)


# ---- @persist / @hook ----

def parse_persist(s: TokenStream, method: str) -> PersistBlock:
    """``@persist:<method>(keys..., flags)``; flags and durations become options."""
    _open(s)
    args: List[str] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        if s.is_name():
            arg = s.advance().value
            while s.is_op("."):
                s.advance()
                if s.is_name():
                    arg += "." + s.advance().value
            args.append(arg)
        elif s.is_(TokenKind.NUMBER):
            args.append(s.advance().value)
        else:
            s.advance()
        _skip_comma(s)
    s.expect(TokenKind.CLOSE_PAREN)

    keys: List[str] = []
    options: Dict[str, Literal] = {}
    for arg in args:
        if arg in PERSIST_FLAGS or _DURATION.match(arg):
            options[arg] = True
        else:
            keys.append(arg)
    return PersistBlock(method=method, keys=keys, options=options or None)


def parse_hook(s: TokenStream) -> HookBlock:
    _open(s)
    hooks: List[Hook] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        trigger = ""
        if s.is_name():
            trigger = s.advance().value
            if s.match(TokenKind.COLON) and s.is_name():
                trigger += ":" + s.advance().value
        s.expect(TokenKind.OPERATOR, ">")
        actions = [read_single_action(s)]
        while s.is_op("+"):
            s.advance()
            actions.append(read_single_action(s))
        hooks.append(Hook(trigger=trigger, actions=actions))
        s.skip_newlines()
    s.expect(TokenKind.CLOSE_PAREN)
    return HookBlock(hooks=hooks)


# ---- @db ----

def parse_db(s: TokenStream) -> DbBlock:
    _open(s, TokenKind.OPEN_BRACE)
    block = DbBlock()
    while not s.is_(TokenKind.CLOSE_BRACE) and not s.is_eof():
        if s.match(TokenKind.AT_KEYWORD, "@index"):
            block.indexes.extend(_parse_indexes(s))
        elif s.match(TokenKind.AT_KEYWORD, "@relation"):
            block.relations.extend(_parse_relations(s))
        elif s.is_(TokenKind.IDENTIFIER):
            name = s.advance().value
            s.expect(TokenKind.OPEN_BRACE)
            fields = parse_db_field_list(s, TokenKind.CLOSE_BRACE)
            s.expect(TokenKind.CLOSE_BRACE)
            block.models.append(DbModel(name=name, fields=fields))
        else:
            s.advance()
        s.skip_newlines()
    s.expect(TokenKind.CLOSE_BRACE)
    return block


def _parse_indexes(s: TokenStream) -> List[DbIndex]:
    indexes: List[DbIndex] = []
    s.expect(TokenKind.OPEN_PAREN)
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        fields = [read_dotted_name(s)]
        unique = False
        if s.match(TokenKind.COLON) and s.match(TokenKind.IDENTIFIER, "unique"):
            unique = True
        while s.is_op("+"):
            s.advance()
            fields.append(read_dotted_name(s))
        indexes.append(DbIndex(fields=fields, unique=unique))
        if not s.match(TokenKind.COMMA):
            break
    s.expect(TokenKind.CLOSE_PAREN)
    return indexes


def _parse_relations(s: TokenStream) -> List[DbRelation]:
    relations: List[DbRelation] = []
    s.expect(TokenKind.OPEN_PAREN)
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        source = read_dotted_name(s)
        s.expect(TokenKind.OPERATOR, "<")
        s.expect(TokenKind.OPERATOR, ">")
        target = read_dotted_name(s)
        on_delete: Optional[str] = None
        if s.is_(TokenKind.COLON):
            pos = s.save()
            s.advance()
            token = s.current()
            if token.kind is TokenKind.IDENTIFIER and token.value in ON_DELETE_POLICIES:
                s.advance()
                on_delete = ON_DELETE_POLICIES[token.value]
            else:
                s.restore(pos)
        relations.append(DbRelation(from_=source, to=target, on_delete=on_delete))
        if not s.match(TokenKind.COMMA):
            break
    s.expect(TokenKind.CLOSE_PAREN)
    return relations


# ---- backend service blocks ----

def parse_cron(s: TokenStream) -> CronBlock:
    _open(s)
    jobs: List[CronJob] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        name = s.expect(TokenKind.IDENTIFIER).value
        s.expect(TokenKind.OPERATOR, ">")
        schedule = s.expect(TokenKind.STRING).value
        s.expect(TokenKind.OPERATOR, ">")
        jobs.append(CronJob(name=name, schedule=schedule, handler=read_single_action(s)))
        s.skip_newlines()
    s.expect(TokenKind.CLOSE_PAREN)
    return CronBlock(jobs=jobs)


def parse_webhook(s: TokenStream) -> WebhookBlock:
    _open(s)
    routes: List[WebhookRoute] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        method = s.expect(TokenKind.IDENTIFIER).value
        s.expect(TokenKind.COLON)
        path = read_path(s)
        s.expect(TokenKind.OPERATOR, ">")
        routes.append(WebhookRoute(method=method, path=path, handler=read_single_action(s)))
        s.skip_newlines()
    s.expect(TokenKind.CLOSE_PAREN)
    return WebhookBlock(routes=routes)


def parse_queue(s: TokenStream) -> QueueBlock:
    _open(s)
    jobs: List[QueueJob] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        name = s.expect(TokenKind.IDENTIFIER).value
        params = _optional_params(s)
        s.expect(TokenKind.OPERATOR, ">")
        jobs.append(QueueJob(name=name, handler=read_single_action(s), params=params))
        s.skip_newlines()
    s.expect(TokenKind.CLOSE_PAREN)
    return QueueBlock(jobs=jobs)


def parse_email(s: TokenStream) -> EmailBlock:
    _open(s)
    templates: List[EmailTemplate] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        name = s.expect(TokenKind.IDENTIFIER).value
        params = _optional_params(s)
        s.expect(TokenKind.OPERATOR, ">")
        subject = s.expect(TokenKind.STRING).value
        templates.append(EmailTemplate(name=name, subject=subject, params=params))
        s.skip_newlines()
    s.expect(TokenKind.CLOSE_PAREN)
    return EmailBlock(templates=templates)


def parse_env(s: TokenStream) -> EnvBlock:
    _open(s)
    variables: List[EnvVar] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        name = s.expect(TokenKind.IDENTIFIER).value
        s.expect(TokenKind.COLON)
        var_type = s.advance().value
        s.expect(TokenKind.COLON)
        required = False
        default: Optional[Union[str, int, float, bool]] = None
        if s.match(TokenKind.IDENTIFIER, "required"):
            required = True
        elif s.is_(TokenKind.STRING):
            default = s.advance().value
        elif s.is_(TokenKind.NUMBER):
            default = to_number(s.advance().value)
        elif s.is_(TokenKind.BOOLEAN):
            default = s.advance().value == "true"
        variables.append(EnvVar(name=name, type=var_type, required=required, default=default))
        _skip_comma(s)
    s.expect(TokenKind.CLOSE_PAREN)
    return EnvBlock(vars=variables)


def parse_handler(s: TokenStream) -> HandlerBlock:
    _open(s)
    contracts: List[HandlerContract] = []
    seen = set()
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        name = s.expect(TokenKind.IDENTIFIER).value
        if name in seen:
            raise s.error(f"Duplicate handler contract: '{name}'")
        seen.add(name)
        params: List[Field] = []
        if s.match(TokenKind.OPEN_PAREN):
            params = parse_field_list(s, TokenKind.CLOSE_PAREN)
            s.expect(TokenKind.CLOSE_PAREN)
        target: Optional[str] = None
        if s.match(TokenKind.OPERATOR, ">"):
            target = read_single_action(s) or None
        contracts.append(HandlerContract(name=name, params=params, target=target))
        s.skip_newlines()
    s.expect(TokenKind.CLOSE_PAREN)
    return HandlerBlock(contracts=contracts)


def parse_deploy(s: TokenStream) -> DeployBlock:
    _open(s)
    properties: Dict[str, Literal] = {}
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        key = s.expect(TokenKind.IDENTIFIER).value
        s.expect(TokenKind.COLON)
        if s.is_(TokenKind.NUMBER):
            properties[key] = to_number(s.advance().value)
        elif s.is_(TokenKind.BOOLEAN):
            properties[key] = s.advance().value == "true"
        elif s.is_(TokenKind.STRING):
            properties[key] = s.advance().value
        elif s.is_op("/"):
            properties[key] = read_path(s)
        elif s.is_name():
            properties[key] = s.advance().value
        _skip_comma(s)
    s.expect(TokenKind.CLOSE_PAREN)
    return DeployBlock(properties=properties)


__all__ = [
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
