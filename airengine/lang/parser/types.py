"""Type, literal and field-list grammar shared by several blocks."""

from __future__ import annotations

from typing import List, Union

from airengine.ast import (
    AirType,
    ArrayType,
    DbField,
    EnumType,
    Field,
    Literal,
    ObjectType,
    OptionalType,
    RefType,
    ScalarType,
)
from airengine.lang.lexer import TokenKind

from .stream import TokenStream


def to_number(text: str) -> Union[int, float]:
    """Numeric token text to ``int`` when integral, otherwise ``float``."""
    if "." in text:
        return float(text)
    return int(text)


def parse_type(s: TokenStream) -> AirType:
    if s.is_op("?"):
        s.advance()
        return OptionalType(of=parse_type(s))

    if s.is_(TokenKind.OPEN_BRACKET):
        s.advance()
        inner = parse_type(s)
        s.expect(TokenKind.CLOSE_BRACKET)
        return ArrayType(of=inner)

    if s.is_(TokenKind.OPEN_BRACE):
        s.advance()
        fields = parse_field_list(s, TokenKind.CLOSE_BRACE)
        s.expect(TokenKind.CLOSE_BRACE)
        return ObjectType(fields=fields)

    if s.is_(TokenKind.HASH):
        s.advance()
        return RefType(entity=s.expect(TokenKind.IDENTIFIER).value)

    if s.is_(TokenKind.TYPE_KEYWORD):
        keyword = s.advance().value
        if keyword == "enum":
            return EnumType(values=_parse_enum_values(s) if s.is_(TokenKind.OPEN_PAREN) else [])
        if s.is_(TokenKind.OPEN_PAREN):
            s.advance()
            default = parse_literal(s)
            s.expect(TokenKind.CLOSE_PAREN)
            return ScalarType(name=keyword, default=default)
        return ScalarType(name=keyword)

    if s.is_name():
        pos = s.save()
        first = s.advance().value
        if s.is_op("|"):
            values = [first]
            while s.is_op("|"):
                s.advance()
                if not s.is_name():
                    break
                values.append(s.advance().value)
            return EnumType(values=values)
        shorthand = _parse_shorthand(s, first)
        if shorthand is not None:
            return shorthand
        s.restore(pos)

    token = s.current()
    raise s.error(f"Expected type, got {token.kind.value} '{token.value}'")


def _parse_shorthand(s: TokenStream, name: str):
    if name == "list":
        if s.is_(TokenKind.OPEN_PAREN):
            s.advance()
            inner = parse_type(s)
            s.expect(TokenKind.CLOSE_PAREN)
            return ArrayType(of=inner)
        return ArrayType(of=ScalarType(name="str"))
    if name == "map":
        return ObjectType(fields=[])
    if name == "any":
        return ScalarType(name="str")
    return None


def _parse_enum_values(s: TokenStream) -> List[str]:
    s.expect(TokenKind.OPEN_PAREN)
    values: List[str] = []
    while not s.is_(TokenKind.CLOSE_PAREN) and not s.is_eof():
        values.append(s.advance().value)
        if not s.match(TokenKind.COMMA):
            break
    s.expect(TokenKind.CLOSE_PAREN)
    return values


def parse_literal(s: TokenStream) -> Literal:
    if s.is_(TokenKind.NUMBER):
        return to_number(s.advance().value)
    if s.is_(TokenKind.STRING):
        return s.advance().value
    if s.is_(TokenKind.BOOLEAN):
        return s.advance().value == "true"
    if s.is_(TokenKind.IDENTIFIER):
        return s.advance().value
    raise s.error(f"Expected literal, got {s.current().kind.value}")


def _next_field(s: TokenStream, terminator: TokenKind) -> bool:
    """Consume a field separator; False when the list is over."""
    s.skip_newlines()
    if not s.match(TokenKind.COMMA):
        s.skip_newlines()
        if not s.is_(terminator):
            return False
    s.skip_newlines()
    return True


def parse_field_list(s: TokenStream, terminator: TokenKind) -> List[Field]:
    fields: List[Field] = []
    s.skip_newlines()
    while not s.is_(terminator) and not s.is_eof():
        if not s.is_name():
            break
        name = s.advance().value
        s.expect(TokenKind.COLON)
        fields.append(Field(name=name, type=parse_type(s)))
        if not _next_field(s, terminator):
            break
    return fields


def parse_db_field_list(s: TokenStream, terminator: TokenKind) -> List[DbField]:
    """Like :func:`parse_field_list` plus ``:primary :required :auto :default(x)``."""
    fields: List[DbField] = []
    s.skip_newlines()
    while not s.is_(terminator) and not s.is_eof():
        if not s.is_name():
            break
        name = s.advance().value
        s.expect(TokenKind.COLON)
        field = DbField(name=name, type=parse_type(s))
        while s.is_(TokenKind.COLON):
            pos = s.save()
            s.advance()
            if s.match(TokenKind.IDENTIFIER, "primary"):
                field.primary = True
            elif s.match(TokenKind.IDENTIFIER, "required"):
                field.required = True
            elif s.match(TokenKind.IDENTIFIER, "auto"):
                field.auto = True
            elif s.match(TokenKind.IDENTIFIER, "default"):
                s.expect(TokenKind.OPEN_PAREN)
                field.default = parse_literal(s)
                s.expect(TokenKind.CLOSE_PAREN)
            else:
                s.restore(pos)
                break
        fields.append(field)
        if not _next_field(s, terminator):
            break
    return fields


def read_path(s: TokenStream) -> str:
    """Read ``/a/:id/b.c-d``; a bare ``:`` not followed by a name ends the path."""
    parts: List[str] = []
    if s.is_op("/"):
        parts.append(s.advance().value)
    while not s.is_eof():
        if s.is_name():
            parts.append(s.advance().value)
        elif s.is_(TokenKind.COLON):
            if s.peek(1).kind not in (TokenKind.IDENTIFIER, TokenKind.TYPE_KEYWORD):
                break
            s.advance()
            parts.append(":" + s.advance().value)
        elif s.is_op("/") or s.is_op(".") or s.is_op("-"):
            parts.append(s.advance().value)
        else:
            break
    return "".join(parts) or "/"


def read_dotted_name(s: TokenStream) -> str:
    name = s.advance().value
    while s.is_op("."):
        s.advance()
        if s.is_name() or s.is_(TokenKind.NUMBER):
            name += "." + s.advance().value
    return name


def read_single_action(s: TokenStream) -> str:
    """Read ``[~!#]dotted.name`` as used by hooks, cron, webhooks and queues."""
    action = ""
    if s.is_op("~") or s.is_op("!") or s.is_(TokenKind.HASH):
        action += s.advance().value
    if s.is_name():
        action += s.advance().value
        while s.is_op("."):
            action += s.advance().value
            if s.is_name():
                action += s.advance().value
    return action


def read_expression_until_newline(s: TokenStream) -> str:
    """Concatenate tokens up to a newline or an unbalanced ``)``."""
    parts: List[str] = []
    depth = 0
    while not s.is_eof():
        if depth == 0 and (s.is_(TokenKind.NEWLINE) or s.is_(TokenKind.CLOSE_PAREN)):
            break
        token = s.advance()
        if token.kind is TokenKind.OPEN_PAREN:
            depth += 1
        elif token.kind is TokenKind.CLOSE_PAREN:
            depth -= 1
        if token.kind is TokenKind.STRING:
            parts.append('"' + token.value + '"')
        else:
            parts.append(token.value)
    return "".join(parts).strip()


__all__ = [
    "to_number",
    "parse_type",
    "parse_literal",
    "parse_field_list",
    "parse_db_field_list",
    "read_path",
    "read_dotted_name",
    "read_single_action",
    "read_expression_until_newline",
]
