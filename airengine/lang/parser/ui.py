"""``@ui`` expression grammar.

Binding strength, loosest first::

    newline / comma   sibling separator
    +                 compose
    >                 flow
    |                 pipe
    :                 bind, optionally followed by ``(children)``
    * ! ~ ^ ? # $     prefix
    atom              text, value, raw {..}/[..], @page/@section, element, /path
"""

from __future__ import annotations

from typing import List, Optional

from airengine.ast import (
    BinaryNode,
    ElementNode,
    ScopedNode,
    TextNode,
    UIBlock,
    UINode,
    UnaryNode,
    ValueNode,
)
from airengine.lang.lexer import TokenKind

from .stream import TokenStream
from .types import to_number

MAX_DEPTH = 500

_ATOM_PREFIXES = ("*", "!", "~", "^", "?")


def parse_ui(s: TokenStream) -> UIBlock:
    s.expect(TokenKind.OPEN_PAREN)
    s.skip_newlines()
    children = parse_expression_list(s, TokenKind.CLOSE_PAREN, 0)
    s.expect(TokenKind.CLOSE_PAREN)
    return UIBlock(children=children)


def parse_expression_list(s: TokenStream, terminator: TokenKind, depth: int) -> List[UINode]:
    if depth > MAX_DEPTH:
        raise s.error(f"Max nesting depth ({MAX_DEPTH}) exceeded")
    nodes: List[UINode] = []
    _skip_separators(s)
    while not s.is_(terminator) and not s.is_eof():
        nodes.append(_parse_compose(s, depth))
        _skip_separators(s)
    return nodes


def _skip_separators(s: TokenStream) -> None:
    while s.is_(TokenKind.NEWLINE) or s.is_(TokenKind.COMMA):
        s.advance()


def _parse_compose(s: TokenStream, depth: int) -> UINode:
    left = _parse_flow(s, depth)
    while s.is_op("+"):
        s.advance()
        left = BinaryNode("+", left, _parse_flow(s, depth))
    return left


def _parse_flow(s: TokenStream, depth: int) -> UINode:
    left = _parse_pipe(s, depth)
    while s.is_op(">"):
        s.advance()
        left = BinaryNode(">", left, _parse_pipe(s, depth))
    return left


def _parse_pipe(s: TokenStream, depth: int) -> UINode:
    left = _parse_bind(s, depth)
    while s.is_op("|"):
        s.advance()
        left = BinaryNode("|", left, _parse_bind(s, depth))
    return left


def _parse_bind(s: TokenStream, depth: int) -> UINode:
    left = _parse_prefix(s, depth)
    while s.is_(TokenKind.COLON):
        s.advance()
        left = BinaryNode(":", left, _parse_prefix(s, depth))

    # grid:3(...) and plan("Free",0,[...]) attach children after the chain
    if s.is_(TokenKind.OPEN_PAREN):
        s.advance()
        _skip_separators(s)
        children = parse_expression_list(s, TokenKind.CLOSE_PAREN, depth + 1)
        s.expect(TokenKind.CLOSE_PAREN)
        if children:
            name = leftmost_element_name(left)
            if name and isinstance(left, ElementNode):
                left = ElementNode(element=left.element, children=children)
            else:
                left = ElementNode(element=name or "_expr", children=[left, *children])
    return left


def leftmost_element_name(node: UINode) -> Optional[str]:
    if isinstance(node, ElementNode):
        return node.element
    if isinstance(node, BinaryNode) and node.operator == ":":
        return leftmost_element_name(node.left)
    return None


def _parse_prefix(s: TokenStream, depth: int) -> UINode:
    if any(s.is_op(op) for op in _ATOM_PREFIXES):
        operator = s.advance().value
        return UnaryNode(operator, _parse_atom(s, depth))
    if s.is_(TokenKind.HASH):
        s.advance()
        return UnaryNode("#", _parse_atom(s, depth))
    if s.is_op("$"):
        s.advance()
        return UnaryNode("$", _parse_prefix(s, depth))
    return _parse_atom(s, depth)


def _read_balanced(s: TokenStream, opener: TokenKind, closer: TokenKind) -> str:
    level = 0
    raw: List[str] = []
    while not s.is_eof():
        if s.is_(opener):
            level += 1
        if s.is_(closer):
            level -= 1
            if level == 0:
                s.advance()
                break
        raw.append(s.advance().value)
    # raw starts with the opener itself
    return "".join(raw[1:])


def _parse_atom(s: TokenStream, depth: int) -> UINode:
    token = s.current()

    if token.kind is TokenKind.STRING:
        s.advance()
        return TextNode(token.value)
    if token.kind is TokenKind.NUMBER:
        s.advance()
        return ValueNode(to_number(token.value))
    if token.kind is TokenKind.BOOLEAN:
        s.advance()
        return ValueNode(token.value == "true")

    if token.kind is TokenKind.OPEN_BRACE:
        return TextNode("{" + _read_balanced(s, TokenKind.OPEN_BRACE, TokenKind.CLOSE_BRACE) + "}")
    if token.kind is TokenKind.OPEN_BRACKET:
        return TextNode("[" + _read_balanced(s, TokenKind.OPEN_BRACKET, TokenKind.CLOSE_BRACKET) + "]")

    if token.kind is TokenKind.AT_KEYWORD:
        s.advance()
        if token.value in ("@page", "@section"):
            s.expect(TokenKind.COLON)
            name = s.advance().value
            s.expect(TokenKind.OPEN_PAREN)
            s.skip_newlines()
            children = parse_expression_list(s, TokenKind.CLOSE_PAREN, depth + 1)
            s.expect(TokenKind.CLOSE_PAREN)
            return ScopedNode(scope=token.value[1:], name=name, children=children)
        return ElementNode(element=token.value)

    if s.is_name():
        full_name = s.advance().value
        while s.is_op("."):
            s.advance()
            if s.is_name() or s.is_(TokenKind.NUMBER):
                full_name += "." + s.advance().value
            else:
                break
        children: Optional[List[UINode]] = None
        if s.is_(TokenKind.OPEN_PAREN):
            s.advance()
            s.skip_newlines()
            children = parse_expression_list(s, TokenKind.CLOSE_PAREN, depth + 1)
            s.expect(TokenKind.CLOSE_PAREN)
        return ElementNode(element=full_name, children=children or None)

    if s.is_op("/"):
        path = ""
        while s.is_op("/") or s.is_name() or s.is_op(".") or s.is_op("-"):
            path += s.advance().value
        return TextNode(path)

    if token.kind is TokenKind.OPERATOR:
        s.advance()
        return ValueNode(token.value)

    raise s.error(f"Unexpected token in @ui: {token.kind.value} '{token.value}'")


__all__ = ["parse_ui", "parse_expression_list", "leftmost_element_name", "MAX_DEPTH"]
