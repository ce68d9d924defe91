"""UI expression tree produced by the ``@ui`` block parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Union

UNARY_OPERATORS = ("*", "!", "~", "^", "?", "#", "$")
BINARY_OPERATORS = ("+", ">", "|", ":")


@dataclass
class ElementNode:
    """A named element such as ``list`` or ``items.length``, with optional children."""

    element: str
    children: Optional[List["UINode"]] = None

    kind: ClassVar[str] = "element"


@dataclass
class ScopedNode:
    """``@page:name(...)`` or ``@section:name(...)``."""

    scope: str
    name: str
    children: List["UINode"] = field(default_factory=list)

    kind: ClassVar[str] = "scoped"


@dataclass
class TextNode:
    text: str

    kind: ClassVar[str] = "text"


@dataclass
class ValueNode:
    value: Union[int, float, bool, str]

    kind: ClassVar[str] = "value"


@dataclass
class UnaryNode:
    operator: str
    operand: "UINode"

    kind: ClassVar[str] = "unary"


@dataclass
class BinaryNode:
    operator: str
    left: "UINode"
    right: "UINode"

    kind: ClassVar[str] = "binary"


UINode = Union[ElementNode, ScopedNode, TextNode, ValueNode, UnaryNode, BinaryNode]


__all__ = [
    "UNARY_OPERATORS",
    "BINARY_OPERATORS",
    "ElementNode",
    "ScopedNode",
    "TextNode",
    "ValueNode",
    "UnaryNode",
    "BinaryNode",
    "UINode",
]
