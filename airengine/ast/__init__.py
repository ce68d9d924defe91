"""Typed AST for AIR programs."""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any

from .blocks import (
    AirAST,
    APIBlock,
    App,
    AuthBlock,
    Block,
    CronBlock,
    CronJob,
    DbBlock,
    DbField,
    DbIndex,
    DbModel,
    DbRelation,
    DeployBlock,
    EmailBlock,
    EmailTemplate,
    EnvBlock,
    EnvVar,
    HandlerBlock,
    HandlerContract,
    Hook,
    HookBlock,
    NavBlock,
    NavRoute,
    PersistBlock,
    QueueBlock,
    QueueJob,
    Route,
    StateBlock,
    StyleBlock,
    UIBlock,
    WebhookBlock,
    WebhookRoute,
)
from .types import (
    AirType,
    ArrayType,
    EnumType,
    Field,
    Literal,
    ObjectType,
    OptionalType,
    RefType,
    ScalarType,
    is_array,
    type_name,
    unwrap_optional,
)
from .ui import BinaryNode, ElementNode, ScopedNode, TextNode, UINode, UnaryNode, ValueNode


def to_dict(node: Any) -> Any:
    """Convert an AST (or any node inside it) to plain JSON-compatible data.

    Tagged nodes gain a ``kind`` key; ``None`` fields are dropped.
    """
    if is_dataclass(node) and not isinstance(node, type):
        data = {}
        kind = getattr(type(node), "kind", None)
        if kind is not None:
            data["kind"] = kind
        for item in fields(node):
            value = getattr(node, item.name)
            if value is None:
                continue
            data[item.name.rstrip("_")] = to_dict(value)
        return data
    if isinstance(node, list):
        return [to_dict(item) for item in node]
    if isinstance(node, dict):
        return {key: to_dict(value) for key, value in node.items()}
    return node


__all__ = [
    "AirAST",
    "App",
    "Block",
    "StateBlock",
    "StyleBlock",
    "UIBlock",
    "APIBlock",
    "Route",
    "AuthBlock",
    "NavBlock",
    "NavRoute",
    "PersistBlock",
    "HookBlock",
    "Hook",
    "DbBlock",
    "DbModel",
    "DbField",
    "DbRelation",
    "DbIndex",
    "CronBlock",
    "CronJob",
    "WebhookBlock",
    "WebhookRoute",
    "QueueBlock",
    "QueueJob",
    "EmailBlock",
    "EmailTemplate",
    "EnvBlock",
    "EnvVar",
    "DeployBlock",
    "HandlerBlock",
    "HandlerContract",
    "AirType",
    "ScalarType",
    "EnumType",
    "ArrayType",
    "ObjectType",
    "OptionalType",
    "RefType",
    "Field",
    "Literal",
    "type_name",
    "unwrap_optional",
    "is_array",
    "UINode",
    "ElementNode",
    "ScopedNode",
    "TextNode",
    "ValueNode",
    "UnaryNode",
    "BinaryNode",
    "to_dict",
]
