"""Type descriptors used by ``@state``, ``@db``, API params and job payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Union

Literal = Union[str, int, float, bool]

SCALAR_KINDS = ("str", "int", "float", "bool", "date", "datetime")


@dataclass
class ScalarType:
    """A primitive scalar, optionally carrying a default literal (``int(0)``)."""

    name: str
    default: Optional[Literal] = None

    kind: ClassVar[str] = "scalar"


@dataclass
class EnumType:
    values: List[str] = field(default_factory=list)

    kind: ClassVar[str] = "enum"


@dataclass
class ArrayType:
    of: "AirType"

    kind: ClassVar[str] = "array"


@dataclass
class ObjectType:
    fields: List["Field"] = field(default_factory=list)

    kind: ClassVar[str] = "object"


@dataclass
class OptionalType:
    of: "AirType"

    kind: ClassVar[str] = "optional"


@dataclass
class RefType:
    entity: str

    kind: ClassVar[str] = "ref"


AirType = Union[ScalarType, EnumType, ArrayType, ObjectType, OptionalType, RefType]


@dataclass
class Field:
    name: str
    type: AirType


def type_name(air_type: AirType) -> str:
    """Return the scalar name, or the descriptor kind for composite types."""
    if isinstance(air_type, ScalarType):
        return air_type.name
    return air_type.kind


def unwrap_optional(air_type: AirType) -> AirType:
    while isinstance(air_type, OptionalType):
        air_type = air_type.of
    return air_type


def is_array(air_type: AirType) -> bool:
    return isinstance(unwrap_optional(air_type), ArrayType)


__all__ = [
    "Literal",
    "SCALAR_KINDS",
    "ScalarType",
    "EnumType",
    "ArrayType",
    "ObjectType",
    "OptionalType",
    "RefType",
    "AirType",
    "Field",
    "type_name",
    "unwrap_optional",
    "is_array",
]
