"""Naming and type-mapping helpers shared by the server module renderers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from airengine.ast import (
    ArrayType,
    AirType,
    DbField,
    DbModel,
    EnumType,
    ObjectType,
    OptionalType,
    RefType,
    Route,
    ScalarType,
    unwrap_optional,
)
from airengine.ir.routes import extract_path_params, pluralize, route_to_function_name

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

SQL_TYPES = {
    "str": "String",
    "int": "Integer",
    "float": "Float",
    "bool": "Boolean",
    "date": "Date",
    "datetime": "DateTime",
}
PYTHON_TYPES = {
    "str": "str",
    "int": "int",
    "float": "float",
    "bool": "bool",
    "date": "dt.date",
    "datetime": "dt.datetime",
}
ON_DELETE_SQL = {"cascade": "CASCADE", "setNull": "SET NULL", "restrict": "RESTRICT"}
LOGIN_HANDLERS = frozenset({"auth.login", "~jwt.verify"})
REGISTER_HANDLERS = frozenset({"auth.register", "auth.signup"})


def snake_case(name: str) -> str:
    """``OrderItem`` -> ``order_item``; ``getTaskComments`` -> ``get_task_comments``."""
    name = re.sub(r"[-\s]+", "_", name)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return name.lower()


def table_name(model_name: str) -> str:
    return pluralize(snake_case(model_name))


def py_literal(value: object) -> str:
    return repr(value)


def is_optional(air_type: AirType) -> bool:
    return isinstance(air_type, OptionalType)


def base_kind(air_type: AirType) -> str:
    """Scalar name for scalars, otherwise the descriptor kind."""
    inner = unwrap_optional(air_type)
    if isinstance(inner, ScalarType):
        return inner.name
    return inner.kind


def enum_values(air_type: AirType) -> List[str]:
    inner = unwrap_optional(air_type)
    if isinstance(inner, EnumType):
        return list(inner.values)
    return []


def python_type(air_type: AirType) -> str:
    """Annotation used in generated pydantic schemas."""
    inner = unwrap_optional(air_type)
    if isinstance(inner, EnumType):
        annotation = "Literal[" + ", ".join(py_literal(value) for value in inner.values) + "]"
    elif isinstance(inner, ArrayType):
        annotation = "List[Any]"
    elif isinstance(inner, ObjectType):
        annotation = "Dict[str, Any]"
    elif isinstance(inner, RefType):
        annotation = "int"
    elif isinstance(inner, ScalarType):
        annotation = PYTHON_TYPES.get(inner.name, "Any")
    else:
        annotation = "Any"
    if is_optional(air_type):
        return f"Optional[{annotation}]"
    return annotation


def field_default(db_field: DbField) -> Optional[object]:
    """Declared default literal, from ``:default(x)`` or the ``T(x)`` type form."""
    if db_field.default is not None:
        return db_field.default
    inner = unwrap_optional(db_field.type)
    if isinstance(inner, ScalarType):
        return inner.default
    return None


def primary_field(model: DbModel) -> Optional[DbField]:
    for db_field in model.fields:
        if db_field.primary:
            return db_field
    return None


def id_annotation(model: Optional[DbModel]) -> str:
    """Path-parameter type for ``:id`` on routes of ``model``."""
    if model is None:
        return "int"
    primary = primary_field(model)
    if primary is not None and base_kind(primary.type) != "int":
        return "str"
    return "int"


def is_server_managed(db_field: DbField) -> bool:
    """Fields the database fills in itself and clients never send."""
    return db_field.auto


def writable_fields(model: DbModel) -> List[DbField]:
    return [db_field for db_field in model.fields if not is_server_managed(db_field)]


def string_fields(model: DbModel) -> List[str]:
    return [
        db_field.name
        for db_field in model.fields
        if base_kind(db_field.type) == "str" and not db_field.primary
    ]


def order_column(model: DbModel) -> Optional[str]:
    names = [db_field.name for db_field in model.fields]
    for candidate in ("created_at", "createdAt", "id"):
        if candidate in names:
            return candidate
    return None


def fastapi_path(path: str) -> str:
    """``/projects/:id/tasks`` -> ``/projects/{id}/tasks``."""
    return re.sub(r":(\w+)", r"{\1}", path)


def nested_parent(path: str) -> Optional[str]:
    """Parent collection of ``/<parent>/:id/<child>`` paths."""
    match = re.match(r"^/(\w+)/:(\w+)/(\w+)$", path)
    if match is None:
        return None
    return match.group(1)


def nested_item_parent(path: str) -> Optional[str]:
    """Parent collection of ``/<parent>/:id/<child>/:childId`` item paths."""
    match = re.match(r"^/(\w+)/:(\w+)/(\w+)/:(\w+)$", path)
    if match is None:
        return None
    return match.group(1)


def parent_fk_column(parent: str) -> str:
    singular = parent[:-1] if parent.endswith("s") else parent
    return f"{singular}_id"


def auth_route_kind(route: Route) -> Optional[str]:
    """``login`` or ``register`` for authentication routes, else ``None``."""
    if route.handler in LOGIN_HANDLERS:
        return "login"
    if route.handler in REGISTER_HANDLERS:
        return "register"
    path = route.path.lower()
    if path.endswith("/login"):
        return "login"
    if path.endswith("/register") or path.endswith("/signup"):
        return "register"
    return None


def find_user_model(ctx: "TranspileContext") -> Optional[DbModel]:
    """The model authentication routes read and write."""
    models = ctx.models

    def has(model: DbModel, name: str) -> bool:
        return any(db_field.name == name for db_field in model.fields)

    named = ctx.model("User")
    if named is not None and has(named, "password"):
        return named
    for model in models:
        if has(model, "email") and has(model, "password"):
            return model
    if named is not None:
        return named
    for model in models:
        if has(model, "email"):
            return model
    return None


@dataclass(frozen=True)
class RouteSpec:
    """An expanded route with its generated Python handler name."""

    route: Route
    function_name: str

    @property
    def path_params(self) -> List[str]:
        return extract_path_params(self.route.path)


def route_specs(routes: Sequence[Route]) -> List[RouteSpec]:
    """Unique handler names for ``routes``, ordered so literal paths win over parameters."""
    seen: Dict[str, int] = {}
    specs: List[RouteSpec] = []
    for route in routes:
        base = snake_case(route_to_function_name(route.method, route.path)) or route.method.lower()
        count = seen.get(base, 0) + 1
        seen[base] = count
        name = base if count == 1 else f"{base}_{count}"
        specs.append(RouteSpec(route=route, function_name=name))
    return sorted(specs, key=lambda spec: len(spec.path_params))


__all__ = [
    "SQL_TYPES",
    "PYTHON_TYPES",
    "ON_DELETE_SQL",
    "snake_case",
    "table_name",
    "py_literal",
    "is_optional",
    "base_kind",
    "enum_values",
    "python_type",
    "field_default",
    "primary_field",
    "id_annotation",
    "is_server_managed",
    "writable_fields",
    "string_fields",
    "order_column",
    "fastapi_path",
    "nested_parent",
    "nested_item_parent",
    "parent_fk_column",
    "auth_route_kind",
    "find_user_model",
    "RouteSpec",
    "route_specs",
]
