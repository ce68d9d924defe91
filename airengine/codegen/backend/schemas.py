"""Render the generated pydantic schemas (``server/schemas.py``)."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, List, Set

from airengine.ast import DbField, DbModel, RefType, Route, unwrap_optional
from airengine.ir.routes import route_body_fields

from .helpers import auth_route_kind, field_default, is_optional, py_literal, python_type, writable_fields
from .models import foreign_keys

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

__all__ = ["_render_schemas_module", "REDACTED_FIELDS"]

REDACTED_FIELDS = frozenset({"password", "password_hash"})
_TYPING_NAMES = ("Any", "Dict", "List", "Literal", "Optional")


def _is_foreign_key(db_field: DbField, fk_fields: Set[str]) -> bool:
    return (
        db_field.name in fk_fields
        or db_field.name.endswith("_id")
        or isinstance(unwrap_optional(db_field.type), RefType)
    )


def _optional(annotation: str) -> str:
    return annotation if annotation.startswith("Optional[") else f"Optional[{annotation}]"


def _create_line(model: DbModel, db_field: DbField, fk_fields: Set[str]) -> str:
    annotation = python_type(db_field.type)
    default = field_default(db_field)
    if _is_foreign_key(db_field, fk_fields):
        return f"    {db_field.name}: {_optional(annotation)} = None"
    if default is not None:
        return f"    {db_field.name}: {annotation} = {py_literal(default)}"
    if is_optional(db_field.type):
        return f"    {db_field.name}: {annotation} = None"
    return f"    {db_field.name}: {annotation}"


def _render_model_schemas(model: DbModel, fk_fields: Set[str]) -> List[str]:
    name = model.name
    writable = writable_fields(model)
    lines = [f"class {name}Create(BaseModel):"]
    lines.extend(_create_line(model, db_field, fk_fields) for db_field in writable)
    if not writable:
        lines.append("    pass")

    lines.extend(["", "", f"class {name}Update(BaseModel):"])
    lines.extend(f"    {db_field.name}: {_optional(python_type(db_field.type))} = None" for db_field in writable)
    if not writable:
        lines.append("    pass")

    lines.extend(["", "", f"class {name}Read(BaseModel):", "    model_config = ConfigDict(from_attributes=True)", ""])
    for db_field in model.fields:
        if db_field.name in REDACTED_FIELDS:
            continue
        lines.append(f"    {db_field.name}: {_optional(python_type(db_field.type))} = None")
    return lines


def _auth_schemas(routes: List[Route]) -> List[str]:
    lines = [
        "class LoginRequest(BaseModel):",
        "    email: str",
        "    password: str",
        "",
        "",
        "class AuthResponse(BaseModel):",
        "    user: Dict[str, Any]",
        "    token: str",
    ]
    register = next((route for route in routes if auth_route_kind(route) == "register"), None)
    if register is not None:
        fields = route_body_fields(register)
        lines.extend(["", "", "class RegisterRequest(BaseModel):"])
        if fields:
            for item in fields:
                lines.append(f"    {item.name}: {python_type(item.type)}" + (" = None" if is_optional(item.type) else ""))
        else:
            lines.extend(["    email: str", "    password: str", "    name: Optional[str] = None"])
    return lines


def _render_schemas_module(ctx: "TranspileContext") -> str:
    body: List[str] = []
    fk_fields: Set[str] = set()
    if ctx.db is not None:
        fk_fields = {field_name for (_model, field_name) in foreign_keys(ctx.db)}
    for model in ctx.models:
        if body:
            body.extend(["", ""])
        body.extend(_render_model_schemas(model, fk_fields))
    if ctx.has_auth_routes:
        if body:
            body.extend(["", ""])
        body.extend(_auth_schemas(ctx.expanded_routes))

    text = "\n".join(body)
    typing_names = [name for name in _TYPING_NAMES if re.search(rf"\b{name}\b", text)]
    uses_dates = "dt." in text
    pydantic_names = ["BaseModel"] + (["ConfigDict"] if "ConfigDict" in text else [])

    lines = [f'"""Request and response schemas for {ctx.app_name}."""', "", "from __future__ import annotations", ""]
    if uses_dates:
        lines.append("import datetime as dt")
    if typing_names:
        lines.append(f"from typing import {', '.join(typing_names)}")
    if uses_dates or typing_names:
        lines.append("")
    lines.extend([f"from pydantic import {', '.join(pydantic_names)}", "", ""])
    if body:
        lines.append(text)
    else:
        lines.append("class Message(BaseModel):")
        lines.append("    detail: str")
    return "\n".join(lines) + "\n"
