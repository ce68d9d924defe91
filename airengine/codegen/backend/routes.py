"""Render the FastAPI router (``server/routes.py``) from the expanded routes."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, List, Optional

from airengine.ast import DbModel
from airengine.ir.routes import parse_db_handler, pluralize

from .helpers import (
    RouteSpec,
    auth_route_kind,
    enum_values,
    fastapi_path,
    find_user_model,
    id_annotation,
    nested_item_parent,
    nested_parent,
    order_column,
    parent_fk_column,
    route_specs,
    string_fields,
)
from .schemas import REDACTED_FIELDS

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

__all__ = ["_render_routes_module", "render_route_handler", "DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE"]

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
SESSION_PARAM = "session: Session = Depends(get_session)"
_DECORATED_METHODS = ("get", "post", "put", "patch", "delete")


def _decorator(spec: RouteSpec, extra: str = "") -> str:
    method = spec.route.method.lower()
    path = fastapi_path(spec.route.path)
    if method in _DECORATED_METHODS:
        return f"@router.{method}({path!r}{extra})"
    return f"@router.api_route({path!r}, methods=[{spec.route.method.upper()!r}]{extra})"


def _path_params(spec: RouteSpec, model: Optional[DbModel]) -> List[str]:
    params = spec.path_params
    rendered = []
    for index, name in enumerate(params):
        if index == len(params) - 1 and not nested_parent(spec.route.path):
            rendered.append(f"{name}: {id_annotation(model)}")
        elif re.search(r"(^id$|Id$|_id$)", name):
            rendered.append(f"{name}: int")
        else:
            rendered.append(f"{name}: str")
    return rendered


def _signature(name: str, params: List[str], returns: str = "") -> List[str]:
    if not params:
        return [f"def {name}(){returns}:"]
    lines = [f"def {name}("]
    lines.extend(f"    {param}," for param in params)
    lines.append(f"){returns}:")
    return lines


def _stub(spec: RouteSpec, reason: str) -> List[str]:
    logger.debug("Route %s %s: %s; emitting 501 stub", spec.route.method, spec.route.path, reason)
    detail = f"Not implemented: {spec.route.handler}"
    return [
        _decorator(spec),
        *_signature(spec.function_name, _path_params(spec, None), " -> None"),
        f"    raise HTTPException(status_code=501, detail={detail!r})",
    ]


def _find_many(spec: RouteSpec, model: DbModel) -> List[str]:
    cls = f"models.{model.name}"
    parent = nested_parent(spec.route.path)
    column_names = {db_field.name for db_field in model.fields}
    fk = parent_fk_column(parent) if parent else None
    searchable = string_fields(model)

    params = _path_params(spec, model) + ["response: Response", "page: int = 1", f"limit: int = {DEFAULT_PAGE_SIZE}"]
    if searchable:
        params.append("search: Optional[str] = None")
    params.append(SESSION_PARAM)

    lines = [_decorator(spec, f", response_model=List[schemas.{model.name}Read]")]
    lines.extend(_signature(spec.function_name, params))
    lines.extend(
        [
            f"    limit = max(1, min(limit, {MAX_PAGE_SIZE}))",
            "    page = max(page, 1)",
            f"    query = select({cls})",
        ]
    )
    if fk and fk in column_names:
        parent_param = spec.path_params[0]
        lines.append(f"    query = query.where({cls}.{fk} == {parent_param})")
    if searchable:
        conditions = ", ".join(f"{cls}.{name}.ilike(pattern)" for name in searchable)
        lines.extend(["    if search:", '        pattern = f"%{search}%"', f"        query = query.where(or_({conditions}))"])
    lines.append("    total = session.scalar(select(func.count()).select_from(query.subquery()))")
    order = order_column(model)
    ordered = f"query.order_by({cls}.{order}.desc())" if order else "query"
    lines.extend(
        [
            f"    rows = session.scalars({ordered}.offset((page - 1) * limit).limit(limit)).all()",
            '    response.headers["X-Total-Count"] = str(total)',
            "    return rows",
        ]
    )
    return lines


def _find_one(spec: RouteSpec, model: DbModel) -> List[str]:
    cls = f"models.{model.name}"
    params = _path_params(spec, model) + [SESSION_PARAM]
    lines = [_decorator(spec, f", response_model=schemas.{model.name}Read")]
    lines.extend(_signature(spec.function_name, params))
    if spec.path_params:
        lines.append(f"    return _get_or_404(session, {cls}, {spec.path_params[-1]})")
        return lines
    lines.extend(
        [
            f"    record = session.scalars(select({cls}).limit(1)).first()",
            "    if record is None:",
            f'        raise HTTPException(status_code=404, detail="No {model.name} records")',
            "    return record",
        ]
    )
    return lines


def _parent_guard(spec: RouteSpec, model: DbModel) -> List[str]:
    """404 when a nested item does not belong to the parent named in the path."""
    parent = nested_item_parent(spec.route.path)
    if parent is None:
        return []
    fk = parent_fk_column(parent)
    if fk not in {db_field.name for db_field in model.fields}:
        return []
    return [
        f"    if record.{fk} != {spec.path_params[0]}:",
        f'        raise HTTPException(status_code=404, detail=f"{model.name} {{{spec.path_params[-1]}}} not found")',
    ]


def _create(spec: RouteSpec, model: DbModel, hashes_password: bool) -> List[str]:
    cls = f"models.{model.name}"
    parent = nested_parent(spec.route.path)
    column_names = {db_field.name for db_field in model.fields}
    params = _path_params(spec, model) + [f"payload: schemas.{model.name}Create", SESSION_PARAM]
    lines = [_decorator(spec, f", response_model=schemas.{model.name}Read, status_code=201")]
    lines.extend(_signature(spec.function_name, params))
    lines.append("    data = payload.model_dump()")
    if parent and parent_fk_column(parent) in column_names:
        lines.append(f'    data["{parent_fk_column(parent)}"] = {spec.path_params[0]}')
    if hashes_password:
        lines.extend(['    if data.get("password"):', '        data["password"] = hash_password(data["password"])'])
    lines.extend(
        [
            f"    record = {cls}(**data)",
            "    session.add(record)",
            "    session.commit()",
            "    session.refresh(record)",
            "    return record",
        ]
    )
    return lines


def _update(spec: RouteSpec, model: DbModel, hashes_password: bool) -> List[str]:
    cls = f"models.{model.name}"
    if not spec.path_params:
        return _stub(spec, "update without an identifier in the path")
    params = _path_params(spec, model) + [f"payload: schemas.{model.name}Update", SESSION_PARAM]
    lines = [_decorator(spec, f", response_model=schemas.{model.name}Read")]
    lines.extend(_signature(spec.function_name, params))
    lines.extend(
        [
            f"    record = _get_or_404(session, {cls}, {spec.path_params[-1]})",
            *_parent_guard(spec, model),
            "    changes = payload.model_dump(exclude_unset=True)",
        ]
    )
    if hashes_password:
        lines.extend(['    if changes.get("password"):', '        changes["password"] = hash_password(changes["password"])'])
    lines.extend(
        [
            "    for key, value in changes.items():",
            "        setattr(record, key, value)",
            "    session.commit()",
            "    session.refresh(record)",
            "    return record",
        ]
    )
    return lines


def _delete(spec: RouteSpec, model: DbModel) -> List[str]:
    cls = f"models.{model.name}"
    if not spec.path_params:
        return _stub(spec, "delete without an identifier in the path")
    params = _path_params(spec, model) + [SESSION_PARAM]
    lines = [_decorator(spec, ", status_code=204")]
    lines.extend(_signature(spec.function_name, params, " -> Response"))
    lines.extend(
        [
            f"    record = _get_or_404(session, {cls}, {spec.path_params[-1]})",
            *_parent_guard(spec, model),
            "    session.delete(record)",
            "    session.commit()",
            "    return Response(status_code=204)",
        ]
    )
    return lines


def _count(spec: RouteSpec, model: DbModel) -> List[str]:
    params = _path_params(spec, model) + [SESSION_PARAM]
    lines = [_decorator(spec)]
    lines.extend(_signature(spec.function_name, params, " -> Dict[str, int]"))
    lines.append(f'    return {{"count": session.scalar(select(func.count()).select_from(models.{model.name})) or 0}}')
    return lines


def _aggregate(spec: RouteSpec, model: DbModel) -> List[str]:
    cls = f"models.{model.name}"
    enum_field = next((f for f in model.fields if f.name == "status" and enum_values(f.type)), None)
    if enum_field is None:
        enum_field = next((f for f in model.fields if enum_values(f.type)), None)
    params = _path_params(spec, model) + [SESSION_PARAM]
    lines = [_decorator(spec)]
    lines.extend(_signature(spec.function_name, params, " -> Dict[str, int]"))
    lines.append(f"    total = session.scalar(select(func.count()).select_from({cls})) or 0")
    if enum_field is None:
        lines.append('    return {"total": total}')
        return lines
    total_key = "total" + pluralize(model.name)
    lines.append(f'    result = {{"{total_key}": total}}')
    lines.append(f"    for value in {enum_values(enum_field.type)!r}:")
    lines.append(
        f"        result[_camel(value)] = session.scalar(select(func.count()).select_from({cls}).where({cls}.{enum_field.name} == value)) or 0"
    )
    lines.append("    return result")
    return lines


def _login(spec: RouteSpec, user: DbModel) -> List[str]:
    cls = f"models.{user.name}"
    lines = [_decorator(spec, ", response_model=schemas.AuthResponse")]
    lines.extend(_signature(spec.function_name, ["payload: schemas.LoginRequest", SESSION_PARAM]))
    lines.extend(
        [
            f"    user = session.scalars(select({cls}).where({cls}.email == payload.email)).first()",
            "    if user is None or not verify_password(payload.password, user.password):",
            '        raise HTTPException(status_code=401, detail="Invalid credentials")',
            '    logger.info("User %s signed in", user.id)',
            '    return {"user": _public(user), "token": _token_for(user)}',
        ]
    )
    return lines


def _register(spec: RouteSpec, user: DbModel) -> List[str]:
    cls = f"models.{user.name}"
    lines = [_decorator(spec, ", response_model=schemas.AuthResponse, status_code=201")]
    lines.extend(_signature(spec.function_name, ["payload: schemas.RegisterRequest", SESSION_PARAM]))
    lines.extend(
        [
            "    data = payload.model_dump()",
            f'    existing = session.scalars(select({cls}).where({cls}.email == data.get("email"))).first()',
            "    if existing is not None:",
            '        raise HTTPException(status_code=409, detail="Email already registered")',
            f"    columns = {{column.key for column in {cls}.__table__.columns}}",
            "    values = {key: value for key, value in data.items() if key in columns and value is not None}",
            '    if values.get("password"):',
            '        values["password"] = hash_password(values["password"])',
            f"    user = {cls}(**values)",
            "    session.add(user)",
            "    session.commit()",
            "    session.refresh(user)",
            '    logger.info("Registered user %s", user.id)',
            '    return {"user": _public(user), "token": _token_for(user)}',
        ]
    )
    return lines


def _auth_user(ctx: "TranspileContext") -> Optional[DbModel]:
    user = find_user_model(ctx)
    if user is None:
        return None
    names = {db_field.name for db_field in user.fields}
    if {"email", "password"} <= names:
        return user
    return None


def render_route_handler(ctx: "TranspileContext", spec: RouteSpec) -> List[str]:
    """Handler lines for one route; unknown targets become 501 stubs."""
    kind = auth_route_kind(spec.route)
    user = _auth_user(ctx)
    if kind is not None:
        if user is None:
            return _stub(spec, "authentication route without a user model")
        return _login(spec, user) if kind == "login" else _register(spec, user)

    target = parse_db_handler(spec.route.handler)
    if target is None:
        return _stub(spec, f"unrecognized handler '{spec.route.handler}'")
    model = ctx.model(target.model)
    if model is None:
        return _stub(spec, f"unknown model '{target.model}'")
    hashes_password = user is not None and user.name == model.name
    operation = target.operation
    if operation == "findMany":
        return _find_many(spec, model)
    if operation in ("findFirst", "findUnique"):
        return _find_one(spec, model)
    if operation == "create":
        return _create(spec, model, hashes_password)
    if operation == "update":
        return _update(spec, model, hashes_password)
    if operation == "delete":
        return _delete(spec, model)
    if operation == "count":
        return _count(spec, model)
    if operation == "aggregate":
        return _aggregate(spec, model)
    return _stub(spec, f"unsupported operation '{operation}'")


def _helpers(uses_public: bool, uses_camel: bool) -> List[str]:
    lines = [
        "def _get_or_404(session: Session, model: Any, identifier: Any) -> Any:",
        "    record = session.get(model, identifier)",
        "    if record is None:",
        '        raise HTTPException(status_code=404, detail=f"{model.__name__} {identifier} not found")',
        "    return record",
    ]
    if uses_public:
        redacted = ", ".join(repr(name) for name in sorted(REDACTED_FIELDS))
        lines.extend(
            [
                "",
                "",
                "def _public(record: Any) -> Dict[str, Any]:",
                f"    hidden = {{{redacted}}}",
                "    return {column.key: getattr(record, column.key) for column in record.__table__.columns if column.key not in hidden}",
                "",
                "",
                "def _token_for(user: Any) -> str:",
                '    return create_token({"id": user.id, "email": user.email, "role": getattr(user, "role", None)})',
            ]
        )
    if uses_camel:
        lines.extend(
            [
                "",
                "",
                "def _camel(value: str) -> str:",
                '    head, *rest = value.split("_")',
                '    return head + "".join(part.capitalize() for part in rest)',
            ]
        )
    return lines


def _render_routes_module(ctx: "TranspileContext") -> str:
    requires_auth = bool(ctx.auth and ctx.auth.required and ctx.has_auth_routes)
    handlers: List[str] = []
    for spec in route_specs(ctx.expanded_routes):
        lines = render_route_handler(ctx, spec)
        if requires_auth and auth_route_kind(spec.route) is None:
            lines[0] = lines[0][:-1] + ", dependencies=[Depends(require_auth)])"
        handlers.append("\n".join(lines))
    body = "\n\n\n".join(handlers)

    uses_public = "_public(" in body
    uses_camel = "_camel(" in body
    helper_text = "\n".join(_helpers(uses_public, uses_camel))
    text = helper_text + "\n" + body

    typing_names = [name for name in ("Any", "Dict", "List", "Optional") if re.search(rf"\b{name}\b", text)]
    fastapi_names = ["APIRouter", "Depends", "HTTPException"] + (["Response"] if "Response" in body else [])
    sqlalchemy_names = [name for name in ("func", "or_", "select") if f"{name}(" in body]
    auth_names = [name for name in ("create_token", "hash_password", "require_auth", "verify_password") if name in text]

    lines = [f'"""API routes for {ctx.app_name}."""', "", "from __future__ import annotations", "", "import logging"]
    if typing_names:
        lines.append(f"from typing import {', '.join(typing_names)}")
    lines.extend(["", f"from fastapi import {', '.join(fastapi_names)}"])
    if sqlalchemy_names:
        lines.append(f"from sqlalchemy import {', '.join(sqlalchemy_names)}")
    lines.extend(["from sqlalchemy.orm import Session", ""])
    if ctx.db is not None:
        lines.append("from . import models, schemas")
    else:
        lines.append("from . import schemas")
    if auth_names:
        lines.append(f"from .auth import {', '.join(auth_names)}")
    lines.extend(
        [
            "from .database import get_session",
            "",
            "logger = logging.getLogger(__name__)",
            "",
            "router = APIRouter()",
            "",
            "",
            helper_text,
            "",
            "",
            body,
        ]
    )
    return "\n".join(lines) + "\n"
