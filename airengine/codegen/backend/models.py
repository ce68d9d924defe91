"""Render the SQLAlchemy model module (``server/models.py``)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Set, Tuple

from airengine.ast import ArrayType, DbBlock, DbField, DbModel, EnumType, ObjectType, RefType, ScalarType, unwrap_optional

from .helpers import ON_DELETE_SQL, SQL_TYPES, field_default, is_optional, py_literal, table_name

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

__all__ = ["_render_models_module", "column_type", "foreign_keys", "model_indexes"]

logger = logging.getLogger(__name__)


def column_type(model: DbModel, db_field: DbField) -> Tuple[str, Set[str]]:
    """SQLAlchemy type expression for ``db_field`` and the names it imports."""
    inner = unwrap_optional(db_field.type)
    if isinstance(inner, EnumType):
        values = ", ".join(py_literal(value) for value in inner.values)
        name = f"{table_name(model.name)}_{db_field.name}"
        return f"Enum({values}, name={name!r}, native_enum=False)", {"Enum"}
    if isinstance(inner, (ArrayType, ObjectType)):
        return "JSON", {"JSON"}
    if isinstance(inner, RefType):
        return "Integer", {"Integer"}
    if isinstance(inner, ScalarType) and inner.name in SQL_TYPES:
        sql = SQL_TYPES[inner.name]
        return sql, {sql}
    logger.debug("Field %s.%s has no column mapping; stored as String", model.name, db_field.name)
    return "String", {"String"}


def _split_ref(ref: str) -> Tuple[str, str]:
    model, _, column = ref.partition(".")
    return model, column or "id"


def foreign_keys(db: DbBlock) -> Dict[Tuple[str, str], Tuple[str, Optional[str]]]:
    """``(model, field) -> (target "table.column", ondelete)`` from refs and relations."""
    keys: Dict[Tuple[str, str], Tuple[str, Optional[str]]] = {}
    model_names = {model.name for model in db.models}
    for model in db.models:
        for db_field in model.fields:
            inner = unwrap_optional(db_field.type)
            if isinstance(inner, RefType) and inner.entity in model_names:
                keys[(model.name, db_field.name)] = (f"{table_name(inner.entity)}.id", None)
    for relation in db.relations:
        source_model, source_field = _split_ref(relation.from_)
        target_model, target_field = _split_ref(relation.to)
        source = next((model for model in db.models if model.name == source_model), None)
        if source is None or target_model not in model_names:
            logger.debug("Relation %s<>%s names an unknown model; skipped", relation.from_, relation.to)
            continue
        if not any(db_field.name == source_field for db_field in source.fields):
            logger.debug("Relation %s<>%s names an unknown field; skipped", relation.from_, relation.to)
            continue
        ondelete = ON_DELETE_SQL.get(relation.on_delete or "")
        keys[(source_model, source_field)] = (f"{table_name(target_model)}.{target_field}", ondelete)
    return keys


def model_indexes(db: DbBlock) -> Dict[str, List[Tuple[List[str], bool]]]:
    """Indexes grouped by owning model; bare field names attach to the first model that has them all."""
    grouped: Dict[str, List[Tuple[List[str], bool]]] = {}
    for index in db.indexes:
        owner: Optional[str] = None
        columns: List[str] = []
        for name in index.fields:
            if "." in name:
                model_name, column = _split_ref(name)
                owner = owner or model_name
                columns.append(column)
            else:
                columns.append(name)
        if owner is None:
            for model in db.models:
                names = {db_field.name for db_field in model.fields}
                if all(column in names for column in columns):
                    owner = model.name
                    break
        if owner is None:
            logger.debug("Index on %s matches no model; skipped", "+".join(index.fields))
            continue
        grouped.setdefault(owner, []).append((columns, index.unique))
    return grouped


def _column(model: DbModel, db_field: DbField, fk: Optional[Tuple[str, Optional[str]]], imports: Set[str]) -> str:
    type_expr, type_imports = column_type(model, db_field)
    imports.update(type_imports)
    args = [type_expr]
    if fk is not None:
        target, ondelete = fk
        imports.add("ForeignKey")
        if ondelete:
            args.append(f"ForeignKey({target!r}, ondelete={ondelete!r})")
        else:
            args.append(f"ForeignKey({target!r})")
    kwargs: List[str] = []
    kind = type_expr.split("(")[0]
    if db_field.primary:
        kwargs.append("primary_key=True")
    if db_field.auto:
        if kind == "Integer":
            kwargs.append("autoincrement=True")
        elif kind in ("Date", "DateTime"):
            imports.add("func")
            kwargs.append("server_default=func.now()")
            if db_field.name.lower().startswith("updated"):
                kwargs.append("onupdate=func.now()")
        else:
            imports.add("func")
            kwargs.append("onupdate=func.now()")
    else:
        default = field_default(db_field)
        if default is not None:
            kwargs.append(f"default={py_literal(default)}")
    if not db_field.primary and not is_optional(db_field.type):
        kwargs.append("nullable=False")
    return f"    {db_field.name} = Column({', '.join(args + kwargs)})"


def _render_model(
    model: DbModel,
    keys: Dict[Tuple[str, str], Tuple[str, Optional[str]]],
    indexes: List[Tuple[List[str], bool]],
    imports: Set[str],
) -> List[str]:
    table = table_name(model.name)
    lines = [f"class {model.name}(Base):", f"    __tablename__ = {table!r}", ""]
    for db_field in model.fields:
        lines.append(_column(model, db_field, keys.get((model.name, db_field.name)), imports))
    if indexes:
        imports.add("Index")
        entries = []
        for columns, unique in indexes:
            name = f"ix_{table}_{'_'.join(columns)}"
            args = ", ".join(py_literal(column) for column in columns)
            entries.append(f"        Index({name!r}, {args}{', unique=True' if unique else ''}),")
        lines.extend(["", "    __table_args__ = ("] + entries + ["    )"])
    return lines


def _render_models_module(ctx: "TranspileContext") -> str:
    db = ctx.db or DbBlock()
    keys = foreign_keys(db)
    indexes = model_indexes(db)
    imports: Set[str] = {"Column"}
    body: List[str] = []
    for model in db.models:
        if body:
            body.extend(["", ""])
        body.extend(_render_model(model, keys, indexes.get(model.name, []), imports))
        logger.debug("Mapped model %s to table %s", model.name, table_name(model.name))

    names = sorted(imports, key=lambda name: (name != name[:1].upper() + name[1:], name))
    lines = [
        f'"""SQLAlchemy models for {ctx.app_name}."""',
        "",
        "from __future__ import annotations",
        "",
        f"from sqlalchemy import {', '.join(names)}",
        "",
        "from .database import Base",
        "",
        "",
    ]
    lines.extend(body)
    exported = ", ".join(py_literal(model.name) for model in db.models)
    lines.extend(["", "", f"__all__ = [{exported}]"])
    return "\n".join(lines) + "\n"
