"""Render best-effort sample data (``server/seed.py``)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional

from airengine.ast import DbBlock, DbField, DbModel, RefType, unwrap_optional

from .helpers import base_kind, enum_values, find_user_model, is_optional, py_literal, snake_case, table_name
from .models import foreign_keys

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

__all__ = [
    "SEED_COUNT",
    "seedable_fields",
    "sort_by_dependency",
    "sample_value",
    "parent_links",
    "_render_seed_module",
]

SEED_COUNT = 3


def _is_foreign_key(db_field: DbField) -> bool:
    return db_field.name.endswith("_id") or isinstance(unwrap_optional(db_field.type), RefType)


def seedable_fields(model: DbModel) -> List[DbField]:
    fields = []
    for db_field in model.fields:
        if db_field.primary and db_field.auto:
            continue
        if db_field.auto and base_kind(db_field.type) in ("date", "datetime"):
            continue
        if _is_foreign_key(db_field):
            continue
        fields.append(db_field)
    return fields


def sort_by_dependency(models: List[DbModel]) -> List[DbModel]:
    """Models with fewer foreign-key fields first; stable for ties."""
    return sorted(models, key=lambda model: sum(1 for db_field in model.fields if _is_foreign_key(db_field)))


def parent_links(db: DbBlock) -> Dict[str, Dict[str, str]]:
    """``{child model: {foreign-key field: parent model}}`` for fields seed rows must point at."""
    by_table = {table_name(model.name): model.name for model in db.models}
    by_snake = {snake_case(model.name): model.name for model in db.models}
    declared = foreign_keys(db)
    links: Dict[str, Dict[str, str]] = {}
    for model in db.models:
        for db_field in model.fields:
            if db_field.primary or not _is_foreign_key(db_field):
                continue
            parent: Optional[str] = None
            if (model.name, db_field.name) in declared:
                parent = by_table.get(declared[(model.name, db_field.name)][0].split(".")[0])
            elif isinstance(unwrap_optional(db_field.type), RefType):
                parent = unwrap_optional(db_field.type).entity
            else:
                parent = by_snake.get(db_field.name[: -len("_id")])
            if parent is not None and parent != model.name:
                links.setdefault(model.name, {})[db_field.name] = parent
    return links


def _string_value(name: str, model_name: str, n: int) -> str:
    lower = name.lower()
    if lower == "email":
        return py_literal(f"user{n}@example.com")
    if lower == "name":
        return py_literal(f"{model_name} {n}")
    if lower == "slug":
        return py_literal(f"sample-{model_name.lower()}-{n}")
    if lower == "password":
        return py_literal(f"password{n}")
    return py_literal(f"Sample {name} {n}")


def sample_value(db_field: DbField, model_name: str, n: int) -> str:
    """Python expression for record ``n`` (1-based) of ``db_field``."""
    if is_optional(db_field.type) and n == 1:
        return "None"
    kind = base_kind(db_field.type)
    if kind == "str":
        return _string_value(db_field.name, model_name, n)
    if kind == "int":
        return str(n * 10)
    if kind == "float":
        return str(n * 10.5)
    if kind == "bool":
        return "True" if n % 2 == 0 else "False"
    if kind == "enum":
        values = enum_values(db_field.type)
        return py_literal(values[(n - 1) % len(values)]) if values else "None"
    if kind == "date":
        return f"dt.date(2024, 1, {n})"
    if kind == "datetime":
        return f"dt.datetime(2024, 1, {n}, 9, 0)"
    if kind == "array":
        return "[]"
    if kind == "object":
        return "{}"
    return py_literal(f"sample_{n}")


def _row(model: DbModel, fields: List[DbField], n: int, hash_passwords: bool) -> str:
    entries = []
    for db_field in fields:
        value = sample_value(db_field, model.name, n)
        if hash_passwords and db_field.name == "password" and value != "None":
            value = f"hash_password({value})"
        entries.append(f"{db_field.name!r}: {value}")
    return "        {" + ", ".join(entries) + "},"


def _render_seed_module(ctx: "TranspileContext") -> str:
    ordered = sort_by_dependency(ctx.models)
    user: Optional[DbModel] = find_user_model(ctx) if ctx.has_auth_routes else None
    data_lines: List[str] = ["SEED_DATA = {"]
    for model in ordered:
        fields = seedable_fields(model)
        if not fields:
            data_lines.append(f"    # {model.name}: every field is generated or a foreign key")
            continue
        data_lines.append(f"    {model.name!r}: [")
        hash_passwords = user is not None and user.name == model.name
        data_lines.extend(_row(model, fields, n, hash_passwords) for n in range(1, SEED_COUNT + 1))
        data_lines.append("    ],")
    data_lines.append("}")
    data = "\n".join(data_lines)
    links = parent_links(ctx.db or DbBlock())
    link_lines = ["SEED_LINKS = {"]
    link_lines.extend(f"    {name!r}: {fields!r}," for name, fields in links.items())
    link_lines.append("}")

    delete_order = ", ".join(f"models.{model.name}" for model in reversed(ordered))
    lines = [
        f'"""Sample data for {ctx.app_name}. Run with ``python -m server.seed``."""',
        "",
        "from __future__ import annotations",
        "",
    ]
    if "dt." in data:
        lines.append("import datetime as dt")
    lines.extend(["import logging", "from typing import Any, Dict, List", "", "from sqlalchemy import inspect", "", "from . import models"])
    if "hash_password(" in data:
        lines.append("from .auth import hash_password")
    lines.extend(
        [
            "from .database import SessionLocal, init_db",
            "",
            "logger = logging.getLogger(__name__)",
            "",
            f"SEED_COUNT = {SEED_COUNT}",
            "",
            data,
            "",
            "# child model -> {foreign-key column: parent model}",
            "\n".join(link_lines),
            "",
            "",
            "def seed() -> int:",
            '    """Replace every table\'s rows with the sample records; returns the number inserted."""',
            "    init_db()",
            "    inserted = 0",
            "    ids: Dict[str, List[Any]] = {}",
            "    with SessionLocal() as session:",
            f"        for model in ({delete_order},):",
            "            session.query(model).delete()",
            "        for name, rows in SEED_DATA.items():",
            "            model = getattr(models, name)",
            "            records = []",
            "            for index, row in enumerate(rows):",
            "                values = dict(row)",
            "                for column, parent in SEED_LINKS.get(name, {}).items():",
            "                    parent_ids = ids.get(parent)",
            "                    if parent_ids:",
            "                        values[column] = parent_ids[index % len(parent_ids)]",
            "                record = model(**values)",
            "                session.add(record)",
            "                records.append(record)",
            "            session.flush()",
            "            ids[name] = [inspect(record).identity[0] for record in records]",
            "            inserted += len(records)",
            "        session.commit()",
            '    logger.info("Seeded %d records across %d models", inserted, len(SEED_DATA))',
            "    return inserted",
            "",
            "",
            'if __name__ == "__main__":',
            "    logging.basicConfig(level=logging.INFO)",
            "    seed()",
        ]
    )
    return "\n".join(lines) + "\n"
