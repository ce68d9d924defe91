"""README generation for the output tree."""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from airengine.ir.routes import CRUD_METHOD

from .backend.deploy import CLIENT_PORT, deploy_port
from .output import OutputFile

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

__all__ = ["generate_docs", "render_readme"]


def _route_table(ctx: "TranspileContext") -> List[str]:
    lines = ["| Method | Path | Handler |", "| --- | --- | --- |"]
    for route in ctx.expanded_routes:
        lines.append(f"| {route.method} | `/api{route.path}` | `{route.handler}` |")
    return lines


def _model_list(ctx: "TranspileContext") -> List[str]:
    lines = []
    for model in ctx.models:
        fields = ", ".join(db_field.name for db_field in model.fields)
        lines.append(f"- **{model.name}**: {fields}")
    return lines


def render_readme(ctx: "TranspileContext") -> str:
    lines: List[str] = [f"# {ctx.app_name}", "", f"Generated by airengine from `{ctx.source_name}`.", ""]
    client_dir = ctx.client_root.rstrip("/") or "."
    lines.extend(
        [
            "## Client",
            "",
            "```bash",
            f"cd {client_dir}",
            "npm install",
            "npm run dev",
            "```",
            "",
            f"The dev server listens on http://localhost:{CLIENT_PORT}.",
        ]
    )
    if ctx.pages:
        lines.extend(["", "Pages: " + ", ".join(f"`{name}`" for name in ctx.pages)])

    if ctx.has_backend:
        port = deploy_port(ctx)
        lines.extend(
            [
                "",
                "## Server",
                "",
                "```bash",
                "python -m venv .venv && . .venv/bin/activate",
                "pip install -r server/requirements.txt",
                f"uvicorn server.main:app --reload --port {port}",
                "```",
                "",
                "Copy `server/.env.example` to set environment variables. "
                "The database defaults to SQLite at `./app.db`.",
            ]
        )
        if ctx.db is not None:
            lines.extend(["", "Load sample data with `python -m server.seed`.", "", "### Models", ""])
            lines.extend(_model_list(ctx))
        if ctx.expanded_routes:
            lines.extend(["", "### API", ""])
            lines.extend(_route_table(ctx))
            if any(route.method == CRUD_METHOD for route in ctx.api_routes):
                lines.extend(["", "`CRUD` declarations are expanded into list, create, update and delete routes."])
        lines.extend(["", "## Docker", "", "```bash", "docker compose up --build", "```"])
    return "\n".join(lines) + "\n"


def generate_docs(ctx: "TranspileContext") -> List[OutputFile]:
    return [OutputFile(path="README.md", content=render_readme(ctx))]
