"""Deployment artefacts for generated servers: requirements, Docker files and ``.env.example``."""

from __future__ import annotations

import re
import textwrap
from typing import TYPE_CHECKING, List, Optional

from .services import DEFAULT_DATABASE_URL, webhook_service

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

__all__ = [
    "DEFAULT_API_PORT",
    "deploy_port",
    "_render_requirements",
    "_render_dockerfile",
    "_render_env_example",
    "_render_compose",
    "_render_dockerignore",
]

DEFAULT_API_PORT = 8000
CLIENT_PORT = 5173


def _slugify(value: Optional[str], fallback: str = "air-app") -> str:
    if not value:
        return fallback
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", value).strip("- ").lower()
    return slug or fallback


def deploy_port(ctx: "TranspileContext") -> int:
    """API port from ``@deploy(port:N)``; non-numeric values fall back to 8000."""
    if not ctx.deploy:
        return DEFAULT_API_PORT
    value = ctx.deploy.get("port")
    if isinstance(value, bool):
        return DEFAULT_API_PORT
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return DEFAULT_API_PORT


def _render_requirements() -> str:
    return textwrap.dedent(
        """
        fastapi>=0.110,<1.0
        uvicorn[standard]>=0.30
        pydantic>=2.7,<3.0
        sqlalchemy>=2.0,<3.0
        """
    ).strip() + "\n"


def _render_dockerfile(ctx: "TranspileContext") -> str:
    port = deploy_port(ctx)
    return textwrap.dedent(
        f"""
        # syntax=docker/dockerfile:1
        FROM python:3.12-slim
        ENV PYTHONDONTWRITEBYTECODE=1 \\
            PYTHONUNBUFFERED=1 \\
            AIR_APP_NAME="{ctx.app_name}"
        WORKDIR /app
        COPY requirements.txt ./
        RUN python -m pip install --no-cache-dir -r requirements.txt
        COPY . ./server

        EXPOSE {port}
        CMD ["uvicorn", "server.main:app", "--host", "0.0.0.0", "--port", "{port}"]
        """
    ).strip() + "\n"


def _render_env_example(ctx: "TranspileContext") -> str:
    lines: List[str] = [
        f"# Environment for {ctx.app_name}",
        f"DATABASE_URL={DEFAULT_DATABASE_URL}",
        f"CORS_ORIGINS=http://localhost:{CLIENT_PORT}",
    ]
    if ctx.has_auth_routes:
        lines.append("JWT_SECRET=change-me")
    services = sorted({webhook_service(hook.path) for hook in ctx.webhooks})
    lines.extend(f"WEBHOOK_SECRET_{service.upper()}=" for service in services)
    for var in ctx.env:
        if var.name in ("DATABASE_URL", "CORS_ORIGINS", "JWT_SECRET"):
            continue
        value = "" if var.default is None else str(var.default)
        if isinstance(var.default, bool):
            value = "true" if var.default else "false"
        suffix = "  # required" if var.required else ""
        lines.append(f"{var.name}={value}{suffix}")
    return "\n".join(lines) + "\n"


def _render_compose(ctx: "TranspileContext") -> str:
    slug = _slugify(ctx.app_name)
    port = deploy_port(ctx)
    return textwrap.dedent(
        f"""
        services:
          api:
            build: ./server
            container_name: {slug}-api
            env_file:
              - ./server/.env.example
            ports:
              - "{port}:{port}"
          client:
            image: node:20-alpine
            container_name: {slug}-client
            working_dir: /app
            command: sh -c "npm install && npm run dev -- --host 0.0.0.0"
            volumes:
              - ./client:/app
            ports:
              - "{CLIENT_PORT}:{CLIENT_PORT}"
            depends_on:
              - api
        """
    ).strip() + "\n"


def _render_dockerignore() -> str:
    return textwrap.dedent(
        """
        __pycache__
        *.py[cod]
        *.log
        *.db
        .git
        .venv
        .pytest_cache
        .air-cache
        node_modules
        client/dist
        """
    ).strip() + "\n"
