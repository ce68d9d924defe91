"""FastAPI + SQLAlchemy server generation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Tuple

from ..output import OutputFile, with_provenance
from .app_module import _render_database_module, _render_main_module, _render_package_init
from .deploy import (
    _render_compose,
    _render_dockerfile,
    _render_dockerignore,
    _render_env_example,
    _render_requirements,
)
from .models import _render_models_module
from .routes import _render_routes_module
from .schemas import _render_schemas_module
from .seed import _render_seed_module
from .services import (
    _render_auth_module,
    _render_cron_module,
    _render_emails_module,
    _render_env_module,
    _render_jobs_module,
    _render_webhooks_module,
)

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

__all__ = ["SERVER_ROOT", "generate_server"]

logger = logging.getLogger(__name__)

SERVER_ROOT = "server/"


def _server_modules(ctx: "TranspileContext") -> List[Tuple[str, str]]:
    has_routes = bool(ctx.expanded_routes)
    modules = [
        ("__init__.py", _render_package_init(ctx)),
        ("main.py", _render_main_module(ctx)),
        ("database.py", _render_database_module(ctx)),
    ]
    if ctx.db is not None:
        modules.append(("models.py", _render_models_module(ctx)))
    if has_routes:
        modules.append(("schemas.py", _render_schemas_module(ctx)))
        modules.append(("routes.py", _render_routes_module(ctx)))
    if ctx.db is not None:
        modules.append(("seed.py", _render_seed_module(ctx)))
    if ctx.has_auth_routes:
        modules.append(("auth.py", _render_auth_module(ctx)))
    modules.append(("env.py", _render_env_module(ctx)))
    if ctx.webhooks:
        modules.append(("webhooks.py", _render_webhooks_module(ctx)))
    if ctx.cron:
        modules.append(("cron.py", _render_cron_module(ctx)))
    if ctx.queue:
        modules.append(("jobs.py", _render_jobs_module(ctx)))
    if ctx.email:
        modules.append(("emails.py", _render_emails_module(ctx)))
    modules.extend(
        [
            ("requirements.txt", _render_requirements()),
            ("Dockerfile", _render_dockerfile(ctx)),
            (".env.example", _render_env_example(ctx)),
        ]
    )
    return modules


def generate_server(ctx: "TranspileContext") -> List[OutputFile]:
    """Return the server package plus root-level container files; empty without a backend."""
    if not ctx.has_backend:
        return []
    files = [
        with_provenance(SERVER_ROOT + path, content, ctx.source_name, "server")
        for path, content in _server_modules(ctx)
    ]
    files.append(OutputFile(path="docker-compose.yml", content=_render_compose(ctx)))
    files.append(OutputFile(path=".dockerignore", content=_render_dockerignore()))
    logger.debug("Server generation produced %d files", len(files))
    return files
