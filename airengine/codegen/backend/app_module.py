"""Render the FastAPI entrypoint and database session modules."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

__all__ = ["_render_database_module", "_render_main_module", "_render_package_init"]


def _render_database_module(ctx: "TranspileContext") -> str:
    template = '''
    """SQLAlchemy engine and session factory for {app_name}."""

    from __future__ import annotations

    from typing import Iterator

    from sqlalchemy import create_engine
    from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

    from .env import DATABASE_URL

    _connect_args = {{"check_same_thread": False}} if DATABASE_URL.startswith("sqlite") else {{}}

    engine = create_engine(DATABASE_URL, connect_args=_connect_args)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


    class Base(DeclarativeBase):
        pass


    def get_session() -> Iterator[Session]:
        """FastAPI dependency yielding a session that is always closed."""
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()


    def init_db() -> None:
        """Create every table declared in ``models``."""
    '''
    if ctx.db is not None:
        init_body = "    from . import models  # noqa: F401\n\n    Base.metadata.create_all(bind=engine)"
    else:
        init_body = "    Base.metadata.create_all(bind=engine)"
    rendered = textwrap.dedent(template).strip().format(app_name=ctx.app_name)
    return rendered + "\n" + init_body + "\n"


def _render_main_module(ctx: "TranspileContext") -> str:
    has_routes = bool(ctx.expanded_routes)
    lines: List[str] = [
        f'"""FastAPI application for {ctx.app_name}."""',
        "",
        "from __future__ import annotations",
        "",
        "import logging",
        "from contextlib import asynccontextmanager",
        "from typing import Any, AsyncIterator, Dict",
        "",
        "from fastapi import FastAPI",
        "from fastapi.middleware.cors import CORSMiddleware",
        "",
    ]
    if ctx.cron:
        lines.append("from .cron import start_cron_jobs")
    lines.append("from .database import init_db")
    lines.append("from .env import ALLOWED_ORIGINS, validate_env")
    if has_routes:
        lines.append("from .routes import router")
    if ctx.webhooks:
        lines.append("from .webhooks import router as webhooks_router")
    lines.extend(
        [
            "",
            "logger = logging.getLogger(__name__)",
            "",
            "",
            "@asynccontextmanager",
            "async def lifespan(app: FastAPI) -> AsyncIterator[None]:",
            "    validate_env()",
            "    init_db()",
        ]
    )
    if ctx.cron:
        lines.append("    jobs = start_cron_jobs()")
        lines.append('    logger.info("Registered %d cron jobs", len(jobs))')
    lines.extend(
        [
            f'    logger.info("{ctx.app_name} API started")',
            "    yield",
            "",
            "",
            f"app = FastAPI(title={ctx.app_name!r}, lifespan=lifespan)",
            "app.add_middleware(",
            "    CORSMiddleware,",
            "    allow_origins=ALLOWED_ORIGINS,",
            "    allow_credentials=True,",
            '    allow_methods=["*"],',
            '    allow_headers=["*"],',
            '    expose_headers=["X-Total-Count"],',
            ")",
        ]
    )
    if has_routes:
        lines.append('app.include_router(router, prefix="/api")')
    if ctx.webhooks:
        lines.append("app.include_router(webhooks_router)")
    lines.extend(
        [
            "",
            "",
            '@app.get("/api/health")',
            "def health() -> Dict[str, Any]:",
            '    return {"status": "ok", "app": ' + repr(ctx.app_name) + "}",
        ]
    )
    return "\n".join(lines) + "\n"


def _render_package_init(ctx: "TranspileContext") -> str:
    return f'"""Generated {ctx.app_name} API server."""\n'
