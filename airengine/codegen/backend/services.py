"""Render the auxiliary server modules: auth, env, webhooks, cron, jobs and emails."""

from __future__ import annotations

import logging
import re
import textwrap
from typing import TYPE_CHECKING, List

from airengine.ast import EnumType
from airengine.ir.routes import path_segments

from .helpers import py_literal, snake_case

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

__all__ = [
    "DEFAULT_DATABASE_URL",
    "_render_auth_module",
    "_render_env_module",
    "_render_webhooks_module",
    "_render_cron_module",
    "_render_jobs_module",
    "_render_emails_module",
    "webhook_service",
]

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./app.db"
_ENV_CASTS = {
    "int": "int(os.getenv({name!r}, {default!r}))",
    "float": "float(os.getenv({name!r}, {default!r}))",
    "bool": "os.getenv({name!r}, {default!r}).lower() in (\"1\", \"true\", \"yes\")",
}


def _identifier(name: str) -> str:
    cleaned = re.sub(r"\W+", "_", snake_case(name)).strip("_")
    if not cleaned or cleaned[0].isdigit():
        cleaned = f"job_{cleaned}"
    return cleaned


def _header(doc: str) -> List[str]:
    return [f'"""{doc}"""', "", "from __future__ import annotations", ""]


# ---- auth.py ----

def _render_auth_module(ctx: "TranspileContext") -> str:
    roles: List[str] = []
    if ctx.auth is not None:
        if isinstance(ctx.auth.role, EnumType):
            roles = list(ctx.auth.role.values)
        elif isinstance(ctx.auth.role, str):
            roles = [ctx.auth.role]
    template = '''
    import base64
    import hashlib
    import hmac
    import json
    import logging
    import os
    import secrets
    import time
    from typing import Any, Callable, Dict, Optional

    from fastapi import Depends, HTTPException
    from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

    logger = logging.getLogger(__name__)

    SECRET = os.getenv("JWT_SECRET", "dev-secret")
    TOKEN_EXPIRY_SECONDS = 7 * 24 * 60 * 60
    PBKDF2_ITERATIONS = 100_000
    ROLES = __ROLES__

    _bearer = HTTPBearer(auto_error=False)


    def _b64encode(data: bytes) -> str:
        return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


    def _b64decode(text: str) -> bytes:
        return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


    def _sign(message: str) -> str:
        return _b64encode(hmac.new(SECRET.encode(), message.encode(), hashlib.sha256).digest())


    def create_token(payload: Dict[str, Any]) -> str:
        """Create an HMAC-SHA256 signed token in JWT format."""
        issued = int(time.time())
        header = _b64encode(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
        body = _b64encode(json.dumps({**payload, "iat": issued, "exp": issued + TOKEN_EXPIRY_SECONDS}).encode())
        return f"{header}.{body}.{_sign(f'{header}.{body}')}"


    def verify_token(token: str) -> Optional[Dict[str, Any]]:
        """Return the token payload, or ``None`` when the signature or expiry is invalid."""
        parts = token.split(".")
        if len(parts) != 3:
            return None
        header, body, signature = parts
        if not hmac.compare_digest(signature, _sign(f"{header}.{body}")):
            return None
        try:
            payload = json.loads(_b64decode(body))
        except ValueError:
            return None
        if payload.get("exp", 0) < int(time.time()):
            return None
        return payload


    def hash_password(password: str) -> str:
        salt = secrets.token_hex(16)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS).hex()
        return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest}"


    def verify_password(password: str, stored: Optional[str]) -> bool:
        if not stored or stored.count("$") != 3:
            return False
        _scheme, iterations, salt, digest = stored.split("$")
        candidate = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations)).hex()
        return hmac.compare_digest(candidate, digest)


    def require_auth(credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> Dict[str, Any]:
        """FastAPI dependency that rejects requests without a valid bearer token."""
        if credentials is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        payload = verify_token(credentials.credentials)
        if payload is None:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        return payload


    def require_role(*roles: str) -> Callable[..., Dict[str, Any]]:
        allowed = roles or ROLES

        def dependency(user: Dict[str, Any] = Depends(require_auth)) -> Dict[str, Any]:
            if allowed and user.get("role") not in allowed:
                logger.warning("User %s lacks role %s", user.get("id"), "/".join(allowed))
                raise HTTPException(status_code=403, detail="Forbidden")
            return user

        return dependency
    '''
    lines = _header(f"Token and password helpers for {ctx.app_name}.")
    rendered = textwrap.dedent(template).strip().replace("__ROLES__", repr(tuple(roles)))
    return "\n".join(lines) + "\n" + rendered + "\n"


# ---- env.py ----

def _env_line(name: str, var_type: str, default: object) -> str:
    if var_type in _ENV_CASTS:
        fallback = "false" if var_type == "bool" and default is None else default
        if isinstance(fallback, bool):
            fallback = "true" if fallback else "false"
        if fallback is None:
            fallback = "0"
        return f"{name} = " + _ENV_CASTS[var_type].format(name=name, default=str(fallback))
    return f"{name} = os.getenv({name!r}, {str(default) if default is not None else ''!r})"


def _render_env_module(ctx: "TranspileContext") -> str:
    declared = {var.name for var in ctx.env}
    lines = _header(f"Environment configuration for {ctx.app_name}.")
    lines.extend(["import os", "from typing import List, Tuple", "", ""])
    lines.extend(
        [
            "class MissingEnvironmentError(RuntimeError):",
            '    """Raised at startup when a required variable is unset."""',
            "",
            "",
        ]
    )
    if "DATABASE_URL" not in declared:
        lines.append(f"DATABASE_URL = os.getenv(\"DATABASE_URL\", {DEFAULT_DATABASE_URL!r})")
    lines.append(
        'ALLOWED_ORIGINS: List[str] = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]'
    )
    for var in ctx.env:
        default = var.default
        if var.name == "DATABASE_URL" and default is None:
            default = DEFAULT_DATABASE_URL
        lines.append(_env_line(var.name, var.type, default))
    required = tuple(var.name for var in ctx.env if var.required)
    lines.extend(
        [
            "",
            f"REQUIRED: Tuple[str, ...] = {required!r}",
            "",
            "",
            "def validate_env() -> None:",
            "    missing = [name for name in REQUIRED if not os.getenv(name)]",
            "    if missing:",
            '        raise MissingEnvironmentError("Missing required environment variables: " + ", ".join(missing))',
        ]
    )
    return "\n".join(lines) + "\n"


# ---- webhooks.py ----

def webhook_service(path: str) -> str:
    """``/webhooks/stripe`` -> ``stripe``."""
    segments = [segment for segment in path_segments(path) if segment.lower() not in ("webhook", "webhooks", "hooks")]
    return _identifier(segments[-1] if segments else "webhook")


def _render_webhooks_module(ctx: "TranspileContext") -> str:
    template = '''
    import hashlib
    import hmac
    import logging
    import os
    from typing import Any, Dict, Set

    from fastapi import APIRouter, HTTPException, Request

    logger = logging.getLogger(__name__)

    router = APIRouter()

    _processed: Set[str] = set()


    def verify_signature(raw_body: bytes, signature: str, secret: str) -> bool:
        """Check an HMAC-SHA256 signature header against ``secret``."""
        expected = hmac.new(secret.encode(), raw_body, hashlib.sha256).hexdigest()
        return hmac.compare_digest(signature.removeprefix("sha256="), expected)
    '''
    lines = _header(f"Incoming webhooks for {ctx.app_name}.")
    parts = [textwrap.dedent(template).strip()]
    seen = set()
    for hook in ctx.webhooks:
        service = webhook_service(hook.path)
        name = f"{service}_webhook"
        index = 2
        while name in seen:
            name = f"{service}_webhook_{index}"
            index += 1
        seen.add(name)
        method = hook.method.lower() if hook.method.lower() in ("get", "post", "put", "delete") else "post"
        secret_env = f"WEBHOOK_SECRET_{service.upper()}"
        handler = f'''
        @router.{method}({hook.path!r})
        async def {name}(request: Request) -> Dict[str, Any]:
            event_id = request.headers.get("x-webhook-id") or request.headers.get("x-request-id") or ""
            if event_id and event_id in _processed:
                return {{"received": True, "status": "already_processed"}}
            raw_body = await request.body()
            secret = os.getenv({secret_env!r}, "")
            if secret:
                signature = request.headers.get("x-signature-256") or request.headers.get("x-hub-signature-256") or ""
                if not verify_signature(raw_body, signature, secret):
                    logger.warning("Rejected {service} webhook with an invalid signature")
                    raise HTTPException(status_code=401, detail="Invalid signature")
            logger.info("Received {service} webhook (%d bytes) for %s", len(raw_body), {hook.handler!r})
            if event_id:
                _processed.add(event_id)
            return {{"received": True, "status": "processed"}}
        '''
        parts.append(textwrap.dedent(handler).strip())
    return "\n".join(lines) + "\n" + "\n\n\n".join(parts) + "\n"


# ---- cron.py ----

def _render_cron_module(ctx: "TranspileContext") -> str:
    template = '''
    import logging
    import time
    from dataclasses import dataclass
    from typing import Callable, List

    logger = logging.getLogger(__name__)


    @dataclass(frozen=True)
    class CronJob:
        name: str
        schedule: str
        handler: Callable[[], None]
    '''
    lines = _header(f"Scheduled jobs for {ctx.app_name}.")
    parts = [textwrap.dedent(template).strip()]
    entries: List[str] = []
    for job in ctx.cron:
        fn = f"_{_identifier(job.name)}"
        parts.append(
            "\n".join(
                [
                    f"def {fn}() -> None:",
                    f'    logger.info("Cron job %s runs %s", {job.name!r}, {job.handler!r})',
                ]
            )
        )
        entries.append(f"    CronJob(name={job.name!r}, schedule={job.schedule!r}, handler={fn}),")
    registry = "CRON_JOBS: List[CronJob] = [\n" + "\n".join(entries) + "\n]" if entries else "CRON_JOBS: List[CronJob] = []"
    tail = '''
    def run_job(job: CronJob) -> bool:
        started = time.perf_counter()
        try:
            job.handler()
        except Exception:
            logger.exception("Cron job %s failed", job.name)
            return False
        logger.info("Cron job %s completed in %.1f ms", job.name, (time.perf_counter() - started) * 1000)
        return True


    def start_cron_jobs() -> List[str]:
        """Register every job; wire ``run_job`` into a scheduler to execute them."""
        for job in CRON_JOBS:
            logger.info("Registered cron job %s (%s)", job.name, job.schedule)
        return [job.name for job in CRON_JOBS]
    '''
    parts.append(registry)
    parts.append(textwrap.dedent(tail).strip())
    return "\n".join(lines) + "\n" + "\n\n\n".join(parts) + "\n"


# ---- jobs.py ----

def _render_jobs_module(ctx: "TranspileContext") -> str:
    template = '''
    import logging
    import time
    from dataclasses import dataclass
    from typing import Any, Callable, Dict, List, Optional, Tuple

    logger = logging.getLogger(__name__)

    RETRY_DELAY_SECONDS = 1.0


    class UnknownJobError(KeyError):
        """Raised when dispatching a job name that is not registered."""


    @dataclass(frozen=True)
    class QueueJob:
        name: str
        handler: Callable[[Dict[str, Any]], None]
        required: Tuple[str, ...] = ()
        retries: int = 3


    DEAD_LETTER: List[Tuple[str, Dict[str, Any]]] = []
    '''
    lines = _header(f"Background jobs for {ctx.app_name}.")
    parts = [textwrap.dedent(template).strip()]
    entries: List[str] = []
    for job in ctx.queue:
        fn = f"_{_identifier(job.name)}"
        parts.append(
            "\n".join(
                [
                    f"def {fn}(data: Dict[str, Any]) -> None:",
                    f'    logger.info("Processing queue job %s via %s with %s", {job.name!r}, {job.handler!r}, sorted(data))',
                ]
            )
        )
        required = tuple(param.name.lstrip("?") for param in job.params or [] if not param.name.startswith("?"))
        entries.append(f"    {job.name!r}: QueueJob(name={job.name!r}, handler={fn}, required={required!r}),")
    registry = (
        "QUEUE_JOBS: Dict[str, QueueJob] = {\n" + "\n".join(entries) + "\n}"
        if entries
        else "QUEUE_JOBS: Dict[str, QueueJob] = {}"
    )
    tail = '''
    def dispatch(name: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """Run a job in-process with linear backoff; failures land in ``DEAD_LETTER``."""
        job = QUEUE_JOBS.get(name)
        if job is None:
            raise UnknownJobError(name)
        payload = dict(data or {})
        missing = [key for key in job.required if key not in payload]
        if missing:
            raise ValueError(f"Job {name} is missing {', '.join(missing)}")
        for attempt in range(1, job.retries + 1):
            try:
                job.handler(payload)
                return True
            except Exception as exc:
                logger.warning("Job %s attempt %d/%d failed: %s", name, attempt, job.retries, exc)
                if attempt < job.retries:
                    time.sleep(RETRY_DELAY_SECONDS * attempt)
        logger.error("Job %s failed after %d attempts", name, job.retries)
        DEAD_LETTER.append((name, payload))
        return False


    def enqueue(background_tasks: Any, name: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Schedule ``dispatch`` on FastAPI ``BackgroundTasks``."""
        if name not in QUEUE_JOBS:
            raise UnknownJobError(name)
        background_tasks.add_task(dispatch, name, data)
    '''
    parts.append(registry)
    parts.append(textwrap.dedent(tail).strip())
    return "\n".join(lines) + "\n" + "\n\n\n".join(parts) + "\n"


# ---- emails.py ----

def _render_emails_module(ctx: "TranspileContext") -> str:
    app_title = " ".join(word.capitalize() for word in ctx.app_name.replace("-", " ").split())
    entries = []
    for template_def in ctx.email:
        params = tuple(param.name.lstrip("?") for param in template_def.params or [])
        entries.append(f"    {template_def.name!r}: EmailTemplate(subject={template_def.subject!r}, params={params!r}),")
    registry = (
        "EMAIL_TEMPLATES: Dict[str, EmailTemplate] = {\n" + "\n".join(entries) + "\n}"
        if entries
        else "EMAIL_TEMPLATES: Dict[str, EmailTemplate] = {}"
    )
    template = '''
    import html
    import logging
    from dataclasses import dataclass
    from typing import Any, Dict, Optional, Tuple

    logger = logging.getLogger(__name__)

    APP_NAME = __APP__


    class UnknownTemplateError(KeyError):
        """Raised when sending a template that is not registered."""


    @dataclass(frozen=True)
    class EmailTemplate:
        subject: str
        params: Tuple[str, ...] = ()


    __REGISTRY__


    def _template(name: str) -> EmailTemplate:
        template = EMAIL_TEMPLATES.get(name)
        if template is None:
            raise UnknownTemplateError(name)
        return template


    def render_text(name: str, params: Optional[Dict[str, Any]] = None) -> str:
        template = _template(name)
        lines = [template.subject, ""]
        lines.extend(f"{key}: {value}" for key, value in (params or {}).items())
        lines.extend(["", f"-- {APP_NAME}"])
        return "\\n".join(lines)


    def render_html(name: str, params: Optional[Dict[str, Any]] = None) -> str:
        template = _template(name)
        rows = "<br>".join(
            f"<strong>{html.escape(str(key))}:</strong> {html.escape(str(value))}" for key, value in (params or {}).items()
        )
        return (
            "<!DOCTYPE html><html><head><meta charset=\\"utf-8\\"></head>"
            "<body style=\\"font-family: -apple-system, sans-serif; padding: 20px; max-width: 600px; margin: 0 auto;\\">"
            f"<h2>{html.escape(template.subject)}</h2><p>{rows}</p>"
            f"<p style=\\"color: #999; font-size: 12px;\\">Sent by {html.escape(APP_NAME)}</p>"
            "</body></html>"
        )


    def send_email(name: str, to: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
        """Build the message for ``name``; connect a mail provider here to deliver it."""
        message = {
            "to": to,
            "subject": _template(name).subject,
            "html": render_html(name, params),
            "text": render_text(name, params),
        }
        logger.info("Email %s prepared for %s", name, to)
        return message
    '''
    lines = _header(f"Email templates for {ctx.app_name}.")
    rendered = textwrap.dedent(template).strip()
    rendered = rendered.replace("__APP__", py_literal(app_title)).replace("__REGISTRY__", registry)
    return "\n".join(lines) + "\n" + rendered + "\n"
