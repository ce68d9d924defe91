"""Context extraction: the single place where cross-block decisions are made.

:func:`extract_context` walks the AST once and produces a frozen
:class:`TranspileContext`. Generators read only the context; none of them
look at the raw AST or re-derive a flag on their own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from airengine.ast import (
    AirAST,
    APIBlock,
    ArrayType,
    AuthBlock,
    CronBlock,
    CronJob,
    DbBlock,
    DbModel,
    DeployBlock,
    EmailBlock,
    EmailTemplate,
    EnvBlock,
    EnvVar,
    Field,
    HandlerBlock,
    HandlerContract,
    Hook,
    HookBlock,
    Literal,
    NavBlock,
    NavRoute,
    PersistBlock,
    QueueBlock,
    QueueJob,
    Route,
    StateBlock,
    StyleBlock,
    UIBlock,
    UINode,
    WebhookBlock,
    WebhookRoute,
    unwrap_optional,
)
from airengine.config import TranspileOptions

from .routes import expand_crud, is_auth_path
from .ui_analysis import UIAnalysis, analyze_ui, element_names

logger = logging.getLogger(__name__)

AUTH_MUTATION_NAMES = frozenset({"login", "logout", "register", "signup", "signin", "signout"})
AUTH_PAGE_NAMES = frozenset({"login", "register", "signup", "signin", "auth", "forgotPassword", "resetPassword"})
PUBLIC_PAGE_NAMES = frozenset({"landing", "about", "pricing", "contact", "features", "home", "shop", "blog"})

DEFAULT_ACCENT = "#6366f1"
DEFAULT_RADIUS = 12
DENSITIES = ("compact", "comfortable", "spacious")
FONT_FAMILIES = {
    "sans": ("system-ui", "-apple-system", "sans-serif"),
    "mono": ("'SF Mono'", "'Fira Code'", "monospace"),
    "display": ("'Inter'", "system-ui", "sans-serif"),
    "serif": ("Georgia", "serif"),
}
DEFAULT_FONT_FAMILY = "system-ui, -apple-system, sans-serif"

# (gap, padding, vertical stack) utility classes per density
_DENSITY_SPACING = {
    "compact": ("gap-2", "p-3", "space-y-2"),
    "comfortable": ("gap-4", "p-6", "space-y-4"),
    "spacious": ("gap-6", "p-8", "space-y-6"),
}
_RESERVED_STYLE_KEYS = frozenset({"theme", "accent", "radius", "font", "density", "maxWidth"})


@dataclass(frozen=True)
class StyleTokens:
    accent: str = DEFAULT_ACCENT
    accent_rgb: str = "99, 102, 241"
    radius: float = DEFAULT_RADIUS
    theme: str = "dark"
    font_family: str = DEFAULT_FONT_FAMILY
    density: str = "comfortable"
    max_width: Optional[str] = None
    extra_vars: Tuple[Tuple[str, str], ...] = ()

    @property
    def is_dark(self) -> bool:
        return self.theme == "dark"

    @property
    def gap(self) -> str:
        return _DENSITY_SPACING[self.density][0]

    @property
    def padding(self) -> str:
        return _DENSITY_SPACING[self.density][1]

    @property
    def stack(self) -> str:
        return _DENSITY_SPACING[self.density][2]


def _expand_hex(value: str) -> Optional[str]:
    digits = value.lstrip("#")
    if len(digits) in (3, 4):
        digits = "".join(char * 2 for char in digits[:3])
    if len(digits) < 6:
        return None
    try:
        int(digits[:6], 16)
    except ValueError:
        return None
    return digits[:6]


def hex_to_rgb(value: str) -> str:
    digits = _expand_hex(value) or _expand_hex(DEFAULT_ACCENT)
    return ", ".join(str(int(digits[index : index + 2], 16)) for index in (0, 2, 4))


def _font_family(font: Literal) -> str:
    if not isinstance(font, str) or not font:
        return DEFAULT_FONT_FAMILY
    families: List[str] = []
    for part in font.split("+"):
        for family in FONT_FAMILIES.get(part.strip(), (part.strip(),)):
            if family not in families:
                families.append(family)
    return ", ".join(families)


def resolve_style(properties: Dict[str, Literal]) -> StyleTokens:
    """Normalize raw ``@style`` properties, filling every token with a default."""
    accent = properties.get("accent")
    if not (isinstance(accent, str) and _expand_hex(accent)):
        accent = DEFAULT_ACCENT
    radius = properties.get("radius")
    if isinstance(radius, bool) or not isinstance(radius, (int, float)):
        radius = DEFAULT_RADIUS
    theme = "light" if properties.get("theme") == "light" else "dark"
    density = properties.get("density")
    if density not in DENSITIES:
        density = "comfortable"
    max_width = properties.get("maxWidth")
    if isinstance(max_width, bool) or max_width is None:
        max_width = None
    elif isinstance(max_width, (int, float)):
        max_width = f"{max_width}px"
    else:
        max_width = str(max_width)
    extra = tuple(
        (key, value)
        for key, value in properties.items()
        if key not in _RESERVED_STYLE_KEYS and isinstance(value, str) and value.startswith("#")
    )
    return StyleTokens(
        accent=accent,
        accent_rgb=hex_to_rgb(accent),
        radius=radius,
        theme=theme,
        font_family=_font_family(properties.get("font")),
        density=density,
        max_width=max_width,
        extra_vars=extra,
    )


@dataclass(frozen=True)
class TranspileContext:
    app_name: str
    options: TranspileOptions
    state: List[Field] = field(default_factory=list)
    style: StyleTokens = field(default_factory=StyleTokens)
    style_properties: Dict[str, Literal] = field(default_factory=dict)
    ui_nodes: List[UINode] = field(default_factory=list)
    api_routes: List[Route] = field(default_factory=list)
    expanded_routes: List[Route] = field(default_factory=list)
    nav_routes: List[NavRoute] = field(default_factory=list)
    auth: Optional[AuthBlock] = None
    hooks: List[Hook] = field(default_factory=list)
    persist: List[PersistBlock] = field(default_factory=list)
    db: Optional[DbBlock] = None
    cron: List[CronJob] = field(default_factory=list)
    webhooks: List[WebhookRoute] = field(default_factory=list)
    queue: List[QueueJob] = field(default_factory=list)
    email: List[EmailTemplate] = field(default_factory=list)
    env: List[EnvVar] = field(default_factory=list)
    deploy: Optional[Dict[str, Literal]] = None
    handlers: List[HandlerContract] = field(default_factory=list)
    analysis: UIAnalysis = field(default_factory=UIAnalysis)
    has_backend: bool = False
    has_pages: bool = False
    is_ecommerce: bool = False
    has_auth_routes: bool = False
    has_auth_gating: bool = False
    has_sidebar: bool = False
    auth_mutations: List[str] = field(default_factory=list)
    pages: List[str] = field(default_factory=list)
    public_page_names: List[str] = field(default_factory=list)

    @property
    def source_name(self) -> str:
        return self.options.source_name or f"{self.app_name}.air"

    @property
    def needs_layout(self) -> bool:
        return self.has_pages and (self.has_sidebar or len(self.pages) >= 3)

    @property
    def client_root(self) -> str:
        return "client/" if self.has_backend else ""

    @property
    def models(self) -> List[DbModel]:
        return list(self.db.models) if self.db else []

    def model(self, name: str) -> Optional[DbModel]:
        for model in self.models:
            if model.name == name:
                return model
        return None

    def state_field(self, name: str) -> Optional[Field]:
        for item in self.state:
            if item.name == name:
                return item
        return None

    def array_state_fields(self) -> List[Field]:
        return [item for item in self.state if isinstance(unwrap_optional(item.type), ArrayType)]


def _merge_db(blocks: List[DbBlock]) -> Optional[DbBlock]:
    if not blocks:
        return None
    merged = DbBlock()
    for block in blocks:
        merged.models.extend(block.models)
        merged.relations.extend(block.relations)
        merged.indexes.extend(block.indexes)
    return merged


def _detect_ecommerce(state: List[Field], db: Optional[DbBlock], ui_elements: List[str]) -> bool:
    model_names = {model.name.lower() for model in db.models} if db else set()
    state_names = {item.name.lower() for item in state}
    elements = {name.split(".")[0].lower() for name in ui_elements}
    has_products = "product" in model_names or "products" in state_names
    has_cart = bool(model_names & {"order", "cart", "cartitem"}) or bool(
        (state_names | elements) & {"cart", "checkout"}
    )
    return has_products and has_cart


def extract_context(ast: AirAST, options: Optional[TranspileOptions] = None) -> TranspileContext:
    """Derive the generation context from ``ast``. Pure; repeated calls give equal results."""
    options = options or TranspileOptions()

    state: List[Field] = []
    style_properties: Dict[str, Literal] = {}
    ui_nodes: List[UINode] = []
    api_routes: List[Route] = []
    nav_routes: List[NavRoute] = []
    auth: Optional[AuthBlock] = None
    hooks: List[Hook] = []
    persist: List[PersistBlock] = []
    db_blocks: List[DbBlock] = []
    cron: List[CronJob] = []
    webhooks: List[WebhookRoute] = []
    queue: List[QueueJob] = []
    email: List[EmailTemplate] = []
    env: List[EnvVar] = []
    deploy: Optional[Dict[str, Literal]] = None
    handlers: List[HandlerContract] = []
    seen_kinds = set()

    for block in ast.app.blocks:
        seen_kinds.add(block.kind)
        if isinstance(block, StateBlock):
            state.extend(block.fields)
        elif isinstance(block, StyleBlock):
            style_properties.update(block.properties)
        elif isinstance(block, UIBlock):
            ui_nodes.extend(block.children)
        elif isinstance(block, APIBlock):
            api_routes.extend(block.routes)
        elif isinstance(block, NavBlock):
            nav_routes.extend(block.routes)
        elif isinstance(block, AuthBlock):
            auth = block
        elif isinstance(block, HookBlock):
            hooks.extend(block.hooks)
        elif isinstance(block, PersistBlock):
            persist.append(block)
        elif isinstance(block, DbBlock):
            db_blocks.append(block)
        elif isinstance(block, CronBlock):
            cron.extend(block.jobs)
        elif isinstance(block, WebhookBlock):
            webhooks.extend(block.routes)
        elif isinstance(block, QueueBlock):
            queue.extend(block.jobs)
        elif isinstance(block, EmailBlock):
            email.extend(block.templates)
        elif isinstance(block, EnvBlock):
            env.extend(block.vars)
        elif isinstance(block, DeployBlock):
            deploy = {**(deploy or {}), **block.properties}
        elif isinstance(block, HandlerBlock):
            handlers.extend(block.contracts)

    db = _merge_db(db_blocks)
    expanded_routes = expand_crud(api_routes)
    analysis = analyze_ui(ui_nodes)
    ui_elements = element_names(ui_nodes)
    pages = [page.name for page in analysis.pages]

    has_backend = bool(seen_kinds & {"db", "api", "env", "webhook"})
    has_pages = analysis.has_pages
    auth_mutations = [name for name in analysis.mutation_names() if name in AUTH_MUTATION_NAMES]
    has_auth_routes = auth is not None or any(is_auth_path(route.path) for route in expanded_routes)
    has_auth_gating = (
        bool(auth_mutations)
        and has_backend
        and has_pages
        and any(name in AUTH_PAGE_NAMES for name in pages)
    )
    public_page_names = [name for name in pages if name in PUBLIC_PAGE_NAMES] if has_auth_gating else []

    context = TranspileContext(
        app_name=ast.app.name,
        options=options,
        state=state,
        style=resolve_style(style_properties),
        style_properties=style_properties,
        ui_nodes=ui_nodes,
        api_routes=api_routes,
        expanded_routes=expanded_routes,
        nav_routes=nav_routes,
        auth=auth,
        hooks=hooks,
        persist=persist,
        db=db,
        cron=cron,
        webhooks=webhooks,
        queue=queue,
        email=email,
        env=env,
        deploy=deploy,
        handlers=handlers,
        analysis=analysis,
        has_backend=has_backend,
        has_pages=has_pages,
        is_ecommerce=_detect_ecommerce(state, db, ui_elements),
        has_auth_routes=has_auth_routes,
        has_auth_gating=has_auth_gating,
        has_sidebar="sidebar" in {name.split(".")[0] for name in ui_elements},
        auth_mutations=auth_mutations,
        pages=pages,
        public_page_names=public_page_names,
    )
    logger.debug(
        "Context for '%s': backend=%s pages=%d ecommerce=%s auth_gating=%s routes=%d",
        context.app_name,
        context.has_backend,
        len(pages),
        context.is_ecommerce,
        context.has_auth_gating,
        len(expanded_routes),
    )
    return context


__all__ = [
    "AUTH_MUTATION_NAMES",
    "AUTH_PAGE_NAMES",
    "PUBLIC_PAGE_NAMES",
    "StyleTokens",
    "TranspileContext",
    "resolve_style",
    "hex_to_rgb",
    "extract_context",
]
