"""``src/App.jsx``: state, effects, mutations and the root markup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from .helpers import indent
from .jsx import JSXGenerator, collect_pages, component_name, has_user_state, is_auth_page_name
from .mutations import generate_mutations, post_login_page
from .state import generate_hook_effects, generate_persist_load, generate_persist_save, generate_state_decls

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

logger = logging.getLogger(__name__)

CART_HELPERS = ("addToCart", "removeFromCart", "updateCartQty", "clearCart")
CART_STORAGE_KEY = "ecommerce_cart"


def uses_page_components(ctx: "TranspileContext") -> bool:
    return ctx.has_backend and ctx.has_pages


def uses_lazy_pages(ctx: "TranspileContext") -> bool:
    return uses_page_components(ctx) and len(ctx.pages) >= 3


def has_cart(ctx: "TranspileContext") -> bool:
    return ctx.is_ecommerce and uses_page_components(ctx)


def has_api(ctx: "TranspileContext") -> bool:
    return ctx.has_backend and bool(ctx.expanded_routes)


def gated_default_page(ctx: "TranspileContext") -> str:
    if ctx.is_ecommerce and "shop" in ctx.pages:
        return "shop"
    if ctx.public_page_names:
        return ctx.public_page_names[0]
    if "login" in ctx.pages:
        return "login"
    return next((page for page in ctx.pages if is_auth_page_name(page)), ctx.pages[0])


def _imports(ctx: "TranspileContext", *, gated: bool) -> List[str]:
    lazy = uses_lazy_pages(ctx)
    react = ["useState", "useEffect"] + (["lazy", "Suspense"] if lazy else [])
    lines = [f"import {{ {', '.join(react)} }} from 'react';"]
    if has_api(ctx):
        lines.append("import * as api from './api.js';")
    if uses_page_components(ctx) and ctx.needs_layout and not gated:
        lines.append("import Layout from './Layout.jsx';")
    if uses_page_components(ctx):
        names = [component_name(page.name) for page in collect_pages(ctx.ui_nodes)]
        if has_cart(ctx) and "CartPage" not in names:
            names.append("CartPage")
        for name in names:
            if lazy:
                lines.append(f"const {name} = lazy(() => import('./pages/{name}.jsx'));")
            else:
                lines.append(f"import {name} from './pages/{name}.jsx';")
    return lines


def _cart_logic() -> List[str]:
    return [
        "const [cart, setCart] = useState(() => {",
        f"  try {{ return JSON.parse(localStorage.getItem('{CART_STORAGE_KEY}')) || []; }} catch (e) {{ return []; }}",
        "});",
        "useEffect(() => {",
        f"  localStorage.setItem('{CART_STORAGE_KEY}', JSON.stringify(cart));",
        "}, [cart]);",
        "const addToCart = (product) => {",
        "  setCart(prev => {",
        "    const existing = prev.find(i => i.id === product.id);",
        "    if (existing) return prev.map(i => i.id === product.id ? { ...i, qty: i.qty + 1 } : i);",
        "    return [...prev, { ...product, qty: 1 }];",
        "  });",
        "};",
        "const removeFromCart = (id) => setCart(prev => prev.filter(i => i.id !== id));",
        "const updateCartQty = (id, qty) => setCart(prev => prev.map(i => i.id === id ? { ...i, qty: Math.max(1, qty) } : i));",
        "const clearCart = () => setCart([]);",
        "",
    ]


def _gated_body(ctx: "TranspileContext") -> List[str]:
    default_page = gated_default_page(ctx)
    landing = post_login_page(ctx.pages)
    app = ctx.app_name
    lines = [
        "const [user, setUser] = useState(null);",
        "const [authError, setAuthError] = useState(null);",
        f"const [currentPage, setCurrentPage] = useState('{default_page}');",
    ]
    lines.extend(generate_state_decls([item for item in ctx.state if item.name in ("loading", "error")]))
    lines.append("")
    if has_cart(ctx):
        lines.extend(_cart_logic())
    lines.extend(
        [
            "useEffect(() => {",
            "  const token = localStorage.getItem('auth_token');",
            f"  const saved = localStorage.getItem('{app}_user');",
            "  if (token && saved) {",
            "    try {",
            "      setUser(JSON.parse(saved));",
            f"      setCurrentPage('{landing}');",
            "    } catch (e) { /* ignore corrupt storage */ }",
            "  }",
            "}, []);",
            "",
        ]
    )
    auth = [m for m in ctx.analysis.mutations if m.name in ctx.auth_mutations and m.name != "logout"]
    lines.extend(generate_mutations(ctx, auth))
    lines.extend(
        [
            "const logout = () => {",
            "  api.clearToken();",
            "  setUser(null);",
            "  localStorage.removeItem('auth_token');",
            f"  localStorage.removeItem('{app}_user');",
            f"  setCurrentPage('{default_page}');",
            "};",
            "",
            "const isAuthed = !!user;",
            "",
        ]
    )
    return lines


def _full_body(ctx: "TranspileContext") -> List[str]:
    cart = has_cart(ctx)
    fields = [item for item in ctx.state if not (cart and item.name == "cart")]
    lines = generate_state_decls(fields)
    if has_user_state(ctx) and ctx.state_field("user") is None:
        lines.append("const [user, setUser] = useState(null);")
    if ctx.has_auth_routes:
        lines.append("const [authError, setAuthError] = useState(null);")
    if ctx.has_pages:
        lines.append(f"const [currentPage, setCurrentPage] = useState('{ctx.pages[0]}');")
    lines.append("")
    if cart:
        lines.extend(_cart_logic())

    if ctx.has_auth_routes and has_user_state(ctx):
        lines.extend(
            [
                "useEffect(() => {",
                f"  const saved = localStorage.getItem('{ctx.app_name}_user');",
                "  if (saved) {",
                "    try { setUser(JSON.parse(saved)); } catch (e) { /* ignore corrupt storage */ }",
                "  }",
                "}, []);",
                "",
            ]
        )

    effects = generate_persist_load(ctx) + generate_persist_save(ctx)
    if effects:
        lines.extend(effects)
        lines.append("")

    mutations = [m for m in ctx.analysis.mutations if not (cart and m.name in CART_HELPERS)]
    lines.extend(generate_mutations(ctx, mutations))

    hooks = generate_hook_effects(ctx)
    if hooks:
        lines.extend(hooks)
        lines.append("")
    return lines


def generate_app(ctx: "TranspileContext") -> str:
    gated = ctx.has_auth_gating
    generator = JSXGenerator(ctx, page_components=uses_page_components(ctx), auth_gated=gated)
    body = _gated_body(ctx) if gated else _full_body(ctx)
    markup = generator.render_root(use_lazy=uses_lazy_pages(ctx))
    logger.debug("App.jsx: gated=%s lazy=%s body_lines=%d", gated, uses_lazy_pages(ctx), len(body))

    lines = _imports(ctx, gated=gated)
    lines.extend(["", "export default function App() {"])
    lines.extend(indent(body, 2))
    lines.append("  return (")
    lines.extend(indent(markup, 4))
    lines.extend(["  );", "}"])
    return "\n".join(lines) + "\n"


__all__ = [
    "CART_HELPERS",
    "uses_page_components",
    "uses_lazy_pages",
    "has_cart",
    "has_api",
    "gated_default_page",
    "generate_app",
]
