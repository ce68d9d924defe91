"""Per-page component files under ``src/pages/``."""

from __future__ import annotations

import logging
import re
import textwrap
from typing import TYPE_CHECKING, List, Sequence, Set

from airengine.ast import ScopedNode

from .helpers import ROOT_SCOPE, indent, safe_action_name, setter
from .jsx import JSXGenerator, component_name, is_auth_page_name, page_dependencies, page_has_form
from .mutations import generate_mutations
from .state import generate_hook_effects, generate_persist_load, generate_persist_save, hooks_touching, state_declaration

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

logger = logging.getLogger(__name__)

FORM_PAGE_OUTER = "flex items-center justify-center min-h-screen p-4"
FORM_PAGE_CARD = (
    "w-full max-w-md space-y-6 rounded-[var(--radius)] border border-[var(--border)] bg-[var(--surface)] p-8"
)


def _references(name: str, code: str) -> bool:
    return re.search(rf"\b{re.escape(name)}\b", code) is not None


def render_page_body(ctx: "TranspileContext", page: ScopedNode, ind: int) -> List[str]:
    """Markup returned by a page component, without any shell wrapper."""
    pad = " " * ind
    generator = JSXGenerator(ctx)
    if page_has_form(page):
        title = page.name[:1].upper() + page.name[1:]
        return [
            f'{pad}<div className="{FORM_PAGE_OUTER}">',
            f'{pad}  <div className="{FORM_PAGE_CARD}">',
            f'{pad}    <h2 className="text-2xl font-bold text-center">{title}</h2>',
            generator.render_all(page.children, ROOT_SCOPE, ind + 4),
            f"{pad}  </div>",
            f"{pad}</div>",
        ]
    return [
        f'{pad}<div className="space-y-6">',
        generator.render_all(page.children, ROOT_SCOPE, ind + 2),
        f"{pad}</div>",
    ]


def _react_import(hooks: Sequence[str]) -> List[str]:
    if not hooks:
        return []
    return [f"import {{ {', '.join(hooks)} }} from 'react';"]


def _local_logic(ctx: "TranspileContext", page: ScopedNode, props: Set[str], markup: str) -> List[str]:
    """State, persistence, mutations and hooks a self-contained page owns."""
    deps = page_dependencies(page.children, ctx)
    wanted = {name for name in deps.mutation_props if name not in props}
    mutations = [m for m in ctx.analysis.mutations if safe_action_name(m.name) in wanted]
    mutation_lines = generate_mutations(ctx, mutations, has_pages=True)

    code = markup + "\n" + "\n".join(mutation_lines)
    declared = [
        item
        for item in ctx.state
        if item.name not in props and (_references(item.name, code) or _references(setter(item.name), code))
    ]
    names = {item.name for item in declared}
    lines = [state_declaration(item) for item in declared]
    effects = generate_persist_load(ctx, names) + generate_persist_save(ctx, names)
    effects += generate_hook_effects(ctx, hooks_touching(ctx.hooks, names))
    if lines:
        lines.append("")
    lines.extend(effects)
    if effects:
        lines.append("")
    lines.extend(mutation_lines)
    return lines


def generate_page_component(ctx: "TranspileContext", page: ScopedNode, *, auth_gated: bool = False) -> str:
    shell = JSXGenerator(ctx, page_components=True, auth_gated=auth_gated)
    props = shell.page_prop_names(page)
    logger.debug("Page component %s receives %d props", component_name(page.name), len(props))
    wrap_layout = auth_gated and ctx.needs_layout and not is_auth_page_name(page.name)

    body_ind = 6 if wrap_layout else 4
    markup = "\n".join(render_page_body(ctx, page, body_ind))

    logic: List[str] = []
    if auth_gated:
        logic = _local_logic(ctx, page, set(props), markup)

    code = markup + "\n".join(logic)
    react_hooks = [hook for hook in ("useState", "useEffect") if f"{hook}(" in code]
    imports = _react_import(react_hooks)
    if "api." in "\n".join(logic):
        imports.append("import * as api from '../api.js';")
    if wrap_layout:
        imports.append("import Layout from '../Layout.jsx';")

    lines = list(imports)
    if imports:
        lines.append("")
    params = "{ " + ", ".join(props) + " }" if props else ""
    lines.append(f"export default function {component_name(page.name)}({params}) {{")
    if logic:
        lines.extend(indent(logic, 2))
    lines.append("  return (")
    if wrap_layout:
        lines.append("    <Layout user={user} logout={logout} currentPage={currentPage} setCurrentPage={setCurrentPage}>")
        lines.append(markup)
        lines.append("    </Layout>")
    else:
        lines.append(markup)
    lines.extend(["  );", "}"])
    return "\n".join(lines) + "\n"


def generate_cart_page(ctx: "TranspileContext") -> str:
    shop = "shop" if "shop" in ctx.pages else (ctx.pages[0] if ctx.pages else "home")
    template = """
    export default function CartPage({ cart, removeFromCart, updateCartQty, clearCart, setCurrentPage }) {
      const total = cart.reduce((sum, item) => sum + (item.price ?? 0) * item.qty, 0);

      return (
        <div className="max-w-3xl mx-auto px-4 sm:px-6 py-8 space-y-6">
          <div className="flex items-center justify-between">
            <h1 className="text-2xl font-bold">Your Cart</h1>
            <button className="text-sm text-[var(--accent)] hover:underline cursor-pointer" onClick={() => setCurrentPage('__SHOP__')}>Continue shopping</button>
          </div>
          {cart.length === 0 ? (
            <div className="empty-state">Your cart is empty</div>
          ) : (
            <>
              <div className="space-y-3">
                {cart.map((item) => (
                  <div key={item.id} className="list-row">
                    <span className="flex-1">{item.name}</span>
                    <input type="number" min="1" className="w-20 rounded-[var(--radius)] px-2 py-1" value={item.qty} onChange={(e) => updateCartQty(item.id, Number(e.target.value))} />
                    <span className="w-24 text-right">{'$' + ((item.price ?? 0) * item.qty).toFixed(2)}</span>
                    <button className="p-2 rounded-full hover:bg-[var(--hover)] cursor-pointer transition-colors" onClick={() => removeFromCart(item.id)}>&#10005;</button>
                  </div>
                ))}
              </div>
              <div className="flex items-center justify-between border-t border-[var(--border)] pt-4">
                <button className="bg-transparent hover:bg-[var(--hover)] px-4 py-2 rounded-[var(--radius)] cursor-pointer transition-colors" onClick={clearCart}>Clear cart</button>
                <div className="text-xl font-bold">Total: {'$' + total.toFixed(2)}</div>
              </div>
            </>
          )}
        </div>
      );
    }
    """
    return textwrap.dedent(template).strip().replace("__SHOP__", shop) + "\n"


__all__ = ["render_page_body", "generate_page_component", "generate_cart_page"]
