"""React + Vite client generation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from ..output import OutputFile, with_provenance
from .api_client import generate_api_client
from .app import generate_app, has_api, has_cart, uses_page_components
from .jsx import collect_pages, component_name
from .layout import generate_layout
from .pages import generate_cart_page, generate_page_component
from .scaffold import generate_scaffold

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

__all__ = ["generate_client"]

logger = logging.getLogger(__name__)


def generate_client(ctx: "TranspileContext") -> List[OutputFile]:
    """Return the client file set, rooted at ``ctx.client_root``."""
    root = ctx.client_root
    pairs = list(generate_scaffold(ctx))
    pairs.append(("src/App.jsx", generate_app(ctx)))

    if ctx.needs_layout:
        pairs.append(("src/Layout.jsx", generate_layout(ctx)))
    if has_api(ctx):
        pairs.append(("src/api.js", generate_api_client(ctx)))
    if uses_page_components(ctx):
        store = has_cart(ctx)
        for page in collect_pages(ctx.ui_nodes):
            if store and component_name(page.name) == "CartPage":
                continue
            content = generate_page_component(ctx, page, auth_gated=ctx.has_auth_gating)
            pairs.append((f"src/pages/{component_name(page.name)}.jsx", content))
        if store:
            pairs.append(("src/pages/CartPage.jsx", generate_cart_page(ctx)))

    logger.debug("Client generation produced %d files under '%s'", len(pairs), root or ".")
    return [with_provenance(root + path, content, ctx.source_name, "client") for path, content in pairs]
