"""``src/api.js``: one fetch wrapper per expanded route."""

from __future__ import annotations

import logging
import re
import textwrap
from typing import TYPE_CHECKING, List, Set

from airengine.ast import Route
from airengine.ir.routes import extract_path_params, parse_db_handler, route_to_function_name

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "http://localhost:8000/api"


def _render_token_helpers() -> str:
    template = """
    const API_BASE = import.meta.env.VITE_API_BASE_URL ?? '{base}';
    const TOKEN_KEY = 'auth_token';

    let authToken = typeof localStorage !== 'undefined' ? localStorage.getItem(TOKEN_KEY) : null;

    export function setToken(token) {{
      authToken = token;
      localStorage.setItem(TOKEN_KEY, token);
    }}

    export function clearToken() {{
      authToken = null;
      localStorage.removeItem(TOKEN_KEY);
    }}

    function headers(json = false) {{
      const h = {{}};
      if (json) h['Content-Type'] = 'application/json';
      if (authToken) h.Authorization = `Bearer ${{authToken}}`;
      return h;
    }}
    """
    return textwrap.dedent(template).strip().format(base=DEFAULT_API_BASE)


def _url_expr(path: str) -> str:
    return "`${API_BASE}" + re.sub(r":(\w+)", r"${\1}", path) + "`"


def render_route_function(route: Route) -> List[str]:
    method = route.method
    fn_name = route_to_function_name(method, route.path)
    path_params = extract_path_params(route.path)
    has_body = method in ("POST", "PUT")
    is_list = method == "GET" and not path_params and route.handler.endswith(".findMany")
    url = _url_expr(route.path)

    lines: List[str] = []
    target = parse_db_handler(route.handler)
    if target is not None:
        many = method == "GET" and not path_params
        lines.append(f"/** @returns {{Promise<{target.model}{'[]' if many else ''}>}} */")

    args = list(path_params)
    if has_body:
        args.append("data")
    if is_list:
        args.append("{ page, limit } = {}")
    lines.append(f"export async function {fn_name}({', '.join(args)}) {{")

    if is_list:
        lines.extend(
            [
                "  const params = new URLSearchParams();",
                "  if (page !== undefined) params.set('page', String(page));",
                "  if (limit !== undefined) params.set('limit', String(limit));",
                "  const qs = params.toString();",
                f"  const url = qs ? {url} + '?' + qs : {url};",
                "  const res = await fetch(url, { headers: headers() });",
            ]
        )
    elif method == "GET":
        lines.append(f"  const res = await fetch({url}, {{ headers: headers() }});")
    elif method == "DELETE":
        lines.append(f"  const res = await fetch({url}, {{ method: 'DELETE', headers: headers() }});")
    else:
        lines.extend(
            [
                f"  const res = await fetch({url}, {{",
                f"    method: '{method}',",
                "    headers: headers(true),",
                "    body: JSON.stringify(data ?? {}),",
                "  });",
            ]
        )
    lines.append(f"  if (!res.ok) throw new Error(`{method} {route.path} failed: ${{res.status}}`);")
    if method == "DELETE":
        lines.append("  return res.status === 204 ? null : res.json();")
    else:
        lines.append("  return res.json();")
    lines.append("}")
    return lines


def generate_api_client(ctx: "TranspileContext") -> str:
    lines = [_render_token_helpers(), ""]
    seen: Set[str] = set()
    for route in ctx.expanded_routes:
        fn_name = route_to_function_name(route.method, route.path)
        if fn_name in seen:
            logger.debug("Duplicate client function '%s' for %s %s skipped", fn_name, route.method, route.path)
            continue
        seen.add(fn_name)
        lines.extend(render_route_function(route))
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


__all__ = ["DEFAULT_API_BASE", "render_route_function", "generate_api_client"]
