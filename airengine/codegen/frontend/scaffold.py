"""Vite + React + Tailwind project files that surround ``App.jsx``."""

from __future__ import annotations

import json
import textwrap
from typing import TYPE_CHECKING, Dict, List, Tuple

from .layout import app_title

if TYPE_CHECKING:
    from airengine.ir.context import StyleTokens, TranspileContext

DEPENDENCIES = {
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
}
DEV_DEPENDENCIES = {
    "@vitejs/plugin-react": "^4.2.0",
    "autoprefixer": "^10.4.17",
    "postcss": "^8.4.35",
    "tailwindcss": "^3.4.1",
    "vite": "^5.2.0",
}

DARK_PALETTE: Tuple[Tuple[str, str], ...] = (
    ("bg", "#030712"),
    ("bg-secondary", "rgba(255,255,255,0.03)"),
    ("fg", "#f3f4f6"),
    ("muted", "rgba(255,255,255,0.5)"),
    ("border", "rgba(255,255,255,0.1)"),
    ("border-input", "rgba(255,255,255,0.2)"),
    ("hover", "rgba(255,255,255,0.08)"),
    ("card-shadow", "0 1px 3px rgba(0,0,0,0.4)"),
)
LIGHT_PALETTE: Tuple[Tuple[str, str], ...] = (
    ("bg", "#ffffff"),
    ("bg-secondary", "#f9fafb"),
    ("fg", "#111827"),
    ("muted", "rgba(0,0,0,0.5)"),
    ("border", "#e5e7eb"),
    ("border-input", "#d1d5db"),
    ("hover", "rgba(0,0,0,0.05)"),
    ("card-shadow", "0 1px 3px rgba(0,0,0,0.1)"),
)


def render_package_json(app_name: str) -> str:
    manifest: Dict[str, object] = {
        "name": app_name,
        "private": True,
        "version": "0.0.1",
        "type": "module",
        "scripts": {"dev": "vite", "build": "vite build", "preview": "vite preview"},
        "dependencies": DEPENDENCIES,
        "devDependencies": DEV_DEPENDENCIES,
    }
    return json.dumps(manifest, indent=2) + "\n"


def render_vite_config() -> str:
    template = """
    import { defineConfig } from 'vite';
    import react from '@vitejs/plugin-react';

    export default defineConfig({
      plugins: [react()],
    });
    """
    return textwrap.dedent(template).strip() + "\n"


def render_tailwind_config() -> str:
    template = """
    /** @type {import('tailwindcss').Config} */
    module.exports = {
      content: ['./index.html', './src/**/*.{js,jsx}'],
      theme: { extend: {} },
      plugins: [],
    };
    """
    return textwrap.dedent(template).strip() + "\n"


def render_postcss_config() -> str:
    template = """
    module.exports = {
      plugins: {
        tailwindcss: {},
        autoprefixer: {},
      },
    };
    """
    return textwrap.dedent(template).strip() + "\n"


def render_index_html(app_name: str) -> str:
    template = """
    <!DOCTYPE html>
    <html lang="en">
    <head>
      <meta charset="UTF-8" />
      <meta name="viewport" content="width=device-width, initial-scale=1.0" />
      <title>__TITLE__</title>
    </head>
    <body>
      <div id="root"></div>
      <script type="module" src="/src/main.jsx"></script>
    </body>
    </html>
    """
    return textwrap.dedent(template).strip().replace("__TITLE__", app_title(app_name)) + "\n"


def render_main() -> str:
    template = """
    import React from 'react';
    import ReactDOM from 'react-dom/client';
    import App from './App.jsx';
    import './index.css';

    ReactDOM.createRoot(document.getElementById('root')).render(
      <React.StrictMode>
        <App />
      </React.StrictMode>
    );
    """
    return textwrap.dedent(template).strip() + "\n"


def _css_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def theme_variables(style: "StyleTokens") -> List[str]:
    """``:root`` custom properties for the resolved style tokens."""
    palette = DARK_PALETTE if style.is_dark else LIGHT_PALETTE
    variables = [
        ("accent", style.accent),
        ("accent-rgb", style.accent_rgb),
        ("radius", f"{_css_number(style.radius)}px"),
    ]
    variables.extend(palette)
    variables.append(("surface", "var(--bg-secondary)"))
    if style.max_width:
        variables.append(("max-width", style.max_width))
    variables.extend(style.extra_vars)
    return [f"  --{name}: {value};" for name, value in variables]


def render_index_css(style: "StyleTokens") -> str:
    template = """
    @tailwind base;
    @tailwind components;
    @tailwind utilities;

    :root {
    __VARS__
    }

    body {
      margin: 0;
      font-family: __FONT__;
      -webkit-font-smoothing: antialiased;
      background: var(--bg);
      color: var(--fg);
    }

    * {
      box-sizing: border-box;
    }

    /* Tables */
    table { width: 100%; border-collapse: collapse; }
    th { text-align: left; font-weight: 600; padding: 12px 16px; border-bottom: 2px solid var(--border); font-size: 0.875rem; }
    td { padding: 12px 16px; border-bottom: 1px solid var(--border); }
    tbody tr:hover { background: var(--hover); }

    /* Forms */
    .form-group { display: flex; flex-direction: column; gap: 6px; }
    .form-group label { font-size: 0.875rem; font-weight: 500; color: var(--muted); }

    input:not([type="checkbox"]):not([type="radio"]), select, textarea {
      width: 100%; border: 1px solid var(--border-input) !important; border-radius: var(--radius);
      padding: 10px 14px; background: transparent; color: var(--fg);
      font-size: 0.875rem; outline: none; transition: border-color 0.2s;
    }
    input:focus, select:focus, textarea:focus {
      border-color: var(--accent); box-shadow: 0 0 0 3px rgba(var(--accent-rgb), 0.15);
    }
    input::placeholder, textarea::placeholder { color: var(--muted); }
    input:focus-visible, select:focus-visible, button:focus-visible {
      outline: 2px solid var(--accent); outline-offset: 2px;
    }
    input[type="checkbox"], input[type="radio"] {
      width: auto; cursor: pointer; accent-color: var(--accent);
    }

    /* Buttons */
    button {
      display: inline-flex; align-items: center; justify-content: center; gap: 8px;
      padding: 10px 20px; border-radius: var(--radius); font-size: 0.875rem;
      font-weight: 500; cursor: pointer; transition: all 0.15s; border: none;
    }
    button:disabled { opacity: 0.5; cursor: not-allowed; }

    /* Cards */
    .card {
      background: var(--surface); border: 1px solid var(--border);
      border-radius: var(--radius); padding: 24px; box-shadow: var(--card-shadow);
    }

    /* Lists */
    .list-row {
      display: flex; align-items: center; gap: 12px; padding: 12px 16px;
      border: 1px solid var(--border); border-radius: var(--radius); background: var(--surface);
    }

    .empty-state { text-align: center; padding: 48px 24px; color: var(--muted); font-size: 0.875rem; }

    /* Typography */
    h1 { font-size: 1.875rem; font-weight: 700; letter-spacing: -0.025em; }
    h2 { font-size: 1.25rem; font-weight: 600; }

    aside { background: var(--surface); }
    """
    rendered = textwrap.dedent(template).strip()
    rendered = rendered.replace("__VARS__", "\n".join(theme_variables(style)))
    rendered = rendered.replace("__FONT__", style.font_family)
    return rendered + "\n"


def generate_scaffold(ctx: "TranspileContext") -> List[Tuple[str, str]]:
    """``(relative path, content)`` pairs for the client scaffold."""
    return [
        ("package.json", render_package_json(ctx.app_name)),
        ("vite.config.js", render_vite_config()),
        ("tailwind.config.cjs", render_tailwind_config()),
        ("postcss.config.cjs", render_postcss_config()),
        ("index.html", render_index_html(ctx.app_name)),
        ("src/main.jsx", render_main()),
        ("src/index.css", render_index_css(ctx.style)),
    ]


__all__ = [
    "DARK_PALETTE",
    "LIGHT_PALETTE",
    "render_package_json",
    "render_index_html",
    "render_index_css",
    "theme_variables",
    "generate_scaffold",
]
