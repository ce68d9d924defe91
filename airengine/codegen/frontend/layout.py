"""Sidebar navigation shell (``src/Layout.jsx``) for multi-page apps."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING, List

from .helpers import derive_label
from .jsx import is_auth_page_name

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

_HOME = "M3 12l2-2m0 0l7-7 7 7M5 10v10a1 1 0 001 1h3m10-11l2 2m-2-2v10a1 1 0 01-1 1h-3m-4 0h4"
_PEOPLE = (
    "M17 20h5v-2a3 3 0 00-5.356-1.857M17 20H7m10 0v-2c0-.656-.126-1.283-.356-1.857M7 20H2v-2a3 3 0 015.356-1.857"
    "M7 20v-2c0-.656.126-1.283.356-1.857m0 0a5.002 5.002 0 019.288 0M15 7a3 3 0 11-6 0 3 3 0 016 0z"
)
_CLIPBOARD = (
    "M9 5H7a2 2 0 00-2 2v12a2 2 0 002 2h10a2 2 0 002-2V7a2 2 0 00-2-2h-2M9 5a2 2 0 002 2h2a2 2 0 002-2"
    "M9 5a2 2 0 012-2h2a2 2 0 012 2"
)
_CARD = "M3 10h18M7 15h1m4 0h1m-7 4h12a3 3 0 003-3V8a3 3 0 00-3-3H6a3 3 0 00-3 3v8a3 3 0 003 3z"
_CHAT = (
    "M21 12c0 4.418-4.03 8-9 8a9.863 9.863 0 01-4.255-.949L3 20l1.395-3.72C3.512 15.042 3 13.574 3 12"
    "c0-4.418 4.03-8 9-8s9 3.582 9 8z"
)

NAV_ICONS = {
    "dashboard": _HOME,
    "overview": _HOME,
    "home": _HOME,
    "projects": "M3 7v10a2 2 0 002 2h14a2 2 0 002-2V9a2 2 0 00-2-2h-6l-2-2H5a2 2 0 00-2 2z",
    "tasks": _CLIPBOARD + "m-6 9l2 2 4-4",
    "settings": (
        "M10.325 4.317c.426-1.756 2.924-1.756 3.35 0a1.724 1.724 0 002.573 1.066c1.543-.94 3.31.826 2.37 2.37"
        "a1.724 1.724 0 001.066 2.573c1.756.426 1.756 2.924 0 3.35a1.724 1.724 0 00-1.066 2.573c.94 1.543-.826 "
        "3.31-2.37 2.37a1.724 1.724 0 00-2.573 1.066c-.426 1.756-2.924 1.756-3.35 0a1.724 1.724 0 00-2.573-1.066"
        "c-1.543.94-3.31-.826-2.37-2.37a1.724 1.724 0 00-1.066-2.573c-1.756-.426-1.756-2.924 0-3.35a1.724 1.724 0 "
        "001.066-2.573c-.94-1.543.826-3.31 2.37-2.37.996.608 2.296.07 2.572-1.065z M15 12a3 3 0 11-6 0 3 3 0 016 0z"
    ),
    "users": "M12 4.354a4 4 0 110 5.292M15 21H3v-1a6 6 0 0112 0v1zm0 0h6v-1a6 6 0 00-9-5.197m3 5.197v-1",
    "contacts": _PEOPLE,
    "customers": _PEOPLE,
    "team": _PEOPLE + "m6 3a2 2 0 11-4 0 2 2 0 014 0zM7 10a2 2 0 11-4 0 2 2 0 014 0z",
    "analytics": (
        "M9 19v-6a2 2 0 00-2-2H5a2 2 0 00-2 2v6a2 2 0 002 2h2a2 2 0 002-2zm0 0V9a2 2 0 012-2h2a2 2 0 012 2v10"
        "m-6 0a2 2 0 002 2h2a2 2 0 002-2m0 0V5a2 2 0 012-2h2a2 2 0 012 2v14a2 2 0 01-2 2h-2a2 2 0 01-2-2z"
    ),
    "reports": (
        "M9 17v-2m3 2v-4m3 4v-6m2 10H7a2 2 0 01-2-2V5a2 2 0 012-2h5.586a1 1 0 01.707.293l5.414 5.414"
        "a1 1 0 01.293.707V19a2 2 0 01-2 2z"
    ),
    "orders": _CLIPBOARD,
    "products": "M20 7l-8-4-8 4m16 0l-8 4m8-4v10l-8 4m0-10L4 7m8 4v10M4 7v10l8 4",
    "messages": "M8 10h.01M12 10h.01M16 10h.01" + _CHAT,
    "testimonials": "M8 12h.01M12 12h.01M16 12h.01" + _CHAT,
    "calendar": "M8 7V3m8 4V3m-9 8h10M5 21h14a2 2 0 002-2V7a2 2 0 00-2-2H5a2 2 0 00-2 2v12a2 2 0 002 2z",
    "billing": _CARD,
    "payments": _CARD,
    "profile": "M16 7a4 4 0 11-8 0 4 4 0 018 0zM12 14a7 7 0 00-7 7h14a7 7 0 00-7-7z",
    "inventory": "M5 8h14M5 8a2 2 0 110-4h14a2 2 0 110 4M5 8v10a2 2 0 002 2h10a2 2 0 002-2V8m-9 4h4",
    "about": "M13 16h-1v-4h-1m1-4h.01M21 12a9 9 0 11-18 0 9 9 0 0118 0z",
    "inquiries": (
        "M3 8l7.89 5.26a2 2 0 002.22 0L21 8M5 19h14a2 2 0 002-2V7a2 2 0 00-2-2H5a2 2 0 00-2 2v10a2 2 0 002 2z"
    ),
    "notifications": (
        "M15 17h5l-1.405-1.405A2.032 2.032 0 0118 14.158V11a6.002 6.002 0 00-4-5.659V5a2 2 0 10-4 0v.341"
        "C7.67 6.165 6 8.388 6 11v3.159c0 .538-.214 1.055-.595 1.436L4 17h5m6 0v1a3 3 0 11-6 0v-1m6 0H9"
    ),
}
DEFAULT_ICON = "M4 6h16M4 12h16M4 18h16"


def nav_icon(page: str) -> str:
    return NAV_ICONS.get(page.lower(), DEFAULT_ICON)


def app_title(app_name: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in app_name.replace("-", " ").split())


def _nav_items(pages: List[str]) -> str:
    lines = [
        f"    {{ key: '{page}', label: '{derive_label(page)}', icon: '{nav_icon(page)}' }},"
        for page in pages
        if not is_auth_page_name(page)
    ]
    return "\n".join(lines)


def generate_layout(ctx: "TranspileContext") -> str:
    title = app_title(ctx.app_name)
    template = """
    import { useState } from 'react';

    export default function Layout({ children, user, logout, currentPage, setCurrentPage }) {
      const [sidebarOpen, setSidebarOpen] = useState(false);

      const navItems = [
    __NAV_ITEMS__
      ];

      return (
        <div className="flex min-h-screen bg-[var(--bg)]">
          {sidebarOpen && (
            <div className="fixed inset-0 bg-black/50 z-40 lg:hidden" onClick={() => setSidebarOpen(false)} />
          )}

          <aside className={`fixed lg:sticky top-0 left-0 z-50 h-screen w-64 bg-[var(--surface)] border-r border-[var(--border)] flex flex-col transition-transform duration-200 ease-in-out ${sidebarOpen ? 'translate-x-0' : '-translate-x-full lg:translate-x-0'}`}>
            <div className="flex items-center gap-3 px-5 h-16 border-b border-[var(--border)] shrink-0">
              <div className="w-8 h-8 rounded-lg bg-[var(--accent)] flex items-center justify-center text-white font-bold text-sm">__INITIAL__</div>
              <span className="font-semibold text-lg tracking-tight">__TITLE__</span>
            </div>

            <nav className="flex-1 overflow-y-auto py-4 px-3 space-y-1">
              {navItems.map((item) => {
                const isActive = currentPage === item.key;
                return (
                  <button
                    key={item.key}
                    onClick={() => { setCurrentPage(item.key); setSidebarOpen(false); }}
                    className={`w-full flex items-center gap-3 px-3 py-2.5 rounded-lg text-sm font-medium transition-all duration-150 ${isActive ? 'bg-[var(--accent)] text-white' : 'text-[var(--muted)] hover:text-[var(--fg)] hover:bg-[var(--hover)]'}`}
                  >
                    <svg className="w-5 h-5 shrink-0" fill="none" viewBox="0 0 24 24" stroke="currentColor" strokeWidth={isActive ? 2 : 1.5}>
                      <path strokeLinecap="round" strokeLinejoin="round" d={item.icon} />
                    </svg>
                    {item.label}
                  </button>
                );
              })}
            </nav>

            {logout && (
              <div className="border-t border-[var(--border)] p-4 shrink-0">
                {user && (
                  <div className="flex items-center gap-3 mb-3">
                    <div className="w-9 h-9 rounded-full bg-[var(--accent)]/20 flex items-center justify-center text-[var(--accent)] font-semibold text-sm">
                      {(user.name || user.email || '?').charAt(0).toUpperCase()}
                    </div>
                    <div className="flex-1 min-w-0">
                      <div className="text-sm font-medium truncate">{user.name || user.email}</div>
                      {user.role && <div className="text-xs text-[var(--muted)] truncate">{user.role}</div>}
                    </div>
                  </div>
                )}
                <button onClick={logout} className="w-full flex items-center gap-3 px-3 py-2 rounded-lg text-sm text-[var(--muted)] hover:text-red-400 hover:bg-red-400/10 transition-colors">
                  Sign out
                </button>
              </div>
            )}
          </aside>

          <div className="flex-1 flex flex-col min-h-screen">
            <header className="lg:hidden flex items-center gap-3 px-4 h-14 border-b border-[var(--border)] bg-[var(--surface)] sticky top-0 z-30">
              <button onClick={() => setSidebarOpen(true)} className="p-2 -ml-2 rounded-lg hover:bg-[var(--hover)] transition-colors" aria-label="Open sidebar">
                <svg className="w-5 h-5" fill="none" viewBox="0 0 24 24" stroke="currentColor" strokeWidth={1.5}>
                  <path strokeLinecap="round" strokeLinejoin="round" d="M3.75 6.75h16.5M3.75 12h16.5m-16.5 5.25h16.5" />
                </svg>
              </button>
              <span className="font-semibold">__TITLE__</span>
            </header>

            <main className="flex-1 p-6 lg:p-8">
              {children}
            </main>
          </div>
        </div>
      );
    }
    """
    rendered = textwrap.dedent(template).strip()
    rendered = rendered.replace("__NAV_ITEMS__", _nav_items(ctx.pages))
    rendered = rendered.replace("__INITIAL__", title[:1]).replace("__TITLE__", title)
    return rendered + "\n"


__all__ = ["NAV_ICONS", "DEFAULT_ICON", "nav_icon", "app_title", "generate_layout"]
