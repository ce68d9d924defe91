"""AIR element names to JSX tags and Tailwind utility classes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementMapping:
    tag: str
    class_name: str = ""
    self_closing: bool = False
    input_type: Optional[str] = None


@dataclass(frozen=True)
class _Override:
    tag: Optional[str] = None
    class_name: Optional[str] = None
    input_type: Optional[str] = None


@dataclass(frozen=True)
class _Entry:
    mapping: ElementMapping
    modifiers: Dict[str, _Override]


def _entry(
    tag: str,
    class_name: str = "",
    *,
    self_closing: bool = False,
    input_type: Optional[str] = None,
    modifiers: Optional[Dict[str, _Override]] = None,
) -> _Entry:
    return _Entry(ElementMapping(tag, class_name, self_closing, input_type), modifiers or {})


_BUTTON_PRIMARY = (
    "bg-[var(--accent)] text-white px-5 py-2.5 rounded-[var(--radius)] font-medium "
    "hover:brightness-110 min-w-[80px] cursor-pointer transition-colors"
)
_BUTTON_SECONDARY = (
    "border border-[var(--accent)] text-[var(--accent)] px-5 py-2.5 rounded-[var(--radius)] "
    "font-medium cursor-pointer hover:opacity-90 transition-colors"
)
_BUTTON_GHOST = "bg-transparent hover:bg-[var(--hover)] px-4 py-2 rounded-[var(--radius)] cursor-pointer transition-colors"
_LINK_BUTTON = " inline-flex items-center justify-center no-underline"
_CODE_BLOCK = (
    "font-mono text-sm bg-[var(--surface)] border border-[var(--border)] rounded-[var(--radius)] "
    "p-5 overflow-x-auto whitespace-pre leading-relaxed"
)
_CARD = (
    "rounded-[var(--radius)] border border-[var(--border)] bg-[var(--surface)] p-6 space-y-3 "
    "shadow-[var(--card-shadow)]"
)
_ALERT = "border-l-4 border-{color}-500 bg-{color}-500/10 p-4 rounded"
_INPUT = "rounded-[var(--radius)] px-3.5 py-2.5"

ELEMENT_MAP: Dict[str, _Entry] = {
    "header": _entry(
        "header",
        "flex flex-col sm:flex-row items-center justify-between gap-4 py-4 mb-2 border-b border-[var(--border)]",
    ),
    "footer": _entry("footer", "mt-auto p-4 text-center text-sm text-[var(--muted)]"),
    "main": _entry("main", "flex-1 p-6 space-y-6"),
    "sidebar": _entry("aside", "w-64 min-h-screen border-r border-[var(--border)] p-5 flex flex-col gap-2"),
    "row": _entry(
        "div",
        "flex flex-wrap gap-4 items-center",
        modifiers={"center": _Override(class_name="flex flex-wrap gap-4 items-center justify-center")},
    ),
    "grid": _entry(
        "div",
        "grid grid-cols-1 md:grid-cols-2 lg:grid-cols-3 gap-4",
        modifiers={
            "responsive": _Override(class_name="grid grid-cols-1 md:grid-cols-2 lg:grid-cols-3 gap-4"),
            "1": _Override(class_name="grid grid-cols-1 gap-4 max-w-lg mx-auto"),
            "2": _Override(class_name="grid grid-cols-1 sm:grid-cols-2 gap-4"),
            "3": _Override(class_name="grid grid-cols-1 sm:grid-cols-2 lg:grid-cols-3 gap-4"),
            "4": _Override(class_name="grid grid-cols-1 sm:grid-cols-2 lg:grid-cols-4 gap-4"),
        },
    ),
    "card": _entry("div", _CARD),
    "btn": _entry(
        "button",
        "px-5 py-2.5 rounded-[var(--radius)] cursor-pointer transition-colors",
        modifiers={
            "primary": _Override(class_name=_BUTTON_PRIMARY),
            "secondary": _Override(class_name=_BUTTON_SECONDARY),
            "ghost": _Override(class_name=_BUTTON_GHOST),
            "icon": _Override(class_name="p-2 rounded-full hover:bg-[var(--hover)] cursor-pointer transition-colors"),
            "submit": _Override(
                class_name=(
                    "w-full bg-[var(--accent)] text-white px-5 py-2.5 rounded-[var(--radius)] font-medium "
                    "cursor-pointer hover:opacity-90 transition-colors"
                )
            ),
        },
    ),
    "input": _entry(
        "input",
        _INPUT,
        self_closing=True,
        modifiers={
            kind: _Override(input_type=kind) for kind in ("text", "number", "email", "password", "search")
        },
    ),
    "select": _entry(
        "select",
        "border border-[var(--border-input)] rounded-[var(--radius)] px-3 py-2 bg-transparent focus:outline-none",
    ),
    "h1": _entry(
        "h1",
        "text-3xl font-bold",
        modifiers={
            "hero": _Override(class_name="text-5xl md:text-6xl font-extrabold tracking-tight leading-tight"),
            "display": _Override(class_name="text-4xl md:text-5xl font-bold tracking-tight"),
        },
    ),
    "h2": _entry("h2", "text-2xl font-semibold"),
    "h3": _entry("h3", "text-xl font-semibold"),
    "p": _entry(
        "p",
        modifiers={
            "muted": _Override(class_name="text-[var(--muted)]"),
            "center": _Override(class_name="text-center"),
            "small": _Override(class_name="text-sm text-[var(--muted)]"),
            "lead": _Override(class_name="text-lg text-[var(--muted)] leading-relaxed max-w-2xl mx-auto text-center"),
        },
    ),
    "text": _entry("span"),
    "badge": _entry(
        "span",
        "inline-flex items-center rounded-full px-2.5 py-0.5 text-xs font-medium bg-[var(--accent)]/20 text-[var(--accent)]",
    ),
    "list": _entry("ul", "space-y-3"),
    "table": _entry("table", "w-full"),
    "tabs": _entry("div", "flex gap-2"),
    "toggle": _entry("input", self_closing=True, input_type="checkbox"),
    "check": _entry("input", "rounded", self_closing=True, input_type="checkbox"),
    "alert": _entry(
        "div",
        _ALERT.format(color="red"),
        modifiers={
            "error": _Override(class_name=_ALERT.format(color="red")),
            "success": _Override(class_name=_ALERT.format(color="green")),
            "warning": _Override(class_name=_ALERT.format(color="yellow")),
        },
    ),
    "spinner": _entry("div", "animate-spin h-6 w-6 border-2 border-current border-t-transparent rounded-full mx-auto"),
    "link": _entry(
        "a",
        "text-[var(--accent)] hover:underline cursor-pointer block text-center text-sm",
        modifiers={
            "primary": _Override(class_name=_BUTTON_PRIMARY.replace(" min-w-[80px]", "") + _LINK_BUTTON),
            "secondary": _Override(class_name=_BUTTON_SECONDARY + _LINK_BUTTON),
            "ghost": _Override(class_name=_BUTTON_GHOST + _LINK_BUTTON),
        },
    ),
    "form": _entry("form", "space-y-5"),
    "stat": _entry("div", "rounded-[var(--radius)] border border-[var(--border)] bg-[var(--surface)] p-5"),
    "progress": _entry("div", "w-full bg-[var(--hover)] rounded-full h-3 overflow-hidden"),
    "chart": _entry(
        "div",
        "w-full h-64 border border-[var(--border)] rounded-[var(--radius)] flex items-center justify-center text-[var(--muted)]",
    ),
    "search": _entry("input", _INPUT, self_closing=True, modifiers={"input": _Override(input_type="search")}),
    "pagination": _entry("div", "flex gap-2 items-center justify-center"),
    "img": _entry("img", "max-w-full rounded-[var(--radius)]", self_closing=True),
    "icon": _entry("span", "text-xl"),
    "logo": _entry("div", "text-xl font-bold"),
    "nav": _entry(
        "nav",
        "flex flex-wrap gap-3 sm:gap-4",
        modifiers={"vertical": _Override(class_name="flex flex-col gap-2")},
    ),
    "slot": _entry("div", "flex-1"),
    "plan": _entry("div", "rounded-[var(--radius)] border border-[var(--border)] p-6 flex flex-col items-center gap-4"),
    "section": _entry("section", "py-16 px-6 space-y-6"),
    "code": _entry(
        "code",
        "font-mono text-sm bg-[var(--surface)] px-1.5 py-0.5 rounded",
        modifiers={"block": _Override(tag="pre", class_name=_CODE_BLOCK)},
    ),
    "pre": _entry("pre", _CODE_BLOCK),
    "divider": _entry("hr", "border-t border-[var(--border)] my-8", self_closing=True),
    "details": _entry(
        "details",
        _CARD.replace(" p-6 space-y-3", "") + " space-y-3 [&:not([open])]:pb-0 [&[open]]:pb-5 px-6 group",
    ),
    "summary": _entry(
        "summary",
        "cursor-pointer select-none py-4 font-semibold text-lg list-none flex items-center justify-between marker:hidden",
    ),
}

UNKNOWN_ELEMENT = ElementMapping(tag="div")


def map_element(element: str, modifiers: Iterable[str] = ()) -> ElementMapping:
    """Resolve ``element`` plus modifiers to a mapping.

    Unknown elements never raise; they fall back to a bare ``<div>``.
    """
    entry = ELEMENT_MAP.get(element)
    if entry is None:
        logger.debug("Unknown UI element '%s' rendered as <div>", element)
        return UNKNOWN_ELEMENT

    mapping = entry.mapping
    for modifier in modifiers:
        override = entry.modifiers.get(modifier)
        if override is None:
            continue
        mapping = replace(
            mapping,
            tag=override.tag or mapping.tag,
            class_name=mapping.class_name if override.class_name is None else override.class_name,
            input_type=override.input_type or mapping.input_type,
        )
    return mapping


def is_known_element(element: str) -> bool:
    return element in ELEMENT_MAP


__all__ = ["ElementMapping", "ELEMENT_MAP", "UNKNOWN_ELEMENT", "map_element", "is_known_element"]
