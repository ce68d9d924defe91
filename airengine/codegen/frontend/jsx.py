"""Recursive ``@ui`` tree to JSX walker."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence

from airengine.ast import (
    ArrayType,
    BinaryNode,
    ElementNode,
    ScopedNode,
    TextNode,
    UINode,
    UnaryNode,
    ValueNode,
    unwrap_optional,
)
from airengine.ir.context import AUTH_PAGE_NAMES
from airengine.ir.routes import capitalize
from airengine.ir.ui_analysis import ResolvedBind, resolve_bind_chain

from .element_map import ElementMapping, map_element
from .helpers import (
    AUTH_FORM_ACTIONS,
    DELETE_ACTIONS,
    ICON_EMOJI,
    ROOT_SCOPE,
    Scope,
    action_operand,
    apply_pipe,
    button_label,
    class_attr,
    derive_empty_label,
    derive_label,
    enum_options,
    escape_attr,
    escape_text,
    extract_action_args,
    extract_action_name,
    extract_base_array,
    extract_data_source,
    find_enum_values,
    find_first_form_action,
    infer_model_fields,
    interpolate_text,
    js_string,
    node_to_string,
    resolve_dot_expr,
    resolve_pipe_expr,
    resolve_ref,
    resolve_ref_node,
    resolve_setter_from_ref,
    safe_action_name,
    setter,
    try_resolve_element,
    wrap_form_group,
)

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

logger = logging.getLogger(__name__)

ROOT_CLASSES = "min-h-screen bg-[var(--bg)] text-[var(--fg)]"
SUSPENSE_FALLBACK = (
    '<div className="flex items-center justify-center min-h-[50vh]">'
    '<div className="animate-spin rounded-full h-8 w-8 border-b-2 border-[var(--accent)]"></div></div>'
)
STAT_LABEL_CLASS = "text-xs font-semibold text-[var(--muted)] uppercase tracking-wider"
AUTH_ALERT = (
    '{authError && <div className="rounded-[var(--radius)] bg-red-500/10 border border-red-500/30 '
    'text-red-400 px-4 py-3 text-sm">{authError}</div>}'
)
ACTION_BUTTON_CLASS = (
    "bg-[var(--accent)] text-white px-4 py-2 rounded-[var(--radius)] cursor-pointer hover:opacity-90 transition-colors"
)
ITER_ROW_CLASS = "list-row"
SELECT_CLASS = "border border-[var(--border-input)] rounded-[var(--radius)] px-3 py-2 bg-transparent"
INLINE_ELEMENTS = frozenset({"p", "text", "span", "badge", "btn", "button", "a", "link", "icon", "logo"})
NUMERIC_HINTS = ("avg", "Avg", "rate", "Rate", "time", "Time", "duration", "Duration")

# CTA keywords -> candidate page names, first match wins
CTA_SYNONYMS = (
    (("portfolio", "work", "gallery", "projects"), ("gallery", "portfolio")),
    (
        ("book", "session", "schedule", "appointment", "touch", "reach", "inquire", "inquiry", "contact"),
        ("booking", "contact", "book"),
    ),
    (("package", "pricing", "price", "plan"), ("packages", "pricing")),
    (("faq", "question", "help"), ("faq",)),
)


def is_auth_page_name(name: str) -> bool:
    return name in AUTH_PAGE_NAMES


def component_name(page: str) -> str:
    return capitalize(page) + "Page"


@dataclass
class PageDeps:
    """Props a page component needs from the application shell."""

    state_props: List[str] = field(default_factory=list)
    setter_props: List[str] = field(default_factory=list)
    mutation_props: List[str] = field(default_factory=list)
    needs_nav: bool = False


def _add(items: List[str], name: str) -> None:
    if name not in items:
        items.append(name)


def page_dependencies(nodes: Sequence[UINode], ctx: "TranspileContext") -> PageDeps:
    deps = PageDeps(needs_nav=len(ctx.pages) > 1)
    state_names = {item.name for item in ctx.state}
    stack: List[UINode] = list(nodes)
    while stack:
        node = stack.pop(0)
        if isinstance(node, ElementNode):
            root = node.element.split(".")[0]
            if root in state_names:
                _add(deps.state_props, root)
            if ".set" in node.element:
                _add(deps.setter_props, root)
            stack.extend(node.children or [])
        elif isinstance(node, ScopedNode):
            stack.extend(node.children)
        elif isinstance(node, UnaryNode):
            if node.operator == "#":
                ref = extract_base_array(node.operand).split(".")[0]
                if ref in state_names:
                    _add(deps.state_props, ref)
            elif node.operator == "!":
                _add(deps.mutation_props, safe_action_name(extract_action_name(node.operand)))
            stack.append(node.operand)
        elif isinstance(node, BinaryNode):
            stack.extend([node.left, node.right])
    return deps


def collect_pages(nodes: Sequence[UINode]) -> List[ScopedNode]:
    """``@page`` nodes in source order, wherever they sit in the tree."""
    pages: List[ScopedNode] = []
    for node in nodes:
        if isinstance(node, ScopedNode):
            if node.scope == "page":
                pages.append(node)
        elif isinstance(node, BinaryNode):
            pages.extend(collect_pages([node.left, node.right]))
        elif isinstance(node, ElementNode) and node.children:
            pages.extend(collect_pages(node.children))
    return pages


class JSXGenerator:
    """Render UI nodes for one output file.

    ``page_components`` switches ``@page`` scopes from inline markup to
    references to the per-page component files; ``auth_gated`` makes those
    references pass the reduced auth-shell props instead of full state.
    """

    def __init__(self, ctx: "TranspileContext", *, page_components: bool = False, auth_gated: bool = False) -> None:
        self.ctx = ctx
        self.page_components = page_components
        self.auth_gated = auth_gated

    # ---- dispatch ----

    def render(self, node: UINode, scope: Scope = ROOT_SCOPE, ind: int = 0) -> str:
        pad = " " * ind
        if isinstance(node, TextNode):
            return f"{pad}{{{interpolate_text(node.text, self.ctx, scope)}}}"
        if isinstance(node, ValueNode):
            return f"{pad}{{{js_string(node.value)}}}"
        if isinstance(node, ElementNode):
            return self._element(node, scope, ind)
        if isinstance(node, ScopedNode):
            return self._scoped(node, scope, ind)
        if isinstance(node, UnaryNode):
            return self._unary(node, scope, ind)
        if isinstance(node, BinaryNode):
            return self._binary(node, scope, ind)
        return ""

    def render_all(self, nodes: Sequence[UINode], scope: Scope, ind: int) -> str:
        return "\n".join(part for part in (self.render(node, scope, ind) for node in nodes) if part)

    # ---- shared fragments ----

    def _select(self, state_var: str, options: Sequence[str], pad: str, class_name: str = SELECT_CLASS) -> str:
        lines = [
            f'{pad}<select className="{class_name}" value={{{state_var}}} '
            f"onChange={{(e) => {setter(state_var)}(e.target.value)}}>"
        ]
        lines.extend(f'{pad}  <option value="{option}">{capitalize(option)}</option>' for option in options)
        lines.append(f"{pad}</select>")
        return "\n".join(lines)

    def _tab_buttons(self, state_ref: str, options: Sequence[str], pad: str, setter_expr: Optional[str] = None) -> str:
        setter_expr = setter_expr or setter(state_ref)
        options_js = ", ".join(js_string(option) for option in options)
        active = f"${{{state_ref} === _tab ? 'bg-[var(--accent)] text-white' : 'bg-transparent text-[var(--muted)] hover:text-[var(--fg)]'}}"
        return "\n".join(
            [
                f'{pad}<div className="flex gap-1 p-1 bg-[var(--surface)] rounded-[var(--radius)]">',
                f"{pad}  {{[{options_js}].map((_tab) => (",
                f"{pad}    <button key={{_tab}} className={{`px-4 py-2 rounded-[calc(var(--radius)-4px)] "
                f"cursor-pointer transition-colors {active}`}} onClick={{() => {setter_expr}(_tab)}}>"
                "{_tab.replace(/_/g, ' ').replace(/\\b\\w/g, c => c.toUpperCase())}</button>",
                f"{pad}  ))}}",
                f"{pad}</div>",
            ]
        )

    def _stat(self, label: str, value: str, pad: str) -> str:
        mapping = map_element("stat")
        lines = [f'{pad}<div className="{mapping.class_name}">']
        if label is not None:
            lines.append(f'{pad}  <div className="{STAT_LABEL_CLASS}">{escape_text(label)}</div>')
        lines.append(f'{pad}  <div className="text-2xl font-bold">{value}</div>')
        lines.append(f"{pad}</div>")
        return "\n".join(lines)

    @staticmethod
    def _numeric_display(ref: str) -> str:
        if any(hint in ref for hint in NUMERIC_HINTS):
            return f"typeof ({ref}) === 'number' ? ({ref}).toFixed(1) : ({ref})"
        return ref

    def _wrap(self, mapping: ElementMapping, inner: str, pad: str, extra: str = "") -> str:
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}{extra}>\n{inner}\n{pad}</{mapping.tag}>"

    def _iteration_block(
        self,
        data_expr: str,
        iter_var: str,
        children: Sequence[UINode],
        scope: Scope,
        ind: int,
        row_class: str = ITER_ROW_CLASS,
    ) -> str:
        pad = " " * ind
        child_jsx = self.render_all(children, scope, ind + 4)
        has_card = any(isinstance(child, ElementNode) and child.element == "card" for child in children)
        row_attr = "" if has_card else f' className="{row_class}"'
        return "\n".join(
            [
                f"{pad}{{{data_expr}.length === 0 ? (",
                f'{pad}  <div className="empty-state">{derive_empty_label(data_expr)}</div>',
                f"{pad}) : {data_expr}.map(({iter_var}) => (",
                f"{pad}  <div key={{{iter_var}.id}}{row_attr}>",
                child_jsx,
                f"{pad}  </div>",
                f"{pad}))}}",
            ]
        )

    @staticmethod
    def _iter_parts(node: UnaryNode) -> tuple:
        if isinstance(node.operand, ElementNode):
            return node.operand.element, list(node.operand.children or [])
        return "item", []

    def _form_extras(self, action: Optional[str], pad: str) -> str:
        if action in AUTH_FORM_ACTIONS and self.ctx.has_auth_routes:
            return f"\n{pad}  {AUTH_ALERT}"
        return ""

    def _has_forgot_route(self) -> bool:
        return self.ctx.has_backend and any(
            route.method == "POST" and route.path.endswith(("/forgot-password", "/reset-password"))
            for route in self.ctx.expanded_routes
        )

    # ---- elements ----

    def _element(self, node: ElementNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        mapping = map_element(node.element)
        children = node.children or []

        if node.element == "tabs":
            return self._tabs(node, ind)
        if node.element == "pagination":
            button = "px-3 py-1 rounded border border-[var(--border-input)] hover:bg-[var(--hover)]"
            return "\n".join(
                [
                    f'{pad}<div className="flex gap-2 items-center justify-center mt-4">',
                    f'{pad}  <button className="{button}">&laquo; Prev</button>',
                    f'{pad}  <span className="px-3 py-1">1</span>',
                    f'{pad}  <button className="{button}">Next &raquo;</button>',
                    f"{pad}</div>",
                ]
            )
        if node.element == "spinner":
            return f'{pad}<div className="{mapping.class_name}"></div>'
        if node.element == "logo":
            return f'{pad}<div className="{mapping.class_name}">&#9889;</div>'
        if node.element == "table":
            return self._table(node, scope, ind)
        if node.element.endswith(".select"):
            state_var = node.element[: -len(".select")]
            options = enum_options(state_var, self.ctx)
            if options:
                return self._select(state_var, options, pad)

        if node.element == "grid" and children:
            return self._grid(children, scope, ind)
        if node.element == "plan" and children:
            return self._plan(node, ind)
        if node.element == "row" and len(children) > 1 and all(self._is_stat(child) for child in children):
            count = len(children)
            if count <= 2:
                grid = "grid grid-cols-2 gap-4"
            elif count <= 3:
                grid = "grid grid-cols-1 md:grid-cols-3 gap-4"
            else:
                grid = "grid grid-cols-1 md:grid-cols-2 lg:grid-cols-4 gap-4"
            return f'{pad}<div className="{grid}">\n{self.render_all(children, scope, ind + 2)}\n{pad}</div>'

        if children:
            if node.element == "form":
                return self._form(mapping, children, scope, ind)
            return self._wrap(mapping, self.render_all(children, scope, ind + 2), pad)

        if mapping.self_closing:
            type_attr = f' type="{mapping.input_type}"' if mapping.input_type else ""
            name_attr = f' name="{mapping.input_type or "text"}"' if scope.inside_form else ""
            return f'{pad}<{mapping.tag}{type_attr}{name_attr} className="{mapping.class_name}" />'
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}></{mapping.tag}>"

    @staticmethod
    def _is_stat(node: UINode) -> bool:
        resolved = try_resolve_element(node)
        if resolved is not None and resolved.element == "stat":
            return True
        if isinstance(node, BinaryNode) and node.operator == ">":
            left = try_resolve_element(node.left)
            return left is not None and left.element == "stat"
        return False

    def _grid(self, children: List[UINode], scope: Scope, ind: int) -> str:
        pad = " " * ind
        mapping = map_element("grid")
        first = children[0]
        if isinstance(first, BinaryNode) and first.operator == ":":
            resolved = resolve_bind_chain(first)
            if resolved and resolved.element == "grid" and isinstance(resolved.binding, ValueNode):
                mapping = map_element("grid", [str(resolved.binding.value)])
                children = children[1:]
        cells = []
        for child in children:
            if isinstance(child, BinaryNode) and child.operator == "+":
                inner = self.render(child, scope, ind + 4)
                cells.append(f'{pad}  <div className="flex flex-col gap-4">\n{inner}\n{pad}  </div>')
            else:
                cells.append(self.render(child, scope, ind + 2))
        return self._wrap(mapping, "\n".join(cell for cell in cells if cell), pad)

    def _form(self, mapping: ElementMapping, children: List[UINode], scope: Scope, ind: int) -> str:
        pad = " " * ind
        action = find_first_form_action(children)
        form_scope = scope.with_(inside_form=True, form_action=action)
        on_submit = f" onSubmit={{(e) => {{ e.preventDefault(); {action}(e); }}}}" if action else ""
        forgot = ""
        if action == "login" and self._has_forgot_route():
            forgot = (
                f'\n{pad}<div className="text-center mt-2"><button type="button" '
                'className="text-sm text-[var(--accent)] hover:underline" '
                "onClick={() => setCurrentPage('forgotPassword')}>Forgot Password?</button></div>"
            )
        body = self.render_all(children, form_scope, ind + 2)
        return (
            f"{pad}<form{class_attr(mapping.class_name)}{on_submit}>{self._form_extras(action, pad)}\n"
            f"{body}\n{pad}</form>{forgot}"
        )

    def _plan(self, node: ElementNode, ind: int) -> str:
        pad = " " * ind
        name = ""
        price = ""
        features: List[str] = []
        for child in node.children or []:
            if isinstance(child, TextNode):
                if child.text.startswith("["):
                    for item in child.text.strip("[]").split(","):
                        feature = re.sub(r"^feat:", "", item.strip()).replace("_", " ")
                        if feature:
                            features.append(feature)
                elif not name:
                    name = child.text
            elif isinstance(child, ValueNode):
                if isinstance(child.value, (int, float)) and not isinstance(child.value, bool):
                    price = "Free" if child.value == 0 else f"${child.value}/mo"
                else:
                    price = str(child.value)
            elif isinstance(child, ElementNode) and child.element == "custom":
                price = "Custom"

        lines = [f'{pad}<div className="{map_element("plan").class_name}">']
        if name:
            lines.append(f'{pad}  <div className="text-lg font-semibold">{escape_text(name)}</div>')
        if price:
            lines.append(f'{pad}  <div className="text-3xl font-bold">{escape_text(price)}</div>')
        if features:
            lines.append(f'{pad}  <ul className="space-y-1 text-sm">')
            lines.extend(f"{pad}    <li>&#10004; {escape_text(feature)}</li>" for feature in features)
            lines.append(f"{pad}  </ul>")
        lines.append(f"{pad}</div>")
        return "\n".join(lines)

    def _tabs(self, node: ElementNode, ind: int) -> str:
        pad = " " * ind
        if node.children:
            options = [node_to_string(child) for child in node.children]
            enum_field = next((item for item in self.ctx.state if item.type.kind == "enum"), None)
            if enum_field is not None:
                return self._tab_buttons(enum_field.name, options, pad)
        logger.debug("tabs element without an enum state field rendered as placeholder")
        return f'{pad}<div className="flex gap-1 p-1 bg-[var(--surface)] rounded-[var(--radius)]">{{/* tabs */}}</div>'

    def _table(self, node: ElementNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        columns: List[str] = []
        data_source = ""
        for child in node.children or []:
            if isinstance(child, BinaryNode) and child.operator == ":":
                resolved = resolve_bind_chain(child)
                if resolved is None:
                    continue
                if resolved.element == "cols" and (resolved.binding is not None or resolved.label):
                    raw = resolved.label or node_to_string(resolved.binding)
                    columns = [part.split(":")[0].strip() for part in raw.strip("[]").split(",")]
                    columns = [column for column in columns if column]
                elif resolved.element == "data" and resolved.binding is not None:
                    data_source = resolve_ref_node(resolved.binding, scope)
            elif isinstance(child, BinaryNode) and child.operator == "|":
                if isinstance(child.left, BinaryNode) and child.left.operator == ":":
                    resolved = resolve_bind_chain(child.left)
                    if resolved and resolved.element == "data" and resolved.binding is not None:
                        data_source = resolve_pipe_expr(child, self.ctx, scope)

        if not columns:
            columns = infer_model_fields(data_source, self.ctx) or ["Column 1", "Column 2", "Column 3"]

        header = "\n".join(f"{pad}      <th>{capitalize(column)}</th>" for column in columns)
        lines = [
            f'{pad}<table className="w-full">',
            f"{pad}  <thead>",
            f"{pad}    <tr>",
            header,
            f"{pad}    </tr>",
            f"{pad}  </thead>",
            f"{pad}  <tbody>",
        ]
        if data_source:
            lines.extend(
                [
                    f"{pad}    {{{data_source}.length === 0 ? (",
                    f'{pad}      <tr><td colSpan={{{len(columns)}}}><div className="empty-state">'
                    f"{derive_empty_label(data_source)}</div></td></tr>",
                    f"{pad}    ) : {data_source}.map((row) => (",
                    f"{pad}      <tr key={{row.id}}>",
                    "\n".join(f"{pad}          <td>{{row.{column}}}</td>" for column in columns),
                    f"{pad}      </tr>",
                    f"{pad}    ))}}",
                ]
            )
        else:
            lines.extend([f"{pad}    <tr>", "\n".join(f"{pad}      <td>--</td>" for _ in columns), f"{pad}    </tr>"])
        lines.extend([f"{pad}  </tbody>", f"{pad}</table>"])
        return "\n".join(lines)

    # ---- pages and sections ----

    def _scoped(self, node: ScopedNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        if node.scope == "page":
            if self.page_components:
                return self._page_ref(node, ind)
            if page_has_form(node):
                body = self.render_all(node.children, scope, ind + 6)
                return "\n".join(
                    [
                        f"{pad}{{currentPage === '{node.name}' && (",
                        f'{pad}  <div className="flex items-center justify-center min-h-screen p-4">',
                        f'{pad}    <div className="w-full max-w-md space-y-6 rounded-[var(--radius)] '
                        f'border border-[var(--border)] bg-[var(--surface)] p-8">',
                        f'{pad}      <h2 className="text-2xl font-bold text-center">{capitalize(node.name)}</h2>',
                        body,
                        f"{pad}    </div>",
                        f"{pad}  </div>",
                        f"{pad})}}",
                    ]
                )
            body = self.render_all(node.children, scope, ind + 4)
            return f"{pad}{{currentPage === '{node.name}' && (\n{pad}  <div>\n{body}\n{pad}  </div>\n{pad})}}"

        if node.name == "hero":
            classes = "py-28 px-6 space-y-8 text-center"
        elif node.name == "footer":
            classes = "py-8 px-6 space-y-4 border-t border-[var(--border)] text-center"
        elif node.name == "cta":
            classes = "py-20 px-6 space-y-6 text-center"
        elif self.ctx.has_pages:
            classes = "py-8 px-6 space-y-6"
        else:
            classes = "py-20 px-6 space-y-6 text-center"
        body = self.render_all(node.children, scope, ind + 2)
        return f'{pad}<section id="{node.name}" className="{classes}">\n{body}\n{pad}</section>'

    def page_prop_names(self, node: ScopedNode) -> List[str]:
        """Props a page component receives from ``App``."""
        ctx = self.ctx
        names: List[str] = []

        def add(name: str) -> None:
            if name not in names:
                names.append(name)

        deps = page_dependencies(node.children, ctx)
        if self.auth_gated:
            if is_auth_page_name(node.name):
                for mutation in deps.mutation_props:
                    if mutation in ctx.auth_mutations and mutation != "logout":
                        add(mutation)
                add("authError")
                add("setCurrentPage")
            else:
                for name in ("user", "logout", "currentPage", "setCurrentPage"):
                    add(name)
        else:
            body = JSXGenerator(ctx).render_all(node.children, ROOT_SCOPE, 0)
            for item in ctx.state:
                if re.search(rf"\b{item.name}\b", body):
                    add(item.name)
                if re.search(rf"\b{setter(item.name)}\b", body):
                    add(setter(item.name))
            for mutation in deps.mutation_props:
                add(mutation)
            if deps.needs_nav or re.search(r"\bsetCurrentPage\b", body):
                add("currentPage")
                add("setCurrentPage")
            if ctx.has_auth_routes and (is_auth_page_name(node.name) or "authError" in body):
                add("authError")
                add("setAuthError")
        if ctx.is_ecommerce and not is_auth_page_name(node.name):
            add("cart")
            add("addToCart")
        return names

    def _page_ref(self, node: ScopedNode, ind: int) -> str:
        if self.ctx.is_ecommerce and component_name(node.name) == "CartPage":
            return ""
        pad = " " * ind
        props = [f"{name}={{{name}}}" for name in self.page_prop_names(node)]
        props_str = (" " + " ".join(props)) if props else ""
        guard = "isAuthed && " if self.auth_gated and not is_auth_page_name(node.name) and node.name not in self.ctx.public_page_names else ""
        return f"{pad}{{{guard}currentPage === '{node.name}' && (\n{pad}  <{component_name(node.name)}{props_str} />\n{pad})}}"

    # ---- unary ----

    def _unary(self, node: UnaryNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        operator = node.operator
        if operator == "#":
            return f"{pad}{{{resolve_ref(node.operand, scope)}}}"
        if operator == "!":
            name = extract_action_name(node.operand)
            args = extract_action_args(node.operand, scope)
            type_attr = ' type="button"' if scope.inside_form else ""
            return (
                f'{pad}<button{type_attr} className="{ACTION_BUTTON_CLASS}" '
                f"onClick={{() => {safe_action_name(name)}({args})}}>{name}</button>"
            )
        if operator == "*":
            iter_var, children = self._iter_parts(node)
            data_expr = scope.iter_data or "items"
            return self._iteration_block(
                data_expr,
                iter_var,
                children,
                Scope(iter_var=iter_var, iter_data=data_expr, base_array=scope.base_array, inside_iter=True),
                ind,
            )
        if operator == "?":
            condition = resolve_ref(node.operand, scope)
            inner = self.render(node.operand, scope, ind + 2).strip()
            return f"{pad}{{{condition} && (\n{pad}  {inner}\n{pad})}}"
        if operator == "$":
            return f"{pad}{{'$' + ({resolve_ref(node.operand, scope)}).toFixed(2)}}"
        if operator in ("~", "^"):
            label = "async" if operator == "~" else "emit"
            logger.debug("%s operator '%s' emitted as placeholder", label, node_to_string(node.operand))
            return f"{pad}{{/* {label}: {node_to_string(node.operand)} */}}"
        return f"{pad}{{/* unknown unary: {operator} */}}"

    # ---- binary ----

    def _binary(self, node: BinaryNode, scope: Scope, ind: int) -> str:
        if node.operator == "+":
            return self._compose(node, scope, ind)
        if node.operator == ">":
            return self._flow(node, scope, ind)
        if node.operator == "|":
            return self._pipe(node, scope, ind)
        if node.operator == ":":
            return self._bind(node, scope, ind)
        if node.operator == ".":
            return f"{' ' * ind}{{{resolve_dot_expr(node, scope)}}}"
        return f"{' ' * ind}{{/* unknown binary: {node.operator} */}}"

    def _compose(self, node: BinaryNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        left = node.left
        if isinstance(left, BinaryNode) and left.operator == ">":
            header = try_resolve_element(left.left)
            if header is not None and header.element == "header":
                return self._header_with_right(left, node.right, scope, ind)

        def inline(side: UINode) -> bool:
            resolved = try_resolve_element(side)
            if resolved is not None and resolved.element in INLINE_ELEMENTS:
                return True
            return isinstance(side, TextNode) or (isinstance(side, UnaryNode) and side.operator == "!")

        if inline(node.left) and inline(node.right):
            body = f"{self.render(node.left, scope, ind + 2)}\n{self.render(node.right, scope, ind + 2)}"
            return f'{pad}<div className="flex items-center gap-2">\n{body}\n{pad}</div>'
        parts = [self.render(node.left, scope, ind), self.render(node.right, scope, ind)]
        return "\n".join(part for part in parts if part)

    def _header_with_right(self, header_flow: BinaryNode, right: UINode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        mapping = map_element("header")
        right_resolved = try_resolve_element(right)
        is_badge = right_resolved is not None and right_resolved.element == "badge"
        inner_ind = ind + 4 if is_badge else ind + 2
        title_source = header_flow.right
        if isinstance(title_source, TextNode):
            title = f'{" " * inner_ind}<h1 className="text-xl font-bold">{escape_text(title_source.text)}</h1>'
        else:
            title = self.render(title_source, scope, inner_ind)
        right_jsx = self.render(right, scope, inner_ind)
        if is_badge:
            inner = f'{pad}  <div className="flex items-center gap-3">\n{title}\n{right_jsx}\n{pad}  </div>'
            return self._wrap(mapping, inner, pad)
        return self._wrap(mapping, f"{title}\n{right_jsx}", pad)

    def _flow(self, node: BinaryNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        left, right = node.left, node.right

        if isinstance(left, UnaryNode) and left.operator == "?":
            condition = resolve_ref(left.operand, scope)
            return f"{pad}{{{condition} && (\n{self.render(right, scope, ind + 2)}\n{pad})}}"

        if isinstance(right, UnaryNode) and right.operator == "!":
            return self._element_with_action(left, right, scope, ind)

        if isinstance(right, UnaryNode) and right.operator == "*":
            return self._container_with_iteration(left, right, scope, ind)

        resolved = try_resolve_element(left)

        if isinstance(right, TextNode) and resolved is not None:
            return self._flow_text(left, resolved, right.text, scope, ind)

        if isinstance(right, UnaryNode) and right.operator == "$" and resolved is not None:
            inner = right.operand
            ref = resolve_ref(inner.operand if isinstance(inner, UnaryNode) and inner.operator == "#" else inner, scope)
            label = self._bind_label(left)
            if resolved.element == "stat" and label:
                return self._stat(label, f"{{'$' + ({ref}).toFixed(2)}}", pad)
            return f"{pad}<span>{{'$' + {ref}}}</span>"

        if isinstance(right, UnaryNode) and right.operator == "#" and resolved is not None:
            ref = resolve_ref(right.operand, scope)
            label = self._bind_label(left)
            if resolved.element == "stat" and label:
                return self._stat(label, f"{{{self._numeric_display(ref)}}}", pad)
            return self._flow_bound(resolved, ref, scope, ind)

        if isinstance(right, BinaryNode) and right.operator == "|" and resolved is not None:
            expr = resolve_pipe_expr(right, self.ctx, scope)
            if resolved.element == "stat":
                return self._stat(self._bind_label(left) or "", f"{{{expr}}}", pad)
            mapping = map_element(resolved.element, resolved.modifiers)
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{{{expr}}}</{mapping.tag}>"

        if isinstance(right, ElementNode) and right.element.endswith(".select"):
            state_var = right.element[: -len(".select")]
            return self._select(state_var, enum_options(state_var, self.ctx), pad)

        if isinstance(right, ElementNode) and ".set" in right.element:
            return self._setter_element(resolved, right, ind)

        if isinstance(left, BinaryNode) and left.operator == ">":
            return self._flow_chain(node, scope, ind)

        if resolved is not None:
            mapping = map_element(resolved.element, resolved.modifiers)
            child_scope = scope.with_(inside_nav=True) if resolved.element == "nav" and self.ctx.has_pages else scope
            return self._wrap(mapping, self.render(right, child_scope, ind + 2), pad)

        return f"{self.render(left, scope, ind)}\n{self.render(right, scope, ind + 2)}"

    @staticmethod
    def _bind_label(node: UINode) -> Optional[str]:
        if isinstance(node, BinaryNode) and node.operator == ":":
            resolved = resolve_bind_chain(node)
            if resolved is not None:
                return resolved.label
        return None

    def _flow_text(self, left: UINode, resolved: ResolvedBind, text: str, scope: Scope, ind: int) -> str:
        pad = " " * ind
        mapping = map_element(resolved.element, resolved.modifiers)
        is_button = resolved.element in ("btn", "button")

        if scope.inside_nav and is_button:
            page = text.lower()
            return f"{pad}{self._nav_button(page, escape_text(text))}"
        if is_button and self.ctx.has_pages:
            target = match_cta_to_page(text, self.ctx)
            if target:
                return (
                    f"{pad}<button{class_attr(mapping.class_name)} "
                    f"onClick={{() => setCurrentPage('{target}')}}>{escape_text(text)}</button>"
                )
        if mapping.tag == "img":
            alt = resolved.modifiers[0] if resolved.modifiers else "image"
            return f'{pad}<img src="{escape_attr(text)}"{class_attr(mapping.class_name)} alt="{escape_attr(alt)}" />'
        if mapping.tag == "a":
            href = self._bind_label(left) or "#"
            if href.startswith("/") and self.ctx.has_pages:
                return (
                    f'{pad}<a href="#"{class_attr(mapping.class_name)} '
                    f"onClick={{(e) => {{ e.preventDefault(); setCurrentPage('{href[1:]}'); }}}}>{escape_text(text)}</a>"
                )
            external = ' target="_blank" rel="noopener noreferrer"' if href.startswith("http") or href.endswith(".html") else ""
            return f'{pad}<a href="{escape_attr(href)}"{class_attr(mapping.class_name)}{external}>{escape_text(text)}</a>'

        content = f"{{{interpolate_text(text, self.ctx, scope)}}}" if "#" in text else escape_text(text)
        if resolved.element == "header" and any(
            isinstance(child, ElementNode) and re.fullmatch(r"h[1-6]", child.element) for child in resolved.children or []
        ):
            return self._wrap(mapping, f'{pad}  <h1 className="text-xl font-bold">{content}</h1>', pad)
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{content}</{mapping.tag}>"

    @staticmethod
    def _nav_button(page: str, label: str) -> str:
        active = f"${{currentPage === '{page}' ? 'bg-[var(--accent)] text-white' : 'hover:bg-[var(--hover)]'}}"
        return (
            f"<button className={{`w-full text-left px-3 py-2 rounded-[var(--radius)] cursor-pointer "
            f"transition-colors {active}`}} onClick={{() => setCurrentPage('{page}')}}>{label}</button>"
        )

    def _pipe(self, node: BinaryNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        if isinstance(node.left, BinaryNode) and node.left.operator == ":":
            resolved = resolve_bind_chain(node.left)
            if resolved is not None:
                mapping = map_element(resolved.element, resolved.modifiers)
                value = resolved.binding or resolved.action or node.left
                expr = resolve_pipe_expr(BinaryNode("|", value, node.right), self.ctx, scope)
                if resolved.element == "stat":
                    return self._stat(resolved.label or "", f"{{{expr}}}", pad)
                return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{{{expr}}}</{mapping.tag}>"
        return f"{pad}{{{resolve_pipe_expr(node, self.ctx, scope)}}}"

    # ---- bind ----

    def _bind(self, node: BinaryNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        resolved = resolve_bind_chain(node)
        if resolved is None:
            logger.debug("Unresolvable bind chain '%s'", node_to_string(node))
            return f"{pad}{{/* unresolved bind */}}"

        mapping = map_element(resolved.element, resolved.modifiers)
        children = resolved.children or []

        if resolved.element == "progress" and children:
            return self._progress(resolved, scope, ind)

        if resolved.action is not None:
            operand = action_operand(resolved.action)
            name = extract_action_name(operand)
            args = extract_action_args(operand, scope)
            call = safe_action_name(name)
            if mapping.tag == "button":
                if name in DELETE_ACTIONS and scope.inside_iter:
                    button_class = map_element("btn", ["icon"]).class_name
                elif resolved.element == "btn" and not resolved.modifiers:
                    button_class = map_element("btn", ["ghost"]).class_name
                else:
                    button_class = mapping.class_name
                if scope.inside_form and scope.form_action == name:
                    return f'{pad}<button type="submit" className="{button_class}">{button_label(resolved)}</button>'
                type_attr = ' type="button"' if scope.inside_form else ""
                return (
                    f'{pad}<button{type_attr} className="{button_class}" '
                    f"onClick={{() => {call}({args})}}>{button_label(resolved)}</button>"
                )
            return f'{pad}<{mapping.tag} className="{mapping.class_name}" onClick={{() => {call}({args})}} />'

        if resolved.binding is not None:
            return self._bound_element(resolved, mapping, scope, ind)

        if resolved.label is not None:
            if resolved.element == "stat":
                return self._stat(resolved.label, "--", pad)
            return f'{pad}<{mapping.tag} className="{mapping.class_name}">{escape_text(resolved.label)}</{mapping.tag}>'

        if resolved.element == "nav" and children and self.ctx.has_pages:
            items = self._nav_items(children)
            if items:
                body = "\n".join(f"{pad}  {self._nav_button(page, escape_text(label))}" for label, page in items)
                return self._wrap(mapping, body, pad)

        if resolved.element == "icon":
            name = resolved.modifiers[0] if resolved.modifiers else ""
            return f'{pad}<span className="{mapping.class_name}">{ICON_EMOJI.get(name, name)}</span>'

        if resolved.element == "chart":
            kind = capitalize(resolved.modifiers[0] if resolved.modifiers else "chart")
            return "\n".join(
                [
                    f'{pad}<div className="{mapping.class_name}">',
                    f'{pad}  <div className="flex flex-col items-center gap-2 text-[var(--muted)]">',
                    f'{pad}    <svg className="w-8 h-8 opacity-40" fill="none" viewBox="0 0 24 24" stroke="currentColor" strokeWidth={{1}}>',
                    f'{pad}      <path strokeLinecap="round" strokeLinejoin="round" d="M9 19v-6a2 2 0 00-2-2H5a2 2 0 00-2 2v6a2 2 0 002 2h2a2 2 0 002-2zm0 0V9a2 2 0 012-2h2a2 2 0 012 2v10m-6 0a2 2 0 002 2h2a2 2 0 002-2m0 0V5a2 2 0 012-2h2a2 2 0 012 2v14a2 2 0 01-2 2h-2a2 2 0 01-2-2z" />',
                    f"{pad}    </svg>",
                    f'{pad}    <span className="text-sm">{kind} chart</span>',
                    f"{pad}  </div>",
                    f"{pad}</div>",
                ]
            )

        if mapping.tag == "pre" and children:
            code = "\\n".join(node_to_string(child) for child in children)
            code = code.replace("`", "\\`").replace("$", "\\$")
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{{`{code}`}}</{mapping.tag}>"

        if children:
            return self._wrap(mapping, self.render_all(children, scope, ind + 2), pad)

        if mapping.self_closing:
            type_attr = f' type="{mapping.input_type}"' if mapping.input_type else ""
            field_name = resolved.modifiers[0] if resolved.modifiers else (mapping.input_type or resolved.element)
            name_attr = f' name="{field_name}"' if scope.inside_form else ""
            placeholder = ""
            if resolved.element == "search":
                placeholder = ' placeholder="Search..."'
            elif resolved.element == "input" and mapping.input_type:
                label = capitalize(resolved.modifiers[0]) if resolved.modifiers else capitalize(mapping.input_type)
                placeholder = f' placeholder="{escape_attr("Enter value" if label == "Text" else label)}..."'
            return f"{pad}<{mapping.tag}{type_attr}{name_attr}{class_attr(mapping.class_name)}{placeholder} />"
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}></{mapping.tag}>"

    @staticmethod
    def _nav_items(children: Sequence[UINode]) -> List[tuple]:
        items: List[tuple] = []
        seen = set()
        for child in children:
            label = page = None
            if isinstance(child, BinaryNode) and child.operator == ">" and isinstance(child.right, TextNode):
                label, page = child.right.text, child.right.text.lower()
            else:
                resolved = try_resolve_element(child)
                if resolved is not None:
                    label, page = capitalize(resolved.element), resolved.element
            if page and page not in seen:
                seen.add(page)
                items.append((label, page))
        return items

    def _progress(self, resolved: ResolvedBind, scope: Scope, ind: int) -> str:
        pad = " " * ind
        value_expr, max_expr = "0", "100"
        for child in resolved.children or []:
            if isinstance(child, BinaryNode) and child.operator == "|":
                if isinstance(child.left, BinaryNode) and child.left.operator == ":":
                    bound = resolve_bind_chain(child.left)
                    if bound and bound.element == "value" and bound.binding is not None:
                        value_expr = apply_pipe(resolve_ref_node(bound.binding, scope), child.right, self.ctx)
            elif isinstance(child, BinaryNode) and child.operator == ":":
                bound = resolve_bind_chain(child)
                if bound and bound.binding is not None:
                    if bound.element == "value":
                        value_expr = resolve_ref_node(bound.binding, scope)
                    elif bound.element == "max":
                        max_expr = resolve_ref_node(bound.binding, scope)
        width = f"`${{Math.min(100, ({value_expr}) / ({max_expr}) * 100)}}%`"
        return "\n".join(
            [
                f'{pad}<div className="{map_element("progress").class_name}">',
                f'{pad}  <div className="h-full bg-[var(--accent)] rounded-full transition-all" '
                f"style={{{{ width: {width} }}}}></div>",
                f"{pad}</div>",
            ]
        )

    def _input(self, resolved: ResolvedBind, mapping: ElementMapping, ref: str, scope: Scope, pad: str) -> str:
        plain = ref.replace("?.", ".")
        field_name = plain.split(".")[-1] if "." in plain else (resolved.modifiers[0] if resolved.modifiers else resolved.element)
        type_attr = f' type="{mapping.input_type}"' if mapping.input_type else ""
        name_attr = f' name="{field_name}"' if scope.inside_form else ""
        if resolved.element == "search" or field_name in ("search", "input") or mapping.input_type == "search":
            placeholder = "Search..."
        elif field_name in ("password", "email"):
            placeholder = f"Enter {field_name}..."
        else:
            placeholder = f"{capitalize(field_name)}..."
        value = f"{ref} ?? ''" if ref != plain else ref
        if scope.inside_form and scope.form_action in AUTH_FORM_ACTIONS:
            jsx = f'{pad}<input{type_attr}{name_attr} className="{mapping.class_name}" placeholder="{placeholder}" />'
        else:
            jsx = (
                f'{pad}<input{type_attr}{name_attr} className="{mapping.class_name}" value={{{value}}} '
                f'onChange={{(e) => {resolve_setter_from_ref(plain)}(e.target.value)}} placeholder="{placeholder}" />'
            )
        if scope.inside_form:
            return wrap_form_group(jsx, derive_label(field_name), pad)
        return jsx

    def _bound_element(self, resolved: ResolvedBind, mapping: ElementMapping, scope: Scope, ind: int) -> str:
        pad = " " * ind
        binding = resolved.binding
        operand = binding.operand if isinstance(binding, UnaryNode) else binding

        if resolved.element == "check" or mapping.input_type == "checkbox":
            ref = resolve_ref(operand, scope)
            if scope.inside_iter and scope.iter_var:
                array = scope.base_array or "items"
                flag = ref.split(".")[-1] if "." in ref else "done"
                return (
                    f'{pad}<input type="checkbox" checked={{{ref}}} onChange={{() => {setter(array)}'
                    f"(prev => prev.map(_i => _i.id === {scope.iter_var}.id ? {{ ..._i, {flag}: !_i.{flag} }} : _i))}} />"
                )
            return f'{pad}<input type="checkbox" checked={{{ref}}} onChange={{() => {resolve_setter_from_ref(ref)}(!{ref})}} />'

        if mapping.tag == "input" or resolved.element == "search":
            return self._input(resolved, mapping, resolve_ref(operand, scope), scope, pad)

        if resolved.element == "select":
            ref = resolve_ref(operand, scope)
            plain = ref.replace("?.", ".")
            options = find_enum_values(ref, resolved.modifiers, self.ctx)
            if not options and resolved.children:
                options = [node_to_string(child) for child in resolved.children]
            if not options and isinstance(operand, ElementNode) and operand.children:
                options = [node_to_string(child) for child in operand.children]
            value = f"{ref} ?? ''" if ref != plain else ref
            lines = [
                f'{pad}<select className="{mapping.class_name}" value={{{value}}} '
                f"onChange={{(e) => {resolve_setter_from_ref(plain)}(e.target.value)}}>"
            ]
            lines.extend(f'{pad}    <option value="{option}">{capitalize(option)}</option>' for option in options)
            lines.append(f"{pad}</select>")
            return "\n".join(lines)

        if resolved.element == "badge":
            return f'{pad}<span className="{mapping.class_name}">{{{resolve_ref_node(binding, scope)}}}</span>'

        if resolved.element in ("text", "p"):
            extra = " flex-1" if scope.inside_iter else ""
            class_name = (mapping.class_name + extra).strip()
            if isinstance(binding, UnaryNode) and binding.operator == "$":
                value = f"'$' + {resolve_ref(binding.operand, scope)}"
            else:
                value = resolve_ref_node(binding, scope)
            return f"{pad}<{mapping.tag}{class_attr(class_name)}>{{{value}}}</{mapping.tag}>"

        if resolved.element == "stat" and resolved.label is not None:
            return self._stat(resolved.label, f"{{{self._numeric_display(resolve_ref_node(binding, scope))}}}", pad)

        if resolved.element == "img":
            source = node_to_string(binding)
            alt = resolved.modifiers[0] if resolved.modifiers else "image"
            return f'{pad}<img src="{escape_attr(source)}" alt="{escape_attr(alt)}" className="{mapping.class_name}" />'

        if resolved.element == "link":
            href = node_to_string(binding) if isinstance(binding, (TextNode, ElementNode)) else "#"
            external = ' target="_blank" rel="noopener noreferrer"' if href.startswith("http") else ""
            target = "#" + href if href.startswith("/") else href
            return f'{pad}<a href="{escape_attr(target)}" className="{mapping.class_name}"{external}>{escape_text(href)}</a>'

        ref = resolve_ref_node(binding, scope)
        if mapping.self_closing:
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)} value={{{ref}}} />"
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{{{ref}}}</{mapping.tag}>"

    # ---- flow helpers ----

    def _element_with_action(self, element: UINode, action: UnaryNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        name = extract_action_name(action.operand)
        call = safe_action_name(name)
        args = extract_action_args(action.operand, scope)
        resolved = try_resolve_element(element)
        if resolved is None:
            return f"{pad}<button onClick={{() => {call}({args})}}>{name}</button>"

        mapping = map_element(resolved.element, resolved.modifiers)
        children = resolved.children or []

        if resolved.element == "form":
            form_scope = scope.with_(inside_form=True, form_action=name)
            body = self.render_all(children, form_scope, ind + 2)
            return (
                f'{pad}<form className="{mapping.class_name}" onSubmit={{(e) => {{ e.preventDefault(); {call}(e); }}}}>'
                f"{self._form_extras(name, pad)}\n{body}\n{pad}</form>"
            )

        if mapping.tag == "button":
            label = "".join(escape_text(child.text) for child in children if isinstance(child, TextNode)) or name
            if scope.inside_form and scope.form_action == name:
                return f'{pad}<button type="submit" className="{mapping.class_name}">{label}</button>'
            type_attr = ' type="button"' if scope.inside_form else ""
            return f'{pad}<button{type_attr} className="{mapping.class_name}" onClick={{() => {call}({args})}}>{label}</button>'

        if mapping.tag == "input":
            type_attr = f' type="{mapping.input_type}"' if mapping.input_type else ""
            key_args = args or "e.target.value"
            button_args = args.replace("e.target.value", "_inp.value") if args else "_inp.value"
            return "\n".join(
                [
                    f'{pad}<div className="flex gap-2">',
                    f'{pad}  <input{type_attr} className="{mapping.class_name} flex-1" placeholder="Add..." '
                    f"onKeyDown={{(e) => {{ if (e.key === 'Enter' && e.target.value) {{ {call}({key_args}); e.target.value = ''; }} }}}} />",
                    f'{pad}  <button className="bg-[var(--accent)] text-white px-4 py-2.5 rounded-[var(--radius)] cursor-pointer '
                    f'hover:opacity-90 transition-colors" onClick={{(e) => {{ const _inp = e.currentTarget.previousElementSibling; '
                    f"if (_inp?.value) {{ {call}({button_args}); _inp.value = ''; }} }}}}>{capitalize(name)}</button>",
                    f"{pad}</div>",
                ]
            )

        body = ("\n" + self.render_all(children, scope, ind + 2) + "\n" + pad) if children else ""
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)} onClick={{() => {call}({args})}}>{body}</{mapping.tag}>"

    def _container_with_iteration(self, left: UINode, iteration: UnaryNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        data_source = extract_data_source(left, scope, self.ctx)
        container = try_resolve_element(left.left if isinstance(left, BinaryNode) and left.operator == ">" else left)
        mapping = map_element(container.element, container.modifiers) if container else ElementMapping("div")
        iter_var, children = self._iter_parts(iteration)
        iter_scope = Scope(
            iter_var=iter_var,
            iter_data=data_source,
            base_array=extract_base_array(left),
            inside_iter=True,
            inside_form=scope.inside_form,
            form_action=scope.form_action,
        )
        body = self._iteration_block(data_source, iter_var, children, iter_scope, ind + 2)
        return self._wrap(mapping, body, pad)

    def _flow_bound(self, resolved: ResolvedBind, state_ref: str, scope: Scope, ind: int) -> str:
        pad = " " * ind
        mapping = map_element(resolved.element, resolved.modifiers)
        plain = state_ref.replace("?.", ".")
        setter_expr = resolve_setter_from_ref(plain)

        if mapping.tag == "input" or resolved.element == "search":
            return self._input(resolved, mapping, state_ref, scope, pad)
        if resolved.element == "select":
            options = find_enum_values(state_ref, resolved.modifiers, self.ctx)
            lines = [
                f'{pad}<select className="{mapping.class_name}" value={{{state_ref}}} '
                f"onChange={{(e) => {setter_expr}(e.target.value)}}>"
            ]
            lines.extend(f'{pad}  <option value="{option}">{capitalize(option)}</option>' for option in options)
            lines.append(f"{pad}</select>")
            return "\n".join(lines)
        if resolved.element == "tabs":
            options = find_enum_values(state_ref, resolved.modifiers, self.ctx)
            if options:
                return self._tab_buttons(state_ref, options, pad, setter_expr)
        if resolved.element == "stat":
            return self._stat(None, f"{{{state_ref}}}", pad)
        if mapping.self_closing:
            return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)} value={{{state_ref}}} />"
        return f"{pad}<{mapping.tag}{class_attr(mapping.class_name)}>{{{state_ref}}}</{mapping.tag}>"

    def _setter_element(self, resolved: Optional[ResolvedBind], right: ElementNode, ind: int) -> str:
        pad = " " * ind
        state_var = right.element.split(".set")[0]
        options = [node_to_string(child) for child in right.children or []]
        if resolved is not None and resolved.element == "select":
            return self._select(state_var, options, pad)
        return self._tab_buttons(state_var, options, pad)

    def _flow_chain(self, node: BinaryNode, scope: Scope, ind: int) -> str:
        pad = " " * ind
        parts: List[UINode] = []
        current: UINode = node
        while isinstance(current, BinaryNode) and current.operator == ">":
            parts.append(current.right)
            current = current.left
        parts.append(current)
        parts.reverse()

        container = try_resolve_element(parts[0])
        mapping = map_element(container.element, container.modifiers) if container else ElementMapping("div")

        data_expr: Optional[str] = None
        base_array = "items"
        for part in parts[1:]:
            if isinstance(part, BinaryNode) and part.operator == "|":
                data_expr = resolve_pipe_expr(part, self.ctx, scope)
            elif isinstance(part, (ElementNode, UnaryNode)):
                name = extract_base_array(part)
                field = self.ctx.state_field(name)
                if field is not None and isinstance(unwrap_optional(field.type), ArrayType):
                    data_expr = data_expr or field.name
                    base_array = field.name

        iteration = next((part for part in parts if isinstance(part, UnaryNode) and part.operator == "*"), None)
        if iteration is not None:
            iter_var, children = self._iter_parts(iteration)
            data = data_expr or base_array
            iter_scope = scope.with_(iter_var=iter_var, iter_data=data, base_array=base_array, inside_iter=True)
            row_class = "flex gap-3 items-center bg-[var(--surface)] border border-[var(--border)] rounded-[var(--radius)] px-4 py-3"
            body = self._iteration_block(data, iter_var, children, iter_scope, ind + 2, row_class)
            return self._wrap(mapping, body, pad)

        return self._wrap(mapping, self.render_all(parts[1:], scope, ind + 2), pad)

    # ---- root ----

    def render_root(self, use_lazy: bool = False) -> List[str]:
        """Top-level JSX returned from ``App``, one line per entry."""
        ctx = self.ctx
        pages = collect_pages(ctx.ui_nodes)

        if self.page_components and (self.auth_gated or ctx.needs_layout):
            return self._render_page_shell(pages, use_lazy)

        max_width = ctx.style.max_width
        if max_width:
            wrapper = f"max-w-[{max_width}] mx-auto" if ctx.has_pages else f"max-w-[{max_width}] mx-auto px-4 sm:px-6 space-y-6"
        elif ctx.has_sidebar:
            wrapper = ""
        else:
            wrapper = "max-w-[900px] mx-auto px-4 sm:px-6 py-8 space-y-6"

        lines = [f'<div className="{ROOT_CLASSES}">']
        if ctx.has_sidebar:
            lines.append('  <div className="flex min-h-screen">')
        elif wrapper:
            lines.append(f'  <div className="{wrapper}">')
        content_ind = 4 if (ctx.has_sidebar or wrapper) else 2

        if use_lazy and ctx.has_pages:
            lines.append(f"{' ' * content_ind}<Suspense fallback={{{SUSPENSE_FALLBACK}}}>")
            lines.extend(part for part in (self.render(node, ROOT_SCOPE, content_ind + 2) for node in ctx.ui_nodes) if part)
            lines.append(f"{' ' * content_ind}</Suspense>")
        else:
            lines.extend(part for part in (self.render(node, ROOT_SCOPE, content_ind) for node in ctx.ui_nodes) if part)
        if self.page_components and ctx.is_ecommerce:
            lines.append(self._cart_ref(content_ind))

        if ctx.has_sidebar or wrapper:
            lines.append("  </div>")
        lines.append("</div>")
        return lines

    def _render_page_shell(self, pages: List[ScopedNode], use_lazy: bool) -> List[str]:
        ctx = self.ctx
        lines = [f'<div className="{ROOT_CLASSES}">']
        inner_ind = 2
        layout = ctx.needs_layout and not self.auth_gated
        if layout:
            props = "currentPage={currentPage} setCurrentPage={setCurrentPage}"
            if has_user_state(ctx):
                props += " user={user}"
            if "logout" in ctx.analysis.mutation_names():
                props += " logout={logout}"
            lines.append(f"  <Layout {props}>")
            inner_ind = 4
        if use_lazy:
            lines.append(f"{' ' * inner_ind}<Suspense fallback={{{SUSPENSE_FALLBACK}}}>")
            inner_ind += 2
        lines.extend(ref for ref in (self._page_ref(page, inner_ind) for page in pages) if ref)
        if ctx.is_ecommerce:
            lines.append(self._cart_ref(inner_ind))
        if use_lazy:
            lines.append(f"{' ' * (inner_ind - 2)}</Suspense>")
        if layout:
            lines.append("  </Layout>")
        lines.append("</div>")
        return lines

    def _cart_ref(self, ind: int) -> str:
        pad = " " * ind
        props = "cart={cart} removeFromCart={removeFromCart} updateCartQty={updateCartQty} clearCart={clearCart} setCurrentPage={setCurrentPage}"
        return f"{pad}{{currentPage === 'cart' && (\n{pad}  <CartPage {props} />\n{pad})}}"


def has_user_state(ctx: "TranspileContext") -> bool:
    """Whether App.jsx holds a ``user`` value, declared or implied by auth."""
    return ctx.state_field("user") is not None or bool(ctx.auth_mutations) or ctx.has_auth_routes


def page_has_form(node: ScopedNode) -> bool:
    for child in node.children:
        target = child.left if isinstance(child, BinaryNode) and child.operator == ">" else child
        resolved = try_resolve_element(target)
        if resolved is not None and resolved.element == "form":
            return True
    return False


def match_cta_to_page(text: str, ctx: "TranspileContext") -> Optional[str]:
    """Pick the page a call-to-action button most plausibly navigates to."""
    pages = ctx.pages
    if not pages:
        return None
    public = ctx.public_page_names
    lower = text.lower()
    if lower in pages:
        return lower
    for page in public:
        if page in lower:
            return page
    for keywords, candidates in CTA_SYNONYMS:
        if any(keyword in lower for keyword in keywords):
            for candidate in candidates:
                if candidate in public:
                    return candidate
            for candidate in candidates:
                if candidate in pages:
                    return candidate
    for page in pages:
        if page in lower:
            return page
    return None


__all__ = [
    "JSXGenerator",
    "PageDeps",
    "page_dependencies",
    "collect_pages",
    "component_name",
    "is_auth_page_name",
    "page_has_form",
    "has_user_state",
    "match_cta_to_page",
]
