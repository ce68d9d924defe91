"""Expression and naming helpers shared by the React generators."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Iterable, List, Optional

from airengine.ast import (
    AirType,
    ArrayType,
    BinaryNode,
    ElementNode,
    EnumType,
    Field,
    ObjectType,
    OptionalType,
    ScopedNode,
    TextNode,
    UINode,
    UnaryNode,
    ValueNode,
)
from airengine.ir.routes import capitalize, pluralize
from airengine.ir.ui_analysis import ResolvedBind, iter_nodes, resolve_bind_chain

if TYPE_CHECKING:
    from airengine.ir.context import TranspileContext

ICON_EMOJI = {
    "zap": "&#9889;",
    "shield": "&#128737;",
    "users": "&#128101;",
    "star": "&#11088;",
    "heart": "&#10084;",
    "check": "&#10004;",
    "x": "&#10006;",
    "search": "&#128269;",
    "settings": "&#9881;",
    "mail": "&#9993;",
    "lock": "&#128274;",
    "globe": "&#127760;",
    "home": "&#127968;",
    "bell": "&#128276;",
    "edit": "&#9998;",
    "trash": "&#128465;",
    "plus": "&#43;",
    "minus": "&#8722;",
    "arrow": "&#10140;",
    "clock": "&#128339;",
    "calendar": "&#128197;",
}

AUTH_FORM_ACTIONS = frozenset({"login", "register", "signup"})
DELETE_ACTIONS = frozenset({"del", "delete", "remove"})

_TEXT_REF = re.compile(r"#(\w+(?:\.\w+)*(?:\|!?\w+(?:\.\w+)*)*)")
_ARG_REF = re.compile(r"#(\w+(?:\.\w+)*)")
_TEXT_ESCAPES = {"{": "&#123;", "}": "&#125;", "<": "&lt;", ">": "&gt;"}


@dataclass(frozen=True)
class Scope:
    """Where a node sits while JSX is being generated."""

    iter_var: Optional[str] = None
    iter_data: Optional[str] = None
    base_array: Optional[str] = None
    inside_iter: bool = False
    inside_form: bool = False
    form_action: Optional[str] = None
    inside_nav: bool = False

    def with_(self, **changes) -> "Scope":
        return replace(self, **changes)


ROOT_SCOPE = Scope()


def setter(name: str) -> str:
    return "set" + capitalize(name)


def escape_text(text: str) -> str:
    return "".join(_TEXT_ESCAPES.get(char, char) for char in text)


def escape_attr(text: str) -> str:
    return text.replace("&", "&amp;").replace('"', "&quot;").replace("<", "&lt;").replace(">", "&gt;")


def js_string(value: object) -> str:
    """JSON literal for a JS expression (``"a"``, ``3``, ``true``)."""
    return json.dumps(value, ensure_ascii=False)


def class_attr(class_name: str) -> str:
    return f' className="{class_name}"' if class_name else ""


def indent(lines: Iterable[str], width: int) -> List[str]:
    pad = " " * width
    result: List[str] = []
    for line in lines:
        for sub in line.split("\n"):
            result.append(pad + sub if sub else sub)
    return result


def derive_label(name: str) -> str:
    """``first_name`` and ``firstName`` both become ``First Name``."""
    if "_" in name:
        return " ".join(capitalize(word) for word in name.split("_"))
    return capitalize(re.sub(r"([a-z])([A-Z])", r"\1 \2", name))


def derive_empty_label(data_expr: str) -> str:
    if not data_expr or data_expr == "items":
        return "No items yet"
    base = re.sub(r"\[.*", "", re.sub(r"\..*", "", data_expr))
    words = re.sub(r"([A-Z])", r" \1", base).strip().lower()
    return f"No {words} yet"


def node_to_string(node: UINode) -> str:
    if isinstance(node, TextNode):
        return node.text
    if isinstance(node, ValueNode):
        return js_string(node.value) if isinstance(node.value, bool) else str(node.value)
    if isinstance(node, ElementNode):
        return node.element
    if isinstance(node, UnaryNode):
        return node.operator + node_to_string(node.operand)
    if isinstance(node, BinaryNode):
        return node_to_string(node.left) + node.operator + node_to_string(node.right)
    if isinstance(node, ScopedNode):
        return f"@{node.scope}:{node.name}"
    return ""


def find_state_field(name: str, ctx: "TranspileContext") -> Optional[Field]:
    return ctx.state_field(name.split(".")[0])


def resolve_setter_from_ref(ref: str) -> str:
    """Setter expression for a (possibly dotted) state reference."""
    root, *rest = ref.split(".")
    if not rest:
        return setter(root)
    return f"((v) => {setter(root)}(prev => ({{ ...prev, {'.'.join(rest)}: v }})))"


def wrap_form_group(input_jsx: str, label: str, pad: str) -> str:
    return f'{pad}<div className="form-group">\n{pad}  <label>{label}</label>\n{pad}  {input_jsx.lstrip()}\n{pad}</div>'


def interpolate_text(text: str, ctx: "TranspileContext", scope: Scope) -> str:
    """Turn ``"Hi #user.name"`` into a template literal; plain text becomes a JSON string."""
    if "#" not in text:
        return js_string(text)

    def _replace(match: "re.Match[str]") -> str:
        head, *pipes = match.group(1).split("|")
        root, *path = head.split(".")
        expr = head
        field = ctx.state_field(root)
        if path and field is not None and isinstance(field.type, OptionalType):
            expr = root + "?." + ".".join(path)
        for pipe in pipes:
            if pipe.startswith("!"):
                name, *rest = pipe[1:].split(".")
                expr = f"{expr}.filter(i => !i.{name})"
                if rest:
                    expr = f"{expr}.{'.'.join(rest)}"
            else:
                expr = f"{expr}.{pipe}"
        return "${" + expr + "}"

    return "`" + _TEXT_REF.sub(_replace, text) + "`"


# ---- expression resolution ----


def resolve_ref(node: UINode, scope: Scope) -> str:
    if isinstance(node, ElementNode):
        return re.sub(r"[-+*/]+$", "", node.element)
    if isinstance(node, BinaryNode) and node.operator == ".":
        return f"{resolve_ref(node.left, scope)}.{resolve_ref(node.right, scope)}"
    if isinstance(node, UnaryNode) and node.operator == "#":
        return resolve_ref(node.operand, scope)
    if isinstance(node, TextNode):
        return js_string(node.text)
    if isinstance(node, ValueNode):
        return js_string(node.value)
    return node_to_string(node)


def resolve_dot_expr(node: BinaryNode, scope: Scope) -> str:
    right = node.right.element if isinstance(node.right, ElementNode) else resolve_ref(node.right, scope)
    return f"{resolve_ref(node.left, scope)}.{right}"


def _pipe_args(node: ElementNode) -> List[str]:
    return [child.element if isinstance(child, ElementNode) else node_to_string(child) for child in node.children or []]


def _aggregate(source: str, fn: str, args: List[str]) -> Optional[str]:
    pick = f"x.{args[0]}" if args else "x"
    if fn == "sum":
        return f"{source}.reduce((s, x) => s + {pick}, 0)"
    if fn == "avg":
        return f"({source}.length ? {source}.reduce((s, x) => s + {pick}, 0) / {source}.length : 0)"
    return None


def resolve_ref_node(node: UINode, scope: Scope) -> str:
    if isinstance(node, UnaryNode) and node.operator == "#":
        return resolve_ref(node.operand, scope)
    if isinstance(node, UnaryNode) and node.operator == "$":
        return f"'$' + {resolve_ref_node(node.operand, scope)}"
    if isinstance(node, BinaryNode):
        if node.operator == ".":
            return resolve_dot_expr(node, scope)
        if node.operator == "-":
            return f"{resolve_ref_node(node.left, scope)} - {resolve_ref_node(node.right, scope)}"
        if node.operator == "|":
            left = resolve_ref_node(node.left, scope)
            if isinstance(node.right, ElementNode):
                fn = node.right.element
                return _aggregate(left, fn, _pipe_args(node.right)) or f"{left}.{fn}"
            return left
    return resolve_ref(node, scope)


def _filter_expr(source: str) -> str:
    return f"{source}.filter(_item => filter === 'all' || _item.category === filter || _item.done === (filter === 'done'))"


def _sort_expr(source: str) -> str:
    return (
        f"[...{source}].sort((a, b) => sort === 'newest' ? b.id - a.id : sort === 'oldest' ? a.id - b.id "
        ": sort === 'highest' ? b.amount - a.amount : a.amount - b.amount)"
    )


def resolve_pipe_source(node: UINode, ctx: "TranspileContext", scope: Scope) -> str:
    if isinstance(node, ElementNode):
        return node.element
    if isinstance(node, UnaryNode) and node.operator == "#":
        return resolve_ref(node.operand, scope)
    if isinstance(node, UnaryNode) and node.operator == "$":
        return resolve_pipe_source(node.operand, ctx, scope)
    if isinstance(node, BinaryNode):
        if node.operator == ".":
            return resolve_dot_expr(node, scope)
        if node.operator == "|":
            return resolve_pipe_expr(node, ctx, scope)
        if node.operator == ":":
            resolved = resolve_bind_chain(node)
            if resolved is not None and resolved.binding is not None:
                return resolve_pipe_source(resolved.binding, ctx, scope)
    return node_to_string(node)


def apply_pipe(source: str, fn_node: UINode, ctx: "TranspileContext") -> str:
    """Apply one ``|fn`` stage to an already resolved source expression."""
    if not isinstance(fn_node, ElementNode):
        return source
    fn = fn_node.element
    args = _pipe_args(fn_node)
    if fn == "filter":
        field = ctx.state_field("filter")
        return _filter_expr(source) if field is not None and isinstance(field.type, EnumType) else source
    if fn == "sort":
        return _sort_expr(source) if ctx.state_field("sort") is not None else source
    if fn == "count":
        return f"{source}.length"
    if fn == "search":
        return (
            f"{source}.filter(_item => Object.values(_item).some(v => "
            "String(v).toLowerCase().includes(search.toLowerCase())))"
        )
    aggregate = _aggregate(source, fn, args)
    if aggregate is not None:
        return aggregate
    return f"{source} /* |{fn} */"


def resolve_pipe_expr(node: BinaryNode, ctx: "TranspileContext", scope: Scope) -> str:
    """``#items|filter|count`` -> ``items.filter(...).length``."""
    right = node.right
    if isinstance(right, BinaryNode) and right.operator == "|":
        # (a | b) | c parsed right-leaning: fold b onto a first.
        inner = apply_pipe(resolve_pipe_source(node.left, ctx, scope), right.left, ctx)
        return resolve_pipe_expr(BinaryNode("|", TextNode(inner), right.right), ctx, scope)
    left = node.left.text if isinstance(node.left, TextNode) else resolve_pipe_source(node.left, ctx, scope)
    return apply_pipe(left, right, ctx)


def extract_data_source(node: UINode, scope: Scope, ctx: "TranspileContext") -> str:
    if isinstance(node, BinaryNode) and node.operator == ">":
        return extract_data_source(node.right, scope, ctx)
    if isinstance(node, BinaryNode) and node.operator == "|":
        left = extract_data_source(node.left, scope, ctx)
        if isinstance(node.right, ElementNode):
            if node.right.element == "filter":
                return _filter_expr(left)
            if node.right.element == "sort":
                return _sort_expr(left)
        return left
    if isinstance(node, UnaryNode) and node.operator == "#":
        return resolve_ref(node.operand, scope)
    if isinstance(node, ElementNode):
        return node.element
    return "items"


def extract_base_array(node: UINode) -> str:
    if isinstance(node, BinaryNode) and node.operator == ">":
        return extract_base_array(node.right)
    if isinstance(node, BinaryNode) and node.operator == "|":
        return extract_base_array(node.left)
    if isinstance(node, UnaryNode) and node.operator == "#":
        return extract_base_array(node.operand)
    if isinstance(node, ElementNode):
        return node.element
    return "items"


def extract_action_name(node: UINode) -> str:
    if isinstance(node, ElementNode):
        return node.element.replace(".", "_")
    if isinstance(node, BinaryNode) and node.operator == ".":
        left = node.left.element if isinstance(node.left, ElementNode) else ""
        right = node.right.element if isinstance(node.right, ElementNode) else ""
        return f"{left}_{right}"
    return "action"


def safe_action_name(name: str) -> str:
    """JS identifier for a mutation; ``confirm`` would shadow ``window.confirm``."""
    return "handleConfirm" if name == "confirm" else name.replace(".", "_")


def _raw_arg(text: str) -> str:
    if text.startswith("{"):
        if not text.endswith("}"):
            text += "}"
        return _ARG_REF.sub(lambda m: "e.target.value" if m.group(1) == "val" else m.group(1), text)
    if text.startswith("["):
        return text
    return js_string(text)


def extract_action_args(node: UINode, scope: Scope) -> str:
    if not (isinstance(node, ElementNode) and node.children):
        return ""
    args: List[str] = []
    for child in node.children:
        if isinstance(child, TextNode):
            args.append(_raw_arg(child.text))
        elif isinstance(child, UnaryNode) and child.operator == "#":
            args.append(resolve_ref(child.operand, scope))
        else:
            args.append(resolve_ref_node(child, scope))
    return ", ".join(args)


def action_operand(action: UINode) -> UINode:
    return action.operand if isinstance(action, UnaryNode) else action


def try_resolve_element(node: UINode) -> Optional[ResolvedBind]:
    if isinstance(node, ElementNode):
        return ResolvedBind(element=node.element, children=node.children)
    if isinstance(node, BinaryNode) and node.operator == ":":
        return resolve_bind_chain(node)
    return None


def button_label(resolved: ResolvedBind) -> str:
    if resolved.label:
        return escape_text(resolved.label)
    if "icon" in resolved.modifiers:
        return "✕"
    if resolved.action is not None:
        name = extract_action_name(action_operand(resolved.action))
        return "✕" if name in DELETE_ACTIONS else capitalize(name)
    if resolved.element == "btn":
        return "Submit"
    return resolved.element


def find_first_form_action(nodes: Iterable[UINode]) -> Optional[str]:
    for node in iter_nodes(nodes):
        if isinstance(node, UnaryNode) and node.operator == "!":
            return extract_action_name(node.operand)
    return None


# ---- type lookups ----


def resolve_deep_type(type_: AirType, path: str) -> Optional[AirType]:
    current: AirType = type_
    for part in path.split(".")[1:]:
        while isinstance(current, OptionalType):
            current = current.of
        if not isinstance(current, ObjectType):
            return None
        match = next((field for field in current.fields if field.name == part), None)
        if match is None:
            return None
        current = match.type
    return current


def find_enum_by_name(type_: AirType, name: str) -> Optional[EnumType]:
    if isinstance(type_, EnumType):
        return type_
    fields: List[Field] = []
    if isinstance(type_, ArrayType) and isinstance(type_.of, ObjectType):
        fields = type_.of.fields
    elif isinstance(type_, ObjectType):
        fields = type_.fields
    for field in fields:
        if field.name == name and isinstance(field.type, EnumType):
            return field.type
    return None


def find_enum_values(state_ref: str, modifiers: Iterable[str], ctx: "TranspileContext") -> List[str]:
    field = find_state_field(state_ref, ctx)
    if field is not None:
        deep = resolve_deep_type(field.type, state_ref)
        if isinstance(deep, EnumType) and deep.values:
            return list(deep.values)
    for modifier in modifiers:
        for item in ctx.state:
            found = find_enum_by_name(item.type, modifier)
            if found is not None:
                return list(found.values)
    return []


def enum_options(name: str, ctx: "TranspileContext") -> List[str]:
    field = find_state_field(name, ctx)
    if field is not None and isinstance(field.type, EnumType):
        return list(field.type.values)
    return []


def infer_model_fields(data_source: str, ctx: "TranspileContext") -> List[str]:
    """Visible columns for a table fed by a model-shaped state array."""
    if not data_source:
        return []
    base = re.sub(r"\[.*", "", re.sub(r"\..*", "", data_source))
    for model in ctx.models:
        lower = model.name.lower()
        if base in (lower, lower + "s", pluralize(lower)):
            names = [field.name for field in model.fields if not field.auto and not field.name.endswith("_id")]
            return names[:6]
    return []


__all__ = [
    "ICON_EMOJI",
    "AUTH_FORM_ACTIONS",
    "DELETE_ACTIONS",
    "Scope",
    "ROOT_SCOPE",
    "setter",
    "escape_text",
    "escape_attr",
    "js_string",
    "class_attr",
    "indent",
    "derive_label",
    "derive_empty_label",
    "node_to_string",
    "find_state_field",
    "resolve_setter_from_ref",
    "wrap_form_group",
    "interpolate_text",
    "resolve_ref",
    "resolve_ref_node",
    "resolve_dot_expr",
    "resolve_pipe_source",
    "resolve_pipe_expr",
    "apply_pipe",
    "extract_data_source",
    "extract_base_array",
    "extract_action_name",
    "safe_action_name",
    "extract_action_args",
    "action_operand",
    "try_resolve_element",
    "button_label",
    "find_first_form_action",
    "resolve_deep_type",
    "find_enum_by_name",
    "find_enum_values",
    "enum_options",
    "infer_model_fields",
]
