"""Structural analysis of the ``@ui`` tree: bind chains, mutations, pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from airengine.ast import (
    BinaryNode,
    ElementNode,
    ScopedNode,
    TextNode,
    UINode,
    UnaryNode,
)


@dataclass
class ResolvedBind:
    """An ``a:b:c`` chain split into element, modifiers and binding/action/label.

    ``btn:icon:!del(#id)`` resolves to element ``btn``, modifiers
    ``["icon"]`` and the ``!del(#id)`` action.
    """

    element: str
    modifiers: List[str] = field(default_factory=list)
    binding: Optional[UINode] = None
    action: Optional[UINode] = None
    label: Optional[str] = None
    children: Optional[List[UINode]] = None


def resolve_bind_chain(node: UINode) -> Optional[ResolvedBind]:
    if not (isinstance(node, BinaryNode) and node.operator == ":"):
        return None

    parts: List[UINode] = []
    left: UINode = node
    while isinstance(left, BinaryNode) and left.operator == ":":
        parts.append(left.right)
        left = left.left
    if not isinstance(left, ElementNode):
        return None

    result = ResolvedBind(element=left.element, children=left.children)
    for part in reversed(parts):
        _classify(result, part)
    return result


def _classify(result: ResolvedBind, node: UINode) -> None:
    if isinstance(node, ElementNode):
        result.modifiers.append(node.element)
        if node.children:
            result.children = node.children
    elif isinstance(node, UnaryNode) and node.operator == "!":
        result.action = node
    elif isinstance(node, TextNode):
        result.label = node.text
    else:
        result.binding = node


@dataclass
class MutationInfo:
    name: str
    arg_nodes: List[UINode] = field(default_factory=list)


@dataclass
class PageInfo:
    name: str
    children: List[UINode] = field(default_factory=list)


@dataclass
class UIAnalysis:
    pages: List[PageInfo] = field(default_factory=list)
    sections: List[PageInfo] = field(default_factory=list)
    mutations: List[MutationInfo] = field(default_factory=list)

    @property
    def has_pages(self) -> bool:
        return bool(self.pages)

    def mutation_names(self) -> List[str]:
        return [mutation.name for mutation in self.mutations]


def iter_nodes(nodes: Iterable[UINode]) -> Iterable[UINode]:
    """Depth-first pre-order walk over every node below ``nodes``."""
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, ElementNode):
            stack.extend(reversed(node.children or []))
        elif isinstance(node, ScopedNode):
            stack.extend(reversed(node.children))
        elif isinstance(node, UnaryNode):
            stack.append(node.operand)
        elif isinstance(node, BinaryNode):
            stack.append(node.right)
            stack.append(node.left)


def extract_mutations(nodes: Iterable[UINode]) -> List[MutationInfo]:
    """Unique ``!name(args)`` actions in first-seen order."""
    seen: Dict[str, MutationInfo] = {}
    for node in iter_nodes(nodes):
        if not (isinstance(node, UnaryNode) and node.operator == "!"):
            continue
        operand = node.operand
        if isinstance(operand, ElementNode) and operand.element not in seen:
            seen[operand.element] = MutationInfo(name=operand.element, arg_nodes=list(operand.children or []))
    return list(seen.values())


def _collect_scoped(nodes: Iterable[UINode], analysis: UIAnalysis) -> None:
    for node in nodes:
        if isinstance(node, ScopedNode):
            target = analysis.pages if node.scope == "page" else analysis.sections
            target.append(PageInfo(name=node.name, children=node.children))
        elif isinstance(node, BinaryNode):
            _collect_scoped([node.left, node.right], analysis)
        elif isinstance(node, ElementNode) and node.children:
            _collect_scoped(node.children, analysis)


def analyze_ui(nodes: List[UINode]) -> UIAnalysis:
    analysis = UIAnalysis()
    _collect_scoped(nodes, analysis)
    analysis.mutations = extract_mutations(nodes)
    return analysis


def element_names(nodes: Iterable[UINode]) -> List[str]:
    return [node.element for node in iter_nodes(nodes) if isinstance(node, ElementNode)]


__all__ = [
    "ResolvedBind",
    "resolve_bind_chain",
    "MutationInfo",
    "PageInfo",
    "UIAnalysis",
    "iter_nodes",
    "extract_mutations",
    "analyze_ui",
    "element_names",
]
