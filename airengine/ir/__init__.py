"""Intermediate representation: context extraction and shared route/UI analysis."""

from .context import (
    AUTH_MUTATION_NAMES,
    StyleTokens,
    TranspileContext,
    extract_context,
    resolve_style,
)
from .routes import expand_crud, parse_db_handler, route_to_function_name, singularize
from .ui_analysis import UIAnalysis, analyze_ui, extract_mutations, resolve_bind_chain

__all__ = [
    "AUTH_MUTATION_NAMES",
    "StyleTokens",
    "TranspileContext",
    "extract_context",
    "resolve_style",
    "expand_crud",
    "parse_db_handler",
    "route_to_function_name",
    "singularize",
    "UIAnalysis",
    "analyze_ui",
    "extract_mutations",
    "resolve_bind_chain",
]
