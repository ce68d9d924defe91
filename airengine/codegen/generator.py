"""Orchestrates client, server and docs generation for one context."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Union

from airengine.ast import AirAST
from airengine.config import TranspileOptions, make_options
from airengine.ir.context import TranspileContext, extract_context
from airengine.lang import parse

from .backend import generate_server
from .docs import generate_docs
from .frontend import generate_client
from .output import GenerationResult, GenerationStats, OutputFile, count_lines

__all__ = ["generate", "transpile"]

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


def generate(context: TranspileContext, timings: Optional[Dict[str, float]] = None) -> GenerationResult:
    """Generate every output file for ``context``.

    Pure with respect to file contents: two calls on the same context give
    byte-identical files. Only ``stats`` timings vary between runs.
    ``timings`` carries upstream stage durations (``extract_ms``,
    ``analyze_ms``) into the returned stats.
    """
    timings = timings or {}
    options = context.options
    started = time.perf_counter()
    files: List[OutputFile] = []

    client_ms = 0.0
    if options.includes_client():
        stage = time.perf_counter()
        files.extend(generate_client(context))
        client_ms = _elapsed_ms(stage)
        logger.debug("Client stage: %.3f ms", client_ms)

    server_ms = 0.0
    if options.includes_server():
        stage = time.perf_counter()
        files.extend(generate_server(context))
        server_ms = _elapsed_ms(stage)
        logger.debug("Server stage: %.3f ms", server_ms)

    if options.includes_docs():
        files.extend(generate_docs(context))

    input_lines = options.source_lines or 0
    output_lines = sum(count_lines(item.content) for item in files)
    extract_ms = timings.get("extract_ms", 0.0)
    analyze_ms = timings.get("analyze_ms", 0.0)
    stats = GenerationStats(
        input_lines=input_lines,
        output_lines=output_lines,
        compression_ratio=round(output_lines / input_lines, 1) if input_lines else 0.0,
        file_count=len(files),
        extract_ms=extract_ms,
        analyze_ms=analyze_ms,
        client_gen_ms=client_ms,
        server_gen_ms=server_ms,
        total_ms=round(extract_ms + analyze_ms + _elapsed_ms(started), 3),
    )
    logger.debug("Generated %d files (%d lines) for '%s'", stats.file_count, output_lines, context.app_name)
    return GenerationResult(files=files, stats=stats)


def transpile(
    source: Union[str, AirAST],
    options: Optional[TranspileOptions] = None,
    **option_values: Any,
) -> GenerationResult:
    """Parse (when given text), extract the context and generate.

    Keyword arguments build :class:`TranspileOptions` when ``options`` is
    omitted. Lex and parse errors propagate unchanged.
    """
    if options is None:
        options = make_options(**option_values)

    timings: Dict[str, float] = {}
    if isinstance(source, AirAST):
        ast = source
    else:
        stage = time.perf_counter()
        ast = parse(source)
        timings["extract_ms"] = _elapsed_ms(stage)
        if options.source_lines is None:
            options = options.model_copy(update={"source_lines": count_lines(source)})

    stage = time.perf_counter()
    context = extract_context(ast, options)
    timings["analyze_ms"] = _elapsed_ms(stage)
    return generate(context, timings)
