"""``airengine build``: transpile an .air file and write the changed outputs."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from airengine.cache import IncrementalDiff, compute_diff, hash_content, load_manifest, manifest_path, save_manifest
from airengine.codegen import GenerationResult, transpile
from airengine.config import TARGETS, load_project_config, make_options

from ..loading import read_source

logger = logging.getLogger(__name__)


@dataclass
class BuildReport:
    """Outcome of one build, used for the printed summary."""

    out_dir: Path
    result: GenerationResult
    diff: IncrementalDiff
    manifest_path: Path


def _write_outputs(out_dir: Path, diff: IncrementalDiff) -> None:
    for item in diff.changed_files:
        target = out_dir / item.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(item.content, encoding="utf-8")
    for removed in diff.removed_paths:
        stale = out_dir / removed
        if stale.is_file():
            stale.unlink()
            logger.debug("Removed stale output %s", stale)


def run_build(
    file: str,
    out: Optional[str] = None,
    target: Optional[str] = None,
    force: bool = False,
) -> BuildReport:
    """Build ``file``; CLI flags override values from ``air.toml``."""
    path, source = read_source(file)
    config = load_project_config(path.parent)
    out_dir = Path(out).resolve() if out else config.out_dir
    options = make_options(
        out_dir=str(out_dir),
        target=target or config.target,
        source_name=path.name,
    )

    result = transpile(source, options)
    location = manifest_path(out_dir, config.cache_dir)
    diff = compute_diff(result.files, load_manifest(location), hash_content(source), force=force)

    _write_outputs(out_dir, diff)
    save_manifest(diff.manifest, location)
    return BuildReport(out_dir=out_dir, result=result, diff=diff, manifest_path=location)


def print_build_summary(report: BuildReport) -> None:
    stats = report.result.stats
    diff = report.diff
    print(
        f"Built {stats.file_count} files into {report.out_dir}: "
        f"{len(diff.changed_files)} written, {len(diff.removed_paths)} removed, {diff.skipped_count} unchanged"
    )
    print(
        f"  {stats.input_lines} source lines -> {stats.output_lines} generated lines "
        f"({stats.compression_ratio}x) in {stats.total_ms:.1f} ms"
    )


def cmd_build(args: argparse.Namespace) -> int:
    report = run_build(args.file, out=args.out, target=args.target, force=args.force)
    print_build_summary(report)
    return 0


def add_build_command(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("build", help="Generate the client and server for an .air file")
    parser.add_argument("file", help="Path to the .air source file")
    parser.add_argument("--out", "-o", help="Output directory (default: [build].out_dir or ./build)")
    parser.add_argument("--target", choices=TARGETS, help="Restrict generation to one part of the app")
    parser.add_argument("--force", action="store_true", help="Rewrite every file regardless of the cache manifest")
    parser.set_defaults(func=cmd_build)
