"""Incremental build cache: content hashes, the manifest and output diffs.

The core only computes and compares manifests. Reading and writing them is
left to callers (the CLI) through :func:`load_manifest` and
:func:`save_manifest`.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from airengine.codegen.output import OutputFile
from airengine.config import DEFAULT_CACHE_DIR

__all__ = [
    "MANIFEST_VERSION",
    "MANIFEST_FILENAME",
    "hash_content",
    "CacheManifest",
    "build_manifest",
    "IncrementalDiff",
    "compute_diff",
    "manifest_path",
    "load_manifest",
    "save_manifest",
]

logger = logging.getLogger(__name__)

MANIFEST_VERSION = 1
MANIFEST_FILENAME = "manifest.json"


def hash_content(text: str) -> str:
    """First 16 hex characters of the SHA-256 of ``text``."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


class CacheManifest(BaseModel):
    """Hashes of the files written by the previous build."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = MANIFEST_VERSION
    source_hash: str = Field(alias="sourceHash")
    files: Dict[str, str] = Field(default_factory=dict)
    timestamp: str = ""

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True), indent=2, sort_keys=True) + "\n"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_manifest(
    files: Iterable[OutputFile],
    source_hash: str,
    timestamp: Optional[str] = None,
) -> CacheManifest:
    return CacheManifest(
        source_hash=source_hash,
        files={item.path: hash_content(item.content) for item in files},
        timestamp=timestamp or _utc_timestamp(),
    )


@dataclass
class IncrementalDiff:
    changed_files: List[OutputFile] = field(default_factory=list)
    removed_paths: List[str] = field(default_factory=list)
    skipped_count: int = 0
    manifest: Optional[CacheManifest] = None

    @property
    def has_changes(self) -> bool:
        return bool(self.changed_files or self.removed_paths)


def compute_diff(
    files: List[OutputFile],
    prior: Optional[CacheManifest],
    source_hash: str,
    force: bool = False,
) -> IncrementalDiff:
    """Compare ``files`` with the ``prior`` manifest.

    When the source hash is unchanged and the same paths are produced, no
    per-file hashing happens and every file counts as skipped. ``force``
    marks every file as changed; paths missing from ``files`` are still
    reported as removed.
    """
    timestamp = _utc_timestamp()
    paths = [item.path for item in files]

    if force:
        manifest = build_manifest(files, source_hash, timestamp)
        previous = prior.files if prior is not None else {}
        removed = sorted(path for path in previous if path not in paths)
        logger.debug("Forced rebuild: %d written, %d removed", len(files), len(removed))
        return IncrementalDiff(changed_files=list(files), removed_paths=removed, skipped_count=0, manifest=manifest)

    if prior is not None and prior.source_hash == source_hash and set(paths) == set(prior.files):
        logger.info("Source unchanged (%s); skipping %d files", source_hash, len(files))
        manifest = CacheManifest(source_hash=source_hash, files=dict(prior.files), timestamp=timestamp)
        return IncrementalDiff(changed_files=[], removed_paths=[], skipped_count=len(files), manifest=manifest)

    manifest = build_manifest(files, source_hash, timestamp)
    previous = prior.files if prior is not None else {}
    changed = [item for item in files if previous.get(item.path) != manifest.files[item.path]]
    current = set(paths)
    removed = sorted(path for path in previous if path not in current)
    logger.debug("Diff: %d changed, %d removed, %d unchanged", len(changed), len(removed), len(files) - len(changed))
    return IncrementalDiff(
        changed_files=changed,
        removed_paths=removed,
        skipped_count=len(files) - len(changed),
        manifest=manifest,
    )


def manifest_path(out_dir: Union[str, Path], cache_dir: str = DEFAULT_CACHE_DIR) -> Path:
    return Path(out_dir) / cache_dir / MANIFEST_FILENAME


def load_manifest(path: Union[str, Path]) -> Optional[CacheManifest]:
    """Read a manifest; missing, unreadable or corrupt files yield ``None``."""
    path = Path(path)
    if not path.exists():
        return None
    try:
        manifest = CacheManifest.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, ValidationError) as exc:
        logger.warning("Ignoring unreadable cache manifest %s: %s", path, exc)
        return None
    if manifest.version != MANIFEST_VERSION:
        logger.warning("Ignoring cache manifest %s with version %s", path, manifest.version)
        return None
    return manifest


def save_manifest(manifest: CacheManifest, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(manifest.to_json(), encoding="utf-8")
    return path
