"""Generation options and ``air.toml`` project configuration."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from airengine.errors import AirConfigError

TARGETS = ("all", "client", "server", "docs")
DEFAULT_CACHE_DIR = ".air-cache"
CONFIG_CANDIDATES = ("air.toml", ".airrc")

Target = Literal["all", "client", "server", "docs"]


class TranspileOptions(BaseModel):
    """Options accepted by :func:`airengine.codegen.transpile`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    out_dir: str = "."
    source_lines: Optional[int] = Field(default=None, ge=0)
    target: Target = "all"
    source_name: Optional[str] = None

    @field_validator("target", mode="before")
    @classmethod
    def _normalize_target(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def includes_client(self) -> bool:
        return self.target in ("all", "client")

    def includes_server(self) -> bool:
        return self.target in ("all", "server")

    def includes_docs(self) -> bool:
        return self.target in ("all", "docs")


def make_options(**values: Any) -> TranspileOptions:
    """Build :class:`TranspileOptions`, mapping validation failures to ``AirConfigError``."""
    try:
        return TranspileOptions(**values)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ())) or "options"
        raise AirConfigError(
            f"Invalid option '{location}': {first.get('msg', 'invalid value')}",
            hint=f"target must be one of: {', '.join(TARGETS)}" if location == "target" else None,
        ) from exc


@dataclass
class ProjectConfig:
    """Build settings read from ``air.toml`` (``[build]`` table) or ``.airrc`` (JSON)."""

    root: Path
    out_dir: Path
    target: str = "all"
    cache_dir: str = DEFAULT_CACHE_DIR
    path: Optional[Path] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def manifest_path(self) -> Path:
        return self.out_dir / self.cache_dir / "manifest.json"


def _read_json_config(path: Path) -> Dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def _read_toml_config(path: Path) -> Dict[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def locate_config_file(root: Path, explicit: Optional[Path] = None) -> Optional[Path]:
    if explicit is not None:
        return explicit if explicit.exists() else None
    for candidate in CONFIG_CANDIDATES:
        path = root / candidate
        if path.exists():
            return path
    return None


def load_project_config(root: Path, explicit: Optional[Path] = None) -> ProjectConfig:
    root = root.resolve()
    config_path = locate_config_file(root, explicit)
    if config_path is None:
        return ProjectConfig(root=root, out_dir=root / "build")

    try:
        if config_path.suffix == ".toml":
            data = _read_toml_config(config_path)
        else:
            data = _read_json_config(config_path)
    except (OSError, ValueError) as exc:
        raise AirConfigError(f"Could not read config: {exc}", path=str(config_path)) from exc

    build = data.get("build") or {}
    if not isinstance(build, dict):
        raise AirConfigError("[build] must be a table", path=str(config_path))

    target = str(build.get("target") or "all").lower()
    if target not in TARGETS:
        raise AirConfigError(
            f"Unknown build target '{target}'",
            path=str(config_path),
            hint=f"Use one of: {', '.join(TARGETS)}",
        )

    out_dir = Path(build.get("out_dir") or "build")
    if not out_dir.is_absolute():
        out_dir = (root / out_dir).resolve()

    return ProjectConfig(
        root=root,
        out_dir=out_dir,
        target=target,
        cache_dir=str(build.get("cache_dir") or DEFAULT_CACHE_DIR),
        path=config_path,
        raw=data,
    )


__all__ = [
    "TARGETS",
    "DEFAULT_CACHE_DIR",
    "TranspileOptions",
    "make_options",
    "ProjectConfig",
    "locate_config_file",
    "load_project_config",
]
