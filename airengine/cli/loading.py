"""Source file loading shared by CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

from airengine.errors import AirConfigError


def read_source(file: str) -> Tuple[Path, str]:
    path = Path(file)
    if not path.is_file():
        raise AirConfigError("Source file not found", path=str(path), hint="Pass the path to an .air file")
    try:
        return path, path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise AirConfigError(f"Could not read source: {exc}", path=str(path)) from exc
