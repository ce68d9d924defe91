"""Output file records, generation statistics and provenance headers."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Dict, List, Optional

_LINE_COMMENT = {".js": "//", ".jsx": "//", ".cjs": "//", ".py": "#"}
_BLOCK_COMMENT = {".css": ("/*", "*/")}


@dataclass(frozen=True)
class OutputFile:
    """A generated file, addressed by its path relative to the output root."""

    path: str
    content: str


@dataclass
class GenerationStats:
    input_lines: int = 0
    output_lines: int = 0
    compression_ratio: float = 0.0
    file_count: int = 0
    extract_ms: float = 0.0
    analyze_ms: float = 0.0
    client_gen_ms: float = 0.0
    server_gen_ms: float = 0.0
    total_ms: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "input_lines": self.input_lines,
            "output_lines": self.output_lines,
            "compression_ratio": self.compression_ratio,
            "file_count": self.file_count,
            "extract_ms": self.extract_ms,
            "analyze_ms": self.analyze_ms,
            "client_gen_ms": self.client_gen_ms,
            "server_gen_ms": self.server_gen_ms,
            "total_ms": self.total_ms,
        }


@dataclass
class GenerationResult:
    files: List[OutputFile] = field(default_factory=list)
    stats: GenerationStats = field(default_factory=GenerationStats)

    @property
    def paths(self) -> List[str]:
        return [item.path for item in self.files]

    def get(self, path: str) -> Optional[OutputFile]:
        for item in self.files:
            if item.path == path:
                return item
        return None


def provenance_header(path: str, source_name: str, generator: str) -> Optional[str]:
    """The comment line prepended to ``path``; ``None`` for formats without comments."""
    extension = posixpath.splitext(path)[1]
    text = f"Generated by airengine {generator} from {source_name}. Do not edit by hand."
    if extension in _LINE_COMMENT:
        return f"{_LINE_COMMENT[extension]} {text}"
    if extension in _BLOCK_COMMENT:
        start, end = _BLOCK_COMMENT[extension]
        return f"{start} {text} {end}"
    return None


def with_provenance(path: str, content: str, source_name: str, generator: str) -> OutputFile:
    header = provenance_header(path, source_name, generator)
    if header is None:
        return OutputFile(path=path, content=content)
    return OutputFile(path=path, content=f"{header}\n{content}")


def count_lines(text: str) -> int:
    if not text:
        return 0
    return text.count("\n") + (0 if text.endswith("\n") else 1)


__all__ = [
    "OutputFile",
    "GenerationStats",
    "GenerationResult",
    "provenance_header",
    "with_provenance",
    "count_lines",
]
