from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

Lang = Literal["javascript", "typescript", "tsx", "vue", "unknown"]

@dataclass(frozen=True)
class Span:
    """Source range: 1-based lines, 0-based columns, end column exclusive."""
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def __post_init__(self) -> None:
        if self.start_line < 1 or self.start_column < 0 or self.end_column < 0:
            raise ValueError(f"Span out of range: {self}")
        if self.start_line > self.end_line:
            raise ValueError(f"Span starts after it ends: {self}")
        if self.start_line == self.end_line and self.start_column > self.end_column:
            raise ValueError(f"Span starts after it ends: {self}")

@dataclass(frozen=True)
class FunctionUnit:
    source_file: Path
    span: Span
    node: Any  # tree_sitter.Node; keeps its tree alive
    kind: str
    name: str = "<anonymous>"

    @property
    def id(self) -> str:
        return f"{self.source_file.as_posix()}::{self.name}:{self.span.start_line}"

@dataclass
class ParsedModule:
    path: Path
    lang: Lang
    tree: Any  # tree_sitter.Tree
    source: bytes
