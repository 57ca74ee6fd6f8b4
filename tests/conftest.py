from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from dupguard.analysis.canonical import canonicalize
from dupguard.analysis.hashing import content_hash
from dupguard.parsing.collector import collect_functions
from dupguard.parsing.ts_parser import parse_source


def write_source(root: Path, rel: str, source: str, dedent: bool = True) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    text = textwrap.dedent(source).lstrip() if dedent else source
    path.write_bytes(text.encode("utf-8"))
    return path


def units_of(source: str, lang: str = "javascript", name: str = "mod.js"):
    module = parse_source(Path(name), textwrap.dedent(source).strip().encode("utf-8"), lang)
    return collect_functions(module)


def first_hash(source: str, lang: str = "javascript") -> str:
    return content_hash(canonicalize(units_of(source, lang)[0]))


@pytest.fixture
def write(tmp_path: Path):
    def _write(rel: str, source: str, dedent: bool = True) -> Path:
        return write_source(tmp_path, rel, source, dedent=dedent)
    return _write
