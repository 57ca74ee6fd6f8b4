from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import os
import logging
from typing import Iterable, Optional

import pathspec

from dupguard.core.config import DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class FileMeta:
    path: Path  # relative to the scan root
    bytes: int
    language: str

_DEFAULT_LANG_MAP = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".vue": "vue",
}

def detect_language(path: Path) -> str:
    return _DEFAULT_LANG_MAP.get(path.suffix.lower(), "unknown")

def _compile_excludes(root: Path, exclude: list[str], respect_gitignore: bool) -> Optional[pathspec.PathSpec]:
    lines: list[str] = list(exclude or [])
    gi = root / ".gitignore"
    if respect_gitignore and gi.is_file():
        try:
            lines.extend(gi.read_text(encoding="utf-8", errors="ignore").splitlines())
        except OSError as e:
            logger.warning("Could not read %s: %s", gi, e)
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)

def walk_repo(
    root: Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    exclude: list[str] | None = None,
    respect_gitignore: bool = False,
) -> list[FileMeta]:
    """List eligible source files under ``root`` in a stable order.

    Directories are always descended into; the allow-list and exclude
    patterns only decide which files are returned.
    """
    root = Path(root)
    allowed = {e.lower() for e in extensions}
    spec = _compile_excludes(root, exclude or [], respect_gitignore)
    results: list[FileMeta] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        dir_rel = Path(dirpath).relative_to(root)
        for fname in sorted(filenames):
            rel = dir_rel / fname
            if rel.suffix.lower() not in allowed:
                continue
            if spec and spec.match_file(rel.as_posix()):
                logger.debug("Excluded by pattern: %s", rel.as_posix())
                continue
            fpath = root / rel
            try:
                size = fpath.stat().st_size
            except OSError:
                continue
            if not fpath.is_file():
                continue
            results.append(FileMeta(path=rel, bytes=int(size), language=detect_language(rel)))
    return sorted(results, key=lambda fm: fm.path.as_posix())
