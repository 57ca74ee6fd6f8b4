from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from dupguard.analysis.clusters import Cluster
from dupguard.core.errors import ReportWriteError
from dupguard.parsing.ir import FunctionUnit
from dupguard.reporting.snippets import extract_snippet

logger = logging.getLogger(__name__)

def display_path(root: Path, unit: FunctionUnit) -> str:
    return (Path(root) / unit.source_file).as_posix()

def load_snippet(root: Path, unit: FunctionUnit) -> Optional[str]:
    """Snippet for ``unit``, or None when the file can no longer be read."""
    try:
        return extract_snippet(Path(root) / unit.source_file, unit.span)
    except (OSError, ValueError) as e:
        logger.warning("Snippet unavailable for %s: %s", display_path(root, unit), e)
        return None

def render_cluster(root: Path, cluster: Cluster, snippet: Optional[str]) -> str:
    lines: List[str] = [f"发现重复函数（{cluster.size} 次）：\n"]
    for unit in cluster.units:
        lines.append(f"  文件: {display_path(root, unit)}, 行 {unit.span.start_line} - 行 {unit.span.end_line}\n")
    if snippet is not None:
        lines.append("代码片段:\n")
        lines.append(f"{snippet}\n")
    lines.append("\n")
    return "".join(lines)

def render_report(root: Path, clusters: Iterable[Cluster]) -> str:
    return "".join(render_cluster(root, c, load_snippet(root, c.representative)) for c in clusters)

def write_report(out_path: Path, text: str) -> Path:
    out_path = Path(out_path)
    try:
        if out_path.parent and not out_path.parent.exists():
            out_path.parent.mkdir(parents=True, exist_ok=True)
        # newline="" keeps CRLF snippets byte-exact
        with open(out_path, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
    except OSError as e:
        raise ReportWriteError(out_path, e) from e
    return out_path
