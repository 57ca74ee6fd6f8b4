from __future__ import annotations
from pathlib import Path

from dupguard.parsing.ir import Span

def slice_span(text: str, span: Span) -> str:
    lines = text.split("\n")
    first = span.start_line - 1
    last = span.end_line - 1
    if last >= len(lines):
        raise ValueError(f"Span ends on line {span.end_line} but the text has {len(lines)} lines")
    if first == last:
        return lines[first][span.start_column:span.end_column]
    parts = [lines[first][span.start_column:]]
    parts.extend(lines[first + 1:last])
    parts.append(lines[last][:span.end_column])
    return "\n".join(parts)

def extract_snippet(path: Path, span: Span) -> str:
    """Exact source text covered by ``span``, read fresh from ``path``.

    No newline translation is applied, so CRLF files come back with their
    carriage returns intact.
    """
    text = Path(path).read_bytes().decode("utf-8")
    return slice_span(text, span)
