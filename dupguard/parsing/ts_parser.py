from __future__ import annotations
import logging
import re
from pathlib import Path

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from dupguard.core.errors import IngestionError
from dupguard.ingestion.walker import detect_language
from dupguard.parsing.ir import ParsedModule

logger = logging.getLogger(__name__)

_LANGUAGES = {
    "javascript": Language(tree_sitter_javascript.language()),
    "typescript": Language(tree_sitter_typescript.language_typescript()),
    "tsx": Language(tree_sitter_typescript.language_tsx()),
}

_VUE_SCRIPT_RE = re.compile(rb"<script\b([^>]*)>(.*?)</script\s*>", re.IGNORECASE | re.DOTALL)
_VUE_LANG_RE = re.compile(rb"""\blang\s*=\s*["']?([A-Za-z]+)""", re.IGNORECASE)

def _blank(chunk: bytes) -> bytes:
    # Keep line breaks so rows and byte offsets still line up with the file.
    return bytes(b if b in (0x0A, 0x0D) else 0x20 for b in chunk)

def extract_vue_script(source: bytes) -> tuple[bytes, str]:
    """Blank everything in a ``.vue`` file except its ``<script>`` bodies.

    The result has exactly the same length and line layout as ``source``,
    so node positions in the parsed script are positions in the component.
    """
    out = bytearray()
    pos = 0
    lang = "javascript"
    for m in _VUE_SCRIPT_RE.finditer(source):
        body_start, body_end = m.span(2)
        out += _blank(source[pos:body_start])
        out += source[body_start:body_end]
        pos = body_end
        lm = _VUE_LANG_RE.search(m.group(1))
        if lm:
            declared = lm.group(1).lower()
            if declared == "tsx":
                lang = "tsx"
            elif declared == "ts" and lang != "tsx":
                lang = "typescript"
    out += _blank(source[pos:])
    return bytes(out), lang

def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None

def parse_source(path: Path, source: bytes, lang_hint: str) -> ParsedModule:
    try:
        source.decode("utf-8")
    except UnicodeDecodeError as e:
        raise IngestionError(path, f"not valid UTF-8 ({e.reason} at byte {e.start})") from e

    code = source
    grammar = lang_hint
    if lang_hint == "vue":
        code, grammar = extract_vue_script(source)
    language = _LANGUAGES.get(grammar)
    if language is None:
        raise IngestionError(path, f"no grammar for language '{lang_hint}'")

    parser = Parser(language)
    tree = parser.parse(code)
    if tree.root_node.has_error:
        bad = _first_error(tree.root_node) or tree.root_node
        row, col = bad.start_point
        raise IngestionError(path, f"syntax error at line {row + 1}, column {col + 1}")
    return ParsedModule(path=Path(path), lang=lang_hint, tree=tree, source=source)

def parse_file(
    root: Path, rel: Path, max_bytes: int | None = None, lang_hint: str | None = None
) -> ParsedModule:
    fpath = Path(root) / rel
    try:
        source = fpath.read_bytes()
    except OSError as e:
        raise IngestionError(rel, f"unreadable: {e}") from e
    if max_bytes is not None and len(source) > max_bytes:
        raise IngestionError(rel, f"file is {len(source)} bytes, over the {max_bytes} byte cap")
    logger.debug("Parsing %s (%d bytes)", fpath, len(source))
    return parse_source(rel, source, lang_hint or detect_language(rel))
