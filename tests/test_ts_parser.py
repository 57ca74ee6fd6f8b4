from __future__ import annotations

from pathlib import Path

import pytest

from dupguard.core.errors import IngestionError
from dupguard.parsing.collector import collect_functions
from dupguard.parsing.ts_parser import extract_vue_script, parse_file, parse_source
from dupguard.reporting.snippets import slice_span

VUE_COMPONENT = """<template>
  <button @click="go">Go</button>
</template>

<script lang="ts">
export default {
  methods: {
    go(step: number) { return step + 1; },
  },
};
</script>

<style>
button { color: red; }
</style>
"""


def test_syntax_error_is_ingestion_error() -> None:
    with pytest.raises(IngestionError) as info:
        parse_source(Path("bad.js"), b"function (( {\n", "javascript")
    assert info.value.path == Path("bad.js")
    assert "syntax error" in info.value.cause


def test_invalid_utf8_is_ingestion_error() -> None:
    with pytest.raises(IngestionError, match="UTF-8"):
        parse_source(Path("latin.js"), b"const s = '\xe9';", "javascript")


def test_unknown_language_is_ingestion_error() -> None:
    with pytest.raises(IngestionError):
        parse_source(Path("x.rb"), b"def f; end", "unknown")


def test_parse_file_respects_size_cap(tmp_path: Path) -> None:
    (tmp_path / "big.js").write_text("const a = 1;\n" * 10, encoding="utf-8")
    with pytest.raises(IngestionError, match="byte cap"):
        parse_file(tmp_path, Path("big.js"), max_bytes=20)
    assert parse_file(tmp_path, Path("big.js")).lang == "javascript"


def test_vue_script_keeps_layout() -> None:
    source = VUE_COMPONENT.encode("utf-8")
    code, lang = extract_vue_script(source)
    assert lang == "typescript"
    assert len(code) == len(source)
    assert code.count(b"\n") == source.count(b"\n")
    assert b"<template>" not in code
    assert b"export default" in code


def test_vue_component_functions_have_file_spans() -> None:
    module = parse_source(Path("Button.vue"), VUE_COMPONENT.encode("utf-8"), "vue")
    (unit,) = collect_functions(module)
    assert unit.name == "go"
    assert unit.span.start_line == 8
    assert slice_span(VUE_COMPONENT, unit.span) == "go(step: number) { return step + 1; }"


def test_vue_without_script_has_no_functions() -> None:
    module = parse_source(Path("Plain.vue"), b"<template><p>hi</p></template>\n", "vue")
    assert collect_functions(module) == []
