from __future__ import annotations

import threading
from pathlib import Path

import pytest

from dupguard.analysis.runner import analyze_repository, scan
from dupguard.core.config import ScanConfig
from dupguard.core.errors import ReportWriteError, ScanCancelled

ADD = """
function add(a, b) {
  return a + b;
}
"""

SUM = """
// same thing, different names
function sum(x, y) {
  return x + y;   // trailing comment
}
"""

PLUS = """
const plus = function (left, right) { return left + right; };
"""


def _three_copies(write) -> None:
    write("a.js", ADD)
    write("lib/b.js", SUM)
    write("lib/deep/c.ts", PLUS)


def test_three_identical_functions_form_one_cluster(tmp_path: Path, write) -> None:
    _three_copies(write)
    result = scan(tmp_path, tmp_path / "out" / "report.txt", min_occurrences=3)
    (cluster,) = result.clusters
    assert cluster.size == 3
    assert [u.source_file.as_posix() for u in cluster.units] == ["a.js", "lib/b.js", "lib/deep/c.ts"]
    assert result.files_scanned == 3
    assert result.skipped == []


def test_higher_threshold_hides_cluster(tmp_path: Path, write) -> None:
    _three_copies(write)
    report = tmp_path / "report.txt"
    result = scan(tmp_path, report, min_occurrences=4)
    assert result.clusters == []
    assert report.read_text(encoding="utf-8") == ""


def test_report_format(tmp_path: Path, write) -> None:
    write("a.js", ADD)
    write("b.js", SUM)
    report = tmp_path / "report.txt"
    scan(tmp_path, report, min_occurrences=2)
    root = tmp_path.as_posix()
    assert report.read_text(encoding="utf-8") == (
        "发现重复函数（2 次）：\n"
        f"  文件: {root}/a.js, 行 1 - 行 3\n"
        f"  文件: {root}/b.js, 行 2 - 行 4\n"
        "代码片段:\n"
        "function add(a, b) {\n"
        "  return a + b;\n"
        "}\n"
        "\n"
    )


def test_repeated_scans_are_byte_identical(tmp_path: Path, write) -> None:
    _three_copies(write)
    write("x.js", "const m = (q) => q * 3;\nconst n = (r) => r * 3;\n")
    first = tmp_path / "one.txt"
    second = tmp_path / "two.txt"
    scan(tmp_path, first, min_occurrences=2)
    scan(tmp_path, second, min_occurrences=2)
    assert first.read_bytes() == second.read_bytes()
    assert first.read_bytes().count("发现重复函数".encode("utf-8")) == 2


def test_threaded_scan_matches_sequential(tmp_path: Path, write) -> None:
    _three_copies(write)
    for i in range(6):
        write(f"more/m{i}.js", f"function f{i}(v) {{ return v + {i % 2}; }}\n")
    sequential = tmp_path / "seq.txt"
    threaded = tmp_path / "par.txt"
    scan(tmp_path, sequential, config=ScanConfig(min_occurrences=2))
    scan(tmp_path, threaded, config=ScanConfig(min_occurrences=2, workers=4))
    assert sequential.read_bytes() == threaded.read_bytes()


def test_malformed_file_is_skipped(tmp_path: Path, write) -> None:
    write("good1.js", ADD)
    write("good2.js", SUM)
    write("broken.js", "function broken( {\n  return ;;; }}\n")
    result = scan(tmp_path, tmp_path / "report.txt", min_occurrences=2)
    (cluster,) = result.clusters
    assert cluster.size == 2
    assert [s.path.as_posix() for s in result.skipped] == ["broken.js"]
    assert "syntax error" in result.skipped[0].reason


def test_nested_duplicate_counts_separately(tmp_path: Path, write) -> None:
    write(
        "a.js",
        """
        function outer(list) {
          function inner(a, b) { return a + b; }
          return list.reduce(inner, 0);
        }
        """,
    )
    write("b.js", ADD)
    result = analyze_repository(tmp_path, ScanConfig(min_occurrences=2))
    assert result.functions_analyzed == 3
    (cluster,) = result.clusters
    assert [u.name for u in cluster.units] == ["inner", "add"]


def test_other_files_are_ignored_and_directories_recursed(tmp_path: Path, write) -> None:
    write("README.md", "function add(a, b) { return a + b; }")
    write("node_modules/pkg/index.js", ADD)
    write("src/app.jsx", "export const add = (a, b) => a + b;\n")
    write("src/Comp.vue", "<script>\nexport function add(a, b) {\n  return a + b;\n}\n</script>\n")
    write("src/util.js", ADD)
    result = analyze_repository(tmp_path, ScanConfig(min_occurrences=2))
    (cluster,) = result.clusters
    assert [u.source_file.as_posix() for u in cluster.units] == [
        "node_modules/pkg/index.js",
        "src/Comp.vue",
        "src/util.js",
    ]


def test_exclude_patterns(tmp_path: Path, write) -> None:
    _three_copies(write)
    result = analyze_repository(tmp_path, ScanConfig(min_occurrences=2, exclude=["lib/deep/"]))
    assert result.files_scanned == 2
    assert result.clusters[0].size == 2


def test_missing_snippet_source_keeps_locations(tmp_path: Path, write) -> None:
    from dupguard.reporting.text import render_report

    _three_copies(write)
    result = analyze_repository(tmp_path, ScanConfig(min_occurrences=3))
    (tmp_path / "a.js").unlink()
    text = render_report(result.root, result.clusters)
    assert "代码片段" not in text
    assert text.count("  文件: ") == 3


def test_cancellation_between_files(tmp_path: Path, write) -> None:
    _three_copies(write)
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(ScanCancelled):
        analyze_repository(tmp_path, ScanConfig(), cancel=cancel)


def test_unwritable_report_is_fatal(tmp_path: Path, write) -> None:
    _three_copies(write)
    target = tmp_path / "taken"
    target.mkdir()
    with pytest.raises(ReportWriteError):
        scan(tmp_path, target)


def test_oversized_file_is_skipped_by_walked_size(tmp_path: Path, write) -> None:
    write("a.js", ADD)
    write("b.js", SUM)
    big = write("big.js", ADD + "// " + "x" * 200 + "\n")
    result = analyze_repository(tmp_path, ScanConfig(min_occurrences=2, max_bytes=150))
    assert result.clusters[0].size == 2
    (skipped,) = result.skipped
    assert skipped.path.as_posix() == "big.js"
    assert f"{big.stat().st_size} bytes" in skipped.reason
    assert "byte cap" in skipped.reason
