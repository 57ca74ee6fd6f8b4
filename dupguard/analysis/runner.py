from __future__ import annotations

import logging
import threading
import typing as t
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from dupguard.analysis.canonical import canonicalize
from dupguard.analysis.clusters import Cluster, build_clusters
from dupguard.analysis.hashing import content_hash
from dupguard.core.config import ScanConfig
from dupguard.core.errors import IngestionError, ScanCancelled, UnsupportedUnitShape
from dupguard.ingestion.walker import FileMeta, walk_repo
from dupguard.parsing.collector import collect_functions
from dupguard.parsing.ir import FunctionUnit
from dupguard.parsing.ts_parser import parse_file
from dupguard.reporting.text import render_report, write_report

logger = logging.getLogger(__name__)

HashedUnit = t.Tuple[FunctionUnit, str]


@dataclass(frozen=True)
class SkippedFile:
    path: Path
    reason: str


@dataclass
class FileOutcome:
    meta: FileMeta
    pairs: list[HashedUnit] = field(default_factory=list)
    functions: int = 0
    excluded: int = 0
    error: IngestionError | None = None


@dataclass
class ScanResult:
    root: Path
    min_occurrences: int
    files_scanned: int
    functions_analyzed: int
    units_excluded: int
    clusters: list[Cluster]
    skipped: list[SkippedFile]


def _process_file(root: Path, meta: FileMeta, max_bytes: int) -> FileOutcome:
    """Ingest, collect, canonicalize and hash one file. Never raises IngestionError."""
    outcome = FileOutcome(meta=meta)
    if meta.bytes > max_bytes:
        outcome.error = IngestionError(meta.path, f"file is {meta.bytes} bytes, over the {max_bytes} byte cap")
        return outcome
    try:
        module = parse_file(root, meta.path, max_bytes=max_bytes, lang_hint=meta.language)
    except IngestionError as e:
        outcome.error = e
        return outcome

    units = collect_functions(module)
    outcome.functions = len(units)
    for unit in units:
        try:
            form = canonicalize(unit)
        except UnsupportedUnitShape as e:
            logger.debug("Excluding %s: %s", unit.id, e)
            outcome.excluded += 1
            continue
        outcome.pairs.append((unit, content_hash(form)))
    return outcome


def _outcomes(
    root: Path,
    metas: list[FileMeta],
    config: ScanConfig,
    cancel: threading.Event | None,
) -> t.Iterator[FileOutcome]:
    if config.workers <= 1:
        for meta in metas:
            if cancel is not None and cancel.is_set():
                raise ScanCancelled(f"Scan cancelled before {meta.path.as_posix()}")
            yield _process_file(root, meta, config.max_bytes)
        return

    # map() hands results back in file order whatever order they finish in.
    executor = ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="dupguard")
    try:
        for outcome in executor.map(lambda m: _process_file(root, m, config.max_bytes), metas):
            if cancel is not None and cancel.is_set():
                raise ScanCancelled(f"Scan cancelled after {outcome.meta.path.as_posix()}")
            yield outcome
    finally:
        executor.shutdown(wait=True, cancel_futures=True)


def analyze_repository(
    root: t.Union[str, Path],
    config: ScanConfig | None = None,
    cancel: threading.Event | None = None,
) -> ScanResult:
    """Run ingestion through clustering over every eligible file under ``root``.

    A file that fails to parse is logged and listed in ``skipped``; the
    rest of the scan carries on.
    """
    root = Path(root)
    config = config or ScanConfig()
    metas = walk_repo(
        root,
        extensions=config.extensions,
        exclude=config.exclude,
        respect_gitignore=config.respect_gitignore,
    )
    logger.info("Scanning %d file(s) under %s", len(metas), root)

    pairs: list[HashedUnit] = []
    skipped: list[SkippedFile] = []
    functions = 0
    excluded = 0
    for outcome in _outcomes(root, metas, config, cancel):
        if outcome.error is not None:
            logger.warning("Skipping %s: %s", (root / outcome.meta.path).as_posix(), outcome.error.cause)
            skipped.append(SkippedFile(path=outcome.meta.path, reason=outcome.error.cause))
            continue
        functions += outcome.functions
        excluded += outcome.excluded
        pairs.extend(outcome.pairs)

    clusters = build_clusters(pairs, min_occurrences=config.min_occurrences)
    logger.info(
        "Found %d cluster(s) among %d function(s); %d file(s) skipped",
        len(clusters), functions, len(skipped),
    )
    return ScanResult(
        root=root,
        min_occurrences=config.min_occurrences,
        files_scanned=len(metas) - len(skipped),
        functions_analyzed=functions,
        units_excluded=excluded,
        clusters=clusters,
        skipped=skipped,
    )


def scan(
    root: t.Union[str, Path],
    report_output_path: t.Union[str, Path],
    min_occurrences: int = 3,
    config: ScanConfig | None = None,
    cancel: threading.Event | None = None,
) -> ScanResult:
    """Scan ``root`` and write the duplicate-function report.

    Only a failure to write the report escapes (as ``ReportWriteError``).
    ``min_occurrences`` is ignored when an explicit ``config`` is given.
    """
    config = config or ScanConfig(min_occurrences=min_occurrences)
    result = analyze_repository(root, config, cancel=cancel)
    write_report(Path(report_output_path), render_report(result.root, result.clusters))
    return result
