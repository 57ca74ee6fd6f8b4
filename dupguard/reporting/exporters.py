from __future__ import annotations
from pathlib import Path
import json

from dupguard.analysis.runner import ScanResult
from dupguard.reporting.schema import ClusterJSON, LocationJSON, ReportJSON, ScanSummaryJSON, SkippedFileJSON
from dupguard.reporting.text import display_path, load_snippet, write_report

def build_json_report(result: ScanResult) -> ReportJSON:
    clusters = []
    for c in result.clusters:
        clusters.append(ClusterJSON(
            hash=c.hash,
            occurrences=c.size,
            locations=[
                LocationJSON(
                    file=display_path(result.root, u),
                    name=u.name,
                    start_line=u.span.start_line,
                    start_column=u.span.start_column,
                    end_line=u.span.end_line,
                    end_column=u.span.end_column,
                )
                for u in c.units
            ],
            snippet=load_snippet(result.root, c.representative),
        ))
    return ReportJSON(
        summary=ScanSummaryJSON(
            files_scanned=result.files_scanned,
            files_skipped=len(result.skipped),
            functions_analyzed=result.functions_analyzed,
            units_excluded=result.units_excluded,
            clusters=len(result.clusters),
            min_occurrences=result.min_occurrences,
        ),
        clusters=clusters,
        skipped=[SkippedFileJSON(file=s.path.as_posix(), reason=s.reason) for s in result.skipped],
    )

def export_json_report(result: ScanResult, out_path: Path) -> Path:
    payload = build_json_report(result)
    return write_report(out_path, json.dumps(payload.model_dump(), indent=2, ensure_ascii=False) + "\n")
