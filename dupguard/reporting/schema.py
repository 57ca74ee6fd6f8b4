from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, Field

class LocationJSON(BaseModel):
    file: str = Field(..., description="Path as reached from the scan root")
    name: str = Field(..., description="Declared or bound name, '<anonymous>' when none")
    start_line: int = Field(..., ge=1, description="1-based start line")
    start_column: int = Field(..., ge=0, description="0-based start column")
    end_line: int = Field(..., ge=1, description="1-based end line (inclusive)")
    end_column: int = Field(..., ge=0, description="0-based end column (exclusive)")

class ClusterJSON(BaseModel):
    hash: str = Field(..., min_length=64, max_length=64, description="SHA-256 of the canonical form")
    occurrences: int = Field(..., ge=2)
    locations: List[LocationJSON]
    snippet: Optional[str] = Field(None, description="Source of the first location, if readable")

class SkippedFileJSON(BaseModel):
    file: str
    reason: str

class ScanSummaryJSON(BaseModel):
    files_scanned: int = Field(..., ge=0)
    files_skipped: int = Field(..., ge=0)
    functions_analyzed: int = Field(..., ge=0)
    units_excluded: int = Field(..., ge=0, description="Units whose shape could not be canonicalized")
    clusters: int = Field(..., ge=0)
    min_occurrences: int = Field(..., ge=2)

class ReportJSON(BaseModel):
    summary: ScanSummaryJSON
    clusters: List[ClusterJSON]
    skipped: List[SkippedFileJSON]
