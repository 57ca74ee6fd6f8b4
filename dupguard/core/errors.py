from __future__ import annotations
from pathlib import Path


class DupguardError(Exception):
    """Base class for every error raised by the scanner."""


class IngestionError(DupguardError):
    """A file could not be turned into a syntax tree."""

    def __init__(self, path: Path, cause: str):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"{self.path.as_posix()}: {cause}")


class UnsupportedUnitShape(DupguardError):
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unsupported callable shape: {kind}")


class ReportWriteError(DupguardError):
    def __init__(self, path: Path, cause: BaseException):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Could not write report to {self.path}: {cause}")


class ScanCancelled(DupguardError):
    pass
