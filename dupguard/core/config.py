from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

DEFAULT_EXTENSIONS = (".js", ".mjs", ".cjs", ".jsx", ".ts", ".mts", ".cts", ".tsx", ".vue")

@dataclass
class ScanConfig:
    min_occurrences: int = 3
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    exclude: List[str] = field(default_factory=list)
    respect_gitignore: bool = False
    max_bytes: int = 2_000_000
    workers: int = 1

    def __post_init__(self) -> None:
        if int(self.min_occurrences) < 2:
            raise ValueError(f"min_occurrences must be >= 2, got {self.min_occurrences}")
        if int(self.workers) < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        self.extensions = tuple(e.lower() for e in self.extensions)

    @classmethod
    def from_rules(cls, rules: dict, **overrides) -> "ScanConfig":
        dup = (rules or {}).get("duplication", {}) if isinstance(rules, dict) else {}
        values = {
            "min_occurrences": int(dup.get("min_occurrences", 3)),
            "exclude": list(dup.get("exclude") or []),
            "respect_gitignore": bool(dup.get("respect_gitignore", False)),
            "max_bytes": int(dup.get("max_bytes", 2_000_000)),
            "workers": int(dup.get("workers", 1)),
        }
        if dup.get("extensions"):
            values["extensions"] = tuple(dup["extensions"])
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
