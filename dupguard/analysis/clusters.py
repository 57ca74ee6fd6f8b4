from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from dupguard.parsing.ir import FunctionUnit

@dataclass(frozen=True)
class Cluster:
    hash: str
    units: Tuple[FunctionUnit, ...]

    @property
    def size(self) -> int:
        return len(self.units)

    @property
    def representative(self) -> FunctionUnit:
        return self.units[0]

def build_clusters(
    pairs: Iterable[Tuple[FunctionUnit, str]],
    min_occurrences: int = 3,
) -> List[Cluster]:
    """Group units by content hash.

    Groups keep discovery order internally and are returned in the order
    their hash was first seen; only groups with at least
    ``min_occurrences`` members survive.
    """
    if int(min_occurrences) < 2:
        raise ValueError(f"min_occurrences must be >= 2, got {min_occurrences}")
    groups: Dict[str, List[FunctionUnit]] = {}
    for unit, digest in pairs:
        groups.setdefault(digest, []).append(unit)
    return [
        Cluster(hash=digest, units=tuple(units))
        for digest, units in groups.items()
        if len(units) >= min_occurrences
    ]
